"""Group order cancellation — withdraw a buying round before any award."""

from protean import handle
from protean.fields import Identifier, String
from protean.utils.globals import current_domain

from procurement.domain import logger, procurement
from procurement.errors import InvalidStateTransitionError
from procurement.group_order.group_order import GroupOrder
from procurement.rfq.rfq import Rfq, RfqStatus
from procurement.store import find_all, load


@procurement.command(part_of="GroupOrder")
class CancelGroupOrder:
    group_order_id = Identifier(required=True)
    reason = String(max_length=500)


@procurement.command_handler(part_of=GroupOrder)
class CancellationHandler:
    @handle(CancelGroupOrder)
    def cancel_group_order(self, command):
        group_order = load(GroupOrder, command.group_order_id)
        if group_order.awarded_lines:
            raise InvalidStateTransitionError({"status": ["A group order with awarded lines cannot be cancelled"]})

        group_order.cancel(reason=command.reason)

        rfq_repo = current_domain.repository_for(Rfq)
        for rfq in find_all(Rfq, group_order_id=str(group_order.id), status=RfqStatus.OPEN.value):
            rfq.close()
            rfq_repo.add(rfq)
        current_domain.repository_for(GroupOrder).add(group_order)

        logger.info("Group order cancelled", group_order_id=str(group_order.id), reason=command.reason)
        return str(group_order.id)
