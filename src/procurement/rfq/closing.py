"""Bidding closure — close an RFQ by hand or sweep every RFQ past its deadline.

Closing is one-way: there is no reopen. A closed RFQ with no award can be
followed by publishing a fresh RFQ for the same group order.
"""

from protean import handle
from protean.fields import DateTime, Identifier
from protean.utils.globals import current_domain

from procurement.domain import logger, procurement
from procurement.group_order.group_order import GroupOrder, GroupOrderStatus
from procurement.rfq.rfq import Rfq, RfqStatus
from procurement.store import find_all, load


@procurement.command(part_of="Rfq")
class CloseBidding:
    rfq_id = Identifier(required=True)


@procurement.command(part_of="Rfq")
class CloseExpiredBidding:
    """Scheduler entry point: close every open RFQ whose deadline has passed."""

    as_of = DateTime()  # Optional: defaults to now


def close_rfq(rfq) -> bool:
    """Close an open RFQ and move its group order along. Returns False when already closed."""
    if not rfq.is_open:
        return False

    rfq.close()
    current_domain.repository_for(Rfq).add(rfq)

    group_order = load(GroupOrder, rfq.group_order_id)
    if group_order.status == GroupOrderStatus.RFQ_OPEN.value:
        group_order.close_bidding()
        current_domain.repository_for(GroupOrder).add(group_order)

    logger.info("Bidding closed", rfq_id=str(rfq.id), group_order_id=str(rfq.group_order_id))
    return True


@procurement.command_handler(part_of=Rfq)
class ClosingHandler:
    @handle(CloseBidding)
    def close_bidding(self, command):
        rfq = load(Rfq, command.rfq_id)
        close_rfq(rfq)
        return str(rfq.id)

    @handle(CloseExpiredBidding)
    def close_expired_bidding(self, command):
        closed = []
        for rfq in find_all(Rfq, status=RfqStatus.OPEN.value):
            if rfq.deadline_passed(command.as_of) and close_rfq(rfq):
                closed.append(str(rfq.id))
        return closed
