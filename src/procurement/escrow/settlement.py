"""Escrow settlement — release funds after delivery or refund them."""

from protean import handle
from protean.fields import Identifier, String
from protean.utils.globals import current_domain

from procurement import lifecycle
from procurement.domain import logger, procurement
from procurement.errors import InvalidStateTransitionError
from procurement.escrow.escrow import Escrow
from procurement.group_order.group_order import GroupOrder
from procurement.logistics.tracking import entries_for
from procurement.store import find_all, load, with_pending
from procurement.utils.config import setting


@procurement.command(part_of="Escrow")
class ReleaseEscrow:
    escrow_id = Identifier(required=True)
    reason = String(max_length=500)


@procurement.command(part_of="Escrow")
class RefundEscrow:
    escrow_id = Identifier(required=True)
    reason = String(max_length=500)


def _close_group_order_if_settled(escrow):
    group_order = load(GroupOrder, escrow.group_order_id)
    escrows = with_pending(find_all(Escrow, rfq_id=str(escrow.rfq_id)), escrow)
    if lifecycle.after_escrow_settlement(group_order, escrows):
        current_domain.repository_for(GroupOrder).add(group_order)


@procurement.command_handler(part_of=Escrow)
class SettlementHandler:
    @handle(ReleaseEscrow)
    def release_escrow(self, command):
        escrow = load(Escrow, command.escrow_id)
        entries = entries_for(escrow.rfq_id, pharmacy_id=escrow.pharmacy_id)
        if not entries or not all(entry.is_delivered for entry in entries):
            raise InvalidStateTransitionError(
                {"status": ["Escrow can only be released once every shipment to the pharmacy is delivered"]}
            )

        escrow.release(command.reason or setting("DEFAULT_RELEASE_REASON"))
        current_domain.repository_for(Escrow).add(escrow)
        _close_group_order_if_settled(escrow)

        logger.info("Escrow released", escrow_id=str(escrow.id), amount=escrow.amount)
        return str(escrow.id)

    @handle(RefundEscrow)
    def refund_escrow(self, command):
        escrow = load(Escrow, command.escrow_id)
        escrow.refund(command.reason or setting("DEFAULT_REFUND_REASON"))
        current_domain.repository_for(Escrow).add(escrow)
        _close_group_order_if_settled(escrow)

        logger.info("Escrow refunded", escrow_id=str(escrow.id), amount=escrow.amount)
        return str(escrow.id)
