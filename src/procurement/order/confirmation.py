"""Pharmacy confirmation — accept or decline a fanned-out order.

Confirming opens and funds the pharmacy's escrow for the RFQ (once, however
often it is triggered). Declining never touches escrow or any other
pharmacy's order. When the last pharmacy declines, the group order is
cancelled and so is every supplier order that has not shipped yet.
"""

from protean import handle
from protean.fields import Identifier, Integer, String, Text
from protean.utils.globals import current_domain

from procurement import lifecycle
from procurement.domain import logger, procurement
from procurement.escrow.escrow import Escrow
from procurement.group_order.group_order import GroupOrder, GroupOrderStatus
from procurement.order.pharmacy_order import PharmacyOrder
from procurement.order.supplier_order import SupplierOrder
from procurement.store import find_all, find_first, load, with_pending
from procurement.utils.config import setting


@procurement.command(part_of="PharmacyOrder")
class ConfirmPharmacyOrder:
    pharmacy_order_id = Identifier(required=True)
    payment_terms = Integer(required=True)  # 30, 60 or 90 days
    delivery_address = Text(required=True)


@procurement.command(part_of="PharmacyOrder")
class DeclinePharmacyOrder:
    pharmacy_order_id = Identifier(required=True)
    reason = String(max_length=500)


def ensure_escrow(pharmacy_order):
    """Open and fund the escrow for (RFQ, pharmacy) unless one already exists."""
    escrow = find_first(Escrow, rfq_id=str(pharmacy_order.rfq_id), pharmacy_id=str(pharmacy_order.pharmacy_id))
    if escrow is not None:
        return escrow

    escrow = Escrow.open(pharmacy_order, currency=setting("CURRENCY"))
    escrow.fund()
    current_domain.repository_for(Escrow).add(escrow)
    logger.info(
        "Escrow funded",
        escrow_id=str(escrow.id),
        rfq_id=str(escrow.rfq_id),
        pharmacy_id=str(escrow.pharmacy_id),
        amount=escrow.amount,
    )
    return escrow


def cover_order_total(pharmacy_order):
    """Top up a confirmed order's escrow to the order's current total."""
    escrow = find_first(Escrow, rfq_id=str(pharmacy_order.rfq_id), pharmacy_id=str(pharmacy_order.pharmacy_id))
    if escrow is None:
        return ensure_escrow(pharmacy_order)

    shortfall = round(pharmacy_order.total_value - escrow.amount, 2)
    if shortfall > 0:
        escrow.top_up(shortfall)
        current_domain.repository_for(Escrow).add(escrow)
        logger.info("Escrow topped up", escrow_id=str(escrow.id), added_amount=shortfall, amount=escrow.amount)
    return escrow


def _cancel_open_supplier_orders(group_order, rfq_id):
    repo = current_domain.repository_for(SupplierOrder)
    for supplier_order in find_all(SupplierOrder, rfq_id=str(rfq_id)):
        if supplier_order.is_open:
            supplier_order.cancel(reason=group_order.cancellation_reason)
            repo.add(supplier_order)


def _progress_group_order(pharmacy_order):
    group_order = load(GroupOrder, pharmacy_order.group_order_id)
    orders = with_pending(find_all(PharmacyOrder, rfq_id=str(pharmacy_order.rfq_id)), pharmacy_order)
    shipped = any(order.has_shipped for order in find_all(SupplierOrder, rfq_id=str(pharmacy_order.rfq_id)))
    if lifecycle.after_pharmacy_decision(group_order, orders, shipped=shipped):
        if group_order.status == GroupOrderStatus.CANCELLED.value:
            _cancel_open_supplier_orders(group_order, pharmacy_order.rfq_id)
        current_domain.repository_for(GroupOrder).add(group_order)


@procurement.command_handler(part_of=PharmacyOrder)
class ConfirmationHandler:
    @handle(ConfirmPharmacyOrder)
    def confirm_pharmacy_order(self, command):
        order = load(PharmacyOrder, command.pharmacy_order_id)
        order.confirm(payment_terms=command.payment_terms, delivery_address=command.delivery_address)
        ensure_escrow(order)
        _progress_group_order(order)
        current_domain.repository_for(PharmacyOrder).add(order)

        logger.info(
            "Pharmacy order confirmed",
            pharmacy_order_id=str(order.id),
            pharmacy_id=str(order.pharmacy_id),
            total_value=order.total_value,
        )
        return str(order.id)

    @handle(DeclinePharmacyOrder)
    def decline_pharmacy_order(self, command):
        order = load(PharmacyOrder, command.pharmacy_order_id)
        order.decline(reason=command.reason)
        _progress_group_order(order)
        current_domain.repository_for(PharmacyOrder).add(order)

        logger.info("Pharmacy order declined", pharmacy_order_id=str(order.id), pharmacy_id=str(order.pharmacy_id))
        return str(order.id)
