"""Supplier fulfilment — step a supplier order forward and keep shipments in sync.

Shipping creates (or moves forward) one logistics entry per pharmacy served
by the order, skipping pharmacies that declined. Delivery marks those
entries delivered. Nothing moves once the group order is cancelled.
"""

from protean import handle
from protean.fields import DateTime, Identifier, String, Text
from protean.utils.globals import current_domain

from procurement import lifecycle
from procurement.domain import logger, procurement
from procurement.errors import InvalidStateTransitionError
from procurement.group_order.group_order import GroupOrder, GroupOrderStatus
from procurement.logistics.logistics import LogisticsStatus
from procurement.logistics.tracking import upsert_entry
from procurement.order.pharmacy_order import PharmacyOrder, PharmacyOrderStatus
from procurement.order.supplier_order import SupplierOrder, SupplierOrderStatus
from procurement.store import find_all, load


@procurement.command(part_of="SupplierOrder")
class AdvanceSupplierOrder:
    supplier_order_id = Identifier(required=True)
    status = String(required=True, choices=SupplierOrderStatus)
    tracking_number = String(max_length=255)
    expected_delivery = DateTime()
    shipping_info = Text()


def served_pharmacies(supplier_order) -> list[str]:
    """Pharmacies in the order's breakdowns that have not declined their order."""
    declined = {
        str(order.pharmacy_id)
        for order in find_all(PharmacyOrder, rfq_id=str(supplier_order.rfq_id))
        if order.status == PharmacyOrderStatus.DECLINED.value
    }
    return [pharmacy_id for pharmacy_id in supplier_order.pharmacy_ids if pharmacy_id not in declined]


def _sync_logistics(supplier_order, status):
    for pharmacy_id in served_pharmacies(supplier_order):
        upsert_entry(
            rfq_id=supplier_order.rfq_id,
            supplier_id=supplier_order.supplier_id,
            pharmacy_id=pharmacy_id,
            status=status,
            tracking_number=supplier_order.tracking_number,
            estimated_delivery=supplier_order.expected_delivery,
        )


@procurement.command_handler(part_of=SupplierOrder)
class FulfillmentHandler:
    @handle(AdvanceSupplierOrder)
    def advance_supplier_order(self, command):
        order = load(SupplierOrder, command.supplier_order_id)
        group_order = load(GroupOrder, order.group_order_id)
        if group_order.status == GroupOrderStatus.CANCELLED.value:
            raise InvalidStateTransitionError(
                {"status": [f"Group order {group_order.id} is cancelled, its supplier orders cannot move on"]}
            )

        order.advance(
            command.status,
            tracking_number=command.tracking_number,
            expected_delivery=command.expected_delivery,
            shipping_info=command.shipping_info,
        )

        if order.status == SupplierOrderStatus.SHIPPED.value:
            _sync_logistics(order, LogisticsStatus.PICKED_UP.value)
            if lifecycle.after_shipment(group_order):
                current_domain.repository_for(GroupOrder).add(group_order)
        elif order.status == SupplierOrderStatus.DELIVERED.value:
            _sync_logistics(order, LogisticsStatus.DELIVERED.value)

        current_domain.repository_for(SupplierOrder).add(order)
        logger.info(
            "Supplier order advanced",
            supplier_order_id=str(order.id),
            supplier_id=str(order.supplier_id),
            status=order.status,
        )
        return str(order.id)
