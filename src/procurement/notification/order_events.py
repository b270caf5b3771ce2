"""Notices for pharmacy and supplier orders."""

from protean.utils.mixins import handle

from procurement.domain import procurement
from procurement.notification import get_sink
from procurement.notification.port import Audience
from procurement.order.events import (
    PharmacyOrderConfirmed,
    PharmacyOrderDeclined,
    PharmacyOrderGenerated,
    PharmacyOrderLinesMerged,
    SupplierOrderAdvanced,
    SupplierOrderAssigned,
    SupplierOrderCancelled,
)
from procurement.order.pharmacy_order import PharmacyOrder
from procurement.order.supplier_order import SupplierOrder


@procurement.event_handler(part_of=PharmacyOrder)
class PharmacyOrderNotifications:
    @handle(PharmacyOrderGenerated)
    def on_pharmacy_order_generated(self, event: PharmacyOrderGenerated) -> None:
        get_sink().notify(
            Audience.PHARMACY.value,
            f"Order ready for confirmation: {event.line_count} line(s), total {event.total_value:.2f}",
            recipient_id=str(event.pharmacy_id),
        )

    @handle(PharmacyOrderLinesMerged)
    def on_pharmacy_order_lines_merged(self, event: PharmacyOrderLinesMerged) -> None:
        where = "confirmed order" if event.order_status == "confirmed" else "order awaiting confirmation"
        get_sink().notify(
            Audience.PHARMACY.value,
            f"{event.added_lines} line(s) added to your {where}, total {event.total_value:.2f}",
            recipient_id=str(event.pharmacy_id),
        )

    @handle(PharmacyOrderConfirmed)
    def on_pharmacy_order_confirmed(self, event: PharmacyOrderConfirmed) -> None:
        get_sink().notify(
            Audience.ADMIN.value,
            f"Pharmacy order confirmed ({event.total_value:.2f}, net {event.payment_terms} days)",
        )

    @handle(PharmacyOrderDeclined)
    def on_pharmacy_order_declined(self, event: PharmacyOrderDeclined) -> None:
        reason = f": {event.reason}" if event.reason else ""
        get_sink().notify(Audience.ADMIN.value, f"Pharmacy order declined{reason}")


@procurement.event_handler(part_of=SupplierOrder)
class SupplierOrderNotifications:
    @handle(SupplierOrderAssigned)
    def on_supplier_order_assigned(self, event: SupplierOrderAssigned) -> None:
        get_sink().notify(
            Audience.SUPPLIER.value,
            f"Order assigned: {event.line_count} line(s), total {event.total_value:.2f}",
            recipient_id=str(event.supplier_id),
        )

    @handle(SupplierOrderAdvanced)
    def on_supplier_order_advanced(self, event: SupplierOrderAdvanced) -> None:
        get_sink().notify(Audience.ADMIN.value, f"Supplier order moved to {event.to_status}")
        if event.to_status == "shipped":
            get_sink().notify(Audience.COURIER.value, f"Shipment ready for pickup, tracking {event.tracking_number}")

    @handle(SupplierOrderCancelled)
    def on_supplier_order_cancelled(self, event: SupplierOrderCancelled) -> None:
        reason = f": {event.reason}" if event.reason else ""
        get_sink().notify(Audience.SUPPLIER.value, f"Order cancelled{reason}", recipient_id=str(event.supplier_id))
