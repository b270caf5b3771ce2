"""SupplierOrder aggregate — everything one supplier won on an RFQ.

Each line keeps the per-pharmacy split of its quantity so shipments can be
tracked per delivery. There is at most one order per (RFQ, supplier).

State Machine (strictly one step at a time):
    ASSIGNED → IN_FULFILLMENT → SHIPPED → DELIVERED → INVOICED
    ASSIGNED, IN_FULFILLMENT → CANCELLED (the round was called off)
"""

import json
from enum import Enum

from protean.fields import DateTime, Float, HasMany, Identifier, Integer, String, Text

from procurement.clock import now as clock_now
from procurement.domain import procurement
from procurement.errors import InvalidStateTransitionError, ValidationError
from procurement.order.events import (
    SupplierOrderAdvanced,
    SupplierOrderAssigned,
    SupplierOrderCancelled,
    SupplierOrderLinesMerged,
)


class SupplierOrderStatus(Enum):
    ASSIGNED = "assigned"
    IN_FULFILLMENT = "in_fulfillment"
    SHIPPED = "shipped"
    DELIVERED = "delivered"
    INVOICED = "invoiced"
    CANCELLED = "cancelled"


_VALID_TRANSITIONS = {
    SupplierOrderStatus.ASSIGNED: {SupplierOrderStatus.IN_FULFILLMENT, SupplierOrderStatus.CANCELLED},
    SupplierOrderStatus.IN_FULFILLMENT: {SupplierOrderStatus.SHIPPED, SupplierOrderStatus.CANCELLED},
    SupplierOrderStatus.SHIPPED: {SupplierOrderStatus.DELIVERED},
    SupplierOrderStatus.DELIVERED: {SupplierOrderStatus.INVOICED},
    SupplierOrderStatus.INVOICED: set(),  # Terminal
    SupplierOrderStatus.CANCELLED: set(),  # Terminal
}

_SHIPPED_STATUSES = {
    SupplierOrderStatus.SHIPPED.value,
    SupplierOrderStatus.DELIVERED.value,
    SupplierOrderStatus.INVOICED.value,
}


@procurement.entity(part_of="SupplierOrder")
class SupplierOrderLine:
    sku_id = Identifier(required=True)
    quantity = Integer(required=True, min_value=1)
    unit_price = Float(required=True, min_value=0.0)
    total_price = Float(required=True, min_value=0.0)
    pharmacy_breakdown = Text(required=True)  # JSON: list of {pharmacy_id, quantity}

    @property
    def breakdown(self) -> list[dict]:
        return json.loads(self.pharmacy_breakdown) if self.pharmacy_breakdown else []


@procurement.aggregate
class SupplierOrder:
    rfq_id = Identifier(required=True)
    group_order_id = Identifier(required=True)
    supplier_id = Identifier(required=True)
    lines = HasMany(SupplierOrderLine)
    total_value = Float(default=0.0)
    status = String(choices=SupplierOrderStatus, default=SupplierOrderStatus.ASSIGNED.value)
    tracking_number = String(max_length=255)
    expected_delivery = DateTime()
    shipping_info = Text()
    assigned_at = DateTime()
    in_fulfillment_at = DateTime()
    shipped_at = DateTime()
    delivered_at = DateTime()
    invoiced_at = DateTime()
    cancelled_at = DateTime()
    cancellation_reason = String(max_length=500)
    updated_at = DateTime()

    @classmethod
    def assign(cls, rfq_id, group_order_id, supplier_id, lines_data):
        """Create an assigned order from {sku_id, quantity, unit_price, breakdown} dicts."""
        now = clock_now()
        order = cls(
            rfq_id=rfq_id,
            group_order_id=group_order_id,
            supplier_id=supplier_id,
            status=SupplierOrderStatus.ASSIGNED.value,
            assigned_at=now,
            updated_at=now,
        )
        for line_data in lines_data:
            order._append_line(**line_data)
        order._recalculate_total()

        order.raise_(
            SupplierOrderAssigned(
                supplier_order_id=str(order.id),
                rfq_id=str(rfq_id),
                supplier_id=str(supplier_id),
                line_count=len(order.lines),
                total_value=order.total_value,
                assigned_at=now,
            )
        )
        return order

    def _append_line(self, sku_id, quantity, unit_price, breakdown):
        self.add_lines(
            SupplierOrderLine(
                sku_id=sku_id,
                quantity=quantity,
                unit_price=unit_price,
                total_price=round(unit_price * quantity, 2),
                pharmacy_breakdown=json.dumps(breakdown),
            )
        )

    def _recalculate_total(self):
        self.total_value = round(sum(line.total_price for line in self.lines or []), 2)

    def has_line(self, sku_id) -> bool:
        return any(str(line.sku_id) == str(sku_id) for line in self.lines or [])

    @property
    def pharmacy_ids(self) -> list[str]:
        seen = []
        for line in self.lines or []:
            for entry in line.breakdown:
                if entry["pharmacy_id"] not in seen:
                    seen.append(entry["pharmacy_id"])
        return seen

    def merge_lines(self, lines_data) -> int:
        """Add lines for SKUs the order does not carry yet, up to the point it ships."""
        missing = [line for line in lines_data if not self.has_line(line["sku_id"])]
        if not missing:
            return 0
        if not self.is_open:
            raise InvalidStateTransitionError(
                {"status": [f"Cannot add lines to a supplier order that is {self.status}"]}
            )

        for line_data in missing:
            self._append_line(**line_data)
        self._recalculate_total()
        now = clock_now()
        self.updated_at = now

        self.raise_(
            SupplierOrderLinesMerged(
                supplier_order_id=str(self.id),
                rfq_id=str(self.rfq_id),
                supplier_id=str(self.supplier_id),
                added_lines=len(missing),
                total_value=self.total_value,
                merged_at=now,
            )
        )
        return len(missing)

    def advance(self, target_status, tracking_number=None, expected_delivery=None, shipping_info=None):
        """Move exactly one step forward, recording any shipment details supplied."""
        current = SupplierOrderStatus(self.status)
        target = SupplierOrderStatus(target_status)
        if target == SupplierOrderStatus.CANCELLED or target not in _VALID_TRANSITIONS.get(current, set()):
            raise InvalidStateTransitionError(
                {"status": [f"Cannot transition supplier order from {current.value} to {target.value}"]}
            )
        if target == SupplierOrderStatus.SHIPPED:
            errors = {}
            if not tracking_number:
                errors["tracking_number"] = ["Tracking number is required to ship"]
            if not expected_delivery:
                errors["expected_delivery"] = ["Expected delivery is required to ship"]
            if errors:
                raise ValidationError(errors)

        now = clock_now()
        self.status = target.value
        setattr(self, f"{target.value}_at", now)
        if tracking_number:
            self.tracking_number = tracking_number
        if expected_delivery:
            self.expected_delivery = expected_delivery
        if shipping_info:
            self.shipping_info = shipping_info
        self.updated_at = now

        self.raise_(
            SupplierOrderAdvanced(
                supplier_order_id=str(self.id),
                rfq_id=str(self.rfq_id),
                supplier_id=str(self.supplier_id),
                from_status=current.value,
                to_status=target.value,
                tracking_number=self.tracking_number,
                advanced_at=now,
            )
        )

    @property
    def has_shipped(self) -> bool:
        return self.status in _SHIPPED_STATUSES

    @property
    def is_open(self) -> bool:
        """Not shipped and not cancelled: lines can still be added and the order called off."""
        return SupplierOrderStatus.CANCELLED in _VALID_TRANSITIONS[SupplierOrderStatus(self.status)]

    def cancel(self, reason=None):
        if not self.is_open:
            raise InvalidStateTransitionError({"status": [f"Cannot cancel a supplier order that is {self.status}"]})

        previous = self.status
        now = clock_now()
        self.status = SupplierOrderStatus.CANCELLED.value
        self.cancellation_reason = reason
        self.cancelled_at = now
        self.updated_at = now
        self.raise_(
            SupplierOrderCancelled(
                supplier_order_id=str(self.id),
                rfq_id=str(self.rfq_id),
                supplier_id=str(self.supplier_id),
                previous_status=previous,
                reason=reason,
                cancelled_at=now,
            )
        )
