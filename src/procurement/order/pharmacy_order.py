"""PharmacyOrder aggregate — one pharmacy's share of an awarded RFQ.

There is at most one order per (RFQ, pharmacy). Lines reference only SKUs
awarded on the originating group order, one line per SKU, and the order
total always equals the sum of its line totals.

State Machine:
    PENDING → CONFIRMED
    PENDING → DECLINED

Lines awarded later are merged in while the order is pending or confirmed.
"""

from enum import Enum

from protean.fields import DateTime, Float, HasMany, Identifier, Integer, String, Text

from procurement.clock import now as clock_now
from procurement.domain import procurement
from procurement.errors import InvalidStateTransitionError, ValidationError
from procurement.order.events import (
    PharmacyOrderConfirmed,
    PharmacyOrderDeclined,
    PharmacyOrderGenerated,
    PharmacyOrderLinesMerged,
)


class PharmacyOrderStatus(Enum):
    PENDING = "pending"
    CONFIRMED = "confirmed"
    DECLINED = "declined"


class LineStatus(Enum):
    PENDING = "pending"
    CONFIRMED = "confirmed"
    DECLINED = "declined"


PAYMENT_TERMS = (30, 60, 90)

_VALID_TRANSITIONS = {
    PharmacyOrderStatus.PENDING: {PharmacyOrderStatus.CONFIRMED, PharmacyOrderStatus.DECLINED},
    PharmacyOrderStatus.CONFIRMED: set(),  # Terminal
    PharmacyOrderStatus.DECLINED: set(),  # Terminal
}


@procurement.entity(part_of="PharmacyOrder")
class PharmacyOrderLine:
    sku_id = Identifier(required=True)
    quantity = Integer(required=True, min_value=1)
    unit_price = Float(required=True, min_value=0.0)
    total_price = Float(required=True, min_value=0.0)
    status = String(choices=LineStatus, default=LineStatus.PENDING.value)


@procurement.aggregate
class PharmacyOrder:
    rfq_id = Identifier(required=True)
    group_order_id = Identifier(required=True)
    pharmacy_id = Identifier(required=True)
    lines = HasMany(PharmacyOrderLine)
    total_value = Float(default=0.0)
    status = String(choices=PharmacyOrderStatus, default=PharmacyOrderStatus.PENDING.value)
    payment_terms = Integer()  # one of PAYMENT_TERMS, in days
    delivery_address = Text()
    decline_reason = String(max_length=500)
    created_at = DateTime()
    confirmed_at = DateTime()
    declined_at = DateTime()
    updated_at = DateTime()

    @classmethod
    def generate(cls, rfq_id, group_order_id, pharmacy_id, lines_data):
        """Create a pending order from a list of {sku_id, quantity, unit_price} dicts."""
        now = clock_now()
        order = cls(
            rfq_id=rfq_id,
            group_order_id=group_order_id,
            pharmacy_id=pharmacy_id,
            status=PharmacyOrderStatus.PENDING.value,
            created_at=now,
            updated_at=now,
        )
        for line_data in lines_data:
            order._append_line(**line_data)
        order._recalculate_total()

        order.raise_(
            PharmacyOrderGenerated(
                pharmacy_order_id=str(order.id),
                rfq_id=str(rfq_id),
                pharmacy_id=str(pharmacy_id),
                line_count=len(order.lines),
                total_value=order.total_value,
                generated_at=now,
            )
        )
        return order

    def _append_line(self, sku_id, quantity, unit_price, status=LineStatus.PENDING.value):
        self.add_lines(
            PharmacyOrderLine(
                sku_id=sku_id,
                quantity=quantity,
                unit_price=unit_price,
                total_price=round(unit_price * quantity, 2),
                status=status,
            )
        )

    def _recalculate_total(self):
        self.total_value = round(sum(line.total_price for line in self.lines or []), 2)

    def has_line(self, sku_id) -> bool:
        return any(str(line.sku_id) == str(sku_id) for line in self.lines or [])

    @property
    def is_pending(self) -> bool:
        return self.status == PharmacyOrderStatus.PENDING.value

    @property
    def is_settled(self) -> bool:
        return not self.is_pending

    def merge_lines(self, lines_data) -> int:
        """Add lines for SKUs the order does not carry yet. Returns the number added.

        A confirmed order takes the new lines as confirmed, under the payment
        terms it was confirmed with. A declined order takes nothing more.
        """
        if self.status == PharmacyOrderStatus.DECLINED.value:
            return 0
        missing = [line for line in lines_data if not self.has_line(line["sku_id"])]
        if not missing:
            return 0

        line_status = LineStatus.CONFIRMED if self.status == PharmacyOrderStatus.CONFIRMED.value else LineStatus.PENDING
        for line_data in missing:
            self._append_line(**line_data, status=line_status.value)
        self._recalculate_total()
        now = clock_now()
        self.updated_at = now

        self.raise_(
            PharmacyOrderLinesMerged(
                pharmacy_order_id=str(self.id),
                rfq_id=str(self.rfq_id),
                pharmacy_id=str(self.pharmacy_id),
                order_status=self.status,
                added_lines=len(missing),
                total_value=self.total_value,
                merged_at=now,
            )
        )
        return len(missing)

    def _assert_can_transition(self, target_status):
        current = PharmacyOrderStatus(self.status)
        if target_status not in _VALID_TRANSITIONS.get(current, set()):
            raise InvalidStateTransitionError(
                {"status": [f"Cannot transition pharmacy order from {current.value} to {target_status.value}"]}
            )

    def confirm(self, payment_terms, delivery_address):
        self._assert_can_transition(PharmacyOrderStatus.CONFIRMED)
        if payment_terms not in PAYMENT_TERMS:
            raise ValidationError({"payment_terms": ["Payment terms must be 30, 60 or 90 days"]})
        if not delivery_address or not delivery_address.strip():
            raise ValidationError({"delivery_address": ["Delivery address is required"]})

        now = clock_now()
        self.status = PharmacyOrderStatus.CONFIRMED.value
        self.payment_terms = payment_terms
        self.delivery_address = delivery_address.strip()
        self.confirmed_at = now
        self.updated_at = now
        for line in self.lines:
            line.status = LineStatus.CONFIRMED.value

        self.raise_(
            PharmacyOrderConfirmed(
                pharmacy_order_id=str(self.id),
                rfq_id=str(self.rfq_id),
                pharmacy_id=str(self.pharmacy_id),
                total_value=self.total_value,
                payment_terms=payment_terms,
                confirmed_at=now,
            )
        )

    def decline(self, reason=None):
        self._assert_can_transition(PharmacyOrderStatus.DECLINED)
        now = clock_now()
        self.status = PharmacyOrderStatus.DECLINED.value
        self.decline_reason = reason
        self.declined_at = now
        self.updated_at = now
        for line in self.lines:
            line.status = LineStatus.DECLINED.value

        self.raise_(
            PharmacyOrderDeclined(
                pharmacy_order_id=str(self.id),
                rfq_id=str(self.rfq_id),
                pharmacy_id=str(self.pharmacy_id),
                reason=reason,
                declined_at=now,
            )
        )
