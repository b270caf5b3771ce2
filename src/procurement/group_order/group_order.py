"""GroupOrder aggregate — demand from many pharmacies combined per SKU.

Each line carries the total quantity for one SKU and an ordered breakdown of
the demands it was built from (``[{"demand_id", "pharmacy_id", "quantity"}]``).
The breakdown always sums to the line total. Once an RFQ is awarded, a line
also records the winning bid, supplier, unit price and awarded quantity.

State Machine:
    DRAFT → RFQ_OPEN → BIDDING_CLOSED → AWAITING_CONFIRMATIONS → SCHEDULED → IN_DELIVERY → CLOSED
    BIDDING_CLOSED → RFQ_OPEN (re-publish after an RFQ closed with no award)
    SCHEDULED → CLOSED (every escrow settled before shipping)
    SCHEDULED → AWAITING_CONFIRMATIONS (a later award fanned out a new pending order)
    CANCELLED (from DRAFT, RFQ_OPEN, BIDDING_CLOSED, AWAITING_CONFIRMATIONS)
"""

import json
from enum import Enum

from protean.fields import DateTime, Float, HasMany, Identifier, Integer, String, Text

from procurement.clock import now as clock_now
from procurement.domain import procurement
from procurement.errors import AlreadyAwardedError, ConsistencyError, InvalidStateTransitionError, ValidationError
from procurement.group_order.events import (
    GroupOrderCancelled,
    GroupOrderCreated,
    GroupOrderLineAwarded,
    GroupOrderStatusChanged,
)


class GroupOrderStatus(Enum):
    DRAFT = "draft"
    RFQ_OPEN = "rfq_open"
    BIDDING_CLOSED = "bidding_closed"
    AWAITING_CONFIRMATIONS = "awaiting_confirmations"
    SCHEDULED = "scheduled"
    IN_DELIVERY = "in_delivery"
    CLOSED = "closed"
    CANCELLED = "cancelled"


_VALID_TRANSITIONS = {
    GroupOrderStatus.DRAFT: {GroupOrderStatus.RFQ_OPEN, GroupOrderStatus.CANCELLED},
    GroupOrderStatus.RFQ_OPEN: {GroupOrderStatus.BIDDING_CLOSED, GroupOrderStatus.CANCELLED},
    GroupOrderStatus.BIDDING_CLOSED: {
        GroupOrderStatus.RFQ_OPEN,  # Re-publish after a closed RFQ drew no award
        GroupOrderStatus.AWAITING_CONFIRMATIONS,
        GroupOrderStatus.CANCELLED,
    },
    GroupOrderStatus.AWAITING_CONFIRMATIONS: {GroupOrderStatus.SCHEDULED, GroupOrderStatus.CANCELLED},
    GroupOrderStatus.SCHEDULED: {
        GroupOrderStatus.AWAITING_CONFIRMATIONS,  # A later award brought in a new pharmacy order
        GroupOrderStatus.IN_DELIVERY,
        GroupOrderStatus.CLOSED,
    },
    GroupOrderStatus.IN_DELIVERY: {GroupOrderStatus.CLOSED},
    GroupOrderStatus.CLOSED: set(),  # Terminal
    GroupOrderStatus.CANCELLED: set(),  # Terminal
}


@procurement.entity(part_of="GroupOrder")
class GroupOrderLine:
    sku_id = Identifier(required=True)
    total_quantity = Integer(required=True, min_value=1)
    demand_breakdown = Text(required=True)  # JSON: ordered list of {demand_id, pharmacy_id, quantity}
    awarded_bid_id = Identifier()
    awarded_supplier_id = Identifier()
    awarded_price = Float()
    awarded_quantity = Integer()
    awarded_at = DateTime()

    @property
    def breakdown(self) -> list[dict]:
        return json.loads(self.demand_breakdown) if self.demand_breakdown else []

    @property
    def is_awarded(self) -> bool:
        return self.awarded_bid_id is not None

    @property
    def awarded_value(self) -> float:
        if not self.is_awarded:
            return 0.0
        return round(self.awarded_price * self.awarded_quantity, 2)


@procurement.aggregate
class GroupOrder:
    title = String(required=True, max_length=255)
    description = Text()
    status = String(choices=GroupOrderStatus, default=GroupOrderStatus.DRAFT.value)
    lines = HasMany(GroupOrderLine)
    bidding_deadline = DateTime()
    delivery_deadline = DateTime()
    current_rfq_id = Identifier()
    total_value = Float(default=0.0)
    cancellation_reason = String(max_length=500)
    created_at = DateTime()
    updated_at = DateTime()

    @classmethod
    def create(cls, title, lines_data, description=None, bidding_deadline=None, delivery_deadline=None):
        """Create a draft group order.

        Args:
            title: Human-readable name for the buying round.
            lines_data: List of dicts with sku_id and breakdown, where breakdown
                is the ordered list of {demand_id, pharmacy_id, quantity}.
        """
        if not title or not title.strip():
            raise ValidationError({"title": ["Title is required"]})
        if not lines_data:
            raise ValidationError({"lines": ["A group order needs at least one line"]})

        now = clock_now()
        group_order = cls(
            title=title.strip(),
            description=description,
            status=GroupOrderStatus.DRAFT.value,
            bidding_deadline=bidding_deadline,
            delivery_deadline=delivery_deadline,
            total_value=0.0,
            created_at=now,
            updated_at=now,
        )
        for line_data in lines_data:
            breakdown = line_data["breakdown"]
            group_order.add_lines(
                GroupOrderLine(
                    sku_id=line_data["sku_id"],
                    total_quantity=sum(entry["quantity"] for entry in breakdown),
                    demand_breakdown=json.dumps(breakdown),
                )
            )
        group_order.check_consistency()

        demand_ids = [entry["demand_id"] for line in lines_data for entry in line["breakdown"]]
        pharmacy_ids = sorted({entry["pharmacy_id"] for line in lines_data for entry in line["breakdown"]})
        group_order.raise_(
            GroupOrderCreated(
                group_order_id=str(group_order.id),
                title=group_order.title,
                demand_ids=json.dumps(demand_ids),
                pharmacy_ids=json.dumps(pharmacy_ids),
                line_count=len(lines_data),
                created_at=now,
            )
        )
        return group_order

    def check_consistency(self):
        """Every line's breakdown must sum to the line total."""
        for line in self.lines or []:
            breakdown_total = sum(entry["quantity"] for entry in line.breakdown)
            if breakdown_total != line.total_quantity:
                raise ConsistencyError(
                    {
                        "lines": [
                            f"Line for SKU {line.sku_id} totals {line.total_quantity} "
                            f"but its breakdown sums to {breakdown_total}"
                        ]
                    }
                )

    def line_for(self, sku_id):
        return next((line for line in self.lines or [] if str(line.sku_id) == str(sku_id)), None)

    @property
    def awarded_lines(self) -> list:
        return [line for line in self.lines or [] if line.is_awarded]

    @property
    def pharmacy_ids(self) -> list[str]:
        seen = []
        for line in self.lines or []:
            for entry in line.breakdown:
                if entry["pharmacy_id"] not in seen:
                    seen.append(entry["pharmacy_id"])
        return seen

    # -------------------------------------------------------------------
    # State transitions
    # -------------------------------------------------------------------
    def _assert_can_transition(self, target_status):
        current = GroupOrderStatus(self.status)
        if target_status not in _VALID_TRANSITIONS.get(current, set()):
            raise InvalidStateTransitionError(
                {"status": [f"Cannot transition group order from {current.value} to {target_status.value}"]}
            )

    def _transition(self, target_status):
        self._assert_can_transition(target_status)
        previous = self.status
        now = clock_now()
        self.status = target_status.value
        self.updated_at = now
        self.raise_(
            GroupOrderStatusChanged(
                group_order_id=str(self.id),
                title=self.title,
                from_status=previous,
                to_status=target_status.value,
                changed_at=now,
            )
        )

    def can_transition_to(self, target_status) -> bool:
        return target_status in _VALID_TRANSITIONS.get(GroupOrderStatus(self.status), set())

    def open_rfq(self, rfq_id, bidding_deadline):
        self._transition(GroupOrderStatus.RFQ_OPEN)
        self.current_rfq_id = rfq_id
        self.bidding_deadline = bidding_deadline

    def close_bidding(self):
        self._transition(GroupOrderStatus.BIDDING_CLOSED)

    def await_confirmations(self):
        self._transition(GroupOrderStatus.AWAITING_CONFIRMATIONS)

    def schedule(self):
        self._transition(GroupOrderStatus.SCHEDULED)

    def start_delivery(self):
        self._transition(GroupOrderStatus.IN_DELIVERY)

    def close(self):
        self._transition(GroupOrderStatus.CLOSED)

    def cancel(self, reason=None):
        self._assert_can_transition(GroupOrderStatus.CANCELLED)
        previous = self.status
        now = clock_now()
        self.status = GroupOrderStatus.CANCELLED.value
        self.cancellation_reason = reason
        self.updated_at = now
        self.raise_(
            GroupOrderCancelled(
                group_order_id=str(self.id),
                title=self.title,
                previous_status=previous,
                reason=reason,
                cancelled_at=now,
            )
        )

    # -------------------------------------------------------------------
    # Award
    # -------------------------------------------------------------------
    def record_award(self, sku_id, bid_id, supplier_id, unit_price, quantity):
        """Record the winning bid on the SKU's line and refresh the total value."""
        line = self.line_for(sku_id)
        if line is None:
            raise ValidationError({"sku_id": [f"Group order has no line for SKU {sku_id}"]})
        if line.is_awarded:
            raise AlreadyAwardedError({"sku_id": [f"Line for SKU {sku_id} is already awarded"]})

        now = clock_now()
        line.awarded_bid_id = bid_id
        line.awarded_supplier_id = supplier_id
        line.awarded_price = unit_price
        line.awarded_quantity = min(quantity, line.total_quantity)
        line.awarded_at = now
        self.total_value = round(sum(awarded.awarded_value for awarded in self.awarded_lines), 2)
        self.updated_at = now

        self.raise_(
            GroupOrderLineAwarded(
                group_order_id=str(self.id),
                sku_id=str(sku_id),
                bid_id=str(bid_id),
                supplier_id=str(supplier_id),
                awarded_price=unit_price,
                awarded_quantity=line.awarded_quantity,
                total_value=self.total_value,
                awarded_at=now,
            )
        )
        return line
