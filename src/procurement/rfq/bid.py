"""Bid aggregate — a supplier's offer against one RFQ line.

State Machine:
    SUBMITTED → AWARDED
    SUBMITTED → REJECTED
"""

from enum import Enum

from protean.fields import DateTime, Float, Identifier, Integer, String, Text

from procurement.clock import now as clock_now
from procurement.domain import procurement
from procurement.errors import AlreadyAwardedError, InvalidStateTransitionError
from procurement.rfq.events import BidAwarded, BidRejected, BidSubmitted


class BidStatus(Enum):
    SUBMITTED = "submitted"
    AWARDED = "awarded"
    REJECTED = "rejected"


_VALID_TRANSITIONS = {
    BidStatus.SUBMITTED: {BidStatus.AWARDED, BidStatus.REJECTED},
    BidStatus.AWARDED: set(),  # Terminal
    BidStatus.REJECTED: set(),  # Terminal
}


@procurement.aggregate
class Bid:
    rfq_id = Identifier(required=True)
    supplier_id = Identifier(required=True)
    sku_id = Identifier(required=True)
    unit_price = Float(required=True)
    quantity = Integer(required=True, min_value=1)
    min_quantity = Integer(min_value=1)
    lead_time_days = Integer(required=True, min_value=0)
    notes = Text()
    status = String(choices=BidStatus, default=BidStatus.SUBMITTED.value)
    submitted_at = DateTime()
    decided_at = DateTime()

    @classmethod
    def submit(cls, rfq_id, supplier_id, sku_id, unit_price, quantity, lead_time_days, min_quantity=None, notes=None):
        now = clock_now()
        bid = cls(
            rfq_id=rfq_id,
            supplier_id=supplier_id,
            sku_id=sku_id,
            unit_price=unit_price,
            quantity=quantity,
            min_quantity=min_quantity,
            lead_time_days=lead_time_days,
            notes=notes,
            status=BidStatus.SUBMITTED.value,
            submitted_at=now,
        )
        bid.raise_(
            BidSubmitted(
                bid_id=str(bid.id),
                rfq_id=str(rfq_id),
                supplier_id=str(supplier_id),
                sku_id=str(sku_id),
                unit_price=unit_price,
                quantity=quantity,
                lead_time_days=lead_time_days,
                submitted_at=now,
            )
        )
        return bid

    @property
    def line_value(self) -> float:
        return round(self.unit_price * self.quantity, 2)

    def _assert_can_transition(self, target_status):
        current = BidStatus(self.status)
        if current == BidStatus.AWARDED and target_status == BidStatus.AWARDED:
            raise AlreadyAwardedError({"status": ["Bid is already awarded"]})
        if target_status not in _VALID_TRANSITIONS.get(current, set()):
            raise InvalidStateTransitionError(
                {"status": [f"Cannot transition bid from {current.value} to {target_status.value}"]}
            )

    def award(self):
        self._assert_can_transition(BidStatus.AWARDED)
        now = clock_now()
        self.status = BidStatus.AWARDED.value
        self.decided_at = now
        self.raise_(
            BidAwarded(
                bid_id=str(self.id),
                rfq_id=str(self.rfq_id),
                supplier_id=str(self.supplier_id),
                sku_id=str(self.sku_id),
                unit_price=self.unit_price,
                quantity=self.quantity,
                awarded_at=now,
            )
        )

    def reject(self):
        self._assert_can_transition(BidStatus.REJECTED)
        now = clock_now()
        self.status = BidStatus.REJECTED.value
        self.decided_at = now
        self.raise_(
            BidRejected(
                bid_id=str(self.id),
                rfq_id=str(self.rfq_id),
                supplier_id=str(self.supplier_id),
                sku_id=str(self.sku_id),
                rejected_at=now,
            )
        )
