"""Escrow aggregate — a pharmacy's payment held against one RFQ.

One escrow exists per (RFQ, pharmacy), for the pharmacy's confirmed order
total. Funding is instantaneous on confirmation, and a funded escrow is
topped up when lines are merged into the confirmed order. Released and
refunded are final: nothing moves an escrow out of either.

State Machine:
    NOT_FUNDED → FUNDED → RELEASED
                 FUNDED → REFUNDED
"""

from enum import Enum

from protean.fields import DateTime, Float, Identifier, String

from procurement.clock import now as clock_now
from procurement.domain import procurement
from procurement.errors import InvalidStateTransitionError, ValidationError
from procurement.escrow.events import EscrowFunded, EscrowOpened, EscrowRefunded, EscrowReleased, EscrowToppedUp


class EscrowStatus(Enum):
    NOT_FUNDED = "not_funded"
    FUNDED = "funded"
    RELEASED = "released"
    REFUNDED = "refunded"


_VALID_TRANSITIONS = {
    EscrowStatus.NOT_FUNDED: {EscrowStatus.FUNDED},
    EscrowStatus.FUNDED: {EscrowStatus.RELEASED, EscrowStatus.REFUNDED},
    EscrowStatus.RELEASED: set(),  # Terminal
    EscrowStatus.REFUNDED: set(),  # Terminal
}

TERMINAL_STATUSES = {EscrowStatus.RELEASED.value, EscrowStatus.REFUNDED.value}


@procurement.aggregate
class Escrow:
    rfq_id = Identifier(required=True)
    group_order_id = Identifier(required=True)
    pharmacy_id = Identifier(required=True)
    pharmacy_order_id = Identifier(required=True)
    amount = Float(required=True, min_value=0.0)
    currency = String(max_length=3, default="USD")
    status = String(choices=EscrowStatus, default=EscrowStatus.NOT_FUNDED.value)
    reason = String(max_length=500)
    created_at = DateTime()
    funded_at = DateTime()
    released_at = DateTime()
    refunded_at = DateTime()

    @classmethod
    def open(cls, pharmacy_order, currency="USD"):
        now = clock_now()
        escrow = cls(
            rfq_id=pharmacy_order.rfq_id,
            group_order_id=pharmacy_order.group_order_id,
            pharmacy_id=pharmacy_order.pharmacy_id,
            pharmacy_order_id=pharmacy_order.id,
            amount=pharmacy_order.total_value,
            currency=currency,
            status=EscrowStatus.NOT_FUNDED.value,
            created_at=now,
        )
        escrow.raise_(
            EscrowOpened(
                escrow_id=str(escrow.id),
                rfq_id=str(escrow.rfq_id),
                pharmacy_id=str(escrow.pharmacy_id),
                pharmacy_order_id=str(pharmacy_order.id),
                amount=escrow.amount,
                currency=currency,
                opened_at=now,
            )
        )
        return escrow

    @property
    def is_terminal(self) -> bool:
        return self.status in TERMINAL_STATUSES

    def _assert_can_transition(self, target_status):
        current = EscrowStatus(self.status)
        if target_status not in _VALID_TRANSITIONS.get(current, set()):
            raise InvalidStateTransitionError(
                {"status": [f"Cannot transition escrow from {current.value} to {target_status.value}"]}
            )

    def fund(self):
        self._assert_can_transition(EscrowStatus.FUNDED)
        now = clock_now()
        self.status = EscrowStatus.FUNDED.value
        self.funded_at = now
        self.raise_(
            EscrowFunded(
                escrow_id=str(self.id),
                rfq_id=str(self.rfq_id),
                pharmacy_id=str(self.pharmacy_id),
                amount=self.amount,
                funded_at=now,
            )
        )

    def top_up(self, added_amount):
        if self.status != EscrowStatus.FUNDED.value:
            raise InvalidStateTransitionError({"status": [f"Cannot top up a {self.status} escrow"]})
        if added_amount <= 0:
            raise ValidationError({"amount": ["Top-up amount must be positive"]})

        now = clock_now()
        self.amount = round(self.amount + added_amount, 2)
        self.raise_(
            EscrowToppedUp(
                escrow_id=str(self.id),
                rfq_id=str(self.rfq_id),
                pharmacy_id=str(self.pharmacy_id),
                added_amount=added_amount,
                amount=self.amount,
                topped_up_at=now,
            )
        )

    def release(self, reason):
        self._assert_can_transition(EscrowStatus.RELEASED)
        now = clock_now()
        self.status = EscrowStatus.RELEASED.value
        self.reason = reason
        self.released_at = now
        self.raise_(
            EscrowReleased(
                escrow_id=str(self.id),
                rfq_id=str(self.rfq_id),
                pharmacy_id=str(self.pharmacy_id),
                amount=self.amount,
                reason=reason,
                released_at=now,
            )
        )

    def refund(self, reason):
        self._assert_can_transition(EscrowStatus.REFUNDED)
        now = clock_now()
        self.status = EscrowStatus.REFUNDED.value
        self.reason = reason
        self.refunded_at = now
        self.raise_(
            EscrowRefunded(
                escrow_id=str(self.id),
                rfq_id=str(self.rfq_id),
                pharmacy_id=str(self.pharmacy_id),
                amount=self.amount,
                reason=reason,
                refunded_at=now,
            )
        )
