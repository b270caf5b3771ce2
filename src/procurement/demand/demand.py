"""Demand aggregate — one pharmacy's request for one SKU.

State Machine:
    DRAFT → SUBMITTED → CONSUMED

A demand is submitted exactly once and then either stays pending (submitted,
not yet aggregated) or is consumed by a group order. Consumed demands are
never returned as pending.
"""

from enum import Enum

from protean.fields import DateTime, Float, Identifier, Integer, String, Text

from procurement.clock import now as clock_now
from procurement.demand.events import DemandConsumed, DemandRecorded, DemandSubmitted
from procurement.domain import procurement
from procurement.errors import InvalidStateTransitionError


class DemandStatus(Enum):
    DRAFT = "draft"
    SUBMITTED = "submitted"
    CONSUMED = "consumed"


_VALID_TRANSITIONS = {
    DemandStatus.DRAFT: {DemandStatus.SUBMITTED},
    DemandStatus.SUBMITTED: {DemandStatus.CONSUMED},
    DemandStatus.CONSUMED: set(),  # Terminal
}


@procurement.aggregate
class Demand:
    pharmacy_id = Identifier(required=True)
    sku_id = Identifier(required=True)
    quantity = Integer(required=True, min_value=1)
    max_unit_price = Float(min_value=0.0)
    notes = Text()
    status = String(choices=DemandStatus, default=DemandStatus.DRAFT.value)
    group_order_id = Identifier()
    created_at = DateTime()
    submitted_at = DateTime()
    updated_at = DateTime()

    @classmethod
    def record(cls, pharmacy_id, sku_id, quantity, max_unit_price=None, notes=None):
        now = clock_now()
        demand = cls(
            pharmacy_id=pharmacy_id,
            sku_id=sku_id,
            quantity=quantity,
            max_unit_price=max_unit_price,
            notes=notes,
            status=DemandStatus.DRAFT.value,
            created_at=now,
            updated_at=now,
        )
        demand.raise_(
            DemandRecorded(
                demand_id=str(demand.id),
                pharmacy_id=str(pharmacy_id),
                sku_id=str(sku_id),
                quantity=quantity,
                max_unit_price=max_unit_price,
                recorded_at=now,
            )
        )
        return demand

    def _assert_can_transition(self, target_status):
        current = DemandStatus(self.status)
        if target_status not in _VALID_TRANSITIONS.get(current, set()):
            raise InvalidStateTransitionError(
                {"status": [f"Cannot transition demand from {current.value} to {target_status.value}"]}
            )

    @property
    def is_pending(self) -> bool:
        return self.status == DemandStatus.SUBMITTED.value

    def submit(self):
        self._assert_can_transition(DemandStatus.SUBMITTED)
        now = clock_now()
        self.status = DemandStatus.SUBMITTED.value
        self.submitted_at = now
        self.updated_at = now
        self.raise_(
            DemandSubmitted(
                demand_id=str(self.id),
                pharmacy_id=str(self.pharmacy_id),
                sku_id=str(self.sku_id),
                quantity=self.quantity,
                submitted_at=now,
            )
        )

    def consume(self, group_order_id):
        self._assert_can_transition(DemandStatus.CONSUMED)
        now = clock_now()
        self.status = DemandStatus.CONSUMED.value
        self.group_order_id = group_order_id
        self.updated_at = now
        self.raise_(
            DemandConsumed(
                demand_id=str(self.id),
                pharmacy_id=str(self.pharmacy_id),
                group_order_id=str(group_order_id),
                consumed_at=now,
            )
        )
