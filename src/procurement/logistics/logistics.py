"""LogisticsEntry aggregate — one shipment leg per (RFQ, supplier, pharmacy).

Status only moves forward along PENDING < PICKED_UP < IN_TRANSIT < DELIVERED.
Skipping ahead is allowed; moving back is not. Re-entering the current
status is a no-op, and each stage's timestamp is written on first entry only.
"""

from enum import Enum

from protean.fields import DateTime, Identifier, String, Text

from procurement.clock import now as clock_now
from procurement.domain import procurement
from procurement.errors import InvalidStateTransitionError
from procurement.logistics.events import LogisticsAdvanced, LogisticsAssigned


class LogisticsStatus(Enum):
    PENDING = "pending"
    PICKED_UP = "picked_up"
    IN_TRANSIT = "in_transit"
    DELIVERED = "delivered"


_ORDER = [
    LogisticsStatus.PENDING,
    LogisticsStatus.PICKED_UP,
    LogisticsStatus.IN_TRANSIT,
    LogisticsStatus.DELIVERED,
]

_TIMESTAMP_FIELDS = {
    LogisticsStatus.PICKED_UP: "picked_up_at",
    LogisticsStatus.IN_TRANSIT: "in_transit_at",
    LogisticsStatus.DELIVERED: "delivered_at",
}


def rank(status) -> int:
    return _ORDER.index(LogisticsStatus(status))


@procurement.aggregate
class LogisticsEntry:
    rfq_id = Identifier(required=True)
    supplier_id = Identifier(required=True)
    pharmacy_id = Identifier(required=True)
    tracking_number = String(max_length=255)
    status = String(choices=LogisticsStatus, default=LogisticsStatus.PENDING.value)
    estimated_delivery = DateTime()
    notes = Text()
    picked_up_at = DateTime()
    in_transit_at = DateTime()
    delivered_at = DateTime()
    created_at = DateTime()
    updated_at = DateTime()

    @classmethod
    def assign(cls, rfq_id, supplier_id, pharmacy_id, tracking_number=None, estimated_delivery=None, notes=None):
        now = clock_now()
        entry = cls(
            rfq_id=rfq_id,
            supplier_id=supplier_id,
            pharmacy_id=pharmacy_id,
            tracking_number=tracking_number,
            estimated_delivery=estimated_delivery,
            notes=notes,
            status=LogisticsStatus.PENDING.value,
            created_at=now,
            updated_at=now,
        )
        entry.raise_(
            LogisticsAssigned(
                logistics_entry_id=str(entry.id),
                rfq_id=str(rfq_id),
                supplier_id=str(supplier_id),
                pharmacy_id=str(pharmacy_id),
                tracking_number=tracking_number,
                assigned_at=now,
            )
        )
        return entry

    @property
    def is_delivered(self) -> bool:
        return self.status == LogisticsStatus.DELIVERED.value

    def update_details(self, tracking_number=None, estimated_delivery=None, notes=None):
        if tracking_number:
            self.tracking_number = tracking_number
        if estimated_delivery:
            self.estimated_delivery = estimated_delivery
        if notes:
            self.notes = notes

    def advance_to(self, target_status, tracking_number=None, notes=None) -> bool:
        """Move forward to ``target_status``. Returns False when already there."""
        target = LogisticsStatus(target_status)
        current = LogisticsStatus(self.status)
        if rank(target) < rank(current):
            raise InvalidStateTransitionError(
                {"status": [f"Cannot move shipment back from {current.value} to {target.value}"]}
            )

        self.update_details(tracking_number=tracking_number, notes=notes)
        if target == current:
            return False

        now = clock_now()
        self.status = target.value
        timestamp_field = _TIMESTAMP_FIELDS[target]
        if getattr(self, timestamp_field) is None:
            setattr(self, timestamp_field, now)
        self.updated_at = now

        self.raise_(
            LogisticsAdvanced(
                logistics_entry_id=str(self.id),
                rfq_id=str(self.rfq_id),
                supplier_id=str(self.supplier_id),
                pharmacy_id=str(self.pharmacy_id),
                from_status=current.value,
                to_status=target.value,
                tracking_number=self.tracking_number,
                advanced_at=now,
            )
        )
        return True
