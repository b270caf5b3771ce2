"""Rfq aggregate — the published, biddable projection of a group order.

Lines are a snapshot taken at publication: quantities and demand breakdowns
are copied from the group order, so a published RFQ never changes when its
group order does.

State Machine:
    OPEN → CLOSED → AWARDED
"""

from enum import Enum

from protean.fields import DateTime, Float, HasMany, Identifier, Integer, String, Text

from procurement.clock import as_utc
from procurement.clock import now as clock_now
from procurement.domain import procurement
from procurement.errors import InvalidStateTransitionError, ValidationError
from procurement.rfq.events import BiddingClosed, RfqAwarded, RfqPublished


class RfqStatus(Enum):
    OPEN = "open"
    CLOSED = "closed"
    AWARDED = "awarded"


_VALID_TRANSITIONS = {
    RfqStatus.OPEN: {RfqStatus.CLOSED},
    RfqStatus.CLOSED: {RfqStatus.AWARDED},
    RfqStatus.AWARDED: set(),  # Terminal; further lines may still be awarded
}


@procurement.entity(part_of="Rfq")
class RfqLine:
    sku_id = Identifier(required=True)
    total_quantity = Integer(required=True, min_value=1)
    demand_breakdown = Text(required=True)  # JSON copy of the group order line's breakdown


@procurement.aggregate
class Rfq:
    group_order_id = Identifier(required=True)
    title = String(required=True, max_length=255)
    description = Text()
    terms = Text()
    delivery_requirement = String(max_length=500)
    estimated_value = Float()
    status = String(choices=RfqStatus, default=RfqStatus.OPEN.value)
    lines = HasMany(RfqLine)
    bidding_deadline = DateTime(required=True)
    published_at = DateTime()
    closed_at = DateTime()
    awarded_at = DateTime()

    @classmethod
    def publish(
        cls,
        group_order,
        bidding_deadline,
        title=None,
        description=None,
        terms=None,
        delivery_requirement=None,
        estimated_value=None,
    ):
        now = clock_now()
        if bidding_deadline is None or as_utc(bidding_deadline) <= as_utc(now):
            raise ValidationError({"bidding_deadline": ["Bidding deadline must be in the future"]})

        rfq = cls(
            group_order_id=group_order.id,
            title=title or group_order.title,
            description=description if description is not None else group_order.description,
            terms=terms,
            delivery_requirement=delivery_requirement,
            estimated_value=estimated_value,
            status=RfqStatus.OPEN.value,
            bidding_deadline=bidding_deadline,
            published_at=now,
        )
        for line in group_order.lines:
            rfq.add_lines(
                RfqLine(
                    sku_id=line.sku_id,
                    total_quantity=line.total_quantity,
                    demand_breakdown=line.demand_breakdown,
                )
            )

        rfq.raise_(
            RfqPublished(
                rfq_id=str(rfq.id),
                group_order_id=str(group_order.id),
                title=rfq.title,
                line_count=len(rfq.lines),
                bidding_deadline=bidding_deadline,
                published_at=now,
            )
        )
        return rfq

    def line_for(self, sku_id):
        return next((line for line in self.lines or [] if str(line.sku_id) == str(sku_id)), None)

    @property
    def is_open(self) -> bool:
        return self.status == RfqStatus.OPEN.value

    @property
    def is_active(self) -> bool:
        """Open or awarded RFQs block publishing another RFQ for the same group order."""
        return self.status in (RfqStatus.OPEN.value, RfqStatus.AWARDED.value)

    def deadline_passed(self, moment=None) -> bool:
        return as_utc(moment or clock_now()) >= as_utc(self.bidding_deadline)

    def _assert_can_transition(self, target_status):
        current = RfqStatus(self.status)
        if target_status not in _VALID_TRANSITIONS.get(current, set()):
            raise InvalidStateTransitionError(
                {"status": [f"Cannot transition RFQ from {current.value} to {target_status.value}"]}
            )

    def close(self):
        self._assert_can_transition(RfqStatus.CLOSED)
        now = clock_now()
        self.status = RfqStatus.CLOSED.value
        self.closed_at = now
        self.raise_(
            BiddingClosed(
                rfq_id=str(self.id),
                group_order_id=str(self.group_order_id),
                title=self.title,
                closed_at=now,
            )
        )

    def record_award(self, bid):
        """Mark the RFQ awarded. Awards are only made once bidding has closed."""
        if self.is_open:
            raise InvalidStateTransitionError({"status": ["Bids cannot be awarded while the RFQ is open"]})
        if self.status == RfqStatus.CLOSED.value:
            self._assert_can_transition(RfqStatus.AWARDED)
            self.status = RfqStatus.AWARDED.value

        now = clock_now()
        self.awarded_at = now
        self.raise_(
            RfqAwarded(
                rfq_id=str(self.id),
                group_order_id=str(self.group_order_id),
                sku_id=str(bid.sku_id),
                bid_id=str(bid.id),
                supplier_id=str(bid.supplier_id),
                awarded_at=now,
            )
        )
