"""Bid submission — suppliers offer a price and quantity for one RFQ line."""

from protean import handle
from protean.fields import Float, Identifier, Integer, Text
from protean.utils.globals import current_domain

from procurement.domain import logger, procurement
from procurement.errors import DeadlinePassedError, InvalidStateTransitionError, ValidationError
from procurement.rfq.bid import Bid
from procurement.rfq.rfq import Rfq
from procurement.store import find_all, load
from procurement.supplier.supplier import Supplier


@procurement.command(part_of="Bid")
class SubmitBid:
    rfq_id = Identifier(required=True)
    supplier_id = Identifier(required=True)
    sku_id = Identifier(required=True)
    unit_price = Float(required=True)
    quantity = Integer(required=True, min_value=1)
    lead_time_days = Integer(required=True, min_value=0)
    min_quantity = Integer(min_value=1)
    notes = Text()


@procurement.command_handler(part_of=Bid)
class BiddingHandler:
    @handle(SubmitBid)
    def submit_bid(self, command):
        rfq = load(Rfq, command.rfq_id)
        if not rfq.is_open:
            raise InvalidStateTransitionError({"status": [f"RFQ is {rfq.status}, bids are no longer accepted"]})
        if rfq.deadline_passed():
            raise DeadlinePassedError({"bidding_deadline": [f"Bidding closed at {rfq.bidding_deadline.isoformat()}"]})

        load(Supplier, command.supplier_id)

        line = rfq.line_for(command.sku_id)
        if line is None:
            raise ValidationError({"sku_id": [f"RFQ has no line for SKU {command.sku_id}"]})
        if command.unit_price <= 0:
            raise ValidationError({"unit_price": ["Unit price must be greater than zero"]})
        if command.quantity > line.total_quantity:
            raise ValidationError(
                {"quantity": [f"Quantity {command.quantity} exceeds the line total of {line.total_quantity}"]}
            )
        if command.min_quantity is not None:
            if command.min_quantity > line.total_quantity:
                raise ValidationError(
                    {"min_quantity": [f"Minimum quantity exceeds the line total of {line.total_quantity}"]}
                )
            if command.min_quantity > command.quantity:
                raise ValidationError({"min_quantity": ["Minimum quantity cannot exceed the offered quantity"]})

        bid = Bid.submit(
            rfq_id=command.rfq_id,
            supplier_id=command.supplier_id,
            sku_id=command.sku_id,
            unit_price=command.unit_price,
            quantity=command.quantity,
            lead_time_days=command.lead_time_days,
            min_quantity=command.min_quantity,
            notes=command.notes,
        )
        current_domain.repository_for(Bid).add(bid)

        logger.info(
            "Bid submitted",
            bid_id=str(bid.id),
            rfq_id=str(command.rfq_id),
            supplier_id=str(command.supplier_id),
            unit_price=command.unit_price,
        )
        return str(bid.id)


def bids_for(rfq_id, sku_id=None) -> list[Bid]:
    filters = {"rfq_id": str(rfq_id)}
    if sku_id:
        filters["sku_id"] = str(sku_id)
    return sorted(find_all(Bid, **filters), key=lambda b: b.submitted_at)
