"""Domain events for the Rfq and Bid aggregates."""

from protean.fields import DateTime, Float, Identifier, Integer, String

from procurement.domain import procurement


@procurement.event(part_of="Rfq")
class RfqPublished:
    """A group order was put out to bid."""

    __version__ = 1

    rfq_id = Identifier(required=True)
    group_order_id = Identifier(required=True)
    title = String(required=True)
    line_count = Integer(required=True)
    bidding_deadline = DateTime(required=True)
    published_at = DateTime(required=True)


@procurement.event(part_of="Rfq")
class BiddingClosed:
    __version__ = 1

    rfq_id = Identifier(required=True)
    group_order_id = Identifier(required=True)
    title = String()
    closed_at = DateTime(required=True)


@procurement.event(part_of="Rfq")
class RfqAwarded:
    """A line of the RFQ received its winning bid."""

    __version__ = 1

    rfq_id = Identifier(required=True)
    group_order_id = Identifier(required=True)
    sku_id = Identifier(required=True)
    bid_id = Identifier(required=True)
    supplier_id = Identifier(required=True)
    awarded_at = DateTime(required=True)


@procurement.event(part_of="Bid")
class BidSubmitted:
    __version__ = 1

    bid_id = Identifier(required=True)
    rfq_id = Identifier(required=True)
    supplier_id = Identifier(required=True)
    sku_id = Identifier(required=True)
    unit_price = Float(required=True)
    quantity = Integer(required=True)
    lead_time_days = Integer(required=True)
    submitted_at = DateTime(required=True)


@procurement.event(part_of="Bid")
class BidAwarded:
    __version__ = 1

    bid_id = Identifier(required=True)
    rfq_id = Identifier(required=True)
    supplier_id = Identifier(required=True)
    sku_id = Identifier(required=True)
    unit_price = Float(required=True)
    quantity = Integer(required=True)
    awarded_at = DateTime(required=True)


@procurement.event(part_of="Bid")
class BidRejected:
    __version__ = 1

    bid_id = Identifier(required=True)
    rfq_id = Identifier(required=True)
    supplier_id = Identifier(required=True)
    sku_id = Identifier(required=True)
    rejected_at = DateTime(required=True)
