"""Bid ranking — advisory ordering shown to the operator before an award.

Only submitted bids are ranked: lowest unit price first, then shortest lead
time, then the higher-rated supplier. Award remains an explicit choice since
minimum quantities and partial fulfilment need judgement.
"""

from procurement.rfq.bid import Bid, BidStatus
from procurement.store import find_all
from procurement.supplier.registration import supplier_ratings


def rank_bids(bids, ratings: dict | None = None) -> list:
    ratings = ratings or {}
    live = [bid for bid in bids if bid.status == BidStatus.SUBMITTED.value]
    return sorted(
        live,
        key=lambda bid: (
            bid.unit_price,
            bid.lead_time_days,
            -ratings.get(str(bid.supplier_id), 0.0),
        ),
    )


def ranked_bids(rfq_id, sku_id=None) -> list:
    filters = {"rfq_id": str(rfq_id)}
    if sku_id:
        filters["sku_id"] = str(sku_id)
    return rank_bids(find_all(Bid, **filters), supplier_ratings())
