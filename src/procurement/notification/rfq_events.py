"""Notices for RFQ publication, bidding and awards."""

from protean.utils.mixins import handle

from procurement.domain import procurement
from procurement.notification import get_sink
from procurement.notification.port import Audience
from procurement.rfq.bid import Bid
from procurement.rfq.events import BidAwarded, BidRejected, BidSubmitted, BiddingClosed, RfqPublished
from procurement.rfq.rfq import Rfq


@procurement.event_handler(part_of=Rfq)
class RfqNotifications:
    @handle(RfqPublished)
    def on_rfq_published(self, event: RfqPublished) -> None:
        get_sink().notify(
            Audience.SUPPLIER.value,
            f"New RFQ '{event.title}' open for bids until {event.bidding_deadline.isoformat()}",
        )

    @handle(BiddingClosed)
    def on_bidding_closed(self, event: BiddingClosed) -> None:
        get_sink().notify(Audience.ADMIN.value, f"Bidding closed on RFQ '{event.title}', ready for award")


@procurement.event_handler(part_of=Bid)
class BidNotifications:
    @handle(BidSubmitted)
    def on_bid_submitted(self, event: BidSubmitted) -> None:
        get_sink().notify(
            Audience.ADMIN.value,
            f"Bid received: {event.quantity} units at {event.unit_price:.2f} with {event.lead_time_days} day lead time",
        )

    @handle(BidAwarded)
    def on_bid_awarded(self, event: BidAwarded) -> None:
        get_sink().notify(
            Audience.SUPPLIER.value,
            f"Your bid at {event.unit_price:.2f} per unit was awarded",
            recipient_id=str(event.supplier_id),
        )

    @handle(BidRejected)
    def on_bid_rejected(self, event: BidRejected) -> None:
        get_sink().notify(
            Audience.SUPPLIER.value,
            "Your bid was not selected",
            recipient_id=str(event.supplier_id),
        )
