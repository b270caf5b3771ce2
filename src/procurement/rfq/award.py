"""Award — the operator picks the winning bid for one RFQ line.

Awarding is one unit of work: the bid is awarded, its competitors on the
same line are rejected, the group order line records the winner, and the
fan-out runs over every line awarded so far so pharmacies whose lines are
decided can confirm without waiting for the rest. A line can still be
awarded after the confirmed pharmacies scheduled the round; a pharmacy new
to the round then reopens it for confirmations.
"""

from protean import handle
from protean.fields import Identifier
from protean.utils.globals import current_domain

from procurement import lifecycle
from procurement.domain import logger, procurement
from procurement.errors import AlreadyAwardedError, InvalidStateTransitionError
from procurement.fanout.generation import upsert_pharmacy_orders, upsert_supplier_orders
from procurement.group_order.group_order import GroupOrder, GroupOrderStatus
from procurement.rfq.bid import Bid, BidStatus
from procurement.rfq.rfq import Rfq
from procurement.store import find_all, load

_AWARDABLE_GROUP_ORDER_STATUSES = {
    GroupOrderStatus.BIDDING_CLOSED.value,
    GroupOrderStatus.AWAITING_CONFIRMATIONS.value,
    GroupOrderStatus.SCHEDULED.value,
}


@procurement.command(part_of="Bid")
class AwardBid:
    bid_id = Identifier(required=True)


@procurement.command_handler(part_of=Bid)
class AwardHandler:
    @handle(AwardBid)
    def award_bid(self, command):
        bid = load(Bid, command.bid_id)
        rfq = load(Rfq, bid.rfq_id)
        group_order = load(GroupOrder, rfq.group_order_id)

        bid.award()
        rfq.record_award(bid)

        if group_order.status not in _AWARDABLE_GROUP_ORDER_STATUSES:
            raise InvalidStateTransitionError(
                {"status": [f"Group order is {group_order.status}, no further awards can be made"]}
            )
        line = group_order.line_for(bid.sku_id)
        if line is not None and line.is_awarded:
            raise AlreadyAwardedError({"sku_id": [f"Line for SKU {bid.sku_id} already has an award"]})
        line = group_order.record_award(
            sku_id=bid.sku_id,
            bid_id=bid.id,
            supplier_id=bid.supplier_id,
            unit_price=bid.unit_price,
            quantity=bid.quantity,
        )

        bid_repo = current_domain.repository_for(Bid)
        for sibling in find_all(Bid, rfq_id=str(rfq.id), sku_id=str(bid.sku_id)):
            if str(sibling.id) != str(bid.id) and sibling.status == BidStatus.SUBMITTED.value:
                sibling.reject()
                bid_repo.add(sibling)
        bid_repo.add(bid)

        pharmacy_orders = upsert_pharmacy_orders(rfq.id, group_order)
        upsert_supplier_orders(rfq.id, group_order)
        lifecycle.after_fanout(group_order, pharmacy_orders)

        current_domain.repository_for(Rfq).add(rfq)
        current_domain.repository_for(GroupOrder).add(group_order)

        logger.info(
            "Bid awarded",
            bid_id=str(bid.id),
            rfq_id=str(rfq.id),
            sku_id=str(bid.sku_id),
            supplier_id=str(bid.supplier_id),
            awarded_quantity=line.awarded_quantity,
            awarded_price=line.awarded_price,
        )
        return str(bid.id)
