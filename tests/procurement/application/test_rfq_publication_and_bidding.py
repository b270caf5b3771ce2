from datetime import timedelta

import pytest

from procurement.errors import DeadlinePassedError, InvalidStateTransitionError, NotFoundError, ValidationError
from procurement.group_order.group_order import GroupOrder, GroupOrderStatus
from procurement.rfq.bidding import bids_for
from procurement.rfq.closing import CloseExpiredBidding
from procurement.rfq.publication import PublishRfq, open_rfqs_for_supplier
from procurement.rfq.ranking import ranked_bids
from procurement.rfq.rfq import Rfq, RfqStatus
from procurement.store import load


@pytest.fixture
def draft_round(register_sku, submitted_demand, aggregate):
    sku_id = register_sku()
    demands = [submitted_demand("pharm-a", sku_id, 100), submitted_demand("pharm-b", sku_id, 50)]
    return {"sku_id": sku_id, "group_order_id": aggregate(demands)}


@pytest.fixture
def open_round(draft_round, register_supplier, publish):
    return {
        **draft_round,
        "supplier_id": register_supplier(),
        "rfq_id": publish(draft_round["group_order_id"]),
    }


class TestPublishRfq:
    def test_publishing_opens_the_group_order(self, draft_round, publish):
        rfq_id = publish(draft_round["group_order_id"], title="PARA500 tender")

        rfq = load(Rfq, rfq_id)
        assert rfq.status == RfqStatus.OPEN.value
        assert rfq.title == "PARA500 tender"
        assert rfq.line_for(draft_round["sku_id"]).total_quantity == 150

        group_order = load(GroupOrder, draft_round["group_order_id"])
        assert group_order.status == GroupOrderStatus.RFQ_OPEN.value
        assert str(group_order.current_rfq_id) == rfq_id

    def test_deadline_must_be_in_the_future(self, draft_round, process, clock):
        with pytest.raises(ValidationError):
            process(PublishRfq(group_order_id=draft_round["group_order_id"], bidding_deadline=clock.now()))

    def test_second_open_rfq_is_rejected(self, open_round, publish):
        with pytest.raises(InvalidStateTransitionError):
            publish(open_round["group_order_id"])

    def test_republish_after_closing_without_award(self, open_round, publish, close):
        close(open_round["rfq_id"])
        assert load(GroupOrder, open_round["group_order_id"]).status == GroupOrderStatus.BIDDING_CLOSED.value

        new_rfq_id = publish(open_round["group_order_id"])

        assert new_rfq_id != open_round["rfq_id"]
        group_order = load(GroupOrder, open_round["group_order_id"])
        assert group_order.status == GroupOrderStatus.RFQ_OPEN.value
        assert str(group_order.current_rfq_id) == new_rfq_id

    def test_unknown_group_order(self, publish):
        with pytest.raises(NotFoundError):
            publish("missing")


class TestSubmitBid:
    def test_bid_is_recorded(self, open_round, bid):
        bid_id = bid(open_round["rfq_id"], open_round["supplier_id"], open_round["sku_id"], 1.00, 150)
        assert [str(b.id) for b in bids_for(open_round["rfq_id"])] == [bid_id]

    def test_bid_after_deadline_is_rejected(self, open_round, bid, clock):
        bid(open_round["rfq_id"], open_round["supplier_id"], open_round["sku_id"], 1.00, 150)
        clock.advance(days=4)

        with pytest.raises(DeadlinePassedError):
            bid(open_round["rfq_id"], open_round["supplier_id"], open_round["sku_id"], 0.90, 150)
        assert len(bids_for(open_round["rfq_id"])) == 1

    def test_bid_on_closed_rfq_is_rejected(self, open_round, bid, close):
        close(open_round["rfq_id"])
        with pytest.raises(InvalidStateTransitionError):
            bid(open_round["rfq_id"], open_round["supplier_id"], open_round["sku_id"], 1.00, 150)

    def test_unknown_supplier(self, open_round, bid):
        with pytest.raises(NotFoundError):
            bid(open_round["rfq_id"], "missing", open_round["sku_id"], 1.00, 150)

    def test_sku_must_be_on_the_rfq(self, open_round, bid, register_sku):
        other_sku = register_sku(code="IBU200", name="Ibuprofen")
        with pytest.raises(ValidationError):
            bid(open_round["rfq_id"], open_round["supplier_id"], other_sku, 1.00, 10)

    @pytest.mark.parametrize(
        "unit_price, quantity, min_quantity",
        [
            (0.0, 150, None),
            (1.00, 151, None),
            (1.00, 100, 151),
            (1.00, 100, 120),
        ],
    )
    def test_offer_limits(self, open_round, bid, unit_price, quantity, min_quantity):
        with pytest.raises(ValidationError):
            bid(
                open_round["rfq_id"],
                open_round["supplier_id"],
                open_round["sku_id"],
                unit_price,
                quantity,
                min_quantity=min_quantity,
            )
        assert bids_for(open_round["rfq_id"]) == []


class TestClosingAndDiscovery:
    def test_sweep_closes_only_expired_rfqs(self, register_sku, submitted_demand, aggregate, publish, process, clock):
        sku_id = register_sku()
        early = publish(aggregate([submitted_demand("pharm-a", sku_id, 10)], title="Early"), days=1)
        late = publish(aggregate([submitted_demand("pharm-b", sku_id, 10)], title="Late"), days=5)

        clock.advance(days=2)
        closed = process(CloseExpiredBidding())

        assert closed == [early]
        assert load(Rfq, early).status == RfqStatus.CLOSED.value
        assert load(Rfq, late).status == RfqStatus.OPEN.value

    def test_sweep_with_explicit_moment(self, open_round, process, clock):
        assert process(CloseExpiredBidding(as_of=clock.now() + timedelta(days=1))) == []
        assert process(CloseExpiredBidding(as_of=clock.now() + timedelta(days=10))) == [open_round["rfq_id"]]

    def test_closing_twice_is_harmless(self, open_round, close):
        close(open_round["rfq_id"])
        close(open_round["rfq_id"])
        assert load(Rfq, open_round["rfq_id"]).status == RfqStatus.CLOSED.value

    def test_open_rfqs_match_supplier_categories(self, open_round, register_supplier, clock):
        niche = register_supplier(name="Niche Pharma", categories=("Antibiotics",))

        assert [str(r.id) for r in open_rfqs_for_supplier(open_round["supplier_id"])] == [open_round["rfq_id"]]
        assert open_rfqs_for_supplier(niche) == []

        clock.advance(days=4)
        assert open_rfqs_for_supplier(open_round["supplier_id"]) == []

    def test_ranking_prefers_price_then_lead_time(self, open_round, register_supplier, bid):
        rfq_id, sku_id = open_round["rfq_id"], open_round["sku_id"]
        rival = register_supplier(name="Rival", rating=5.0)
        slow = bid(rfq_id, open_round["supplier_id"], sku_id, 1.00, 150, lead_time_days=7)
        fast = bid(rfq_id, rival, sku_id, 1.00, 150, lead_time_days=2)
        cheap = bid(rfq_id, rival, sku_id, 0.95, 100, lead_time_days=9)

        assert [str(b.id) for b in ranked_bids(rfq_id, sku_id)] == [cheap, fast, slow]
