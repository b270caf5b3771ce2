from datetime import timedelta

import pytest

from procurement.errors import AlreadyAwardedError, InvalidStateTransitionError
from procurement.escrow.escrow import Escrow
from procurement.fanout.generation import GeneratePharmacyOrders, GenerateSupplierOrders
from procurement.group_order.group_order import GroupOrder, GroupOrderStatus
from procurement.order.confirmation import ConfirmPharmacyOrder
from procurement.order.fulfillment import AdvanceSupplierOrder
from procurement.order.pharmacy_order import LineStatus, PharmacyOrder, PharmacyOrderStatus
from procurement.order.supplier_order import SupplierOrder
from procurement.rfq.bid import Bid, BidStatus
from procurement.rfq.rfq import Rfq, RfqStatus
from procurement.store import find_all, find_first, load


def _pharmacy_order(rfq_id, pharmacy_id):
    return find_first(PharmacyOrder, rfq_id=str(rfq_id), pharmacy_id=pharmacy_id)


@pytest.fixture
def confirm_all(process):
    def _confirm_all(rfq_id, pharmacy_ids=None):
        for order in find_all(PharmacyOrder, rfq_id=rfq_id):
            if order.is_pending and (pharmacy_ids is None or str(order.pharmacy_id) in pharmacy_ids):
                process(
                    ConfirmPharmacyOrder(
                        pharmacy_order_id=str(order.id), payment_terms=30, delivery_address="1 High St"
                    )
                )

    return _confirm_all


class TestAwardSingleLine:
    def test_award_fans_out_to_pharmacies_and_supplier(self, para500_round, award):
        award(para500_round["bid_id"])
        rfq_id = para500_round["rfq_id"]

        order_a = _pharmacy_order(rfq_id, "pharm-a")
        order_b = _pharmacy_order(rfq_id, "pharm-b")
        assert (order_a.lines[0].quantity, order_a.total_value) == (100, 100.0)
        assert (order_b.lines[0].quantity, order_b.total_value) == (50, 50.0)
        assert order_a.status == PharmacyOrderStatus.PENDING.value

        supplier_orders = find_all(SupplierOrder, rfq_id=rfq_id)
        assert len(supplier_orders) == 1
        assert str(supplier_orders[0].supplier_id) == para500_round["supplier_id"]
        assert supplier_orders[0].total_value == 150.0

    def test_award_moves_records_along(self, para500_round, award):
        award(para500_round["bid_id"])

        assert load(Bid, para500_round["bid_id"]).status == BidStatus.AWARDED.value
        assert load(Rfq, para500_round["rfq_id"]).status == RfqStatus.AWARDED.value

        group_order = load(GroupOrder, para500_round["group_order_id"])
        assert group_order.status == GroupOrderStatus.AWAITING_CONFIRMATIONS.value
        assert group_order.total_value == 150.0

    def test_pharmacy_totals_add_up_to_the_awarded_value(self, para500_round, award):
        award(para500_round["bid_id"])
        group_order = load(GroupOrder, para500_round["group_order_id"])

        orders = find_all(PharmacyOrder, rfq_id=para500_round["rfq_id"])
        assert round(sum(order.total_value for order in orders), 2) == group_order.total_value

    def test_awarding_twice_is_rejected(self, para500_round, award):
        award(para500_round["bid_id"])
        with pytest.raises(AlreadyAwardedError):
            award(para500_round["bid_id"])

    def test_award_on_open_rfq_is_rejected(
        self, register_sku, register_supplier, submitted_demand, aggregate, publish, bid, award
    ):
        sku_id = register_sku()
        rfq_id = publish(aggregate([submitted_demand("pharm-a", sku_id, 10)]))
        bid_id = bid(rfq_id, register_supplier(), sku_id, 1.00, 10)

        with pytest.raises(InvalidStateTransitionError):
            award(bid_id)
        assert load(Bid, bid_id).status == BidStatus.SUBMITTED.value


class TestCompetitionAndPartialAwards:
    @pytest.fixture
    def contested_round(self, register_sku, register_supplier, submitted_demand, aggregate, publish, bid, close):
        sku_id = register_sku()
        x, y = register_supplier(name="Supplier X"), register_supplier(name="Supplier Y")
        group_order_id = aggregate([submitted_demand("pharm-a", sku_id, 100), submitted_demand("pharm-b", sku_id, 50)])
        rfq_id = publish(group_order_id)
        partial = bid(rfq_id, x, sku_id, 0.90, 120)
        full = bid(rfq_id, y, sku_id, 1.00, 150)
        close(rfq_id)
        return {"rfq_id": rfq_id, "group_order_id": group_order_id, "partial": partial, "full": full}

    def test_losing_bid_is_rejected(self, contested_round, award):
        award(contested_round["partial"])

        assert load(Bid, contested_round["partial"]).status == BidStatus.AWARDED.value
        assert load(Bid, contested_round["full"]).status == BidStatus.REJECTED.value

    def test_rejected_bid_cannot_be_awarded(self, contested_round, award):
        award(contested_round["partial"])
        with pytest.raises(InvalidStateTransitionError):
            award(contested_round["full"])

    def test_partial_award_is_allocated_in_demand_order(self, contested_round, award):
        award(contested_round["partial"])
        rfq_id = contested_round["rfq_id"]

        assert _pharmacy_order(rfq_id, "pharm-a").lines[0].quantity == 100
        assert _pharmacy_order(rfq_id, "pharm-b").lines[0].quantity == 20
        assert load(GroupOrder, contested_round["group_order_id"]).total_value == 108.0


class TestMultiLineAwards:
    @pytest.fixture
    def two_line_round(self, register_sku, register_supplier, submitted_demand, aggregate, publish, bid, close):
        para = register_sku(code="PARA500")
        ibu = register_sku(code="IBU200", name="Ibuprofen")
        x, y = register_supplier(name="Supplier X"), register_supplier(name="Supplier Y")
        group_order_id = aggregate(
            [
                submitted_demand("pharm-a", para, 100),
                submitted_demand("pharm-b", para, 50),
                submitted_demand("pharm-a", ibu, 40),
            ]
        )
        rfq_id = publish(group_order_id)
        para_bid = bid(rfq_id, x, para, 1.00, 150)
        ibu_bid = bid(rfq_id, y, ibu, 2.50, 40)
        close(rfq_id)
        return {"rfq_id": rfq_id, "group_order_id": group_order_id, "para_bid": para_bid, "ibu_bid": ibu_bid}

    def test_second_award_merges_into_existing_orders(self, two_line_round, award):
        rfq_id = two_line_round["rfq_id"]
        award(two_line_round["para_bid"])
        first_id = str(_pharmacy_order(rfq_id, "pharm-a").id)

        award(two_line_round["ibu_bid"])

        order_a = _pharmacy_order(rfq_id, "pharm-a")
        assert str(order_a.id) == first_id
        assert len(order_a.lines) == 2
        assert order_a.total_value == 200.0
        assert len(find_all(PharmacyOrder, rfq_id=rfq_id)) == 2
        assert len(find_all(SupplierOrder, rfq_id=rfq_id)) == 2
        assert load(GroupOrder, two_line_round["group_order_id"]).total_value == 250.0

    def test_regeneration_is_idempotent(self, two_line_round, award, process):
        rfq_id = two_line_round["rfq_id"]
        award(two_line_round["para_bid"])
        award(two_line_round["ibu_bid"])
        before = {str(o.id): o.total_value for o in find_all(PharmacyOrder, rfq_id=rfq_id)}

        pharmacy_ids = process(GeneratePharmacyOrders(rfq_id=rfq_id))
        supplier_ids = process(GenerateSupplierOrders(rfq_id=rfq_id))

        assert sorted(pharmacy_ids) == sorted(before)
        assert len(supplier_ids) == 2
        after = {str(o.id): o.total_value for o in find_all(PharmacyOrder, rfq_id=rfq_id)}
        assert after == before

    def test_award_after_confirmation_extends_the_order_and_its_escrow(self, two_line_round, award, confirm_all):
        rfq_id = two_line_round["rfq_id"]
        award(two_line_round["para_bid"])
        confirm_all(rfq_id)
        assert find_first(Escrow, rfq_id=rfq_id, pharmacy_id="pharm-a").amount == 100.0

        award(two_line_round["ibu_bid"])

        order_a = _pharmacy_order(rfq_id, "pharm-a")
        assert order_a.status == PharmacyOrderStatus.CONFIRMED.value
        assert len(order_a.lines) == 2
        assert {line.status for line in order_a.lines} == {LineStatus.CONFIRMED.value}
        assert order_a.total_value == 200.0
        assert find_first(Escrow, rfq_id=rfq_id, pharmacy_id="pharm-a").amount == 200.0
        assert find_first(Escrow, rfq_id=rfq_id, pharmacy_id="pharm-b").amount == 50.0
        assert load(GroupOrder, two_line_round["group_order_id"]).status == GroupOrderStatus.SCHEDULED.value


class TestLinesAwardedAfterScheduling:
    @pytest.fixture
    def split_round(self, register_sku, register_supplier, submitted_demand, aggregate, publish, bid, close):
        """Pharmacy A wants PARA500 only, pharmacy B wants IBU200 only, one bid per line."""
        para = register_sku(code="PARA500")
        ibu = register_sku(code="IBU200", name="Ibuprofen")
        x, y = register_supplier(name="Supplier X"), register_supplier(name="Supplier Y")
        group_order_id = aggregate([submitted_demand("pharm-a", para, 100), submitted_demand("pharm-b", ibu, 40)])
        rfq_id = publish(group_order_id)
        para_bid = bid(rfq_id, x, para, 1.00, 100)
        ibu_bid = bid(rfq_id, y, ibu, 2.50, 40)
        close(rfq_id)
        return {
            "rfq_id": rfq_id,
            "group_order_id": group_order_id,
            "para_bid": para_bid,
            "ibu_bid": ibu_bid,
            "supplier_y": y,
        }

    def test_first_confirmation_schedules_the_round(self, split_round, award, confirm_all):
        award(split_round["para_bid"])
        confirm_all(split_round["rfq_id"])

        assert load(GroupOrder, split_round["group_order_id"]).status == GroupOrderStatus.SCHEDULED.value

    def test_later_award_reaches_the_remaining_pharmacy(self, split_round, award, confirm_all):
        rfq_id = split_round["rfq_id"]
        award(split_round["para_bid"])
        confirm_all(rfq_id)

        award(split_round["ibu_bid"])

        order_b = _pharmacy_order(rfq_id, "pharm-b")
        assert order_b is not None
        assert order_b.status == PharmacyOrderStatus.PENDING.value
        assert order_b.total_value == 100.0
        supplier_ids = sorted(str(order.supplier_id) for order in find_all(SupplierOrder, rfq_id=rfq_id))
        assert split_round["supplier_y"] in supplier_ids
        assert len(supplier_ids) == 2

    def test_new_pharmacy_reopens_confirmations(self, split_round, award, confirm_all):
        rfq_id = split_round["rfq_id"]
        award(split_round["para_bid"])
        confirm_all(rfq_id)
        award(split_round["ibu_bid"])

        group_order = load(GroupOrder, split_round["group_order_id"])
        assert group_order.status == GroupOrderStatus.AWAITING_CONFIRMATIONS.value
        assert group_order.total_value == 200.0

        confirm_all(rfq_id, pharmacy_ids={"pharm-b"})
        assert load(GroupOrder, split_round["group_order_id"]).status == GroupOrderStatus.SCHEDULED.value
        assert len(find_all(Escrow, rfq_id=rfq_id)) == 2

    def test_no_award_once_delivery_started(self, split_round, award, confirm_all, process, clock):
        rfq_id = split_round["rfq_id"]
        award(split_round["para_bid"])
        confirm_all(rfq_id)
        supplier_order_id = str(find_first(SupplierOrder, rfq_id=rfq_id).id)
        process(AdvanceSupplierOrder(supplier_order_id=supplier_order_id, status="in_fulfillment"))
        process(
            AdvanceSupplierOrder(
                supplier_order_id=supplier_order_id,
                status="shipped",
                tracking_number="TRK-1",
                expected_delivery=clock.now() + timedelta(days=2),
            )
        )

        with pytest.raises(InvalidStateTransitionError):
            award(split_round["ibu_bid"])
        assert _pharmacy_order(rfq_id, "pharm-b") is None
