"""Tests for the Rfq and Bid aggregates."""

import json
from datetime import timedelta

import pytest

from procurement.errors import AlreadyAwardedError, InvalidStateTransitionError, ValidationError
from procurement.group_order.group_order import GroupOrder
from procurement.rfq.bid import Bid, BidStatus
from procurement.rfq.rfq import Rfq, RfqStatus


def _group_order():
    return GroupOrder.create(
        title="January round",
        description="Analgesics for Q1",
        lines_data=[
            {
                "sku_id": "sku-para",
                "breakdown": [
                    {"demand_id": "d-1", "pharmacy_id": "pharm-a", "quantity": 100},
                    {"demand_id": "d-2", "pharmacy_id": "pharm-b", "quantity": 50},
                ],
            }
        ],
    )


def _bid(**overrides):
    values = {
        "rfq_id": "rfq-1",
        "supplier_id": "sup-x",
        "sku_id": "sku-para",
        "unit_price": 1.0,
        "quantity": 150,
        "lead_time_days": 3,
    }
    values.update(overrides)
    return Bid.submit(**values)


class TestRfqPublication:
    def test_lines_are_copied_from_group_order(self, clock):
        group_order = _group_order()
        rfq = Rfq.publish(group_order, bidding_deadline=clock.now() + timedelta(days=2))

        line = rfq.line_for("sku-para")
        assert line.total_quantity == 150
        assert json.loads(line.demand_breakdown) == group_order.line_for("sku-para").breakdown

    def test_snapshot_is_independent_of_later_group_order_changes(self, clock):
        group_order = _group_order()
        rfq = Rfq.publish(group_order, bidding_deadline=clock.now() + timedelta(days=2))

        group_order.line_for("sku-para").total_quantity = 999
        assert rfq.line_for("sku-para").total_quantity == 150

    def test_defaults_title_and_description_from_group_order(self, clock):
        rfq = Rfq.publish(_group_order(), bidding_deadline=clock.now() + timedelta(days=2))
        assert rfq.title == "January round"
        assert rfq.description == "Analgesics for Q1"
        assert rfq.status == RfqStatus.OPEN.value

    def test_deadline_must_be_in_the_future(self, clock):
        with pytest.raises(ValidationError):
            Rfq.publish(_group_order(), bidding_deadline=clock.now())

    def test_deadline_passed_follows_the_clock(self, clock):
        rfq = Rfq.publish(_group_order(), bidding_deadline=clock.now() + timedelta(hours=1))
        assert not rfq.deadline_passed()
        clock.advance(hours=1)
        assert rfq.deadline_passed()


class TestRfqTransitions:
    def test_award_requires_closed_rfq(self, clock):
        rfq = Rfq.publish(_group_order(), bidding_deadline=clock.now() + timedelta(days=1))
        with pytest.raises(InvalidStateTransitionError):
            rfq.record_award(_bid())

    def test_close_then_award(self, clock):
        rfq = Rfq.publish(_group_order(), bidding_deadline=clock.now() + timedelta(days=1))
        rfq.close()
        rfq.record_award(_bid())
        assert rfq.status == RfqStatus.AWARDED.value
        assert not rfq.is_open
        assert rfq.is_active

    def test_awarded_rfq_accepts_further_line_awards(self, clock):
        rfq = Rfq.publish(_group_order(), bidding_deadline=clock.now() + timedelta(days=1))
        rfq.close()
        rfq.record_award(_bid())
        rfq.record_award(_bid(supplier_id="sup-y"))
        assert rfq.status == RfqStatus.AWARDED.value

    def test_closed_rfq_cannot_close_again(self, clock):
        rfq = Rfq.publish(_group_order(), bidding_deadline=clock.now() + timedelta(days=1))
        rfq.close()
        with pytest.raises(InvalidStateTransitionError):
            rfq.close()


class TestBidTransitions:
    def test_new_bid_is_submitted(self):
        bid = _bid()
        assert bid.status == BidStatus.SUBMITTED.value
        assert bid.line_value == 150.0

    def test_award_twice_raises_already_awarded(self):
        bid = _bid()
        bid.award()
        with pytest.raises(AlreadyAwardedError):
            bid.award()

    def test_rejected_bid_cannot_be_awarded(self):
        bid = _bid()
        bid.reject()
        with pytest.raises(InvalidStateTransitionError):
            bid.award()

    def test_awarded_bid_cannot_be_rejected(self):
        bid = _bid()
        bid.award()
        with pytest.raises(InvalidStateTransitionError):
            bid.reject()
