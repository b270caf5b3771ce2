import pytest

from procurement.errors import InvalidStateTransitionError, ValidationError
from procurement.escrow.escrow import Escrow, EscrowStatus
from procurement.group_order.group_order import GroupOrder, GroupOrderStatus
from procurement.order.confirmation import ConfirmPharmacyOrder, DeclinePharmacyOrder
from procurement.order.pharmacy_order import PharmacyOrder, PharmacyOrderStatus
from procurement.store import find_all, find_first, load


@pytest.fixture
def awarded(para500_round, award):
    award(para500_round["bid_id"])
    rfq_id = para500_round["rfq_id"]
    return {
        **para500_round,
        "order_a": str(find_first(PharmacyOrder, rfq_id=rfq_id, pharmacy_id="pharm-a").id),
        "order_b": str(find_first(PharmacyOrder, rfq_id=rfq_id, pharmacy_id="pharm-b").id),
    }


@pytest.fixture
def confirm(process):
    def _confirm(order_id, payment_terms=30, delivery_address="1 High Street"):
        return process(
            ConfirmPharmacyOrder(
                pharmacy_order_id=order_id,
                payment_terms=payment_terms,
                delivery_address=delivery_address,
            )
        )

    return _confirm


@pytest.fixture
def decline(process):
    def _decline(order_id, reason=None):
        return process(DeclinePharmacyOrder(pharmacy_order_id=order_id, reason=reason))

    return _decline


class TestConfirmPharmacyOrder:
    def test_confirming_funds_an_escrow(self, awarded, confirm):
        confirm(awarded["order_a"], payment_terms=60)

        order = load(PharmacyOrder, awarded["order_a"])
        assert order.status == PharmacyOrderStatus.CONFIRMED.value
        assert order.payment_terms == 60

        escrows = find_all(Escrow, rfq_id=awarded["rfq_id"])
        assert len(escrows) == 1
        assert escrows[0].status == EscrowStatus.FUNDED.value
        assert escrows[0].amount == 100.0
        assert escrows[0].currency == "USD"
        assert str(escrows[0].pharmacy_id) == "pharm-a"

    def test_group_order_waits_for_every_pharmacy(self, awarded, confirm):
        confirm(awarded["order_a"])
        assert load(GroupOrder, awarded["group_order_id"]).status == GroupOrderStatus.AWAITING_CONFIRMATIONS.value

    def test_all_confirmed_schedules_the_group_order(self, awarded, confirm):
        confirm(awarded["order_a"])
        confirm(awarded["order_b"])

        assert load(GroupOrder, awarded["group_order_id"]).status == GroupOrderStatus.SCHEDULED.value
        assert len(find_all(Escrow, rfq_id=awarded["rfq_id"])) == 2

    def test_confirming_twice_is_rejected(self, awarded, confirm):
        confirm(awarded["order_a"])
        with pytest.raises(InvalidStateTransitionError):
            confirm(awarded["order_a"])
        assert len(find_all(Escrow, rfq_id=awarded["rfq_id"])) == 1

    def test_invalid_terms_leave_no_trace(self, awarded, confirm):
        with pytest.raises(ValidationError):
            confirm(awarded["order_a"], payment_terms=45)

        assert load(PharmacyOrder, awarded["order_a"]).status == PharmacyOrderStatus.PENDING.value
        assert find_all(Escrow) == []


class TestDeclinePharmacyOrder:
    def test_declining_touches_only_that_order(self, awarded, decline):
        decline(awarded["order_b"], reason="Ordered elsewhere")

        declined = load(PharmacyOrder, awarded["order_b"])
        assert declined.status == PharmacyOrderStatus.DECLINED.value
        assert declined.decline_reason == "Ordered elsewhere"
        assert load(PharmacyOrder, awarded["order_a"]).status == PharmacyOrderStatus.PENDING.value
        assert find_all(Escrow) == []

    def test_confirm_and_decline_schedules(self, awarded, confirm, decline):
        decline(awarded["order_b"])
        confirm(awarded["order_a"])

        assert load(GroupOrder, awarded["group_order_id"]).status == GroupOrderStatus.SCHEDULED.value
        assert [str(e.pharmacy_id) for e in find_all(Escrow)] == ["pharm-a"]

    def test_everyone_declining_cancels_the_group_order(self, awarded, decline):
        decline(awarded["order_a"])
        decline(awarded["order_b"])

        group_order = load(GroupOrder, awarded["group_order_id"])
        assert group_order.status == GroupOrderStatus.CANCELLED.value
        assert find_all(Escrow) == []

    def test_declined_order_cannot_be_confirmed(self, awarded, confirm, decline):
        decline(awarded["order_a"])
        with pytest.raises(InvalidStateTransitionError):
            confirm(awarded["order_a"])
