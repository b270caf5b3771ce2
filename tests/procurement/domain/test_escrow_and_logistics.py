"""Tests for escrow finality and logistics monotonicity."""

import pytest

from procurement.errors import InvalidStateTransitionError, ValidationError
from procurement.escrow.escrow import Escrow, EscrowStatus
from procurement.logistics.logistics import LogisticsEntry, LogisticsStatus
from procurement.order.pharmacy_order import PharmacyOrder


def _escrow():
    order = PharmacyOrder.generate(
        rfq_id="rfq-1",
        group_order_id="go-1",
        pharmacy_id="pharm-a",
        lines_data=[{"sku_id": "sku-para", "quantity": 100, "unit_price": 1.0}],
    )
    return Escrow.open(order)


def _entry():
    return LogisticsEntry.assign(rfq_id="rfq-1", supplier_id="sup-x", pharmacy_id="pharm-a")


class TestEscrow:
    def test_opens_unfunded_for_order_total(self):
        escrow = _escrow()
        assert escrow.status == EscrowStatus.NOT_FUNDED.value
        assert escrow.amount == 100.0

    def test_cannot_release_before_funding(self):
        with pytest.raises(InvalidStateTransitionError):
            _escrow().release("Delivered")

    def test_release_records_reason_and_time(self):
        escrow = _escrow()
        escrow.fund()
        escrow.release("Delivered in full")
        assert escrow.status == EscrowStatus.RELEASED.value
        assert escrow.reason == "Delivered in full"
        assert escrow.released_at is not None
        assert escrow.is_terminal

    def test_top_up_raises_the_held_amount(self):
        escrow = _escrow()
        escrow.fund()
        escrow.top_up(100.0)
        assert escrow.amount == 200.0
        assert escrow.status == EscrowStatus.FUNDED.value

    @pytest.mark.parametrize("settle", ["release", "refund"])
    def test_settled_escrow_cannot_be_topped_up(self, settle):
        escrow = _escrow()
        escrow.fund()
        getattr(escrow, settle)("Done")
        with pytest.raises(InvalidStateTransitionError):
            escrow.top_up(10.0)
        assert escrow.amount == 100.0

    def test_top_up_must_be_positive(self):
        escrow = _escrow()
        escrow.fund()
        with pytest.raises(ValidationError):
            escrow.top_up(0)

    @pytest.mark.parametrize("settle", ["release", "refund"])
    def test_terminal_states_are_final(self, settle):
        escrow = _escrow()
        escrow.fund()
        getattr(escrow, settle)("First settlement")

        with pytest.raises(InvalidStateTransitionError):
            escrow.release("Again")
        with pytest.raises(InvalidStateTransitionError):
            escrow.refund("Again")
        with pytest.raises(InvalidStateTransitionError):
            escrow.fund()


class TestLogisticsEntry:
    def test_starts_pending(self):
        entry = _entry()
        assert entry.status == LogisticsStatus.PENDING.value
        assert entry.picked_up_at is None

    def test_forward_jump_is_allowed(self):
        entry = _entry()
        assert entry.advance_to("delivered") is True
        assert entry.status == LogisticsStatus.DELIVERED.value
        assert entry.delivered_at is not None

    def test_backward_move_is_rejected(self):
        entry = _entry()
        entry.advance_to("in_transit")
        with pytest.raises(InvalidStateTransitionError):
            entry.advance_to("picked_up")

    def test_reentering_status_keeps_first_timestamp(self, clock):
        entry = _entry()
        entry.advance_to("picked_up")
        first = entry.picked_up_at

        clock.advance(hours=4)
        assert entry.advance_to("picked_up", notes="Driver called") is False
        assert entry.picked_up_at == first
        assert entry.notes == "Driver called"

    def test_status_sequence_never_decreases(self):
        entry = _entry()
        observed = [entry.status]
        for target in ["picked_up", "picked_up", "in_transit", "delivered", "delivered"]:
            entry.advance_to(target)
            observed.append(entry.status)

        order = [status.value for status in LogisticsStatus]
        ranks = [order.index(status) for status in observed]
        assert ranks == sorted(ranks)
