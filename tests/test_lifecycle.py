import pytest

from errors import InvalidTransitionError, NotFoundError, ReservationClosedError
from ledger import FOOD, ReservationLedger
from lifecycle import CANCELLED, CHECKED_OUT, CONFIRMED, accepts_charges, can_transition, cancel_reservation


def test_transitions():
    assert can_transition(CONFIRMED, CANCELLED)
    assert can_transition(CONFIRMED, CHECKED_OUT)
    assert not can_transition(CANCELLED, CONFIRMED)
    assert not can_transition(CHECKED_OUT, CANCELLED)
    assert accepts_charges(CONFIRMED)
    assert not accepts_charges(CANCELLED)


def test_cancel_keeps_items_and_totals(store, booking):
    reservation_id = booking.reservation_id
    booking.add_line_item(FOOD, 'Fried Rice', 1, 1200)
    booking.add_payment('Advance', 'Cash', '2026-03-01', 10000)
    before = booking.summary

    cancelled = cancel_reservation(store, reservation_id)
    assert cancelled['status'] == CANCELLED
    assert cancelled['cancelled_at'] is not None

    ledger = ReservationLedger.load(store, reservation_id)
    assert len(ledger.foods) == 1
    assert len(ledger.payments) == 1
    assert ledger.summary == before


def test_cancel_twice_is_rejected(store, booking):
    cancel_reservation(store, booking.reservation_id)
    with pytest.raises(InvalidTransitionError):
        cancel_reservation(store, booking.reservation_id)


def test_cancel_unknown_reservation(store):
    with pytest.raises(NotFoundError):
        cancel_reservation(store, 999)


def test_closed_reservation_rejects_charges(store, booking):
    cancel_reservation(store, booking.reservation_id)
    ledger = ReservationLedger.load(store, booking.reservation_id)
    with pytest.raises(ReservationClosedError):
        ledger.add_line_item(FOOD, 'Koththu', 1, 1100)
    with pytest.raises(ReservationClosedError):
        ledger.add_payment('Settlement', 'Card', amount=100)
    with pytest.raises(ReservationClosedError):
        ledger.add_discount('Loyalty', 100)
