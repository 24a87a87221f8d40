"""
Reservation status model.

    confirmed -> cancelled    (from the front desk, terminal)
    confirmed -> checked_out  (set by the checkout process, terminal)

Cancelling keeps every service, food, payment and discount row as history.
Only a confirmed reservation accepts new charges or payments.
"""
import logging
from datetime import datetime

from errors import InvalidTransitionError, NotFoundError, ReservationClosedError

logger = logging.getLogger(__name__)

CONFIRMED = 'confirmed'
CANCELLED = 'cancelled'
CHECKED_OUT = 'checked_out'

STATUSES = (CONFIRMED, CANCELLED, CHECKED_OUT)

TRANSITIONS = {
    CONFIRMED: (CANCELLED, CHECKED_OUT),
    CANCELLED: (),
    CHECKED_OUT: (),
}


def accepts_charges(status):
    return status == CONFIRMED


def ensure_accepts_charges(reservation):
    if not accepts_charges(reservation.get('status')):
        raise ReservationClosedError(
            f"Reservation {reservation.get('code') or reservation.get('id')} is {reservation.get('status')}; "
            "charges and payments can no longer be changed"
        )


def can_transition(current, target):
    return target in TRANSITIONS.get(current, ())


def cancel_reservation(store, reservation_id, now=None):
    """Flip a confirmed reservation to cancelled and stamp the cancellation time"""
    reservation = store.get('reservations', reservation_id)
    if reservation is None:
        raise NotFoundError('Reservation not found')

    if not can_transition(reservation['status'], CANCELLED):
        raise InvalidTransitionError(f"Cannot cancel a reservation that is {reservation['status']}")

    updated = store.update('reservations', reservation_id, {
        'status': CANCELLED,
        'cancelled_at': now or datetime.utcnow(),
    })
    logger.info("Reservation %s cancelled", updated['code'])
    return updated
