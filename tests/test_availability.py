from availability import available_rooms
from lifecycle import cancel_reservation


def _numbers(rooms):
    return [r['number'] for r in rooms]


def test_zero_width_or_missing_range_is_empty(store, rooms):
    assert available_rooms(store, '2026-03-01', '2026-03-01') == []
    assert available_rooms(store, '2026-03-05', '2026-03-01') == []
    assert available_rooms(store, None, '2026-03-01') == []


def test_all_rooms_free_without_bookings(store, rooms):
    assert _numbers(available_rooms(store, '2026-03-01', '2026-03-02')) == ['101', '102', '201']


def test_overlapping_booking_removes_room(store, booking):
    # booking holds 101 from 03-01 to 03-04
    assert '101' not in _numbers(available_rooms(store, '2026-03-03', '2026-03-05'))
    assert '101' not in _numbers(available_rooms(store, '2026-02-28', '2026-03-02'))


def test_back_to_back_stays_do_not_overlap(store, booking):
    assert '101' in _numbers(available_rooms(store, '2026-03-04', '2026-03-06'))
    assert '101' in _numbers(available_rooms(store, '2026-02-27', '2026-03-01'))


def test_cancelled_booking_frees_room(store, booking):
    cancel_reservation(store, booking.reservation_id)
    assert '101' in _numbers(available_rooms(store, '2026-03-01', '2026-03-04'))


def test_capacity_and_type_facets(store, rooms):
    assert _numbers(available_rooms(store, '2026-03-01', '2026-03-02', min_capacity=3)) == ['201']
    assert _numbers(available_rooms(store, '2026-03-01', '2026-03-02', room_type='standard')) == ['101', '102']
