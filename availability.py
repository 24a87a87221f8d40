"""
Room availability for the booking flow
"""
import logging

from formatting import nights_between, parse_date, to_number

logger = logging.getLogger(__name__)


def available_rooms(store, start, end, min_capacity=None, room_type=None):
    """
    Rooms free for the whole stay [start, end).

    A missing date or a range of zero nights yields no rooms at all. The
    overlap test is the store's; this only subtracts the booked set from the
    inventory and applies the capacity and type facets.
    """
    if not parse_date(start) or not parse_date(end) or nights_between(start, end) <= 0:
        return []

    booked = store.booked_room_ids(start, end)
    rooms = [r for r in store.select('rooms', order_by='number') if r['id'] not in booked]

    if min_capacity:
        needed = to_number(min_capacity)
        rooms = [r for r in rooms if to_number(r.get('capacity')) >= needed]
    if room_type:
        wanted = room_type.strip().lower()
        rooms = [r for r in rooms if (r.get('type') or '').lower() == wanted]

    logger.debug("%d room(s) free from %s to %s (%d booked)", len(rooms), start, end, len(booked))
    return rooms
