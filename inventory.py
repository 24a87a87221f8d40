"""
Room inventory helpers for the rooms admin screen
"""
import logging

from errors import ConflictError, NotFoundError, ValidationError
from formatting import to_finite

logger = logging.getLogger(__name__)


def facilities_list(value):
    """Facilities arrive either as a list or as comma separated text"""
    if value is None:
        return []
    if isinstance(value, (list, tuple)):
        items = value
    else:
        items = str(value).split(',')
    return [str(s).strip() for s in items if str(s).strip()]


def _optional_number(payload, key, cast):
    value = payload.get(key)
    if value is None or value == '':
        return None
    number = to_finite(value)
    if number is None or (cast is int and not number.is_integer()):
        raise ValidationError(f'{key.capitalize()} must be a number')
    value = cast(number)
    if value < 0:
        raise ValidationError(f'{key.capitalize()} cannot be negative')
    return value


def normalize_room(payload, partial=False):
    data = {}
    for key in ('number', 'type'):
        if key in payload or not partial:
            value = str(payload.get(key) or '').strip()
            if not value:
                raise ValidationError('Room number and type are required.')
            data[key] = value

    if 'capacity' in payload or not partial:
        data['capacity'] = _optional_number(payload, 'capacity', int)
    if 'price' in payload or not partial:
        data['price'] = _optional_number(payload, 'price', float)
    if 'facilities' in payload or not partial:
        data['facilities'] = facilities_list(payload.get('facilities'))
    if 'description' in payload or not partial:
        data['description'] = (payload.get('description') or '').strip() or None
    return data


def search_rooms(rooms, term):
    term = (term or '').strip().lower()
    if not term:
        return rooms
    matches = []
    for room in rooms:
        haystack = ' '.join([
            room.get('number') or '',
            room.get('type') or '',
            room.get('description') or '',
            ', '.join(room.get('facilities') or []),
        ]).lower()
        if term in haystack:
            matches.append(room)
    return matches


def delete_room(store, room_id):
    """Delete a room that no reservation, past or present, refers to"""
    room = store.get('rooms', room_id)
    if room is None:
        raise NotFoundError('Room not found')
    if store.select('reservation_rooms', {'room_id': room_id}, limit=1):
        raise ConflictError(f"Room {room['number']} has reservations and cannot be deleted")
    store.delete('rooms', room_id)
    logger.info("Room %s deleted", room['number'])
