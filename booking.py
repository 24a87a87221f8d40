"""
Booking submission: dates and rooms, guests, then extras and review.

Guests are matched by identity document (NIC or passport) so a returning
guest is reused rather than duplicated. Each booked room keeps the nightly
rate agreed at booking, either an offer rate or the room's list price.
"""
import logging
import random
import string

from availability import available_rooms
from errors import ConflictError, NotFoundError, ValidationError
from formatting import DEFAULT_TIMEZONE, in_date_range, nights_between, parse_date, to_finite
from ledger import ADVANCE, FOOD, PAYMENT_METHODS, SERVICE, ReservationLedger
from lifecycle import CONFIRMED

logger = logging.getLogger(__name__)

GUEST_FIELDS = (
    'name', 'nic_number', 'passport_number', 'email', 'phone',
    'address', 'city', 'country', 'nationality', 'dob', 'notes',
)
DOCUMENT_FIELDS = ('nic_number', 'passport_number')
CODE_ALPHABET = string.ascii_uppercase + string.digits


def clean_guest(payload):
    data = {}
    for key in GUEST_FIELDS:
        value = payload.get(key)
        value = str(value).strip() if value is not None else ''
        data[key] = value or None
    if not data['name']:
        raise ValidationError('Guest name is required')
    if not data['nic_number'] and not data['passport_number']:
        raise ValidationError(f"Guest {data['name']} needs a NIC or passport number")
    if data['dob'] and parse_date(data['dob']) is None:
        raise ValidationError(f"Invalid date of birth: {data['dob']}")
    return data


def find_guest_by_document(store, value):
    """Look a guest up by NIC first, then by passport number"""
    value = (value or '').strip()
    if not value:
        return None
    for key in DOCUMENT_FIELDS:
        found = store.select('guests', {key: value}, limit=1)
        if found:
            return found[0]
    return None


def find_or_create_guest(store, payload):
    data = clean_guest(payload)
    for key in DOCUMENT_FIELDS:
        if data.get(key):
            existing = find_guest_by_document(store, data[key])
            if existing:
                logger.debug("Reusing guest #%s for document %s", existing['id'], data[key])
                return existing
    guest = store.insert('guests', data)
    logger.info("Created guest #%s (%s)", guest['id'], guest['name'])
    return guest


def search_guests(guests, term=None, country=None):
    """Match name, NIC, passport, email or phone; country must match exactly"""
    term = (term or '').strip().lower()
    matches = []
    for guest in guests:
        if country and country != 'all' and guest.get('country') != country:
            continue
        haystack = [guest.get(key) or '' for key in ('name', 'nic_number', 'passport_number', 'email', 'phone')]
        if term and not any(term in value.lower() for value in haystack):
            continue
        matches.append(guest)
    return matches


def filter_reservations(rows, term=None, start=None, end=None):
    """
    Narrow a reservation listing by guest name or room type, and by a
    check-in date range inclusive on both ends.
    """
    term = (term or '').strip().lower()
    matches = []
    for row in rows:
        if (start or end) and not in_date_range(row.get('check_in_date'), start, end):
            continue
        if term:
            names = [row.get('guest_name') or ''] + list(row.get('room_types') or [])
            if not any(term in value.lower() for value in names):
                continue
        matches.append(row)
    return matches


def generate_code(store):
    while True:
        code = 'RES-' + ''.join(random.choices(CODE_ALPHABET, k=6))
        if not store.select('reservations', {'code': code}, limit=1):
            return code


def _room_request(entry):
    if isinstance(entry, dict):
        return entry.get('room_id', entry.get('id')), entry.get('rate')
    return entry, None


def _resolve_rooms(store, requests, check_in, check_out):
    free = {r['id'] for r in available_rooms(store, check_in, check_out)}
    rooms = []
    seen = set()
    for entry in requests:
        room_id, offer_rate = _room_request(entry)
        try:
            room_id = int(room_id)
        except (TypeError, ValueError):
            raise ValidationError(f'Invalid room id: {room_id}')
        if room_id in seen:
            raise ValidationError('Each room can only be booked once per reservation')
        seen.add(room_id)

        room = store.get('rooms', room_id)
        if room is None:
            raise NotFoundError(f'Room {room_id} not found')
        if room_id not in free:
            raise ConflictError(f"Room {room['number']} is not available for the selected dates")

        rate = room['price'] if offer_rate in (None, '') else to_finite(offer_rate)
        if rate is None:
            raise ValidationError(f'Invalid rate for room {room["number"]}')
        if rate < 0:
            raise ValidationError('Room rate cannot be negative')
        rooms.append({'room_id': room_id, 'rate': rate, 'number': room['number'], 'type': room['type']})
    return rooms


def create_reservation(store, payload, tz_name=DEFAULT_TIMEZONE):
    """
    Validate and save a booking.

    Everything is validated before the first write: dates with at least one
    night, available rooms, guest documents and any extras (services, foods,
    advance payments) submitted with the booking. The extras are staged on a
    draft ledger. Guests, the reservation, its room and guest links and the
    staged extras are written in one transaction.
    """
    check_in = parse_date(payload.get('check_in_date'))
    check_out = parse_date(payload.get('check_out_date'))
    if not check_in or not check_out:
        raise ValidationError('Check-in and check-out dates are required')
    if nights_between(check_in, check_out) <= 0:
        raise ValidationError('Check-out date must be after check-in date')

    if not payload.get('rooms'):
        raise ValidationError('Select at least one room')
    guest_payloads = list(payload.get('guests') or [])
    if payload.get('guest'):
        guest_payloads.insert(0, payload['guest'])
    if not guest_payloads:
        raise ValidationError('Add at least one guest')
    guests = [clean_guest(g) for g in guest_payloads]

    rooms = _resolve_rooms(store, payload['rooms'], check_in, check_out)

    draft = ReservationLedger.draft(store, check_in.isoformat(), check_out.isoformat(), rooms, tz_name)
    for item in payload.get('services') or []:
        draft.add_line_item(SERVICE, item.get('title'), item.get('qty', 1), item.get('rate'))
    for item in payload.get('foods') or []:
        draft.add_line_item(FOOD, item.get('title'), item.get('qty', 1), item.get('rate'))
    for p in payload.get('payments') or []:
        draft.add_payment(p.get('type', ADVANCE), p.get('method', PAYMENT_METHODS[0]), p.get('date'), p.get('amount'))

    with store.transaction():
        saved_guests = []
        for data in guests:
            guest = find_or_create_guest(store, data)
            if guest['id'] not in [g['id'] for g in saved_guests]:
                saved_guests.append(guest)

        reservation = store.insert('reservations', {
            'code': generate_code(store),
            'check_in_date': check_in,
            'check_out_date': check_out,
            'status': CONFIRMED,
            'notes': (payload.get('notes') or '').strip() or None,
            'special_requests': (payload.get('special_requests') or '').strip() or None,
            'guest_id': saved_guests[0]['id'],
        })
        for room in rooms:
            store.insert('reservation_rooms', {
                'reservation_id': reservation['id'],
                'room_id': room['room_id'],
                'rate': room['rate'],
            })
        for guest in saved_guests:
            store.insert('reservation_guests', {'reservation_id': reservation['id'], 'guest_id': guest['id']})

        draft.attach(reservation)
    logger.info("Reservation %s booked: %d room(s), %d night(s)",
                reservation['code'], len(rooms), nights_between(check_in, check_out))
    return ReservationLedger.load(store, reservation['id'], tz_name)
