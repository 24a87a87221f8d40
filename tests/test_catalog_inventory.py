import pytest

from catalog import CatalogSnapshot, validate_entry
from errors import ConflictError, NotFoundError, ValidationError
from inventory import delete_room, facilities_list, normalize_room, search_rooms


def test_snapshot_reads_active_entries_only(store):
    store.insert('services', {'title': 'Laundry', 'rate': 500})
    store.insert('services', {'title': 'Spa', 'rate': 8000, 'status': 'inactive'})
    store.insert('menus', {'title': 'Koththu', 'rate': 1100, 'category': 'Street Food'})

    snapshot = CatalogSnapshot.load(store)
    assert [s['title'] for s in snapshot.entries_for('service')] == ['Laundry']
    assert snapshot.prefill('food', 'koththu') == {'title': 'Koththu', 'qty': 1, 'rate': 1100}
    with pytest.raises(NotFoundError):
        snapshot.prefill('service', 'Spa')


def test_validate_entry():
    assert validate_entry('service', {'title': ' Laundry ', 'rate': '500'}) == {'title': 'Laundry', 'rate': 500.0}
    assert validate_entry('food', {'rate': 10, 'category': 'Rice'}, partial=True) == {'rate': 10.0, 'category': 'Rice'}
    with pytest.raises(ValidationError):
        validate_entry('service', {'title': 'Laundry', 'rate': -1})
    with pytest.raises(ValidationError):
        validate_entry('service', {'title': '', 'rate': 1})
    with pytest.raises(ValidationError):
        validate_entry('minibar', {'title': 'Water', 'rate': 1})


def test_facilities_accept_text_or_list():
    assert facilities_list('AC, Wi-Fi ,,Balcony') == ['AC', 'Wi-Fi', 'Balcony']
    assert facilities_list(['AC', ' ']) == ['AC']
    assert facilities_list(None) == []


def test_normalize_room():
    room = normalize_room({'number': ' 301 ', 'type': 'Suite', 'capacity': '4', 'price': '22000', 'facilities': 'AC'})
    assert room['number'] == '301'
    assert room['capacity'] == 4
    assert room['price'] == 22000.0
    assert room['facilities'] == ['AC']
    assert normalize_room({'price': 100}, partial=True) == {'price': 100.0}
    with pytest.raises(ValidationError, match='Room number and type are required.'):
        normalize_room({'number': '301'})
    with pytest.raises(ValidationError):
        normalize_room({'number': '301', 'type': 'Suite', 'price': 'cheap'})


def test_search_rooms(rooms):
    assert [r['number'] for r in search_rooms(rooms, 'balcony')] == ['201']
    assert [r['number'] for r in search_rooms(rooms, 'standard')] == ['101', '102']
    assert search_rooms(rooms, '') == rooms


@pytest.mark.parametrize('value', ['NaN', 'Infinity', float('inf')])
def test_non_finite_rates_and_prices_are_rejected(value):
    with pytest.raises(ValidationError):
        validate_entry('service', {'title': 'Laundry', 'rate': value})
    with pytest.raises(ValidationError):
        normalize_room({'number': '301', 'type': 'Suite', 'price': value})
    with pytest.raises(ValidationError):
        normalize_room({'number': '301', 'type': 'Suite', 'capacity': value})


def test_capacity_must_be_whole():
    with pytest.raises(ValidationError):
        normalize_room({'number': '301', 'type': 'Suite', 'capacity': '2.5'})
    assert normalize_room({'capacity': '3'}, partial=True) == {'capacity': 3}


def test_room_with_reservations_cannot_be_deleted(store, rooms, booking):
    with pytest.raises(ConflictError):
        delete_room(store, rooms[0]['id'])
    assert store.get('rooms', rooms[0]['id']) is not None

    delete_room(store, rooms[1]['id'])
    assert store.get('rooms', rooms[1]['id']) is None
    with pytest.raises(NotFoundError):
        delete_room(store, rooms[1]['id'])
