import pytest

from app import create_app
from extensions import db
from store import TableStore


@pytest.fixture
def app():
    app = create_app({
        'TESTING': True,
        'SQLALCHEMY_DATABASE_URI': 'sqlite://',
        'HOTEL_NAME': 'Lagoon View Hotel',
        'SEED_DATA': False,
    })
    with app.app_context():
        yield app
        db.session.remove()
        db.drop_all()


@pytest.fixture
def client(app):
    return app.test_client()


@pytest.fixture
def store(app):
    return TableStore()


@pytest.fixture
def rooms(store):
    return [
        store.insert('rooms', {'number': '101', 'type': 'Standard', 'capacity': 2, 'price': 5000}),
        store.insert('rooms', {'number': '102', 'type': 'Standard', 'capacity': 2, 'price': 5000}),
        store.insert('rooms', {'number': '201', 'type': 'Deluxe', 'capacity': 4, 'price': 9000,
                               'facilities': ['AC', 'Balcony']}),
    ]


@pytest.fixture
def guest_payload():
    return {'name': 'Nimal Perera', 'nic_number': '901234567V', 'phone': '0771234567'}


@pytest.fixture
def booking(store, rooms, guest_payload):
    """A confirmed three-night stay in room 101 at its list price"""
    from booking import create_reservation
    return create_reservation(store, {
        'check_in_date': '2026-03-01',
        'check_out_date': '2026-03-04',
        'rooms': [rooms[0]['id']],
        'guest': guest_payload,
    })
