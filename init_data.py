"""
Initialize database with sample rooms and the default service and food catalogs
"""
import logging

from catalog import DEFAULT_FOODS, DEFAULT_SERVICES
from extensions import db
from models import MenuItem, Room, Service

logger = logging.getLogger(__name__)

SAMPLE_ROOMS = [
    {
        'number': '101',
        'type': 'Standard',
        'capacity': 2,
        'price': 8500.00,
        'facilities': ['AC', 'Hot Water', 'Wi-Fi'],
        'description': 'Comfortable standard room with garden view',
    },
    {
        'number': '102',
        'type': 'Standard',
        'capacity': 2,
        'price': 8500.00,
        'facilities': ['AC', 'Hot Water', 'Wi-Fi'],
        'description': 'Comfortable standard room with garden view',
    },
    {
        'number': '201',
        'type': 'Deluxe',
        'capacity': 3,
        'price': 12500.00,
        'facilities': ['AC', 'Hot Water', 'Wi-Fi', 'Mini Bar', 'Balcony'],
        'description': 'Spacious room with a balcony',
    },
    {
        'number': '301',
        'type': 'Family Suite',
        'capacity': 5,
        'price': 22000.00,
        'facilities': ['AC', 'Hot Water', 'Wi-Fi', 'Mini Bar', 'Kitchenette'],
        'description': 'Two-bedroom suite for families',
    },
]


def _seed(model, rows, key):
    created = 0
    for data in rows:
        if model.query.filter_by(**{key: data[key]}).first():
            continue
        db.session.add(model(**data))
        created += 1
    return created


def create_initial_data():
    """Create initial data for the application"""
    try:
        rooms = _seed(Room, SAMPLE_ROOMS, 'number')
        services = _seed(Service, DEFAULT_SERVICES, 'title')
        foods = _seed(MenuItem, DEFAULT_FOODS, 'title')
        db.session.commit()
        logger.info("Seeded %d room(s), %d service(s), %d food item(s)", rooms, services, foods)
    except Exception as e:
        db.session.rollback()
        logger.error("Database initialization error: %s", e)
