"""
Service and food catalogs as seen from a reservation.

The snapshot is read-only: line items copy a catalog entry's title and rate
when they are added, so later catalog edits never touch existing bills.
"""
from errors import NotFoundError, ValidationError
from formatting import to_finite, to_number

CATALOG_TABLES = {
    'service': 'services',
    'food': 'menus',
}

DEFAULT_SERVICES = [
    {'title': 'Laundry', 'rate': 500},
    {'title': 'Room Cleaning', 'rate': 300},
    {'title': 'Airport Pickup', 'rate': 4500},
    {'title': 'Extra Bed', 'rate': 1500},
]

DEFAULT_FOODS = [
    {'title': 'Fried Rice', 'rate': 1200, 'category': 'Rice'},
    {'title': 'Koththu', 'rate': 1100, 'category': 'Street Food'},
    {'title': 'Chicken Curry', 'rate': 900, 'category': 'Curry'},
    {'title': 'String Hoppers Set', 'rate': 800, 'category': 'Breakfast'},
]

STATUSES = ('active', 'inactive')


class CatalogSnapshot:
    def __init__(self, services=None, foods=None):
        self.entries = {
            'service': list(services or []),
            'food': list(foods or []),
        }

    @classmethod
    def load(cls, store):
        return cls(
            services=store.select('services', {'status': 'active'}, order_by='title'),
            foods=store.select('menus', {'status': 'active'}, order_by='title'),
        )

    def entries_for(self, kind):
        if kind not in self.entries:
            raise ValidationError(f'Unknown catalog: {kind}')
        return self.entries[kind]

    def find(self, kind, title):
        wanted = (title or '').strip().lower()
        for entry in self.entries_for(kind):
            if entry['title'].lower() == wanted:
                return entry
        raise NotFoundError(f'{title} is not in the {kind} catalog')

    def prefill(self, kind, title):
        """Line item form seeded from a catalog entry"""
        entry = self.find(kind, title)
        return {'title': entry['title'], 'qty': 1, 'rate': to_number(entry.get('rate'))}

    def to_dict(self):
        return {'services': self.entries['service'], 'foods': self.entries['food']}


def validate_entry(kind, payload, partial=False):
    """Clean a catalog entry written from the admin screens"""
    if kind not in CATALOG_TABLES:
        raise ValidationError(f'Unknown catalog: {kind}')
    data = {}

    if 'title' in payload or not partial:
        title = (payload.get('title') or '').strip()
        if not title:
            raise ValidationError('Title is required')
        data['title'] = title

    if 'rate' in payload or not partial:
        rate = to_finite(payload.get('rate'))
        if rate is None:
            raise ValidationError('Rate must be a number')
        if rate < 0:
            raise ValidationError('Rate cannot be negative')
        data['rate'] = rate

    if 'status' in payload:
        if payload['status'] not in STATUSES:
            raise ValidationError(f'Status must be one of {", ".join(STATUSES)}')
        data['status'] = payload['status']

    if kind == 'food' and 'category' in payload:
        data['category'] = (payload.get('category') or '').strip() or None

    return data
