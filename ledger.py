"""
Line-item ledger for a single reservation.

A ReservationLedger owns the services, foods, payments and discounts of one
reservation. Handlers build one per request, call a mutation, and read the
refreshed rows and summary back from it. After every write the affected
collection is re-fetched from the store, so the ledger never merges
optimistic state into what it shows.

A ledger drafted for a reservation that does not exist yet keeps its rows
as Pending entries; attach() writes them once the reservation is saved.
"""
import logging
import uuid
from dataclasses import dataclass, field

from billing import line_amount, summarize, summary_to_dict
from errors import NotFoundError, StoreError, ValidationError
from formatting import DEFAULT_TIMEZONE, parse_date, to_finite, to_number, today
from lifecycle import CONFIRMED, accepts_charges, ensure_accepts_charges

logger = logging.getLogger(__name__)

SERVICE = 'service'
FOOD = 'food'
PAYMENT = 'payment'
DISCOUNT = 'discount'

TABLES = {
    SERVICE: 'reservation_services',
    FOOD: 'reservation_foods',
    PAYMENT: 'payments',
    DISCOUNT: 'discounts',
}

ADVANCE = 'Advance'
SETTLEMENT = 'Settlement'
PAYMENT_TYPES = (ADVANCE, SETTLEMENT)
PAYMENT_METHODS = ('Cash', 'Card', 'Bank Transfer')


@dataclass(frozen=True)
class Persisted:
    id: int


@dataclass(frozen=True)
class Pending:
    temp_id: str


@dataclass
class LedgerRow:
    key: object  # Persisted or Pending
    data: dict = field(default_factory=dict)

    @property
    def pending(self):
        return isinstance(self.key, Pending)

    def matches(self, item_id):
        if self.pending:
            return self.key.temp_id == item_id
        return str(self.key.id) == str(item_id)

    def to_dict(self):
        out = dict(self.data)
        out['pending'] = self.pending
        if self.pending:
            out['id'] = None
            out['temp_id'] = self.key.temp_id
        return out


def _required_number(value, label):
    number = to_finite(value)
    if number is None:
        raise ValidationError(f'{label} must be a number')
    return number


class ReservationLedger:
    def __init__(self, store, reservation, rooms=None, guests=None, tz_name=DEFAULT_TIMEZONE):
        self.store = store
        self.reservation = reservation
        self.rooms = rooms or []
        self.guests = guests or []
        self.tz_name = tz_name
        self.rows = {kind: [] for kind in TABLES}

    @classmethod
    def load(cls, store, reservation_id, tz_name=DEFAULT_TIMEZONE):
        reservation = store.get('reservations', reservation_id)
        if reservation is None:
            raise NotFoundError('Reservation not found')
        rooms = store.select('reservation_rooms', {'reservation_id': reservation_id}, order_by='id')
        guests = store.select('reservation_guests', {'reservation_id': reservation_id}, order_by='id')
        ledger = cls(store, reservation, rooms, guests, tz_name)
        for kind in TABLES:
            ledger.reload(kind)
        return ledger

    @classmethod
    def draft(cls, store, check_in, check_out, rooms, tz_name=DEFAULT_TIMEZONE):
        """Ledger for a booking that has not been saved yet"""
        reservation = {
            'id': None,
            'code': None,
            'status': CONFIRMED,
            'check_in_date': check_in,
            'check_out_date': check_out,
        }
        return cls(store, reservation, rooms, tz_name=tz_name)

    # ---- snapshot ----

    @property
    def reservation_id(self):
        return self.reservation.get('id')

    @property
    def services(self):
        return self.rows[SERVICE]

    @property
    def foods(self):
        return self.rows[FOOD]

    @property
    def payments(self):
        return self.rows[PAYMENT]

    @property
    def discounts(self):
        return self.rows[DISCOUNT]

    @property
    def guest(self):
        guest_id = self.reservation.get('guest_id')
        for g in self.guests:
            if g.get('guest_id') == guest_id:
                return g
        return self.guests[0] if self.guests else None

    @property
    def summary(self):
        return summarize(
            self.reservation.get('check_in_date'),
            self.reservation.get('check_out_date'),
            rooms=self.rooms,
            services=[r.data for r in self.services],
            foods=[r.data for r in self.foods],
            payments=[r.data for r in self.payments],
            discounts=[r.data for r in self.discounts],
        )

    def reload(self, kind):
        """Replace one collection with what the store holds now"""
        table = self._table(kind)
        if self.reservation_id is None:
            return self.rows[kind]
        fetched = self.store.select(table, {'reservation_id': self.reservation_id},
                                    order_by='created_at', descending=True)
        self.rows[kind] = [LedgerRow(Persisted(r['id']), r) for r in fetched]
        return self.rows[kind]

    # ---- internals ----

    def _table(self, kind):
        try:
            return TABLES[kind]
        except KeyError:
            raise ValidationError(f'Unknown ledger kind: {kind}')

    def _find(self, kind, item_id):
        self._table(kind)
        for row in self.rows[kind]:
            if row.matches(item_id):
                return row
        raise NotFoundError(f'{kind.capitalize()} not found on this reservation')

    def _save(self, kind, data, item_id=None):
        table = self._table(kind)

        if self.reservation_id is None:
            if item_id is None:
                row = LedgerRow(Pending(f'{kind}-{uuid.uuid4().hex[:8]}'), data)
                self.rows[kind].insert(0, row)
            else:
                current = self._find(kind, item_id)
                row = LedgerRow(current.key, {**current.data, **data})
                self.rows[kind] = [row if r is current else r for r in self.rows[kind]]
            return row.to_dict()

        try:
            if item_id is None:
                saved = self.store.insert(table, {**data, 'reservation_id': self.reservation_id})
            else:
                saved = self.store.update(table, item_id, data)
        except StoreError:
            logger.warning("Could not save %s for reservation %s", kind, self.reservation.get('code'))
            raise

        self.reload(kind)
        return saved

    def _remove(self, kind, item_id):
        row = self._find(kind, item_id)
        if row.pending:
            self.rows[kind] = [r for r in self.rows[kind] if r is not row]
            return
        try:
            self.store.delete(self._table(kind), row.key.id)
        except StoreError:
            logger.warning("Could not delete %s #%s", kind, row.key.id)
            raise
        self.reload(kind)

    # ---- services & foods ----

    def _line_item_fields(self, title, qty, rate):
        title = (title or '').strip()
        if not title:
            raise ValidationError('Title is required')
        qty = _required_number(qty, 'Quantity')
        rate = _required_number(rate, 'Rate')
        if qty < 0 or rate < 0:
            raise ValidationError('Quantity and rate cannot be negative')
        amount = line_amount(qty, rate)
        if amount <= 0:
            raise ValidationError('Amount must be greater than zero')
        return {'title': title, 'qty': qty, 'rate': rate, 'amount': amount}

    def _check_item_kind(self, kind):
        if kind not in (SERVICE, FOOD):
            raise ValidationError(f'Unknown line item kind: {kind}')

    def add_line_item(self, kind, title, qty, rate):
        self._check_item_kind(kind)
        ensure_accepts_charges(self.reservation)
        return self._save(kind, self._line_item_fields(title, qty, rate))

    def edit_line_item(self, item_id, kind, qty=None, rate=None, title=None):
        """Fields left as None keep their stored value; amount is recomputed"""
        self._check_item_kind(kind)
        ensure_accepts_charges(self.reservation)
        current = self._find(kind, item_id).data
        fields = self._line_item_fields(
            current.get('title') if title is None else title,
            current.get('qty') if qty is None else qty,
            current.get('rate') if rate is None else rate,
        )
        return self._save(kind, fields, item_id)

    def delete_line_item(self, item_id, kind):
        self._check_item_kind(kind)
        ensure_accepts_charges(self.reservation)
        self._remove(kind, item_id)

    # ---- payments ----

    def payment_defaults(self, payment_type=ADVANCE):
        """Seed for the payment form; a settlement starts at the outstanding balance"""
        if payment_type not in PAYMENT_TYPES:
            raise ValidationError(f'Payment type must be one of {", ".join(PAYMENT_TYPES)}')
        return {
            'type': payment_type,
            'method': PAYMENT_METHODS[0],
            'date': today(self.tz_name).isoformat(),
            'amount': self.summary.balance if payment_type == SETTLEMENT else 0,
        }

    def _payment_fields(self, payment_type, method, date, amount, notes=None):
        if payment_type not in PAYMENT_TYPES:
            raise ValidationError(f'Payment type must be one of {", ".join(PAYMENT_TYPES)}')
        if method not in PAYMENT_METHODS:
            raise ValidationError(f'Payment method must be one of {", ".join(PAYMENT_METHODS)}')
        amount = _required_number(amount, 'Payment amount')
        if amount <= 0:
            raise ValidationError('Payment amount must be greater than zero')
        paid_on = parse_date(date) if date else today(self.tz_name)
        if paid_on is None:
            raise ValidationError(f'Invalid payment date: {date}')
        return {
            'type': payment_type,
            'method': method,
            'date': paid_on.isoformat(),
            'amount': round(amount, 2),
            'notes': notes,
        }

    def add_payment(self, payment_type, method, date=None, amount=0, notes=None):
        ensure_accepts_charges(self.reservation)
        return self._save(PAYMENT, self._payment_fields(payment_type, method, date, amount, notes))

    def edit_payment(self, payment_id, payment_type=None, method=None, date=None, amount=None, notes=None):
        ensure_accepts_charges(self.reservation)
        current = self._find(PAYMENT, payment_id).data
        fields = self._payment_fields(
            current.get('type') if payment_type is None else payment_type,
            current.get('method') if method is None else method,
            current.get('date') if date is None else date,
            current.get('amount') if amount is None else amount,
            current.get('notes') if notes is None else notes,
        )
        return self._save(PAYMENT, fields, payment_id)

    def delete_payment(self, payment_id):
        ensure_accepts_charges(self.reservation)
        self._remove(PAYMENT, payment_id)

    # ---- discounts ----

    def add_discount(self, name, amount, date=None):
        ensure_accepts_charges(self.reservation)
        name = (name or '').strip()
        if not name:
            raise ValidationError('Discount name is required')
        amount = _required_number(amount, 'Discount amount')
        if amount <= 0:
            raise ValidationError('Discount amount must be greater than zero')
        given_on = parse_date(date) if date else today(self.tz_name)
        if given_on is None:
            raise ValidationError(f'Invalid discount date: {date}')
        return self._save(DISCOUNT, {'name': name, 'amount': round(amount, 2), 'date': given_on.isoformat()})

    def delete_discount(self, discount_id):
        ensure_accepts_charges(self.reservation)
        self._remove(DISCOUNT, discount_id)

    # ---- drafts ----

    def pending_rows(self):
        return [row for kind in TABLES for row in self.rows[kind] if row.pending]

    def attach(self, reservation):
        """Write the staged rows against a freshly saved reservation"""
        self.reservation = reservation
        for kind, table in TABLES.items():
            staged = [r for r in self.rows[kind] if r.pending]
            # staged rows are newest first
            for row in reversed(staged):
                self.store.insert(table, {**row.data, 'reservation_id': self.reservation_id})
            self.reload(kind)
        return self

    def to_dict(self):
        summary = self.summary
        rooms = [
            {**room, 'nights': summary.nights, 'amount': round(to_number(room.get('rate')) * summary.nights, 2)}
            for room in self.rooms
        ]
        return {
            'reservation': self.reservation,
            'guest': self.guest,
            'guests': self.guests,
            'rooms': rooms,
            'services': [r.to_dict() for r in self.services],
            'foods': [r.to_dict() for r in self.foods],
            'payments': [r.to_dict() for r in self.payments],
            'discounts': [r.to_dict() for r in self.discounts],
            'summary': summary_to_dict(summary),
            'accepts_charges': accepts_charges(self.reservation.get('status')),
        }
