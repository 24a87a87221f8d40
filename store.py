"""
Generic collection gateway over the SQLAlchemy models.

Services talk to named collections ('reservations', 'payments', ...) and get
plain dictionaries back, the same shape the API returns. Database failures
are rolled back, logged and re-raised as StoreError.

Writes commit one at a time unless they run inside transaction(), which
flushes each write and commits them together.
"""
import logging
from contextlib import contextmanager
from datetime import datetime

from sqlalchemy.exc import SQLAlchemyError

from errors import NotFoundError, StoreError, ValidationError
from extensions import db
from formatting import parse_date
from models import (
    Room, Guest, Service, MenuItem, Reservation, ReservationRoom, ReservationGuest,
    ReservationService, ReservationFood, Payment, Discount, Expense,
)

logger = logging.getLogger(__name__)

COLLECTIONS = {
    'reservations': Reservation,
    'rooms': Room,
    'guests': Guest,
    'services': Service,
    'menus': MenuItem,
    'reservation_services': ReservationService,
    'reservation_foods': ReservationFood,
    'reservation_guests': ReservationGuest,
    'reservation_rooms': ReservationRoom,
    'payments': Payment,
    'discounts': Discount,
    'expenses': Expense,
}

READ_ONLY_FIELDS = ('id', 'created_at', 'updated_at')


class TableStore:
    def __init__(self, session=None):
        self.session = session or db.session
        self._in_transaction = False

    def model(self, name):
        try:
            return COLLECTIONS[name]
        except KeyError:
            raise ValueError(f'Unknown collection: {name}')

    def _coerce(self, model, data, writable=True):
        values = {}
        columns = model.__table__.columns
        for key, value in (data or {}).items():
            if key not in columns:
                if not writable:
                    raise ValidationError(f"Unknown field for {model.__tablename__}: {key}")
                continue
            if writable and key in READ_ONLY_FIELDS:
                continue
            column_type = columns[key].type
            if isinstance(column_type, db.DateTime):
                if isinstance(value, str):
                    try:
                        value = datetime.fromisoformat(value)
                    except ValueError:
                        raise ValidationError(f"Invalid timestamp for {key}: {value}")
            elif isinstance(column_type, db.Date):
                if value is not None and parse_date(value) is None:
                    raise ValidationError(f"Invalid date for {key}: {value}")
                value = parse_date(value)
            values[key] = value
        return values

    @contextmanager
    def transaction(self):
        """Run several writes as one unit; any failure rolls all of them back"""
        if self._in_transaction:
            yield self
            return
        self._in_transaction = True
        try:
            yield self
            self.session.commit()
        except SQLAlchemyError as e:
            self._fail('transaction', 'commit', e)
        except Exception:
            self.session.rollback()
            logger.warning("Transaction rolled back")
            raise
        finally:
            self._in_transaction = False

    def _commit(self):
        if self._in_transaction:
            self.session.flush()
        else:
            self.session.commit()

    def _fail(self, name, action, error):
        self.session.rollback()
        logger.error("Store %s on '%s' failed: %s", action, name, error)
        raise StoreError(f'Failed to {action} {name}') from error

    def _query(self, model, filters):
        query = self.session.query(model)
        for key, value in (filters or {}).items():
            column = getattr(model, key)
            if isinstance(value, (list, tuple, set)):
                query = query.filter(column.in_(list(value)))
            else:
                query = query.filter(column == value)
        return query

    def select(self, name, filters=None, order_by=None, descending=False, limit=None):
        """Filtered, ordered read of a collection"""
        model = self.model(name)
        try:
            query = self._query(model, self._coerce(model, filters, writable=False) if filters else None)
            if order_by:
                if order_by not in model.__table__.columns:
                    raise ValidationError(f"Unknown field for {name}: {order_by}")
                column = getattr(model, order_by)
                if descending:
                    query = query.order_by(column.desc(), model.id.desc())
                else:
                    query = query.order_by(column.asc(), model.id.asc())
            if limit:
                query = query.limit(limit)
            return [row.to_dict() for row in query.all()]
        except SQLAlchemyError as e:
            self._fail(name, 'select', e)

    def get(self, name, row_id):
        model = self.model(name)
        try:
            row = self.session.get(model, row_id)
        except SQLAlchemyError as e:
            self._fail(name, 'select', e)
        return row.to_dict() if row else None

    def insert(self, name, data):
        model = self.model(name)
        try:
            row = model(**self._coerce(model, data))
            self.session.add(row)
            self._commit()
            logger.debug("Inserted %s #%s", name, row.id)
            return row.to_dict()
        except SQLAlchemyError as e:
            self._fail(name, 'insert', e)

    def update(self, name, row_id, data):
        model = self.model(name)
        try:
            row = self.session.get(model, row_id)
            if row is None:
                raise NotFoundError(f'{name} #{row_id} not found')
            for key, value in self._coerce(model, data).items():
                setattr(row, key, value)
            self._commit()
            return row.to_dict()
        except SQLAlchemyError as e:
            self._fail(name, 'update', e)

    def delete(self, name, row_id):
        model = self.model(name)
        try:
            row = self.session.get(model, row_id)
            if row is None:
                raise NotFoundError(f'{name} #{row_id} not found')
            self.session.delete(row)
            self._commit()
        except SQLAlchemyError as e:
            self._fail(name, 'delete', e)

    def booked_room_ids(self, start, end):
        """Rooms held by a non-cancelled reservation overlapping [start, end)"""
        start = parse_date(start)
        end = parse_date(end)
        try:
            rows = self.session.query(ReservationRoom.room_id).join(
                Reservation, ReservationRoom.reservation_id == Reservation.id
            ).filter(
                Reservation.status != 'cancelled',
                Reservation.check_in_date < end,
                Reservation.check_out_date > start,
            ).all()
        except SQLAlchemyError as e:
            self._fail('reservation_rooms', 'select', e)
        return {r[0] for r in rows}
