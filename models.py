from datetime import datetime
from extensions import db


def _iso(value):
    return value.isoformat() if value else None


# ============================================
# INVENTORY & CATALOG
# ============================================

class Room(db.Model):
    """Individual room records"""
    __tablename__ = 'rooms'

    id = db.Column(db.Integer, primary_key=True)
    number = db.Column(db.String(10), nullable=False, unique=True)
    type = db.Column(db.String(50), nullable=False)
    capacity = db.Column(db.Integer)
    price = db.Column(db.Float)  # current list price per night
    facilities = db.Column(db.JSON, default=list)
    description = db.Column(db.Text)
    created_at = db.Column(db.DateTime, default=datetime.utcnow)

    def to_dict(self):
        return {
            'id': self.id,
            'number': self.number,
            'type': self.type,
            'capacity': self.capacity or 0,
            'price': float(self.price) if self.price else 0.0,
            'facilities': self.facilities or [],
            'description': self.description or '',
            'created_at': _iso(self.created_at),
        }

    def __repr__(self):
        return f'<Room {self.number}>'


class Service(db.Model):
    """Service catalog entry (laundry, airport pickup, ...)"""
    __tablename__ = 'services'

    id = db.Column(db.Integer, primary_key=True)
    title = db.Column(db.String(100), nullable=False)
    rate = db.Column(db.Float, nullable=False, default=0.0)
    status = db.Column(db.String(20), default='active')  # active, inactive
    created_at = db.Column(db.DateTime, default=datetime.utcnow)

    def to_dict(self):
        return {
            'id': self.id,
            'title': self.title,
            'rate': float(self.rate or 0),
            'status': self.status,
            'created_at': _iso(self.created_at),
        }

    def __repr__(self):
        return f'<Service {self.title}>'


class MenuItem(db.Model):
    """Food catalog entry"""
    __tablename__ = 'menus'

    id = db.Column(db.Integer, primary_key=True)
    title = db.Column(db.String(100), nullable=False)
    rate = db.Column(db.Float, nullable=False, default=0.0)
    category = db.Column(db.String(50))
    status = db.Column(db.String(20), default='active')
    created_at = db.Column(db.DateTime, default=datetime.utcnow)

    def to_dict(self):
        return {
            'id': self.id,
            'title': self.title,
            'rate': float(self.rate or 0),
            'category': self.category,
            'status': self.status,
            'created_at': _iso(self.created_at),
        }

    def __repr__(self):
        return f'<MenuItem {self.title}>'


# ============================================
# GUESTS & RESERVATIONS
# ============================================

class Guest(db.Model):
    __tablename__ = 'guests'

    id = db.Column(db.Integer, primary_key=True)
    name = db.Column(db.String(100), nullable=False)
    nic_number = db.Column(db.String(20), unique=True)
    passport_number = db.Column(db.String(20), unique=True)
    email = db.Column(db.String(120))
    phone = db.Column(db.String(30))
    address = db.Column(db.Text)
    city = db.Column(db.String(100))
    country = db.Column(db.String(100))
    nationality = db.Column(db.String(100))
    dob = db.Column(db.Date)
    notes = db.Column(db.Text)
    created_at = db.Column(db.DateTime, default=datetime.utcnow)

    def to_dict(self):
        return {
            'id': self.id,
            'name': self.name,
            'nic_number': self.nic_number,
            'passport_number': self.passport_number,
            'email': self.email,
            'phone': self.phone,
            'address': self.address,
            'city': self.city,
            'country': self.country,
            'nationality': self.nationality,
            'dob': _iso(self.dob),
            'notes': self.notes,
            'created_at': _iso(self.created_at),
        }

    def __repr__(self):
        return f'<Guest {self.name}>'


class Reservation(db.Model):
    __tablename__ = 'reservations'

    id = db.Column(db.Integer, primary_key=True)
    code = db.Column(db.String(20), unique=True, nullable=False)

    check_in_date = db.Column(db.Date, nullable=False)
    check_out_date = db.Column(db.Date, nullable=False)

    # Reservation status: confirmed, cancelled, checked_out
    status = db.Column(db.String(20), default='confirmed')
    notes = db.Column(db.Text)
    special_requests = db.Column(db.Text)

    guest_id = db.Column(db.Integer, db.ForeignKey('guests.id'))
    cancelled_at = db.Column(db.DateTime)

    created_at = db.Column(db.DateTime, default=datetime.utcnow)
    updated_at = db.Column(db.DateTime, default=datetime.utcnow, onupdate=datetime.utcnow)

    guest = db.relationship('Guest', backref=db.backref('reservations', lazy='dynamic'))

    def to_dict(self):
        return {
            'id': self.id,
            'code': self.code,
            'check_in_date': _iso(self.check_in_date),
            'check_out_date': _iso(self.check_out_date),
            'status': self.status,
            'notes': self.notes,
            'special_requests': self.special_requests,
            'guest_id': self.guest_id,
            'cancelled_at': _iso(self.cancelled_at),
            'created_at': _iso(self.created_at),
            'updated_at': _iso(self.updated_at),
        }

    def __repr__(self):
        return f'<Reservation {self.code}>'


class ReservationRoom(db.Model):
    """Room booked on a reservation with the nightly rate agreed at booking"""
    __tablename__ = 'reservation_rooms'

    id = db.Column(db.Integer, primary_key=True)
    reservation_id = db.Column(db.Integer, db.ForeignKey('reservations.id'), nullable=False)
    room_id = db.Column(db.Integer, db.ForeignKey('rooms.id'), nullable=False)
    rate = db.Column(db.Float, nullable=False)

    room = db.relationship('Room')

    __table_args__ = (db.UniqueConstraint('reservation_id', 'room_id', name='_reservation_room_uc'),)

    def to_dict(self):
        return {
            'id': self.id,
            'reservation_id': self.reservation_id,
            'room_id': self.room_id,
            'rate': float(self.rate or 0),
            'number': self.room.number if self.room else None,
            'type': self.room.type if self.room else None,
        }

    def __repr__(self):
        return f'<ReservationRoom {self.reservation_id}:{self.room_id}>'


class ReservationGuest(db.Model):
    __tablename__ = 'reservation_guests'

    id = db.Column(db.Integer, primary_key=True)
    reservation_id = db.Column(db.Integer, db.ForeignKey('reservations.id'), nullable=False)
    guest_id = db.Column(db.Integer, db.ForeignKey('guests.id'), nullable=False)

    guest = db.relationship('Guest')

    def to_dict(self):
        data = self.guest.to_dict() if self.guest else {}
        data.update({
            'id': self.id,
            'reservation_id': self.reservation_id,
            'guest_id': self.guest_id,
        })
        return data

    def __repr__(self):
        return f'<ReservationGuest {self.reservation_id}:{self.guest_id}>'


# ============================================
# BILLING ROWS
# ============================================

class ReservationService(db.Model):
    __tablename__ = 'reservation_services'

    id = db.Column(db.Integer, primary_key=True)
    reservation_id = db.Column(db.Integer, db.ForeignKey('reservations.id'), nullable=False)
    title = db.Column(db.String(100), nullable=False)
    qty = db.Column(db.Float, nullable=False, default=1)
    rate = db.Column(db.Float, nullable=False, default=0.0)
    amount = db.Column(db.Float, nullable=False, default=0.0)  # qty * rate
    created_at = db.Column(db.DateTime, default=datetime.utcnow)

    def to_dict(self):
        return {
            'id': self.id,
            'reservation_id': self.reservation_id,
            'title': self.title,
            'qty': self.qty,
            'rate': float(self.rate or 0),
            'amount': float(self.amount or 0),
            'created_at': _iso(self.created_at),
        }

    def __repr__(self):
        return f'<ReservationService {self.title} x{self.qty}>'


class ReservationFood(db.Model):
    __tablename__ = 'reservation_foods'

    id = db.Column(db.Integer, primary_key=True)
    reservation_id = db.Column(db.Integer, db.ForeignKey('reservations.id'), nullable=False)
    title = db.Column(db.String(100), nullable=False)
    qty = db.Column(db.Float, nullable=False, default=1)
    rate = db.Column(db.Float, nullable=False, default=0.0)
    amount = db.Column(db.Float, nullable=False, default=0.0)  # qty * rate
    created_at = db.Column(db.DateTime, default=datetime.utcnow)

    def to_dict(self):
        return {
            'id': self.id,
            'reservation_id': self.reservation_id,
            'title': self.title,
            'qty': self.qty,
            'rate': float(self.rate or 0),
            'amount': float(self.amount or 0),
            'created_at': _iso(self.created_at),
        }

    def __repr__(self):
        return f'<ReservationFood {self.title} x{self.qty}>'


class Payment(db.Model):
    __tablename__ = 'payments'

    id = db.Column(db.Integer, primary_key=True)
    reservation_id = db.Column(db.Integer, db.ForeignKey('reservations.id'), nullable=False)
    type = db.Column(db.String(20), nullable=False)  # 'Advance', 'Settlement'
    method = db.Column(db.String(20), nullable=False)  # 'Cash', 'Card', 'Bank Transfer'
    date = db.Column(db.Date, nullable=False)
    amount = db.Column(db.Float, nullable=False)
    notes = db.Column(db.Text)
    created_at = db.Column(db.DateTime, default=datetime.utcnow)

    def to_dict(self):
        return {
            'id': self.id,
            'reservation_id': self.reservation_id,
            'type': self.type,
            'method': self.method,
            'date': _iso(self.date),
            'amount': float(self.amount or 0),
            'notes': self.notes,
            'created_at': _iso(self.created_at),
        }

    def __repr__(self):
        return f'<Payment {self.id} - {self.method} - {self.amount}>'


class Discount(db.Model):
    __tablename__ = 'discounts'

    id = db.Column(db.Integer, primary_key=True)
    reservation_id = db.Column(db.Integer, db.ForeignKey('reservations.id'), nullable=False)
    name = db.Column(db.String(100), nullable=False)
    date = db.Column(db.Date, nullable=False)
    amount = db.Column(db.Float, nullable=False)
    created_at = db.Column(db.DateTime, default=datetime.utcnow)

    def to_dict(self):
        return {
            'id': self.id,
            'reservation_id': self.reservation_id,
            'name': self.name,
            'date': _iso(self.date),
            'amount': float(self.amount or 0),
            'created_at': _iso(self.created_at),
        }

    def __repr__(self):
        return f'<Discount {self.name} {self.amount}>'


class Expense(db.Model):
    __tablename__ = 'expenses'

    id = db.Column(db.Integer, primary_key=True)
    title = db.Column(db.String(200), nullable=False)
    category = db.Column(db.String(50), nullable=False)
    amount = db.Column(db.Float, nullable=False)
    date = db.Column(db.Date, nullable=False)
    notes = db.Column(db.Text)
    created_at = db.Column(db.DateTime, default=datetime.utcnow)

    def to_dict(self):
        return {
            'id': self.id,
            'title': self.title,
            'category': self.category,
            'amount': float(self.amount or 0),
            'date': _iso(self.date),
            'notes': self.notes,
            'created_at': _iso(self.created_at),
        }

    def __repr__(self):
        return f'<Expense {self.title} {self.amount}>'
