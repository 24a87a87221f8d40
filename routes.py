import logging
from datetime import datetime

from flask import Blueprint, Response, current_app, jsonify, render_template, request

from availability import available_rooms
from billing import summary_to_dict
from booking import (
    create_reservation, filter_reservations, find_guest_by_document, find_or_create_guest, search_guests,
)
from catalog import CATALOG_TABLES, CatalogSnapshot, validate_entry
from errors import FrontDeskError, NotFoundError, ValidationError
from inventory import delete_room as remove_room, normalize_room, search_rooms
from invoice import build_invoice
from ledger import ADVANCE, FOOD, SERVICE, ReservationLedger
from lifecycle import STATUSES, cancel_reservation
from reports import (
    EXPENSE_CATEGORIES, cashflow, expenses_csv, export_filename, filter_expenses, filter_in_range,
    ledger_csv, merged_ledger, payments_csv, resolve_range, validate_expense,
)
from store import TableStore

logger = logging.getLogger(__name__)

# Create API blueprint
api_bp = Blueprint('front_desk_api', __name__, url_prefix='/api')

LINE_ITEM_KINDS = {'services': SERVICE, 'foods': FOOD}


@api_bp.errorhandler(FrontDeskError)
def handle_front_desk_error(error):
    if error.status_code >= 500:
        logger.error("Request to %s failed: %s", request.path, error.message)
    return jsonify(error.to_dict()), error.status_code


def _store():
    return TableStore()


def _tz():
    return current_app.config['HOTEL_TIMEZONE']


def _payload():
    data = request.get_json(silent=True)
    if not isinstance(data, dict):
        raise ValidationError('Request body must be a JSON object')
    return data


def _ledger(reservation_id):
    return ReservationLedger.load(_store(), reservation_id, _tz())


def _ledger_response(ledger, code=200, **extra):
    return jsonify({'success': True, **extra, 'ledger': ledger.to_dict()}), code


@api_bp.route('/health', methods=['GET'])
def health_check():
    """Health check endpoint"""
    return jsonify({
        'status': 'healthy',
        'hotel': current_app.config['HOTEL_NAME'],
        'timestamp': datetime.utcnow().isoformat(),
    }), 200


# ---- rooms ----

@api_bp.route('/rooms', methods=['GET'])
def list_rooms():
    rooms = search_rooms(_store().select('rooms', order_by='number'), request.args.get('q'))
    return jsonify({'success': True, 'data': rooms}), 200


@api_bp.route('/rooms/available', methods=['GET'])
def list_available_rooms():
    """Rooms free for the whole stay ?from=YYYY-MM-DD&to=YYYY-MM-DD"""
    rooms = available_rooms(
        _store(),
        request.args.get('from'),
        request.args.get('to'),
        min_capacity=request.args.get('min_capacity'),
        room_type=request.args.get('room_type'),
    )
    return jsonify({'success': True, 'data': rooms}), 200


@api_bp.route('/rooms/<int:room_id>', methods=['GET'])
def get_room(room_id):
    room = _store().get('rooms', room_id)
    if room is None:
        raise NotFoundError('Room not found')
    return jsonify({'success': True, 'data': room}), 200


@api_bp.route('/rooms', methods=['POST'])
def create_room():
    room = _store().insert('rooms', normalize_room(_payload()))
    logger.info("Room %s added", room['number'])
    return jsonify({'success': True, 'message': 'Room created', 'data': room}), 201


@api_bp.route('/rooms/<int:room_id>', methods=['PUT', 'PATCH'])
def update_room(room_id):
    room = _store().update('rooms', room_id, normalize_room(_payload(), partial=True))
    return jsonify({'success': True, 'message': 'Room updated', 'data': room}), 200


@api_bp.route('/rooms/<int:room_id>', methods=['DELETE'])
def delete_room(room_id):
    remove_room(_store(), room_id)
    return jsonify({'success': True, 'message': 'Room deleted'}), 200


# ---- guests ----

@api_bp.route('/guests', methods=['GET'])
def list_guests():
    document = request.args.get('document')
    if document:
        guest = find_guest_by_document(_store(), document)
        return jsonify({'success': True, 'data': guest}), 200
    guests = search_guests(_store().select('guests', order_by='name'),
                           request.args.get('q'), request.args.get('country'))
    return jsonify({'success': True, 'data': guests}), 200


@api_bp.route('/guests/<int:guest_id>', methods=['GET'])
def get_guest(guest_id):
    guest = _store().get('guests', guest_id)
    if guest is None:
        raise NotFoundError('Guest not found')
    return jsonify({'success': True, 'data': guest}), 200


@api_bp.route('/guests', methods=['POST'])
def create_guest():
    guest = find_or_create_guest(_store(), _payload())
    return jsonify({'success': True, 'data': guest}), 201


# ---- catalog ----

def _catalog_kind(kind):
    if kind not in CATALOG_TABLES:
        raise NotFoundError(f'Unknown catalog: {kind}')
    return kind


@api_bp.route('/catalog', methods=['GET'])
def get_catalog():
    """Active service and food entries for the line item pickers"""
    return jsonify({'success': True, 'data': CatalogSnapshot.load(_store()).to_dict()}), 200


@api_bp.route('/catalog/<kind>/prefill', methods=['GET'])
def prefill_line_item(kind):
    snapshot = CatalogSnapshot.load(_store())
    return jsonify({'success': True, 'data': snapshot.prefill(_catalog_kind(kind), request.args.get('title'))}), 200


@api_bp.route('/catalog/<kind>', methods=['GET'])
def list_catalog(kind):
    table = CATALOG_TABLES[_catalog_kind(kind)]
    return jsonify({'success': True, 'data': _store().select(table, order_by='title')}), 200


@api_bp.route('/catalog/<kind>', methods=['POST'])
def create_catalog_entry(kind):
    table = CATALOG_TABLES[_catalog_kind(kind)]
    entry = _store().insert(table, validate_entry(kind, _payload()))
    return jsonify({'success': True, 'data': entry}), 201


@api_bp.route('/catalog/<kind>/<int:entry_id>', methods=['PUT', 'PATCH'])
def update_catalog_entry(kind, entry_id):
    table = CATALOG_TABLES[_catalog_kind(kind)]
    entry = _store().update(table, entry_id, validate_entry(kind, _payload(), partial=True))
    return jsonify({'success': True, 'data': entry}), 200


@api_bp.route('/catalog/<kind>/<int:entry_id>', methods=['DELETE'])
def delete_catalog_entry(kind, entry_id):
    _store().delete(CATALOG_TABLES[_catalog_kind(kind)], entry_id)
    return jsonify({'success': True, 'message': 'Catalog entry deleted'}), 200


# ---- reservations ----

@api_bp.route('/reservations', methods=['GET'])
def list_reservations():
    store = _store()
    filters = {}
    status = request.args.get('status')
    if status:
        if status not in STATUSES:
            raise ValidationError(f'Unknown status: {status}')
        filters['status'] = status

    reservations = store.select('reservations', filters, order_by='check_in_date', descending=True)
    data = []
    for reservation in reservations:
        ledger = ReservationLedger.load(store, reservation['id'], _tz())
        guest = ledger.guest or {}
        data.append({
            **reservation,
            'guest_name': guest.get('name'),
            'rooms': [r.get('number') for r in ledger.rooms],
            'room_types': sorted({r.get('type') for r in ledger.rooms if r.get('type')}),
            'summary': summary_to_dict(ledger.summary),
        })
    data = filter_reservations(data, request.args.get('q'), request.args.get('from'), request.args.get('to'))
    return jsonify({'success': True, 'data': data}), 200


@api_bp.route('/reservations', methods=['POST'])
def book_reservation():
    ledger = create_reservation(_store(), _payload(), _tz())
    return _ledger_response(ledger, 201, message=f"Reservation {ledger.reservation['code']} created")


@api_bp.route('/reservations/<int:reservation_id>', methods=['GET'])
def get_reservation(reservation_id):
    return _ledger_response(_ledger(reservation_id))


@api_bp.route('/reservations/<int:reservation_id>/cancel', methods=['POST'])
def cancel(reservation_id):
    reservation = cancel_reservation(_store(), reservation_id)
    return _ledger_response(_ledger(reservation_id), message=f"Reservation {reservation['code']} cancelled")


# ---- services & foods ----

def _line_item_kind(collection):
    if collection not in LINE_ITEM_KINDS:
        raise NotFoundError(f'Unknown line item collection: {collection}')
    return LINE_ITEM_KINDS[collection]


@api_bp.route('/reservations/<int:reservation_id>/<collection>', methods=['POST'])
def add_line_item(reservation_id, collection):
    kind = _line_item_kind(collection)
    data = _payload()
    ledger = _ledger(reservation_id)
    ledger.add_line_item(kind, data.get('title'), data.get('qty', 1), data.get('rate'))
    return _ledger_response(ledger, 201)


@api_bp.route('/reservations/<int:reservation_id>/<collection>/<int:item_id>', methods=['PUT', 'PATCH'])
def edit_line_item(reservation_id, collection, item_id):
    kind = _line_item_kind(collection)
    data = _payload()
    ledger = _ledger(reservation_id)
    ledger.edit_line_item(item_id, kind, qty=data.get('qty'), rate=data.get('rate'), title=data.get('title'))
    return _ledger_response(ledger)


@api_bp.route('/reservations/<int:reservation_id>/<collection>/<int:item_id>', methods=['DELETE'])
def delete_line_item(reservation_id, collection, item_id):
    kind = _line_item_kind(collection)
    ledger = _ledger(reservation_id)
    ledger.delete_line_item(item_id, kind)
    return _ledger_response(ledger)


# ---- payments ----

@api_bp.route('/reservations/<int:reservation_id>/payments/defaults', methods=['GET'])
def payment_defaults(reservation_id):
    """Payment form seed; ?type=Settlement starts at the outstanding balance"""
    defaults = _ledger(reservation_id).payment_defaults(request.args.get('type', ADVANCE))
    return jsonify({'success': True, 'data': defaults}), 200


@api_bp.route('/reservations/<int:reservation_id>/payments', methods=['POST'])
def add_payment(reservation_id):
    data = _payload()
    ledger = _ledger(reservation_id)
    ledger.add_payment(data.get('type'), data.get('method'), data.get('date'), data.get('amount'), data.get('notes'))
    return _ledger_response(ledger, 201)


@api_bp.route('/reservations/<int:reservation_id>/payments/<int:payment_id>', methods=['PUT', 'PATCH'])
def edit_payment(reservation_id, payment_id):
    data = _payload()
    ledger = _ledger(reservation_id)
    ledger.edit_payment(payment_id, data.get('type'), data.get('method'), data.get('date'),
                        data.get('amount'), data.get('notes'))
    return _ledger_response(ledger)


@api_bp.route('/reservations/<int:reservation_id>/payments/<int:payment_id>', methods=['DELETE'])
def delete_payment(reservation_id, payment_id):
    ledger = _ledger(reservation_id)
    ledger.delete_payment(payment_id)
    return _ledger_response(ledger)


# ---- discounts ----

@api_bp.route('/reservations/<int:reservation_id>/discounts', methods=['POST'])
def add_discount(reservation_id):
    data = _payload()
    ledger = _ledger(reservation_id)
    ledger.add_discount(data.get('name'), data.get('amount'), data.get('date'))
    return _ledger_response(ledger, 201)


@api_bp.route('/reservations/<int:reservation_id>/discounts/<int:discount_id>', methods=['DELETE'])
def delete_discount(reservation_id, discount_id):
    ledger = _ledger(reservation_id)
    ledger.delete_discount(discount_id)
    return _ledger_response(ledger)


# ---- invoice ----

@api_bp.route('/reservations/<int:reservation_id>/invoice', methods=['GET'])
def invoice(reservation_id):
    """Printable bill as HTML, or ?format=json for the raw tables"""
    bill = build_invoice(_ledger(reservation_id), current_app.config['HOTEL_NAME'])
    if request.args.get('format') == 'json':
        return jsonify({'success': True, 'data': bill}), 200
    return render_template('invoice.html', invoice=bill)


# ---- expenses ----

@api_bp.route('/expenses', methods=['GET'])
def list_expenses():
    start, end = resolve_range(request.args.get('from'), request.args.get('to'), _tz())
    expenses = filter_in_range(_store().select('expenses', order_by='date', descending=True), start, end)
    expenses = filter_expenses(expenses, request.args.get('category'), request.args.get('q'))
    return jsonify({
        'success': True,
        'data': expenses,
        'categories': list(EXPENSE_CATEGORIES),
        'from': start.isoformat(),
        'to': end.isoformat(),
    }), 200


@api_bp.route('/expenses', methods=['POST'])
def create_expense():
    expense = _store().insert('expenses', validate_expense(_payload(), _tz()))
    logger.info("Expense %s recorded: %s", expense['title'], expense['amount'])
    return jsonify({'success': True, 'message': 'Expense recorded', 'data': expense}), 201


@api_bp.route('/expenses/<int:expense_id>', methods=['DELETE'])
def delete_expense(expense_id):
    _store().delete('expenses', expense_id)
    return jsonify({'success': True, 'message': 'Expense deleted'}), 200


# ---- reports ----

def _report_rows():
    store = _store()
    start, end = resolve_range(request.args.get('from'), request.args.get('to'), _tz())
    payments = filter_in_range(store.select('payments', order_by='date'), start, end)
    expenses = filter_in_range(store.select('expenses', order_by='date'), start, end)
    return start, end, payments, expenses


def _csv_response(body, filename):
    return Response(body, mimetype='text/csv',
                    headers={'Content-Disposition': f'attachment; filename={filename}'})


@api_bp.route('/reports/summary', methods=['GET'])
def report_summary():
    start, end, payments, expenses = _report_rows()
    return jsonify({
        'success': True,
        'from': start.isoformat(),
        'to': end.isoformat(),
        'totals': cashflow(payments, expenses),
        'ledger': merged_ledger(payments, expenses),
    }), 200


@api_bp.route('/reports/payments.csv', methods=['GET'])
def export_payments():
    start, end, payments, _ = _report_rows()
    return _csv_response(payments_csv(payments), export_filename('payments', start, end))


@api_bp.route('/reports/expenses.csv', methods=['GET'])
def export_expenses():
    start, end, _, expenses = _report_rows()
    return _csv_response(expenses_csv(expenses), export_filename('expenses', start, end))


@api_bp.route('/reports/ledger.csv', methods=['GET'])
def export_ledger():
    start, end, payments, expenses = _report_rows()
    return _csv_response(ledger_csv(merged_ledger(payments, expenses)), export_filename('ledger', start, end))
