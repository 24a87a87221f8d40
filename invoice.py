"""
Printable bill for a reservation
"""
from formatting import format_amount, local_now, parse_date, to_number

EMPTY_ROW_MARK = '—'


def _guest_lines(ledger, summary):
    reservation = ledger.reservation
    guest = ledger.guest or {}
    document = guest.get('nic_number') or guest.get('passport_number') or '-'
    rooms = ', '.join(r.get('number') or '' for r in ledger.rooms) or '-'
    return [
        f"Guest: {guest.get('name') or '-'} ({document})",
        f"Phone: {guest.get('phone') or '-'}   Email: {guest.get('email') or '-'}",
        f"Check-in: {reservation.get('check_in_date') or '-'}   Check-out: {reservation.get('check_out_date') or '-'}",
        f"Rooms: {rooms}",
        f"Nights: {summary.nights}",
    ]


def _item_rows(rows):
    if not rows:
        return [[EMPTY_ROW_MARK, EMPTY_ROW_MARK, EMPTY_ROW_MARK, format_amount(0)]]
    return [
        [r.data.get('title'), f"{to_number(r.data.get('qty')):g}",
         format_amount(r.data.get('rate')), format_amount(r.data.get('amount'))]
        for r in rows
    ]


def _payment_rows(rows):
    if not rows:
        return [[EMPTY_ROW_MARK, EMPTY_ROW_MARK, EMPTY_ROW_MARK, format_amount(0)]]
    out = []
    for r in rows:
        paid_on = parse_date(r.data.get('date'))
        out.append([r.data.get('type'), r.data.get('method'),
                    paid_on.isoformat() if paid_on else '-', format_amount(r.data.get('amount'))])
    return out


def build_invoice(ledger, hotel_name, now=None):
    """
    Everything the printed bill shows, already formatted.

    Tables are lists of rows under a header; empty sections get a single
    placeholder row so the printout keeps its shape.
    """
    summary = ledger.summary
    now = now or local_now(ledger.tz_name)
    code = ledger.reservation.get('code') or 'reservation'

    totals = [
        ['Room Charges', format_amount(summary.room_charges)],
        ['Other Charges', format_amount(summary.other_charges)],
    ]
    if summary.discounts:
        totals.append(['Discounts', format_amount(summary.discounts)])
    totals += [
        ['Total', format_amount(summary.total)],
        ['Paid', format_amount(summary.paid)],
        ['Balance', format_amount(summary.balance)],
    ]

    return {
        'title': 'Hotel Bill / Invoice',
        'hotel_name': hotel_name,
        'code': code,
        'generated_at': now.strftime('%Y-%m-%d %H:%M'),
        'status': ledger.reservation.get('status'),
        'cancelled_at': ledger.reservation.get('cancelled_at'),
        'balance_due': summary.balance,
        'guest_lines': _guest_lines(ledger, summary),
        'rooms': {
            'head': ['Room', 'Type', 'Rate (LKR)', 'Nights', 'Amount (LKR)'],
            'body': [
                [r.get('number'), r.get('type'), format_amount(r.get('rate')), summary.nights,
                 format_amount(to_number(r.get('rate')) * summary.nights)]
                for r in ledger.rooms
            ],
        },
        'services': {
            'head': ['Service', 'Qty', 'Rate (LKR)', 'Amount (LKR)'],
            'body': _item_rows(ledger.services),
        },
        'foods': {
            'head': ['Food', 'Qty', 'Rate (LKR)', 'Amount (LKR)'],
            'body': _item_rows(ledger.foods),
        },
        'payments': {
            'head': ['Type', 'Method', 'Date', 'Amount (LKR)'],
            'body': _payment_rows(ledger.payments),
        },
        'totals': {
            'head': ['Label', 'Amount (LKR)'],
            'body': totals,
        },
    }
