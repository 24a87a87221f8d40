"""
Reservation billing aggregation.

Turns the rows attached to a reservation into the figures shown on the
reservation screen and printed on the bill. Nothing here touches the
database; totals are always derived fresh from the rows passed in.
"""
from collections import namedtuple

from formatting import nights_between, to_number

BillingSummary = namedtuple('BillingSummary', [
    'nights',
    'room_charges',
    'other_charges',
    'discounts',
    'total',
    'paid',
    'balance',
])


def _field(row, name):
    if row is None:
        return 0.0
    if isinstance(row, dict):
        return to_number(row.get(name))
    return to_number(getattr(row, name, None))


def _sum(rows, name='amount'):
    return sum(_field(r, name) for r in (rows or []))


def line_amount(qty, rate):
    """Amount of a service or food line"""
    return round(to_number(qty) * to_number(rate), 2)


def summarize(check_in, check_out, rooms=(), services=(), foods=(), payments=(), discounts=()):
    """
    Compute the billing figures for one reservation.

    rooms carry the nightly rate captured at booking; services, foods,
    payments and discounts carry an amount. Advance and settlement payments
    count the same towards paid, and any overpayment is absorbed rather than
    shown as credit.
    """
    nights = nights_between(check_in, check_out)
    room_charges = _sum(rooms, 'rate') * nights
    other_charges = _sum(services) + _sum(foods)
    discount_total = _sum(discounts)
    total = max(0.0, room_charges + other_charges - discount_total)
    paid = _sum(payments)
    balance = max(0.0, total - paid)

    return BillingSummary(
        nights=nights,
        room_charges=round(room_charges, 2),
        other_charges=round(other_charges, 2),
        discounts=round(discount_total, 2),
        total=round(total, 2),
        paid=round(paid, 2),
        balance=round(balance, 2),
    )


def summary_to_dict(summary):
    return dict(summary._asdict())
