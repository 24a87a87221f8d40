"""
Cash-flow reports over payments and expenses.

Exports are plain CSV with label headers, one row per record. The merged
ledger signs amounts: expenses negative, payments positive.
"""
from datetime import timedelta

import pandas as pd

from errors import ValidationError
from formatting import DEFAULT_TIMEZONE, in_date_range, parse_date, to_finite, to_number, today

EXPENSE_CATEGORIES = (
    'Utilities',
    'Maintenance',
    'Food Supplies',
    'Staff Salary',
    'Cleaning',
    'Marketing',
    'Other',
)

PAYMENT_COLUMNS = ['ID', 'Reservation', 'Type', 'Method', 'Amount', 'Date']
EXPENSE_COLUMNS = ['ID', 'Title', 'Category', 'Amount', 'Date', 'Notes']
LEDGER_COLUMNS = ['ID', 'Type', 'Title', 'CategoryOrMethod', 'Amount', 'Date', 'Notes']


def month_range(tz_name=DEFAULT_TIMEZONE):
    """First and last day of the current month"""
    start = today(tz_name).replace(day=1)
    next_month = (start.replace(day=28) + timedelta(days=4)).replace(day=1)
    end = next_month - timedelta(days=1)
    return start, end


def resolve_range(start=None, end=None, tz_name=DEFAULT_TIMEZONE):
    default_start, default_end = month_range(tz_name)
    return parse_date(start) or default_start, parse_date(end) or default_end


def filter_in_range(rows, start, end):
    return [r for r in rows if in_date_range(r.get('date'), start, end)]


def filter_expenses(expenses, category=None, search=None):
    term = (search or '').strip().lower()
    out = []
    for e in expenses:
        if category and category != 'All Categories' and e.get('category') != category:
            continue
        if term and term not in (e.get('title') or '').lower() and term not in (e.get('notes') or '').lower():
            continue
        out.append(e)
    return out


def cashflow(payments, expenses):
    total_payments = round(sum(to_number(p.get('amount')) for p in payments), 2)
    total_expenses = round(sum(to_number(e.get('amount')) for e in expenses), 2)
    return {
        'total_payments': total_payments,
        'total_expenses': total_expenses,
        'net': round(total_payments - total_expenses, 2),
    }


def merged_ledger(payments, expenses):
    rows = [{
        'id': e.get('id'),
        'type': 'Expense',
        'title': e.get('title'),
        'category_or_method': e.get('category'),
        'amount': -abs(to_number(e.get('amount'))),
        'date': e.get('date'),
        'notes': e.get('notes') or '',
    } for e in expenses]
    rows += [{
        'id': p.get('id'),
        'type': 'Payment',
        'title': p.get('type'),
        'category_or_method': p.get('method'),
        'amount': abs(to_number(p.get('amount'))),
        'date': p.get('date'),
        'notes': p.get('notes') or '',
    } for p in payments]
    # sorted() is stable, so same-day rows keep expenses before payments
    return sorted(rows, key=lambda r: parse_date(r['date']) or parse_date('1970-01-01'))


def _to_csv(records, columns):
    return pd.DataFrame(records, columns=columns).to_csv(index=False)


def payments_csv(payments):
    return _to_csv([
        [p.get('id'), p.get('reservation_id'), p.get('type'), p.get('method'), p.get('amount'), p.get('date')]
        for p in payments
    ], PAYMENT_COLUMNS)


def expenses_csv(expenses):
    return _to_csv([
        [e.get('id'), e.get('title'), e.get('category'), e.get('amount'), e.get('date'), e.get('notes') or '']
        for e in expenses
    ], EXPENSE_COLUMNS)


def ledger_csv(rows):
    return _to_csv([
        [r['id'], r['type'], r['title'], r['category_or_method'], r['amount'], r['date'], r['notes']]
        for r in rows
    ], LEDGER_COLUMNS)


def export_filename(kind, start, end):
    return f'{kind}_{start}_to_{end}.csv'


def validate_expense(payload, tz_name=DEFAULT_TIMEZONE):
    title = (payload.get('title') or '').strip()
    if not title:
        raise ValidationError('Expense title is required')
    amount = to_finite(payload.get('amount'))
    if amount is None:
        raise ValidationError('Amount must be a number')
    if amount <= 0:
        raise ValidationError('Amount must be greater than zero')
    category = payload.get('category') or 'Other'
    if category not in EXPENSE_CATEGORIES:
        raise ValidationError(f'Unknown expense category: {category}')
    spent_on = parse_date(payload.get('date')) if payload.get('date') else today(tz_name)
    if spent_on is None:
        raise ValidationError(f"Invalid date: {payload.get('date')}")
    return {
        'title': title,
        'category': category,
        'amount': amount,
        'date': spent_on,
        'notes': (payload.get('notes') or '').strip() or None,
    }
