"""
Money and date helpers shared by billing, invoices and reports
"""
import math
from datetime import datetime, date

import pytz

DEFAULT_TIMEZONE = 'Asia/Colombo'
CURRENCY = 'LKR'


def to_finite(value):
    """Float value, or None when missing, malformed, NaN or infinite"""
    if value is None or value == '':
        return None
    try:
        number = float(value)
    except (TypeError, ValueError):
        return None
    return number if math.isfinite(number) else None


def to_number(value):
    """Coerce a stored amount to float; missing, malformed or non-finite values count as zero"""
    number = to_finite(value)
    return 0.0 if number is None else number


def format_amount(n):
    return f"{to_number(n):,.2f}"


def format_lkr(n):
    """Format as local currency, e.g. 'LKR 16,200.00'"""
    return f"{CURRENCY} {format_amount(n)}"


def parse_date(value):
    """Accept a date, a datetime or an ISO string; anything else gives None"""
    if value is None or value == '':
        return None
    if isinstance(value, datetime):
        return value.date()
    if isinstance(value, date):
        return value
    try:
        return datetime.strptime(str(value)[:10], '%Y-%m-%d').date()
    except ValueError:
        return None


def nights_between(check_in, check_out):
    """Whole nights between two dates, never negative"""
    start = parse_date(check_in)
    end = parse_date(check_out)
    if not start or not end:
        return 0
    return max(0, (end - start).days)


def in_date_range(value, start, end):
    """Inclusive on both ends; rows without a usable date are excluded"""
    d = parse_date(value)
    if d is None:
        return False
    start = parse_date(start)
    end = parse_date(end)
    if start and d < start:
        return False
    if end and d > end:
        return False
    return True


def local_now(tz_name=DEFAULT_TIMEZONE):
    return datetime.now(pytz.utc).astimezone(pytz.timezone(tz_name))


def today(tz_name=DEFAULT_TIMEZONE):
    return local_now(tz_name).date()


def to_local_time(dt, tz_name=DEFAULT_TIMEZONE):
    """Naive datetimes are stored in UTC"""
    if not dt:
        return dt
    if dt.tzinfo is None:
        dt = pytz.utc.localize(dt)
    return dt.astimezone(pytz.timezone(tz_name))


def format_time(value, tz_name=DEFAULT_TIMEZONE):
    """Timestamp as shown in tables, e.g. '19/10/26 02:30 PM'"""
    if not value:
        return ''
    if isinstance(value, str):
        try:
            value = datetime.fromisoformat(value)
        except ValueError:
            return ''
    return to_local_time(value, tz_name).strftime('%d/%m/%y %I:%M %p')
