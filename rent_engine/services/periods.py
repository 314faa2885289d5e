# rent_engine/services/periods.py
import calendar
import re
from datetime import datetime, time

_MONTH_KEY = re.compile(r'^(\d{4})-(\d{2})$')


def month_window(target):
    """
    Returns the inclusive (start, end) datetimes for the calendar month of `target`:
    the first day at 00:00 and the last day at end-of-day.
    """
    days_in_month = calendar.monthrange(target.year, target.month)[1]
    start = datetime(target.year, target.month, 1)
    end = datetime.combine(start.replace(day=days_in_month), time.max)
    return start, end


def month_key(target):
    return f"{target.year:04d}-{target.month:02d}"


def parse_month_key(key):
    """
    Parses a 'YYYY-MM' key into a datetime on the 2nd of that month, or None.
    The mid-month day keeps the month stable if a caller shifts it by a timezone offset.
    """
    match = _MONTH_KEY.match(key or '')
    if not match:
        return None
    year, month = int(match.group(1)), int(match.group(2))
    if year < 1 or not (1 <= month <= 12):
        return None
    return datetime(year, month, 2)
