# rent_engine/services/normalize.py
"""
Coercion of stored values into canonical numbers and datetimes.

Records arrive from several generations of forms and imports, so the same
field can hold a float, a "$1,500.00" string, an ISO date, a US-style date,
an epoch timestamp or a Firestore-style {"seconds": ...} object. These two
functions are the only place that looks at raw shapes; everything downstream
works with float and naive datetime.
"""
import math
import re
from datetime import date, datetime, timezone
from decimal import Decimal

from dateutil import parser as date_parser

_NON_NUMERIC = re.compile(r'[^0-9.\-]')
_LEADING_NUMBER = re.compile(r'-?(\d+(\.\d*)?|\.\d+)')
# Fills the parts a partial date string leaves out ("2024" -> 2024-01-01).
_PARSE_DEFAULT = datetime(1970, 1, 1)


def to_number(value):
    """Return a finite float for any input, 0.0 when nothing usable is found."""
    if value is None or isinstance(value, bool):
        return 0.0
    if isinstance(value, (int, float, Decimal)):
        try:
            number = float(value)
        except (OverflowError, ValueError):
            return 0.0
        return number if math.isfinite(number) else 0.0
    if isinstance(value, str):
        cleaned = _NON_NUMERIC.sub('', value)
        match = _LEADING_NUMBER.match(cleaned)
        if not match:
            return 0.0
        try:
            number = float(match.group(0))
        except (OverflowError, ValueError):
            return 0.0
        return number if math.isfinite(number) else 0.0
    return 0.0


def _naive(dt):
    if dt.tzinfo is not None:
        return dt.astimezone(timezone.utc).replace(tzinfo=None)
    return dt


def _from_epoch(seconds):
    try:
        if not math.isfinite(seconds):
            return None
        return datetime.fromtimestamp(seconds, tz=timezone.utc).replace(tzinfo=None)
    except (OverflowError, OSError, ValueError):
        return None


def to_date(value):
    """
    Return a naive datetime or None.

    Accepts datetime/date instances, Timestamp-like objects carrying epoch
    `seconds` (as attribute or dict key), epoch milliseconds and date strings.
    """
    if value is None or value == '' or isinstance(value, bool):
        return None
    if isinstance(value, datetime):
        try:
            return _naive(value)
        except OverflowError:
            return None
    if isinstance(value, date):
        return datetime(value.year, value.month, value.day)

    seconds = value.get('seconds') if isinstance(value, dict) else getattr(value, 'seconds', None)
    if isinstance(seconds, (int, float)) and not isinstance(seconds, bool):
        return _from_epoch(seconds)

    if isinstance(value, (int, float)):
        try:
            return _from_epoch(value / 1000)
        except OverflowError:
            return None
    if isinstance(value, str):
        try:
            return _naive(date_parser.parse(value.strip(), default=_PARSE_DEFAULT))
        except (ValueError, OverflowError):
            return None
    return None


def pick(record, *path):
    """Walk nested dict keys, returning None as soon as a level is missing."""
    current = record
    for key in path:
        if not isinstance(current, dict):
            return None
        current = current.get(key)
    return current
