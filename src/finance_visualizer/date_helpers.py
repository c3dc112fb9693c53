"""
Finance Visualizer - Date Helpers

Conversions between Python dates and the TEXT format stored in SQLite, plus
the calendar-month arithmetic the reports are built on.
"""

import calendar
import datetime

DB_DATETIME_FORMAT = '%Y-%m-%d %H:%M:%S'
DB_DATE_FORMAT = '%Y-%m-%d'


def to_db_str(value):
    """Convert a date or datetime to the SQLite TEXT format."""
    if value is None:
        return None
    if isinstance(value, datetime.datetime):
        return value.strftime(DB_DATETIME_FORMAT)
    if isinstance(value, datetime.date):
        return value.strftime(DB_DATE_FORMAT) + ' 00:00:00'
    return str(value)


def from_db_str(value):
    """Convert SQLite TEXT back to a datetime, or None."""
    if value is None or value == '':
        return None
    if isinstance(value, datetime.datetime):
        return value
    for fmt in (DB_DATETIME_FORMAT, DB_DATE_FORMAT):
        try:
            return datetime.datetime.strptime(value, fmt)
        except ValueError:
            continue
    return None


def parse_iso(value):
    """
    Parse an ISO 8601 date or datetime string.

    Returns:
        tuple: (datetime, date_only) - date_only is True when the input had no
        time component. Timezone-aware inputs are converted to naive local time.

    Raises:
        ValueError: if the string is not ISO 8601.
    """
    if not isinstance(value, str) or not value.strip():
        raise ValueError(f"Invalid date: {value!r}")
    text = value.strip()
    if text.endswith('Z'):
        text = text[:-1] + '+00:00'
    if len(text) == 10:
        return datetime.datetime.strptime(text, DB_DATE_FORMAT), True
    parsed = datetime.datetime.fromisoformat(text)
    if parsed.tzinfo is not None:
        parsed = parsed.astimezone().replace(tzinfo=None)
    return parsed.replace(microsecond=0), False


def days_in_month(year, month):
    return calendar.monthrange(year, month)[1]


def month_bounds(year, month):
    """
    Return (start, end) datetimes for a calendar month.

    The range is half-open: start is midnight on the 1st, end is midnight on
    the 1st of the following month, so the whole last day is covered.
    """
    start = datetime.datetime(year, month, 1)
    if month == 12:
        end = datetime.datetime(year + 1, 1, 1)
    else:
        end = datetime.datetime(year, month + 1, 1)
    return start, end


def previous_month(year, month):
    if month == 1:
        return year - 1, 12
    return year, month - 1


def add_months(value, n):
    """Add n calendar months to a date or datetime, clamping the day to month end."""
    month = value.month - 1 + n
    year = value.year + month // 12
    month = month % 12 + 1
    day = min(value.day, days_in_month(year, month))
    return value.replace(year=year, month=month, day=day)
