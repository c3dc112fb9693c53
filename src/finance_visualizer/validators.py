"""
Finance Visualizer - Request Validation

Turns raw JSON bodies and query strings into clean values for the stores.
Every check that fails adds a message; all messages for one request are
raised together as a single ValidationError.

Body validators return snake_case dicts holding only the fields that were
supplied (partial=True) or every field (partial=False). Category references
come back as CategoryId.
"""

import datetime
import math
import re

from .date_helpers import parse_iso
from .errors import ValidationError
from .models import CategoryId

HEX_COLOR_RE = re.compile(r'^#([A-Fa-f0-9]{6}|[A-Fa-f0-9]{3})$')

SORTABLE_FIELDS = {
    'date': 'date',
    'amount': 'amount',
    'description': 'description',
    'createdAt': 'created_at',
}

DEFAULT_PAGE = 1
DEFAULT_LIMIT = 10
MAX_LIMIT = 100

MIN_YEAR = 2000
# Month windows reach into the following year, which must still be a valid datetime.
MAX_YEAR = datetime.MAXYEAR - 1

# Largest value SQLite stores as INTEGER.
SQLITE_MAX_INT = 2 ** 63 - 1


def _missing(value):
    return value is None or (isinstance(value, str) and not value.strip())


def _as_number(value):
    """Return value as a finite float, or None if it is not numeric."""
    if isinstance(value, bool):
        return None
    if isinstance(value, (int, float)):
        number = float(value)
    elif isinstance(value, str):
        try:
            number = float(value.strip())
        except ValueError:
            return None
    else:
        return None
    if math.isnan(number) or math.isinf(number):
        return None
    return number


def _as_int(value):
    """Return value as an int, or None if it is not an integer."""
    if isinstance(value, bool):
        return None
    if isinstance(value, int):
        return value
    if isinstance(value, float) and value.is_integer():
        return int(value)
    if isinstance(value, str) and re.fullmatch(r'\s*[+-]?\d+\s*', value):
        return int(value)
    return None


def _as_category_id(value):
    number = _as_int(value)
    if number is None or not 1 <= number <= SQLITE_MAX_INT:
        return None
    return CategoryId(number)


def _year_error(year):
    """Return the message for an unusable year, or None."""
    if year is None or year < MIN_YEAR:
        return f"Year must be {MIN_YEAR} or later"
    if year > MAX_YEAR:
        return f"Year must be {MAX_YEAR} or earlier"
    return None


def _require_object(data):
    if not isinstance(data, dict):
        raise ValidationError("Request body must be a JSON object")


def validate_category(data, partial=False):
    _require_object(data)
    errors = []
    clean = {}

    if 'name' in data or not partial:
        name = data.get('name')
        if _missing(name) or not isinstance(name, str):
            errors.append("Category name cannot be empty" if partial else "Category name is required")
        else:
            name = name.strip()
            if not 2 <= len(name) <= 50:
                errors.append("Category name must be between 2 and 50 characters")
            else:
                clean['name'] = name

    if data.get('icon') is not None:
        if not isinstance(data['icon'], str):
            errors.append("Icon must be a string")
        else:
            clean['icon'] = data['icon'].strip() or 'tag'

    if data.get('color') is not None:
        color = data['color']
        if not isinstance(color, str):
            errors.append("Color must be a string")
        elif not HEX_COLOR_RE.match(color.strip()):
            errors.append("Color must be a valid hex color code")
        else:
            clean['color'] = color.strip()

    if errors:
        raise ValidationError(errors)
    return clean


def validate_transaction(data, partial=False):
    _require_object(data)
    errors = []
    clean = {}

    if 'amount' in data or not partial:
        if _missing(data.get('amount')):
            errors.append("Amount is required")
        else:
            amount = _as_number(data['amount'])
            if amount is None:
                errors.append("Amount must be a number")
            elif amount <= 0:
                errors.append("Amount must be greater than zero")
            else:
                clean['amount'] = amount

    if 'date' in data or not partial:
        if _missing(data.get('date')):
            errors.append("Date is required")
        else:
            try:
                clean['date'], _ = parse_iso(data['date'])
            except ValueError:
                errors.append("Date must be a valid ISO8601 date")

    if 'description' in data or not partial:
        description = data.get('description')
        if _missing(description) or not isinstance(description, str):
            errors.append("Description cannot be empty" if partial else "Description is required")
        else:
            description = description.strip()
            if not 3 <= len(description) <= 200:
                errors.append("Description must be between 3 and 200 characters")
            else:
                clean['description'] = description

    if 'category' in data or not partial:
        if _missing(data.get('category')):
            errors.append("Category is required")
        else:
            category = _as_category_id(data['category'])
            if category is None:
                errors.append("Invalid category ID format")
            else:
                clean['category'] = category

    if errors:
        raise ValidationError(errors)
    return clean


def validate_budget(data, partial=False):
    _require_object(data)
    errors = []
    clean = {}

    if 'month' in data or not partial:
        if _missing(data.get('month')):
            errors.append("Month is required")
        else:
            month = _as_int(data['month'])
            if month is None or not 1 <= month <= 12:
                errors.append("Month must be between 1 and 12")
            else:
                clean['month'] = month

    if 'year' in data or not partial:
        if _missing(data.get('year')):
            errors.append("Year is required")
        else:
            year = _as_int(data['year'])
            message = _year_error(year)
            if message:
                errors.append(message)
            else:
                clean['year'] = year

    if 'category' in data or not partial:
        if _missing(data.get('category')):
            errors.append("Category is required")
        else:
            category = _as_category_id(data['category'])
            if category is None:
                errors.append("Invalid category ID format")
            else:
                clean['category'] = category

    if 'plannedAmount' in data or not partial:
        if _missing(data.get('plannedAmount')):
            errors.append("Planned amount is required")
        else:
            planned = _as_number(data['plannedAmount'])
            if planned is None:
                errors.append("Planned amount must be a number")
            elif planned < 0:
                errors.append("Planned amount must be positive")
            else:
                clean['planned_amount'] = planned

    if errors:
        raise ValidationError(errors)
    return clean


# =============================================================================
# QUERY STRING PARSING
# =============================================================================

def parse_date_range(args, errors):
    """
    Read startDate/endDate from a query mapping.

    Returns:
        tuple: (start, end) datetimes, either may be None. ``end`` is
        exclusive: a date-only endDate becomes midnight of the following day
        so the whole day is included.
    """
    start = end = None
    if args.get('startDate'):
        try:
            start, _ = parse_iso(args['startDate'])
        except ValueError:
            errors.append("Start date must be a valid ISO8601 date")
    if args.get('endDate'):
        try:
            end, date_only = parse_iso(args['endDate'])
            end += datetime.timedelta(days=1) if date_only else datetime.timedelta(seconds=1)
        except ValueError:
            errors.append("End date must be a valid ISO8601 date")
    return start, end


def parse_transaction_query(args):
    errors = []
    query = {'page': DEFAULT_PAGE, 'limit': DEFAULT_LIMIT, 'sort': ('date', True), 'category': None}

    if args.get('page'):
        page = _as_int(args['page'])
        if page is None or page < 1:
            errors.append("Page must be a positive integer")
        else:
            query['page'] = page

    if args.get('limit'):
        limit = _as_int(args['limit'])
        if limit is None or not 1 <= limit <= MAX_LIMIT:
            errors.append(f"Limit must be between 1 and {MAX_LIMIT}")
        else:
            query['limit'] = limit

    if args.get('sort'):
        sort = args['sort'].strip()
        descending = sort.startswith('-')
        field_name = sort.lstrip('-+')
        if field_name not in SORTABLE_FIELDS:
            errors.append(f"Sort must be one of: {', '.join(SORTABLE_FIELDS)}")
        else:
            query['sort'] = (SORTABLE_FIELDS[field_name], descending)

    if args.get('category'):
        category = _as_category_id(args['category'])
        if category is None:
            errors.append("Invalid category ID format")
        else:
            query['category'] = category

    if (query['page'] - 1) * query['limit'] > SQLITE_MAX_INT:
        errors.append("Page is out of range")

    query['start'], query['end'] = parse_date_range(args, errors)

    if errors:
        raise ValidationError(errors)
    return query


def parse_budget_query(args):
    errors = []
    query = {'month': None, 'year': None, 'category': None}

    if args.get('month'):
        month = _as_int(args['month'])
        if month is None or not 1 <= month <= 12:
            errors.append("Month must be between 1 and 12")
        else:
            query['month'] = month

    if args.get('year'):
        year = _as_int(args['year'])
        message = _year_error(year)
        if message:
            errors.append(message)
        else:
            query['year'] = year

    if args.get('category'):
        category = _as_category_id(args['category'])
        if category is None:
            errors.append("Invalid category ID format")
        else:
            query['category'] = category

    if errors:
        raise ValidationError(errors)
    return query


def parse_window_query(args):
    errors = []
    start, end = parse_date_range(args, errors)
    if errors:
        raise ValidationError(errors)
    return start, end


def parse_year(args, default):
    if not args.get('year'):
        return default
    year = _as_int(args['year'])
    message = _year_error(year)
    if message:
        raise ValidationError(message)
    return year
