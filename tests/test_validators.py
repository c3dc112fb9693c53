import datetime

import pytest

from finance_visualizer import validators
from finance_visualizer.errors import ValidationError
from finance_visualizer.models import CategoryId


# --- bodies ---

def test_category_name_is_trimmed():
    clean = validators.validate_category({'name': '  Groceries  ', 'color': '#4caf50'})
    assert clean == {'name': 'Groceries', 'color': '#4caf50'}


def test_category_requires_name():
    with pytest.raises(ValidationError, match="Category name is required"):
        validators.validate_category({'icon': 'home'})


def test_category_rejects_bad_color_and_short_name():
    with pytest.raises(ValidationError) as excinfo:
        validators.validate_category({'name': 'X', 'color': 'green'})
    assert "between 2 and 50" in excinfo.value.message
    assert "hex color" in excinfo.value.message
    assert excinfo.value.status_code == 400


def test_partial_category_update_allows_missing_name():
    assert validators.validate_category({'icon': 'home'}, partial=True) == {'icon': 'home'}


def test_body_must_be_object():
    with pytest.raises(ValidationError, match="JSON object"):
        validators.validate_transaction(None)
    with pytest.raises(ValidationError, match="JSON object"):
        validators.validate_budget([1, 2])


def test_valid_transaction():
    clean = validators.validate_transaction({
        'amount': '12.50',
        'date': '2024-03-05',
        'description': ' Weekly shop ',
        'category': '3',
    })
    assert clean == {
        'amount': 12.5,
        'date': datetime.datetime(2024, 3, 5),
        'description': 'Weekly shop',
        'category': CategoryId(3),
    }


@pytest.mark.parametrize("field, value, message", [
    ('amount', 0, "Amount must be greater than zero"),
    ('amount', -4, "Amount must be greater than zero"),
    ('amount', 'ten', "Amount must be a number"),
    ('date', '05/03/2024', "Date must be a valid ISO8601 date"),
    ('description', 'ab', "Description must be between 3 and 200 characters"),
    ('category', 'abc', "Invalid category ID format"),
    ('category', 0, "Invalid category ID format"),
])
def test_invalid_transaction_field(field, value, message):
    body = {'amount': 10, 'date': '2024-03-05', 'description': 'Lunch out', 'category': 1}
    body[field] = value
    with pytest.raises(ValidationError, match=message):
        validators.validate_transaction(body)


def test_transaction_errors_are_joined():
    with pytest.raises(ValidationError) as excinfo:
        validators.validate_transaction({})
    assert excinfo.value.message == (
        "Amount is required, Date is required, Description is required, Category is required"
    )


def test_transaction_datetime_drops_microseconds():
    clean = validators.validate_transaction({'date': '2024-03-05T10:15:30.250'}, partial=True)
    assert clean == {'date': datetime.datetime(2024, 3, 5, 10, 15, 30)}


def test_valid_budget():
    clean = validators.validate_budget({'month': 3, 'year': 2024, 'category': 2, 'plannedAmount': 0})
    assert clean == {'month': 3, 'year': 2024, 'category': CategoryId(2), 'planned_amount': 0.0}


@pytest.mark.parametrize("field, value, message", [
    ('month', 13, "Month must be between 1 and 12"),
    ('month', 0, "Month must be between 1 and 12"),
    ('year', 1999, "Year must be 2000 or later"),
    ('year', 9999, "Year must be 9998 or earlier"),
    ('year', 10000, "Year must be 9998 or earlier"),
    ('plannedAmount', -1, "Planned amount must be positive"),
])
def test_invalid_budget_field(field, value, message):
    body = {'month': 3, 'year': 2024, 'category': 2, 'plannedAmount': 100}
    body[field] = value
    with pytest.raises(ValidationError, match=message):
        validators.validate_budget(body)


# --- query strings ---

def test_transaction_query_defaults():
    query = validators.parse_transaction_query({})
    assert query == {
        'page': 1,
        'limit': 10,
        'sort': ('date', True),
        'category': None,
        'start': None,
        'end': None,
    }


def test_transaction_query_sort_and_paging():
    query = validators.parse_transaction_query({'page': '2', 'limit': '25', 'sort': 'createdAt'})
    assert query['page'] == 2
    assert query['limit'] == 25
    assert query['sort'] == ('created_at', False)
    assert validators.parse_transaction_query({'sort': '-amount'})['sort'] == ('amount', True)


def test_transaction_query_rejects_page_past_integer_range():
    with pytest.raises(ValidationError, match="Page is out of range"):
        validators.parse_transaction_query({'page': '99999999999999999999'})
    with pytest.raises(ValidationError, match="Page is out of range"):
        validators.parse_transaction_query({'page': str(2 ** 62), 'limit': '100'})
    assert validators.parse_transaction_query({'page': str(2 ** 40)})['page'] == 2 ** 40


def test_oversized_category_id_is_rejected():
    with pytest.raises(ValidationError, match="Invalid category ID format"):
        validators.parse_transaction_query({'category': str(2 ** 63)})


def test_transaction_query_rejects_unknown_sort():
    with pytest.raises(ValidationError, match="Sort must be one of"):
        validators.parse_transaction_query({'sort': 'category'})


def test_date_only_end_date_includes_whole_day():
    start, end = validators.parse_window_query({'startDate': '2024-03-01', 'endDate': '2024-03-31'})
    assert start == datetime.datetime(2024, 3, 1)
    assert end == datetime.datetime(2024, 4, 1)


def test_timestamp_end_date_is_inclusive_to_the_second():
    _, end = validators.parse_window_query({'endDate': '2024-03-31T12:00:00'})
    assert end == datetime.datetime(2024, 3, 31, 12, 0, 1)


def test_bad_window_query():
    with pytest.raises(ValidationError, match="Start date must be a valid ISO8601 date"):
        validators.parse_window_query({'startDate': 'yesterday'})


def test_budget_query():
    assert validators.parse_budget_query({'month': '3', 'year': '2024', 'category': '5'}) == {
        'month': 3, 'year': 2024, 'category': CategoryId(5),
    }
    with pytest.raises(ValidationError):
        validators.parse_budget_query({'month': 'march'})
    with pytest.raises(ValidationError, match="Year must be 9998 or earlier"):
        validators.parse_budget_query({'month': '12', 'year': '9999'})


def test_parse_year_default():
    assert validators.parse_year({}, default=2024) == 2024
    assert validators.parse_year({'year': '2023'}, default=2024) == 2023
    assert validators.parse_year({'year': '9998'}, default=2024) == 9998
    with pytest.raises(ValidationError, match="Year must be 9998 or earlier"):
        validators.parse_year({'year': '9999'}, default=2024)
