"""
Finance Visualizer - Summary Formatting

Pure helpers that turn aggregation rows into response fields: month and
weekday names, trend labels, half-up percentage rounding and the marker for
spend that has no budget to measure against.
"""

import math

MONTH_NAMES = [
    'January', 'February', 'March', 'April', 'May', 'June',
    'July', 'August', 'September', 'October', 'November', 'December',
]

# Index 0 is day 1 (Sunday), matching the dayOfWeek numbering of the reports.
DAY_NAMES = ['Sunday', 'Monday', 'Tuesday', 'Wednesday', 'Thursday', 'Friday', 'Saturday']

# Serialized percentageUsed for spend with no planned amount.
UNBOUNDED = 'unbounded'


def month_name(month):
    """1 -> 'January' ... 12 -> 'December'."""
    if not 1 <= month <= 12:
        raise ValueError(f"Month out of range: {month}")
    return MONTH_NAMES[month - 1]


def short_month_label(year, month):
    """(2024, 3) -> 'Mar 2024'."""
    return f"{month_name(month)[:3]} {year}"


def month_year_label(year, month):
    """(2024, 3) -> 'March 2024'."""
    return f"{month_name(month)} {year}"


def month_year_key(year, month):
    """(2024, 3) -> '3-2024'."""
    return f"{month}-{year}"


def day_name(day_of_week):
    """1 -> 'Sunday' ... 7 -> 'Saturday'."""
    if not 1 <= day_of_week <= 7:
        raise ValueError(f"Day of week out of range: {day_of_week}")
    return DAY_NAMES[day_of_week - 1]


def round_half_up(value):
    """Round to the nearest integer, .5 going toward positive infinity."""
    return int(math.floor(value + 0.5))


def percentage_used(actual, planned):
    """
    Share of a planned amount that has been spent, as a whole percentage.

    No spend is 0 whatever the plan. Spend against a zero plan is math.inf.
    """
    if actual == 0:
        return 0
    if planned == 0:
        return math.inf
    return round_half_up(actual / planned * 100)


def format_percentage(value):
    """Make a percentage JSON-safe: math.inf becomes the UNBOUNDED marker."""
    if isinstance(value, float) and math.isinf(value):
        return UNBOUNDED
    return value


def format_comparison_entry(entry):
    """Shape one budget-vs-actual row for the response."""
    return {
        'category': entry['category'],
        'color': entry['color'],
        'icon': entry['icon'],
        'plannedAmount': entry['planned_amount'],
        'actualAmount': entry['actual_amount'],
        'difference': entry['difference'],
        'percentageUsed': format_percentage(entry['percentage_used']),
        'hasBudget': entry['has_budget'],
    }


def format_category_total(row, grand_total=None):
    """Shape a per-category aggregate row, optionally with its share of a total."""
    entry = {
        'category': row['name'],
        'color': row['color'],
        'icon': row['icon'],
        'totalAmount': row['total_amount'],
        'count': row['count'],
    }
    if grand_total is not None:
        entry['percentage'] = row['total_amount'] / (grand_total or 1) * 100
    return entry


def format_trend_entry(row):
    year, month = row['year'], row['month']
    return {
        'year': year,
        'month': month,
        'totalAmount': row['total_amount'],
        'count': row['count'],
        'monthYear': month_year_key(year, month),
        'monthName': short_month_label(year, month),
    }


def format_weekday_entry(row):
    return {
        'dayOfWeek': row['day_of_week'],
        'totalAmount': row['total_amount'],
        'count': row['count'],
        'averageAmount': row['total_amount'] / row['count'],
        'dayName': day_name(row['day_of_week']),
    }
