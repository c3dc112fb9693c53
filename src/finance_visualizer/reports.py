"""
Finance Visualizer - Reports

The ReportEngine answers the read-only questions the dashboard asks: how much
has been spent this month and where, how spending compares with the budgets,
and how it trends over the last six months.

Each report is a function of the stored data and a moment in time. ``now``
defaults to the engine clock, so tests pin it to a fixed datetime.

Grouping and summing happen in SQL; the formatters module shapes the rows.
Money totals are rounded to cents in the query.
"""

import datetime

from . import formatters
from .date_helpers import add_months, days_in_month, month_bounds, previous_month, to_db_str

CATEGORY_TOTALS_SQL = """
    SELECT c.category_id, c.name, c.color, c.icon,
           ROUND(SUM(t.amount), 2) AS total_amount,
           COUNT(*) AS count
    FROM transactions t
    JOIN categories c ON c.category_id = t.category_id
    {where}
    GROUP BY c.category_id, c.name, c.color, c.icon
    ORDER BY total_amount DESC, c.name ASC
"""


def _date_filter(start=None, end=None):
    clauses, params = [], []
    if start is not None:
        clauses.append("t.date >= ?")
        params.append(to_db_str(start))
    if end is not None:
        clauses.append("t.date < ?")
        params.append(to_db_str(end))
    where = f"WHERE {' AND '.join(clauses)}" if clauses else ""
    return where, params


class ReportEngine:
    """
    Aggregate reports over a FinanceEngine's database.

    Args:
        engine: the FinanceEngine whose stores are read
        clock: zero-argument callable returning the current datetime
    """

    def __init__(self, engine, clock=None):
        self.engine = engine
        self.clock = clock or engine.clock

    def _now(self, now):
        return now if now is not None else self.clock()

    # =========================================================================
    # QUERY HELPERS
    # =========================================================================

    @staticmethod
    def _expense_total(cursor, start, end):
        where, params = _date_filter(start, end)
        cursor.execute(
            f"SELECT COALESCE(ROUND(SUM(t.amount), 2), 0) AS total_amount, COUNT(*) AS count "
            f"FROM transactions t {where}",
            params
        )
        row = cursor.fetchone()
        return float(row['total_amount']), row['count']

    @staticmethod
    def _category_totals(cursor, start=None, end=None, limit=None):
        where, params = _date_filter(start, end)
        sql = CATEGORY_TOTALS_SQL.format(where=where)
        if limit is not None:
            sql += " LIMIT ?"
            params.append(limit)
        cursor.execute(sql, params)
        return [dict(row) for row in cursor.fetchall()]

    @staticmethod
    def _planned_total(cursor, month, year):
        cursor.execute(
            "SELECT COALESCE(SUM(planned_amount), 0) FROM budgets WHERE month = ? AND year = ?",
            (month, year)
        )
        return float(cursor.fetchone()[0])

    def _compare_budgets(self, cursor, month, year):
        """
        Join the budgets of one month with that month's actual spend.

        Returns:
            list: raw entries (snake_case). Budget rows come first, ordered by
            category name, followed by categories that have spend but no
            budget (has_budget False), largest spend first.
        """
        start, end = month_bounds(year, month)
        spend_by_category = {
            row['category_id']: row for row in self._category_totals(cursor, start, end)
        }

        cursor.execute(
            """SELECT b.category_id, b.planned_amount, c.name, c.color, c.icon
               FROM budgets b
               JOIN categories c ON c.category_id = b.category_id
               WHERE b.month = ? AND b.year = ?
               ORDER BY c.name ASC""",
            (month, year)
        )
        budget_rows = cursor.fetchall()

        entries = []
        budgeted_ids = set()
        for row in budget_rows:
            budgeted_ids.add(row['category_id'])
            planned = float(row['planned_amount'])
            spend = spend_by_category.get(row['category_id'])
            actual = float(spend['total_amount']) if spend else 0.0
            entries.append({
                'category': row['name'],
                'color': row['color'],
                'icon': row['icon'],
                'planned_amount': planned,
                'actual_amount': actual,
                'difference': round(actual - planned, 2),
                'percentage_used': formatters.percentage_used(actual, planned),
                'has_budget': True,
            })

        for category_id, spend in spend_by_category.items():
            if category_id in budgeted_ids:
                continue
            actual = float(spend['total_amount'])
            entries.append({
                'category': spend['name'],
                'color': spend['color'],
                'icon': spend['icon'],
                'planned_amount': 0.0,
                'actual_amount': actual,
                'difference': actual,
                'percentage_used': formatters.percentage_used(actual, 0),
                'has_budget': False,
            })
        return entries

    # =========================================================================
    # REPORTS
    # =========================================================================

    def dashboard_summary(self, now=None):
        """
        Summary of the calendar month containing ``now``.

        budgetUsagePercentage and dailyBudget are None when no budget is set
        for the month. expenseChangeFromLastMonth is None when last month had
        no spend.
        """
        now = self._now(now)
        year, month = now.year, now.month
        start, end = month_bounds(year, month)
        prev_year, prev_month = previous_month(year, month)
        prev_start, prev_end = month_bounds(prev_year, prev_month)

        conn, cursor = self.engine._get_db_connection()
        try:
            total_expenses, transaction_count = self._expense_total(cursor, start, end)
            breakdown = self._category_totals(cursor, start, end)
            total_budget = self._planned_total(cursor, month, year)
            previous_total, _ = self._expense_total(cursor, prev_start, prev_end)
        finally:
            cursor.close()
            conn.close()

        recent = self.engine.get_recent_transactions(limit=5)

        days_remaining = days_in_month(year, month) - now.day + 1
        if total_budget > 0:
            usage = formatters.round_half_up(total_expenses / total_budget * 100)
            daily_budget = formatters.round_half_up((total_budget - total_expenses) / days_remaining)
        else:
            usage = None
            daily_budget = None

        if previous_total > 0:
            expense_change = (total_expenses - previous_total) / previous_total * 100
        else:
            expense_change = None

        return {
            'currentMonth': formatters.month_year_label(year, month),
            'summary': {
                'totalExpenses': total_expenses,
                'transactionCount': transaction_count,
                'totalBudget': total_budget,
                'budgetRemaining': round(total_budget - total_expenses, 2),
                'budgetUsagePercentage': usage,
                'daysRemaining': days_remaining,
                'dailyBudget': daily_budget,
                'expenseChangeFromLastMonth': expense_change,
            },
            'categoryBreakdown': [
                formatters.format_category_total(row, grand_total=total_expenses) for row in breakdown
            ],
            'recentTransactions': [transaction.to_dict() for transaction in recent],
        }

    def budget_comparison(self, month=None, year=None, now=None):
        """Budget vs actual for one month; month and year default to ``now``."""
        now = self._now(now)
        month = month if month is not None else now.month
        year = year if year is not None else now.year

        conn, cursor = self.engine._get_db_connection()
        try:
            entries = self._compare_budgets(cursor, month, year)
        finally:
            cursor.close()
            conn.close()

        return {
            'month': month,
            'year': year,
            'entries': [formatters.format_comparison_entry(entry) for entry in entries],
        }

    def spending_insights(self, now=None):
        """
        Six-month trailing insights plus this month's over-budget categories.

        The window starts six calendar months before ``now``. Over-budget
        entries only cover categories that have a budget this month.
        """
        now = self._now(now)
        since = add_months(now, -6)
        where, params = _date_filter(since, None)

        conn, cursor = self.engine._get_db_connection()
        try:
            top_categories = self._category_totals(cursor, since, None, limit=5)

            cursor.execute(
                f"""SELECT CAST(strftime('%Y', t.date) AS INTEGER) AS year,
                           CAST(strftime('%m', t.date) AS INTEGER) AS month,
                           ROUND(SUM(t.amount), 2) AS total_amount,
                           COUNT(*) AS count
                    FROM transactions t {where}
                    GROUP BY year, month
                    ORDER BY year ASC, month ASC""",
                params
            )
            trend = [dict(row) for row in cursor.fetchall()]

            cursor.execute(
                f"""SELECT CAST(strftime('%w', t.date) AS INTEGER) + 1 AS day_of_week,
                           ROUND(SUM(t.amount), 2) AS total_amount,
                           COUNT(*) AS count
                    FROM transactions t {where}
                    GROUP BY day_of_week
                    ORDER BY total_amount DESC, day_of_week ASC""",
                params
            )
            weekdays = [dict(row) for row in cursor.fetchall()]

            comparison = self._compare_budgets(cursor, now.month, now.year)
        finally:
            cursor.close()
            conn.close()

        over_budget = sorted(
            (entry for entry in comparison if entry['has_budget'] and entry['difference'] > 0),
            key=lambda entry: entry['difference'],
            reverse=True
        )

        return {
            'topCategories': [
                dict(formatters.format_category_total(row),
                     averageTransaction=row['total_amount'] / row['count'])
                for row in top_categories
            ],
            'monthlyTrend': [formatters.format_trend_entry(row) for row in trend],
            'dayOfWeekSpending': [formatters.format_weekday_entry(row) for row in weekdays],
            'overBudgetCategories': [formatters.format_comparison_entry(entry) for entry in over_budget],
        }

    def category_breakdown(self, start=None, end=None):
        """Per-category totals for an arbitrary window (``end`` exclusive)."""
        conn, cursor = self.engine._get_db_connection()
        try:
            rows = self._category_totals(cursor, start, end)
        finally:
            cursor.close()
            conn.close()
        return [formatters.format_category_total(row) for row in rows]

    def monthly_expenses(self, year=None, now=None):
        """Twelve monthly totals for ``year``, zero-filled for empty months."""
        year = year if year is not None else self._now(now).year
        start = datetime.datetime(year, 1, 1)
        end = datetime.datetime(year + 1, 1, 1)
        where, params = _date_filter(start, end)

        conn, cursor = self.engine._get_db_connection()
        try:
            cursor.execute(
                f"""SELECT CAST(strftime('%m', t.date) AS INTEGER) AS month,
                           ROUND(SUM(t.amount), 2) AS total_amount,
                           COUNT(*) AS count
                    FROM transactions t {where}
                    GROUP BY month""",
                params
            )
            by_month = {row['month']: row for row in cursor.fetchall()}
        finally:
            cursor.close()
            conn.close()

        months = []
        for month in range(1, 13):
            row = by_month.get(month)
            months.append({
                'month': month,
                'monthName': formatters.month_name(month),
                'totalAmount': float(row['total_amount']) if row else 0,
                'count': row['count'] if row else 0,
            })
        return months
