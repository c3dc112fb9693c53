"""
Finance Visualizer - Storage Engine

This module contains the FinanceEngine class: a stateless store for the three
record types the tracker keeps.

- Categories: spending buckets, unique by name
- Transactions: dated expenses that each reference one category
- Budgets: a planned amount per (month, year, category), unique per key

Key Design Principles:
- **Stateless**: every call opens its own SQLite connection, commits and
  closes it. No state is held between calls.
- **Check, then let SQLite back it up**: referenced categories and duplicate
  keys are checked before any write; the schema's UNIQUE and FOREIGN KEY
  constraints catch anything that races past the check.
- **Errors are raised, not returned**: NotFoundError, ConflictError and
  ValidationError carry the HTTP status the API answers with.

Input dictionaries are the output of the validators module (snake_case keys,
CategoryId references). Every record returned has its category resolved.

Example:
    engine = FinanceEngine(db_path)
    groceries = engine.add_category({'name': 'Groceries'})
    engine.add_transaction({
        'amount': 42.5,
        'date': datetime.datetime(2024, 3, 5),
        'description': 'Weekly shop',
        'category': CategoryId(groceries.id),
    })
"""

import datetime
import sqlite3

from .date_helpers import to_db_str
from .errors import ConflictError, NotFoundError
from .models import Budget, Category, Page, Transaction, category_id_of
from .setup_sqlite import get_db_path

CATEGORY_COLUMNS = "category_id, name, icon, color, created_at, updated_at"

_CATEGORY_JOIN_COLUMNS = """
    c.category_id AS cat_category_id, c.name AS cat_name, c.icon AS cat_icon,
    c.color AS cat_color, c.created_at AS cat_created_at, c.updated_at AS cat_updated_at
"""

TRANSACTION_SELECT = f"""
    SELECT t.transaction_id, t.amount, t.date, t.description, t.category_id,
           t.created_at, t.updated_at, {_CATEGORY_JOIN_COLUMNS}
    FROM transactions t
    JOIN categories c ON c.category_id = t.category_id
"""

BUDGET_SELECT = f"""
    SELECT b.budget_id, b.month, b.year, b.category_id, b.planned_amount,
           b.created_at, b.updated_at, {_CATEGORY_JOIN_COLUMNS}
    FROM budgets b
    JOIN categories c ON c.category_id = b.category_id
"""


class FinanceEngine:
    """
    Stateless storage engine for categories, transactions and budgets.

    Args:
        db_path: SQLite file to use. Defaults to the packaged data directory.
        clock: zero-argument callable returning the current datetime, used
            for createdAt/updatedAt stamps.
    """

    def __init__(self, db_path=None, clock=None):
        self.db_path = get_db_path(db_path)
        self.clock = clock or datetime.datetime.now

    # =============================================================================
    # DATABASE CONNECTION
    # =============================================================================

    def _get_db_connection(self):
        """
        Establish a new database connection.

        Returns:
            tuple: (connection, cursor) - SQLite connection and cursor

        Note:
            Callers are responsible for closing the connection and cursor.
        """
        self.db_path.parent.mkdir(parents=True, exist_ok=True)
        conn = sqlite3.connect(str(self.db_path))
        conn.execute("PRAGMA foreign_keys = ON;")
        conn.row_factory = sqlite3.Row
        return conn, conn.cursor()

    def _timestamp(self):
        return to_db_str(self.clock().replace(microsecond=0))

    @staticmethod
    def _require_category(cursor, category_ref):
        category_id = category_id_of(category_ref)
        cursor.execute("SELECT 1 FROM categories WHERE category_id = ?", (category_id,))
        if cursor.fetchone() is None:
            raise NotFoundError(f"Category not found with id of {category_id}")
        return category_id

    # =============================================================================
    # CATEGORY METHODS
    # =============================================================================

    def get_categories(self):
        """Get all categories, sorted by name."""
        conn, cursor = self._get_db_connection()
        try:
            cursor.execute(f"SELECT {CATEGORY_COLUMNS} FROM categories ORDER BY name ASC")
            return [Category.from_row(row) for row in cursor.fetchall()]
        finally:
            cursor.close()
            conn.close()

    def count_categories(self):
        conn, cursor = self._get_db_connection()
        try:
            cursor.execute("SELECT COUNT(*) FROM categories")
            return cursor.fetchone()[0]
        finally:
            cursor.close()
            conn.close()

    def _fetch_category(self, cursor, category_id):
        cursor.execute(f"SELECT {CATEGORY_COLUMNS} FROM categories WHERE category_id = ?", (category_id,))
        row = cursor.fetchone()
        if row is None:
            raise NotFoundError(f"Category not found with id of {category_id}")
        return Category.from_row(row)

    def get_category(self, category_id):
        conn, cursor = self._get_db_connection()
        try:
            return self._fetch_category(cursor, category_id)
        finally:
            cursor.close()
            conn.close()

    def _check_category_name_free(self, cursor, name, exclude_id=None):
        cursor.execute(
            "SELECT category_id FROM categories WHERE name = ? AND category_id != ?",
            (name, exclude_id if exclude_id is not None else -1)
        )
        if cursor.fetchone() is not None:
            raise ConflictError(f"A category named '{name}' already exists")

    def add_category(self, data):
        """Add a new category. ``data`` holds name and optionally icon and color."""
        conn, cursor = self._get_db_connection()
        try:
            self._check_category_name_free(cursor, data['name'])
            now = self._timestamp()
            cursor.execute(
                """INSERT INTO categories (name, icon, color, created_at, updated_at)
                   VALUES (?, ?, ?, ?, ?)""",
                (data['name'], data.get('icon', 'tag'), data.get('color', '#808080'), now, now)
            )
            conn.commit()
            return self._fetch_category(cursor, cursor.lastrowid)
        except sqlite3.IntegrityError:
            conn.rollback()
            raise ConflictError(f"A category named '{data['name']}' already exists")
        finally:
            cursor.close()
            conn.close()

    def update_category(self, category_id, data):
        """Update name, icon and/or color of an existing category."""
        conn, cursor = self._get_db_connection()
        try:
            current = self._fetch_category(cursor, category_id)
            if 'name' in data and data['name'] != current.name:
                self._check_category_name_free(cursor, data['name'], exclude_id=category_id)

            cursor.execute(
                "UPDATE categories SET name = ?, icon = ?, color = ?, updated_at = ? WHERE category_id = ?",
                (
                    data.get('name', current.name),
                    data.get('icon', current.icon),
                    data.get('color', current.color),
                    self._timestamp(),
                    category_id,
                )
            )
            conn.commit()
            return self._fetch_category(cursor, category_id)
        except sqlite3.IntegrityError:
            conn.rollback()
            raise ConflictError(f"A category named '{data.get('name')}' already exists")
        finally:
            cursor.close()
            conn.close()

    @staticmethod
    def _count_category_transactions(cursor, category_id):
        cursor.execute("SELECT COUNT(*) FROM transactions WHERE category_id = ?", (category_id,))
        return cursor.fetchone()[0]

    def get_category_transaction_count(self, category_id):
        """Get the count of transactions using a specific category."""
        conn, cursor = self._get_db_connection()
        try:
            self._fetch_category(cursor, category_id)
            return self._count_category_transactions(cursor, category_id)
        finally:
            cursor.close()
            conn.close()

    def delete_category(self, category_id):
        """
        Delete a category.

        Refused while any transaction references the category. Budgets for
        the category are removed with it (ON DELETE CASCADE).
        """
        conn, cursor = self._get_db_connection()
        try:
            self._fetch_category(cursor, category_id)

            transaction_count = self._count_category_transactions(cursor, category_id)
            if transaction_count > 0:
                raise ConflictError(
                    f"Cannot delete category that has {transaction_count} associated transactions. "
                    "Update or delete the transactions first."
                )

            cursor.execute("DELETE FROM categories WHERE category_id = ?", (category_id,))
            conn.commit()
        except sqlite3.IntegrityError:
            conn.rollback()
            raise ConflictError("Cannot delete category that still has associated transactions.")
        finally:
            cursor.close()
            conn.close()

    # =============================================================================
    # TRANSACTION METHODS
    # =============================================================================

    def _fetch_transaction(self, cursor, transaction_id):
        cursor.execute(f"{TRANSACTION_SELECT} WHERE t.transaction_id = ?", (transaction_id,))
        row = cursor.fetchone()
        if row is None:
            raise NotFoundError(f"Transaction not found with id of {transaction_id}")
        return Transaction.from_row(row)

    def get_transaction(self, transaction_id):
        conn, cursor = self._get_db_connection()
        try:
            return self._fetch_transaction(cursor, transaction_id)
        finally:
            cursor.close()
            conn.close()

    def get_transactions(self, page=1, limit=10, sort=('date', True), start=None, end=None, category=None):
        """
        Get one page of transactions.

        Args:
            page (int): 1-based page number
            limit (int): page size
            sort (tuple): (column, descending) - column must already be whitelisted
            start (datetime): inclusive lower bound on date
            end (datetime): exclusive upper bound on date
            category (CategoryRef): only transactions in this category

        Returns:
            Page: the transactions plus the total number of matching records
        """
        clauses, params = [], []
        if start is not None:
            clauses.append("t.date >= ?")
            params.append(to_db_str(start))
        if end is not None:
            clauses.append("t.date < ?")
            params.append(to_db_str(end))
        if category is not None:
            clauses.append("t.category_id = ?")
            params.append(category_id_of(category))
        where = f"WHERE {' AND '.join(clauses)}" if clauses else ""

        column, descending = sort
        direction = "DESC" if descending else "ASC"

        conn, cursor = self._get_db_connection()
        try:
            cursor.execute(f"SELECT COUNT(*) FROM transactions t {where}", params)
            total_records = cursor.fetchone()[0]

            cursor.execute(
                f"{TRANSACTION_SELECT} {where} ORDER BY t.{column} {direction}, t.transaction_id {direction} "
                "LIMIT ? OFFSET ?",
                params + [limit, (page - 1) * limit]
            )
            items = [Transaction.from_row(row) for row in cursor.fetchall()]
            return Page(items=items, page=page, limit=limit, total_records=total_records)
        finally:
            cursor.close()
            conn.close()

    def get_recent_transactions(self, limit=5):
        """Get the most recent transactions by date, regardless of period."""
        conn, cursor = self._get_db_connection()
        try:
            cursor.execute(
                f"{TRANSACTION_SELECT} ORDER BY t.date DESC, t.transaction_id DESC LIMIT ?",
                (limit,)
            )
            return [Transaction.from_row(row) for row in cursor.fetchall()]
        finally:
            cursor.close()
            conn.close()

    def add_transaction(self, data):
        """Record a new transaction. The referenced category must exist."""
        conn, cursor = self._get_db_connection()
        try:
            category_id = self._require_category(cursor, data['category'])
            now = self._timestamp()
            cursor.execute(
                """INSERT INTO transactions (amount, date, description, category_id, created_at, updated_at)
                   VALUES (?, ?, ?, ?, ?, ?)""",
                (data['amount'], to_db_str(data['date']), data['description'], category_id, now, now)
            )
            conn.commit()
            return self._fetch_transaction(cursor, cursor.lastrowid)
        except sqlite3.IntegrityError as e:
            conn.rollback()
            raise NotFoundError(f"Category not found with id of {category_id_of(data['category'])}") from e
        finally:
            cursor.close()
            conn.close()

    def update_transaction(self, transaction_id, data):
        conn, cursor = self._get_db_connection()
        try:
            current = self._fetch_transaction(cursor, transaction_id)
            category_id = current.category_id
            if 'category' in data:
                category_id = self._require_category(cursor, data['category'])

            cursor.execute(
                """UPDATE transactions
                   SET amount = ?, date = ?, description = ?, category_id = ?, updated_at = ?
                   WHERE transaction_id = ?""",
                (
                    data.get('amount', current.amount),
                    to_db_str(data.get('date', current.date)),
                    data.get('description', current.description),
                    category_id,
                    self._timestamp(),
                    transaction_id,
                )
            )
            conn.commit()
            return self._fetch_transaction(cursor, transaction_id)
        finally:
            cursor.close()
            conn.close()

    def delete_transaction(self, transaction_id):
        conn, cursor = self._get_db_connection()
        try:
            self._fetch_transaction(cursor, transaction_id)
            cursor.execute("DELETE FROM transactions WHERE transaction_id = ?", (transaction_id,))
            conn.commit()
        finally:
            cursor.close()
            conn.close()

    # =============================================================================
    # BUDGET METHODS
    # =============================================================================

    def _fetch_budget(self, cursor, budget_id):
        cursor.execute(f"{BUDGET_SELECT} WHERE b.budget_id = ?", (budget_id,))
        row = cursor.fetchone()
        if row is None:
            raise NotFoundError(f"Budget not found with id of {budget_id}")
        return Budget.from_row(row)

    @staticmethod
    def _check_budget_key_free(cursor, month, year, category_id, exclude_id=None):
        cursor.execute(
            "SELECT budget_id FROM budgets WHERE month = ? AND year = ? AND category_id = ? AND budget_id != ?",
            (month, year, category_id, exclude_id if exclude_id is not None else -1)
        )
        if cursor.fetchone() is not None:
            raise ConflictError(f"Budget already exists for this category in {month}/{year}")

    def get_budget(self, budget_id):
        conn, cursor = self._get_db_connection()
        try:
            return self._fetch_budget(cursor, budget_id)
        finally:
            cursor.close()
            conn.close()

    def get_budgets(self, month=None, year=None, category=None):
        """Get budgets, optionally filtered, newest period first."""
        clauses, params = [], []
        if month is not None:
            clauses.append("b.month = ?")
            params.append(month)
        if year is not None:
            clauses.append("b.year = ?")
            params.append(year)
        if category is not None:
            clauses.append("b.category_id = ?")
            params.append(category_id_of(category))
        where = f"WHERE {' AND '.join(clauses)}" if clauses else ""

        conn, cursor = self._get_db_connection()
        try:
            cursor.execute(f"{BUDGET_SELECT} {where} ORDER BY b.year DESC, b.month DESC, c.name ASC", params)
            return [Budget.from_row(row) for row in cursor.fetchall()]
        finally:
            cursor.close()
            conn.close()

    def add_budget(self, data):
        """
        Create a budget for one category in one month.

        Raises:
            NotFoundError: the category does not exist
            ConflictError: a budget for the same (month, year, category) exists
        """
        conn, cursor = self._get_db_connection()
        try:
            category_id = self._require_category(cursor, data['category'])
            self._check_budget_key_free(cursor, data['month'], data['year'], category_id)
            now = self._timestamp()
            cursor.execute(
                """INSERT INTO budgets (month, year, category_id, planned_amount, created_at, updated_at)
                   VALUES (?, ?, ?, ?, ?, ?)""",
                (data['month'], data['year'], category_id, data['planned_amount'], now, now)
            )
            conn.commit()
            return self._fetch_budget(cursor, cursor.lastrowid)
        except sqlite3.IntegrityError:
            conn.rollback()
            raise ConflictError(
                f"Budget already exists for this category in {data['month']}/{data['year']}"
            )
        finally:
            cursor.close()
            conn.close()

    def update_budget(self, budget_id, data):
        """Update a budget, re-checking the (month, year, category) key when it changes."""
        conn, cursor = self._get_db_connection()
        try:
            current = self._fetch_budget(cursor, budget_id)
            month = data.get('month', current.month)
            year = data.get('year', current.year)
            category_id = current.category_id
            if 'category' in data:
                category_id = self._require_category(cursor, data['category'])

            if (month, year, category_id) != (current.month, current.year, current.category_id):
                self._check_budget_key_free(cursor, month, year, category_id, exclude_id=budget_id)

            cursor.execute(
                """UPDATE budgets
                   SET month = ?, year = ?, category_id = ?, planned_amount = ?, updated_at = ?
                   WHERE budget_id = ?""",
                (
                    month,
                    year,
                    category_id,
                    data.get('planned_amount', current.planned_amount),
                    self._timestamp(),
                    budget_id,
                )
            )
            conn.commit()
            return self._fetch_budget(cursor, budget_id)
        except sqlite3.IntegrityError:
            conn.rollback()
            raise ConflictError(f"Budget already exists for this category in {month}/{year}")
        finally:
            cursor.close()
            conn.close()

    def delete_budget(self, budget_id):
        conn, cursor = self._get_db_connection()
        try:
            self._fetch_budget(cursor, budget_id)
            cursor.execute("DELETE FROM budgets WHERE budget_id = ?", (budget_id,))
            conn.commit()
        finally:
            cursor.close()
            conn.close()
