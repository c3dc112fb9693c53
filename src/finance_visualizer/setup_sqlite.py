"""
Finance Visualizer - SQLite Database Setup & Initialization

This module creates and initializes the Finance Visualizer SQLite schema.

Database Schema Overview:
------------------------
- categories: Spending categories (name, icon, color), unique by name
- transactions: Dated expenses, each referencing one category
- budgets: Planned amount per (month, year, category), unique per key

Key Design Features:
- Foreign key constraints for referential integrity
- Transactions RESTRICT category deletion; budgets CASCADE with it
- UNIQUE constraints back up the application-level duplicate checks
- Indexes on transaction date and category for the report queries
"""

import sqlite3
from pathlib import Path

from .config import DEFAULT_DB_PATH

EXPECTED_TABLES = ['categories', 'transactions', 'budgets']


def get_db_path(db_path=None):
    """Return the path to the SQLite database file"""
    return Path(db_path) if db_path is not None else DEFAULT_DB_PATH


def create_database(db_path=None):
    """
    Create the Finance Visualizer SQLite database with all tables.

    Existing tables are left untouched. Use reset_database() to start fresh.
    """
    db_path = get_db_path(db_path)
    db_path.parent.mkdir(parents=True, exist_ok=True)

    conn = sqlite3.connect(str(db_path))
    cursor = conn.cursor()
    cursor.execute("PRAGMA foreign_keys = ON;")

    print(f"[DB] Creating database at {db_path}")

    try:
        # =================================================================
        # TABLE 1: categories
        # =================================================================
        cursor.execute("""
            CREATE TABLE IF NOT EXISTS categories (
                category_id INTEGER PRIMARY KEY AUTOINCREMENT,
                name TEXT NOT NULL UNIQUE,
                icon TEXT NOT NULL DEFAULT 'tag',
                color TEXT NOT NULL DEFAULT '#808080',
                created_at TEXT NOT NULL,
                updated_at TEXT NOT NULL
            )
        """)

        # =================================================================
        # TABLE 2: transactions
        # =================================================================
        cursor.execute("""
            CREATE TABLE IF NOT EXISTS transactions (
                transaction_id INTEGER PRIMARY KEY AUTOINCREMENT,
                amount REAL NOT NULL CHECK(amount > 0),
                date TEXT NOT NULL,
                description TEXT NOT NULL,
                category_id INTEGER NOT NULL,
                created_at TEXT NOT NULL,
                updated_at TEXT NOT NULL,
                FOREIGN KEY (category_id) REFERENCES categories(category_id) ON DELETE RESTRICT
            )
        """)
        cursor.execute("CREATE INDEX IF NOT EXISTS idx_transactions_date ON transactions(date DESC);")
        cursor.execute("CREATE INDEX IF NOT EXISTS idx_transactions_category ON transactions(category_id);")

        # =================================================================
        # TABLE 3: budgets
        # =================================================================
        cursor.execute("""
            CREATE TABLE IF NOT EXISTS budgets (
                budget_id INTEGER PRIMARY KEY AUTOINCREMENT,
                month INTEGER NOT NULL CHECK(month BETWEEN 1 AND 12),
                year INTEGER NOT NULL CHECK(year BETWEEN 2000 AND 9998),
                category_id INTEGER NOT NULL,
                planned_amount REAL NOT NULL CHECK(planned_amount >= 0),
                created_at TEXT NOT NULL,
                updated_at TEXT NOT NULL,
                FOREIGN KEY (category_id) REFERENCES categories(category_id) ON DELETE CASCADE,
                UNIQUE(month, year, category_id)
            )
        """)
        cursor.execute("CREATE INDEX IF NOT EXISTS idx_budgets_period ON budgets(year, month);")

        conn.commit()
        print("[DB] Schema ready")
        return True

    except sqlite3.Error as err:
        print(f"[DB] [ERROR] Error creating database: {err}")
        conn.rollback()
        return False

    finally:
        conn.close()


def reset_database(db_path=None):
    """
    Delete the existing database and create a fresh one.
    All data will be permanently lost!
    """
    db_path = get_db_path(db_path)

    if db_path.exists():
        print(f"[DB] [WARNING] Deleting existing database at {db_path}")
        db_path.unlink()

    return create_database(db_path)


def verify_schema(db_path=None):
    """Verify that all tables exist. Returns False on the first missing one."""
    db_path = get_db_path(db_path)

    if not db_path.exists():
        print("[DB] [ERROR] Database does not exist")
        return False

    conn = sqlite3.connect(str(db_path))
    try:
        cursor = conn.cursor()
        for table in EXPECTED_TABLES:
            cursor.execute("SELECT name FROM sqlite_master WHERE type='table' AND name=?", (table,))
            if not cursor.fetchone():
                print(f"[DB] [ERROR] Table '{table}' MISSING")
                return False
        return True
    finally:
        conn.close()


if __name__ == "__main__":
    create_database()
    verify_schema()
