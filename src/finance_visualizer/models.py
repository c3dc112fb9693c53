"""
Finance Visualizer - Record Types

Categories, transactions and budgets as returned by the stores. Each record
knows how to build itself from a sqlite3.Row and how to render itself as the
camelCase dictionary the REST API sends.

A category reference is always one of two things: a CategoryId (an opaque id
taken from a write payload) or a resolved Category record (anything read back
from a store). Code that needs the id of either uses category_id_of().
"""

from dataclasses import dataclass
from typing import Optional, Union
import datetime

from .date_helpers import from_db_str


def _iso(value):
    return value.isoformat() if value is not None else None


@dataclass(frozen=True)
class CategoryId:
    value: int

    def to_dict(self):
        return self.value


@dataclass
class Category:
    id: int
    name: str
    icon: str = 'tag'
    color: str = '#808080'
    created_at: Optional[datetime.datetime] = None
    updated_at: Optional[datetime.datetime] = None

    @classmethod
    def from_row(cls, row, prefix=''):
        """Build a Category from a row, reading columns named ``{prefix}name`` etc."""
        return cls(
            id=row[f'{prefix}category_id'],
            name=row[f'{prefix}name'],
            icon=row[f'{prefix}icon'],
            color=row[f'{prefix}color'],
            created_at=from_db_str(row[f'{prefix}created_at']),
            updated_at=from_db_str(row[f'{prefix}updated_at']),
        )

    def to_dict(self):
        return {
            'id': self.id,
            'name': self.name,
            'icon': self.icon,
            'color': self.color,
            'createdAt': _iso(self.created_at),
            'updatedAt': _iso(self.updated_at),
        }


CategoryRef = Union[CategoryId, Category]


def category_id_of(ref):
    """Return the integer id behind either kind of category reference."""
    if isinstance(ref, CategoryId):
        return ref.value
    if isinstance(ref, Category):
        return ref.id
    raise TypeError(f"Not a category reference: {ref!r}")


def _category_ref_from_row(row):
    # Rows selected with the category join carry cat_* columns.
    if 'cat_name' in row.keys() and row['cat_name'] is not None:
        return Category.from_row(row, prefix='cat_')
    return CategoryId(row['category_id'])


@dataclass
class Transaction:
    id: int
    amount: float
    date: datetime.datetime
    description: str
    category: CategoryRef
    created_at: Optional[datetime.datetime] = None
    updated_at: Optional[datetime.datetime] = None

    @property
    def category_id(self):
        return category_id_of(self.category)

    @classmethod
    def from_row(cls, row):
        return cls(
            id=row['transaction_id'],
            amount=float(row['amount']),
            date=from_db_str(row['date']),
            description=row['description'],
            category=_category_ref_from_row(row),
            created_at=from_db_str(row['created_at']),
            updated_at=from_db_str(row['updated_at']),
        )

    def to_dict(self):
        return {
            'id': self.id,
            'amount': self.amount,
            'date': _iso(self.date),
            'description': self.description,
            'category': self.category.to_dict(),
            'createdAt': _iso(self.created_at),
            'updatedAt': _iso(self.updated_at),
        }


@dataclass
class Budget:
    id: int
    month: int
    year: int
    category: CategoryRef
    planned_amount: float
    created_at: Optional[datetime.datetime] = None
    updated_at: Optional[datetime.datetime] = None

    @property
    def category_id(self):
        return category_id_of(self.category)

    @classmethod
    def from_row(cls, row):
        return cls(
            id=row['budget_id'],
            month=row['month'],
            year=row['year'],
            category=_category_ref_from_row(row),
            planned_amount=float(row['planned_amount']),
            created_at=from_db_str(row['created_at']),
            updated_at=from_db_str(row['updated_at']),
        )

    def to_dict(self):
        return {
            'id': self.id,
            'month': self.month,
            'year': self.year,
            'category': self.category.to_dict(),
            'plannedAmount': self.planned_amount,
            'createdAt': _iso(self.created_at),
            'updatedAt': _iso(self.updated_at),
        }


@dataclass
class Page:
    """One page of a paginated listing."""

    items: list
    page: int
    limit: int
    total_records: int

    @property
    def total_pages(self):
        if self.limit <= 0:
            return 0
        return -(-self.total_records // self.limit)

    def pagination(self):
        return {
            'current': self.page,
            'limit': self.limit,
            'total': self.total_pages,
            'totalRecords': self.total_records,
        }
