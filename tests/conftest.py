import datetime

import pytest

from finance_visualizer.api import create_app
from finance_visualizer.config import Settings
from finance_visualizer.engine import FinanceEngine
from finance_visualizer.models import CategoryId
from finance_visualizer.rate_limit import FixedWindowRateLimiter
from finance_visualizer.reports import ReportEngine
from finance_visualizer.setup_sqlite import create_database

NOW = datetime.datetime(2024, 3, 15, 12, 0, 0)


def fixed_clock():
    return NOW


@pytest.fixture
def db_path(tmp_path):
    path = tmp_path / 'finance.db'
    create_database(path)
    return path


@pytest.fixture
def engine(db_path):
    return FinanceEngine(db_path, clock=fixed_clock)


@pytest.fixture
def reports(engine):
    return ReportEngine(engine, clock=fixed_clock)


@pytest.fixture
def app(engine, db_path):
    settings = Settings(database_path=db_path)
    return create_app(
        settings=settings,
        engine=engine,
        rate_limiter=FixedWindowRateLimiter(window_seconds=60, max_requests=10000),
        clock=fixed_clock,
    )


@pytest.fixture
def client(app):
    return app.test_client()


def add_category(engine, name, icon='tag', color='#808080'):
    return engine.add_category({'name': name, 'icon': icon, 'color': color})


def add_transaction(engine, category, amount, when, description='Test purchase'):
    return engine.add_transaction({
        'amount': amount,
        'date': when,
        'description': description,
        'category': CategoryId(category.id),
    })


def add_budget(engine, category, month, year, planned):
    return engine.add_budget({
        'month': month,
        'year': year,
        'category': CategoryId(category.id),
        'planned_amount': planned,
    })
