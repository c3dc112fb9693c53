from pathlib import Path

from conftest import add_category
from finance_visualizer.config import DEFAULT_DB_PATH, Settings
from finance_visualizer.setup_sqlite import reset_database, verify_schema


def test_settings_defaults():
    settings = Settings.from_env({})
    assert settings.port == 5000
    assert settings.env == 'development'
    assert settings.database_path == DEFAULT_DB_PATH
    assert settings.rate_limit_window_ms == 900000
    assert settings.rate_limit_max == 100
    assert settings.seed_on_startup is False
    assert not settings.is_production


def test_settings_from_environment():
    settings = Settings.from_env({
        'PORT': '8080',
        'FLASK_ENV': 'production',
        'DATABASE_PATH': '/tmp/tracker.db',
        'RATE_LIMIT_WINDOW_MS': '60000',
        'RATE_LIMIT_MAX': '5',
        'SEED_ON_STARTUP': 'True',
    })
    assert settings.port == 8080
    assert settings.is_production
    assert settings.database_path == Path('/tmp/tracker.db')
    assert settings.rate_limit_window_ms == 60000
    assert settings.rate_limit_max == 5
    assert settings.seed_on_startup is True


def test_schema_verifies(db_path, tmp_path):
    assert verify_schema(db_path)
    assert not verify_schema(tmp_path / 'missing.db')


def test_reset_database_drops_data(engine, db_path):
    add_category(engine, 'Groceries')
    assert reset_database(db_path)
    assert engine.count_categories() == 0
