"""
Finance Visualizer - Configuration

Settings are read from environment variables. A .env file in the working
directory is loaded first (python-dotenv), so local overrides never need to
be exported by hand.
"""

import os
from dataclasses import dataclass
from pathlib import Path

from dotenv import load_dotenv

load_dotenv()

DEFAULT_DB_PATH = Path(__file__).parent / "data" / "finance.db"

_TRUE_VALUES = ('1', 'true', 'yes', 'on')


@dataclass
class Settings:
    port: int = 5000
    env: str = 'development'
    database_path: Path = DEFAULT_DB_PATH
    rate_limit_window_ms: int = 900000  # 15 minutes
    rate_limit_max: int = 100
    seed_on_startup: bool = False

    @property
    def is_production(self):
        return self.env == 'production'

    @classmethod
    def from_env(cls, environ=None):
        env = os.environ if environ is None else environ
        return cls(
            port=int(env.get('PORT', '5000')),
            env=env.get('FLASK_ENV', 'development'),
            database_path=Path(env.get('DATABASE_PATH') or DEFAULT_DB_PATH),
            rate_limit_window_ms=int(env.get('RATE_LIMIT_WINDOW_MS', '900000')),
            rate_limit_max=int(env.get('RATE_LIMIT_MAX', '100')),
            seed_on_startup=env.get('SEED_ON_STARTUP', 'false').strip().lower() in _TRUE_VALUES,
        )
