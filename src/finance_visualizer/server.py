"""
Finance Visualizer - Launcher

Handles startup:
1. Configuration from the environment / .env file
2. Database setup (creates the schema if missing)
3. Optional seeding of default categories or demo data
4. Flask server startup

Usage:
    finance-visualizer [--seed] [--demo] [--port PORT]
"""

import argparse
import sys
import traceback

from .api import create_app
from .config import Settings
from .demo_data import generate_demo_data
from .engine import FinanceEngine
from .seed import seed_default_categories
from .setup_sqlite import create_database, verify_schema


def build_parser():
    parser = argparse.ArgumentParser(description="Finance Visualizer API server")
    parser.add_argument('--seed', action='store_true', help="seed default categories if none exist")
    parser.add_argument('--demo', action='store_true', help="load a few months of demo transactions")
    parser.add_argument('--port', type=int, default=None, help="override the PORT setting")
    parser.add_argument('--debug', action='store_true', help="run Flask in debug mode")
    return parser


def setup_database(settings):
    """Create the schema if needed and confirm every table is present."""
    if not create_database(settings.database_path) or not verify_schema(settings.database_path):
        raise RuntimeError(f"Could not initialize database at {settings.database_path}")
    return FinanceEngine(settings.database_path)


def main(argv=None):
    args = build_parser().parse_args(argv)
    settings = Settings.from_env()
    if args.port is not None:
        settings.port = args.port

    print("=" * 60)
    print("Finance Visualizer API")
    print("=" * 60)

    try:
        engine = setup_database(settings)

        if args.seed:
            seed_default_categories(engine)
        if args.demo:
            summary = generate_demo_data(engine)
            print(f"[DEMO] {summary}")

        app = create_app(settings=settings, engine=engine)
        print(f"Server running in {settings.env} mode on port {settings.port}")
        app.run(host='127.0.0.1', port=settings.port, debug=args.debug, use_reloader=False)
    except KeyboardInterrupt:
        print()
        print("Server stopped.")
    except Exception as e:
        print(f"ERROR: An unexpected error occurred: {e}")
        traceback.print_exc()
        return 1
    return 0


if __name__ == "__main__":
    sys.exit(main())
