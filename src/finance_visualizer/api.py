"""
Finance Visualizer - Flask REST API

This module builds the Flask application that serves the tracker's REST API.

Resources (all under /api):
- categories: CRUD plus a per-category spending breakdown
- transactions: paginated CRUD plus twelve-month totals for a year
- budgets: CRUD plus budget-vs-actual comparison for a month
- dashboard: current-month summary and six-month spending insights

Every response uses the same envelope:
    {"success": true, "data": ..., "count": ..., "pagination": ...}
    {"success": false, "error": "message"}

Cross-cutting concerns:
- CORS enabled for the single-page client (Flask-CORS)
- Per-client rate limiting through an injectable RateLimiter
- FinanceError subclasses map to their HTTP status; anything else is
  logged to the console and answered with a generic 500
"""

import datetime
import traceback
from decimal import Decimal

from flask import Blueprint, Flask, current_app, g, jsonify, request
from flask.json.provider import DefaultJSONProvider
from flask_cors import CORS
from werkzeug.exceptions import HTTPException

from . import validators
from .config import Settings
from .engine import FinanceEngine
from .errors import FinanceError, RateLimitExceeded
from .rate_limit import FixedWindowRateLimiter
from .reports import ReportEngine
from .seed import seed_default_categories
from .setup_sqlite import create_database

EXTENSION_KEY = 'finance_visualizer'


class CustomJSONProvider(DefaultJSONProvider):
    """
    JSON provider for Decimal, datetime and record objects.

    Converts:
    - Decimal to float
    - datetime and date to ISO 8601
    - anything with a to_dict() method (records, category references)
    """
    sort_keys = False

    def default(self, obj):
        if isinstance(obj, Decimal):
            return float(obj)
        if isinstance(obj, (datetime.datetime, datetime.date)):
            return obj.isoformat()
        if hasattr(obj, 'to_dict'):
            return obj.to_dict()
        return super().default(obj)


api = Blueprint('api', __name__, url_prefix='/api')


def _engine():
    return current_app.extensions[EXTENSION_KEY]['engine']


def _reports():
    return current_app.extensions[EXTENSION_KEY]['reports']


def _ok(data, status=200, **extra):
    body = {"success": True}
    body.update(extra)
    body["data"] = data
    return jsonify(body), status


def _json_body():
    return request.get_json(silent=True)


# =============================================================================
# CATEGORY ROUTES
# =============================================================================

@api.route('/categories', methods=['GET'])
def get_categories():
    categories = _engine().get_categories()
    return _ok(categories, count=len(categories))


@api.route('/categories', methods=['POST'])
def create_category():
    data = validators.validate_category(_json_body())
    return _ok(_engine().add_category(data), 201)


@api.route('/categories/transactions', methods=['GET'])
def get_category_transactions():
    """Spending per category for an optional startDate/endDate window."""
    start, end = validators.parse_window_query(request.args)
    breakdown = _reports().category_breakdown(start=start, end=end)
    return _ok(breakdown, count=len(breakdown))


@api.route('/categories/<int:category_id>', methods=['GET'])
def get_category(category_id):
    return _ok(_engine().get_category(category_id))


@api.route('/categories/<int:category_id>', methods=['PUT'])
def update_category(category_id):
    data = validators.validate_category(_json_body(), partial=True)
    return _ok(_engine().update_category(category_id, data))


@api.route('/categories/<int:category_id>', methods=['DELETE'])
def delete_category(category_id):
    _engine().delete_category(category_id)
    return _ok({})


# =============================================================================
# TRANSACTION ROUTES
# =============================================================================

@api.route('/transactions', methods=['GET'])
def get_transactions():
    query = validators.parse_transaction_query(request.args)
    page = _engine().get_transactions(**query)
    return _ok(page.items, count=len(page.items), pagination=page.pagination())


@api.route('/transactions', methods=['POST'])
def create_transaction():
    data = validators.validate_transaction(_json_body())
    return _ok(_engine().add_transaction(data), 201)


@api.route('/transactions/monthly', methods=['GET'])
def get_monthly_expenses():
    """Twelve zero-filled monthly totals for ?year (default: this year)."""
    reports = _reports()
    year = validators.parse_year(request.args, default=reports.clock().year)
    return _ok(reports.monthly_expenses(year=year))


@api.route('/transactions/<int:transaction_id>', methods=['GET'])
def get_transaction(transaction_id):
    return _ok(_engine().get_transaction(transaction_id))


@api.route('/transactions/<int:transaction_id>', methods=['PUT'])
def update_transaction(transaction_id):
    data = validators.validate_transaction(_json_body(), partial=True)
    return _ok(_engine().update_transaction(transaction_id, data))


@api.route('/transactions/<int:transaction_id>', methods=['DELETE'])
def delete_transaction(transaction_id):
    _engine().delete_transaction(transaction_id)
    return _ok({})


# =============================================================================
# BUDGET ROUTES
# =============================================================================

@api.route('/budgets', methods=['GET'])
def get_budgets():
    query = validators.parse_budget_query(request.args)
    budgets = _engine().get_budgets(**query)
    return _ok(budgets, count=len(budgets))


@api.route('/budgets', methods=['POST'])
def create_budget():
    data = validators.validate_budget(_json_body())
    return _ok(_engine().add_budget(data), 201)


@api.route('/budgets/comparison', methods=['GET'])
def get_budget_comparison():
    query = validators.parse_budget_query(request.args)
    comparison = _reports().budget_comparison(month=query['month'], year=query['year'])
    entries = comparison['entries']
    return _ok(entries, count=len(entries), month=comparison['month'], year=comparison['year'])


@api.route('/budgets/<int:budget_id>', methods=['GET'])
def get_budget(budget_id):
    return _ok(_engine().get_budget(budget_id))


@api.route('/budgets/<int:budget_id>', methods=['PUT'])
def update_budget(budget_id):
    data = validators.validate_budget(_json_body(), partial=True)
    return _ok(_engine().update_budget(budget_id, data))


@api.route('/budgets/<int:budget_id>', methods=['DELETE'])
def delete_budget(budget_id):
    _engine().delete_budget(budget_id)
    return _ok({})


# =============================================================================
# DASHBOARD ROUTES
# =============================================================================

@api.route('/dashboard', methods=['GET'])
def get_dashboard_summary():
    return _ok(_reports().dashboard_summary())


@api.route('/dashboard/insights', methods=['GET'])
def get_spending_insights():
    return _ok(_reports().spending_insights())


# =============================================================================
# APPLICATION FACTORY
# =============================================================================

def _register_error_handlers(app):

    @app.errorhandler(FinanceError)
    def handle_finance_error(error):
        return jsonify({"success": False, "error": error.message}), error.status_code

    @app.errorhandler(HTTPException)
    def handle_http_error(error):
        message = "Resource not found" if error.code == 404 else error.description
        return jsonify({"success": False, "error": message}), error.code

    @app.errorhandler(Exception)
    def handle_unexpected_error(error):
        print(f"[API] Unhandled error on {request.method} {request.path}: {error}")
        traceback.print_exc()
        return jsonify({"success": False, "error": "Server Error"}), 500


def _register_rate_limiting(app, rate_limiter):

    @app.before_request
    def check_rate_limit():
        status = rate_limiter.hit(request.remote_addr or 'unknown')
        g.rate_limit = status
        if not status.allowed:
            raise RateLimitExceeded()

    @app.after_request
    def add_rate_limit_headers(response):
        status = g.get('rate_limit')
        if status is not None:
            response.headers['X-RateLimit-Limit'] = str(status.limit)
            response.headers['X-RateLimit-Remaining'] = str(status.remaining)
        return response


def create_app(settings=None, engine=None, rate_limiter=None, clock=None):
    """
    Build the Flask application.

    Args:
        settings (Settings): configuration, defaults to Settings.from_env()
        engine (FinanceEngine): storage engine, defaults to one over
            settings.database_path (the schema is created if missing)
        rate_limiter (RateLimiter): defaults to an in-memory fixed window
            sized from settings
        clock: zero-argument callable used as "now" by the reports
    """
    settings = settings or Settings.from_env()
    if engine is None:
        create_database(settings.database_path)
        engine = FinanceEngine(settings.database_path)
    if rate_limiter is None:
        rate_limiter = FixedWindowRateLimiter(
            window_seconds=settings.rate_limit_window_ms / 1000,
            max_requests=settings.rate_limit_max,
        )

    app = Flask(__name__)
    app.json = CustomJSONProvider(app)
    CORS(app)

    app.extensions[EXTENSION_KEY] = {
        'settings': settings,
        'engine': engine,
        'reports': ReportEngine(engine, clock=clock),
        'rate_limiter': rate_limiter,
    }

    if settings.seed_on_startup:
        seed_default_categories(engine)

    _register_rate_limiting(app, rate_limiter)
    _register_error_handlers(app)
    app.register_blueprint(api)

    @app.route('/health', methods=['GET'])
    def health_check():
        return jsonify({
            "success": True,
            "message": "API is up and running",
            "timestamp": datetime.datetime.now().isoformat(),
        })

    @app.route('/', methods=['GET'])
    def index():
        return jsonify({
            "success": True,
            "message": "Welcome to the Finance Visualizer API",
        })

    return app
