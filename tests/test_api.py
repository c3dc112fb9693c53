import datetime

from conftest import NOW, add_budget, add_category, add_transaction, fixed_clock
from finance_visualizer.api import create_app
from finance_visualizer.config import Settings
from finance_visualizer.rate_limit import FixedWindowRateLimiter


def test_index_and_health(client):
    assert client.get('/').get_json()['success'] is True
    health = client.get('/health').get_json()
    assert health['success'] is True
    assert health['message'] == 'API is up and running'


# --- categories ---

def test_create_and_list_categories(client):
    response = client.post('/api/categories', json={'name': 'Groceries', 'icon': 'cart', 'color': '#4CAF50'})
    assert response.status_code == 201
    created = response.get_json()['data']
    assert created['name'] == 'Groceries'
    assert created['createdAt'].startswith('2024-03-15')

    body = client.get('/api/categories').get_json()
    assert body['success'] is True
    assert body['count'] == 1
    assert body['data'][0]['id'] == created['id']


def test_invalid_category_body(client):
    response = client.post('/api/categories', json={'name': 'G', 'color': 'nope'})
    assert response.status_code == 400
    body = response.get_json()
    assert body['success'] is False
    assert 'hex color' in body['error']


def test_non_json_body_is_rejected(client):
    response = client.post('/api/categories', data='name=Groceries')
    assert response.status_code == 400
    assert response.get_json()['error'] == 'Request body must be a JSON object'


def test_duplicate_category_conflict(client):
    client.post('/api/categories', json={'name': 'Groceries'})
    response = client.post('/api/categories', json={'name': 'Groceries'})
    assert response.status_code == 409
    assert response.get_json()['error'] == "A category named 'Groceries' already exists"


def test_unknown_category_is_404(client):
    response = client.get('/api/categories/999')
    assert response.status_code == 404
    assert response.get_json() == {'success': False, 'error': 'Category not found with id of 999'}


def test_delete_category_in_use_conflicts(client, engine):
    groceries = add_category(engine, 'Groceries')
    add_transaction(engine, groceries, 10, NOW)

    response = client.delete(f'/api/categories/{groceries.id}')
    assert response.status_code == 409
    assert 'associated transactions' in response.get_json()['error']


def test_delete_category_returns_empty_data(client, engine):
    groceries = add_category(engine, 'Groceries')
    response = client.delete(f'/api/categories/{groceries.id}')
    assert response.status_code == 200
    assert response.get_json() == {'success': True, 'data': {}}


def test_category_spending_breakdown(client, engine):
    groceries = add_category(engine, 'Groceries')
    add_transaction(engine, groceries, 10, datetime.datetime(2024, 3, 31, 22, 0))
    add_transaction(engine, groceries, 99, datetime.datetime(2024, 4, 1, 9, 0))

    body = client.get('/api/categories/transactions?startDate=2024-03-01&endDate=2024-03-31').get_json()
    assert body['count'] == 1
    assert body['data'][0]['totalAmount'] == 10


# --- transactions ---

def test_create_transaction(client, engine):
    groceries = add_category(engine, 'Groceries')
    response = client.post('/api/transactions', json={
        'amount': 42.5,
        'date': '2024-03-05',
        'description': 'Weekly shop',
        'category': groceries.id,
    })
    assert response.status_code == 201
    data = response.get_json()['data']
    assert data['amount'] == 42.5
    assert data['date'] == '2024-03-05T00:00:00'
    assert data['category']['name'] == 'Groceries'


def test_transaction_for_unknown_category_is_404(client):
    response = client.post('/api/transactions', json={
        'amount': 5,
        'date': '2024-03-05',
        'description': 'Snacks',
        'category': 77,
    })
    assert response.status_code == 404
    assert client.get('/api/transactions').get_json()['count'] == 0


def test_transaction_listing_is_paginated(client, engine):
    groceries = add_category(engine, 'Groceries')
    for day in range(1, 6):
        add_transaction(engine, groceries, day, datetime.datetime(2024, 3, day))

    body = client.get('/api/transactions?page=2&limit=2&sort=amount').get_json()
    assert body['count'] == 2
    assert [item['amount'] for item in body['data']] == [3, 4]
    assert body['pagination'] == {'current': 2, 'limit': 2, 'total': 3, 'totalRecords': 5}


def test_transaction_listing_bad_query(client):
    response = client.get('/api/transactions?limit=500')
    assert response.status_code == 400
    assert response.get_json()['error'] == 'Limit must be between 1 and 100'


def test_huge_page_number_is_a_bad_request(client):
    response = client.get('/api/transactions?page=99999999999999999999')
    assert response.status_code == 400
    assert response.get_json() == {'success': False, 'error': 'Page is out of range'}


def test_update_and_delete_transaction(client, engine):
    groceries = add_category(engine, 'Groceries')
    created = add_transaction(engine, groceries, 10, NOW)

    response = client.put(f'/api/transactions/{created.id}', json={'amount': 12})
    assert response.get_json()['data']['amount'] == 12

    assert client.delete(f'/api/transactions/{created.id}').status_code == 200
    assert client.get(f'/api/transactions/{created.id}').status_code == 404


def test_monthly_expenses_route(client, engine):
    groceries = add_category(engine, 'Groceries')
    add_transaction(engine, groceries, 10, datetime.datetime(2024, 2, 1))

    body = client.get('/api/transactions/monthly').get_json()
    assert len(body['data']) == 12
    assert body['data'][1] == {'month': 2, 'monthName': 'February', 'totalAmount': 10, 'count': 1}


def test_years_past_calendar_range_are_bad_requests(client, engine):
    groceries = add_category(engine, 'Groceries')

    response = client.get('/api/transactions/monthly?year=9999')
    assert response.status_code == 400
    assert response.get_json()['error'] == 'Year must be 9998 or earlier'

    response = client.get('/api/budgets/comparison?month=12&year=9999')
    assert response.status_code == 400

    response = client.post('/api/budgets', json={
        'month': 1, 'year': 10000, 'category': groceries.id, 'plannedAmount': 50,
    })
    assert response.status_code == 400
    assert client.get('/api/budgets').get_json()['count'] == 0

    response = client.get('/api/budgets/comparison?month=12&year=9998')
    assert response.status_code == 200


# --- budgets ---

def test_create_budget_and_conflict(client, engine):
    groceries = add_category(engine, 'Groceries')
    payload = {'month': 3, 'year': 2024, 'category': groceries.id, 'plannedAmount': 300}

    response = client.post('/api/budgets', json=payload)
    assert response.status_code == 201
    assert response.get_json()['data']['plannedAmount'] == 300

    response = client.post('/api/budgets', json=payload)
    assert response.status_code == 409
    assert response.get_json()['error'] == 'Budget already exists for this category in 3/2024'


def test_budget_comparison_route_serializes_unbounded(client, engine):
    groceries = add_category(engine, 'Groceries')
    dining = add_category(engine, 'Dining Out')
    add_budget(engine, groceries, 3, 2024, 100)
    add_transaction(engine, groceries, 25, datetime.datetime(2024, 3, 2))
    add_transaction(engine, dining, 15, datetime.datetime(2024, 3, 3))

    body = client.get('/api/budgets/comparison?month=3&year=2024').get_json()
    assert (body['month'], body['year'], body['count']) == (3, 2024, 2)
    assert body['data'][0]['percentageUsed'] == 25
    assert body['data'][1]['percentageUsed'] == 'unbounded'
    assert body['data'][1]['hasBudget'] is False


def test_budget_listing_filters(client, engine):
    groceries = add_category(engine, 'Groceries')
    add_budget(engine, groceries, 3, 2024, 100)
    add_budget(engine, groceries, 4, 2024, 100)

    body = client.get('/api/budgets?month=4&year=2024').get_json()
    assert body['count'] == 1
    assert body['data'][0]['month'] == 4


# --- dashboard ---

def test_dashboard_routes(client, engine):
    groceries = add_category(engine, 'Groceries')
    add_transaction(engine, groceries, 30, datetime.datetime(2024, 3, 1))

    summary = client.get('/api/dashboard').get_json()['data']
    assert summary['currentMonth'] == 'March 2024'
    assert summary['summary']['totalExpenses'] == 30

    insights = client.get('/api/dashboard/insights').get_json()['data']
    assert insights['topCategories'][0]['category'] == 'Groceries'


# --- errors and rate limiting ---

def test_unknown_route_is_404(client):
    response = client.get('/api/nothing-here')
    assert response.status_code == 404
    assert response.get_json() == {'success': False, 'error': 'Resource not found'}


def test_unexpected_error_is_500(client, engine, monkeypatch):
    def explode():
        raise RuntimeError("disk on fire")

    monkeypatch.setattr(engine, 'get_categories', explode)
    response = client.get('/api/categories')
    assert response.status_code == 500
    assert response.get_json() == {'success': False, 'error': 'Server Error'}


def test_rate_limit(engine, db_path):
    app = create_app(
        settings=Settings(database_path=db_path),
        engine=engine,
        rate_limiter=FixedWindowRateLimiter(window_seconds=60, max_requests=2),
        clock=fixed_clock,
    )
    client = app.test_client()

    first = client.get('/api/categories')
    assert first.headers['X-RateLimit-Limit'] == '2'
    assert first.headers['X-RateLimit-Remaining'] == '1'
    client.get('/api/categories')

    refused = client.get('/api/categories')
    assert refused.status_code == 429
    assert refused.get_json() == {'success': False, 'error': 'Too many requests, please try again later'}
    assert refused.headers['X-RateLimit-Remaining'] == '0'
