"""
Finance Visualizer - Demo Data Generator

Generates realistic fake spending for demo mode: a few months of transaction
history across the default categories plus budgets for the current month, so
every dashboard panel has something to show.
"""

import random
from datetime import datetime, timedelta

from faker import Faker

from .date_helpers import add_months
from .errors import ConflictError
from .models import CategoryId
from .seed import seed_default_categories

# Monthly fixed costs: (category, description, amount, day of month)
FIXED_EXPENSES = [
    ("Rent", "Monthly rent", 1450.00, 1),
    ("Utilities", "Electric bill", 85.00, 15),
    ("Utilities", "Internet service", 60.00, 10),
    ("Subscriptions", "Streaming subscription", 15.99, 5),
    ("Fitness", "Gym membership", 45.00, 1),
]

# Variable spending: category, price range, roughly one purchase every N days
EXPENSE_TEMPLATES = [
    {"category": "Groceries", "suffixes": ["Market", "Grocers", "Foods"], "min": 40, "max": 120, "frequency": 5},
    {"category": "Dining Out", "suffixes": ["Bistro", "Cafe", "Kitchen", "Grill"], "min": 12, "max": 65, "frequency": 3},
    {"category": "Transportation", "suffixes": ["Gas Station", "Parking", "Transit"], "min": 15, "max": 55, "frequency": 6},
    {"category": "Shopping", "suffixes": ["Outlet", "Store", "Boutique"], "min": 25, "max": 200, "frequency": 10},
    {"category": "Entertainment", "suffixes": ["Cinema", "Arena", "Lanes"], "min": 20, "max": 80, "frequency": 12},
    {"category": "Healthcare", "suffixes": ["Pharmacy", "Clinic", "Dental"], "min": 15, "max": 150, "frequency": 30},
]

# Current-month plans, slightly tight so the over-budget panel has entries
DEMO_BUDGETS = {
    "Groceries": 400.00,
    "Dining Out": 250.00,
    "Transportation": 150.00,
    "Shopping": 200.00,
    "Entertainment": 100.00,
    "Rent": 1450.00,
    "Utilities": 150.00,
}


def generate_demo_data(engine, months=4, seed=None, now=None):
    """
    Fill the stores with demo data.

    Args:
        engine: FinanceEngine to write to
        months (int): how many months of history to generate
        seed (int): makes the output reproducible when given
        now (datetime): end of the generated history, defaults to engine clock

    Returns:
        dict: counts of what was generated and the covered date range
    """
    rng = random.Random(seed)
    fake = Faker()
    if seed is not None:
        fake.seed_instance(seed)

    now = now or engine.clock()
    end_date = now.date()
    start_date = add_months(end_date, -months)

    seed_default_categories(engine)
    category_map = {category.name: category.id for category in engine.get_categories()}

    print(f"[DEMO] Generating demo data from {start_date} to {end_date}")

    transaction_count = 0

    def record(category_name, description, amount, day):
        nonlocal transaction_count
        category_id = category_map.get(category_name)
        if category_id is None:
            print(f"[DEMO] WARNING: Category '{category_name}' not found, skipping")
            return
        engine.add_transaction({
            'amount': round(amount, 2),
            'date': datetime(day.year, day.month, day.day, rng.randint(8, 21), rng.randint(0, 59)),
            'description': description,
            'category': CategoryId(category_id),
        })
        transaction_count += 1

    day = start_date
    while day <= end_date:
        for category_name, description, amount, due_day in FIXED_EXPENSES:
            if day.day == due_day:
                record(category_name, description, amount, day)

        for template in EXPENSE_TEMPLATES:
            if rng.random() < 1.0 / template['frequency']:
                merchant = f"{fake.last_name()} {rng.choice(template['suffixes'])}"
                amount = rng.uniform(template['min'], template['max'])
                record(template['category'], merchant, amount, day)

        day += timedelta(days=1)

    print(f"[DEMO] Generated {transaction_count} transactions")

    budget_count = 0
    for category_name, planned in DEMO_BUDGETS.items():
        category_id = category_map.get(category_name)
        if category_id is None:
            continue
        try:
            engine.add_budget({
                'month': end_date.month,
                'year': end_date.year,
                'category': CategoryId(category_id),
                'planned_amount': planned,
            })
            budget_count += 1
        except ConflictError:
            print(f"[DEMO] Budget for '{category_name}' already set this month, keeping it")

    print(f"[DEMO] Created {budget_count} budgets for {end_date.month}/{end_date.year}")

    return {
        "transactions_generated": transaction_count,
        "budgets_created": budget_count,
        "date_range": f"{start_date} to {end_date}",
    }
