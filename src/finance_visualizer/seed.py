"""
Finance Visualizer - Default Categories

Seeds the category store with a starter set. Safe to run on every startup:
nothing is inserted unless the store is empty.
"""

DEFAULT_CATEGORIES = [
    {'name': 'Groceries', 'icon': 'shopping-cart', 'color': '#4CAF50'},
    {'name': 'Rent', 'icon': 'home', 'color': '#2196F3'},
    {'name': 'Transportation', 'icon': 'car', 'color': '#FF9800'},
    {'name': 'Entertainment', 'icon': 'film', 'color': '#9C27B0'},
    {'name': 'Dining Out', 'icon': 'utensils', 'color': '#F44336'},
    {'name': 'Utilities', 'icon': 'bolt', 'color': '#795548'},
    {'name': 'Healthcare', 'icon': 'heartbeat', 'color': '#E91E63'},
    {'name': 'Education', 'icon': 'graduation-cap', 'color': '#3F51B5'},
    {'name': 'Shopping', 'icon': 'shopping-bag', 'color': '#009688'},
    {'name': 'Travel', 'icon': 'plane', 'color': '#00BCD4'},
    {'name': 'Fitness', 'icon': 'dumbbell', 'color': '#8BC34A'},
    {'name': 'Subscriptions', 'icon': 'credit-card', 'color': '#607D8B'},
    {'name': 'Other', 'icon': 'ellipsis-h', 'color': '#9E9E9E'},
]


def seed_default_categories(engine):
    """
    Insert DEFAULT_CATEGORIES if the category store is empty.

    Returns:
        int: number of categories inserted (0 when the store already had some)
    """
    count = engine.count_categories()
    if count > 0:
        print(f"[SEED] Database already has {count} categories, skipping seed.")
        return 0

    print("[SEED] No categories found, seeding default categories...")
    for category in DEFAULT_CATEGORIES:
        engine.add_category(dict(category))
    print(f"[SEED] Seeded {len(DEFAULT_CATEGORIES)} default categories.")
    return len(DEFAULT_CATEGORIES)
