"""
Finance Visualizer - personal finance tracker backend.

Record spending by category, plan monthly budgets, and serve dashboard,
budget comparison and spending-insight reports over a REST API.
"""

__version__ = "1.0.0"
