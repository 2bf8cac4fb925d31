"""
BudgetPilot — paycheck budgeting engine.

Allocate. Validate. Reconcile.
Turns income and budget rules into per-paycheck allocations, finds what is
wrong with a budget, and compares plans with what actually happened.
"""

__version__ = "0.3.0"
__all__ = ["BudgetPilot"]

from budgetpilot.pilot import BudgetPilot  # noqa: E402
