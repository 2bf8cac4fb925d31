"""
BudgetPilot analyzers — pure computation modules.

Every function here works on in-memory snapshots: no I/O, no shared state,
and the same input always produces the same output.
"""

from budgetpilot.analyzers.allocation import (
    CalculationDetails,
    CalculationResult,
    annualize,
    calculate_allocation,
    calculate_allocations,
    calculate_budget_allocations,
    calculate_partial_period_allocation,
    is_valid_item_value,
    pay_periods_per_year,
    prorate_amount,
)
from budgetpilot.analyzers.dependencies import (
    dependency_first_order,
    find_dependency_cycles,
    resolve_dependency_order,
)
from budgetpilot.analyzers.health import (
    AllocationTotals,
    BudgetSummary,
    HealthStatus,
    PeriodHealth,
    calculate_allocation_totals,
    calculate_period_health,
    calculate_surplus,
    summarize,
)
from budgetpilot.analyzers.reconciliation import (
    PayPeriodReconciler,
    ReconciliationAllocation,
    ReconciliationData,
    ReconciliationStatus,
    ReconciliationSummary,
    reconcile,
    summarize_reconciliations,
)
from budgetpilot.analyzers.resolutions import (
    apply_resolution,
    apply_resolutions,
    generate_resolutions,
)
from budgetpilot.analyzers.validation import BudgetValidator, validate

__all__ = [
    # Dependency resolution
    "resolve_dependency_order",
    "dependency_first_order",
    "find_dependency_cycles",
    # Allocation
    "CalculationDetails",
    "CalculationResult",
    "annualize",
    "calculate_allocation",
    "calculate_allocations",
    "calculate_budget_allocations",
    "calculate_partial_period_allocation",
    "is_valid_item_value",
    "pay_periods_per_year",
    "prorate_amount",
    # Health
    "AllocationTotals",
    "BudgetSummary",
    "HealthStatus",
    "PeriodHealth",
    "calculate_allocation_totals",
    "calculate_period_health",
    "calculate_surplus",
    "summarize",
    # Validation
    "BudgetValidator",
    "validate",
    # Resolutions
    "generate_resolutions",
    "apply_resolution",
    "apply_resolutions",
    # Reconciliation
    "PayPeriodReconciler",
    "ReconciliationAllocation",
    "ReconciliationData",
    "ReconciliationStatus",
    "ReconciliationSummary",
    "reconcile",
    "summarize_reconciliations",
]
