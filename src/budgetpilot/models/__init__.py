"""Data models — budget items, income, pay periods and validation output."""

from budgetpilot.models.budget import (
    BudgetCategory,
    BudgetItem,
    Cadence,
    CalcType,
    IncomeSource,
    active_income_sources,
    active_items,
)
from budgetpilot.models.pay_period import (
    Allocation,
    AllocationStatus,
    PayPeriod,
    PayPeriodStatus,
)
from budgetpilot.models.validation import (
    ConflictResolution,
    FieldChange,
    IssueCategory,
    IssueKind,
    IssueType,
    ItemField,
    ResolutionType,
    ValidationIssue,
    ValidationResult,
    ValidationSummary,
)

__all__ = [
    "Allocation",
    "AllocationStatus",
    "BudgetCategory",
    "BudgetItem",
    "Cadence",
    "CalcType",
    "ConflictResolution",
    "FieldChange",
    "IncomeSource",
    "IssueCategory",
    "IssueKind",
    "IssueType",
    "ItemField",
    "PayPeriod",
    "PayPeriodStatus",
    "ResolutionType",
    "ValidationIssue",
    "ValidationResult",
    "ValidationSummary",
    "active_income_sources",
    "active_items",
]
