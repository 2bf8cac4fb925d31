"""
Validation models — issues found in a budget and the fixes proposed for them.
"""

from __future__ import annotations

from decimal import Decimal
from enum import Enum
from typing import Any

from pydantic import BaseModel, Field


class IssueType(str, Enum):
    """How serious an issue is. Only errors make a budget invalid."""

    ERROR = "error"
    WARNING = "warning"
    INFO = "info"


class IssueCategory(str, Enum):
    """Area of the budget an issue belongs to."""

    DEPENDENCY = "dependency"
    CALCULATION = "calculation"
    ALLOCATION = "allocation"
    CONFLICT = "conflict"
    PERFORMANCE = "performance"


class IssueKind(str, Enum):
    """Exactly what was found. Resolutions are chosen by kind."""

    MISSING_INCOME_SOURCE = "missing_income_source"
    NO_BUDGET_ITEMS = "no_budget_items"
    INVALID_VALUE = "invalid_value"
    PERCENTAGE_TOO_HIGH = "percentage_too_high"
    HIGH_PERCENTAGE = "high_percentage"
    MISSING_DEPENDENCIES = "missing_dependencies"
    SHORT_NAME = "short_name"
    MISSING_DEPENDENCY = "missing_dependency"
    SELF_DEPENDENCY = "self_dependency"
    PRIORITY_CONFLICT = "priority_conflict"
    CIRCULAR_DEPENDENCY = "circular_dependency"
    OVER_ALLOCATION = "over_allocation"
    UNDER_ALLOCATION = "under_allocation"
    ZERO_ALLOCATION = "zero_allocation"
    CALCULATION_ERROR = "calculation_error"
    DUPLICATE_NAMES = "duplicate_names"
    SAME_PRIORITY = "same_priority"


class ValidationIssue(BaseModel):
    """A single problem or observation about the budget."""

    id: str = Field(description="Stable identifier, unique within one validation run")
    kind: IssueKind
    type: IssueType
    category: IssueCategory
    title: str
    message: str
    affected_items: list[str] = Field(default_factory=list, description="Budget item IDs")
    suggested_fix: str | None = None
    auto_fixable: bool = False


class ValidationSummary(BaseModel):
    """Issue counts plus the allocation figures from the calculation pass."""

    error_count: int = 0
    warning_count: int = 0
    info_count: int = 0
    total_allocation: Decimal = Decimal("0")
    remaining_income: Decimal = Decimal("0")
    allocation_percentage: Decimal = Decimal("0")


class ValidationResult(BaseModel):
    """Outcome of validating a set of budget items."""

    is_valid: bool
    issues: list[ValidationIssue] = Field(default_factory=list)
    summary: ValidationSummary = Field(default_factory=ValidationSummary)

    @property
    def errors(self) -> list[ValidationIssue]:
        return [i for i in self.issues if i.type == IssueType.ERROR]

    @property
    def warnings(self) -> list[ValidationIssue]:
        return [i for i in self.issues if i.type == IssueType.WARNING]

    @property
    def auto_fixable_issues(self) -> list[ValidationIssue]:
        return [i for i in self.issues if i.auto_fixable]

    def issues_of_kind(self, kind: IssueKind) -> list[ValidationIssue]:
        return [i for i in self.issues if i.kind == kind]


class ResolutionType(str, Enum):
    """Kind of edit a resolution performs."""

    ADJUST_VALUES = "adjust_values"
    REORDER_PRIORITIES = "reorder_priorities"
    REMOVE_DEPENDENCIES = "remove_dependencies"
    SPLIT_ITEMS = "split_items"


class ItemField(str, Enum):
    """Budget item fields a resolution may change."""

    VALUE = "value"
    DEPENDS_ON = "depends_on"
    PRIORITY = "priority"


class FieldChange(BaseModel):
    """Set one field of one budget item."""

    item_id: str
    field: ItemField
    old_value: Any = None
    new_value: Any = None


class ConflictResolution(BaseModel):
    """A concrete, field-level fix for one or more auto-fixable issues."""

    type: ResolutionType
    description: str
    issue_ids: list[str] = Field(default_factory=list)
    changes: list[FieldChange] = Field(default_factory=list)

    @property
    def affected_item_ids(self) -> list[str]:
        seen: list[str] = []
        for change in self.changes:
            if change.item_id not in seen:
                seen.append(change.item_id)
        return seen
