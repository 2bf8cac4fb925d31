"""
Budget Validation — structural and semantic checks over a set of budget items.

Every problem is reported as a :class:`ValidationIssue`; nothing here raises
for a misconfigured budget. Checks run in a fixed order so that validating
the same input twice gives an identical result:

1. income and item presence
2. individual items (values, percentages, names)
3. dependencies (missing, self, priority order, cycles)
4. allocations (over/under allocation, zero amounts)
5. conflicts between items (duplicate names, shared priorities)
"""

from __future__ import annotations

import logging
from collections import defaultdict
from decimal import Decimal
from typing import TYPE_CHECKING

from budgetpilot.analyzers.allocation import HUNDRED, calculate_budget_allocations
from budgetpilot.analyzers.dependencies import items_on_cycles
from budgetpilot.analyzers.health import summarize
from budgetpilot.config import ValidationConfig
from budgetpilot.models.budget import CalcType, active_income_sources, active_items
from budgetpilot.models.validation import (
    IssueCategory,
    IssueKind,
    IssueType,
    ValidationIssue,
    ValidationResult,
    ValidationSummary,
)

if TYPE_CHECKING:
    from budgetpilot.analyzers.allocation import CalculationResult
    from budgetpilot.analyzers.health import BudgetSummary
    from budgetpilot.models.budget import BudgetItem, IncomeSource

logger = logging.getLogger("budgetpilot.analyzers.validation")


def _normalize_name(name: str) -> str:
    return " ".join(name.split()).lower()


class BudgetValidator:
    """
    Validate budget items against income sources.

    Example usage:
        validator = BudgetValidator()
        result = validator.validate(items, income_sources)
        if not result.is_valid:
            for issue in result.errors:
                print(f"{issue.title}: {issue.message}")
    """

    def __init__(self, config: ValidationConfig | None = None):
        """
        Initialize validator.

        Args:
            config: Thresholds for warnings and info issues. Defaults to
                a 50% high-percentage warning, 80% under-allocation info
                and a 2 character minimum name.
        """
        self.config = config or ValidationConfig()

    def validate(
        self,
        items: list[BudgetItem],
        income_sources: list[IncomeSource],
    ) -> ValidationResult:
        """
        Run every check over the active items.

        Args:
            items: All budget items; inactive ones are ignored.
            income_sources: All income sources; the first active one is
                used for the allocation checks.

        Returns:
            ValidationResult. ``is_valid`` is False only when an
            error-type issue was found.
        """
        issues: list[ValidationIssue] = []
        items = active_items(items)
        sources = active_income_sources(income_sources)

        if not sources:
            issues.append(ValidationIssue(
                id="no-income",
                kind=IssueKind.MISSING_INCOME_SOURCE,
                type=IssueType.ERROR,
                category=IssueCategory.CALCULATION,
                title="No Active Income Sources",
                message="At least one active income source is required for budget calculations.",
                suggested_fix="Add or activate an income source",
            ))

        if not items:
            issues.append(ValidationIssue(
                id="no-budget-items",
                kind=IssueKind.NO_BUDGET_ITEMS,
                type=IssueType.INFO,
                category=IssueCategory.ALLOCATION,
                title="No Budget Items",
                message="No active budget items found. Your entire income will be unallocated.",
                suggested_fix="Add budget items to allocate your income",
            ))

        for item in items:
            issues.extend(self._check_item(item))

        issues.extend(self._check_dependencies(items))

        summary = ValidationSummary()
        if sources and items:
            allocation_issues, budget_summary = self._check_allocations(items, sources[0])
            issues.extend(allocation_issues)
            if budget_summary is not None:
                summary.total_allocation = budget_summary.total_allocated
                summary.remaining_income = budget_summary.remaining
                summary.allocation_percentage = budget_summary.percent_allocated

        issues.extend(self._check_conflicts(items))

        summary.error_count = sum(1 for i in issues if i.type == IssueType.ERROR)
        summary.warning_count = sum(1 for i in issues if i.type == IssueType.WARNING)
        summary.info_count = sum(1 for i in issues if i.type == IssueType.INFO)

        logger.debug(
            "Validated %d items: %d errors, %d warnings, %d info",
            len(items),
            summary.error_count,
            summary.warning_count,
            summary.info_count,
        )

        return ValidationResult(
            is_valid=summary.error_count == 0,
            issues=issues,
            summary=summary,
        )

    def _check_item(self, item: BudgetItem) -> list[ValidationIssue]:
        """Checks that only need the item itself."""
        issues = []

        if item.value <= 0:
            issues.append(ValidationIssue(
                id=f"invalid-value-{item.id}",
                kind=IssueKind.INVALID_VALUE,
                type=IssueType.ERROR,
                category=IssueCategory.CALCULATION,
                title="Invalid Value",
                message=f'"{item.name}" has an invalid value of {item.value}',
                affected_items=[item.id],
                suggested_fix="Set a positive value greater than 0",
            ))

        if item.is_percentage:
            if item.value > HUNDRED:
                issues.append(ValidationIssue(
                    id=f"percentage-too-high-{item.id}",
                    kind=IssueKind.PERCENTAGE_TOO_HIGH,
                    type=IssueType.ERROR,
                    category=IssueCategory.CALCULATION,
                    title="Percentage Too High",
                    message=f'"{item.name}" has a percentage of {item.value}% which exceeds 100%',
                    affected_items=[item.id],
                    suggested_fix="Reduce percentage to 100% or less",
                    auto_fixable=True,
                ))

            if item.value > self.config.high_percentage_threshold:
                issues.append(ValidationIssue(
                    id=f"high-percentage-{item.id}",
                    kind=IssueKind.HIGH_PERCENTAGE,
                    type=IssueType.WARNING,
                    category=IssueCategory.ALLOCATION,
                    title="High Percentage Allocation",
                    message=f'"{item.name}" allocates {item.value}% of income, which is quite high',
                    affected_items=[item.id],
                    suggested_fix="Consider if this percentage is appropriate for your budget",
                ))

        if item.calc_type == CalcType.REMAINING_PERCENT and not item.depends_on:
            issues.append(ValidationIssue(
                id=f"missing-dependencies-{item.id}",
                kind=IssueKind.MISSING_DEPENDENCIES,
                type=IssueType.ERROR,
                category=IssueCategory.DEPENDENCY,
                title="Missing Dependencies",
                message=f'"{item.name}" uses REMAINING_PERCENT but has no dependencies',
                affected_items=[item.id],
                suggested_fix="Add dependencies or change calculation type",
            ))

        if len(item.name.strip()) < self.config.min_name_length:
            issues.append(ValidationIssue(
                id=f"short-name-{item.id}",
                kind=IssueKind.SHORT_NAME,
                type=IssueType.WARNING,
                category=IssueCategory.ALLOCATION,
                title="Short Name",
                message=f'"{item.name}" has a very short name',
                affected_items=[item.id],
                suggested_fix="Use a more descriptive name",
            ))

        return issues

    def _check_dependencies(self, items: list[BudgetItem]) -> list[ValidationIssue]:
        """Missing and self references, priority order, and cycles."""
        issues = []
        item_map = {item.id: item for item in items}

        for item in items:
            dep_ids = list(dict.fromkeys(item.depends_on))

            for dep_id in dep_ids:
                if dep_id not in item_map:
                    issues.append(ValidationIssue(
                        id=f"missing-dependency-{item.id}-{dep_id}",
                        kind=IssueKind.MISSING_DEPENDENCY,
                        type=IssueType.ERROR,
                        category=IssueCategory.DEPENDENCY,
                        title="Missing Dependency",
                        message=f'"{item.name}" depends on a non-existent or inactive budget item',
                        affected_items=[item.id],
                        suggested_fix="Remove the dependency or activate the required item",
                        auto_fixable=True,
                    ))

            if item.id in dep_ids:
                issues.append(ValidationIssue(
                    id=f"self-dependency-{item.id}",
                    kind=IssueKind.SELF_DEPENDENCY,
                    type=IssueType.ERROR,
                    category=IssueCategory.DEPENDENCY,
                    title="Self Dependency",
                    message=f'"{item.name}" depends on itself',
                    affected_items=[item.id],
                    suggested_fix="Remove self-dependency",
                    auto_fixable=True,
                ))

            for dep_id in dep_ids:
                dependency = item_map.get(dep_id)
                if dependency is None or dep_id == item.id:
                    continue
                if dependency.priority >= item.priority:
                    issues.append(ValidationIssue(
                        id=f"priority-conflict-{item.id}-{dep_id}",
                        kind=IssueKind.PRIORITY_CONFLICT,
                        type=IssueType.WARNING,
                        category=IssueCategory.DEPENDENCY,
                        title="Priority Conflict",
                        message=(
                            f'"{item.name}" should come after "{dependency.name}" '
                            f"(priority {item.priority} vs {dependency.priority})"
                        ),
                        affected_items=[item.id, dep_id],
                        suggested_fix="Adjust priorities so dependencies are calculated first",
                        auto_fixable=True,
                    ))

        cycles = items_on_cycles(items)
        for item in items:
            group = cycles.get(item.id)
            if group is None:
                continue
            chain = " -> ".join(item_map[member].name for member in group)
            issues.append(ValidationIssue(
                id=f"circular-dependency-{item.id}",
                kind=IssueKind.CIRCULAR_DEPENDENCY,
                type=IssueType.ERROR,
                category=IssueCategory.DEPENDENCY,
                title="Circular Dependency",
                message=f'"{item.name}" is part of a circular dependency chain ({chain})',
                affected_items=[item.id] + [m for m in group if m != item.id],
                suggested_fix="Remove dependencies to break the circular chain",
            ))

        return issues

    def _check_allocations(
        self,
        items: list[BudgetItem],
        income: IncomeSource,
    ) -> tuple[list[ValidationIssue], BudgetSummary | None]:
        """Calculate the budget and check the resulting amounts."""
        try:
            results = calculate_budget_allocations(items, income)
            summary = summarize(results, income)
        except Exception as e:
            logger.exception("Budget allocation calculation failed")
            return [ValidationIssue(
                id="calculation-error",
                kind=IssueKind.CALCULATION_ERROR,
                type=IssueType.ERROR,
                category=IssueCategory.CALCULATION,
                title="Calculation Error",
                message=f"Failed to calculate budget allocations: {e}",
                affected_items=[item.id for item in items],
                suggested_fix="Check for circular dependencies or invalid values",
            )], None

        return self._allocation_issues(items, income, results, summary), summary

    def _allocation_issues(
        self,
        items: list[BudgetItem],
        income: IncomeSource,
        results: list[CalculationResult],
        summary: BudgetSummary,
    ) -> list[ValidationIssue]:
        issues = []

        if summary.percent_allocated > HUNDRED:
            issues.append(ValidationIssue(
                id="over-allocation",
                kind=IssueKind.OVER_ALLOCATION,
                type=IssueType.WARNING,
                category=IssueCategory.ALLOCATION,
                title="Over-Allocation",
                message=(
                    f"Budget items allocate {summary.percent_allocated:.1f}% of income "
                    f"({summary.total_allocated:.2f} of {income.net_amount:.2f})"
                ),
                affected_items=[item.id for item in items],
                suggested_fix="Reduce allocation amounts or percentages",
            ))

        if summary.percent_allocated < self.config.under_allocation_threshold:
            issues.append(ValidationIssue(
                id="under-allocation",
                kind=IssueKind.UNDER_ALLOCATION,
                type=IssueType.INFO,
                category=IssueCategory.ALLOCATION,
                title="Under-Allocation",
                message=(
                    f"Only {summary.percent_allocated:.1f}% of income is allocated. "
                    f"{summary.remaining:.2f} remains unallocated"
                ),
                suggested_fix="Consider adding more budget items or increasing allocations",
            ))

        item_map = {item.id: item for item in items}
        for result in results:
            if result.expected_amount != Decimal("0"):
                continue
            item = item_map[result.budget_item_id]
            issues.append(ValidationIssue(
                id=f"zero-allocation-{item.id}",
                kind=IssueKind.ZERO_ALLOCATION,
                type=IssueType.WARNING,
                category=IssueCategory.CALCULATION,
                title="Zero Allocation",
                message=f'"{item.name}" results in zero allocation',
                affected_items=[item.id],
                suggested_fix="Check calculation type and value",
            ))

        return issues

    def _check_conflicts(self, items: list[BudgetItem]) -> list[ValidationIssue]:
        """Duplicate names and shared priorities."""
        issues = []

        by_name: dict[str, list[BudgetItem]] = defaultdict(list)
        for item in items:
            by_name[_normalize_name(item.name)].append(item)

        for name, duplicates in by_name.items():
            if len(duplicates) > 1:
                issues.append(ValidationIssue(
                    id=f"duplicate-names-{name}",
                    kind=IssueKind.DUPLICATE_NAMES,
                    type=IssueType.WARNING,
                    category=IssueCategory.CONFLICT,
                    title="Duplicate Names",
                    message=f'Multiple budget items have the same name: "{duplicates[0].name}"',
                    affected_items=[item.id for item in duplicates],
                    suggested_fix="Use unique names for each budget item",
                ))

        by_priority: dict[int, list[BudgetItem]] = defaultdict(list)
        for item in items:
            by_priority[item.priority].append(item)

        for priority, same in by_priority.items():
            if len(same) > 1:
                issues.append(ValidationIssue(
                    id=f"same-priority-{priority}",
                    kind=IssueKind.SAME_PRIORITY,
                    type=IssueType.INFO,
                    category=IssueCategory.CONFLICT,
                    title="Same Priority",
                    message=f"Multiple items have priority {priority}: {', '.join(i.name for i in same)}",
                    affected_items=[item.id for item in same],
                    suggested_fix="Assign unique priorities for better control",
                    auto_fixable=True,
                ))

        return issues


# Convenience function
def validate(
    items: list[BudgetItem],
    income_sources: list[IncomeSource],
    config: ValidationConfig | None = None,
) -> ValidationResult:
    """Quick budget validation."""
    return BudgetValidator(config).validate(items, income_sources)
