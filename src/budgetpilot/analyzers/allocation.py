"""
Allocation Calculator — turn budget items into expected amounts for one income.

Each item is calculated under its calc type:

- FIXED: the item's value.
- GROSS_PERCENT: value% of gross income.
- NET_PERCENT: value% of net income.
- REMAINING_PERCENT: value% of what is left of net income after the items
  it depends on.

Items must be calculated in dependency order (see
:mod:`budgetpilot.analyzers.dependencies`) so that REMAINING_PERCENT items
can see the amounts of their dependencies.
"""

from __future__ import annotations

import logging
from dataclasses import dataclass
from datetime import date
from decimal import ROUND_HALF_UP, Decimal
from typing import TYPE_CHECKING

from budgetpilot.analyzers.dependencies import resolve_dependency_order
from budgetpilot.exceptions import CalculationError
from budgetpilot.models.budget import Cadence, CalcType

if TYPE_CHECKING:
    from budgetpilot.models.budget import BudgetItem, IncomeSource

logger = logging.getLogger("budgetpilot.analyzers.allocation")

CENT = Decimal("0.01")
HUNDRED = Decimal("100")

PAY_PERIODS_PER_YEAR: dict[Cadence, int] = {
    Cadence.WEEKLY: 52,
    Cadence.BI_WEEKLY: 26,
    Cadence.SEMI_MONTHLY: 24,
    Cadence.MONTHLY: 12,
    Cadence.QUARTERLY: 4,
    Cadence.ANNUAL: 1,
}


def round_money(amount: Decimal) -> Decimal:
    """Round to cents, halves away from zero."""
    return amount.quantize(CENT, rounding=ROUND_HALF_UP)


@dataclass
class CalculationDetails:
    """How an expected amount was derived."""

    calc_type: CalcType
    base_amount: Decimal = Decimal("0")
    percentage: Decimal | None = None
    dependency_total: Decimal | None = None


@dataclass
class CalculationResult:
    """Expected amount for one budget item."""

    budget_item_id: str
    expected_amount: Decimal
    calculation_details: CalculationDetails


def calculate_allocation(
    item: BudgetItem,
    income: IncomeSource,
    previous_results: list[CalculationResult] | None = None,
) -> CalculationResult:
    """
    Calculate the expected amount of a single budget item.

    Args:
        item: Item to calculate.
        income: Income source the item draws on.
        previous_results: Results already computed for earlier items. Only
            REMAINING_PERCENT items read these; dependencies without a
            result contribute 0.

    Returns:
        CalculationResult rounded to cents. Negative amounts are returned
        as-is so callers can see over-allocation.

    Raises:
        CalculationError: If the arithmetic itself fails.
    """
    value = item.value
    details = CalculationDetails(calc_type=item.calc_type)

    try:
        if item.calc_type == CalcType.FIXED:
            expected = value
            details.base_amount = value

        elif item.calc_type == CalcType.GROSS_PERCENT:
            expected = income.gross_amount * value / HUNDRED
            details.base_amount = income.gross_amount
            details.percentage = value

        elif item.calc_type == CalcType.NET_PERCENT:
            expected = income.net_amount * value / HUNDRED
            details.base_amount = income.net_amount
            details.percentage = value

        else:  # CalcType.REMAINING_PERCENT
            computed = {r.budget_item_id: r.expected_amount for r in previous_results or []}
            dependency_total = sum(
                (computed.get(dep_id, Decimal("0")) for dep_id in item.depends_on),
                Decimal("0"),
            )
            remaining = income.net_amount - dependency_total
            expected = remaining * value / HUNDRED
            details.base_amount = remaining
            details.percentage = value
            details.dependency_total = dependency_total

        expected_amount = round_money(expected)
    except ArithmeticError as e:
        raise CalculationError(
            f"Could not calculate '{item.name}': {e}",
            budget_item_id=item.id,
        ) from e

    return CalculationResult(
        budget_item_id=item.id,
        expected_amount=expected_amount,
        calculation_details=details,
    )


def calculate_allocations(
    ordered_items: list[BudgetItem],
    income: IncomeSource,
) -> list[CalculationResult]:
    """Calculate items in the given order, feeding each result to later items."""
    results: list[CalculationResult] = []
    for item in ordered_items:
        results.append(calculate_allocation(item, income, results))
    return results


def calculate_budget_allocations(
    items: list[BudgetItem],
    income: IncomeSource,
) -> list[CalculationResult]:
    """Resolve dependency order for the active items, then calculate them."""
    return calculate_allocations(resolve_dependency_order(items), income)


def is_valid_item_value(calc_type: CalcType, value: Decimal) -> bool:
    """Check a value against its calc type: FIXED > 0, percentages in (0, 100]."""
    if calc_type == CalcType.FIXED:
        return value > 0
    return Decimal("0") < value <= HUNDRED


def pay_periods_per_year(cadence: Cadence) -> int:
    """Number of pay periods a year for an income cadence."""
    return PAY_PERIODS_PER_YEAR.get(cadence, 12)


def annualize(amount: Decimal, cadence: Cadence) -> Decimal:
    """Per-period amount scaled to a full year."""
    return round_money(amount * pay_periods_per_year(cadence))


def prorate_amount(full_amount: Decimal, total_days: int, actual_days: int) -> Decimal:
    """Scale an amount to the share of a period actually covered."""
    if total_days <= 0 or actual_days <= 0:
        return Decimal("0")
    return round_money(full_amount * actual_days / total_days)


def calculate_partial_period_allocation(
    item: BudgetItem,
    income: IncomeSource,
    period_start: date,
    period_end: date,
    full_period_days: int,
    previous_results: list[CalculationResult] | None = None,
) -> CalculationResult:
    """
    Calculate an allocation for a pay period shorter than a full cycle.

    The full-period allocation is prorated by the number of days from
    ``period_start`` to ``period_end`` inclusive.
    """
    full = calculate_allocation(item, income, previous_results)
    actual_days = (period_end - period_start).days + 1
    return CalculationResult(
        budget_item_id=full.budget_item_id,
        expected_amount=prorate_amount(full.expected_amount, full_period_days, actual_days),
        calculation_details=full.calculation_details,
    )
