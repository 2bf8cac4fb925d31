"""
Budget health — totals, remaining income and a 0-100 health score.

The score is banded on the percent of net income allocated:

==================  =====================================  =========
Percent allocated   Score                                  Status
==================  =====================================  =========
> 100               max(0, 100 - 2 x overage)              danger
> 95                85                                     warning
> 85                95                                     good
< 70                max(70, 100 - (70 - percent))          good
otherwise           100                                    excellent
==================  =====================================  =========
"""

from __future__ import annotations

from dataclasses import dataclass
from decimal import Decimal
from enum import Enum
from typing import TYPE_CHECKING

from budgetpilot.analyzers.allocation import HUNDRED, round_money

if TYPE_CHECKING:
    from budgetpilot.analyzers.allocation import CalculationResult
    from budgetpilot.models.budget import IncomeSource
    from budgetpilot.models.pay_period import Allocation, PayPeriod


class HealthStatus(str, Enum):
    """Overall health tier of a budget."""

    EXCELLENT = "excellent"
    GOOD = "good"
    WARNING = "warning"
    DANGER = "danger"


@dataclass
class BudgetSummary:
    """Aggregate view of a calculated budget."""

    total_allocated: Decimal
    gross_income: Decimal
    net_income: Decimal
    remaining: Decimal
    percent_allocated: Decimal
    health_score: float
    status: HealthStatus

    @property
    def is_over_allocated(self) -> bool:
        return self.percent_allocated > HUNDRED


@dataclass
class AllocationTotals:
    """Totals over a pay period's persisted allocations."""

    expected_total: Decimal = Decimal("0")
    actual_total: Decimal = Decimal("0")
    paid_count: int = 0
    unpaid_count: int = 0


@dataclass
class PeriodHealth:
    """Health of a pay period, based on its persisted allocations."""

    health_score: float
    status: HealthStatus
    net_income: Decimal
    total_allocated: Decimal
    remaining: Decimal
    percent_allocated: Decimal


def score_health(percent_allocated: Decimal) -> tuple[float, HealthStatus]:
    """Map a percent of net income allocated to a health score and status."""
    if percent_allocated > 100:
        score = max(Decimal("0"), HUNDRED - (percent_allocated - 100) * 2)
        return float(round_money(score)), HealthStatus.DANGER
    if percent_allocated > 95:
        return 85.0, HealthStatus.WARNING
    if percent_allocated > 85:
        return 95.0, HealthStatus.GOOD
    if percent_allocated < 70:
        score = max(Decimal("70"), HUNDRED - (70 - percent_allocated))
        return float(round_money(score)), HealthStatus.GOOD
    return 100.0, HealthStatus.EXCELLENT


def _percent_of(part: Decimal, whole: Decimal) -> Decimal:
    if whole <= 0:
        return Decimal("0")
    return part / whole * HUNDRED


def summarize(results: list[CalculationResult], income: IncomeSource) -> BudgetSummary:
    """
    Summarize calculated allocations against an income source.

    Args:
        results: Calculation results for every active item.
        income: Income source the results were calculated from.

    Returns:
        BudgetSummary with totals rounded to cents. The health band is
        chosen on the unrounded percentage.
    """
    total = sum((r.expected_amount for r in results), Decimal("0"))
    remaining = income.net_amount - total
    percent = _percent_of(total, income.net_amount)
    score, status = score_health(percent)

    return BudgetSummary(
        total_allocated=round_money(total),
        gross_income=income.gross_amount,
        net_income=income.net_amount,
        remaining=round_money(remaining),
        percent_allocated=round_money(percent),
        health_score=score,
        status=status,
    )


def calculate_allocation_totals(allocations: list[Allocation]) -> AllocationTotals:
    """Sum expected amounts and paid actuals over a period's allocations.

    A paid allocation without a recorded actual counts at its expected amount.
    """
    totals = AllocationTotals()
    for allocation in allocations:
        totals.expected_total += allocation.expected_amount
        if allocation.is_paid:
            actual = allocation.actual_amount
            totals.actual_total += actual if actual else allocation.expected_amount
            totals.paid_count += 1
        else:
            totals.unpaid_count += 1
    return totals


def calculate_surplus(pay_period: PayPeriod, allocations: list[Allocation]) -> Decimal:
    """Net income left after expected allocations, never below zero."""
    expected_total = calculate_allocation_totals(allocations).expected_total
    return max(Decimal("0"), pay_period.net_income - expected_total)


def calculate_period_health(pay_period: PayPeriod, allocations: list[Allocation]) -> PeriodHealth:
    """Score a persisted pay period the same way :func:`summarize` scores a plan."""
    net_income = pay_period.net_income
    expected_total = calculate_allocation_totals(allocations).expected_total
    percent = _percent_of(expected_total, net_income)
    score, status = score_health(percent)

    return PeriodHealth(
        health_score=score,
        status=status,
        net_income=net_income,
        total_allocated=round_money(expected_total),
        remaining=round_money(net_income - expected_total),
        percent_allocated=round_money(percent),
    )
