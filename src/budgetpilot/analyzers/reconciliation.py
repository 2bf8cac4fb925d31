"""
Pay Period Reconciliation — compare expected and actual amounts for a pay period.

Once a pay period is over, the net pay actually received and the amounts
actually paid out per budget item can be compared with what was planned.
The net variance is classified against percentage thresholds:

- perfect:         |variance| <= 0%
- minor_variance:  |variance| <= 5%
- major_variance:  anything larger

Allocations whose own variance exceeds 15% are flagged for review.
"""

from __future__ import annotations

import logging
from collections import defaultdict
from dataclasses import dataclass, field
from datetime import date
from decimal import Decimal
from enum import Enum
from typing import TYPE_CHECKING

from budgetpilot.analyzers.allocation import HUNDRED, round_money
from budgetpilot.config import ReconciliationConfig
from budgetpilot.models.pay_period import AllocationStatus

if TYPE_CHECKING:
    from budgetpilot.models.pay_period import Allocation, PayPeriod

logger = logging.getLogger("budgetpilot.analyzers.reconciliation")

ZERO = Decimal("0")


class ReconciliationStatus(str, Enum):
    """How closely actuals matched expectations."""

    PERFECT = "perfect"
    MINOR_VARIANCE = "minor_variance"
    MAJOR_VARIANCE = "major_variance"
    INCOMPLETE = "incomplete"


@dataclass
class ReconciliationAllocation:
    """Expected vs. actual for one budget item in the period."""

    budget_item_id: str
    expected_amount: Decimal
    actual_amount: Decimal | None
    variance: Decimal
    variance_percentage: Decimal
    variance_status: ReconciliationStatus
    status: AllocationStatus = AllocationStatus.UNPAID
    allocation_id: str | None = None
    budget_item_name: str = "Unknown"
    budget_item_category: str = "Other"
    is_flagged: bool = False


@dataclass
class ReconciliationData:
    """Full reconciliation of one pay period."""

    pay_period_id: str
    expected_net: Decimal
    actual_net: Decimal | None
    net_variance: Decimal
    net_variance_percentage: Decimal
    reconciliation_status: ReconciliationStatus
    start_date: date | None = None
    end_date: date | None = None
    allocations: list[ReconciliationAllocation] = field(default_factory=list)
    total_expected_allocations: Decimal = ZERO
    total_actual_allocations: Decimal = ZERO
    allocation_variance: Decimal = ZERO
    allocation_variance_percentage: Decimal = ZERO
    unallocated_amount: Decimal = ZERO

    @property
    def is_complete(self) -> bool:
        return self.reconciliation_status != ReconciliationStatus.INCOMPLETE

    @property
    def flagged_allocations(self) -> list[ReconciliationAllocation]:
        return [a for a in self.allocations if a.is_flagged]


@dataclass
class ReconciliationSummary:
    """Reconciliation statistics across many pay periods."""

    total_periods: int = 0
    completed_periods: int = 0
    perfect_reconciliations: int = 0
    minor_variance_count: int = 0
    major_variance_count: int = 0
    average_net_variance: Decimal = ZERO
    average_allocation_variance: Decimal = ZERO
    total_unallocated: Decimal = ZERO

    @property
    def perfect_rate(self) -> float:
        """Share of completed periods reconciled without variance."""
        if self.completed_periods == 0:
            return 0.0
        return self.perfect_reconciliations / self.completed_periods


def _variance(expected: Decimal, actual: Decimal | None) -> tuple[Decimal, Decimal]:
    """Variance and variance percentage; both 0 when nothing was recorded."""
    if actual is None:
        return ZERO, ZERO
    variance = actual - expected
    if expected <= 0:
        return variance, ZERO
    return variance, variance / expected * HUNDRED


class PayPeriodReconciler:
    """
    Reconcile completed pay periods against their planned allocations.

    Example usage:
        reconciler = PayPeriodReconciler()
        data = reconciler.reconcile(pay_period, allocations)
        print(f"{data.reconciliation_status.value}: {data.net_variance_percentage}%")
    """

    def __init__(self, config: ReconciliationConfig | None = None):
        """
        Initialize reconciler.

        Args:
            config: Variance thresholds in percent. Defaults to 0% perfect,
                5% minor and 15% major.
        """
        self.config = config or ReconciliationConfig()

    def classify(self, variance_percentage: Decimal) -> ReconciliationStatus:
        """Classify an absolute variance percentage."""
        magnitude = abs(variance_percentage)
        if magnitude <= self.config.perfect_threshold:
            return ReconciliationStatus.PERFECT
        if magnitude <= self.config.minor_threshold:
            return ReconciliationStatus.MINOR_VARIANCE
        return ReconciliationStatus.MAJOR_VARIANCE

    def reconcile(
        self,
        pay_period: PayPeriod,
        allocations: list[Allocation],
    ) -> ReconciliationData:
        """
        Reconcile a single pay period.

        Args:
            pay_period: Period with expected and (once received) actual net.
            allocations: Allocations recorded for the period.

        Returns:
            ReconciliationData. The status is ``incomplete`` until the
            period's actual net has been recorded.
        """
        net_variance, net_pct = _variance(pay_period.expected_net, pay_period.actual_net)

        if pay_period.actual_net is None:
            status = ReconciliationStatus.INCOMPLETE
        else:
            status = self.classify(net_pct)

        lines = [self._reconcile_allocation(a) for a in allocations]

        total_expected = sum((a.expected_amount for a in allocations), ZERO)
        total_actual = sum((a.actual_amount or ZERO for a in allocations), ZERO)
        allocation_variance = total_actual - total_expected
        allocation_pct = allocation_variance / total_expected * HUNDRED if total_expected > 0 else ZERO
        unallocated = (pay_period.actual_net or ZERO) - total_actual

        flagged = sum(1 for line in lines if line.is_flagged)
        if flagged:
            logger.info(
                "Pay period %s: %d allocation(s) exceed the %s%% variance threshold",
                pay_period.id,
                flagged,
                self.config.major_threshold,
            )

        return ReconciliationData(
            pay_period_id=pay_period.id,
            start_date=pay_period.start_date,
            end_date=pay_period.end_date,
            expected_net=pay_period.expected_net,
            actual_net=pay_period.actual_net,
            net_variance=round_money(net_variance),
            net_variance_percentage=round_money(net_pct),
            reconciliation_status=status,
            allocations=lines,
            total_expected_allocations=round_money(total_expected),
            total_actual_allocations=round_money(total_actual),
            allocation_variance=round_money(allocation_variance),
            allocation_variance_percentage=round_money(allocation_pct),
            unallocated_amount=round_money(unallocated),
        )

    def _reconcile_allocation(self, allocation: Allocation) -> ReconciliationAllocation:
        variance, pct = _variance(allocation.expected_amount, allocation.actual_amount)
        if allocation.actual_amount is None:
            variance_status = ReconciliationStatus.INCOMPLETE
        else:
            variance_status = self.classify(pct)

        return ReconciliationAllocation(
            allocation_id=allocation.id,
            budget_item_id=allocation.budget_item_id,
            budget_item_name=allocation.budget_item_name,
            budget_item_category=allocation.budget_item_category,
            expected_amount=allocation.expected_amount,
            actual_amount=allocation.actual_amount,
            variance=round_money(variance),
            variance_percentage=round_money(pct),
            variance_status=variance_status,
            status=allocation.status,
            is_flagged=abs(pct) > self.config.major_threshold,
        )

    def summarize(
        self,
        pay_periods: list[PayPeriod],
        allocations: list[Allocation],
    ) -> ReconciliationSummary:
        """
        Summarize reconciliation results across pay periods.

        Only completed periods are classified; a completed period without an
        actual net counts as zero received.

        Args:
            pay_periods: Periods to summarize, in any status.
            allocations: Allocations for those periods, matched by
                ``pay_period_id``.
        """
        completed = [p for p in pay_periods if p.is_completed]
        summary = ReconciliationSummary(
            total_periods=len(pay_periods),
            completed_periods=len(completed),
        )
        if not completed:
            return summary

        by_period: dict[str | None, list[Allocation]] = defaultdict(list)
        for allocation in allocations:
            by_period[allocation.pay_period_id].append(allocation)

        total_net_variance = ZERO
        total_allocation_variance = ZERO

        for period in completed:
            actual_net = period.actual_net or ZERO
            net_variance, net_pct = _variance(period.expected_net, actual_net)
            status = self.classify(net_pct)
            if status == ReconciliationStatus.PERFECT:
                summary.perfect_reconciliations += 1
            elif status == ReconciliationStatus.MINOR_VARIANCE:
                summary.minor_variance_count += 1
            else:
                summary.major_variance_count += 1

            period_allocations = by_period.get(period.id, [])
            expected_total = sum((a.expected_amount for a in period_allocations), ZERO)
            actual_total = sum((a.actual_amount or ZERO for a in period_allocations), ZERO)

            total_net_variance += abs(net_variance)
            total_allocation_variance += abs(actual_total - expected_total)
            summary.total_unallocated += abs(actual_net - actual_total)

        count = Decimal(len(completed))
        summary.average_net_variance = round_money(total_net_variance / count)
        summary.average_allocation_variance = round_money(total_allocation_variance / count)
        summary.total_unallocated = round_money(summary.total_unallocated)
        return summary


# Convenience functions
def reconcile(
    pay_period: PayPeriod,
    allocations: list[Allocation],
    config: ReconciliationConfig | None = None,
) -> ReconciliationData:
    """Quick pay period reconciliation."""
    return PayPeriodReconciler(config).reconcile(pay_period, allocations)


def summarize_reconciliations(
    pay_periods: list[PayPeriod],
    allocations: list[Allocation],
    config: ReconciliationConfig | None = None,
) -> ReconciliationSummary:
    """Quick multi-period reconciliation summary."""
    return PayPeriodReconciler(config).summarize(pay_periods, allocations)
