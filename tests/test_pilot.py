"""Tests for the BudgetPilot facade and its validation cache."""

from decimal import Decimal
from pathlib import Path

import pytest
import yaml

from budgetpilot import BudgetPilot
from budgetpilot.analyzers.reconciliation import ReconciliationStatus
from budgetpilot.config import BudgetPilotConfig
from budgetpilot.models.budget import BudgetItem, CalcType, IncomeSource
from budgetpilot.models.pay_period import Allocation, PayPeriod, PayPeriodStatus
from budgetpilot.models.validation import IssueKind
from budgetpilot.pilot import ValidationCache, snapshot_fingerprint


@pytest.fixture
def pilot() -> BudgetPilot:
    return BudgetPilot.from_config(None)


@pytest.fixture
def income() -> list[IncomeSource]:
    return [
        IncomeSource(id="old", gross_amount=100, net_amount=100, is_active=False),
        IncomeSource(id="salary", gross_amount=1250, net_amount=1000),
    ]


@pytest.fixture
def items() -> list[BudgetItem]:
    return [
        BudgetItem(id="rent", name="Rent", calc_type=CalcType.FIXED, value=500, priority=1),
        BudgetItem(
            id="savings",
            name="Savings",
            calc_type=CalcType.REMAINING_PERCENT,
            value=120,
            depends_on=["rent"],
            priority=1,
        ),
    ]


class TestPlan:
    def test_plan_primary_uses_first_active_income(
        self, pilot: BudgetPilot, items: list[BudgetItem], income: list[IncomeSource]
    ) -> None:
        plan = pilot.plan_primary(items, income)
        assert plan is not None
        assert plan.income_source.id == "salary"
        amounts = {r.budget_item_id: r.expected_amount for r in plan.results}
        assert amounts == {"rent": Decimal("500.00"), "savings": Decimal("600.00")}
        assert plan.summary.percent_allocated == Decimal("110.00")

    def test_plan_primary_without_income(self, pilot: BudgetPilot, items: list[BudgetItem]) -> None:
        assert pilot.plan_primary(items, []) is None


class TestValidateAndFix:
    def test_validate(self, pilot: BudgetPilot, items: list[BudgetItem], income: list[IncomeSource]) -> None:
        result = pilot.validate(items, income)
        assert result.issues_of_kind(IssueKind.PERCENTAGE_TOO_HIGH)
        assert result.issues_of_kind(IssueKind.OVER_ALLOCATION)

    def test_auto_fix(self, pilot: BudgetPilot, items: list[BudgetItem], income: list[IncomeSource]) -> None:
        fixed = pilot.auto_fix(items, income)

        by_id = {item.id: item for item in fixed}
        assert by_id["savings"].value == Decimal("100")
        assert [by_id["rent"].priority, by_id["savings"].priority] == [1, 2]
        # Input untouched
        assert items[1].value == Decimal("120")
        assert pilot.validate(fixed, income).auto_fixable_issues == []

    def test_auto_fix_self_and_missing_dependency(self, pilot: BudgetPilot, income: list[IncomeSource]) -> None:
        items = [
            BudgetItem(id="rent", name="Rent", calc_type=CalcType.FIXED, value=100, priority=1),
            BudgetItem(
                id="fun",
                name="Fun",
                calc_type=CalcType.REMAINING_PERCENT,
                value=10,
                depends_on=["fun", "ghost"],
                priority=2,
            ),
        ]

        fixed = pilot.auto_fix(items, income)

        assert fixed[1].depends_on == []
        result = pilot.validate(fixed, income)
        assert result.auto_fixable_issues == []
        assert result.is_valid

    def test_uses_config_thresholds(self, tmp_path: Path, items: list[BudgetItem], income: list[IncomeSource]) -> None:
        config_file = tmp_path / "budgetpilot.yaml"
        config_file.write_text(yaml.dump({"validation": {"min_name_length": 6}}))
        pilot = BudgetPilot.from_config(str(config_file))

        result = pilot.validate(items, income)

        assert [i.id for i in result.issues_of_kind(IssueKind.SHORT_NAME)] == ["short-name-rent"]

    def test_default_instance_builds_lazily(self, items: list[BudgetItem], income: list[IncomeSource]) -> None:
        pilot = BudgetPilot(config=BudgetPilotConfig())
        assert pilot.validate(items, income).summary.error_count >= 1


class TestValidationCache:
    def test_hit_on_same_snapshot(
        self, pilot: BudgetPilot, items: list[BudgetItem], income: list[IncomeSource]
    ) -> None:
        cache = ValidationCache()
        first = pilot.validate(items, income, cache=cache)
        second = pilot.validate(list(items), list(income), cache=cache)

        assert second is first
        assert (cache.hits, cache.misses) == (1, 1)
        assert len(cache) == 1

    def test_miss_after_change(
        self, pilot: BudgetPilot, items: list[BudgetItem], income: list[IncomeSource]
    ) -> None:
        cache = ValidationCache()
        pilot.validate(items, income, cache=cache)
        changed = [items[0].model_copy(update={"value": Decimal("400")}), items[1]]

        pilot.validate(changed, income, cache=cache)

        assert cache.misses == 2
        assert len(cache) == 2

    def test_separate_caches_do_not_share(
        self, pilot: BudgetPilot, items: list[BudgetItem], income: list[IncomeSource]
    ) -> None:
        first, second = ValidationCache(), ValidationCache()
        pilot.validate(items, income, cache=first)
        pilot.validate(items, income, cache=second)
        assert second.hits == 0

    def test_evicts_oldest(self, pilot: BudgetPilot, income: list[IncomeSource]) -> None:
        cache = ValidationCache(max_entries=2)
        snapshots = [
            [BudgetItem(id="rent", name="Rent", calc_type=CalcType.FIXED, value=v)] for v in (100, 200, 300)
        ]
        for snapshot in snapshots:
            pilot.validate(snapshot, income, cache=cache)

        assert len(cache) == 2
        assert cache.get(snapshot_fingerprint(snapshots[0], income)) is None
        assert cache.get(snapshot_fingerprint(snapshots[2], income)) is not None

    def test_clear(self, pilot: BudgetPilot, items: list[BudgetItem], income: list[IncomeSource]) -> None:
        cache = ValidationCache()
        pilot.validate(items, income, cache=cache)
        cache.clear()
        assert len(cache) == 0


class TestReconcile:
    def test_reconcile_and_summary(self, pilot: BudgetPilot) -> None:
        period = PayPeriod(
            id="pp-1",
            expected_net=Decimal("2000"),
            actual_net=Decimal("2500"),
            status=PayPeriodStatus.COMPLETED,
        )
        allocations = [Allocation(budget_item_id="rent", pay_period_id="pp-1", expected_amount=Decimal("1000"))]

        data = pilot.reconcile(period, allocations)
        summary = pilot.reconciliation_summary([period], allocations)

        assert data.reconciliation_status == ReconciliationStatus.MAJOR_VARIANCE
        assert summary.major_variance_count == 1
