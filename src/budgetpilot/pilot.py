"""
BudgetPilot — Main entry point.

The BudgetPilot class ties the analyzers together behind one object
configured from a :class:`BudgetPilotConfig`.
"""

from __future__ import annotations

import hashlib
import json
import logging
from dataclasses import dataclass, field
from typing import Any

from budgetpilot.analyzers.allocation import CalculationResult, calculate_budget_allocations
from budgetpilot.analyzers.health import BudgetSummary, summarize
from budgetpilot.analyzers.reconciliation import (
    PayPeriodReconciler,
    ReconciliationData,
    ReconciliationSummary,
)
from budgetpilot.analyzers.resolutions import apply_resolution, generate_resolutions
from budgetpilot.analyzers.validation import BudgetValidator
from budgetpilot.config import BudgetPilotConfig
from budgetpilot.models.budget import BudgetItem, IncomeSource, active_income_sources
from budgetpilot.models.pay_period import Allocation, PayPeriod
from budgetpilot.models.validation import ConflictResolution, ValidationResult

logger = logging.getLogger("budgetpilot")

MAX_FIX_PASSES = 10


def snapshot_fingerprint(items: list[BudgetItem], income_sources: list[IncomeSource]) -> str:
    """Stable hash of an item/income snapshot."""
    payload = {
        "items": [item.model_dump(mode="json") for item in items],
        "income": [source.model_dump(mode="json") for source in income_sources],
    }
    encoded = json.dumps(payload, sort_keys=True).encode()
    return hashlib.sha256(encoded).hexdigest()


@dataclass
class ValidationCache:
    """Memoizes validation results for one caller (a request or a session).

    Create one per scope and pass it in; BudgetPilot keeps no cache of
    its own. Entries are keyed by a fingerprint of the whole snapshot, so
    any change to items or income misses the cache.
    """

    max_entries: int = 32
    hits: int = 0
    misses: int = 0
    _entries: dict[str, ValidationResult] = field(default_factory=dict, repr=False)

    def get(self, key: str) -> ValidationResult | None:
        result = self._entries.get(key)
        if result is None:
            self.misses += 1
        else:
            self.hits += 1
        return result

    def put(self, key: str, result: ValidationResult) -> None:
        if len(self._entries) >= self.max_entries:
            # Drop the oldest entry
            self._entries.pop(next(iter(self._entries)))
        self._entries[key] = result

    def clear(self) -> None:
        self._entries.clear()

    def __len__(self) -> int:
        return len(self._entries)


@dataclass
class BudgetPlan:
    """Calculated allocations for a budget plus their summary."""

    income_source: IncomeSource
    results: list[CalculationResult]
    summary: BudgetSummary


@dataclass
class BudgetPilot:
    """Top-level facade for the budget engine.

    Usage::

        from budgetpilot import BudgetPilot

        pilot = BudgetPilot.from_config("budgetpilot.yaml")
        result = pilot.validate(items, income_sources)
        fixed = pilot.auto_fix(items, income_sources)
        plan = pilot.plan(fixed, income_sources[0])

    BudgetPilot coordinates:
    - **Dependency resolution** and **allocation**: expected amounts per item.
    - **Health**: totals and a 0-100 score.
    - **Validation** and **resolutions**: issues and automatic fixes.
    - **Reconciliation**: expected vs. actual for completed pay periods.
    """

    config: BudgetPilotConfig = field(default_factory=BudgetPilotConfig)
    _validator: BudgetValidator | None = field(default=None, init=False, repr=False)
    _reconciler: PayPeriodReconciler | None = field(default=None, init=False, repr=False)

    @classmethod
    def from_config(cls, config_path: str | None = None, **overrides: Any) -> BudgetPilot:
        """Create a BudgetPilot instance from a config file or keyword arguments."""
        config = BudgetPilotConfig.load(config_path, **overrides)
        instance = cls(config=config)
        instance._setup()
        return instance

    def _setup(self) -> None:
        """Build the validator and reconciler from the config."""
        self._validator = BudgetValidator(self.config.validation)
        self._reconciler = PayPeriodReconciler(self.config.reconciliation)
        logger.info(
            "BudgetPilot initialized (minor variance %s%%, major variance %s%%)",
            self.config.reconciliation.minor_threshold,
            self.config.reconciliation.major_threshold,
        )

    @property
    def validator(self) -> BudgetValidator:
        if self._validator is None:
            self._setup()
        assert self._validator is not None
        return self._validator

    @property
    def reconciler(self) -> PayPeriodReconciler:
        if self._reconciler is None:
            self._setup()
        assert self._reconciler is not None
        return self._reconciler

    def plan(self, items: list[BudgetItem], income: IncomeSource) -> BudgetPlan:
        """Calculate every active item against one income source."""
        results = calculate_budget_allocations(items, income)
        return BudgetPlan(income_source=income, results=results, summary=summarize(results, income))

    def plan_primary(
        self,
        items: list[BudgetItem],
        income_sources: list[IncomeSource],
    ) -> BudgetPlan | None:
        """Plan against the first active income source, if there is one."""
        sources = active_income_sources(income_sources)
        if not sources:
            return None
        return self.plan(items, sources[0])

    def validate(
        self,
        items: list[BudgetItem],
        income_sources: list[IncomeSource],
        cache: ValidationCache | None = None,
    ) -> ValidationResult:
        """Validate a snapshot, reusing ``cache`` when the same snapshot was seen."""
        if cache is None:
            return self.validator.validate(items, income_sources)

        key = snapshot_fingerprint(items, income_sources)
        cached = cache.get(key)
        if cached is not None:
            return cached

        result = self.validator.validate(items, income_sources)
        cache.put(key, result)
        return result

    def resolutions(
        self,
        items: list[BudgetItem],
        income_sources: list[IncomeSource],
        cache: ValidationCache | None = None,
    ) -> list[ConflictResolution]:
        """Validate and propose fixes for every auto-fixable issue."""
        result = self.validate(items, income_sources, cache=cache)
        return generate_resolutions(result.issues, items)

    def auto_fix(
        self,
        items: list[BudgetItem],
        income_sources: list[IncomeSource],
    ) -> list[BudgetItem]:
        """
        Repair items until no automatic fix is left.

        Each pass re-validates the current items and applies only the first
        proposed resolution, so every edit is computed against the items it
        is applied to.
        """
        fixed = items
        for _ in range(MAX_FIX_PASSES):
            resolutions = self.resolutions(fixed, income_sources)
            if not resolutions:
                return fixed
            logger.info("Applying resolution: %s", resolutions[0].description)
            fixed = apply_resolution(resolutions[0], fixed)

        logger.warning("Automatic fixes still pending after %d passes", MAX_FIX_PASSES)
        return fixed

    def reconcile(self, pay_period: PayPeriod, allocations: list[Allocation]) -> ReconciliationData:
        """Reconcile one pay period."""
        return self.reconciler.reconcile(pay_period, allocations)

    def reconciliation_summary(
        self,
        pay_periods: list[PayPeriod],
        allocations: list[Allocation],
    ) -> ReconciliationSummary:
        """Summarize reconciliation across many pay periods."""
        return self.reconciler.summarize(pay_periods, allocations)
