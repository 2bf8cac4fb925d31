"""
Budget snapshots — a point-in-time bundle of the data the engine works on.

Snapshots are plain YAML or JSON files, e.g.::

    income_sources:
      - id: salary
        gross_amount: 5000
        net_amount: 3800
        cadence: bi-weekly
    budget_items:
      - id: rent
        name: Rent
        calc_type: FIXED
        value: 1500
        priority: 1
"""

from __future__ import annotations

import json
from pathlib import Path
from typing import Any

import yaml
from pydantic import BaseModel, Field, ValidationError

from budgetpilot.exceptions import SnapshotError
from budgetpilot.models.budget import BudgetItem, IncomeSource
from budgetpilot.models.pay_period import Allocation, PayPeriod


class BudgetSnapshot(BaseModel):
    """Items, income, and pay period records for one user."""

    income_sources: list[IncomeSource] = Field(default_factory=list)
    budget_items: list[BudgetItem] = Field(default_factory=list)
    pay_periods: list[PayPeriod] = Field(default_factory=list)
    allocations: list[Allocation] = Field(default_factory=list)

    @classmethod
    def load(cls, path: str | Path) -> BudgetSnapshot:
        """Load a snapshot from a ``.yaml``/``.yml`` or ``.json`` file."""
        path = Path(path)
        if not path.exists():
            raise SnapshotError(f"Snapshot file not found: {path}", path=str(path))

        text = path.read_text()
        try:
            if path.suffix == ".json":
                data: Any = json.loads(text)
            else:
                data = yaml.safe_load(text)
        except (json.JSONDecodeError, yaml.YAMLError) as e:
            raise SnapshotError(f"Could not parse {path}: {e}", path=str(path)) from e

        if data is None:
            data = {}
        if not isinstance(data, dict):
            raise SnapshotError(f"Snapshot {path} must contain a mapping", path=str(path))

        try:
            return cls.model_validate(data)
        except ValidationError as e:
            raise SnapshotError(
                f"Snapshot {path} is invalid: {e.error_count()} error(s)",
                path=str(path),
                errors=e.errors(include_url=False),
            ) from e

    def save(self, path: str | Path) -> Path:
        """Write the snapshot as JSON or YAML depending on the file suffix."""
        path = Path(path)
        if path.suffix == ".json":
            path.write_text(self.model_dump_json(indent=2))
        else:
            data = self.model_dump(mode="json")
            path.write_text(yaml.safe_dump(data, sort_keys=False))
        return path

    def pay_period(self, pay_period_id: str) -> PayPeriod | None:
        for period in self.pay_periods:
            if period.id == pay_period_id:
                return period
        return None

    def allocations_for(self, pay_period_id: str) -> list[Allocation]:
        return [a for a in self.allocations if a.pay_period_id == pay_period_id]
