"""
Typed exceptions for BudgetPilot.

Budget problems a user can fix (missing dependencies, over-allocation,
cycles, ...) are never raised: the validator reports them as
``ValidationIssue`` records. The exceptions below cover the outer layers
(config and snapshot loading) and genuinely unexpected faults.

    BudgetPilotError (base)
    |
    +-- CalculationError    fault inside the allocation pass
    +-- ConfigError         unreadable or malformed config file
    +-- SnapshotError       unreadable or malformed snapshot file

Every exception carries a machine-readable ``code``.
"""

from __future__ import annotations

from typing import Any


class BudgetPilotError(Exception):
    """Base class for all BudgetPilot errors."""

    code: str = "BUDGETPILOT_ERROR"

    def __init__(self, message: str, **details: Any):
        super().__init__(message)
        self.message = message
        self.details = details

    def to_dict(self) -> dict[str, Any]:
        return {"code": self.code, "message": self.message, **self.details}


class CalculationError(BudgetPilotError):
    """An allocation could not be computed (e.g. malformed numeric input)."""

    code = "CALCULATION_ERROR"

    def __init__(self, message: str, budget_item_id: str | None = None, **details: Any):
        super().__init__(message, budget_item_id=budget_item_id, **details)
        self.budget_item_id = budget_item_id


class ConfigError(BudgetPilotError):
    """The configuration file could not be read or parsed."""

    code = "CONFIG_ERROR"


class SnapshotError(BudgetPilotError):
    """A budget snapshot file could not be read or does not match the schema."""

    code = "SNAPSHOT_ERROR"

    def __init__(self, message: str, path: str | None = None, **details: Any):
        super().__init__(message, path=path, **details)
        self.path = path
