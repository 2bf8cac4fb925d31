"""
Budget data models — income sources and the budget items allocated against them.
"""

from __future__ import annotations

import uuid
from datetime import date
from decimal import Decimal
from enum import Enum

from pydantic import BaseModel, Field, model_validator


class BudgetCategory(str, Enum):
    """Top-level grouping for a budget item."""

    BILLS = "Bills"
    SAVINGS = "Savings"
    DEBT = "Debt"
    GIVING = "Giving"
    DISCRETIONARY = "Discretionary"
    OTHER = "Other"


class Cadence(str, Enum):
    """How often income arrives (and how often an item recurs)."""

    WEEKLY = "weekly"
    BI_WEEKLY = "bi-weekly"
    SEMI_MONTHLY = "semi-monthly"
    MONTHLY = "monthly"
    QUARTERLY = "quarterly"
    ANNUAL = "annual"


class CalcType(str, Enum):
    """Rule that turns a budget item's value into an expected amount."""

    FIXED = "FIXED"
    GROSS_PERCENT = "GROSS_PERCENT"
    NET_PERCENT = "NET_PERCENT"
    REMAINING_PERCENT = "REMAINING_PERCENT"

    @property
    def is_percentage(self) -> bool:
        return self is not CalcType.FIXED


def _new_id() -> str:
    return str(uuid.uuid4())


class IncomeSource(BaseModel):
    """A recurring source of income, e.g. a salary paid bi-weekly."""

    id: str = Field(default_factory=_new_id)
    name: str = ""
    gross_amount: Decimal = Field(ge=0, description="Pay before deductions")
    net_amount: Decimal = Field(ge=0, description="Take-home pay")
    cadence: Cadence = Cadence.MONTHLY
    is_active: bool = True
    end_date: date | None = None

    @model_validator(mode="after")
    def _net_within_gross(self) -> IncomeSource:
        if self.net_amount > self.gross_amount:
            raise ValueError(
                f"net_amount ({self.net_amount}) cannot exceed gross_amount ({self.gross_amount})"
            )
        return self

    def is_active_on(self, as_of: date) -> bool:
        """Active and not ended on or before ``as_of``."""
        return self.is_active and (self.end_date is None or self.end_date > as_of)


class BudgetItem(BaseModel):
    """A named allocation rule against income.

    ``value`` is an amount for FIXED items and a percentage for the other
    calc types. Out-of-range values are accepted; the validator reports
    them as issues.
    """

    id: str = Field(default_factory=_new_id)
    name: str
    category: BudgetCategory = BudgetCategory.OTHER
    calc_type: CalcType
    value: Decimal
    cadence: Cadence = Cadence.MONTHLY
    depends_on: list[str] = Field(default_factory=list, description="IDs of items calculated first")
    priority: int = Field(default=0, description="Lower runs earlier")
    is_active: bool = True
    end_date: date | None = None

    @property
    def is_percentage(self) -> bool:
        return self.calc_type.is_percentage

    def is_active_on(self, as_of: date) -> bool:
        """Active and not ended on or before ``as_of``."""
        return self.is_active and (self.end_date is None or self.end_date > as_of)


def active_items(items: list[BudgetItem], as_of: date | None = None) -> list[BudgetItem]:
    """Filter to active items, optionally also honouring ``end_date``."""
    if as_of is None:
        return [item for item in items if item.is_active]
    return [item for item in items if item.is_active_on(as_of)]


def active_income_sources(
    sources: list[IncomeSource],
    as_of: date | None = None,
) -> list[IncomeSource]:
    """Filter to active income sources, optionally also honouring ``end_date``."""
    if as_of is None:
        return [source for source in sources if source.is_active]
    return [source for source in sources if source.is_active_on(as_of)]
