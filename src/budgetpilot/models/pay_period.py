"""
Pay period models — the persisted records read back for reconciliation.
"""

from __future__ import annotations

from datetime import date
from decimal import Decimal
from enum import Enum

from pydantic import BaseModel, Field


class PayPeriodStatus(str, Enum):
    """Lifecycle of a pay period."""

    ACTIVE = "ACTIVE"
    COMPLETED = "COMPLETED"
    CANCELLED = "CANCELLED"


class AllocationStatus(str, Enum):
    """Whether an allocation has been paid out."""

    PAID = "PAID"
    UNPAID = "UNPAID"


class PayPeriod(BaseModel):
    """One income cycle, with the net pay expected and (once known) received."""

    id: str
    income_source_id: str | None = None
    start_date: date | None = None
    end_date: date | None = None
    expected_net: Decimal
    actual_net: Decimal | None = None
    status: PayPeriodStatus = PayPeriodStatus.ACTIVE

    @property
    def is_completed(self) -> bool:
        return self.status == PayPeriodStatus.COMPLETED

    @property
    def net_income(self) -> Decimal:
        """Actual net when recorded, otherwise the expected net."""
        return self.actual_net if self.actual_net is not None else self.expected_net


class Allocation(BaseModel):
    """Expected and actual amount of one budget item within one pay period."""

    id: str | None = None
    budget_item_id: str
    pay_period_id: str | None = None
    expected_amount: Decimal
    actual_amount: Decimal | None = None
    status: AllocationStatus = AllocationStatus.UNPAID
    budget_item_name: str = Field(default="Unknown", description="Denormalized for display")
    budget_item_category: str = "Other"

    @property
    def is_paid(self) -> bool:
        return self.status == AllocationStatus.PAID
