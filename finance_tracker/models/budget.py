"""
Budget models.

A budget caps expense spending for one category over one period.
`end_date` and the spending figures are derived; a client only sets the
category, amount, period, start date and alert thresholds.
"""

from datetime import date
from decimal import Decimal
from enum import Enum
from typing import Optional

from pydantic import BaseModel, ConfigDict, Field, model_validator

from finance_tracker.models.common import OwnedRecord
from finance_tracker.models.transaction import ExpenseCategory


class BudgetPeriod(str, Enum):
    WEEKLY = "weekly"
    MONTHLY = "monthly"
    QUARTERLY = "quarterly"
    YEARLY = "yearly"


class BudgetStatus(str, Enum):
    """
    Spending status, ordered from least to most severe.

    A budget only moves rightwards as spending grows.
    """
    GOOD = "good"
    WARNING = "warning"
    DANGER = "danger"
    EXCEEDED = "exceeded"


class AlertThresholds(BaseModel):
    """Percent-of-amount levels at which a budget turns warning/danger."""

    warning: float = Field(default=80, ge=0, le=100)
    danger: float = Field(default=95, ge=0, le=100)

    @model_validator(mode='after')
    def validate_order(self) -> 'AlertThresholds':
        if self.warning > self.danger:
            raise ValueError("Warning threshold cannot be above danger threshold")
        return self


class BudgetInput(BaseModel):
    """Fields a client may set when creating or replacing a budget."""

    model_config = ConfigDict(str_strip_whitespace=True)

    category: ExpenseCategory
    amount: Decimal = Field(
        ...,
        gt=0,
        description="Spending cap for the period"
    )
    period: BudgetPeriod = BudgetPeriod.MONTHLY
    start_date: Optional[date] = Field(
        default=None,
        description="Defaults to the first day of the current month"
    )
    alert_thresholds: AlertThresholds = Field(default_factory=AlertThresholds)
    is_active: bool = True
    notes: Optional[str] = Field(default=None, max_length=300)
    auto_renew: bool = Field(
        default=True,
        description="Client preference for rolling the budget into the next period. Informational only"
    )


class Budget(OwnedRecord, BudgetInput):
    """A stored budget. `start_date` and `end_date` are always set."""

    start_date: date
    end_date: date


class BudgetSpending(BaseModel):
    spent: Decimal
    remaining: Decimal
    percentage: float
    status: BudgetStatus
    transaction_count: int


class BudgetWithSpending(Budget):
    """A budget enriched with its computed spending figures."""

    spent: Decimal
    remaining: Decimal
    percentage: float
    status: BudgetStatus
    transaction_count: int

    @classmethod
    def build(cls, budget: Budget, spending: BudgetSpending) -> 'BudgetWithSpending':
        return cls(**budget.model_dump(), **spending.model_dump())


class BudgetSummary(BaseModel):
    total_budgets: int = 0
    total_allocated: Decimal = Decimal("0")
    total_spent: Decimal = Decimal("0")
    total_remaining: Decimal = Decimal("0")
    average_usage: float = 0.0
    budgets_by_status: dict[BudgetStatus, int] = Field(
        default_factory=lambda: {status: 0 for status in BudgetStatus}
    )
