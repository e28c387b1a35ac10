"""
Analytics result models.

These are the shapes produced by the aggregator. Every model has a
zero-valued default so that an aggregate can fall back to `Model()`
when its inputs are empty or a sub-query fails.
"""

from datetime import date
from decimal import Decimal
from typing import Optional
from uuid import UUID

from pydantic import BaseModel, Field

from finance_tracker.models.bill import Bill
from finance_tracker.models.budget import BudgetStatus, BudgetWithSpending
from finance_tracker.models.goal import GoalStatus
from finance_tracker.models.transaction import CategoryTotal


class OverviewSummary(BaseModel):
    total_income: Decimal = Decimal("0")
    total_expenses: Decimal = Decimal("0")
    balance: Decimal = Decimal("0")
    savings_rate: float = 0.0
    income_count: int = 0
    expense_count: int = 0


class SpendingBreakdown(BaseModel):
    by_category: list[CategoryTotal] = Field(default_factory=list)
    top_categories: list[CategoryTotal] = Field(default_factory=list)
    category_count: int = 0


class MonthlyTrend(BaseModel):
    year: int
    month: int
    income: Decimal = Decimal("0")
    expenses: Decimal = Decimal("0")
    transaction_count: int = 0

    @property
    def net(self) -> Decimal:
        return self.income - self.expenses


class TrendSeries(BaseModel):
    monthly: list[MonthlyTrend] = Field(default_factory=list)
    average_monthly_income: Decimal = Decimal("0")
    average_monthly_expenses: Decimal = Decimal("0")


class BudgetCategorySpend(BaseModel):
    category: str
    spent: Decimal
    budget: Decimal
    percentage: float


class BudgetUtilization(BaseModel):
    total_budgets: int = 0
    total_allocated: Decimal = Decimal("0")
    total_spent: Decimal = Decimal("0")
    total_remaining: Decimal = Decimal("0")
    utilization_rate: float = 0.0
    budgets_by_status: dict[BudgetStatus, int] = Field(
        default_factory=lambda: {status: 0 for status in BudgetStatus}
    )
    top_spending_categories: list[BudgetCategorySpend] = Field(default_factory=list)


class GoalProgressItem(BaseModel):
    id: UUID
    name: str
    current: Decimal
    target: Decimal
    progress: float


class GoalProgressSummary(BaseModel):
    total_goals: int = 0
    total_target_amount: Decimal = Decimal("0")
    total_current_amount: Decimal = Decimal("0")
    average_progress: float = 0.0
    goals_by_status: dict[GoalStatus, int] = Field(
        default_factory=lambda: {status: 0 for status in GoalStatus}
    )
    top_goals: list[GoalProgressItem] = Field(default_factory=list)


class SpendingPatterns(BaseModel):
    """Expense behaviour over the trailing 30 days. Day keys: 0=Sunday..6=Saturday."""

    last_30_days_total: Decimal = Decimal("0")
    transaction_count: int = 0
    daily_average: Decimal = Decimal("0")
    average_transaction_size: Decimal = Decimal("0")
    by_day_of_week: dict[int, Decimal] = Field(
        default_factory=lambda: {day: Decimal("0") for day in range(7)}
    )
    most_expensive_day: Optional[int] = None


class UpcomingBills(BaseModel):
    bills: list[Bill] = Field(default_factory=list)
    total_amount: Decimal = Decimal("0")
    count: int = 0


class FinancialOverview(BaseModel):
    period_start: Optional[date] = None
    period_end: Optional[date] = None
    summary: OverviewSummary
    spending: SpendingBreakdown
    trends: TrendSeries
    budgets: list[BudgetWithSpending]
    goals: GoalProgressSummary
    bills: UpcomingBills


class HealthScore(BaseModel):
    score: int = Field(ge=0, le=100)
