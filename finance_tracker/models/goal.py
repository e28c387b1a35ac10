"""
Savings goal models.

DESIGN DECISION: `current_amount` has a single writer. It changes only
through an explicit create/update or `GoalTracker.add_contribution`.
Income transactions tagged with a goal are reported next to it as a
read-only figure (`GoalLinkedSummary`) and never written back implicitly.
"""

from datetime import date
from decimal import Decimal
from enum import Enum
from typing import Optional
from uuid import UUID

from pydantic import BaseModel, ConfigDict, Field, computed_field

from finance_tracker.models.common import OwnedRecord
from finance_tracker.models.transaction import Transaction


class GoalCategory(str, Enum):
    EMERGENCY_FUND = "emergency_fund"
    VACATION = "vacation"
    HOUSE = "house"
    CAR = "car"
    EDUCATION = "education"
    RETIREMENT = "retirement"
    DEBT_PAYOFF = "debt_payoff"
    INVESTMENT = "investment"
    OTHER = "other"


class GoalPriority(str, Enum):
    LOW = "low"
    MEDIUM = "medium"
    HIGH = "high"


PRIORITY_RANK = {
    GoalPriority.HIGH: 0,
    GoalPriority.MEDIUM: 1,
    GoalPriority.LOW: 2,
}


class GoalStatus(str, Enum):
    ACTIVE = "active"
    COMPLETED = "completed"
    PAUSED = "paused"
    CANCELLED = "cancelled"


def clamped_progress(current: Decimal, target: Decimal) -> float:
    """Share of target reached, clamped to 0..100."""
    if target <= 0:
        return 0.0
    return min(float(current / target * 100), 100.0)


class GoalInput(BaseModel):
    model_config = ConfigDict(str_strip_whitespace=True)

    name: str = Field(..., min_length=2, max_length=100)
    description: Optional[str] = Field(default=None, max_length=500)
    target_amount: Decimal = Field(..., gt=0)
    current_amount: Decimal = Field(default=Decimal("0"), ge=0)
    category: GoalCategory = GoalCategory.OTHER
    priority: GoalPriority = GoalPriority.MEDIUM
    deadline: Optional[date] = None
    status: GoalStatus = GoalStatus.ACTIVE


class Goal(OwnedRecord, GoalInput):
    """A stored savings goal with derived progress fields."""

    @computed_field
    @property
    def progress_percentage(self) -> float:
        return clamped_progress(self.current_amount, self.target_amount)

    @computed_field
    @property
    def remaining_amount(self) -> Decimal:
        return max(self.target_amount - self.current_amount, Decimal("0"))

    def days_remaining(self, today: date) -> Optional[int]:
        if self.deadline is None:
            return None
        return (self.deadline - today).days


class ContributionInput(BaseModel):
    """Body of a progress update. Non-positive amounts are rejected by the tracker."""

    amount: Decimal


class GoalStats(BaseModel):
    total_goals: int = 0
    active_goals: int = 0
    completed_goals: int = 0
    total_target_amount: Decimal = Decimal("0")
    total_current_amount: Decimal = Decimal("0")
    total_remaining_amount: Decimal = Decimal("0")
    average_progress: float = 0.0
    goals_near_deadline: int = 0
    overdue_goals: int = 0


class GoalLinkedSummary(BaseModel):
    """Stored progress next to the sum of income tagged with the goal."""

    goal_id: UUID
    stored_amount: Decimal
    linked_income_total: Decimal
    transactions: list[Transaction]

    @computed_field
    @property
    def is_in_sync(self) -> bool:
        return self.stored_amount == self.linked_income_total
