"""
Goal Tracker

Savings goals and their progress.

DESIGN DECISION: `current_amount` is written only by create, update and
`add_contribution`. Goal-tagged income is exposed through
`linked_transactions` as a read-only comparison; reconciling the two is
an explicit client `update`, never a side effect.
"""

from datetime import date
from decimal import Decimal
from typing import Callable, Optional
from uuid import UUID

from finance_tracker.audit import AuditLogger
from finance_tracker.errors import EntityNotFoundError, InvalidAmountError
from finance_tracker.models.common import RECORD_FIELDS
from finance_tracker.models.goal import (
    PRIORITY_RANK,
    Goal,
    GoalCategory,
    GoalInput,
    GoalLinkedSummary,
    GoalPriority,
    GoalStats,
    GoalStatus,
)
from finance_tracker.services.storage import RecordStorageInterface
from finance_tracker.trackers.ledger import TransactionLedger


NEAR_DEADLINE_DAYS = 30


def _listing_order(goal: Goal) -> tuple:
    # high priority first, then earliest deadline (none last), then newest
    return (
        PRIORITY_RANK[goal.priority],
        goal.deadline is None,
        goal.deadline or date.max,
        -goal.created_at.timestamp(),
    )


class GoalTracker:
    def __init__(
        self,
        goals: RecordStorageInterface[Goal],
        ledger: TransactionLedger,
        audit_logger: Optional[AuditLogger] = None,
        today: Callable[[], date] = date.today,
    ):
        self._goals = goals
        self._ledger = ledger
        self._audit = audit_logger or AuditLogger()
        self._today = today

    async def create(self, user_id: UUID, data: GoalInput) -> Goal:
        goal = Goal(user_id=user_id, **data.model_dump())
        goal = await self._goals.insert(goal)
        await self._audit.log_record_changed(
            "goal", "created", goal.id, user_id,
            details={"name": goal.name, "target_amount": str(goal.target_amount)},
        )
        return goal

    async def get(self, user_id: UUID, goal_id: UUID) -> Goal:
        goal = await self._goals.get(user_id, goal_id)
        if goal is None:
            raise EntityNotFoundError("goal", goal_id)
        return goal

    async def list_goals(
        self,
        user_id: UUID,
        status: Optional[GoalStatus] = None,
        category: Optional[GoalCategory] = None,
        priority: Optional[GoalPriority] = None,
    ) -> list[Goal]:
        return await self._goals.find(
            user_id,
            where=lambda g: (
                (status is None or g.status == status)
                and (category is None or g.category == category)
                and (priority is None or g.priority == priority)
            ),
            order_by=_listing_order,
        )

    async def update(self, user_id: UUID, goal_id: UUID, data: GoalInput) -> Goal:
        existing = await self.get(user_id, goal_id)
        updated = Goal(**existing.model_dump(include=RECORD_FIELDS), **data.model_dump())
        updated = await self._goals.replace(updated)
        await self._audit.log_record_changed("goal", "updated", updated.id, user_id)
        return updated

    async def delete(self, user_id: UUID, goal_id: UUID) -> None:
        if not await self._goals.delete(user_id, goal_id):
            raise EntityNotFoundError("goal", goal_id)
        await self._audit.log_record_changed("goal", "deleted", goal_id, user_id)

    async def add_contribution(self, user_id: UUID, goal_id: UUID, amount: Decimal) -> Goal:
        """
        Add `amount` to the goal's saved total.

        Saving past the target is allowed; progress stays clamped at 100.
        """
        if amount <= 0:
            raise InvalidAmountError("Contribution amount must be greater than zero")

        goal = await self.get(user_id, goal_id)
        goal = goal.model_copy(update={"current_amount": goal.current_amount + amount})
        goal = await self._goals.replace(goal)
        await self._audit.log_goal_contribution(
            goal_id=goal.id,
            user_id=user_id,
            amount=str(amount),
            new_total=str(goal.current_amount),
        )
        return goal

    async def linked_transactions(self, user_id: UUID, goal_id: UUID) -> GoalLinkedSummary:
        """Stored progress next to the income transactions tagged with the goal."""
        goal = await self.get(user_id, goal_id)
        income = await self._ledger.income_for_goal(user_id, goal_id)
        return GoalLinkedSummary(
            goal_id=goal.id,
            stored_amount=goal.current_amount,
            linked_income_total=sum((t.amount for t in income), Decimal("0")),
            transactions=income,
        )

    async def stats(self, user_id: UUID) -> GoalStats:
        goals = await self._goals.find(user_id)
        today = self._today()
        stats = GoalStats(total_goals=len(goals))

        for goal in goals:
            stats.total_target_amount += goal.target_amount
            stats.total_current_amount += goal.current_amount
            stats.total_remaining_amount += goal.remaining_amount
            if goal.status == GoalStatus.COMPLETED:
                stats.completed_goals += 1
            if goal.status != GoalStatus.ACTIVE:
                continue
            stats.active_goals += 1
            days_left = goal.days_remaining(today)
            if days_left is None:
                continue
            if days_left < 0:
                stats.overdue_goals += 1
            elif 0 < days_left <= NEAR_DEADLINE_DAYS:
                stats.goals_near_deadline += 1

        if goals:
            stats.average_progress = sum(g.progress_percentage for g in goals) / len(goals)
        return stats
