"""Tests for savings goals."""

from datetime import date, timedelta
from decimal import Decimal
from uuid import uuid4

import pytest

from finance_tracker.errors import EntityNotFoundError, InvalidAmountError
from finance_tracker.models.audit import AuditEventType
from finance_tracker.models.goal import GoalPriority, GoalStatus


class TestGoalCrud:
    @pytest.mark.asyncio
    async def test_create(self, goal_tracker, user_id, make_goal):
        goal = await goal_tracker.create(user_id, make_goal(1000, current=250))

        assert goal.progress_percentage == 25
        assert goal.remaining_amount == Decimal("750")
        assert goal.status == GoalStatus.ACTIVE

    @pytest.mark.asyncio
    async def test_get_missing(self, goal_tracker, user_id):
        with pytest.raises(EntityNotFoundError) as exc_info:
            await goal_tracker.get(user_id, uuid4())
        assert exc_info.value.error_code == "GOAL_NOT_FOUND"

    @pytest.mark.asyncio
    async def test_update_and_delete(self, goal_tracker, user_id, make_goal):
        goal = await goal_tracker.create(user_id, make_goal(1000))

        updated = await goal_tracker.update(user_id, goal.id, make_goal(2000, name="Bigger fund"))
        assert updated.id == goal.id
        assert updated.name == "Bigger fund"
        assert updated.target_amount == Decimal("2000")

        await goal_tracker.delete(user_id, goal.id)
        with pytest.raises(EntityNotFoundError):
            await goal_tracker.delete(user_id, goal.id)

    @pytest.mark.asyncio
    async def test_listing_order(self, goal_tracker, user_id, make_goal):
        await goal_tracker.create(user_id, make_goal(100, name="Low", priority="low"))
        await goal_tracker.create(user_id, make_goal(100, name="High no deadline", priority="high"))
        await goal_tracker.create(user_id, make_goal(
            100, name="High late", priority="high", deadline=date(2025, 1, 1),
        ))
        await goal_tracker.create(user_id, make_goal(
            100, name="High soon", priority="high", deadline=date(2024, 7, 1),
        ))
        await goal_tracker.create(user_id, make_goal(100, name="Medium"))

        goals = await goal_tracker.list_goals(user_id)
        assert [g.name for g in goals] == [
            "High soon", "High late", "High no deadline", "Medium", "Low",
        ]

    @pytest.mark.asyncio
    async def test_list_filters(self, goal_tracker, user_id, make_goal):
        await goal_tracker.create(user_id, make_goal(100, name="Done", status="completed"))
        await goal_tracker.create(user_id, make_goal(100, name="Car", category="car"))

        completed = await goal_tracker.list_goals(user_id, status=GoalStatus.COMPLETED)
        assert [g.name for g in completed] == ["Done"]

        high = await goal_tracker.list_goals(user_id, priority=GoalPriority.HIGH)
        assert high == []


class TestContributions:
    @pytest.mark.asyncio
    async def test_add_contribution(self, goal_tracker, backend, user_id, make_goal):
        goal = await goal_tracker.create(user_id, make_goal(1000, current=100))

        goal = await goal_tracker.add_contribution(user_id, goal.id, Decimal("150"))

        assert goal.current_amount == Decimal("250")
        stored = await goal_tracker.get(user_id, goal.id)
        assert stored.current_amount == Decimal("250")

        events = await backend.audit.get_events_by_entity("goal", goal.id)
        assert events[-1].event_type == AuditEventType.GOAL_CONTRIBUTION_ADDED

    @pytest.mark.asyncio
    async def test_over_saving_clamps_progress(self, goal_tracker, user_id, make_goal):
        goal = await goal_tracker.create(user_id, make_goal(1000, current=900))

        goal = await goal_tracker.add_contribution(user_id, goal.id, Decimal("600"))

        assert goal.current_amount == Decimal("1500")
        assert goal.progress_percentage == 100
        assert goal.remaining_amount == Decimal("0")

    @pytest.mark.asyncio
    @pytest.mark.parametrize("amount", ["0", "-10"])
    async def test_non_positive_rejected(self, goal_tracker, user_id, make_goal, amount):
        goal = await goal_tracker.create(user_id, make_goal(1000))

        with pytest.raises(InvalidAmountError):
            await goal_tracker.add_contribution(user_id, goal.id, Decimal(amount))

    @pytest.mark.asyncio
    async def test_other_users_goal(self, goal_tracker, user_id, other_user_id, make_goal):
        goal = await goal_tracker.create(user_id, make_goal(1000))

        with pytest.raises(EntityNotFoundError):
            await goal_tracker.add_contribution(other_user_id, goal.id, Decimal("10"))


class TestLinkedTransactions:
    @pytest.mark.asyncio
    async def test_tagged_income_is_not_written_back(
        self, goal_tracker, ledger, user_id, make_goal, make_income, make_expense
    ):
        goal = await goal_tracker.create(user_id, make_goal(1000, current=100))
        await ledger.create(user_id, make_income(60, goal_id=goal.id))
        await ledger.create(user_id, make_income(40, goal_id=goal.id))
        await ledger.create(user_id, make_expense(5, goal_id=goal.id))

        linked = await goal_tracker.linked_transactions(user_id, goal.id)

        assert linked.stored_amount == Decimal("100")
        assert linked.linked_income_total == Decimal("100")
        assert linked.is_in_sync
        assert len(linked.transactions) == 2

        stored = await goal_tracker.get(user_id, goal.id)
        assert stored.current_amount == Decimal("100")


class TestGoalStats:
    @pytest.mark.asyncio
    async def test_stats(self, goal_tracker, user_id, make_goal, today):
        await goal_tracker.create(user_id, make_goal(
            1000, current=500, deadline=today + timedelta(days=10),
        ))
        await goal_tracker.create(user_id, make_goal(
            400, current=100, deadline=today - timedelta(days=1),
        ))
        await goal_tracker.create(user_id, make_goal(
            200, current=200, status="completed", deadline=today - timedelta(days=5),
        ))
        await goal_tracker.create(user_id, make_goal(
            100, deadline=today + timedelta(days=90),
        ))

        stats = await goal_tracker.stats(user_id)

        assert stats.total_goals == 4
        assert stats.active_goals == 3
        assert stats.completed_goals == 1
        assert stats.total_target_amount == Decimal("1700")
        assert stats.total_current_amount == Decimal("800")
        assert stats.total_remaining_amount == Decimal("900")
        assert stats.goals_near_deadline == 1
        assert stats.overdue_goals == 1
        # (50 + 25 + 100 + 0) / 4
        assert stats.average_progress == pytest.approx(43.75)

    @pytest.mark.asyncio
    async def test_deadline_today_is_neither(self, goal_tracker, user_id, make_goal, today):
        await goal_tracker.create(user_id, make_goal(100, deadline=today))

        stats = await goal_tracker.stats(user_id)
        assert stats.goals_near_deadline == 0
        assert stats.overdue_goals == 0

    @pytest.mark.asyncio
    async def test_empty(self, goal_tracker, user_id):
        stats = await goal_tracker.stats(user_id)
        assert stats.total_goals == 0
        assert stats.average_progress == 0.0
