"""Savings goal endpoints."""

from typing import Optional
from uuid import UUID

from fastapi import APIRouter, Depends, Query, status

from finance_tracker.api.deps import envelope, get_components, get_current_user
from finance_tracker.models.goal import (
    ContributionInput,
    GoalCategory,
    GoalInput,
    GoalPriority,
    GoalStatus,
)
from finance_tracker.models.user import User
from finance_tracker.orchestrator import AppComponents


router = APIRouter(prefix="/goals", tags=["goals"])


@router.get("")
async def list_goals(
    status_filter: Optional[GoalStatus] = Query(default=None, alias="status"),
    category: Optional[GoalCategory] = None,
    priority: Optional[GoalPriority] = None,
    user: User = Depends(get_current_user),
    components: AppComponents = Depends(get_components),
):
    goals = await components.goals.list_goals(
        user.id, status=status_filter, category=category, priority=priority
    )
    return envelope("Goals retrieved successfully", goals)


@router.post("", status_code=status.HTTP_201_CREATED)
async def create_goal(
    data: GoalInput,
    user: User = Depends(get_current_user),
    components: AppComponents = Depends(get_components),
):
    goal = await components.goals.create(user.id, data)
    return envelope("Goal created successfully", goal)


@router.get("/stats")
async def goal_stats(
    user: User = Depends(get_current_user),
    components: AppComponents = Depends(get_components),
):
    stats = await components.goals.stats(user.id)
    return envelope("Goal statistics retrieved successfully", stats)


@router.get("/{goal_id}")
async def get_goal(
    goal_id: UUID,
    user: User = Depends(get_current_user),
    components: AppComponents = Depends(get_components),
):
    goal = await components.goals.get(user.id, goal_id)
    return envelope("Goal retrieved successfully", goal)


@router.put("/{goal_id}")
async def update_goal(
    goal_id: UUID,
    data: GoalInput,
    user: User = Depends(get_current_user),
    components: AppComponents = Depends(get_components),
):
    goal = await components.goals.update(user.id, goal_id, data)
    return envelope("Goal updated successfully", goal)


@router.delete("/{goal_id}")
async def delete_goal(
    goal_id: UUID,
    user: User = Depends(get_current_user),
    components: AppComponents = Depends(get_components),
):
    await components.goals.delete(user.id, goal_id)
    return envelope("Goal deleted successfully")


@router.patch("/{goal_id}/progress")
async def add_contribution(
    goal_id: UUID,
    data: ContributionInput,
    user: User = Depends(get_current_user),
    components: AppComponents = Depends(get_components),
):
    goal = await components.goals.add_contribution(user.id, goal_id, data.amount)
    return envelope("Goal progress updated successfully", goal)


@router.get("/{goal_id}/linked-transactions")
async def linked_transactions(
    goal_id: UUID,
    user: User = Depends(get_current_user),
    components: AppComponents = Depends(get_components),
):
    summary = await components.goals.linked_transactions(user.id, goal_id)
    return envelope("Goal-linked transactions retrieved successfully", summary)
