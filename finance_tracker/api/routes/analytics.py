"""Dashboard analytics endpoints."""

from datetime import date
from typing import Optional

from fastapi import APIRouter, Depends, Query

from finance_tracker.api.deps import envelope, get_components, get_current_user
from finance_tracker.models.user import User
from finance_tracker.orchestrator import AppComponents


router = APIRouter(prefix="/analytics", tags=["analytics"])


@router.get("/overview")
async def overview(
    start_date: Optional[date] = None,
    end_date: Optional[date] = None,
    user: User = Depends(get_current_user),
    components: AppComponents = Depends(get_components),
):
    result = await components.analytics.overview(user.id, start_date, end_date)
    return envelope("Financial overview retrieved successfully", result)


@router.get("/trends")
async def trends(
    months: int = Query(default=12, ge=1, le=60),
    user: User = Depends(get_current_user),
    components: AppComponents = Depends(get_components),
):
    result = await components.analytics.monthly_trends(user.id, months)
    return envelope("Monthly trends retrieved successfully", result)


@router.get("/budgets")
async def budget_utilization(
    user: User = Depends(get_current_user),
    components: AppComponents = Depends(get_components),
):
    result = await components.analytics.budget_utilization(user.id)
    return envelope("Budget utilization retrieved successfully", result)


@router.get("/goals")
async def goal_progress(
    user: User = Depends(get_current_user),
    components: AppComponents = Depends(get_components),
):
    result = await components.analytics.goal_progress(user.id)
    return envelope("Goal progress retrieved successfully", result)


@router.get("/spending-patterns")
async def spending_patterns(
    user: User = Depends(get_current_user),
    components: AppComponents = Depends(get_components),
):
    result = await components.analytics.spending_patterns(user.id)
    return envelope("Spending patterns retrieved successfully", result)


@router.get("/health-score")
async def health_score(
    user: User = Depends(get_current_user),
    components: AppComponents = Depends(get_components),
):
    result = await components.analytics.financial_health_score(user.id)
    return envelope("Financial health score calculated successfully", result)
