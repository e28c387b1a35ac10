"""Budget endpoints."""

from typing import Optional
from uuid import UUID

from fastapi import APIRouter, Depends, status

from finance_tracker.api.deps import envelope, get_components, get_current_user
from finance_tracker.models.budget import BudgetInput, BudgetPeriod
from finance_tracker.models.transaction import ExpenseCategory
from finance_tracker.models.user import User
from finance_tracker.orchestrator import AppComponents


router = APIRouter(prefix="/budgets", tags=["budgets"])


@router.get("")
async def list_budgets(
    period: Optional[BudgetPeriod] = None,
    category: Optional[ExpenseCategory] = None,
    is_active: Optional[bool] = None,
    user: User = Depends(get_current_user),
    components: AppComponents = Depends(get_components),
):
    budgets = await components.budgets.list_budgets(
        user.id, period=period, category=category, is_active=is_active
    )
    return envelope("Budgets retrieved successfully", budgets)


@router.post("", status_code=status.HTTP_201_CREATED)
async def create_budget(
    data: BudgetInput,
    user: User = Depends(get_current_user),
    components: AppComponents = Depends(get_components),
):
    budget = await components.budgets.create(user.id, data)
    return envelope("Budget created successfully", budget)


@router.get("/with-spending")
async def budgets_with_spending(
    active_only: bool = True,
    user: User = Depends(get_current_user),
    components: AppComponents = Depends(get_components),
):
    budgets = await components.budgets.list_with_spending(user.id, active_only=active_only)
    return envelope("Budgets with spending retrieved successfully", budgets)


@router.get("/summary")
async def budget_summary(
    user: User = Depends(get_current_user),
    components: AppComponents = Depends(get_components),
):
    summary = await components.budgets.summary(user.id)
    return envelope("Budget summary retrieved successfully", summary)


@router.get("/{budget_id}")
async def get_budget(
    budget_id: UUID,
    user: User = Depends(get_current_user),
    components: AppComponents = Depends(get_components),
):
    budget = await components.budgets.get(user.id, budget_id)
    spending = await components.budgets.compute_spending(budget)
    return envelope("Budget retrieved successfully", {"budget": budget, "spending": spending})


@router.put("/{budget_id}")
async def update_budget(
    budget_id: UUID,
    data: BudgetInput,
    user: User = Depends(get_current_user),
    components: AppComponents = Depends(get_components),
):
    budget = await components.budgets.update(user.id, budget_id, data)
    return envelope("Budget updated successfully", budget)


@router.delete("/{budget_id}")
async def delete_budget(
    budget_id: UUID,
    user: User = Depends(get_current_user),
    components: AppComponents = Depends(get_components),
):
    await components.budgets.delete(user.id, budget_id)
    return envelope("Budget deleted successfully")
