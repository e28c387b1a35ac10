"""Transaction ledger endpoints."""

from datetime import date
from typing import Any, Optional
from uuid import UUID

from fastapi import APIRouter, Body, Depends, Query, Response, status

from finance_tracker.api.deps import envelope, get_components, get_current_user
from finance_tracker.models.transaction import TransactionFilters, TransactionInput, TransactionKind
from finance_tracker.models.user import User
from finance_tracker.orchestrator import AppComponents


router = APIRouter(prefix="/transactions", tags=["transactions"])


@router.get("")
async def list_transactions(
    kind: Optional[TransactionKind] = None,
    category: Optional[str] = None,
    goal_id: Optional[UUID] = None,
    start_date: Optional[date] = None,
    end_date: Optional[date] = None,
    search: Optional[str] = Query(default=None, max_length=100),
    page: int = Query(default=1, ge=1),
    limit: Optional[int] = Query(default=None, ge=1),
    user: User = Depends(get_current_user),
    components: AppComponents = Depends(get_components),
):
    filters = TransactionFilters(
        kind=kind,
        category=category,
        goal_id=goal_id,
        start_date=start_date,
        end_date=end_date,
        search=search,
    )
    app_settings = components.settings.app
    limit = min(limit or app_settings.default_page_size, app_settings.max_page_size)
    result = await components.ledger.list_transactions(user.id, filters, page=page, limit=limit)
    return envelope("Transactions retrieved successfully", result)


@router.post("", status_code=status.HTTP_201_CREATED)
async def create_transaction(
    data: TransactionInput,
    user: User = Depends(get_current_user),
    components: AppComponents = Depends(get_components),
):
    txn = await components.ledger.create(user.id, data)
    return envelope("Transaction created successfully", txn)


@router.get("/stats")
async def transaction_stats(
    start_date: Optional[date] = None,
    end_date: Optional[date] = None,
    user: User = Depends(get_current_user),
    components: AppComponents = Depends(get_components),
):
    stats = await components.ledger.stats(user.id, start_date, end_date)
    return envelope("Transaction statistics retrieved successfully", stats)


@router.get("/goal/{goal_id}")
async def goal_transactions(
    goal_id: UUID,
    user: User = Depends(get_current_user),
    components: AppComponents = Depends(get_components),
):
    result = await components.ledger.for_goal(user.id, goal_id)
    return envelope("Goal transactions retrieved successfully", result)


@router.post("/bulk", status_code=status.HTTP_201_CREATED)
async def bulk_create(
    response: Response,
    transactions: list[Any] = Body(..., embed=True),
    user: User = Depends(get_current_user),
    components: AppComponents = Depends(get_components),
):
    """201 when every row imported, 207 when some rows were rejected."""
    result = await components.ledger.bulk_create(user.id, transactions)
    if result.has_errors:
        response.status_code = status.HTTP_207_MULTI_STATUS
        message = f"{len(result.created)} transactions created, some rows were rejected"
    else:
        message = f"{len(result.created)} transactions created successfully"
    return envelope(message, result)


@router.get("/{transaction_id}")
async def get_transaction(
    transaction_id: UUID,
    user: User = Depends(get_current_user),
    components: AppComponents = Depends(get_components),
):
    txn = await components.ledger.get(user.id, transaction_id)
    return envelope("Transaction retrieved successfully", txn)


@router.put("/{transaction_id}")
async def update_transaction(
    transaction_id: UUID,
    data: TransactionInput,
    user: User = Depends(get_current_user),
    components: AppComponents = Depends(get_components),
):
    txn = await components.ledger.update(user.id, transaction_id, data)
    return envelope("Transaction updated successfully", txn)


@router.delete("/{transaction_id}")
async def delete_transaction(
    transaction_id: UUID,
    user: User = Depends(get_current_user),
    components: AppComponents = Depends(get_components),
):
    await components.ledger.delete(user.id, transaction_id)
    return envelope("Transaction deleted successfully")
