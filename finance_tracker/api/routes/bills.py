"""Recurring bill endpoints. Bills are returned with their date-relative fields resolved."""

from typing import Optional
from uuid import UUID

from fastapi import APIRouter, Body, Depends, Query, status

from finance_tracker.api.deps import envelope, get_components, get_current_user
from finance_tracker.models.bill import (
    BillCategory,
    BillFrequency,
    BillInput,
    BillStatus,
    PaymentInput,
)
from finance_tracker.models.user import User
from finance_tracker.orchestrator import AppComponents


router = APIRouter(prefix="/bills", tags=["bills"])


@router.get("")
async def list_bills(
    status_filter: Optional[BillStatus] = Query(default=None, alias="status"),
    category: Optional[BillCategory] = None,
    frequency: Optional[BillFrequency] = None,
    is_paid: Optional[bool] = None,
    user: User = Depends(get_current_user),
    components: AppComponents = Depends(get_components),
):
    bills = await components.bills.list_bills(
        user.id, status=status_filter, category=category, frequency=frequency, is_paid=is_paid
    )
    today = components.bills.today()
    return envelope("Bills retrieved successfully", [b.view(today) for b in bills])


@router.post("", status_code=status.HTTP_201_CREATED)
async def create_bill(
    data: BillInput,
    user: User = Depends(get_current_user),
    components: AppComponents = Depends(get_components),
):
    bill = await components.bills.create(user.id, data)
    return envelope("Bill created successfully", bill.view(components.bills.today()))


@router.get("/upcoming")
async def upcoming_bills(
    days: int = Query(default=7, ge=0, le=365),
    user: User = Depends(get_current_user),
    components: AppComponents = Depends(get_components),
):
    bills = await components.bills.upcoming(user.id, days)
    today = components.bills.today()
    return envelope("Upcoming bills retrieved successfully", [b.view(today) for b in bills])


@router.get("/overdue")
async def overdue_bills(
    user: User = Depends(get_current_user),
    components: AppComponents = Depends(get_components),
):
    bills = await components.bills.overdue(user.id)
    today = components.bills.today()
    return envelope("Overdue bills retrieved successfully", [b.view(today) for b in bills])


@router.get("/stats")
async def bill_stats(
    user: User = Depends(get_current_user),
    components: AppComponents = Depends(get_components),
):
    stats = await components.bills.stats(user.id)
    return envelope("Bill statistics retrieved successfully", stats)


@router.get("/{bill_id}")
async def get_bill(
    bill_id: UUID,
    user: User = Depends(get_current_user),
    components: AppComponents = Depends(get_components),
):
    bill = await components.bills.get(user.id, bill_id)
    return envelope("Bill retrieved successfully", bill.view(components.bills.today()))


@router.put("/{bill_id}")
async def update_bill(
    bill_id: UUID,
    data: BillInput,
    user: User = Depends(get_current_user),
    components: AppComponents = Depends(get_components),
):
    bill = await components.bills.update(user.id, bill_id, data)
    return envelope("Bill updated successfully", bill.view(components.bills.today()))


@router.delete("/{bill_id}")
async def delete_bill(
    bill_id: UUID,
    user: User = Depends(get_current_user),
    components: AppComponents = Depends(get_components),
):
    await components.bills.delete(user.id, bill_id)
    return envelope("Bill deleted successfully")


@router.patch("/{bill_id}/paid")
async def mark_paid(
    bill_id: UUID,
    payment: Optional[PaymentInput] = Body(default=None),
    user: User = Depends(get_current_user),
    components: AppComponents = Depends(get_components),
):
    bill = await components.bills.mark_paid(user.id, bill_id, payment)
    return envelope("Bill marked as paid", bill.view(components.bills.today()))


@router.patch("/{bill_id}/pause")
async def pause_bill(
    bill_id: UUID,
    user: User = Depends(get_current_user),
    components: AppComponents = Depends(get_components),
):
    bill = await components.bills.pause(user.id, bill_id)
    return envelope("Bill paused", bill.view(components.bills.today()))


@router.patch("/{bill_id}/resume")
async def resume_bill(
    bill_id: UUID,
    user: User = Depends(get_current_user),
    components: AppComponents = Depends(get_components),
):
    bill = await components.bills.resume(user.id, bill_id)
    return envelope("Bill resumed", bill.view(components.bills.today()))


@router.patch("/{bill_id}/cancel")
async def cancel_bill(
    bill_id: UUID,
    user: User = Depends(get_current_user),
    components: AppComponents = Depends(get_components),
):
    bill = await components.bills.cancel(user.id, bill_id)
    return envelope("Bill cancelled", bill.view(components.bills.today()))
