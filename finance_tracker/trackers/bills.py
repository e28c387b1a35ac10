"""
Bill Tracker

Recurring bills, their due dates and their payment history.

State machine (explicit user actions only):
    active --pause--> paused --resume--> active
    active|paused --cancel--> cancelled (terminal)
    active --mark_paid--> active, due_date advanced one period
"""

from datetime import date
from decimal import Decimal
from typing import Callable, Optional
from uuid import UUID

from finance_tracker.audit import AuditLogger
from finance_tracker.errors import BillStateError, EntityNotFoundError
from finance_tracker.models.bill import (
    Bill,
    BillCategory,
    BillFrequency,
    BillInput,
    BillPaymentMethod,
    BillStats,
    BillStatus,
    PaymentInput,
    PaymentRecord,
)
from finance_tracker.models.common import RECORD_FIELDS
from finance_tracker.periods import next_occurrence
from finance_tracker.services.storage import RecordStorageInterface


DEFAULT_UPCOMING_WINDOW_DAYS = 7
STATS_UPCOMING_WINDOW_DAYS = 30

_TRANSITIONS = {
    "pause": ({BillStatus.ACTIVE}, BillStatus.PAUSED),
    "resume": ({BillStatus.PAUSED}, BillStatus.ACTIVE),
    "cancel": ({BillStatus.ACTIVE, BillStatus.PAUSED}, BillStatus.CANCELLED),
}


def _by_due_date(bill: Bill) -> date:
    return bill.due_date


class BillTracker:
    def __init__(
        self,
        bills: RecordStorageInterface[Bill],
        audit_logger: Optional[AuditLogger] = None,
        today: Callable[[], date] = date.today,
    ):
        self._bills = bills
        self._audit = audit_logger or AuditLogger()
        self._today = today

    def today(self) -> date:
        return self._today()

    async def create(self, user_id: UUID, data: BillInput) -> Bill:
        bill = Bill(
            user_id=user_id,
            next_due_date=next_occurrence(data.due_date, data.frequency),
            **data.model_dump(),
        )
        bill = await self._bills.insert(bill)
        await self._audit.log_record_changed(
            "bill", "created", bill.id, user_id,
            details={"name": bill.name, "amount": str(bill.amount)},
        )
        return bill

    async def get(self, user_id: UUID, bill_id: UUID) -> Bill:
        bill = await self._bills.get(user_id, bill_id)
        if bill is None:
            raise EntityNotFoundError("bill", bill_id)
        return bill

    async def list_bills(
        self,
        user_id: UUID,
        status: Optional[BillStatus] = None,
        category: Optional[BillCategory] = None,
        frequency: Optional[BillFrequency] = None,
        is_paid: Optional[bool] = None,
    ) -> list[Bill]:
        """Soonest due first."""
        return await self._bills.find(
            user_id,
            where=lambda b: (
                (status is None or b.status == status)
                and (category is None or b.category == category)
                and (frequency is None or b.frequency == frequency)
                and (is_paid is None or b.is_paid == is_paid)
            ),
            order_by=_by_due_date,
        )

    async def update(self, user_id: UUID, bill_id: UUID, data: BillInput) -> Bill:
        """Replace the editable fields; status and payment history are kept."""
        existing = await self.get(user_id, bill_id)
        updated = Bill(
            **existing.model_dump(
                include=RECORD_FIELDS | {"status", "last_paid_date", "payment_history"}
            ),
            next_due_date=next_occurrence(data.due_date, data.frequency),
            **data.model_dump(),
        )
        updated = await self._bills.replace(updated)
        await self._audit.log_record_changed("bill", "updated", updated.id, user_id)
        return updated

    async def delete(self, user_id: UUID, bill_id: UUID) -> None:
        if not await self._bills.delete(user_id, bill_id):
            raise EntityNotFoundError("bill", bill_id)
        await self._audit.log_record_changed("bill", "deleted", bill_id, user_id)

    async def mark_paid(
        self,
        user_id: UUID,
        bill_id: UUID,
        payment: Optional[PaymentInput] = None,
    ) -> Bill:
        """
        Settle the current cycle and advance to the next one.

        Appends a history entry for the current due date, sets
        `last_paid_date` and moves `due_date` forward one period.
        """
        payment = payment or PaymentInput()
        bill = await self.get(user_id, bill_id)
        if bill.status != BillStatus.ACTIVE:
            raise BillStateError(f"Only active bills can be paid (bill is {bill.status.value})")

        record = PaymentRecord(
            amount=payment.amount or bill.amount,
            paid_date=payment.paid_date or self._today(),
            method=payment.method or BillPaymentMethod.OTHER,
            confirmation_number=payment.confirmation_number,
            notes=payment.notes,
            cycle_due_date=bill.due_date,
        )
        new_due = next_occurrence(bill.due_date, bill.frequency)
        bill = bill.model_copy(update={
            "payment_history": [*bill.payment_history, record],
            "last_paid_date": record.paid_date,
            "due_date": new_due,
            "next_due_date": next_occurrence(new_due, bill.frequency),
        })
        bill = await self._bills.replace(bill)
        await self._audit.log_bill_paid(
            bill_id=bill.id,
            user_id=user_id,
            amount=str(record.amount),
            cycle_due_date=record.cycle_due_date.isoformat(),
            next_due_date=new_due.isoformat(),
        )
        return bill

    async def _transition(self, user_id: UUID, bill_id: UUID, action: str) -> Bill:
        allowed_from, target = _TRANSITIONS[action]
        bill = await self.get(user_id, bill_id)
        if bill.status not in allowed_from:
            raise BillStateError(f"Cannot {action} a bill that is {bill.status.value}")

        old_status = bill.status
        bill = await self._bills.replace(bill.model_copy(update={"status": target}))
        await self._audit.log_bill_status_changed(
            bill_id=bill.id,
            user_id=user_id,
            old_status=old_status.value,
            new_status=target.value,
        )
        return bill

    async def pause(self, user_id: UUID, bill_id: UUID) -> Bill:
        return await self._transition(user_id, bill_id, "pause")

    async def resume(self, user_id: UUID, bill_id: UUID) -> Bill:
        return await self._transition(user_id, bill_id, "resume")

    async def cancel(self, user_id: UUID, bill_id: UUID) -> Bill:
        return await self._transition(user_id, bill_id, "cancel")

    async def upcoming(
        self,
        user_id: UUID,
        window_days: int = DEFAULT_UPCOMING_WINDOW_DAYS,
    ) -> list[Bill]:
        """Active, unpaid bills due in [today, today + window_days]."""
        today = self._today()
        return await self._bills.find(
            user_id,
            where=lambda b: (
                b.status == BillStatus.ACTIVE
                and not b.is_paid
                and 0 <= b.days_until(today) <= window_days
            ),
            order_by=_by_due_date,
        )

    async def overdue(self, user_id: UUID) -> list[Bill]:
        """Active, unpaid bills whose due date has passed."""
        today = self._today()
        return await self._bills.find(
            user_id,
            where=lambda b: b.status == BillStatus.ACTIVE and b.overdue_on(today),
            order_by=_by_due_date,
        )

    async def stats(self, user_id: UUID) -> BillStats:
        """Rollup over active bills."""
        today = self._today()
        bills = await self._bills.find(user_id, where=lambda b: b.status == BillStatus.ACTIVE)
        stats = BillStats(total_bills=len(bills))

        for bill in bills:
            stats.total_amount += bill.amount
            if bill.is_paid:
                stats.paid_count += 1
                continue
            stats.unpaid_count += 1
            if bill.overdue_on(today):
                stats.overdue_count += 1
                stats.overdue_amount += bill.amount
            elif bill.days_until(today) <= STATS_UPCOMING_WINDOW_DAYS:
                stats.upcoming_count += 1
                stats.upcoming_amount += bill.amount
        return stats

    @staticmethod
    def total_amount(bills: list[Bill]) -> Decimal:
        return sum((b.amount for b in bills), Decimal("0"))
