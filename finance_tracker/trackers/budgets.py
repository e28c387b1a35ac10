"""
Budget Tracker

Keeps category budgets and measures each one against the expense
transactions that fall inside its period.

DESIGN DECISION: Spending is never stored on the budget. It is computed
on every read from the ledger, so a budget can't drift from the
transactions it summarizes.
"""

import asyncio
from datetime import date
from decimal import Decimal
from typing import Callable, Optional
from uuid import UUID

from finance_tracker.audit import AuditLogger
from finance_tracker.errors import DuplicateBudgetError, EntityNotFoundError
from finance_tracker.models.budget import (
    AlertThresholds,
    Budget,
    BudgetInput,
    BudgetPeriod,
    BudgetSpending,
    BudgetStatus,
    BudgetSummary,
    BudgetWithSpending,
)
from finance_tracker.models.common import RECORD_FIELDS, first_day_of_month
from finance_tracker.models.transaction import ExpenseCategory
from finance_tracker.periods import budget_end_date
from finance_tracker.services.storage import RecordStorageInterface
from finance_tracker.trackers.ledger import TransactionLedger


def classify_status(
    spent: Decimal,
    amount: Decimal,
    thresholds: AlertThresholds,
) -> BudgetStatus:
    """
    Map spending to a status.

    Reaching the full amount is `exceeded`, regardless of thresholds.
    """
    if spent >= amount:
        return BudgetStatus.EXCEEDED
    percentage = float(spent / amount * 100)
    if percentage >= thresholds.danger:
        return BudgetStatus.DANGER
    if percentage >= thresholds.warning:
        return BudgetStatus.WARNING
    return BudgetStatus.GOOD


class BudgetTracker:
    """CRUD over budgets plus spending computation."""

    def __init__(
        self,
        budgets: RecordStorageInterface[Budget],
        ledger: TransactionLedger,
        audit_logger: Optional[AuditLogger] = None,
        today: Callable[[], date] = date.today,
    ):
        self._budgets = budgets
        self._ledger = ledger
        self._audit = audit_logger or AuditLogger()
        self._today = today

    async def _ensure_unique(
        self,
        user_id: UUID,
        category: ExpenseCategory,
        period: BudgetPeriod,
        start_date: date,
        exclude_id: Optional[UUID] = None,
    ) -> None:
        clashes = await self._budgets.count(
            user_id,
            where=lambda b: (
                b.id != exclude_id
                and b.category == category
                and b.period == period
                and b.start_date == start_date
            ),
        )
        if clashes:
            raise DuplicateBudgetError(
                f"A {period.value} budget for {category.value} starting "
                f"{start_date.isoformat()} already exists"
            )

    async def create(self, user_id: UUID, data: BudgetInput) -> Budget:
        start = data.start_date or first_day_of_month(self._today())
        await self._ensure_unique(user_id, data.category, data.period, start)

        fields = data.model_dump()
        fields["start_date"] = start
        budget = Budget(
            user_id=user_id,
            end_date=budget_end_date(start, data.period),
            **fields,
        )
        budget = await self._budgets.insert(budget)
        await self._audit.log_record_changed(
            "budget", "created", budget.id, user_id,
            details={"category": budget.category.value, "amount": str(budget.amount)},
        )
        return budget

    async def get(self, user_id: UUID, budget_id: UUID) -> Budget:
        budget = await self._budgets.get(user_id, budget_id)
        if budget is None:
            raise EntityNotFoundError("budget", budget_id)
        return budget

    async def list_budgets(
        self,
        user_id: UUID,
        period: Optional[BudgetPeriod] = None,
        category: Optional[ExpenseCategory] = None,
        is_active: Optional[bool] = None,
    ) -> list[Budget]:
        """Newest first."""
        return await self._budgets.find(
            user_id,
            where=lambda b: (
                (period is None or b.period == period)
                and (category is None or b.category == category)
                and (is_active is None or b.is_active == is_active)
            ),
            order_by=lambda b: b.created_at,
            descending=True,
        )

    async def update(self, user_id: UUID, budget_id: UUID, data: BudgetInput) -> Budget:
        """Replace a budget's fields; `end_date` follows start date and period."""
        existing = await self.get(user_id, budget_id)
        start = data.start_date or existing.start_date
        await self._ensure_unique(
            user_id, data.category, data.period, start, exclude_id=budget_id
        )

        fields = data.model_dump()
        fields["start_date"] = start
        updated = Budget(
            **existing.model_dump(include=RECORD_FIELDS),
            end_date=budget_end_date(start, data.period),
            **fields,
        )
        updated = await self._budgets.replace(updated)
        await self._audit.log_record_changed("budget", "updated", updated.id, user_id)
        return updated

    async def delete(self, user_id: UUID, budget_id: UUID) -> None:
        if not await self._budgets.delete(user_id, budget_id):
            raise EntityNotFoundError("budget", budget_id)
        await self._audit.log_record_changed("budget", "deleted", budget_id, user_id)

    async def compute_spending(self, budget: Budget) -> BudgetSpending:
        """Sum the budget's category expenses within [start_date, end_date]."""
        spent, count = await self._ledger.expense_total(
            budget.user_id,
            budget.category.value,
            budget.start_date,
            budget.end_date,
        )
        return BudgetSpending(
            spent=spent,
            remaining=budget.amount - spent,
            percentage=float(spent / budget.amount * 100),
            status=classify_status(spent, budget.amount, budget.alert_thresholds),
            transaction_count=count,
        )

    async def list_with_spending(
        self,
        user_id: UUID,
        active_only: bool = True,
    ) -> list[BudgetWithSpending]:
        budgets = await self.list_budgets(user_id, is_active=True if active_only else None)
        spendings = await asyncio.gather(*(self.compute_spending(b) for b in budgets))
        return [
            BudgetWithSpending.build(budget, spending)
            for budget, spending in zip(budgets, spendings)
        ]

    async def summary(self, user_id: UUID) -> BudgetSummary:
        """Totals across active budgets."""
        budgets = await self.list_with_spending(user_id, active_only=True)
        summary = BudgetSummary(total_budgets=len(budgets))
        for budget in budgets:
            summary.total_allocated += budget.amount
            summary.total_spent += budget.spent
            summary.budgets_by_status[budget.status] += 1
        summary.total_remaining = summary.total_allocated - summary.total_spent
        if budgets:
            summary.average_usage = sum(b.percentage for b in budgets) / len(budgets)
        return summary
