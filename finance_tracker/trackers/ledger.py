"""
Transaction Ledger

Owns income/expense records and answers the aggregate questions the
rest of the system asks about them: totals by kind, totals by category,
month-by-month trends and goal-tagged sums.

All aggregates go through the storage port's `group_sum`, so they work
unchanged on any adapter.
"""

from datetime import date
from decimal import Decimal
from typing import Any, Callable, Optional
from uuid import UUID

import structlog

from finance_tracker.audit import AuditLogger
from finance_tracker.errors import EntityNotFoundError, ValidationFailedError
from finance_tracker.models.analytics import MonthlyTrend
from finance_tracker.models.common import RECORD_FIELDS, Page, ValidationIssue
from finance_tracker.models.goal import Goal
from finance_tracker.models.transaction import (
    BulkImportResult,
    CategoryTotal,
    GoalTransactions,
    Transaction,
    TransactionFilters,
    TransactionInput,
    TransactionKind,
    TransactionStats,
    TransactionTotals,
)
from finance_tracker.periods import months_back
from finance_tracker.services.storage import RecordStorageInterface
from finance_tracker.validation import BulkTransactionValidator


logger = structlog.get_logger()


def _in_range(start: Optional[date], end: Optional[date]) -> Callable[[Transaction], bool]:
    def predicate(txn: Transaction) -> bool:
        if start and txn.date < start:
            return False
        if end and txn.date > end:
            return False
        return True
    return predicate


def _newest_first(txn: Transaction) -> tuple:
    return (txn.date, txn.created_at)


class TransactionLedger:
    """CRUD and aggregate queries over a user's transactions."""

    def __init__(
        self,
        transactions: RecordStorageInterface[Transaction],
        goals: RecordStorageInterface[Goal],
        audit_logger: Optional[AuditLogger] = None,
        today: Callable[[], date] = date.today,
    ):
        self._transactions = transactions
        self._goals = goals
        self._audit = audit_logger or AuditLogger()
        self._today = today
        self._bulk_validator = BulkTransactionValidator()

    async def _ensure_goal(self, user_id: UUID, goal_id: Optional[UUID]) -> None:
        if goal_id is not None and await self._goals.get(user_id, goal_id) is None:
            raise EntityNotFoundError("goal", goal_id)

    # ------------------------------------------------------------------
    # CRUD
    # ------------------------------------------------------------------

    async def create(self, user_id: UUID, data: TransactionInput) -> Transaction:
        await self._ensure_goal(user_id, data.goal_id)
        txn = Transaction(user_id=user_id, **data.model_dump())
        txn = await self._transactions.insert(txn)
        await self._audit.log_record_changed(
            "transaction", "created", txn.id, user_id,
            details={"kind": txn.kind.value, "amount": str(txn.amount), "category": txn.category},
        )
        return txn

    async def get(self, user_id: UUID, transaction_id: UUID) -> Transaction:
        txn = await self._transactions.get(user_id, transaction_id)
        if txn is None:
            raise EntityNotFoundError("transaction", transaction_id)
        return txn

    async def update(
        self,
        user_id: UUID,
        transaction_id: UUID,
        data: TransactionInput,
    ) -> Transaction:
        existing = await self.get(user_id, transaction_id)
        await self._ensure_goal(user_id, data.goal_id)
        updated = Transaction(**existing.model_dump(include=RECORD_FIELDS), **data.model_dump())
        updated = await self._transactions.replace(updated)
        await self._audit.log_record_changed("transaction", "updated", updated.id, user_id)
        return updated

    async def delete(self, user_id: UUID, transaction_id: UUID) -> None:
        if not await self._transactions.delete(user_id, transaction_id):
            raise EntityNotFoundError("transaction", transaction_id)
        await self._audit.log_record_changed("transaction", "deleted", transaction_id, user_id)

    async def list_transactions(
        self,
        user_id: UUID,
        filters: Optional[TransactionFilters] = None,
        page: int = 1,
        limit: int = 10,
    ) -> Page[Transaction]:
        """Newest first, paginated."""
        filters = filters or TransactionFilters()
        total = await self._transactions.count(user_id, where=filters.matches)
        items = await self._transactions.find(
            user_id,
            where=filters.matches,
            order_by=_newest_first,
            descending=True,
            offset=(page - 1) * limit,
            limit=limit,
        )
        return Page[Transaction](items=items, total=total, page=page, limit=limit)

    async def recent(self, user_id: UUID, limit: int = 20) -> list[Transaction]:
        return await self._transactions.find(
            user_id, order_by=_newest_first, descending=True, limit=limit
        )

    async def bulk_create(self, user_id: UUID, rows: list[dict[str, Any]]) -> BulkImportResult:
        """
        Import many transactions, keeping the good rows.

        Each row is validated on its own; issues carry the row index.
        Raises ValidationFailedError only when no row could be imported.
        """
        result = BulkImportResult()
        parsed, issues = self._bulk_validator.validate(rows)
        result.errors.extend(issues)

        for index, data in parsed:
            try:
                result.created.append(await self.create(user_id, data))
            except EntityNotFoundError as e:
                result.errors.append(ValidationIssue(
                    field="goal_id",
                    issue_type="not_found",
                    message=e.message,
                    index=index,
                ))

        result.errors.sort(key=lambda issue: issue.index if issue.index is not None else -1)
        await self._audit.log_transactions_imported(
            user_id=user_id,
            created=len(result.created),
            failed=len({issue.index for issue in result.errors}),
        )
        if rows and not result.created:
            raise ValidationFailedError("No transactions could be imported", result.errors)
        return result

    # ------------------------------------------------------------------
    # Aggregates
    # ------------------------------------------------------------------

    async def totals(
        self,
        user_id: UUID,
        start_date: Optional[date] = None,
        end_date: Optional[date] = None,
    ) -> TransactionTotals:
        groups = await self._transactions.group_sum(
            user_id,
            key=lambda t: t.kind,
            value=lambda t: t.amount,
            where=_in_range(start_date, end_date),
        )
        income = groups.get(TransactionKind.INCOME)
        expense = groups.get(TransactionKind.EXPENSE)
        return TransactionTotals(
            total_income=income.total if income else Decimal("0"),
            total_expenses=expense.total if expense else Decimal("0"),
            income_count=income.count if income else 0,
            expense_count=expense.count if expense else 0,
        )

    async def totals_by_category(
        self,
        user_id: UUID,
        kind: TransactionKind = TransactionKind.EXPENSE,
        start_date: Optional[date] = None,
        end_date: Optional[date] = None,
    ) -> list[CategoryTotal]:
        """Per-category totals for one kind, largest first."""
        in_range = _in_range(start_date, end_date)
        groups = await self._transactions.group_sum(
            user_id,
            key=lambda t: t.category,
            value=lambda t: t.amount,
            where=lambda t: t.kind == kind and in_range(t),
        )
        totals = [
            CategoryTotal(category=category, total=group.total, count=group.count)
            for category, group in groups.items()
        ]
        totals.sort(key=lambda c: c.total, reverse=True)
        return totals

    async def expenses_by_category(
        self,
        user_id: UUID,
        start_date: Optional[date] = None,
        end_date: Optional[date] = None,
    ) -> list[CategoryTotal]:
        return await self.totals_by_category(
            user_id, TransactionKind.EXPENSE, start_date, end_date
        )

    async def expense_total(
        self,
        user_id: UUID,
        category: str,
        start_date: date,
        end_date: date,
    ) -> tuple[Decimal, int]:
        """Sum and count of one category's expenses in [start_date, end_date]."""
        groups = await self._transactions.group_sum(
            user_id,
            key=lambda t: t.category,
            value=lambda t: t.amount,
            where=lambda t: (
                t.kind == TransactionKind.EXPENSE
                and t.category == category
                and start_date <= t.date <= end_date
            ),
        )
        group = groups.get(category)
        return (group.total, group.count) if group else (Decimal("0"), 0)

    async def expenses_between(
        self,
        user_id: UUID,
        start_date: date,
        end_date: date,
    ) -> list[Transaction]:
        in_range = _in_range(start_date, end_date)
        return await self._transactions.find(
            user_id,
            where=lambda t: t.kind == TransactionKind.EXPENSE and in_range(t),
            order_by=lambda t: t.date,
        )

    async def monthly_totals(self, user_id: UUID, months: int = 12) -> list[MonthlyTrend]:
        """
        Income and expenses per calendar month, oldest first.

        Stage one sums per (year, month, kind); stage two pivots the kinds
        into `income` and `expenses` columns of one row per month.
        Months without transactions are omitted.
        """
        since = months_back(self._today(), months)
        by_kind = await self._transactions.group_sum(
            user_id,
            key=lambda t: (t.date.year, t.date.month, t.kind),
            value=lambda t: t.amount,
            where=lambda t: t.date >= since,
        )

        rows: dict[tuple[int, int], MonthlyTrend] = {}
        for (year, month, kind), group in by_kind.items():
            row = rows.setdefault((year, month), MonthlyTrend(year=year, month=month))
            if kind == TransactionKind.INCOME:
                row.income += group.total
            else:
                row.expenses += group.total
            row.transaction_count += group.count

        return [rows[key] for key in sorted(rows)]

    async def income_categories(self, user_id: UUID) -> set[str]:
        """Distinct categories the user has recorded income under."""
        groups = await self._transactions.group_sum(
            user_id,
            key=lambda t: t.category,
            value=lambda t: t.amount,
            where=lambda t: t.kind == TransactionKind.INCOME,
        )
        return set(groups)

    async def for_goal(self, user_id: UUID, goal_id: UUID) -> GoalTransactions:
        """Every transaction tagged with a goal, newest first."""
        await self._ensure_goal(user_id, goal_id)
        txns = await self._transactions.find(
            user_id,
            where=lambda t: t.goal_id == goal_id,
            order_by=_newest_first,
            descending=True,
        )
        return GoalTransactions(
            goal_id=goal_id,
            transactions=txns,
            total_amount=sum((t.amount for t in txns), Decimal("0")),
            count=len(txns),
        )

    async def income_for_goal(self, user_id: UUID, goal_id: UUID) -> list[Transaction]:
        return await self._transactions.find(
            user_id,
            where=lambda t: t.goal_id == goal_id and t.kind == TransactionKind.INCOME,
            order_by=_newest_first,
            descending=True,
        )

    async def stats(
        self,
        user_id: UUID,
        start_date: Optional[date] = None,
        end_date: Optional[date] = None,
    ) -> TransactionStats:
        """Totals and category breakdowns; defaults to year-to-date."""
        today = self._today()
        start_date = start_date or date(today.year, 1, 1)
        end_date = end_date or today

        totals = await self.totals(user_id, start_date, end_date)
        expenses = await self.totals_by_category(
            user_id, TransactionKind.EXPENSE, start_date, end_date
        )
        income = await self.totals_by_category(
            user_id, TransactionKind.INCOME, start_date, end_date
        )
        logger.debug(
            "transaction_stats_computed",
            user_id=str(user_id),
            start=start_date.isoformat(),
            end=end_date.isoformat(),
        )
        return TransactionStats(
            period_start=start_date,
            period_end=end_date,
            total_income=totals.total_income,
            total_expenses=totals.total_expenses,
            balance=totals.balance,
            income_count=totals.income_count,
            expense_count=totals.expense_count,
            expenses_by_category=expenses,
            income_by_category=income,
        )
