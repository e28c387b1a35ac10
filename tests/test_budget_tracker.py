"""Tests for budgets and their spending status."""

from datetime import date
from decimal import Decimal
from uuid import uuid4

import pytest

from finance_tracker.errors import DuplicateBudgetError, EntityNotFoundError
from finance_tracker.models.budget import AlertThresholds, BudgetPeriod, BudgetStatus
from finance_tracker.trackers import classify_status


class TestClassifyStatus:
    """Tests for the spending to status mapping."""

    @pytest.mark.parametrize("spent, expected", [
        ("0", BudgetStatus.GOOD),
        ("79.99", BudgetStatus.GOOD),
        ("80", BudgetStatus.WARNING),
        ("95", BudgetStatus.DANGER),
        ("99.99", BudgetStatus.DANGER),
        ("100", BudgetStatus.EXCEEDED),
        ("140", BudgetStatus.EXCEEDED),
    ])
    def test_default_thresholds(self, spent, expected):
        assert classify_status(Decimal(spent), Decimal("100"), AlertThresholds()) == expected

    def test_exceeded_ignores_thresholds(self):
        """Spending the full amount is exceeded even when danger is set to 100."""
        thresholds = AlertThresholds(warning=100, danger=100)
        assert classify_status(Decimal("50"), Decimal("50"), thresholds) == BudgetStatus.EXCEEDED


class TestBudgetCrud:
    @pytest.mark.asyncio
    async def test_create_defaults_to_current_month(self, budget_tracker, user_id, make_budget):
        budget = await budget_tracker.create(user_id, make_budget(300))

        assert budget.start_date == date(2024, 6, 1)
        assert budget.end_date == date(2024, 6, 30)
        assert budget.period == BudgetPeriod.MONTHLY

    @pytest.mark.asyncio
    async def test_duplicate_rejected(self, budget_tracker, user_id, make_budget):
        await budget_tracker.create(user_id, make_budget(300))

        with pytest.raises(DuplicateBudgetError):
            await budget_tracker.create(user_id, make_budget(500))

    @pytest.mark.asyncio
    async def test_same_category_other_period_allowed(self, budget_tracker, user_id, make_budget):
        await budget_tracker.create(user_id, make_budget(300))
        weekly = await budget_tracker.create(user_id, make_budget(80, period="weekly"))
        assert weekly.end_date == date(2024, 6, 7)

    @pytest.mark.asyncio
    async def test_duplicates_are_per_user(
        self, budget_tracker, user_id, other_user_id, make_budget
    ):
        await budget_tracker.create(user_id, make_budget(300))
        await budget_tracker.create(other_user_id, make_budget(300))

    @pytest.mark.asyncio
    async def test_update_recomputes_end_date(self, budget_tracker, user_id, make_budget):
        budget = await budget_tracker.create(user_id, make_budget(300))

        updated = await budget_tracker.update(
            user_id, budget.id, make_budget(900, period="quarterly")
        )
        assert updated.id == budget.id
        assert updated.start_date == date(2024, 6, 1)
        assert updated.end_date == date(2024, 8, 31)

    @pytest.mark.asyncio
    async def test_update_into_existing_key_rejected(self, budget_tracker, user_id, make_budget):
        await budget_tracker.create(user_id, make_budget(300))
        travel = await budget_tracker.create(user_id, make_budget(200, category="travel"))

        with pytest.raises(DuplicateBudgetError):
            await budget_tracker.update(user_id, travel.id, make_budget(200))

    @pytest.mark.asyncio
    async def test_update_own_key_allowed(self, budget_tracker, user_id, make_budget):
        budget = await budget_tracker.create(user_id, make_budget(300))
        updated = await budget_tracker.update(user_id, budget.id, make_budget(350))
        assert updated.amount == Decimal("350")

    @pytest.mark.asyncio
    async def test_auto_renew_is_stored_only(self, budget_tracker, user_id, make_budget):
        budget = await budget_tracker.create(user_id, make_budget(300, auto_renew=False))

        assert budget.auto_renew is False
        assert budget.end_date == date(2024, 6, 30)
        assert (await budget_tracker.get(user_id, budget.id)).auto_renew is False

    @pytest.mark.asyncio
    async def test_get_missing(self, budget_tracker, user_id):
        with pytest.raises(EntityNotFoundError) as exc_info:
            await budget_tracker.get(user_id, uuid4())
        assert exc_info.value.error_code == "BUDGET_NOT_FOUND"

    @pytest.mark.asyncio
    async def test_list_filters(self, budget_tracker, user_id, make_budget):
        await budget_tracker.create(user_id, make_budget(300))
        await budget_tracker.create(user_id, make_budget(100, category="travel", is_active=False))

        active = await budget_tracker.list_budgets(user_id, is_active=True)
        assert [b.category.value for b in active] == ["food"]

        travel = await budget_tracker.list_budgets(user_id, category="travel")
        assert len(travel) == 1


class TestBudgetSpending:
    @pytest.mark.asyncio
    async def test_warning_at_83_percent(
        self, budget_tracker, ledger, user_id, make_budget, make_expense
    ):
        budget = await budget_tracker.create(user_id, make_budget(300))
        await ledger.create(user_id, make_expense(100, day=date(2024, 6, 2)))
        await ledger.create(user_id, make_expense(150, day=date(2024, 6, 10)))

        spending = await budget_tracker.compute_spending(budget)

        assert spending.spent == Decimal("250")
        assert spending.remaining == Decimal("50")
        assert spending.percentage == pytest.approx(83.33, abs=0.01)
        assert spending.status == BudgetStatus.WARNING
        assert spending.transaction_count == 2

    @pytest.mark.asyncio
    async def test_only_category_and_period_count(
        self, budget_tracker, ledger, user_id, make_budget, make_expense, make_income
    ):
        budget = await budget_tracker.create(user_id, make_budget(300))
        await ledger.create(user_id, make_expense(50, day=date(2024, 5, 31)))
        await ledger.create(user_id, make_expense(50, day=date(2024, 7, 1)))
        await ledger.create(user_id, make_expense(50, category="travel"))
        await ledger.create(user_id, make_income(50, category="refund"))

        spending = await budget_tracker.compute_spending(budget)
        assert spending.spent == Decimal("0")
        assert spending.status == BudgetStatus.GOOD

    @pytest.mark.asyncio
    async def test_exceeded_at_equality(
        self, budget_tracker, ledger, user_id, make_budget, make_expense
    ):
        budget = await budget_tracker.create(user_id, make_budget(300))
        await ledger.create(user_id, make_expense(300))

        spending = await budget_tracker.compute_spending(budget)
        assert spending.status == BudgetStatus.EXCEEDED
        assert spending.remaining == Decimal("0")

    @pytest.mark.asyncio
    async def test_list_with_spending_active_only(
        self, budget_tracker, ledger, user_id, make_budget, make_expense
    ):
        await budget_tracker.create(user_id, make_budget(300))
        await budget_tracker.create(user_id, make_budget(100, category="travel", is_active=False))
        await ledger.create(user_id, make_expense(120))

        active = await budget_tracker.list_with_spending(user_id)
        assert len(active) == 1
        assert active[0].spent == Decimal("120")

        everything = await budget_tracker.list_with_spending(user_id, active_only=False)
        assert len(everything) == 2

    @pytest.mark.asyncio
    async def test_summary(self, budget_tracker, ledger, user_id, make_budget, make_expense):
        await budget_tracker.create(user_id, make_budget(200))
        await budget_tracker.create(user_id, make_budget(100, category="travel"))
        await ledger.create(user_id, make_expense(50))
        await ledger.create(user_id, make_expense(100, category="travel"))

        summary = await budget_tracker.summary(user_id)

        assert summary.total_budgets == 2
        assert summary.total_allocated == Decimal("300")
        assert summary.total_spent == Decimal("150")
        assert summary.total_remaining == Decimal("150")
        assert summary.average_usage == pytest.approx(62.5)
        assert summary.budgets_by_status[BudgetStatus.GOOD] == 1
        assert summary.budgets_by_status[BudgetStatus.EXCEEDED] == 1

    @pytest.mark.asyncio
    async def test_empty_summary(self, budget_tracker, user_id):
        summary = await budget_tracker.summary(user_id)
        assert summary.total_budgets == 0
        assert summary.average_usage == 0.0

    @pytest.mark.asyncio
    async def test_list_with_spending_is_repeatable(
        self, budget_tracker, ledger, user_id, make_budget, make_expense
    ):
        await budget_tracker.create(user_id, make_budget(300))
        await budget_tracker.create(user_id, make_budget(100, category="travel"))
        await ledger.create(user_id, make_expense(120))
        await ledger.create(user_id, make_expense(95, category="travel"))

        first = await budget_tracker.list_with_spending(user_id)
        second = await budget_tracker.list_with_spending(user_id)

        assert [b.model_dump() for b in first] == [b.model_dump() for b in second]


class TestStatusProgression:
    @pytest.mark.asyncio
    async def test_status_never_moves_backwards(
        self, budget_tracker, ledger, user_id, make_budget, make_expense
    ):
        """Growing spending walks good -> warning -> danger -> exceeded."""
        budget = await budget_tracker.create(user_id, make_budget(
            100, alert_thresholds=AlertThresholds(warning=50, danger=70),
        ))
        severity = list(BudgetStatus)

        seen = []
        for _ in range(12):
            await ledger.create(user_id, make_expense(10))
            seen.append((await budget_tracker.compute_spending(budget)).status)

        ranks = [severity.index(status) for status in seen]
        assert ranks == sorted(ranks)
        assert seen[3] == BudgetStatus.GOOD
        assert seen[4] == BudgetStatus.WARNING
        assert seen[6] == BudgetStatus.DANGER
        assert seen[9:] == [BudgetStatus.EXCEEDED] * 3
