"""
Financial Aggregator

Read-only rollups across the ledger and the three trackers. Holds no
state of its own.

DESIGN DECISION: Two failure policies.

- `overview` fans out its independent reads with `asyncio.gather` and
  propagates the first failure.
- Every other aggregate logs an internal failure and returns a
  zero-valued result.

Goal averages are unweighted: a $100 goal at 90% counts the same as a
$10,000 goal at 10%. Progress values are clamped to 0..100 before
averaging.
"""

import asyncio
import math
from datetime import date, timedelta
from decimal import Decimal
from typing import Awaitable, Callable, Optional, TypeVar
from uuid import UUID

import structlog

from finance_tracker.config import AppSettings, get_settings
from finance_tracker.models.analytics import (
    BudgetCategorySpend,
    BudgetUtilization,
    FinancialOverview,
    GoalProgressItem,
    GoalProgressSummary,
    HealthScore,
    MonthlyTrend,
    OverviewSummary,
    SpendingBreakdown,
    SpendingPatterns,
    TrendSeries,
    UpcomingBills,
)
from finance_tracker.models.goal import GoalStatus
from finance_tracker.models.transaction import CategoryTotal, TransactionTotals
from finance_tracker.periods import sunday_first_weekday
from finance_tracker.trackers import BillTracker, BudgetTracker, GoalTracker, TransactionLedger


logger = structlog.get_logger()

T = TypeVar("T")

TOP_N = 5
PATTERN_WINDOW_DAYS = 30


# Health score weights and tiers: (minimum, share of weight)
SAVINGS_WEIGHT = 30
BUDGET_WEIGHT = 25
GOAL_WEIGHT = 20
BILL_WEIGHT = 15
DIVERSIFICATION_WEIGHT = 10

SAVINGS_TIERS = [(20, 1.0), (10, 0.7), (5, 0.4)]
GOAL_TIERS = [(75, 1.0), (50, 0.7), (25, 0.4)]
# utilization ceilings: lower is better
BUDGET_TIERS = [(80, 1.0), (95, 0.7), (100, 0.4)]
DIVERSIFICATION_TIERS = {2: 0.6, 1: 0.3}


def _tiered(value: float, tiers: list[tuple[float, float]]) -> float:
    """Share for the first tier whose minimum `value` reaches; 0.2 for any positive rest."""
    for minimum, share in tiers:
        if value >= minimum:
            return share
    return 0.2 if value > 0 else 0.0


def _ceiling_tiered(value: float, tiers: list[tuple[float, float]]) -> float:
    for ceiling, share in tiers:
        if value <= ceiling:
            return share
    return 0.0


def _average(values: list[Decimal]) -> Decimal:
    if not values:
        return Decimal("0")
    return sum(values, Decimal("0")) / len(values)


def summarize(totals: TransactionTotals) -> OverviewSummary:
    """Income/expense totals with balance and savings rate."""
    balance = totals.total_income - totals.total_expenses
    savings_rate = 0.0
    if totals.total_income > 0:
        savings_rate = float(balance / totals.total_income * 100)
    return OverviewSummary(
        total_income=totals.total_income,
        total_expenses=totals.total_expenses,
        balance=balance,
        savings_rate=savings_rate,
        income_count=totals.income_count,
        expense_count=totals.expense_count,
    )


def breakdown(by_category: list[CategoryTotal]) -> SpendingBreakdown:
    return SpendingBreakdown(
        by_category=by_category,
        top_categories=by_category[:TOP_N],
        category_count=len(by_category),
    )


def trend_series(monthly: list[MonthlyTrend]) -> TrendSeries:
    return TrendSeries(
        monthly=monthly,
        average_monthly_income=_average([m.income for m in monthly]),
        average_monthly_expenses=_average([m.expenses for m in monthly]),
    )


class FinancialAggregator:
    """Cross-entity analytics for one user at a time."""

    def __init__(
        self,
        ledger: TransactionLedger,
        budgets: BudgetTracker,
        goals: GoalTracker,
        bills: BillTracker,
        settings: Optional[AppSettings] = None,
        today: Callable[[], date] = date.today,
    ):
        self._ledger = ledger
        self._budgets = budgets
        self._goals = goals
        self._bills = bills
        self._settings = settings or get_settings().app
        self._today = today

    async def _or_default(
        self,
        aggregate: str,
        user_id: UUID,
        compute: Awaitable[T],
        default: Callable[[], T],
    ) -> T:
        try:
            return await compute
        except Exception as e:
            logger.error(
                "aggregate_failed",
                aggregate=aggregate,
                user_id=str(user_id),
                error=str(e),
            )
            return default()

    # ------------------------------------------------------------------
    # Overview
    # ------------------------------------------------------------------

    async def overview(
        self,
        user_id: UUID,
        start_date: Optional[date] = None,
        end_date: Optional[date] = None,
    ) -> FinancialOverview:
        """
        Dashboard rollup. All reads run concurrently; any failure propagates.

        Without dates the summary and spending cover all time. Trends
        always cover the configured number of trailing months and bills
        the configured upcoming window.
        """
        totals, by_category, monthly, budgets, goals, upcoming = await asyncio.gather(
            self._ledger.totals(user_id, start_date, end_date),
            self._ledger.expenses_by_category(user_id, start_date, end_date),
            self._ledger.monthly_totals(user_id, self._settings.trend_months),
            self._budgets.list_with_spending(user_id, active_only=True),
            self._compute_goal_progress(user_id),
            self._bills.upcoming(user_id, self._settings.upcoming_bills_window_days),
        )
        return FinancialOverview(
            period_start=start_date,
            period_end=end_date,
            summary=summarize(totals),
            spending=breakdown(by_category),
            trends=trend_series(monthly),
            budgets=budgets,
            goals=goals,
            bills=UpcomingBills(
                bills=upcoming,
                total_amount=BillTracker.total_amount(upcoming),
                count=len(upcoming),
            ),
        )

    # ------------------------------------------------------------------
    # Defensive aggregates
    # ------------------------------------------------------------------

    async def monthly_trends(self, user_id: UUID, months: int = 12) -> TrendSeries:
        return await self._or_default(
            "monthly_trends",
            user_id,
            self._compute_trends(user_id, months),
            TrendSeries,
        )

    async def budget_utilization(self, user_id: UUID) -> BudgetUtilization:
        return await self._or_default(
            "budget_utilization",
            user_id,
            self._compute_budget_utilization(user_id),
            BudgetUtilization,
        )

    async def goal_progress(self, user_id: UUID) -> GoalProgressSummary:
        return await self._or_default(
            "goal_progress",
            user_id,
            self._compute_goal_progress(user_id),
            GoalProgressSummary,
        )

    async def spending_patterns(self, user_id: UUID) -> SpendingPatterns:
        return await self._or_default(
            "spending_patterns",
            user_id,
            self._compute_spending_patterns(user_id),
            SpendingPatterns,
        )

    async def financial_health_score(self, user_id: UUID) -> HealthScore:
        return await self._or_default(
            "financial_health_score",
            user_id,
            self._compute_health_score(user_id),
            lambda: HealthScore(score=0),
        )

    # ------------------------------------------------------------------
    # Computations
    # ------------------------------------------------------------------

    async def _compute_trends(self, user_id: UUID, months: int) -> TrendSeries:
        return trend_series(await self._ledger.monthly_totals(user_id, months))

    async def _compute_budget_utilization(self, user_id: UUID) -> BudgetUtilization:
        budgets = await self._budgets.list_with_spending(user_id, active_only=True)
        result = BudgetUtilization(total_budgets=len(budgets))
        if not budgets:
            return result

        for budget in budgets:
            result.total_allocated += budget.amount
            result.total_spent += budget.spent
            result.budgets_by_status[budget.status] += 1
        result.total_remaining = result.total_allocated - result.total_spent
        if result.total_allocated > 0:
            result.utilization_rate = float(result.total_spent / result.total_allocated * 100)

        by_spend = sorted(budgets, key=lambda b: b.spent, reverse=True)
        result.top_spending_categories = [
            BudgetCategorySpend(
                category=b.category.value,
                spent=b.spent,
                budget=b.amount,
                percentage=b.percentage,
            )
            for b in by_spend[:TOP_N]
        ]
        return result

    async def _compute_goal_progress(self, user_id: UUID) -> GoalProgressSummary:
        goals = await self._goals.list_goals(user_id)
        result = GoalProgressSummary(total_goals=len(goals))
        if not goals:
            return result

        for goal in goals:
            result.total_target_amount += goal.target_amount
            result.total_current_amount += goal.current_amount
            result.goals_by_status[goal.status] += 1
        result.average_progress = sum(g.progress_percentage for g in goals) / len(goals)

        active = [g for g in goals if g.status == GoalStatus.ACTIVE]
        active.sort(key=lambda g: g.progress_percentage, reverse=True)
        result.top_goals = [
            GoalProgressItem(
                id=g.id,
                name=g.name,
                current=g.current_amount,
                target=g.target_amount,
                progress=g.progress_percentage,
            )
            for g in active[:TOP_N]
        ]
        return result

    async def _compute_spending_patterns(self, user_id: UUID) -> SpendingPatterns:
        today = self._today()
        expenses = await self._ledger.expenses_between(
            user_id, today - timedelta(days=PATTERN_WINDOW_DAYS - 1), today
        )
        result = SpendingPatterns(transaction_count=len(expenses))
        if not expenses:
            return result

        seen_days = set()
        for txn in expenses:
            day = sunday_first_weekday(txn.date)
            result.by_day_of_week[day] += txn.amount
            seen_days.add(day)
            result.last_30_days_total += txn.amount

        result.daily_average = result.last_30_days_total / PATTERN_WINDOW_DAYS
        result.average_transaction_size = result.last_30_days_total / len(expenses)

        # strict comparison keeps the lowest day number on ties
        best = None
        for day in sorted(seen_days):
            if best is None or result.by_day_of_week[day] > result.by_day_of_week[best]:
                best = day
        result.most_expensive_day = best
        return result

    async def _compute_health_score(self, user_id: UUID) -> HealthScore:
        totals, utilization, goals, income_categories = await asyncio.gather(
            self._ledger.totals(user_id),
            self.budget_utilization(user_id),
            self.goal_progress(user_id),
            self._ledger.income_categories(user_id),
        )
        savings_rate = summarize(totals).savings_rate

        score = SAVINGS_WEIGHT * _tiered(savings_rate, SAVINGS_TIERS)
        score += BUDGET_WEIGHT * _ceiling_tiered(utilization.utilization_rate, BUDGET_TIERS)
        score += GOAL_WEIGHT * _tiered(goals.average_progress, GOAL_TIERS)
        # no overdue penalty is applied
        score += BILL_WEIGHT
        if len(income_categories) >= 3:
            score += DIVERSIFICATION_WEIGHT
        else:
            score += DIVERSIFICATION_WEIGHT * DIVERSIFICATION_TIERS.get(len(income_categories), 0.0)

        return HealthScore(score=min(math.floor(score + 0.5), 100))
