"""Tests for budget period and bill recurrence arithmetic."""

from datetime import date

import pytest

from finance_tracker.models.bill import BillFrequency
from finance_tracker.models.budget import BudgetPeriod
from finance_tracker.periods import (
    budget_end_date,
    months_back,
    next_occurrence,
    sunday_first_weekday,
)


class TestNextOccurrence:
    """Tests for stepping a bill's due date."""

    @pytest.mark.parametrize("frequency, expected", [
        (BillFrequency.WEEKLY, date(2024, 3, 22)),
        (BillFrequency.BI_WEEKLY, date(2024, 3, 29)),
        (BillFrequency.MONTHLY, date(2024, 4, 15)),
        (BillFrequency.QUARTERLY, date(2024, 6, 15)),
        (BillFrequency.SEMI_ANNUALLY, date(2024, 9, 15)),
        (BillFrequency.YEARLY, date(2025, 3, 15)),
    ])
    def test_each_frequency(self, frequency, expected):
        assert next_occurrence(date(2024, 3, 15), frequency) == expected

    def test_month_end_clamps_in_leap_year(self):
        """Jan 31 + 1 month lands on Feb 29 in a leap year."""
        assert next_occurrence(date(2024, 1, 31), "monthly") == date(2024, 2, 29)

    def test_month_end_clamps_in_common_year(self):
        assert next_occurrence(date(2023, 1, 31), "monthly") == date(2023, 2, 28)

    def test_leap_day_yearly(self):
        assert next_occurrence(date(2024, 2, 29), "yearly") == date(2025, 2, 28)

    def test_quarterly_from_month_end(self):
        assert next_occurrence(date(2024, 11, 30), "quarterly") == date(2025, 2, 28)

    def test_unknown_frequency_rejected(self):
        with pytest.raises(ValueError):
            next_occurrence(date(2024, 1, 1), "fortnightly")

    @pytest.mark.parametrize("start", [
        date(2024, 1, 31),
        date(2024, 2, 29),
        date(2023, 8, 31),
        date(2024, 3, 15),
    ])
    def test_twelve_monthly_steps_return_to_same_month(self, start):
        due = start
        for _ in range(12):
            due = next_occurrence(due, BillFrequency.MONTHLY)

        assert due.year == start.year + 1
        assert due.month == start.month


class TestBudgetEndDate:
    """Tests for budget period end dates."""

    def test_weekly_is_seven_days_inclusive(self):
        assert budget_end_date(date(2024, 6, 10), BudgetPeriod.WEEKLY) == date(2024, 6, 16)

    def test_monthly_ends_on_last_day(self):
        assert budget_end_date(date(2024, 2, 1), BudgetPeriod.MONTHLY) == date(2024, 2, 29)
        assert budget_end_date(date(2024, 6, 1), BudgetPeriod.MONTHLY) == date(2024, 6, 30)

    def test_quarterly(self):
        assert budget_end_date(date(2024, 1, 1), BudgetPeriod.QUARTERLY) == date(2024, 3, 31)

    @pytest.mark.parametrize("start, expected", [
        (date(2025, 1, 31), date(2025, 4, 30)),
        (date(2024, 11, 30), date(2025, 2, 28)),
        (date(2023, 11, 30), date(2024, 2, 29)),
        (date(2024, 3, 1), date(2024, 5, 31)),
        (date(2024, 6, 15), date(2024, 9, 14)),
    ])
    def test_quarterly_from_late_start_days(self, start, expected):
        """A month-end start covers the whole third month."""
        assert budget_end_date(start, BudgetPeriod.QUARTERLY) == expected

    def test_yearly_ends_on_december_31(self):
        assert budget_end_date(date(2024, 4, 1), "yearly") == date(2024, 12, 31)


class TestHelpers:
    def test_months_back_includes_current_month(self):
        assert months_back(date(2024, 6, 15), 12) == date(2023, 7, 1)
        assert months_back(date(2024, 6, 15), 1) == date(2024, 6, 1)

    def test_sunday_first_weekday(self):
        assert sunday_first_weekday(date(2024, 6, 16)) == 0  # Sunday
        assert sunday_first_weekday(date(2024, 6, 17)) == 1  # Monday
        assert sunday_first_weekday(date(2024, 6, 15)) == 6  # Saturday
