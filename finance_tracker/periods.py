"""
Calendar arithmetic for budget periods and bill recurrence.

Month-based steps use relativedelta, which clamps to the last valid day
of the target month (Jan 31 + 1 month = Feb 28/29). Stepping always
starts from the stored date, so a clamped date drifts: Jan 31 -> Feb 28
-> Mar 28. Month-of-year is still preserved over a full cycle.
"""

from datetime import date, timedelta

from dateutil.relativedelta import relativedelta

from finance_tracker.models.bill import BillFrequency
from finance_tracker.models.budget import BudgetPeriod


RECURRENCE_STEPS = {
    BillFrequency.WEEKLY: relativedelta(weeks=1),
    BillFrequency.BI_WEEKLY: relativedelta(weeks=2),
    BillFrequency.MONTHLY: relativedelta(months=1),
    BillFrequency.QUARTERLY: relativedelta(months=3),
    BillFrequency.SEMI_ANNUALLY: relativedelta(months=6),
    BillFrequency.YEARLY: relativedelta(years=1),
}


def next_occurrence(due_date: date, frequency: BillFrequency | str) -> date:
    """Step a due date forward by one period of `frequency`."""
    return due_date + RECURRENCE_STEPS[BillFrequency(frequency)]


def budget_end_date(start_date: date, period: BudgetPeriod | str) -> date:
    """
    Last day (inclusive) covered by a budget.

    weekly: start + 6 days
    monthly: last day of the start month
    quarterly: the day before the start day three months on; when that
        month is too short, its last day (Jan 31 -> Apr 30)
    yearly: 31 December of the start year
    """
    period = BudgetPeriod(period)
    if period == BudgetPeriod.WEEKLY:
        return start_date + timedelta(days=6)
    if period == BudgetPeriod.MONTHLY:
        return start_date + relativedelta(day=31)
    if period == BudgetPeriod.QUARTERLY:
        same_day = start_date + relativedelta(months=3)
        if same_day.day < start_date.day:
            # Clamped: the start day does not exist in that month
            return same_day
        return same_day - timedelta(days=1)
    return date(start_date.year, 12, 31)


def months_back(today: date, months: int) -> date:
    """First day of the month `months - 1` months before today's month."""
    return today.replace(day=1) - relativedelta(months=months - 1)


def sunday_first_weekday(day: date) -> int:
    """Day of week with 0=Sunday..6=Saturday."""
    return (day.weekday() + 1) % 7
