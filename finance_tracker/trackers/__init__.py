"""Domain trackers: the ledger plus budget, goal and bill bookkeeping."""

from finance_tracker.trackers.ledger import TransactionLedger
from finance_tracker.trackers.budgets import BudgetTracker, classify_status
from finance_tracker.trackers.goals import GoalTracker
from finance_tracker.trackers.bills import BillTracker

__all__ = [
    "TransactionLedger",
    "BudgetTracker",
    "classify_status",
    "GoalTracker",
    "BillTracker",
]
