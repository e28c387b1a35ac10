"""
Data Models Package

Pydantic models for every record, request body and computed result in
Finance Tracker. All data flowing through the system conforms to these.
"""

from finance_tracker.models.common import (
    RECORD_FIELDS,
    GroupTotal,
    OwnedRecord,
    Page,
    ValidationIssue,
    first_day_of_month,
    utc_now,
)
from finance_tracker.models.transaction import (
    CATEGORIES_BY_KIND,
    BulkImportResult,
    CategoryTotal,
    ExpenseCategory,
    GoalTransactions,
    IncomeCategory,
    PaymentMethod,
    RecurringDetails,
    RecurringFrequency,
    Transaction,
    TransactionFilters,
    TransactionInput,
    TransactionKind,
    TransactionStats,
    TransactionTotals,
)
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
from finance_tracker.models.goal import (
    ContributionInput,
    Goal,
    GoalCategory,
    GoalInput,
    GoalLinkedSummary,
    GoalPriority,
    GoalStats,
    GoalStatus,
    clamped_progress,
)
from finance_tracker.models.bill import (
    Bill,
    BillCategory,
    BillFrequency,
    BillInput,
    BillPaymentMethod,
    BillStats,
    BillStatus,
    BillView,
    Payee,
    PaymentInput,
    PaymentRecord,
)
from finance_tracker.models.user import (
    LoginRequest,
    TokenResponse,
    User,
    UserCreate,
    UserPublic,
)
from finance_tracker.models.chat import ChatIntent, ChatReply, ChatRequest, ChatTurn
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
from finance_tracker.models.audit import (
    AuditEvent,
    AuditEventBuilder,
    AuditEventType,
    AuditSeverity,
)

__all__ = [
    # Shared
    "RECORD_FIELDS",
    "GroupTotal",
    "OwnedRecord",
    "Page",
    "ValidationIssue",
    "first_day_of_month",
    "utc_now",
    # Transactions
    "CATEGORIES_BY_KIND",
    "BulkImportResult",
    "CategoryTotal",
    "ExpenseCategory",
    "GoalTransactions",
    "IncomeCategory",
    "PaymentMethod",
    "RecurringDetails",
    "RecurringFrequency",
    "Transaction",
    "TransactionFilters",
    "TransactionInput",
    "TransactionKind",
    "TransactionStats",
    "TransactionTotals",
    # Budgets
    "AlertThresholds",
    "Budget",
    "BudgetInput",
    "BudgetPeriod",
    "BudgetSpending",
    "BudgetStatus",
    "BudgetSummary",
    "BudgetWithSpending",
    # Goals
    "ContributionInput",
    "Goal",
    "GoalCategory",
    "GoalInput",
    "GoalLinkedSummary",
    "GoalPriority",
    "GoalStats",
    "GoalStatus",
    "clamped_progress",
    # Bills
    "Bill",
    "BillCategory",
    "BillFrequency",
    "BillInput",
    "BillPaymentMethod",
    "BillStats",
    "BillStatus",
    "BillView",
    "Payee",
    "PaymentInput",
    "PaymentRecord",
    # Users
    "LoginRequest",
    "TokenResponse",
    "User",
    "UserCreate",
    "UserPublic",
    # Chat
    "ChatIntent",
    "ChatReply",
    "ChatRequest",
    "ChatTurn",
    # Analytics
    "BudgetCategorySpend",
    "BudgetUtilization",
    "FinancialOverview",
    "GoalProgressItem",
    "GoalProgressSummary",
    "HealthScore",
    "MonthlyTrend",
    "OverviewSummary",
    "SpendingBreakdown",
    "SpendingPatterns",
    "TrendSeries",
    "UpcomingBills",
    # Audit
    "AuditEvent",
    "AuditEventBuilder",
    "AuditEventType",
    "AuditSeverity",
]
