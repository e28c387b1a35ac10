"""
Transaction models.

A transaction is a single income or expense entry. It is the raw input
for every budget, analytics and assistant computation.

DESIGN DECISION: Income and expense use disjoint category vocabularies.
The category is stored as a plain string, and the model rejects a
category that does not belong to the set matching `kind`.
"""

from datetime import date
from decimal import Decimal
from enum import Enum
from typing import Optional
from uuid import UUID

from pydantic import BaseModel, ConfigDict, Field, field_validator, model_validator

from finance_tracker.models.common import OwnedRecord, ValidationIssue


class TransactionKind(str, Enum):
    INCOME = "income"
    EXPENSE = "expense"


class ExpenseCategory(str, Enum):
    """Categories an expense (and a budget) can be filed under."""
    FOOD = "food"
    TRANSPORTATION = "transportation"
    UTILITIES = "utilities"
    ENTERTAINMENT = "entertainment"
    HEALTHCARE = "healthcare"
    SHOPPING = "shopping"
    EDUCATION = "education"
    TRAVEL = "travel"
    HOUSING = "housing"
    INSURANCE = "insurance"
    DEBT = "debt"
    PERSONAL_CARE = "personal_care"
    GIFTS = "gifts"
    CHARITY = "charity"
    OTHER = "other"


class IncomeCategory(str, Enum):
    """Categories an income entry can be filed under."""
    SALARY = "salary"
    FREELANCE = "freelance"
    BUSINESS = "business"
    INVESTMENT = "investment"
    BONUS = "bonus"
    RENTAL = "rental"
    DIVIDEND = "dividend"
    INTEREST = "interest"
    REFUND = "refund"
    OTHER = "other"


CATEGORIES_BY_KIND: dict[TransactionKind, frozenset[str]] = {
    TransactionKind.EXPENSE: frozenset(c.value for c in ExpenseCategory),
    TransactionKind.INCOME: frozenset(c.value for c in IncomeCategory),
}


class PaymentMethod(str, Enum):
    CASH = "cash"
    CREDIT_CARD = "credit_card"
    DEBIT_CARD = "debit_card"
    BANK_TRANSFER = "bank_transfer"
    DIGITAL_WALLET = "digital_wallet"
    CHECK = "check"
    OTHER = "other"


class RecurringFrequency(str, Enum):
    WEEKLY = "weekly"
    MONTHLY = "monthly"
    QUARTERLY = "quarterly"
    YEARLY = "yearly"


class RecurringDetails(BaseModel):
    """Schedule of a recurring transaction. Informational only."""

    frequency: RecurringFrequency
    next_due: Optional[date] = None
    end_date: Optional[date] = None


class TransactionInput(BaseModel):
    """Fields a client may set when creating or replacing a transaction."""

    model_config = ConfigDict(str_strip_whitespace=True)

    kind: TransactionKind = Field(
        ...,
        description="income or expense"
    )
    amount: Decimal = Field(
        ...,
        gt=0,
        description="Positive amount; direction comes from `kind`"
    )
    category: str = Field(
        ...,
        min_length=1,
        description="Category from the set matching `kind`"
    )
    date: date
    description: Optional[str] = Field(default=None, max_length=200)
    goal_id: Optional[UUID] = Field(
        default=None,
        description="Savings goal this transaction contributes to"
    )
    tags: list[str] = Field(default_factory=list)
    is_recurring: bool = False
    recurring: Optional[RecurringDetails] = None
    payment_method: PaymentMethod = PaymentMethod.CASH
    notes: Optional[str] = Field(default=None, max_length=500)

    @field_validator('category')
    @classmethod
    def normalize_category(cls, v: str) -> str:
        return v.lower()

    @field_validator('tags')
    @classmethod
    def normalize_tags(cls, v: list[str]) -> list[str]:
        tags = []
        for tag in v:
            tag = tag.strip().lower()
            if not tag:
                continue
            if len(tag) > 20:
                raise ValueError(f"Tag '{tag}' is longer than 20 characters")
            tags.append(tag)
        return tags

    @model_validator(mode='after')
    def validate_category_for_kind(self) -> 'TransactionInput':
        allowed = CATEGORIES_BY_KIND[self.kind]
        if self.category not in allowed:
            raise ValueError(
                f"Category '{self.category}' is not valid for {self.kind.value} "
                f"transactions. Allowed: {', '.join(sorted(allowed))}"
            )
        if self.is_recurring and self.recurring is None:
            raise ValueError("Recurring transactions need recurring details")
        return self


class Transaction(OwnedRecord, TransactionInput):
    """A stored transaction."""


class TransactionFilters(BaseModel):
    """Listing filters. All are optional and combined with AND."""

    kind: Optional[TransactionKind] = None
    category: Optional[str] = None
    goal_id: Optional[UUID] = None
    start_date: Optional[date] = None
    end_date: Optional[date] = None
    search: Optional[str] = Field(
        default=None,
        description="Case-insensitive match on description or notes"
    )

    def matches(self, txn: Transaction) -> bool:
        if self.kind and txn.kind != self.kind:
            return False
        if self.category and txn.category != self.category.lower():
            return False
        if self.goal_id and txn.goal_id != self.goal_id:
            return False
        if self.start_date and txn.date < self.start_date:
            return False
        if self.end_date and txn.date > self.end_date:
            return False
        if self.search:
            needle = self.search.lower()
            haystack = f"{txn.description or ''} {txn.notes or ''}".lower()
            if needle not in haystack:
                return False
        return True


class CategoryTotal(BaseModel):
    category: str
    total: Decimal
    count: int


class TransactionTotals(BaseModel):
    """Income and expense sums over a date range."""

    total_income: Decimal = Decimal("0")
    total_expenses: Decimal = Decimal("0")
    income_count: int = 0
    expense_count: int = 0

    @property
    def balance(self) -> Decimal:
        return self.total_income - self.total_expenses


class TransactionStats(BaseModel):
    period_start: date
    period_end: date
    total_income: Decimal
    total_expenses: Decimal
    balance: Decimal
    income_count: int
    expense_count: int
    expenses_by_category: list[CategoryTotal]
    income_by_category: list[CategoryTotal]


class GoalTransactions(BaseModel):
    """Transactions tagged with one goal, plus their summed amount."""

    goal_id: UUID
    transactions: list[Transaction]
    total_amount: Decimal
    count: int


class BulkImportResult(BaseModel):
    created: list[Transaction] = Field(default_factory=list)
    errors: list[ValidationIssue] = Field(default_factory=list)

    @property
    def has_errors(self) -> bool:
        return bool(self.errors)

