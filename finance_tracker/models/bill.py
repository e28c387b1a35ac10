"""
Recurring bill models.

DESIGN DECISION: "paid" is tracked per cycle, not as a stored flag.
Every payment entry records the due date it settled (`cycle_due_date`).
A bill is paid when its history holds an entry for the *current*
`due_date`. Marking a bill paid advances `due_date` to the next
occurrence, so the new cycle reads as unpaid without any reset step.
"""

from datetime import date
from decimal import Decimal
from enum import Enum
from typing import Optional
from uuid import UUID, uuid4

from pydantic import BaseModel, ConfigDict, Field, computed_field

from finance_tracker.models.common import OwnedRecord


class BillCategory(str, Enum):
    UTILITIES = "utilities"
    HOUSING = "housing"
    TRANSPORTATION = "transportation"
    INSURANCE = "insurance"
    SUBSCRIPTION = "subscription"
    LOAN = "loan"
    CREDIT_CARD = "credit_card"
    HEALTHCARE = "healthcare"
    EDUCATION = "education"
    INTERNET = "internet"
    PHONE = "phone"
    OTHER = "other"


class BillFrequency(str, Enum):
    WEEKLY = "weekly"
    BI_WEEKLY = "bi-weekly"
    MONTHLY = "monthly"
    QUARTERLY = "quarterly"
    SEMI_ANNUALLY = "semi-annually"
    YEARLY = "yearly"


class BillStatus(str, Enum):
    """
    Lifecycle state.

    active <-> paused via pause/resume; cancel is terminal from either.
    Only active bills can be paid.
    """
    ACTIVE = "active"
    PAUSED = "paused"
    CANCELLED = "cancelled"


class BillPaymentMethod(str, Enum):
    CASH = "cash"
    CREDIT_CARD = "credit_card"
    DEBIT_CARD = "debit_card"
    BANK_TRANSFER = "bank_transfer"
    CHECK = "check"
    AUTO_PAY = "auto_pay"
    OTHER = "other"


class Payee(BaseModel):
    model_config = ConfigDict(str_strip_whitespace=True)

    name: Optional[str] = Field(default=None, max_length=100)
    account_number: Optional[str] = Field(default=None, max_length=50)
    website: Optional[str] = Field(default=None, max_length=200)
    phone: Optional[str] = Field(default=None, max_length=30)


class PaymentRecord(BaseModel):
    """One settled cycle in a bill's payment history."""

    id: UUID = Field(default_factory=uuid4)
    amount: Decimal = Field(..., gt=0)
    paid_date: date
    method: BillPaymentMethod = BillPaymentMethod.OTHER
    confirmation_number: Optional[str] = Field(default=None, max_length=100)
    notes: Optional[str] = Field(default=None, max_length=300)
    cycle_due_date: date = Field(
        ...,
        description="The due date this payment settled"
    )


class PaymentInput(BaseModel):
    """Body of a mark-paid call. Missing fields take bill defaults."""

    model_config = ConfigDict(str_strip_whitespace=True)

    amount: Optional[Decimal] = Field(default=None, gt=0)
    paid_date: Optional[date] = None
    method: Optional[BillPaymentMethod] = None
    confirmation_number: Optional[str] = Field(default=None, max_length=100)
    notes: Optional[str] = Field(default=None, max_length=300)


class BillInput(BaseModel):
    """Fields a client may set when creating or replacing a bill."""

    model_config = ConfigDict(str_strip_whitespace=True)

    name: str = Field(..., min_length=1, max_length=100)
    description: Optional[str] = Field(default=None, max_length=300)
    amount: Decimal = Field(..., gt=0)
    category: BillCategory
    due_date: date
    frequency: BillFrequency = BillFrequency.MONTHLY
    auto_pay_enabled: bool = False
    reminder_days: int = Field(default=3, ge=0, le=30)
    payee: Optional[Payee] = None
    notes: Optional[str] = Field(default=None, max_length=500)


class Bill(OwnedRecord, BillInput):
    """A stored bill. `next_due_date` is maintained by the tracker."""

    status: BillStatus = BillStatus.ACTIVE
    last_paid_date: Optional[date] = None
    next_due_date: Optional[date] = None
    payment_history: list[PaymentRecord] = Field(default_factory=list)

    @computed_field
    @property
    def is_paid(self) -> bool:
        return any(p.cycle_due_date == self.due_date for p in self.payment_history)

    def days_until(self, today: date) -> int:
        return (self.due_date - today).days

    def overdue_on(self, today: date) -> bool:
        return not self.is_paid and self.due_date < today

    def view(self, today: date) -> 'BillView':
        return BillView(
            **self.model_dump(),
            days_until_due=self.days_until(today),
            is_overdue=self.overdue_on(today),
        )


class BillView(Bill):
    """A bill with its date-relative fields resolved for one day."""

    days_until_due: int
    is_overdue: bool


class BillStats(BaseModel):
    """Rollup over active bills."""

    total_bills: int = 0
    total_amount: Decimal = Decimal("0")
    paid_count: int = 0
    unpaid_count: int = 0
    overdue_count: int = 0
    overdue_amount: Decimal = Decimal("0")
    upcoming_count: int = 0
    upcoming_amount: Decimal = Decimal("0")
