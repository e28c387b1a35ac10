"""
Shared fixtures.

Every tracker is built on fresh in-memory storage with a fixed clock.
FIXED_TODAY is Saturday 2024-06-15, which puts leap-day arithmetic and
month ends within easy reach of the tests.
"""

from datetime import date, timedelta
from decimal import Decimal
from uuid import uuid4

import pytest
from fastapi.testclient import TestClient

from finance_tracker.analytics import FinancialAggregator
from finance_tracker.api import create_app
from finance_tracker.audit import AuditLogger
from finance_tracker.config import AppSettings, AuthSettings, Settings
from finance_tracker.models.bill import BillInput
from finance_tracker.models.budget import BudgetInput
from finance_tracker.models.goal import GoalInput
from finance_tracker.models.transaction import TransactionInput
from finance_tracker.orchestrator import create_app_components
from finance_tracker.services.storage import create_memory_backend
from finance_tracker.trackers import BillTracker, BudgetTracker, GoalTracker, TransactionLedger


FIXED_TODAY = date(2024, 6, 15)


def fixed_today() -> date:
    return FIXED_TODAY


class FixedSettings(Settings):
    """Settings that ignore the environment and .env files."""

    @property
    def app(self) -> AppSettings:
        return AppSettings(_env_file=None, storage_backend="memory", assistant_mode="rules")

    @property
    def auth(self) -> AuthSettings:
        return AuthSettings(_env_file=None, secret_key="test-secret-key-123")


@pytest.fixture
def backend():
    return create_memory_backend()


@pytest.fixture
def user_id():
    return uuid4()


@pytest.fixture
def other_user_id():
    return uuid4()


@pytest.fixture
def audit_logger(backend):
    return AuditLogger(backend.audit)


@pytest.fixture
def ledger(backend, audit_logger):
    return TransactionLedger(backend.transactions, backend.goals, audit_logger, today=fixed_today)


@pytest.fixture
def budget_tracker(backend, ledger, audit_logger):
    return BudgetTracker(backend.budgets, ledger, audit_logger, today=fixed_today)


@pytest.fixture
def goal_tracker(backend, ledger, audit_logger):
    return GoalTracker(backend.goals, ledger, audit_logger, today=fixed_today)


@pytest.fixture
def bill_tracker(backend, audit_logger):
    return BillTracker(backend.bills, audit_logger, today=fixed_today)


@pytest.fixture
def app_settings():
    return AppSettings(_env_file=None)


@pytest.fixture
def aggregator(ledger, budget_tracker, goal_tracker, bill_tracker, app_settings):
    return FinancialAggregator(
        ledger, budget_tracker, goal_tracker, bill_tracker,
        settings=app_settings, today=fixed_today,
    )


@pytest.fixture
def components(backend):
    return create_app_components(backend=backend, settings=FixedSettings(), today=fixed_today)


@pytest.fixture
def client(components):
    with TestClient(create_app(components)) as test_client:
        yield test_client


@pytest.fixture
def make_expense():
    def build(amount, category="food", day=FIXED_TODAY, **extra) -> TransactionInput:
        return TransactionInput(
            kind="expense",
            amount=Decimal(str(amount)),
            category=category,
            date=day,
            **extra,
        )
    return build


@pytest.fixture
def make_income():
    def build(amount, category="salary", day=FIXED_TODAY, **extra) -> TransactionInput:
        return TransactionInput(
            kind="income",
            amount=Decimal(str(amount)),
            category=category,
            date=day,
            **extra,
        )
    return build


@pytest.fixture
def make_budget():
    def build(amount, category="food", **extra) -> BudgetInput:
        return BudgetInput(category=category, amount=Decimal(str(amount)), **extra)
    return build


@pytest.fixture
def make_goal():
    def build(target, current=0, name="Emergency fund", **extra) -> GoalInput:
        return GoalInput(
            name=name,
            target_amount=Decimal(str(target)),
            current_amount=Decimal(str(current)),
            **extra,
        )
    return build


@pytest.fixture
def make_bill():
    def build(amount=100, due_in_days=5, name="Electricity", **extra) -> BillInput:
        return BillInput(
            name=name,
            amount=Decimal(str(amount)),
            category=extra.pop("category", "utilities"),
            due_date=extra.pop("due_date", FIXED_TODAY + timedelta(days=due_in_days)),
            **extra,
        )
    return build


@pytest.fixture
def today():
    return FIXED_TODAY
