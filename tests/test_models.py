"""
Tests for the finance tracker models

Test strategy:
1. Unit tests for models and their derived fields
2. Tracker and aggregator tests run on in-memory storage
3. No real API calls in tests (fakes stand in for Sheets and Gemini)
"""

import json
from datetime import date, timedelta
from decimal import Decimal
from uuid import uuid4

import pytest
from pydantic import ValidationError

from finance_tracker.models import (
    AlertThresholds,
    AuditEvent,
    AuditEventBuilder,
    AuditEventType,
    AuditSeverity,
    Bill,
    BillStatus,
    BudgetInput,
    Goal,
    Page,
    PaymentRecord,
    TransactionInput,
    UserCreate,
    UserPublic,
    clamped_progress,
)
from finance_tracker.models.user import User


class TestTransactionModels:
    """Tests for transaction input validation."""

    def test_valid_expense(self):
        txn = TransactionInput(
            kind="expense",
            amount=Decimal("12.50"),
            category="  Food ",
            date=date(2024, 6, 1),
            tags=[" Lunch ", "", "WORK"],
        )
        assert txn.category == "food"
        assert txn.tags == ["lunch", "work"]

    def test_category_must_match_kind(self):
        """'salary' is an income category, not an expense one."""
        with pytest.raises(ValidationError):
            TransactionInput(
                kind="expense",
                amount=Decimal("10"),
                category="salary",
                date=date(2024, 6, 1),
            )

    def test_amount_must_be_positive(self):
        with pytest.raises(ValidationError):
            TransactionInput(
                kind="income",
                amount=Decimal("0"),
                category="salary",
                date=date(2024, 6, 1),
            )

    def test_recurring_needs_details(self):
        with pytest.raises(ValidationError):
            TransactionInput(
                kind="expense",
                amount=Decimal("10"),
                category="housing",
                date=date(2024, 6, 1),
                is_recurring=True,
            )

    def test_long_tag_rejected(self):
        with pytest.raises(ValidationError):
            TransactionInput(
                kind="expense",
                amount=Decimal("10"),
                category="food",
                date=date(2024, 6, 1),
                tags=["x" * 21],
            )


class TestBudgetModels:
    def test_default_thresholds(self):
        budget = BudgetInput(category="food", amount=Decimal("300"))
        assert budget.alert_thresholds.warning == 80
        assert budget.alert_thresholds.danger == 95

    def test_warning_above_danger_rejected(self):
        with pytest.raises(ValidationError):
            AlertThresholds(warning=96, danger=90)

    def test_category_must_be_expense_category(self):
        with pytest.raises(ValidationError):
            BudgetInput(category="salary", amount=Decimal("300"))


class TestGoalModels:
    """Tests for derived goal progress."""

    def _goal(self, target, current, **extra) -> Goal:
        return Goal(
            user_id=uuid4(),
            name="House",
            target_amount=Decimal(target),
            current_amount=Decimal(current),
            **extra,
        )

    def test_fully_funded_goal(self):
        goal = self._goal("1000", "1000")
        assert goal.progress_percentage == 100
        assert goal.remaining_amount == Decimal("0")

    def test_over_saved_goal_is_clamped(self):
        goal = self._goal("1000", "1500")
        assert goal.progress_percentage == 100
        assert goal.remaining_amount == Decimal("0")

    def test_partial_progress(self):
        goal = self._goal("400", "100")
        assert goal.progress_percentage == 25
        assert goal.remaining_amount == Decimal("300")

    def test_progress_is_serialized(self):
        data = self._goal("400", "100").model_dump()
        assert data["progress_percentage"] == 25
        assert data["remaining_amount"] == Decimal("300")

    def test_days_remaining(self):
        goal = self._goal("400", "100", deadline=date(2024, 7, 1))
        assert goal.days_remaining(date(2024, 6, 15)) == 16
        assert self._goal("400", "100").days_remaining(date(2024, 6, 15)) is None

    def test_clamped_progress_with_zero_target(self):
        assert clamped_progress(Decimal("5"), Decimal("0")) == 0.0


class TestBillModels:
    """Tests for per-cycle paid status."""

    def _bill(self, due: date, **extra) -> Bill:
        return Bill(
            user_id=uuid4(),
            name="Internet",
            amount=Decimal("60"),
            category="internet",
            due_date=due,
            **extra,
        )

    def test_new_bill_is_unpaid(self):
        bill = self._bill(date(2024, 6, 20))
        assert bill.is_paid is False
        assert bill.status == BillStatus.ACTIVE

    def test_paid_only_for_settled_cycle(self):
        payment = PaymentRecord(
            amount=Decimal("60"),
            paid_date=date(2024, 6, 18),
            cycle_due_date=date(2024, 6, 20),
        )
        assert self._bill(date(2024, 6, 20), payment_history=[payment]).is_paid
        assert not self._bill(date(2024, 7, 20), payment_history=[payment]).is_paid

    def test_overdue_and_days_until(self):
        today = date(2024, 6, 15)
        bill = self._bill(today - timedelta(days=2))
        assert bill.overdue_on(today)
        assert bill.days_until(today) == -2

        view = bill.view(today)
        assert view.is_overdue is True
        assert view.days_until_due == -2

    def test_reminder_days_bounds(self):
        with pytest.raises(ValidationError):
            self._bill(date(2024, 6, 20), reminder_days=31)


class TestUserModels:
    def test_password_minimum_length(self):
        with pytest.raises(ValidationError):
            UserCreate(email="a@example.com", password="123")

    def test_public_view_hides_hash(self):
        user = User(email="a@example.com", password_hash="secret-hash")
        public = UserPublic.from_user(user)
        assert "password_hash" not in public.model_dump()
        assert public.email == "a@example.com"


class TestPage:
    def test_pages(self):
        assert Page[int](items=[1, 2], total=25, page=1, limit=10).pages == 3
        assert Page[int](items=[], total=0, page=1, limit=10).pages == 0


class TestAuditModels:
    """Tests for audit event models."""

    def test_record_changed_event_type(self):
        entity_id, user_id = uuid4(), uuid4()
        event = AuditEventBuilder.record_changed("budget", "created", entity_id, user_id)
        assert event.event_type == AuditEventType.BUDGET_CREATED
        assert event.entity_id == entity_id
        assert event.severity == AuditSeverity.INFO

    def test_unknown_action_rejected(self):
        with pytest.raises(ValueError):
            AuditEventBuilder.record_changed("budget", "archived", uuid4(), uuid4())

    def test_error_events_are_errors(self):
        event = AuditEventBuilder.external_service_error("gemini", "timeout")
        assert event.severity == AuditSeverity.ERROR
        assert event.error_message == "timeout"

    def test_sheets_row(self):
        event = AuditEventBuilder.bill_paid(
            bill_id=uuid4(),
            user_id=uuid4(),
            amount="60",
            cycle_due_date="2024-06-20",
            next_due_date="2024-07-20",
        )
        row = event.to_sheets_row()
        assert len(row) == 10
        assert row[2] == "bill_paid"
        assert json.loads(row[8])["next_due_date"] == "2024-07-20"

    def test_log_dict_is_flat_strings(self):
        event = AuditEvent(event_type=AuditEventType.CHAT_ANSWERED, description="ok")
        log = event.to_log_dict()
        assert log["event_type"] == "chat_answered"
