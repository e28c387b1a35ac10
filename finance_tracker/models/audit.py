"""
Audit Models for Finance Tracker

Every mutation of a user's books is recorded as an audit event.
This provides:
1. Traceability of every change to money-bearing records
2. Debugging information when an upstream collaborator fails
3. A history the user can inspect

DESIGN DECISION: Audit logs are append-only. We never delete or modify them.
"""

import json
from datetime import datetime
from enum import Enum
from typing import Any, Optional
from uuid import UUID, uuid4

from pydantic import BaseModel, Field

from finance_tracker.models.common import utc_now


class AuditEventType(str, Enum):
    """Types of events we audit."""
    # Identity
    USER_REGISTERED = "user_registered"
    USER_LOGGED_IN = "user_logged_in"

    # Ledger
    TRANSACTION_CREATED = "transaction_created"
    TRANSACTION_UPDATED = "transaction_updated"
    TRANSACTION_DELETED = "transaction_deleted"
    TRANSACTIONS_IMPORTED = "transactions_imported"

    # Budgets
    BUDGET_CREATED = "budget_created"
    BUDGET_UPDATED = "budget_updated"
    BUDGET_DELETED = "budget_deleted"

    # Goals
    GOAL_CREATED = "goal_created"
    GOAL_UPDATED = "goal_updated"
    GOAL_DELETED = "goal_deleted"
    GOAL_CONTRIBUTION_ADDED = "goal_contribution_added"

    # Bills
    BILL_CREATED = "bill_created"
    BILL_UPDATED = "bill_updated"
    BILL_DELETED = "bill_deleted"
    BILL_PAID = "bill_paid"
    BILL_STATUS_CHANGED = "bill_status_changed"

    # Assistant
    CHAT_ANSWERED = "chat_answered"

    # System events
    SYSTEM_ERROR = "system_error"
    EXTERNAL_SERVICE_ERROR = "external_service_error"


class AuditSeverity(str, Enum):
    """Severity level for audit events."""
    DEBUG = "debug"
    INFO = "info"
    WARNING = "warning"
    ERROR = "error"
    CRITICAL = "critical"


class AuditEvent(BaseModel):
    """
    A single audit event.

    Every create/update/delete and every explicit state change produces one.
    """

    event_id: UUID = Field(default_factory=uuid4)
    timestamp: datetime = Field(
        default_factory=utc_now,
        description="When the event occurred (UTC)"
    )

    event_type: AuditEventType
    severity: AuditSeverity = AuditSeverity.INFO

    # Who and what
    user_id: Optional[UUID] = None
    entity_type: Optional[str] = Field(
        default=None,
        description="Type of entity (e.g., 'transaction', 'budget', 'bill')"
    )
    entity_id: Optional[UUID] = None

    description: str = Field(..., max_length=500)
    details: dict[str, Any] = Field(default_factory=dict)

    error_message: Optional[str] = None

    def to_log_dict(self) -> dict:
        """Flatten into keyword arguments for structlog."""
        return {
            "event_id": str(self.event_id),
            "timestamp": self.timestamp.isoformat(),
            "event_type": self.event_type.value,
            "severity": self.severity.value,
            "user_id": str(self.user_id) if self.user_id else None,
            "entity_type": self.entity_type,
            "entity_id": str(self.entity_id) if self.entity_id else None,
            "description": self.description,
            "details": self.details,
            "error_message": self.error_message,
        }

    def to_sheets_row(self) -> list:
        """
        Convert to a row for Google Sheets storage.

        Columns: [event_id, timestamp, event_type, severity, user_id,
        entity_type, entity_id, description, details_json, error_message]
        """
        return [
            str(self.event_id),
            self.timestamp.isoformat(),
            self.event_type.value,
            self.severity.value,
            str(self.user_id) if self.user_id else "",
            self.entity_type or "",
            str(self.entity_id) if self.entity_id else "",
            self.description,
            json.dumps(self.details, default=str) if self.details else "",
            self.error_message or "",
        ]


class AuditEventBuilder:
    """
    Helper class to build audit events with common patterns.

    Usage:
        event = AuditEventBuilder.record_changed("budget", "created", budget.id, user_id)
        event = AuditEventBuilder.bill_paid(bill.id, user_id, amount, cycle_due_date)
    """

    @staticmethod
    def record_changed(
        entity_type: str,
        action: str,
        entity_id: UUID,
        user_id: UUID,
        details: Optional[dict] = None,
    ) -> AuditEvent:
        event_type = AuditEventType(f"{entity_type}_{action}")
        return AuditEvent(
            event_type=event_type,
            user_id=user_id,
            entity_type=entity_type,
            entity_id=entity_id,
            description=f"{entity_type.capitalize()} {action}",
            details=details or {},
        )

    @staticmethod
    def user_registered(user_id: UUID, email: str) -> AuditEvent:
        return AuditEvent(
            event_type=AuditEventType.USER_REGISTERED,
            user_id=user_id,
            entity_type="user",
            entity_id=user_id,
            description=f"Account registered: {email}",
        )

    @staticmethod
    def user_logged_in(user_id: UUID) -> AuditEvent:
        return AuditEvent(
            event_type=AuditEventType.USER_LOGGED_IN,
            user_id=user_id,
            entity_type="user",
            entity_id=user_id,
            description="User logged in",
        )

    @staticmethod
    def transactions_imported(
        user_id: UUID,
        created: int,
        failed: int,
    ) -> AuditEvent:
        return AuditEvent(
            event_type=AuditEventType.TRANSACTIONS_IMPORTED,
            severity=AuditSeverity.WARNING if failed else AuditSeverity.INFO,
            user_id=user_id,
            entity_type="transaction",
            description=f"Bulk import: {created} created, {failed} rejected",
            details={"created": created, "failed": failed},
        )

    @staticmethod
    def goal_contribution(
        goal_id: UUID,
        user_id: UUID,
        amount: str,
        new_total: str,
    ) -> AuditEvent:
        return AuditEvent(
            event_type=AuditEventType.GOAL_CONTRIBUTION_ADDED,
            user_id=user_id,
            entity_type="goal",
            entity_id=goal_id,
            description=f"Contribution of {amount} added to goal",
            details={"amount": amount, "current_amount": new_total},
        )

    @staticmethod
    def bill_paid(
        bill_id: UUID,
        user_id: UUID,
        amount: str,
        cycle_due_date: str,
        next_due_date: str,
    ) -> AuditEvent:
        return AuditEvent(
            event_type=AuditEventType.BILL_PAID,
            user_id=user_id,
            entity_type="bill",
            entity_id=bill_id,
            description=f"Bill paid: {amount} for cycle due {cycle_due_date}",
            details={
                "amount": amount,
                "cycle_due_date": cycle_due_date,
                "next_due_date": next_due_date,
            },
        )

    @staticmethod
    def bill_status_changed(
        bill_id: UUID,
        user_id: UUID,
        old_status: str,
        new_status: str,
    ) -> AuditEvent:
        return AuditEvent(
            event_type=AuditEventType.BILL_STATUS_CHANGED,
            user_id=user_id,
            entity_type="bill",
            entity_id=bill_id,
            description=f"Bill status changed: {old_status} -> {new_status}",
            details={"from": old_status, "to": new_status},
        )

    @staticmethod
    def chat_answered(user_id: UUID, intent: str, assistant: str) -> AuditEvent:
        return AuditEvent(
            event_type=AuditEventType.CHAT_ANSWERED,
            user_id=user_id,
            entity_type="chat",
            description=f"Assistant answered with intent {intent}",
            details={"intent": intent, "assistant": assistant},
        )

    @staticmethod
    def system_error(
        error_type: str,
        error_message: str,
        details: Optional[dict] = None,
        user_id: Optional[UUID] = None,
    ) -> AuditEvent:
        return AuditEvent(
            event_type=AuditEventType.SYSTEM_ERROR,
            severity=AuditSeverity.ERROR,
            user_id=user_id,
            description=f"System error: {error_type}",
            error_message=error_message,
            details=details or {},
        )

    @staticmethod
    def external_service_error(
        service: str,
        error_message: str,
        user_id: Optional[UUID] = None,
    ) -> AuditEvent:
        return AuditEvent(
            event_type=AuditEventType.EXTERNAL_SERVICE_ERROR,
            severity=AuditSeverity.ERROR,
            user_id=user_id,
            description=f"External service error: {service}",
            error_message=error_message,
            details={"service": service},
        )
