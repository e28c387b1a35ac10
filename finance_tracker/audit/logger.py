"""
Audit Logger

DESIGN DECISION: Every mutation of a user's books is logged.
The audit logger:
- Always writes a structured local log line
- Persists the event to audit storage when one is configured
- Never fails the caller's request because audit persistence failed
"""

from typing import Optional
from uuid import UUID

import structlog

from finance_tracker.models.audit import AuditEvent, AuditEventBuilder
from finance_tracker.services.storage import AuditStorageInterface


# Configure structlog for local logging
structlog.configure(
    processors=[
        structlog.stdlib.filter_by_level,
        structlog.stdlib.add_logger_name,
        structlog.stdlib.add_log_level,
        structlog.stdlib.PositionalArgumentsFormatter(),
        structlog.processors.TimeStamper(fmt="iso"),
        structlog.processors.StackInfoRenderer(),
        structlog.processors.format_exc_info,
        structlog.processors.UnicodeDecoder(),
        structlog.processors.JSONRenderer()
    ],
    wrapper_class=structlog.stdlib.BoundLogger,
    context_class=dict,
    logger_factory=structlog.stdlib.LoggerFactory(),
    cache_logger_on_first_use=True,
)


class AuditLogger:
    """
    Central audit logging service.

    Logs events both to:
    1. Structured local log (for debugging)
    2. Audit storage (for persistence and user visibility)
    """

    def __init__(
        self,
        storage: Optional[AuditStorageInterface] = None,
    ):
        """
        Initialize audit logger.

        Args:
            storage: Storage backend for persistence.
                    If None, only logs locally.
        """
        self._storage = storage
        self._logger = structlog.get_logger()

    async def log(self, event: AuditEvent) -> bool:
        """
        Log an audit event.

        Returns True if the storage write succeeded (or no storage is configured).
        """
        log_dict = event.to_log_dict()

        if event.severity.value in ("error", "critical"):
            self._logger.error("audit_event", **log_dict)
        elif event.severity.value == "warning":
            self._logger.warning("audit_event", **log_dict)
        else:
            self._logger.info("audit_event", **log_dict)

        if self._storage:
            try:
                return await self._storage.append_event(event)
            except Exception as e:
                self._logger.error(
                    "audit_storage_failed",
                    error=str(e),
                    event_id=str(event.event_id),
                )
                return False

        return True

    async def log_record_changed(
        self,
        entity_type: str,
        action: str,
        entity_id: UUID,
        user_id: UUID,
        details: Optional[dict] = None,
    ) -> None:
        """Log create/update/delete of a transaction, budget, goal or bill."""
        await self.log(AuditEventBuilder.record_changed(
            entity_type=entity_type,
            action=action,
            entity_id=entity_id,
            user_id=user_id,
            details=details,
        ))

    async def log_user_registered(self, user_id: UUID, email: str) -> None:
        await self.log(AuditEventBuilder.user_registered(user_id=user_id, email=email))

    async def log_user_logged_in(self, user_id: UUID) -> None:
        await self.log(AuditEventBuilder.user_logged_in(user_id=user_id))

    async def log_transactions_imported(
        self,
        user_id: UUID,
        created: int,
        failed: int,
    ) -> None:
        await self.log(AuditEventBuilder.transactions_imported(
            user_id=user_id,
            created=created,
            failed=failed,
        ))

    async def log_goal_contribution(
        self,
        goal_id: UUID,
        user_id: UUID,
        amount: str,
        new_total: str,
    ) -> None:
        await self.log(AuditEventBuilder.goal_contribution(
            goal_id=goal_id,
            user_id=user_id,
            amount=amount,
            new_total=new_total,
        ))

    async def log_bill_paid(
        self,
        bill_id: UUID,
        user_id: UUID,
        amount: str,
        cycle_due_date: str,
        next_due_date: str,
    ) -> None:
        await self.log(AuditEventBuilder.bill_paid(
            bill_id=bill_id,
            user_id=user_id,
            amount=amount,
            cycle_due_date=cycle_due_date,
            next_due_date=next_due_date,
        ))

    async def log_bill_status_changed(
        self,
        bill_id: UUID,
        user_id: UUID,
        old_status: str,
        new_status: str,
    ) -> None:
        await self.log(AuditEventBuilder.bill_status_changed(
            bill_id=bill_id,
            user_id=user_id,
            old_status=old_status,
            new_status=new_status,
        ))

    async def log_chat_answered(self, user_id: UUID, intent: str, assistant: str) -> None:
        await self.log(AuditEventBuilder.chat_answered(
            user_id=user_id,
            intent=intent,
            assistant=assistant,
        ))

    async def log_error(
        self,
        error_type: str,
        error_message: str,
        details: Optional[dict] = None,
        user_id: Optional[UUID] = None,
    ) -> None:
        """Log an error."""
        await self.log(AuditEventBuilder.system_error(
            error_type=error_type,
            error_message=error_message,
            details=details,
            user_id=user_id,
        ))

    async def log_external_service_error(
        self,
        service: str,
        error_message: str,
        user_id: Optional[UUID] = None,
    ) -> None:
        """Log external service error."""
        await self.log(AuditEventBuilder.external_service_error(
            service=service,
            error_message=error_message,
            user_id=user_id,
        ))
