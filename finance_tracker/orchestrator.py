"""
Main Orchestrator for the finance tracker

Builds the component graph once per process:

    storage backend -> audit logger -> ledger -> trackers
                                    -> aggregator -> assistant
                                    -> identity

DESIGN DECISION: Collaborators are picked from settings here and only
here (`storage_backend`, `assistant_mode`). Everything downstream takes
its dependencies through the constructor, so tests build the same graph
on in-memory storage with a fixed clock.
"""

from datetime import date
from typing import Callable, Optional

import structlog

from finance_tracker.agents import Assistant, GeminiAssistant, RuleBasedAssistant
from finance_tracker.analytics import FinancialAggregator
from finance_tracker.audit import AuditLogger
from finance_tracker.config import Settings, get_settings
from finance_tracker.identity import IdentityService
from finance_tracker.services.storage import (
    StorageBackend,
    create_google_sheets_backend,
    create_memory_backend,
)
from finance_tracker.trackers import BillTracker, BudgetTracker, GoalTracker, TransactionLedger


logger = structlog.get_logger()


class AppComponents:
    """Everything a request handler needs, wired together."""

    def __init__(
        self,
        backend: StorageBackend,
        settings: Settings,
        today: Callable[[], date] = date.today,
        assistant: Optional[Assistant] = None,
    ):
        self.backend = backend
        self.settings = settings
        self.audit_logger = AuditLogger(backend.audit)

        self.ledger = TransactionLedger(
            backend.transactions, backend.goals, self.audit_logger, today=today
        )
        self.budgets = BudgetTracker(backend.budgets, self.ledger, self.audit_logger, today=today)
        self.goals = GoalTracker(backend.goals, self.ledger, self.audit_logger, today=today)
        self.bills = BillTracker(backend.bills, self.audit_logger, today=today)
        self.analytics = FinancialAggregator(
            self.ledger, self.budgets, self.goals, self.bills,
            settings=settings.app, today=today,
        )
        self.identity = IdentityService(backend.users, settings.auth, self.audit_logger)
        self.assistant = assistant or self._create_assistant(today)

    def _create_assistant(self, today: Callable[[], date]) -> Assistant:
        collaborators = (self.ledger, self.budgets, self.goals, self.bills, self.audit_logger)
        if self.settings.app.assistant_mode == "gemini":
            return GeminiAssistant(*collaborators, today=today, settings=self.settings.gemini)
        return RuleBasedAssistant(*collaborators, today=today)


def create_backend(settings: Settings) -> StorageBackend:
    if settings.app.storage_backend == "google_sheets":
        logger.info("storage_backend_selected", backend="google_sheets")
        return create_google_sheets_backend()
    logger.info("storage_backend_selected", backend="memory")
    return create_memory_backend()


def create_app_components(
    backend: Optional[StorageBackend] = None,
    settings: Optional[Settings] = None,
    today: Callable[[], date] = date.today,
    assistant: Optional[Assistant] = None,
) -> AppComponents:
    """
    Factory function to create all application components.

    Args:
        backend: Storage to use. Defaults to the configured backend.
        settings: Defaults to the cached process settings.
        today: Clock used for due dates, budget periods and windows.
        assistant: Overrides the configured assistant.
    """
    settings = settings or get_settings()
    backend = backend or create_backend(settings)
    return AppComponents(backend, settings, today=today, assistant=assistant)
