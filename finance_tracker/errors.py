"""
Domain errors surfaced to callers.

Each error carries a stable `error_code` and the HTTP status the API
layer maps it to. Storage failures live with the storage interface and
are reported as upstream failures.
"""

from typing import Optional
from uuid import UUID

from finance_tracker.models.common import ValidationIssue


class FinanceTrackerError(Exception):
    """Base exception for failures reported to the caller."""

    error_code = "INTERNAL_ERROR"
    status_code = 500

    def __init__(self, message: str):
        super().__init__(message)
        self.message = message


class ValidationFailedError(FinanceTrackerError):
    """Malformed or missing fields. Carries field-level issues."""

    error_code = "VALIDATION_FAILED"
    status_code = 400

    def __init__(self, message: str, issues: Optional[list[ValidationIssue]] = None):
        super().__init__(message)
        self.issues = issues or []


class EntityNotFoundError(FinanceTrackerError):
    """
    Entity absent or owned by someone else.

    Both cases raise this same error so callers cannot probe for
    other users' ids.
    """

    status_code = 404

    def __init__(self, entity: str, entity_id: Optional[UUID] = None):
        super().__init__(f"{entity.capitalize()} not found")
        self.entity = entity
        self.entity_id = entity_id

    @property
    def error_code(self) -> str:
        return f"{self.entity.upper()}_NOT_FOUND"


class DuplicateBudgetError(FinanceTrackerError):
    """A budget already exists for (category, period, start_date)."""

    error_code = "DUPLICATE_BUDGET"
    status_code = 409


class InvalidAmountError(FinanceTrackerError):
    """A monetary value that must be positive was not."""

    error_code = "INVALID_AMOUNT"
    status_code = 400


class BillStateError(FinanceTrackerError):
    """The requested action is not allowed in the bill's current status."""

    error_code = "INVALID_BILL_STATE"
    status_code = 409


class UnauthorizedError(FinanceTrackerError):
    error_code = "UNAUTHORIZED"
    status_code = 401


class EmailAlreadyRegisteredError(FinanceTrackerError):
    error_code = "EMAIL_REGISTERED"
    status_code = 400


class UpstreamFailureError(FinanceTrackerError):
    """Record store or external text generation failed."""

    error_code = "UPSTREAM_FAILURE"
    status_code = 502
