"""Boundary validation package."""

from finance_tracker.validation.validator import (
    MAX_BULK_ROWS,
    BulkTransactionValidator,
    issues_from_validation_error,
)

__all__ = [
    "MAX_BULK_ROWS",
    "BulkTransactionValidator",
    "issues_from_validation_error",
]
