"""
Boundary validation for transaction imports.

DESIGN DECISION: A bulk import is validated row by row in two stages:

STAGE 1 - SCHEMA VALIDATION:
- Types, required fields, enum membership, category-for-kind
- Done by parsing each row into `TransactionInput`

STAGE 2 - SEMANTIC VALIDATION:
- Date relationships inside the recurring schedule

A row that fails either stage is reported with its index and skipped;
the remaining rows are still imported. Validation never silently fixes
a row.
"""

from typing import Any, Optional

from pydantic import ValidationError

from finance_tracker.errors import ValidationFailedError
from finance_tracker.models.common import ValidationIssue
from finance_tracker.models.transaction import TransactionInput


MAX_BULK_ROWS = 500


def issues_from_validation_error(
    error: ValidationError,
    index: Optional[int] = None,
) -> list[ValidationIssue]:
    """Turn pydantic errors into field-level issues."""
    issues = []
    for detail in error.errors():
        location = [str(part) for part in detail.get("loc", ()) if part != "body"]
        issues.append(ValidationIssue(
            field=".".join(location) or "__root__",
            issue_type=detail.get("type", "invalid_value"),
            message=detail.get("msg", "Invalid value"),
            index=index,
        ))
    return issues


class BulkTransactionValidator:
    """Validates raw bulk-import rows into `TransactionInput` objects."""

    def __init__(self, max_rows: int = MAX_BULK_ROWS):
        self._max_rows = max_rows

    def _validate_schema(
        self,
        index: int,
        row: Any,
    ) -> tuple[Optional[TransactionInput], list[ValidationIssue]]:
        """Stage 1: parse the row."""
        if not isinstance(row, dict):
            return None, [ValidationIssue(
                field="__root__",
                issue_type="invalid_type",
                message="Each transaction must be a JSON object",
                index=index,
            )]
        try:
            return TransactionInput.model_validate(row), []
        except ValidationError as e:
            return None, issues_from_validation_error(e, index=index)

    def _validate_semantic(self, index: int, data: TransactionInput) -> list[ValidationIssue]:
        """Stage 2: cross-field checks pydantic cannot express per field."""
        issues = []
        if data.recurring is not None:
            if data.recurring.end_date and data.recurring.end_date < data.date:
                issues.append(ValidationIssue(
                    field="recurring.end_date",
                    issue_type="invalid_value",
                    message="Recurring end date cannot be before the transaction date",
                    index=index,
                ))
            if data.recurring.next_due and data.recurring.next_due < data.date:
                issues.append(ValidationIssue(
                    field="recurring.next_due",
                    issue_type="invalid_value",
                    message="Next due date cannot be before the transaction date",
                    index=index,
                ))
        return issues

    def validate(
        self,
        rows: list[Any],
    ) -> tuple[list[tuple[int, TransactionInput]], list[ValidationIssue]]:
        """
        Validate every row.

        Returns:
            ([(index, parsed_row), ...], issues)

        Raises:
            ValidationFailedError: If the batch is empty or too large
        """
        if not rows:
            raise ValidationFailedError("Provide at least one transaction to import")
        if len(rows) > self._max_rows:
            raise ValidationFailedError(
                f"A bulk import accepts at most {self._max_rows} transactions"
            )

        parsed = []
        issues: list[ValidationIssue] = []
        for index, row in enumerate(rows):
            data, schema_issues = self._validate_schema(index, row)
            if schema_issues:
                issues.extend(schema_issues)
                continue

            semantic_issues = self._validate_semantic(index, data)
            if semantic_issues:
                issues.extend(semantic_issues)
                continue

            parsed.append((index, data))

        return parsed, issues
