"""
Shared model building blocks.

Every stored entity is owned by exactly one user and carries the same
identity and timestamp fields. Trackers never see loosely typed dicts:
request bodies are parsed into the per-operation input models defined
next to each entity, and entities are built from those.
"""

from datetime import date, datetime, timezone
from decimal import Decimal
from typing import Generic, Optional, TypeVar
from uuid import UUID, uuid4

from pydantic import BaseModel, Field, computed_field


# Identity fields kept as-is when a record is replaced from client input
RECORD_FIELDS = {"id", "user_id", "created_at", "updated_at"}


def utc_now() -> datetime:
    """Timezone-aware current UTC time."""
    return datetime.now(timezone.utc)


def first_day_of_month(day: date) -> date:
    return day.replace(day=1)


class OwnedRecord(BaseModel):
    """Identity and ownership fields shared by all stored entities."""

    id: UUID = Field(
        default_factory=uuid4,
        description="Unique record ID"
    )
    user_id: UUID = Field(
        ...,
        description="Owner of this record"
    )
    created_at: datetime = Field(default_factory=utc_now)
    updated_at: datetime = Field(default_factory=utc_now)


class ValidationIssue(BaseModel):
    """A single validation issue found at the boundary."""

    field: str = Field(
        ...,
        description="Field with the issue"
    )
    issue_type: str = Field(
        ...,
        description="Type of issue (e.g., 'missing', 'invalid_value', 'not_found')"
    )
    message: str = Field(
        ...,
        description="Human-readable description of the issue"
    )
    severity: str = Field(
        default="error",
        pattern="^(error|warning|info)$",
        description="Issue severity"
    )
    index: Optional[int] = Field(
        default=None,
        description="Row index for bulk operations"
    )


class GroupTotal(BaseModel):
    """Running sum and count for one group of an aggregate query."""

    total: Decimal = Decimal("0")
    count: int = 0


T = TypeVar("T")


class Page(BaseModel, Generic[T]):
    """One page of a listing endpoint."""

    items: list[T]
    total: int = Field(ge=0)
    page: int = Field(ge=1)
    limit: int = Field(ge=1)

    @computed_field
    @property
    def pages(self) -> int:
        return (self.total + self.limit - 1) // self.limit if self.total else 0
