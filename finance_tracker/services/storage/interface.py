"""
Abstract Storage Interface

DESIGN DECISION: Trackers and the aggregator only talk to these
interfaces. This allows us to:
1. Run on Google Sheets today and a real database later
2. Use in-memory storage for testing
3. Keep business logic decoupled from storage implementation

One generic record interface serves all four collections. Every call is
scoped by `user_id`; a record owned by another user is indistinguishable
from a missing one. Filters are Python predicates, evaluated by the
adapter, which keeps the interface small while still supporting
equality, range and membership filters.
"""

from abc import ABC, abstractmethod
from decimal import Decimal
from typing import Any, Callable, Generic, Hashable, Optional, TypeVar
from uuid import UUID

from finance_tracker.models.audit import AuditEvent
from finance_tracker.models.common import GroupTotal, OwnedRecord
from finance_tracker.models.user import User


RecordT = TypeVar("RecordT", bound=OwnedRecord)

Predicate = Callable[[Any], bool]
SortKey = Callable[[Any], Any]


class RecordStorageInterface(ABC, Generic[RecordT]):
    """
    User-scoped CRUD plus aggregate queries over one collection.

    Any storage implementation (Google Sheets, PostgreSQL, etc.)
    must implement the abstract methods.
    """

    @abstractmethod
    async def insert(self, record: RecordT) -> RecordT:
        """
        Persist a new record.

        Raises:
            DuplicateError: If a record with the same id exists
            StorageError: If the write fails
        """
        pass

    @abstractmethod
    async def get(self, user_id: UUID, record_id: UUID) -> Optional[RecordT]:
        """
        Retrieve one record.

        Returns:
            The record if it exists and belongs to `user_id`, None otherwise
        """
        pass

    @abstractmethod
    async def replace(self, record: RecordT) -> RecordT:
        """
        Overwrite an existing record and bump its `updated_at`.

        Raises:
            NotFoundError: If the record doesn't exist for its owner
            StorageError: If the write fails
        """
        pass

    @abstractmethod
    async def delete(self, user_id: UUID, record_id: UUID) -> bool:
        """
        Delete one record.

        Returns:
            True if a record was deleted
        """
        pass

    @abstractmethod
    async def find(
        self,
        user_id: UUID,
        where: Optional[Predicate] = None,
        order_by: Optional[SortKey] = None,
        descending: bool = False,
        offset: int = 0,
        limit: Optional[int] = None,
    ) -> list[RecordT]:
        """
        List a user's records.

        Args:
            user_id: Owner to scope by
            where: Predicate a record must satisfy
            order_by: Sort key; insertion order when omitted
            descending: Reverse the sort
            offset: Number of results to skip
            limit: Maximum number of results (None = all)

        Returns:
            List of matching records
        """
        pass

    async def count(self, user_id: UUID, where: Optional[Predicate] = None) -> int:
        """Number of a user's records matching `where`."""
        return len(await self.find(user_id, where=where))

    async def group_sum(
        self,
        user_id: UUID,
        key: Callable[[RecordT], Hashable],
        value: Callable[[RecordT], Decimal],
        where: Optional[Predicate] = None,
    ) -> dict[Hashable, GroupTotal]:
        """
        Sum `value` per `key` over matching records.

        Returns:
            {group_key: GroupTotal(total, count)} in first-seen order
        """
        groups: dict[Hashable, GroupTotal] = {}
        for record in await self.find(user_id, where=where):
            group = groups.setdefault(key(record), GroupTotal())
            group.total += value(record)
            group.count += 1
        return groups


class UserStorageInterface(ABC):
    """Account storage for the identity layer."""

    @abstractmethod
    async def save(self, user: User) -> User:
        """
        Insert or overwrite an account.

        Raises:
            DuplicateError: If another account has the same email
        """
        pass

    @abstractmethod
    async def get_by_id(self, user_id: UUID) -> Optional[User]:
        pass

    @abstractmethod
    async def get_by_email(self, email: str) -> Optional[User]:
        """Case-insensitive lookup."""
        pass


class AuditStorageInterface(ABC):
    """
    Abstract interface for audit log storage.

    Audit logs are append-only - we never delete or modify them.
    """

    @abstractmethod
    async def append_event(self, event: AuditEvent) -> bool:
        """
        Append an audit event to the log.

        Returns:
            True if logged successfully
        """
        pass

    @abstractmethod
    async def get_events_by_entity(
        self,
        entity_type: str,
        entity_id: UUID,
    ) -> list[AuditEvent]:
        """
        Get all events for a specific entity.

        Returns:
            List of events in chronological order
        """
        pass

    @abstractmethod
    async def get_recent_events(
        self,
        user_id: Optional[UUID] = None,
        limit: int = 100,
    ) -> list[AuditEvent]:
        """
        Get the most recent audit events, optionally for one user.

        Returns:
            List of recent events (newest first)
        """
        pass


class StorageBackend:
    """The set of collections one deployment talks to."""

    def __init__(
        self,
        transactions: RecordStorageInterface,
        budgets: RecordStorageInterface,
        goals: RecordStorageInterface,
        bills: RecordStorageInterface,
        users: UserStorageInterface,
        audit: Optional[AuditStorageInterface] = None,
    ):
        self.transactions = transactions
        self.budgets = budgets
        self.goals = goals
        self.bills = bills
        self.users = users
        self.audit = audit


class StorageError(Exception):
    """Base exception for storage operations."""
    pass


class NotFoundError(StorageError):
    """Entity not found in storage."""
    pass


class DuplicateError(StorageError):
    """Attempted to insert a duplicate entity."""
    pass


class StorageConnectionError(StorageError):
    """Could not connect to storage backend."""
    pass
