"""
In-memory storage.

Used by the test-suite and as the default backend for local runs.
Records are copied on the way in and out so callers can never mutate
stored state without going through `replace`.
"""

from typing import Optional
from uuid import UUID

from finance_tracker.models.audit import AuditEvent
from finance_tracker.models.bill import Bill
from finance_tracker.models.budget import Budget
from finance_tracker.models.common import utc_now
from finance_tracker.models.goal import Goal
from finance_tracker.models.transaction import Transaction
from finance_tracker.models.user import User
from finance_tracker.services.storage.interface import (
    AuditStorageInterface,
    DuplicateError,
    NotFoundError,
    Predicate,
    RecordStorageInterface,
    RecordT,
    SortKey,
    StorageBackend,
    UserStorageInterface,
)


class InMemoryRecordStorage(RecordStorageInterface[RecordT]):
    """Dict-backed record storage keyed by record id."""

    def __init__(self):
        self._records: dict[UUID, RecordT] = {}

    async def insert(self, record: RecordT) -> RecordT:
        if record.id in self._records:
            raise DuplicateError(f"Record already exists: {record.id}")
        self._records[record.id] = record.model_copy(deep=True)
        return record.model_copy(deep=True)

    async def get(self, user_id: UUID, record_id: UUID) -> Optional[RecordT]:
        record = self._records.get(record_id)
        if record is None or record.user_id != user_id:
            return None
        return record.model_copy(deep=True)

    async def replace(self, record: RecordT) -> RecordT:
        existing = self._records.get(record.id)
        if existing is None or existing.user_id != record.user_id:
            raise NotFoundError(f"Record not found: {record.id}")
        stored = record.model_copy(update={"updated_at": utc_now()}, deep=True)
        self._records[record.id] = stored
        return stored.model_copy(deep=True)

    async def delete(self, user_id: UUID, record_id: UUID) -> bool:
        record = self._records.get(record_id)
        if record is None or record.user_id != user_id:
            return False
        del self._records[record_id]
        return True

    async def find(
        self,
        user_id: UUID,
        where: Optional[Predicate] = None,
        order_by: Optional[SortKey] = None,
        descending: bool = False,
        offset: int = 0,
        limit: Optional[int] = None,
    ) -> list[RecordT]:
        records = [
            r for r in self._records.values()
            if r.user_id == user_id and (where is None or where(r))
        ]
        if order_by is not None:
            records.sort(key=order_by, reverse=descending)
        elif descending:
            records.reverse()

        end = None if limit is None else offset + limit
        return [r.model_copy(deep=True) for r in records[offset:end]]


class InMemoryUserStorage(UserStorageInterface):
    def __init__(self):
        self._users: dict[UUID, User] = {}

    async def save(self, user: User) -> User:
        for existing in self._users.values():
            if existing.id != user.id and existing.email.lower() == user.email.lower():
                raise DuplicateError(f"Email already registered: {user.email}")
        self._users[user.id] = user.model_copy(deep=True)
        return user

    async def get_by_id(self, user_id: UUID) -> Optional[User]:
        user = self._users.get(user_id)
        return user.model_copy(deep=True) if user else None

    async def get_by_email(self, email: str) -> Optional[User]:
        for user in self._users.values():
            if user.email.lower() == email.lower():
                return user.model_copy(deep=True)
        return None


class InMemoryAuditStorage(AuditStorageInterface):
    def __init__(self):
        self._events: list[AuditEvent] = []

    async def append_event(self, event: AuditEvent) -> bool:
        self._events.append(event)
        return True

    async def get_events_by_entity(
        self,
        entity_type: str,
        entity_id: UUID,
    ) -> list[AuditEvent]:
        events = [
            e for e in self._events
            if e.entity_type == entity_type and e.entity_id == entity_id
        ]
        return sorted(events, key=lambda e: e.timestamp)

    async def get_recent_events(
        self,
        user_id: Optional[UUID] = None,
        limit: int = 100,
    ) -> list[AuditEvent]:
        events = [e for e in self._events if user_id is None or e.user_id == user_id]
        events.sort(key=lambda e: e.timestamp, reverse=True)
        return events[:limit]


def create_memory_backend() -> StorageBackend:
    """A fresh, empty in-memory backend."""
    return StorageBackend(
        transactions=InMemoryRecordStorage[Transaction](),
        budgets=InMemoryRecordStorage[Budget](),
        goals=InMemoryRecordStorage[Goal](),
        bills=InMemoryRecordStorage[Bill](),
        users=InMemoryUserStorage(),
        audit=InMemoryAuditStorage(),
    )
