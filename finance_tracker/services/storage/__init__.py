"""
Storage Services Package

Provides the storage port and its adapters: in-memory for tests and
local runs, Google Sheets for hosted deployments.
"""

from finance_tracker.services.storage.interface import (
    AuditStorageInterface,
    DuplicateError,
    NotFoundError,
    RecordStorageInterface,
    StorageBackend,
    StorageConnectionError,
    StorageError,
    UserStorageInterface,
)
from finance_tracker.services.storage.memory import (
    InMemoryAuditStorage,
    InMemoryRecordStorage,
    InMemoryUserStorage,
    create_memory_backend,
)
from finance_tracker.services.storage.google_sheets import (
    GoogleSheetsAuditStorage,
    GoogleSheetsClient,
    GoogleSheetsRecordStorage,
    GoogleSheetsUserStorage,
    create_google_sheets_backend,
)

__all__ = [
    # Interfaces
    "AuditStorageInterface",
    "RecordStorageInterface",
    "StorageBackend",
    "UserStorageInterface",
    # Exceptions
    "DuplicateError",
    "NotFoundError",
    "StorageConnectionError",
    "StorageError",
    # In-memory implementation
    "InMemoryAuditStorage",
    "InMemoryRecordStorage",
    "InMemoryUserStorage",
    "create_memory_backend",
    # Google Sheets implementation
    "GoogleSheetsAuditStorage",
    "GoogleSheetsClient",
    "GoogleSheetsRecordStorage",
    "GoogleSheetsUserStorage",
    "create_google_sheets_backend",
]
