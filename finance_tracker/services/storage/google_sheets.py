"""
Google Sheets Storage Implementation

DESIGN DECISION: Google Sheets is the hosted storage backend because:
1. Users can view their books directly in Sheets
2. No database setup required
3. Built-in backup (Google's infrastructure)

TRADEOFFS:
- Not suitable for high-volume data (fine for personal bookkeeping)
- No transactions; last writer wins
- Limited query capabilities (we filter and aggregate in Python)

Each collection lives in its own worksheet. A row holds the indexed
columns (id, user_id, timestamps) followed by the full record as JSON,
so schema changes never require a sheet migration.
"""

import json
from datetime import datetime
from typing import Optional
from uuid import UUID

import gspread
import structlog
from google.oauth2.service_account import Credentials
from tenacity import retry, retry_if_not_exception_type, stop_after_attempt, wait_exponential

from finance_tracker.config import GoogleSheetsSettings, get_settings
from finance_tracker.models.audit import AuditEvent, AuditEventType, AuditSeverity
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
    StorageConnectionError,
    StorageError,
    UserStorageInterface,
)


logger = structlog.get_logger()

RECORD_COLUMNS = ["id", "user_id", "created_at", "updated_at", "payload_json"]

USER_COLUMNS = ["id", "email", "created_at", "payload_json"]

AUDIT_COLUMNS = [
    "event_id",
    "timestamp",
    "event_type",
    "severity",
    "user_id",
    "entity_type",
    "entity_id",
    "description",
    "details_json",
    "error_message",
]


def _safe_get(row: list, index: int, default: str = "") -> str:
    try:
        return row[index] if row[index] else default
    except IndexError:
        return default


class GoogleSheetsClient:
    """
    Low-level Google Sheets client wrapper.

    Handles authentication and provides retry logic for API calls.
    """

    def __init__(self, settings: Optional[GoogleSheetsSettings] = None):
        self._client: Optional[gspread.Client] = None
        self._spreadsheet: Optional[gspread.Spreadsheet] = None
        self._settings = settings or get_settings().google_sheets
        self._sheets: dict[str, gspread.Worksheet] = {}

    @property
    def settings(self) -> GoogleSheetsSettings:
        return self._settings

    @retry(
        stop=stop_after_attempt(3),
        wait=wait_exponential(multiplier=1, min=2, max=10),
        reraise=True,
    )
    def connect(self) -> gspread.Client:
        """Authenticate with the service account credentials."""
        if self._client is None:
            try:
                scopes = [
                    "https://www.googleapis.com/auth/spreadsheets",
                    "https://www.googleapis.com/auth/drive",
                ]
                credentials = Credentials.from_service_account_file(
                    self._settings.credentials_path,
                    scopes=scopes,
                )
                self._client = gspread.authorize(credentials)
            except FileNotFoundError as e:
                raise StorageConnectionError(
                    f"Google credentials file not found: {self._settings.credentials_path}"
                ) from e
            except Exception as e:
                raise StorageConnectionError(f"Failed to connect to Google Sheets: {e}") from e

        return self._client

    def get_spreadsheet(self) -> gspread.Spreadsheet:
        if self._spreadsheet is None:
            client = self.connect()
            try:
                self._spreadsheet = client.open_by_key(self._settings.spreadsheet_id)
            except gspread.SpreadsheetNotFound as e:
                raise StorageConnectionError(
                    f"Spreadsheet not found: {self._settings.spreadsheet_id}"
                ) from e
        return self._spreadsheet

    def get_sheet(self, title: str, columns: list[str], rows: int = 1000) -> gspread.Worksheet:
        """Get or create a worksheet with the given header row."""
        if title in self._sheets:
            return self._sheets[title]

        spreadsheet = self.get_spreadsheet()
        try:
            sheet = spreadsheet.worksheet(title)
        except gspread.WorksheetNotFound:
            sheet = spreadsheet.add_worksheet(title=title, rows=rows, cols=len(columns))
            sheet.append_row(columns)
        self._sheets[title] = sheet
        return sheet


class GoogleSheetsRecordStorage(RecordStorageInterface[RecordT]):
    """
    One collection stored in one worksheet.

    Reads load the whole sheet and filter in Python.
    """

    def __init__(
        self,
        model: type[RecordT],
        sheet_name: str,
        client: Optional[GoogleSheetsClient] = None,
    ):
        self._model = model
        self._sheet_name = sheet_name
        self._client = client or GoogleSheetsClient()

    def _sheet(self) -> gspread.Worksheet:
        return self._client.get_sheet(self._sheet_name, RECORD_COLUMNS)

    def _record_to_row(self, record: RecordT) -> list:
        return [
            str(record.id),
            str(record.user_id),
            record.created_at.isoformat(),
            record.updated_at.isoformat(),
            record.model_dump_json(),
        ]

    def _row_to_record(self, row: list) -> RecordT:
        return self._model.model_validate_json(_safe_get(row, 4))

    def _load_rows(self) -> list[tuple[int, list]]:
        """All data rows with their 1-based sheet row numbers."""
        all_rows = self._sheet().get_all_values()
        return [
            (idx, row)
            for idx, row in enumerate(all_rows[1:], start=2)
            if row and row[0]
        ]

    def _locate(self, user_id: UUID, record_id: UUID) -> Optional[tuple[int, list]]:
        for idx, row in self._load_rows():
            if row[0] == str(record_id) and _safe_get(row, 1) == str(user_id):
                return idx, row
        return None

    @retry(
        stop=stop_after_attempt(3),
        wait=wait_exponential(multiplier=1, min=2, max=10),
        retry=retry_if_not_exception_type(DuplicateError),
        reraise=True,
    )
    async def insert(self, record: RecordT) -> RecordT:
        try:
            if any(row[0] == str(record.id) for _, row in self._load_rows()):
                raise DuplicateError(f"Record already exists: {record.id}")
            self._sheet().append_row(self._record_to_row(record), value_input_option="RAW")
            return record
        except DuplicateError:
            raise
        except Exception as e:
            raise StorageError(f"Failed to save {self._sheet_name} record: {e}") from e

    async def get(self, user_id: UUID, record_id: UUID) -> Optional[RecordT]:
        try:
            located = self._locate(user_id, record_id)
            return self._row_to_record(located[1]) if located else None
        except Exception as e:
            raise StorageError(f"Failed to get {self._sheet_name} record: {e}") from e

    async def replace(self, record: RecordT) -> RecordT:
        try:
            located = self._locate(record.user_id, record.id)
            if located is None:
                raise NotFoundError(f"Record not found: {record.id}")
            record = record.model_copy(update={"updated_at": utc_now()})
            row_number = located[0]
            self._sheet().update(
                f"A{row_number}:E{row_number}",
                [self._record_to_row(record)],
                value_input_option="RAW",
            )
            return record
        except NotFoundError:
            raise
        except Exception as e:
            raise StorageError(f"Failed to update {self._sheet_name} record: {e}") from e

    async def delete(self, user_id: UUID, record_id: UUID) -> bool:
        try:
            located = self._locate(user_id, record_id)
            if located is None:
                return False
            self._sheet().delete_rows(located[0])
            return True
        except Exception as e:
            raise StorageError(f"Failed to delete {self._sheet_name} record: {e}") from e

    async def find(
        self,
        user_id: UUID,
        where: Optional[Predicate] = None,
        order_by: Optional[SortKey] = None,
        descending: bool = False,
        offset: int = 0,
        limit: Optional[int] = None,
    ) -> list[RecordT]:
        try:
            rows = self._load_rows()
        except Exception as e:
            raise StorageError(f"Failed to list {self._sheet_name} records: {e}") from e

        records = []
        for _, row in rows:
            if _safe_get(row, 1) != str(user_id):
                continue
            try:
                record = self._row_to_record(row)
            except ValueError:
                logger.warning(
                    "sheets_row_skipped",
                    sheet=self._sheet_name,
                    record_id=row[0],
                )
                continue
            if where is None or where(record):
                records.append(record)

        if order_by is not None:
            records.sort(key=order_by, reverse=descending)
        elif descending:
            records.reverse()

        end = None if limit is None else offset + limit
        return records[offset:end]


class GoogleSheetsUserStorage(UserStorageInterface):
    def __init__(self, client: Optional[GoogleSheetsClient] = None):
        self._client = client or GoogleSheetsClient()

    def _sheet(self) -> gspread.Worksheet:
        return self._client.get_sheet(self._client.settings.users_sheet_name, USER_COLUMNS)

    def _all_users(self) -> list[tuple[int, User]]:
        all_rows = self._sheet().get_all_values()
        return [
            (idx, User.model_validate_json(_safe_get(row, 3)))
            for idx, row in enumerate(all_rows[1:], start=2)
            if row and row[0]
        ]

    @retry(
        stop=stop_after_attempt(3),
        wait=wait_exponential(multiplier=1, min=2, max=10),
        retry=retry_if_not_exception_type(DuplicateError),
        reraise=True,
    )
    async def save(self, user: User) -> User:
        try:
            row = [str(user.id), user.email.lower(), user.created_at.isoformat(), user.model_dump_json()]
            sheet = self._sheet()
            for idx, existing in self._all_users():
                if existing.id == user.id:
                    sheet.update(f"A{idx}:D{idx}", [row], value_input_option="RAW")
                    return user
                if existing.email.lower() == user.email.lower():
                    raise DuplicateError(f"Email already registered: {user.email}")
            sheet.append_row(row, value_input_option="RAW")
            return user
        except DuplicateError:
            raise
        except Exception as e:
            raise StorageError(f"Failed to save user: {e}") from e

    async def get_by_id(self, user_id: UUID) -> Optional[User]:
        try:
            return next((u for _, u in self._all_users() if u.id == user_id), None)
        except Exception as e:
            raise StorageError(f"Failed to get user: {e}") from e

    async def get_by_email(self, email: str) -> Optional[User]:
        try:
            return next(
                (u for _, u in self._all_users() if u.email.lower() == email.lower()),
                None,
            )
        except Exception as e:
            raise StorageError(f"Failed to get user: {e}") from e


class GoogleSheetsAuditStorage(AuditStorageInterface):
    """
    Google Sheets implementation of audit log storage.

    Audit events are append-only.
    """

    def __init__(self, client: Optional[GoogleSheetsClient] = None):
        self._client = client or GoogleSheetsClient()

    def _sheet(self) -> gspread.Worksheet:
        return self._client.get_sheet(
            self._client.settings.audit_sheet_name,
            AUDIT_COLUMNS,
            rows=5000,
        )

    def _row_to_event(self, row: list) -> AuditEvent:
        return AuditEvent(
            event_id=UUID(_safe_get(row, 0)),
            timestamp=datetime.fromisoformat(_safe_get(row, 1)),
            event_type=AuditEventType(_safe_get(row, 2)),
            severity=AuditSeverity(_safe_get(row, 3)),
            user_id=UUID(_safe_get(row, 4)) if _safe_get(row, 4) else None,
            entity_type=_safe_get(row, 5) or None,
            entity_id=UUID(_safe_get(row, 6)) if _safe_get(row, 6) else None,
            description=_safe_get(row, 7),
            details=json.loads(_safe_get(row, 8)) if _safe_get(row, 8) else {},
            error_message=_safe_get(row, 9) or None,
        )

    def _all_events(self) -> list[AuditEvent]:
        events = []
        for row in self._sheet().get_all_values()[1:]:
            if not row or not row[0]:
                continue
            try:
                events.append(self._row_to_event(row))
            except ValueError:
                continue
        return events

    @retry(
        stop=stop_after_attempt(3),
        wait=wait_exponential(multiplier=1, min=2, max=10),
        reraise=True,
    )
    async def append_event(self, event: AuditEvent) -> bool:
        try:
            self._sheet().append_row(event.to_sheets_row(), value_input_option="RAW")
            return True
        except Exception as e:
            raise StorageError(f"Failed to write audit event: {e}") from e

    async def get_events_by_entity(
        self,
        entity_type: str,
        entity_id: UUID,
    ) -> list[AuditEvent]:
        try:
            events = [
                e for e in self._all_events()
                if e.entity_type == entity_type and e.entity_id == entity_id
            ]
        except Exception as e:
            raise StorageError(f"Failed to get audit events: {e}") from e
        events.sort(key=lambda e: e.timestamp)
        return events

    async def get_recent_events(
        self,
        user_id: Optional[UUID] = None,
        limit: int = 100,
    ) -> list[AuditEvent]:
        try:
            events = [
                e for e in self._all_events()
                if user_id is None or e.user_id == user_id
            ]
        except Exception as e:
            raise StorageError(f"Failed to get audit events: {e}") from e
        events.sort(key=lambda e: e.timestamp, reverse=True)
        return events[:limit]


def create_google_sheets_backend(client: Optional[GoogleSheetsClient] = None) -> StorageBackend:
    """Wire every collection to its worksheet in the configured spreadsheet."""
    client = client or GoogleSheetsClient()
    settings = client.settings
    return StorageBackend(
        transactions=GoogleSheetsRecordStorage(Transaction, settings.transactions_sheet_name, client),
        budgets=GoogleSheetsRecordStorage(Budget, settings.budgets_sheet_name, client),
        goals=GoogleSheetsRecordStorage(Goal, settings.goals_sheet_name, client),
        bills=GoogleSheetsRecordStorage(Bill, settings.bills_sheet_name, client),
        users=GoogleSheetsUserStorage(client),
        audit=GoogleSheetsAuditStorage(client),
    )
