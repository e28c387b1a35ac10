"""
Tests for the storage adapters.

The Sheets adapter runs against an in-process fake worksheet, so no
Google credentials are needed.
"""

import re
from datetime import date
from decimal import Decimal
from types import SimpleNamespace
from uuid import uuid4

import pytest

from finance_tracker.models.audit import AuditEventBuilder, AuditEventType
from finance_tracker.models.common import GroupTotal
from finance_tracker.models.transaction import Transaction
from finance_tracker.models.user import User
from finance_tracker.services.storage import (
    DuplicateError,
    GoogleSheetsAuditStorage,
    GoogleSheetsRecordStorage,
    GoogleSheetsUserStorage,
    InMemoryRecordStorage,
    InMemoryUserStorage,
    NotFoundError,
    StorageError,
)


class FakeWorksheet:
    """Just enough of gspread.Worksheet for the adapters."""

    def __init__(self, columns):
        self.rows = [list(columns)]
        self.broken = False

    def get_all_values(self):
        if self.broken:
            raise ConnectionError("quota exceeded")
        return [list(row) for row in self.rows]

    def append_row(self, row, value_input_option=None):
        self.rows.append([str(value) for value in row])

    def update(self, cell_range, values, value_input_option=None):
        row_number = int(re.match(r"[A-Z]+(\d+):", cell_range).group(1))
        self.rows[row_number - 1] = [str(value) for value in values[0]]

    def delete_rows(self, index):
        del self.rows[index - 1]


class FakeSheetsClient:
    def __init__(self):
        self.settings = SimpleNamespace(users_sheet_name="Users", audit_sheet_name="AuditLog")
        self.sheets = {}

    def get_sheet(self, title, columns, rows=1000):
        if title not in self.sheets:
            self.sheets[title] = FakeWorksheet(columns)
        return self.sheets[title]


def make_transaction(user_id, amount="10", day=date(2024, 6, 1), kind="expense", category="food"):
    return Transaction(
        user_id=user_id,
        kind=kind,
        amount=Decimal(amount),
        category=category,
        date=day,
    )


@pytest.fixture
def sheets_client():
    return FakeSheetsClient()


@pytest.fixture(params=["memory", "sheets"])
def transactions(request, sheets_client):
    if request.param == "memory":
        return InMemoryRecordStorage()
    return GoogleSheetsRecordStorage(Transaction, "Transactions", sheets_client)


class TestRecordStorage:
    """Behaviour shared by every record adapter."""

    @pytest.mark.asyncio
    async def test_insert_and_get(self, transactions, user_id):
        txn = await transactions.insert(make_transaction(user_id, "12.34"))

        fetched = await transactions.get(user_id, txn.id)
        assert fetched.amount == Decimal("12.34")
        assert fetched.date == date(2024, 6, 1)

    @pytest.mark.asyncio
    async def test_duplicate_insert(self, transactions, user_id):
        txn = await transactions.insert(make_transaction(user_id))
        with pytest.raises(DuplicateError):
            await transactions.insert(txn)

    @pytest.mark.asyncio
    async def test_scoped_by_owner(self, transactions, user_id, other_user_id):
        txn = await transactions.insert(make_transaction(user_id))

        assert await transactions.get(other_user_id, txn.id) is None
        assert await transactions.delete(other_user_id, txn.id) is False
        assert await transactions.find(other_user_id) == []
        with pytest.raises(NotFoundError):
            await transactions.replace(txn.model_copy(update={"user_id": other_user_id}))

    @pytest.mark.asyncio
    async def test_replace(self, transactions, user_id):
        txn = await transactions.insert(make_transaction(user_id))

        updated = await transactions.replace(txn.model_copy(update={"amount": Decimal("99")}))

        assert updated.updated_at >= txn.updated_at
        assert (await transactions.get(user_id, txn.id)).amount == Decimal("99")

    @pytest.mark.asyncio
    async def test_replace_missing(self, transactions, user_id):
        with pytest.raises(NotFoundError):
            await transactions.replace(make_transaction(user_id))

    @pytest.mark.asyncio
    async def test_delete(self, transactions, user_id):
        first = await transactions.insert(make_transaction(user_id, "1"))
        second = await transactions.insert(make_transaction(user_id, "2"))

        assert await transactions.delete(user_id, first.id) is True
        assert await transactions.get(user_id, first.id) is None
        assert (await transactions.get(user_id, second.id)).amount == Decimal("2")

    @pytest.mark.asyncio
    async def test_find_filters_sorts_and_pages(self, transactions, user_id):
        for day in (3, 1, 5, 2, 4):
            await transactions.insert(make_transaction(user_id, str(day), date(2024, 6, day)))

        found = await transactions.find(
            user_id,
            where=lambda t: t.amount > 1,
            order_by=lambda t: t.date,
            descending=True,
            offset=1,
            limit=2,
        )
        assert [t.date.day for t in found] == [4, 3]
        assert await transactions.count(user_id, where=lambda t: t.amount > 1) == 4

    @pytest.mark.asyncio
    async def test_group_sum(self, transactions, user_id):
        await transactions.insert(make_transaction(user_id, "10"))
        await transactions.insert(make_transaction(user_id, "15"))
        await transactions.insert(make_transaction(user_id, "7", category="travel"))
        await transactions.insert(make_transaction(user_id, "500", kind="income", category="salary"))

        groups = await transactions.group_sum(
            user_id,
            key=lambda t: t.category,
            value=lambda t: t.amount,
            where=lambda t: t.kind == "expense",
        )
        assert groups == {
            "food": GroupTotal(total=Decimal("25"), count=2),
            "travel": GroupTotal(total=Decimal("7"), count=1),
        }


class TestSheetsRecordStorage:
    @pytest.mark.asyncio
    async def test_row_layout(self, sheets_client, user_id):
        storage = GoogleSheetsRecordStorage(Transaction, "Transactions", sheets_client)
        txn = await storage.insert(make_transaction(user_id))

        rows = sheets_client.sheets["Transactions"].rows
        assert rows[0] == ["id", "user_id", "created_at", "updated_at", "payload_json"]
        assert rows[1][:2] == [str(txn.id), str(user_id)]
        stored = Transaction.model_validate_json(rows[1][4])
        assert (stored.id, stored.amount, stored.date) == (txn.id, txn.amount, txn.date)

    @pytest.mark.asyncio
    async def test_corrupt_rows_are_skipped(self, sheets_client, user_id):
        storage = GoogleSheetsRecordStorage(Transaction, "Transactions", sheets_client)
        await storage.insert(make_transaction(user_id))
        sheets_client.sheets["Transactions"].rows.append(
            [str(uuid4()), str(user_id), "", "", "{not json"]
        )

        assert len(await storage.find(user_id)) == 1

    @pytest.mark.asyncio
    async def test_read_failure_is_a_storage_error(self, sheets_client, user_id):
        storage = GoogleSheetsRecordStorage(Transaction, "Transactions", sheets_client)
        await storage.insert(make_transaction(user_id))
        sheets_client.sheets["Transactions"].broken = True

        with pytest.raises(StorageError):
            await storage.get(user_id, uuid4())
        with pytest.raises(StorageError):
            await storage.find(user_id)


class TestUserStorage:
    @pytest.mark.asyncio
    @pytest.mark.parametrize("adapter", ["memory", "sheets"])
    async def test_email_is_unique_and_case_insensitive(self, adapter, sheets_client):
        users = InMemoryUserStorage() if adapter == "memory" else GoogleSheetsUserStorage(sheets_client)
        user = await users.save(User(email="Sam@Example.com", password_hash="x"))

        assert (await users.get_by_email("sam@example.com")).id == user.id
        assert (await users.get_by_id(user.id)).email == user.email
        with pytest.raises(DuplicateError):
            await users.save(User(email="sam@example.com", password_hash="y"))

    @pytest.mark.asyncio
    async def test_sheets_resave_updates_in_place(self, sheets_client):
        users = GoogleSheetsUserStorage(sheets_client)
        user = await users.save(User(email="sam@example.com", password_hash="x"))

        await users.save(user.model_copy(update={"name": "Sam"}))

        assert len(sheets_client.sheets["Users"].rows) == 2
        assert (await users.get_by_id(user.id)).name == "Sam"


class TestSheetsAuditStorage:
    @pytest.mark.asyncio
    async def test_events_round_trip_through_rows(self, sheets_client, user_id):
        audit = GoogleSheetsAuditStorage(sheets_client)
        bill_id = uuid4()
        await audit.append_event(AuditEventBuilder.record_changed("bill", "created", bill_id, user_id))
        await audit.append_event(AuditEventBuilder.bill_status_changed(
            bill_id, user_id, "active", "paused",
        ))
        await audit.append_event(AuditEventBuilder.user_logged_in(uuid4()))

        events = await audit.get_events_by_entity("bill", bill_id)
        assert [e.event_type for e in events] == [
            AuditEventType.BILL_CREATED,
            AuditEventType.BILL_STATUS_CHANGED,
        ]
        assert events[1].details == {"from": "active", "to": "paused"}

        recent = await audit.get_recent_events(user_id, limit=1)
        assert len(recent) == 1
        assert recent[0].user_id == user_id
