"""Tests for the local bookkeeping backend."""

from datetime import date
from decimal import Decimal
from unittest.mock import patch

import aiosqlite
import pytest

from src.core.entities.bookkeeping import BookkeepingEntry
from src.core.exceptions import GatewayUnavailableError, InvalidEntryError
from src.infrastructure.storage.sqlite.expense_book import SQLiteExpenseBook


@pytest.fixture
def expense_book(pool) -> SQLiteExpenseBook:
    return SQLiteExpenseBook(pool)


def make_entry(reference_id: str = "evt-1", amount: str = "37.50") -> BookkeepingEntry:
    return BookkeepingEntry(
        reference_id=reference_id,
        category="Packaging Materials",
        amount=Decimal(amount),
        entry_date=date(2026, 3, 4),
        memo="PO-2026-000001: 50 x Small box",
    )


class TestSQLiteExpenseBook:
    async def test_record_returns_entry_id(self, expense_book):
        entry_id = await expense_book.record(make_entry())
        assert entry_id.startswith("EXP-")

    async def test_record_is_idempotent(self, expense_book, pool):
        first = await expense_book.record(make_entry())
        second = await expense_book.record(make_entry(amount="99.00"))

        assert first == second
        async with pool.acquire() as conn:
            cursor = await conn.execute("SELECT COUNT(*) FROM expenses")
            assert (await cursor.fetchone())[0] == 1

    async def test_distinct_references(self, expense_book):
        assert await expense_book.record(make_entry("a")) != await expense_book.record(make_entry("b"))

    async def test_get_entry(self, expense_book):
        await expense_book.record(make_entry())

        stored = await expense_book.get_entry("evt-1")

        assert stored == make_entry()
        assert await expense_book.get_entry("missing") is None

    async def test_zero_amount_is_accepted(self, expense_book):
        assert await expense_book.record(make_entry(amount="0.00"))

    @pytest.mark.parametrize(
        "entry",
        [
            make_entry(amount="-1.00"),
            make_entry(reference_id=""),
            BookkeepingEntry(reference_id="x", category="", amount=Decimal("1")),
        ],
    )
    async def test_rejects_invalid_entries(self, expense_book, entry):
        with pytest.raises(InvalidEntryError):
            await expense_book.record(entry)

    async def test_locked_database_is_unavailable(self, expense_book, pool):
        with patch.object(
            pool, "transaction", side_effect=aiosqlite.OperationalError("database is locked")
        ):
            with pytest.raises(GatewayUnavailableError) as exc_info:
                await expense_book.record(make_entry())
        assert exc_info.value.retryable
