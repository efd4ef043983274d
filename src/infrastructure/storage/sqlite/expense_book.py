"""
Local bookkeeping backend.

Stores expense entries in the ``expenses`` table. ``reference_id`` is unique,
so recording the same entry twice returns the id assigned the first time.
"""

import uuid
from datetime import datetime

import aiosqlite

from src.config import get_logger
from src.core.entities.bookkeeping import BookkeepingEntry
from src.core.exceptions import GatewayUnavailableError, InvalidEntryError
from src.core.interfaces.bookkeeping import IBookkeepingGateway
from src.infrastructure.storage.sqlite.connection import ConnectionPool
from src.infrastructure.storage.sqlite.rows import parse_date, parse_decimal

logger = get_logger(__name__)


class SQLiteExpenseBook(IBookkeepingGateway):
    """Bookkeeping gateway backed by the application database."""

    name = "local"

    def __init__(self, pool: ConnectionPool):
        self._pool = pool

    async def record(self, entry: BookkeepingEntry) -> str:
        if not entry.reference_id:
            raise InvalidEntryError(entry.reference_id, "reference id is required", entry.amount)
        if not entry.amount.is_finite() or entry.amount < 0:
            raise InvalidEntryError(entry.reference_id, "amount must be non-negative", entry.amount)
        if not entry.category:
            raise InvalidEntryError(entry.reference_id, "category is required", entry.amount)

        try:
            async with self._pool.transaction() as conn:
                await conn.execute(
                    """
                    INSERT OR IGNORE INTO expenses (
                        entry_id, reference_id, category, amount, entry_date, memo, created_at
                    ) VALUES (?, ?, ?, ?, ?, ?, ?)
                    """,
                    (
                        f"EXP-{uuid.uuid4().hex[:12].upper()}",
                        entry.reference_id,
                        entry.category,
                        str(entry.amount),
                        entry.entry_date.isoformat(),
                        entry.memo,
                        datetime.utcnow().isoformat(),
                    ),
                )
                cursor = await conn.execute(
                    "SELECT entry_id FROM expenses WHERE reference_id = ?",
                    (entry.reference_id,),
                )
                row = await cursor.fetchone()
        except aiosqlite.OperationalError as e:
            # Locked or unreachable database file
            raise GatewayUnavailableError(self.name, str(e), entry.reference_id) from e

        logger.debug("expense_recorded", reference_id=entry.reference_id, entry_id=row["entry_id"])
        return row["entry_id"]

    async def get_entry(self, reference_id: str) -> BookkeepingEntry | None:
        """Look up a recorded expense by its reference id."""
        async with self._pool.acquire() as conn:
            cursor = await conn.execute(
                "SELECT * FROM expenses WHERE reference_id = ?", (reference_id,)
            )
            row = await cursor.fetchone()
        if row is None:
            return None
        return BookkeepingEntry(
            reference_id=row["reference_id"],
            category=row["category"],
            amount=parse_decimal(row["amount"]),
            entry_date=parse_date(row["entry_date"]),
            memo=row["memo"],
        )
