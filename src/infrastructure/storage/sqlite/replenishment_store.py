"""SQLite implementation of the append-only replenishment event log."""

import aiosqlite

from src.config import get_logger
from src.core.entities.replenishment import ReplenishmentEvent
from src.core.exceptions import DatabaseError, DuplicateBookkeepingLinkError
from src.core.interfaces.persistence import IReplenishmentStore
from src.infrastructure.storage.sqlite.rows import parse_date, parse_datetime, parse_decimal

logger = get_logger(__name__)


class SQLiteReplenishmentStore(IReplenishmentStore):
    """
    Replenishment events, bound to one connection.

    Rows are insert-only; the schema rejects UPDATE and DELETE with triggers.
    """

    def __init__(self, conn: aiosqlite.Connection):
        self._conn = conn

    async def add_event(self, event: ReplenishmentEvent) -> ReplenishmentEvent:
        try:
            await self._conn.execute(
                """
                INSERT INTO replenishment_events (
                    id, inventory_item_id, quantity, batch_cost, shipping, vat,
                    event_date, source_purchase_order_item_id, bookkeeping_entry_id,
                    invoice_link, comments, recorded_at
                ) VALUES (?, ?, ?, ?, ?, ?, ?, ?, ?, ?, ?, ?)
                """,
                (
                    event.id,
                    event.inventory_item_id,
                    event.quantity,
                    str(event.batch_cost),
                    str(event.shipping),
                    str(event.vat),
                    event.event_date.isoformat(),
                    event.source_purchase_order_item_id,
                    event.bookkeeping_entry_id,
                    event.invoice_link,
                    event.comments,
                    event.recorded_at.isoformat(),
                ),
            )
        except aiosqlite.IntegrityError as e:
            if event.bookkeeping_entry_id and "bookkeeping_entry_id" in str(e):
                linked = await self.find_by_bookkeeping_entry(event.bookkeeping_entry_id)
                raise DuplicateBookkeepingLinkError(
                    event.bookkeeping_entry_id, linked.id if linked else "unknown"
                ) from e
            raise DatabaseError("add_event", str(e)) from e
        return event

    async def get_event(self, event_id: str) -> ReplenishmentEvent | None:
        cursor = await self._conn.execute(
            "SELECT * FROM replenishment_events WHERE id = ?", (event_id,)
        )
        row = await cursor.fetchone()
        return self._row_to_event(row) if row else None

    async def find_by_bookkeeping_entry(self, entry_id: str) -> ReplenishmentEvent | None:
        cursor = await self._conn.execute(
            "SELECT * FROM replenishment_events WHERE bookkeeping_entry_id = ?",
            (entry_id,),
        )
        row = await cursor.fetchone()
        return self._row_to_event(row) if row else None

    async def list_for_item(self, item_id: int) -> list[ReplenishmentEvent]:
        cursor = await self._conn.execute(
            """
            SELECT * FROM replenishment_events
            WHERE inventory_item_id = ?
            ORDER BY seq ASC
            """,
            (item_id,),
        )
        rows = await cursor.fetchall()
        return [self._row_to_event(row) for row in rows]

    async def count_for_item(self, item_id: int) -> int:
        cursor = await self._conn.execute(
            "SELECT COUNT(*) FROM replenishment_events WHERE inventory_item_id = ?",
            (item_id,),
        )
        row = await cursor.fetchone()
        return row[0]

    @staticmethod
    def _row_to_event(row: aiosqlite.Row) -> ReplenishmentEvent:
        """Convert a database row to a ReplenishmentEvent entity."""
        return ReplenishmentEvent(
            id=row["id"],
            inventory_item_id=row["inventory_item_id"],
            quantity=row["quantity"],
            batch_cost=parse_decimal(row["batch_cost"]),
            shipping=parse_decimal(row["shipping"]),
            vat=parse_decimal(row["vat"]),
            event_date=parse_date(row["event_date"]),
            source_purchase_order_item_id=row["source_purchase_order_item_id"],
            bookkeeping_entry_id=row["bookkeeping_entry_id"],
            invoice_link=row["invoice_link"],
            comments=row["comments"],
            recorded_at=parse_datetime(row["recorded_at"]),
        )

