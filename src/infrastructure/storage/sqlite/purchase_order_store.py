"""SQLite implementation of purchase order storage."""

from datetime import date, datetime

import aiosqlite

from src.config import get_logger
from src.core.entities.purchase_order import (
    PurchaseOrder,
    PurchaseOrderItem,
    PurchaseOrderStatus,
)
from src.core.exceptions import DatabaseError, DuplicatePurchaseOrderError
from src.core.interfaces.persistence import IPurchaseOrderStore
from src.infrastructure.storage.sqlite.rows import iso, parse_date, parse_datetime, parse_decimal

logger = get_logger(__name__)

# Orders whose lines still represent stock on the way
OPEN_STATUSES = (
    PurchaseOrderStatus.PENDING.value,
    PurchaseOrderStatus.CONFIRMED.value,
    PurchaseOrderStatus.SHIPPED.value,
)


class SQLitePurchaseOrderStore(IPurchaseOrderStore):
    """SQLite implementation of purchase order and line storage, bound to one connection."""

    def __init__(self, conn: aiosqlite.Connection):
        self._conn = conn

    async def create_order(self, order: PurchaseOrder) -> PurchaseOrder:
        """Insert the order header and its lines."""
        now = datetime.utcnow()
        order.created_at = now
        order.updated_at = now
        try:
            cursor = await self._conn.execute(
                """
                INSERT INTO purchase_orders (
                    po_number, status, supplier, order_date, expected_delivery,
                    actual_delivery, notes, total_cost, received_side_effects_applied,
                    created_at, updated_at
                ) VALUES (?, ?, ?, ?, ?, ?, ?, ?, ?, ?, ?)
                """,
                (
                    order.po_number,
                    order.status.value,
                    order.supplier,
                    order.order_date.isoformat(),
                    iso(order.expected_delivery),
                    iso(order.actual_delivery),
                    order.notes,
                    str(order.total_cost),
                    int(order.received_side_effects_applied),
                    order.created_at.isoformat(),
                    order.updated_at.isoformat(),
                ),
            )
        except aiosqlite.IntegrityError as e:
            if "po_number" in str(e):
                raise DuplicatePurchaseOrderError(order.po_number) from e
            raise DatabaseError("create_order", str(e)) from e

        order.id = cursor.lastrowid
        for line in order.items:
            line.purchase_order_id = order.id
            await self.add_line(line)

        logger.debug("purchase_order_inserted", po_id=order.id, po_number=order.po_number)
        return order

    async def get_order(self, po_id: int) -> PurchaseOrder | None:
        """Get order with its lines."""
        cursor = await self._conn.execute(
            "SELECT * FROM purchase_orders WHERE id = ?", (po_id,)
        )
        row = await cursor.fetchone()
        if row is None:
            return None
        order = self._row_to_order(row)
        order.items = await self._get_lines(po_id)
        return order

    async def get_order_by_number(self, po_number: str) -> PurchaseOrder | None:
        cursor = await self._conn.execute(
            "SELECT id FROM purchase_orders WHERE po_number = ?", (po_number,)
        )
        row = await cursor.fetchone()
        return await self.get_order(row["id"]) if row else None

    async def update_order(self, order: PurchaseOrder) -> PurchaseOrder:
        """Persist header fields. Lines are written through the line methods."""
        await self._conn.execute(
            """
            UPDATE purchase_orders SET
                status = ?,
                supplier = ?,
                expected_delivery = ?,
                actual_delivery = ?,
                notes = ?,
                total_cost = ?,
                received_side_effects_applied = ?,
                updated_at = ?
            WHERE id = ?
            """,
            (
                order.status.value,
                order.supplier,
                iso(order.expected_delivery),
                iso(order.actual_delivery),
                order.notes,
                str(order.total_cost),
                int(order.received_side_effects_applied),
                order.updated_at.isoformat(),
                order.id,
            ),
        )
        return order

    async def delete_order(self, po_id: int) -> bool:
        """Delete an order; its lines go with it (ON DELETE CASCADE)."""
        try:
            cursor = await self._conn.execute(
                "DELETE FROM purchase_orders WHERE id = ?", (po_id,)
            )
        except aiosqlite.IntegrityError as e:
            raise DatabaseError("delete_order", str(e)) from e
        return cursor.rowcount > 0

    async def list_orders(
        self,
        status: PurchaseOrderStatus | None = None,
        limit: int = 100,
        offset: int = 0,
    ) -> list[PurchaseOrder]:
        """List orders, newest first, with their lines."""
        cursor = await self._conn.execute(
            """
            SELECT * FROM purchase_orders
            WHERE (? IS NULL OR status = ?)
            ORDER BY order_date DESC, id DESC
            LIMIT ? OFFSET ?
            """,
            (
                status.value if status else None,
                status.value if status else None,
                limit,
                offset,
            ),
        )
        rows = await cursor.fetchall()
        orders = [self._row_to_order(row) for row in rows]
        for order in orders:
            order.items = await self._get_lines(order.id)
        return orders

    async def add_line(self, line: PurchaseOrderItem) -> PurchaseOrderItem:
        line.created_at = datetime.utcnow()
        try:
            cursor = await self._conn.execute(
                """
                INSERT INTO purchase_order_items (
                    purchase_order_id, packaging_item_id, quantity, unit_cost,
                    supplier, notes, created_at
                ) VALUES (?, ?, ?, ?, ?, ?, ?)
                """,
                (
                    line.purchase_order_id,
                    line.packaging_item_id,
                    line.quantity,
                    str(line.unit_cost),
                    line.supplier,
                    line.notes,
                    line.created_at.isoformat(),
                ),
            )
        except aiosqlite.IntegrityError as e:
            raise DatabaseError("add_line", str(e)) from e
        line.id = cursor.lastrowid
        return line

    async def update_line(self, line: PurchaseOrderItem) -> PurchaseOrderItem:
        try:
            await self._conn.execute(
                """
                UPDATE purchase_order_items SET
                    packaging_item_id = ?,
                    quantity = ?,
                    unit_cost = ?,
                    supplier = ?,
                    notes = ?
                WHERE id = ?
                """,
                (
                    line.packaging_item_id,
                    line.quantity,
                    str(line.unit_cost),
                    line.supplier,
                    line.notes,
                    line.id,
                ),
            )
        except aiosqlite.IntegrityError as e:
            raise DatabaseError("update_line", str(e)) from e
        return line

    async def delete_line(self, line_id: int) -> bool:
        cursor = await self._conn.execute(
            "DELETE FROM purchase_order_items WHERE id = ?", (line_id,)
        )
        return cursor.rowcount > 0

    async def count_lines_for_item(self, item_id: int, open_only: bool = False) -> int:
        if open_only:
            cursor = await self._conn.execute(
                f"""
                SELECT COUNT(*) FROM purchase_order_items i
                JOIN purchase_orders o ON o.id = i.purchase_order_id
                WHERE i.packaging_item_id = ?
                  AND o.status IN ({", ".join("?" for _ in OPEN_STATUSES)})
                """,
                (item_id, *OPEN_STATUSES),
            )
        else:
            cursor = await self._conn.execute(
                "SELECT COUNT(*) FROM purchase_order_items WHERE packaging_item_id = ?",
                (item_id,),
            )
        row = await cursor.fetchone()
        return row[0]

    async def last_order_number(self, prefix: str) -> str | None:
        """Highest generated number (``prefix`` + six digits)."""
        cursor = await self._conn.execute(
            """
            SELECT po_number FROM purchase_orders
            WHERE po_number GLOB ?
            ORDER BY po_number DESC
            LIMIT 1
            """,
            (prefix.replace("[", "[[]") + "[0-9]" * 6,),
        )
        row = await cursor.fetchone()
        return row["po_number"] if row else None

    async def _get_lines(self, po_id: int) -> list[PurchaseOrderItem]:
        cursor = await self._conn.execute(
            """
            SELECT * FROM purchase_order_items
            WHERE purchase_order_id = ?
            ORDER BY id
            """,
            (po_id,),
        )
        rows = await cursor.fetchall()
        return [self._row_to_line(row) for row in rows]

    @staticmethod
    def _row_to_order(row: aiosqlite.Row) -> PurchaseOrder:
        """Convert a database row to a PurchaseOrder entity (without lines)."""
        return PurchaseOrder(
            id=row["id"],
            po_number=row["po_number"],
            status=PurchaseOrderStatus(row["status"]),
            supplier=row["supplier"],
            order_date=parse_date(row["order_date"]) or date.today(),
            expected_delivery=parse_date(row["expected_delivery"]),
            actual_delivery=parse_date(row["actual_delivery"]),
            notes=row["notes"],
            total_cost=parse_decimal(row["total_cost"]),
            received_side_effects_applied=bool(row["received_side_effects_applied"]),
            created_at=parse_datetime(row["created_at"]),
            updated_at=parse_datetime(row["updated_at"]),
        )

    @staticmethod
    def _row_to_line(row: aiosqlite.Row) -> PurchaseOrderItem:
        return PurchaseOrderItem(
            id=row["id"],
            purchase_order_id=row["purchase_order_id"],
            packaging_item_id=row["packaging_item_id"],
            quantity=row["quantity"],
            unit_cost=parse_decimal(row["unit_cost"]),
            supplier=row["supplier"],
            notes=row["notes"],
            created_at=parse_datetime(row["created_at"]),
        )
