"""SQLite implementation of inventory item storage."""

from datetime import datetime

import aiosqlite

from src.config import get_logger
from src.core.entities.inventory import InventoryItem, ItemKind
from src.core.exceptions import DatabaseError, ValidationError
from src.core.interfaces.inventory_store import IInventoryStore
from src.infrastructure.storage.sqlite.rows import iso, parse_date, parse_datetime, parse_decimal

logger = get_logger(__name__)


class SQLiteInventoryStore(IInventoryStore):
    """SQLite implementation of inventory item storage, bound to one connection."""

    def __init__(self, conn: aiosqlite.Connection):
        self._conn = conn

    async def create_item(self, item: InventoryItem) -> InventoryItem:
        """Create a new inventory item."""
        now = datetime.utcnow()
        item.created_at = now
        item.updated_at = now
        try:
            cursor = await self._conn.execute(
                """
                INSERT INTO inventory_items (
                    kind, name, sku, quantity, unit_cost, reorder_point, is_active,
                    linked_packaging_id, packaging_quantity_per_unit, include_packaging_cost,
                    last_replenished_at, created_at, updated_at
                ) VALUES (?, ?, ?, ?, ?, ?, ?, ?, ?, ?, ?, ?, ?)
                """,
                (
                    item.kind.value,
                    item.name,
                    item.sku,
                    item.quantity,
                    str(item.unit_cost),
                    item.reorder_point,
                    int(item.is_active),
                    item.linked_packaging_id,
                    item.packaging_quantity_per_unit,
                    int(item.include_packaging_cost),
                    iso(item.last_replenished_at),
                    item.created_at.isoformat(),
                    item.updated_at.isoformat(),
                ),
            )
        except aiosqlite.IntegrityError as e:
            if "sku" in str(e):
                raise ValidationError("sku", "SKU already in use", item.sku) from e
            raise DatabaseError("create_item", str(e)) from e
        item.id = cursor.lastrowid
        logger.debug("inventory_item_created", item_id=item.id, kind=item.kind.value)
        return item

    async def get_item(self, item_id: int) -> InventoryItem | None:
        """Get inventory item by ID."""
        cursor = await self._conn.execute(
            "SELECT * FROM inventory_items WHERE id = ?", (item_id,)
        )
        row = await cursor.fetchone()
        return self._row_to_inventory_item(row) if row else None

    async def get_item_by_sku(self, sku: str) -> InventoryItem | None:
        cursor = await self._conn.execute(
            "SELECT * FROM inventory_items WHERE sku = ?", (sku,)
        )
        row = await cursor.fetchone()
        return self._row_to_inventory_item(row) if row else None

    async def update_item(self, item: InventoryItem) -> InventoryItem:
        """Update every mutable column of an inventory item."""
        item.updated_at = datetime.utcnow()
        try:
            await self._conn.execute(
                """
                UPDATE inventory_items SET
                    name = ?,
                    sku = ?,
                    quantity = ?,
                    unit_cost = ?,
                    reorder_point = ?,
                    is_active = ?,
                    linked_packaging_id = ?,
                    packaging_quantity_per_unit = ?,
                    include_packaging_cost = ?,
                    last_replenished_at = ?,
                    updated_at = ?
                WHERE id = ?
                """,
                (
                    item.name,
                    item.sku,
                    item.quantity,
                    str(item.unit_cost),
                    item.reorder_point,
                    int(item.is_active),
                    item.linked_packaging_id,
                    item.packaging_quantity_per_unit,
                    int(item.include_packaging_cost),
                    iso(item.last_replenished_at),
                    item.updated_at.isoformat(),
                    item.id,
                ),
            )
        except aiosqlite.IntegrityError as e:
            raise DatabaseError("update_item", str(e)) from e
        return item

    async def delete_item(self, item_id: int) -> bool:
        try:
            cursor = await self._conn.execute(
                "DELETE FROM inventory_items WHERE id = ?", (item_id,)
            )
        except aiosqlite.IntegrityError as e:
            raise DatabaseError("delete_item", str(e)) from e
        return cursor.rowcount > 0

    async def list_items(
        self,
        kind: ItemKind | None = None,
        limit: int = 100,
        offset: int = 0,
    ) -> list[InventoryItem]:
        """List inventory items with pagination, ordered by name."""
        if kind is None:
            cursor = await self._conn.execute(
                "SELECT * FROM inventory_items ORDER BY name, id LIMIT ? OFFSET ?",
                (limit, offset),
            )
        else:
            cursor = await self._conn.execute(
                """
                SELECT * FROM inventory_items
                WHERE kind = ?
                ORDER BY name, id
                LIMIT ? OFFSET ?
                """,
                (kind.value, limit, offset),
            )
        rows = await cursor.fetchall()
        return [self._row_to_inventory_item(row) for row in rows]

    async def list_low_stock(
        self,
        kind: ItemKind | None = None,
        limit: int = 100,
        offset: int = 0,
    ) -> list[InventoryItem]:
        """Items below their reorder point, emptiest first."""
        cursor = await self._conn.execute(
            """
            SELECT * FROM inventory_items
            WHERE quantity < reorder_point
              AND (? IS NULL OR kind = ?)
            ORDER BY quantity ASC, name
            LIMIT ? OFFSET ?
            """,
            (kind.value if kind else None, kind.value if kind else None, limit, offset),
        )
        rows = await cursor.fetchall()
        return [self._row_to_inventory_item(row) for row in rows]

    async def count_linked_products(self, packaging_id: int) -> int:
        cursor = await self._conn.execute(
            "SELECT COUNT(*) FROM inventory_items WHERE linked_packaging_id = ?",
            (packaging_id,),
        )
        row = await cursor.fetchone()
        return row[0]

    @staticmethod
    def _row_to_inventory_item(row: aiosqlite.Row) -> InventoryItem:
        """Convert a database row to an InventoryItem entity."""
        return InventoryItem(
            id=row["id"],
            kind=ItemKind(row["kind"]),
            name=row["name"],
            sku=row["sku"],
            quantity=row["quantity"],
            unit_cost=parse_decimal(row["unit_cost"]),
            reorder_point=row["reorder_point"],
            is_active=bool(row["is_active"]),
            linked_packaging_id=row["linked_packaging_id"],
            packaging_quantity_per_unit=row["packaging_quantity_per_unit"],
            include_packaging_cost=bool(row["include_packaging_cost"]),
            last_replenished_at=parse_date(row["last_replenished_at"]),
            created_at=parse_datetime(row["created_at"]),
            updated_at=parse_datetime(row["updated_at"]),
        )
