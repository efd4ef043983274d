"""
Inventory Ledger Service.

Owns the quantity and weighted average unit cost of every inventory item.
All stock changes go through ``credit``/``debit`` (or their session-scoped
variants), which serialize per item: an in-process lock per item id, then a
write transaction around the read-modify-write.
"""

from contextlib import AbstractAsyncContextManager
from datetime import date, datetime
from decimal import Decimal, InvalidOperation
from typing import Any

from src.config import get_logger
from src.core import cost_math
from src.core.entities.inventory import InventoryItem, ItemKind
from src.core.exceptions import (
    InsufficientStockError,
    InvalidCostError,
    InvalidItemKindError,
    InvalidQuantityError,
    ItemInUseError,
    UnknownItemError,
    ValidationError,
)
from src.core.interfaces.persistence import ILedgerSession, IUnitOfWork
from src.core.services.keyed_lock import KeyedLock

logger = get_logger(__name__)

# Fields callers may change through update_item_details
DETAIL_FIELDS = frozenset(
    {
        "name",
        "sku",
        "reorder_point",
        "is_active",
        "linked_packaging_id",
        "packaging_quantity_per_unit",
        "include_packaging_cost",
    }
)


def validate_quantity(quantity: Any, item_id: int | None = None) -> int:
    """Quantities are positive whole numbers."""
    if isinstance(quantity, bool) or not isinstance(quantity, int) or quantity <= 0:
        raise InvalidQuantityError(quantity, item_id=item_id)
    return quantity


def validate_cost(cost: Any, item_id: int | None = None, field: str = "unit_cost") -> Decimal:
    """Costs are finite, non-negative amounts."""
    if cost is None or isinstance(cost, bool):
        raise InvalidCostError(cost, item_id=item_id, field=field)
    try:
        value = cost_math.to_decimal(cost)
    except (InvalidOperation, TypeError, ValueError):
        raise InvalidCostError(cost, item_id=item_id, field=field) from None
    if not value.is_finite() or value < 0:
        raise InvalidCostError(cost, item_id=item_id, field=field)
    return value


class InventoryLedger:
    """
    Service for inventory item definition and stock changes.

    Standalone ``credit``/``debit`` open their own transaction. The
    ``apply_*`` variants run inside a caller's session; the caller must hold
    the item locks via ``locked(*item_ids)`` for the whole session.
    """

    def __init__(
        self,
        uow: IUnitOfWork,
        locks: KeyedLock | None = None,
        default_reorder_point: int = 25,
    ):
        self._uow = uow
        self._locks = locks or KeyedLock()
        self._default_reorder_point = default_reorder_point

    def locked(self, *item_ids: int) -> AbstractAsyncContextManager[None]:
        """Hold the per-item locks for ``item_ids`` (acquired in sorted order)."""
        return self._locks.hold(*item_ids)

    # ------------------------------------------------------------------
    # Stock changes
    # ------------------------------------------------------------------

    async def credit(
        self,
        item_id: int,
        quantity: int,
        batch_unit_cost: Decimal,
    ) -> tuple[int, Decimal]:
        """
        Add stock and blend its cost into the weighted average.

        Returns:
            (new_quantity, new_unit_cost)

        Raises:
            InvalidQuantityError: quantity is not a positive integer
            InvalidCostError: cost is negative or not a number
            UnknownItemError: item does not exist
        """
        validate_quantity(quantity, item_id)
        cost = validate_cost(batch_unit_cost, item_id)

        async with self.locked(item_id):
            async with self._uow.transaction() as session:
                item = await self.apply_credit(session, item_id, quantity, cost)
        return item.quantity, item.unit_cost

    async def apply_credit(
        self,
        session: ILedgerSession,
        item_id: int,
        quantity: int,
        batch_unit_cost: Decimal,
        received_on: date | None = None,
    ) -> InventoryItem:
        """Credit inside an open session. Nothing is written if validation fails."""
        validate_quantity(quantity, item_id)
        cost = validate_cost(batch_unit_cost, item_id)

        item = await self._require_item(session, item_id)
        old_quantity, old_cost = item.quantity, item.unit_cost

        item.unit_cost = cost_math.weighted_average(old_quantity, old_cost, quantity, cost)
        item.quantity = old_quantity + quantity
        item.last_replenished_at = received_on or date.today()
        await session.items.update_item(item)

        logger.info(
            "inventory_credited",
            item_id=item_id,
            quantity=quantity,
            batch_unit_cost=cost,
            old_quantity=old_quantity,
            new_quantity=item.quantity,
            old_unit_cost=old_cost,
            new_unit_cost=item.unit_cost,
        )
        return item

    async def debit(self, item_id: int, quantity: int) -> tuple[int, Decimal]:
        """
        Remove stock. Unit cost is unchanged.

        Raises:
            InvalidQuantityError: quantity is not a positive integer
            UnknownItemError: item does not exist
            InsufficientStockError: quantity would go negative
        """
        validate_quantity(quantity, item_id)

        async with self.locked(item_id):
            async with self._uow.transaction() as session:
                item = await self.apply_debit(session, item_id, quantity)
        return item.quantity, item.unit_cost

    async def apply_debit(
        self,
        session: ILedgerSession,
        item_id: int,
        quantity: int,
    ) -> InventoryItem:
        """Debit inside an open session."""
        validate_quantity(quantity, item_id)

        item = await self._require_item(session, item_id)
        if quantity > item.quantity:
            raise InsufficientStockError(item_id, requested=quantity, available=item.quantity)

        old_quantity = item.quantity
        item.quantity = old_quantity - quantity
        await session.items.update_item(item)

        logger.info(
            "inventory_debited",
            item_id=item_id,
            quantity=quantity,
            old_quantity=old_quantity,
            new_quantity=item.quantity,
        )
        return item

    # ------------------------------------------------------------------
    # Item definition
    # ------------------------------------------------------------------

    async def define_item(
        self,
        kind: ItemKind,
        name: str,
        sku: str | None = None,
        reorder_point: int | None = None,
        is_active: bool = True,
        linked_packaging_id: int | None = None,
        packaging_quantity_per_unit: int = 1,
        include_packaging_cost: bool = True,
    ) -> InventoryItem:
        """Create an item with zero stock and zero cost."""
        item = InventoryItem(
            kind=kind,
            name=(name or "").strip(),
            sku=sku.strip() if sku else None,
            reorder_point=self._default_reorder_point if reorder_point is None else reorder_point,
            is_active=is_active,
            linked_packaging_id=linked_packaging_id,
            packaging_quantity_per_unit=packaging_quantity_per_unit,
            include_packaging_cost=include_packaging_cost,
        )

        async with self._uow.transaction() as session:
            await self._validate_details(session, item)
            item = await session.items.create_item(item)

        logger.info("inventory_item_defined", item_id=item.id, kind=item.kind.value, name=item.name)
        return item

    async def update_item_details(self, item_id: int, **changes: Any) -> InventoryItem:
        """
        Change descriptive fields of an item.

        Quantity and unit cost are not accepted here; they only move through
        credit and debit.
        """
        unknown = set(changes) - DETAIL_FIELDS
        if unknown:
            field = sorted(unknown)[0]
            raise ValidationError(field, "field cannot be changed directly", changes[field])

        async with self.locked(item_id):
            async with self._uow.transaction() as session:
                item = await self._require_item(session, item_id)
                for field, value in changes.items():
                    if field in ("name", "sku") and isinstance(value, str):
                        value = value.strip() or None
                    setattr(item, field, value)
                await self._validate_details(session, item)
                item = await session.items.update_item(item)

        logger.info("inventory_item_updated", item_id=item_id, fields=sorted(changes))
        return item

    async def delete_item(self, item_id: int) -> None:
        """
        Delete an item that nothing refers to.

        Raises:
            UnknownItemError: item does not exist
            ItemInUseError: item has replenishment history, order lines or linked products
        """
        async with self.locked(item_id):
            async with self._uow.transaction() as session:
                item = await self._require_item(session, item_id)

                if await session.events.count_for_item(item_id):
                    raise ItemInUseError(item_id, "item has replenishment history")
                if await session.orders.count_lines_for_item(item_id, open_only=True):
                    raise ItemInUseError(item_id, "item is on an open purchase order")
                if await session.orders.count_lines_for_item(item_id):
                    raise ItemInUseError(item_id, "item is referenced by purchase order history")
                if item.kind == ItemKind.PACKAGING and await session.items.count_linked_products(
                    item_id
                ):
                    raise ItemInUseError(item_id, "packaging is allocated to products")

                await session.items.delete_item(item_id)

        logger.info("inventory_item_deleted", item_id=item_id)

    # ------------------------------------------------------------------
    # Queries
    # ------------------------------------------------------------------

    async def get_item(self, item_id: int) -> InventoryItem:
        async with self._uow.read() as session:
            return await self._require_item(session, item_id)

    async def list_items(
        self,
        kind: ItemKind | None = None,
        limit: int = 100,
        offset: int = 0,
    ) -> list[InventoryItem]:
        async with self._uow.read() as session:
            return await session.items.list_items(kind=kind, limit=limit, offset=offset)

    async def list_low_stock(
        self,
        kind: ItemKind | None = None,
        limit: int = 100,
        offset: int = 0,
    ) -> list[InventoryItem]:
        """Items below their reorder point (out of stock included)."""
        async with self._uow.read() as session:
            return await session.items.list_low_stock(kind=kind, limit=limit, offset=offset)

    async def composite_unit_cost(self, product_id: int) -> Decimal:
        """
        Unit cost of a product including its allocated packaging.

        Products without linked packaging, or with packaging inclusion turned
        off, report their own unit cost.
        """
        async with self._uow.read() as session:
            product = await self._require_item(session, product_id)
            if product.kind != ItemKind.PRODUCT:
                raise InvalidItemKindError(
                    product_id, expected=ItemKind.PRODUCT.value, actual=product.kind.value
                )

            packaging_cost = None
            if product.linked_packaging_id is not None:
                packaging = await self._require_item(session, product.linked_packaging_id)
                packaging_cost = packaging.unit_cost

        return cost_math.composite_unit_cost(
            product.unit_cost,
            packaging_cost,
            product.packaging_quantity_per_unit,
            product.include_packaging_cost,
        )

    # ------------------------------------------------------------------
    # Helpers
    # ------------------------------------------------------------------

    @staticmethod
    async def _require_item(session: ILedgerSession, item_id: int) -> InventoryItem:
        item = await session.items.get_item(item_id)
        if item is None:
            raise UnknownItemError(item_id)
        return item

    async def _validate_details(self, session: ILedgerSession, item: InventoryItem) -> None:
        if not item.name:
            raise ValidationError("name", "name is required", item.name)
        if item.reorder_point < 0:
            raise ValidationError("reorder_point", "must be zero or greater", item.reorder_point)
        if item.packaging_quantity_per_unit < 1:
            raise ValidationError(
                "packaging_quantity_per_unit",
                "must be at least 1",
                item.packaging_quantity_per_unit,
            )

        if item.sku:
            existing = await session.items.get_item_by_sku(item.sku)
            if existing is not None and existing.id != item.id:
                raise ValidationError("sku", "SKU already in use", item.sku)

        if item.linked_packaging_id is not None:
            if item.kind != ItemKind.PRODUCT:
                raise ValidationError(
                    "linked_packaging_id",
                    "only products can link packaging",
                    item.linked_packaging_id,
                )
            packaging = await self._require_item(session, item.linked_packaging_id)
            if packaging.kind != ItemKind.PACKAGING:
                raise InvalidItemKindError(
                    packaging.id,
                    expected=ItemKind.PACKAGING.value,
                    actual=packaging.kind.value,
                )

        item.updated_at = datetime.utcnow()
