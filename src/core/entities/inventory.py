"""Inventory domain entities."""

from datetime import date, datetime
from decimal import Decimal
from enum import Enum

from pydantic import BaseModel, Field

from src.core.cost_math import to_money


class ItemKind(str, Enum):
    """Kinds of stock-keeping units."""

    PRODUCT = "product"
    PACKAGING = "packaging"


class StockStatus(str, Enum):
    """Display status derived from quantity, reorder point and the manual flag."""

    OUT_OF_STOCK = "out_of_stock"
    LOW_STOCK = "low_stock"
    ACTIVE = "active"
    INACTIVE = "inactive"


class InventoryItem(BaseModel):
    """Tracks stock level and weighted average cost for a product or packaging material."""

    id: int | None = None
    kind: ItemKind
    name: str
    sku: str | None = None
    quantity: int = 0
    unit_cost: Decimal = Decimal("0")  # Weighted Average Cost
    reorder_point: int = 25
    is_active: bool = True

    # Products only
    linked_packaging_id: int | None = None  # FK → inventory_items.id (packaging)
    packaging_quantity_per_unit: int = 1
    include_packaging_cost: bool = True

    last_replenished_at: date | None = None
    created_at: datetime = Field(default_factory=datetime.utcnow)
    updated_at: datetime = Field(default_factory=datetime.utcnow)

    @property
    def stock_status(self) -> StockStatus:
        """Quantity-derived states win over the manual active flag."""
        if self.quantity == 0:
            return StockStatus.OUT_OF_STOCK
        if self.quantity < self.reorder_point:
            return StockStatus.LOW_STOCK
        return StockStatus.ACTIVE if self.is_active else StockStatus.INACTIVE

    @property
    def total_value(self) -> Decimal:
        """Total inventory value = quantity * unit_cost, in money precision."""
        return to_money(self.unit_cost * self.quantity)

    @property
    def has_linked_packaging(self) -> bool:
        return self.kind == ItemKind.PRODUCT and self.linked_packaging_id is not None
