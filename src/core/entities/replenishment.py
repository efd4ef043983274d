"""Replenishment (stock-in) audit log entities."""

from datetime import date, datetime
from decimal import Decimal

from pydantic import BaseModel, Field

from src.core.cost_math import batch_unit_cost


class ReplenishmentEvent(BaseModel):
    """
    One immutable stock-in record.

    ``batch_cost`` is the landed cost of the whole batch, shipping and VAT
    included. Corrections are recorded as new events, never as edits.
    """

    id: str  # UUID, deterministic when generated from a PO line
    inventory_item_id: int  # FK → inventory_items.id
    quantity: int
    batch_cost: Decimal
    shipping: Decimal = Decimal("0")
    vat: Decimal = Decimal("0")
    event_date: date = Field(default_factory=date.today)
    source_purchase_order_item_id: int | None = None  # FK → purchase_order_items.id
    bookkeeping_entry_id: str | None = None
    invoice_link: str | None = None
    comments: str | None = None
    recorded_at: datetime = Field(default_factory=datetime.utcnow)

    @property
    def batch_unit_cost(self) -> Decimal:
        return batch_unit_cost(self.batch_cost, self.quantity)

    @property
    def from_purchase_order(self) -> bool:
        return self.source_purchase_order_item_id is not None
