"""Purchase order domain entities and lifecycle rules."""

from datetime import date, datetime
from decimal import Decimal
from enum import Enum

from pydantic import BaseModel, Field

from src.core.cost_math import line_total, order_total


class PurchaseOrderStatus(str, Enum):
    """Lifecycle states of a purchase order."""

    PENDING = "pending"
    CONFIRMED = "confirmed"
    SHIPPED = "shipped"
    RECEIVED = "received"
    COMPLETED = "completed"
    CANCELLED = "cancelled"


ALLOWED_TRANSITIONS: dict[PurchaseOrderStatus, frozenset[PurchaseOrderStatus]] = {
    PurchaseOrderStatus.PENDING: frozenset(
        {PurchaseOrderStatus.CONFIRMED, PurchaseOrderStatus.CANCELLED}
    ),
    PurchaseOrderStatus.CONFIRMED: frozenset(
        {PurchaseOrderStatus.SHIPPED, PurchaseOrderStatus.CANCELLED}
    ),
    PurchaseOrderStatus.SHIPPED: frozenset(
        {PurchaseOrderStatus.RECEIVED, PurchaseOrderStatus.CANCELLED}
    ),
    PurchaseOrderStatus.RECEIVED: frozenset({PurchaseOrderStatus.COMPLETED}),
    PurchaseOrderStatus.COMPLETED: frozenset(),
    PurchaseOrderStatus.CANCELLED: frozenset(),
}

# Line items may only change before the goods ship
EDITABLE_STATUSES = frozenset({PurchaseOrderStatus.PENDING, PurchaseOrderStatus.CONFIRMED})

DELETABLE_STATUSES = frozenset({PurchaseOrderStatus.PENDING, PurchaseOrderStatus.CANCELLED})


def can_transition(current: PurchaseOrderStatus, requested: PurchaseOrderStatus) -> bool:
    """Check whether ``current → requested`` is an edge of the lifecycle."""
    return requested in ALLOWED_TRANSITIONS[current]


class PurchaseOrderItem(BaseModel):
    """A single packaging line on a purchase order."""

    id: int | None = None
    purchase_order_id: int | None = None
    packaging_item_id: int  # FK → inventory_items.id (packaging)
    quantity: int
    unit_cost: Decimal
    supplier: str | None = None  # overrides the order's supplier
    notes: str | None = None
    created_at: datetime = Field(default_factory=datetime.utcnow)

    @property
    def total_cost(self) -> Decimal:
        return line_total(self.quantity, self.unit_cost)


class PurchaseOrder(BaseModel):
    """Purchase order with its lines and lifecycle state."""

    id: int | None = None
    po_number: str
    status: PurchaseOrderStatus = PurchaseOrderStatus.PENDING
    supplier: str | None = None
    order_date: date = Field(default_factory=date.today)
    expected_delivery: date | None = None
    actual_delivery: date | None = None
    notes: str | None = None
    total_cost: Decimal = Decimal("0.00")
    received_side_effects_applied: bool = False
    items: list[PurchaseOrderItem] = Field(default_factory=list)
    created_at: datetime = Field(default_factory=datetime.utcnow)
    updated_at: datetime = Field(default_factory=datetime.utcnow)

    @property
    def is_editable(self) -> bool:
        return self.status in EDITABLE_STATUSES

    @property
    def is_deletable(self) -> bool:
        return self.status in DELETABLE_STATUSES

    def recompute_total(self) -> Decimal:
        """Refresh ``total_cost`` from the current lines and return it."""
        self.total_cost = order_total(item.total_cost for item in self.items)
        return self.total_cost

    def get_line(self, line_id: int) -> PurchaseOrderItem | None:
        for item in self.items:
            if item.id == line_id:
                return item
        return None
