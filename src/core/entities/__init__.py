"""Core domain entities."""

from src.core.entities.bookkeeping import (
    BookkeepingEntry,
    ReconciliationStatus,
    ReconciliationTask,
)
from src.core.entities.inventory import (
    InventoryItem,
    ItemKind,
    StockStatus,
)
from src.core.entities.marketplace import (
    MarketplaceOrder,
    MarketplaceOrderLine,
    OAuthToken,
)
from src.core.entities.purchase_order import (
    ALLOWED_TRANSITIONS,
    DELETABLE_STATUSES,
    EDITABLE_STATUSES,
    PurchaseOrder,
    PurchaseOrderItem,
    PurchaseOrderStatus,
    can_transition,
)
from src.core.entities.replenishment import ReplenishmentEvent

__all__ = [
    # Inventory entities
    "InventoryItem",
    "ItemKind",
    "StockStatus",
    "ReplenishmentEvent",
    # Purchase order entities
    "PurchaseOrder",
    "PurchaseOrderItem",
    "PurchaseOrderStatus",
    "ALLOWED_TRANSITIONS",
    "EDITABLE_STATUSES",
    "DELETABLE_STATUSES",
    "can_transition",
    # Bookkeeping entities
    "BookkeepingEntry",
    "ReconciliationStatus",
    "ReconciliationTask",
    # Marketplace entities
    "MarketplaceOrder",
    "MarketplaceOrderLine",
    "OAuthToken",
]
