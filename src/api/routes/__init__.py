"""API route modules."""

from src.api.routes.health import router as health_router
from src.api.routes.inventory import router as inventory_router
from src.api.routes.marketplace import router as marketplace_router
from src.api.routes.purchase_orders import router as purchase_orders_router
from src.api.routes.reconciliation import router as reconciliation_router

__all__ = [
    "health_router",
    "inventory_router",
    "purchase_orders_router",
    "reconciliation_router",
    "marketplace_router",
]
