"""
Dependency injection container for FastAPI.

Provides service instances to route handlers. Tests override these with
``app.dependency_overrides``.
"""

from functools import lru_cache

from src.application.services import (
    get_bookkeeping_dispatcher,
    get_bookkeeping_reconciler,
    get_inventory_ledger,
    get_purchase_order_engine,
    get_replenishment_recorder,
)
from src.config import Settings, get_settings
from src.core.interfaces import IMarketplaceOrderSource
from src.core.services import (
    BookkeepingDispatcher,
    BookkeepingReconciler,
    InventoryLedger,
    PurchaseOrderEngine,
    ReplenishmentRecorder,
)


@lru_cache
def get_app_settings() -> Settings:
    """Get cached application settings."""
    return get_settings()


# Service dependencies
async def get_ledger() -> InventoryLedger:
    """Get inventory ledger."""
    return await get_inventory_ledger()


async def get_recorder() -> ReplenishmentRecorder:
    """Get replenishment recorder."""
    return await get_replenishment_recorder()


async def get_engine() -> PurchaseOrderEngine:
    """Get purchase order engine."""
    return await get_purchase_order_engine()


async def get_dispatcher() -> BookkeepingDispatcher:
    """Get bookkeeping dispatcher."""
    return await get_bookkeeping_dispatcher()


async def get_reconciler() -> BookkeepingReconciler:
    """Get bookkeeping reconciler."""
    return await get_bookkeeping_reconciler()


async def get_marketplace_orders() -> IMarketplaceOrderSource:
    """Get marketplace order source."""
    from src.infrastructure.marketplace import get_marketplace_client

    return await get_marketplace_client()
