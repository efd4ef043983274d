"""
Service factory functions for dependency injection.

This module wires infrastructure implementations (unit of work, bookkeeping
gateway) to the core services. API routes and the CLI import from here.

Clean Architecture: Application layer orchestrates DI, not core layer.
"""

from typing import TYPE_CHECKING

from src.config import get_settings
from src.core.services import (
    BookkeepingDispatcher,
    BookkeepingReconciler,
    InventoryLedger,
    KeyedLock,
    PurchaseOrderEngine,
    ReplenishmentRecorder,
)

if TYPE_CHECKING:
    from src.core.interfaces import IBookkeepingGateway, IUnitOfWork


# Singleton service instances
_ledger: InventoryLedger | None = None
_dispatcher: BookkeepingDispatcher | None = None
_recorder: ReplenishmentRecorder | None = None
_engine: PurchaseOrderEngine | None = None
_reconciler: BookkeepingReconciler | None = None


async def _get_uow() -> "IUnitOfWork":
    # Lazy import infrastructure to avoid circular imports
    from src.infrastructure.storage.sqlite import get_unit_of_work

    return await get_unit_of_work()


async def get_inventory_ledger(uow: "IUnitOfWork | None" = None) -> InventoryLedger:
    """
    Get or create the InventoryLedger.

    Every service that changes stock shares this instance so they also share
    its per-item locks.
    """
    global _ledger

    if _ledger is not None and uow is None:
        return _ledger

    settings = get_settings()
    ledger = InventoryLedger(
        uow=uow or await _get_uow(),
        locks=KeyedLock(),
        default_reorder_point=settings.inventory.default_reorder_point,
    )

    if uow is None:
        _ledger = ledger

    return ledger


async def get_bookkeeping_dispatcher(
    gateway: "IBookkeepingGateway | None" = None,
) -> BookkeepingDispatcher:
    """
    Get or create the BookkeepingDispatcher.

    Args:
        gateway: Optional gateway override (defaults to the configured backend)
    """
    global _dispatcher

    if _dispatcher is not None and gateway is None:
        return _dispatcher

    from src.infrastructure.bookkeeping import get_bookkeeping_gateway

    settings = get_settings().bookkeeping
    dispatcher = BookkeepingDispatcher(
        gateway=gateway or await get_bookkeeping_gateway(),
        max_attempts=settings.max_attempts,
        retry_delay=settings.retry_delay,
        retry_multiplier=settings.retry_multiplier,
    )

    if gateway is None:
        _dispatcher = dispatcher

    return dispatcher


async def get_replenishment_recorder() -> ReplenishmentRecorder:
    """Get or create the ReplenishmentRecorder."""
    global _recorder

    if _recorder is None:
        settings = get_settings().inventory
        _recorder = ReplenishmentRecorder(
            uow=await _get_uow(),
            ledger=await get_inventory_ledger(),
            dispatcher=await get_bookkeeping_dispatcher(),
            packaging_category=settings.packaging_category,
            product_category=settings.product_category,
        )

    return _recorder


async def get_purchase_order_engine() -> PurchaseOrderEngine:
    """Get or create the PurchaseOrderEngine."""
    global _engine

    if _engine is None:
        settings = get_settings().inventory
        _engine = PurchaseOrderEngine(
            uow=await _get_uow(),
            ledger=await get_inventory_ledger(),
            recorder=await get_replenishment_recorder(),
            dispatcher=await get_bookkeeping_dispatcher(),
            packaging_category=settings.packaging_category,
            po_number_prefix=settings.purchase_order_prefix,
        )

    return _engine


async def get_bookkeeping_reconciler() -> BookkeepingReconciler:
    """Get or create the BookkeepingReconciler."""
    global _reconciler

    if _reconciler is None:
        _reconciler = BookkeepingReconciler(
            uow=await _get_uow(),
            dispatcher=await get_bookkeeping_dispatcher(),
        )

    return _reconciler


def reset_services() -> None:
    """
    Reset all singleton service instances.

    Useful for testing or when configuration changes.
    """
    global _ledger
    global _dispatcher
    global _recorder
    global _engine
    global _reconciler

    _ledger = None
    _dispatcher = None
    _recorder = None
    _engine = None
    _reconciler = None


__all__ = [
    # Factory functions
    "get_inventory_ledger",
    "get_bookkeeping_dispatcher",
    "get_replenishment_recorder",
    "get_purchase_order_engine",
    "get_bookkeeping_reconciler",
    # Reset
    "reset_services",
]
