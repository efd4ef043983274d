"""
Application layer.

DTOs for the API surface and the service factories that wire
infrastructure to the core services.
"""

from src.application.services import (
    get_bookkeeping_dispatcher,
    get_bookkeeping_reconciler,
    get_inventory_ledger,
    get_purchase_order_engine,
    get_replenishment_recorder,
    reset_services,
)

__all__ = [
    "get_inventory_ledger",
    "get_bookkeeping_dispatcher",
    "get_replenishment_recorder",
    "get_purchase_order_engine",
    "get_bookkeeping_reconciler",
    "reset_services",
]
