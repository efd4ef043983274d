"""
Core business logic services.

Layer-pure services that depend only on:
- src/core/entities/*
- src/core/interfaces/*
- src/core/exceptions.py

NO infrastructure imports. All dependencies injected via constructor.
"""

from src.core.services.bookkeeping import BookkeepingDispatcher, DispatchOutcome
from src.core.services.inventory_ledger import InventoryLedger
from src.core.services.keyed_lock import KeyedLock
from src.core.services.purchase_order_engine import (
    PurchaseOrderEngine,
    StatusChangeResult,
    receipt_event_id,
)
from src.core.services.reconciliation import BookkeepingReconciler, ReconciliationReport
from src.core.services.replenishment_recorder import ReplenishmentRecorder

__all__ = [
    # Inventory Ledger
    "InventoryLedger",
    "KeyedLock",
    # Replenishment
    "ReplenishmentRecorder",
    # Purchase Orders
    "PurchaseOrderEngine",
    "StatusChangeResult",
    "receipt_event_id",
    # Bookkeeping
    "BookkeepingDispatcher",
    "DispatchOutcome",
    "BookkeepingReconciler",
    "ReconciliationReport",
]
