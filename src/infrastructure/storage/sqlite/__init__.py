"""SQLite storage implementations."""

from src.infrastructure.storage.sqlite.connection import (
    ConnectionPool,
    close_pool,
    get_pool,
)
from src.infrastructure.storage.sqlite.expense_book import SQLiteExpenseBook
from src.infrastructure.storage.sqlite.inventory_store import SQLiteInventoryStore
from src.infrastructure.storage.sqlite.marketplace_token_store import SQLiteTokenStore
from src.infrastructure.storage.sqlite.purchase_order_store import SQLitePurchaseOrderStore
from src.infrastructure.storage.sqlite.reconciliation_store import SQLiteReconciliationStore
from src.infrastructure.storage.sqlite.replenishment_store import SQLiteReplenishmentStore
from src.infrastructure.storage.sqlite.unit_of_work import SQLiteLedgerSession, SQLiteUnitOfWork

# Singleton instances
_unit_of_work: SQLiteUnitOfWork | None = None
_token_store: SQLiteTokenStore | None = None


async def get_unit_of_work() -> SQLiteUnitOfWork:
    """Get singleton unit of work on the global pool."""
    global _unit_of_work
    if _unit_of_work is None:
        _unit_of_work = SQLiteUnitOfWork(await get_pool())
    return _unit_of_work


async def get_token_store() -> SQLiteTokenStore:
    """Get singleton marketplace token store instance."""
    global _token_store
    if _token_store is None:
        _token_store = SQLiteTokenStore()
    return _token_store


def reset_stores() -> None:
    """Drop singleton stores (used after the pool is closed)."""
    global _unit_of_work, _token_store
    _unit_of_work = None
    _token_store = None


__all__ = [
    # Connection
    "ConnectionPool",
    "get_pool",
    "close_pool",
    # Store classes
    "SQLiteInventoryStore",
    "SQLiteReplenishmentStore",
    "SQLitePurchaseOrderStore",
    "SQLiteReconciliationStore",
    "SQLiteLedgerSession",
    "SQLiteUnitOfWork",
    "SQLiteExpenseBook",
    "SQLiteTokenStore",
    # Factory functions
    "get_unit_of_work",
    "get_token_store",
    "reset_stores",
]
