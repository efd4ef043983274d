"""
SQLite unit of work.

Hands out ledger sessions whose stores all share one pooled connection, so a
write session commits or rolls back as a single ``BEGIN IMMEDIATE``
transaction.
"""

from collections.abc import AsyncIterator
from contextlib import asynccontextmanager

import aiosqlite

from src.core.interfaces.persistence import ILedgerSession, IUnitOfWork
from src.infrastructure.storage.sqlite.connection import ConnectionPool
from src.infrastructure.storage.sqlite.inventory_store import SQLiteInventoryStore
from src.infrastructure.storage.sqlite.purchase_order_store import SQLitePurchaseOrderStore
from src.infrastructure.storage.sqlite.reconciliation_store import SQLiteReconciliationStore
from src.infrastructure.storage.sqlite.replenishment_store import SQLiteReplenishmentStore


class SQLiteLedgerSession(ILedgerSession):
    """All ledger stores bound to ``conn``."""

    def __init__(self, conn: aiosqlite.Connection):
        self.connection = conn
        self.items = SQLiteInventoryStore(conn)
        self.events = SQLiteReplenishmentStore(conn)
        self.orders = SQLitePurchaseOrderStore(conn)
        self.reconciliation = SQLiteReconciliationStore(conn)


class SQLiteUnitOfWork(IUnitOfWork):
    """Unit of work over a ``ConnectionPool``."""

    def __init__(self, pool: ConnectionPool):
        self._pool = pool

    @asynccontextmanager
    async def transaction(self) -> AsyncIterator[SQLiteLedgerSession]:
        async with self._pool.transaction() as conn:
            yield SQLiteLedgerSession(conn)

    @asynccontextmanager
    async def read(self) -> AsyncIterator[SQLiteLedgerSession]:
        async with self._pool.acquire() as conn:
            yield SQLiteLedgerSession(conn)
