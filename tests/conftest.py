"""Pytest configuration and fixtures."""

from collections.abc import AsyncGenerator, Awaitable, Callable
from pathlib import Path
from unittest.mock import MagicMock

import pytest

from src.core.entities.bookkeeping import BookkeepingEntry
from src.core.entities.inventory import InventoryItem, ItemKind
from src.core.exceptions import GatewayUnavailableError, InvalidEntryError
from src.core.interfaces.bookkeeping import IBookkeepingGateway
from src.core.services import (
    BookkeepingDispatcher,
    BookkeepingReconciler,
    InventoryLedger,
    KeyedLock,
    PurchaseOrderEngine,
    ReplenishmentRecorder,
)
from src.infrastructure.storage.sqlite.connection import ConnectionPool
from src.infrastructure.storage.sqlite.migrations.migrator import initialize_database
from src.infrastructure.storage.sqlite.unit_of_work import SQLiteUnitOfWork


class FakeGateway(IBookkeepingGateway):
    """
    In-memory bookkeeping gateway.

    Idempotent on ``reference_id`` like the real backends. ``fail_next``
    makes the next N calls raise GatewayUnavailableError; ``reject`` makes
    every call raise InvalidEntryError.
    """

    name = "fake"

    def __init__(self) -> None:
        self.entries: dict[str, BookkeepingEntry] = {}
        self.ids: dict[str, str] = {}
        self.calls = 0
        self.fail_next = 0
        self.reject = False

    async def record(self, entry: BookkeepingEntry) -> str:
        self.calls += 1
        if self.reject:
            raise InvalidEntryError(entry.reference_id, "rejected by test", entry.amount)
        if self.fail_next > 0:
            self.fail_next -= 1
            raise GatewayUnavailableError(self.name, "offline", entry.reference_id)
        if entry.reference_id not in self.ids:
            self.ids[entry.reference_id] = f"ENTRY-{len(self.ids) + 1}"
            self.entries[entry.reference_id] = entry
        return self.ids[entry.reference_id]


@pytest.fixture
def temp_db_path(tmp_path: Path) -> Path:
    """Create a temporary database path."""
    return tmp_path / "test.db"


@pytest.fixture
async def migrated_db(temp_db_path: Path) -> Path:
    """Temporary database with the full schema applied by the migrator."""
    results = await initialize_database(temp_db_path, create_backup_before=False)
    assert all(r.success for r in results)
    return temp_db_path


@pytest.fixture
async def pool(migrated_db: Path) -> AsyncGenerator[ConnectionPool, None]:
    pool = ConnectionPool(migrated_db, pool_size=4, busy_timeout=5000)
    await pool.initialize()
    yield pool
    await pool.close()


@pytest.fixture
def uow(pool: ConnectionPool) -> SQLiteUnitOfWork:
    return SQLiteUnitOfWork(pool)


@pytest.fixture
def gateway() -> FakeGateway:
    return FakeGateway()


@pytest.fixture
def ledger(uow: SQLiteUnitOfWork) -> InventoryLedger:
    return InventoryLedger(uow, KeyedLock(), default_reorder_point=25)


@pytest.fixture
def dispatcher(gateway: FakeGateway) -> BookkeepingDispatcher:
    # Zero delay keeps retry tests fast
    return BookkeepingDispatcher(gateway, max_attempts=3, retry_delay=0, retry_multiplier=2.0)


@pytest.fixture
def recorder(
    uow: SQLiteUnitOfWork,
    ledger: InventoryLedger,
    dispatcher: BookkeepingDispatcher,
) -> ReplenishmentRecorder:
    return ReplenishmentRecorder(uow, ledger, dispatcher)


@pytest.fixture
def engine(
    uow: SQLiteUnitOfWork,
    ledger: InventoryLedger,
    recorder: ReplenishmentRecorder,
    dispatcher: BookkeepingDispatcher,
) -> PurchaseOrderEngine:
    return PurchaseOrderEngine(uow, ledger, recorder, dispatcher)


@pytest.fixture
def reconciler(uow: SQLiteUnitOfWork, dispatcher: BookkeepingDispatcher) -> BookkeepingReconciler:
    return BookkeepingReconciler(uow, dispatcher)


@pytest.fixture
def make_item(ledger: InventoryLedger) -> Callable[..., Awaitable[InventoryItem]]:
    """Factory that defines an item through the ledger."""

    async def _make(
        kind: ItemKind = ItemKind.PACKAGING,
        name: str = "Mailer box",
        **kwargs,
    ) -> InventoryItem:
        return await ledger.define_item(kind, name, **kwargs)

    return _make


@pytest.fixture
def mock_settings(migrated_db: Path):
    """Mock settings pointing at the migrated temp database."""
    mock = MagicMock()
    mock.storage.db_path = migrated_db
    mock.storage.pool_size = 2
    mock.storage.busy_timeout = 5000
    return mock
