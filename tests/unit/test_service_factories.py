"""Tests for the application service factories."""

from unittest.mock import patch

import pytest

from src.application.services import (
    get_bookkeeping_dispatcher,
    get_bookkeeping_reconciler,
    get_inventory_ledger,
    get_purchase_order_engine,
    get_replenishment_recorder,
    reset_services,
)
from src.infrastructure.storage.sqlite import connection, reset_stores


@pytest.fixture
async def wired(mock_settings):
    reset_services()
    reset_stores()
    with patch.object(connection, "get_settings", return_value=mock_settings):
        yield
        reset_services()
        reset_stores()
        await connection.close_pool()


async def test_stock_services_share_one_ledger(wired):
    ledger = await get_inventory_ledger()
    recorder = await get_replenishment_recorder()
    engine = await get_purchase_order_engine()

    assert recorder._ledger is ledger
    assert engine._ledger is ledger
    assert engine._recorder is recorder


async def test_default_backend_is_local_expense_book(wired, monkeypatch):
    monkeypatch.delenv("BOOKKEEPING_BACKEND", raising=False)

    dispatcher = await get_bookkeeping_dispatcher()
    reconciler = await get_bookkeeping_reconciler()

    assert dispatcher.gateway_name == "local"
    assert reconciler._dispatcher is dispatcher


async def test_reset_drops_singletons(wired):
    first = await get_inventory_ledger()
    reset_services()
    assert await get_inventory_ledger() is not first
