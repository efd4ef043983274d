"""API test fixtures: the app wired to services on a temp database."""

from collections.abc import AsyncGenerator

import pytest
from httpx import ASGITransport, AsyncClient

from src.api.dependencies import get_engine, get_ledger, get_recorder, get_reconciler
from src.api.main import app


@pytest.fixture
async def api_client(ledger, recorder, engine, reconciler) -> AsyncGenerator[AsyncClient, None]:
    overrides = {
        get_ledger: lambda: ledger,
        get_recorder: lambda: recorder,
        get_engine: lambda: engine,
        get_reconciler: lambda: reconciler,
    }
    app.dependency_overrides.update(overrides)
    transport = ASGITransport(app=app)
    async with AsyncClient(transport=transport, base_url="http://test") as ac:
        yield ac
    for dependency in overrides:
        app.dependency_overrides.pop(dependency, None)
