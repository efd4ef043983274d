"""API tests for marketplace order display."""

from datetime import datetime
from decimal import Decimal
from unittest.mock import AsyncMock

import pytest
from httpx import ASGITransport, AsyncClient

from src.api.dependencies import get_marketplace_orders
from src.api.main import app
from src.core.entities.marketplace import MarketplaceOrder, MarketplaceOrderLine
from src.core.exceptions import MarketplaceRequestError, ReauthorizationRequiredError


@pytest.fixture
def order_source():
    source = AsyncMock()
    source.fetch_orders.return_value = [
        MarketplaceOrder(
            order_id="12-34567-89012",
            created_at=datetime(2026, 3, 2, 10, 15),
            status="FULFILLED",
            buyer="mugcollector",
            total=Decimal("24.99"),
            lines=[MarketplaceOrderLine(line_item_id="1", title="Mug", quantity=2, total=Decimal("24.99"))],
        )
    ]
    return source


@pytest.fixture
async def market_client(order_source):
    app.dependency_overrides[get_marketplace_orders] = lambda: order_source
    async with AsyncClient(transport=ASGITransport(app=app), base_url="http://test") as ac:
        yield ac
    app.dependency_overrides.pop(get_marketplace_orders, None)


class TestMarketplaceOrdersAPI:
    async def test_lists_orders(self, market_client: AsyncClient, order_source):
        response = await market_client.get("/api/marketplace/orders", params={"limit": 5})

        assert response.status_code == 200
        data = response.json()
        assert data["total"] == 1
        assert data["limit"] == 5
        assert data["orders"][0]["total"] == "24.99"
        assert data["orders"][0]["lines"][0]["quantity"] == 2
        order_source.fetch_orders.assert_awaited_once_with(limit=5, offset=0)

    async def test_reauthorization_required(self, market_client: AsyncClient, order_source):
        order_source.fetch_orders.side_effect = ReauthorizationRequiredError("ebay", "refresh token expired")

        response = await market_client.get("/api/marketplace/orders")

        assert response.status_code == 401
        assert response.json()["error_code"] == "REAUTHORIZATION_REQUIRED"
        assert "Reconnect" in response.json()["hint"]

    async def test_upstream_failure(self, market_client: AsyncClient, order_source):
        order_source.fetch_orders.side_effect = MarketplaceRequestError(
            "fetch orders", "HTTP 500", status_code=500
        )

        response = await market_client.get("/api/marketplace/orders")

        assert response.status_code == 502
        assert response.json()["error_code"] == "MARKETPLACE_REQUEST_FAILED"
