"""
Marketplace order client.

Reads recent sales orders from the eBay Fulfillment API for display. An
expired access token is refreshed once on 401 before giving up.
"""

from datetime import datetime
from decimal import Decimal, InvalidOperation

import httpx

from src.config import get_logger
from src.core.entities.marketplace import MarketplaceOrder, MarketplaceOrderLine
from src.core.exceptions import MarketplaceRequestError, ReauthorizationRequiredError
from src.core.interfaces.marketplace import IMarketplaceOrderSource
from src.infrastructure.marketplace.oauth import OAuthTokenManager

logger = get_logger(__name__)

ORDERS_PATH = "/sell/fulfillment/v1/order"


class MarketplaceOrderClient(IMarketplaceOrderSource):
    """Fetches orders with a bearer token from ``OAuthTokenManager``."""

    def __init__(
        self,
        token_manager: OAuthTokenManager,
        base_url: str,
        marketplace_id: str = "EBAY_US",
        timeout: float = 30.0,
        transport: httpx.AsyncBaseTransport | None = None,
    ):
        self._tokens = token_manager
        self._base_url = base_url.rstrip("/")
        self._marketplace_id = marketplace_id
        self._timeout = timeout
        self._transport = transport

    async def fetch_orders(self, limit: int = 50, offset: int = 0) -> list[MarketplaceOrder]:
        response = await self._get_orders(limit, offset)
        if response.status_code == 401:
            logger.info("marketplace_token_rejected_retrying", provider=self._tokens.provider)
            await self._tokens.invalidate()
            response = await self._get_orders(limit, offset)
            if response.status_code == 401:
                raise ReauthorizationRequiredError(
                    self._tokens.provider, "access token rejected after refresh"
                )

        if response.status_code >= 400:
            raise MarketplaceRequestError(
                "fetch orders",
                f"HTTP {response.status_code}: {response.text[:200]}",
                status_code=response.status_code,
            )

        try:
            body = response.json()
        except ValueError as exc:
            raise MarketplaceRequestError("fetch orders", "response was not JSON") from exc

        orders = [self._parse_order(raw) for raw in body.get("orders", [])]
        logger.info("marketplace_orders_fetched", count=len(orders), offset=offset)
        return orders

    async def _get_orders(self, limit: int, offset: int) -> httpx.Response:
        access_token = await self._tokens.get_access_token()
        try:
            async with httpx.AsyncClient(
                base_url=self._base_url,
                timeout=self._timeout,
                transport=self._transport,
            ) as client:
                return await client.get(
                    ORDERS_PATH,
                    params={"limit": limit, "offset": offset},
                    headers={
                        "Authorization": f"Bearer {access_token}",
                        "X-EBAY-C-MARKETPLACE-ID": self._marketplace_id,
                        "Accept": "application/json",
                    },
                )
        except httpx.TimeoutException as exc:
            raise MarketplaceRequestError("fetch orders", f"Timeout after {self._timeout}s") from exc
        except httpx.RequestError as exc:
            raise MarketplaceRequestError("fetch orders", str(exc)) from exc

    @staticmethod
    def _parse_order(raw: dict) -> MarketplaceOrder:
        if not raw.get("orderId"):
            raise MarketplaceRequestError("fetch orders", "order without orderId in response")
        total = raw.get("pricingSummary", {}).get("total", {})
        created_at = None
        if raw.get("creationDate"):
            try:
                created_at = datetime.fromisoformat(raw["creationDate"].replace("Z", "+00:00"))
            except ValueError:
                created_at = None

        return MarketplaceOrder(
            order_id=str(raw["orderId"]),
            created_at=created_at,
            status=raw.get("orderFulfillmentStatus"),
            buyer=(raw.get("buyer") or {}).get("username"),
            total=_amount(total.get("value")),
            currency=total.get("currency", "USD"),
            lines=[
                MarketplaceOrderLine(
                    line_item_id=str(line.get("lineItemId", "")),
                    title=line.get("title", ""),
                    sku=line.get("sku"),
                    quantity=int(line.get("quantity", 1)),
                    total=_amount((line.get("total") or line.get("lineItemCost") or {}).get("value")),
                )
                for line in raw.get("lineItems", [])
            ],
        )


def _amount(value: str | None) -> Decimal:
    if value is None:
        return Decimal("0")
    try:
        return Decimal(str(value))
    except InvalidOperation:
        return Decimal("0")
