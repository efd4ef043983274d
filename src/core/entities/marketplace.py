"""Marketplace order source entities."""

from datetime import datetime, timedelta
from decimal import Decimal

from pydantic import BaseModel, Field


class OAuthToken(BaseModel):
    """Stored OAuth credentials for a marketplace account."""

    provider: str
    access_token: str | None = None
    access_token_expires_at: datetime | None = None
    refresh_token: str | None = None
    refresh_token_expires_at: datetime | None = None
    updated_at: datetime = Field(default_factory=datetime.utcnow)

    def access_token_valid(self, margin_seconds: int = 0, now: datetime | None = None) -> bool:
        """True when an access token exists and will not expire within the margin."""
        if not self.access_token or self.access_token_expires_at is None:
            return False
        now = now or datetime.utcnow()
        return self.access_token_expires_at - timedelta(seconds=margin_seconds) > now

    def refresh_token_valid(self, now: datetime | None = None) -> bool:
        if not self.refresh_token:
            return False
        if self.refresh_token_expires_at is None:
            return True
        return self.refresh_token_expires_at > (now or datetime.utcnow())


class MarketplaceOrderLine(BaseModel):
    line_item_id: str
    title: str
    sku: str | None = None
    quantity: int = 1
    total: Decimal = Decimal("0")


class MarketplaceOrder(BaseModel):
    """A sales order as reported by the marketplace (read-only)."""

    order_id: str
    created_at: datetime | None = None
    status: str | None = None
    buyer: str | None = None
    total: Decimal = Decimal("0")
    currency: str = "USD"
    lines: list[MarketplaceOrderLine] = Field(default_factory=list)
