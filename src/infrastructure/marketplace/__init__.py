"""Marketplace order source (external collaborator, display only)."""

from src.config import get_settings
from src.infrastructure.marketplace.oauth import OAuthTokenManager
from src.infrastructure.marketplace.orders import MarketplaceOrderClient

_order_client: MarketplaceOrderClient | None = None


async def get_marketplace_client() -> MarketplaceOrderClient:
    """Get singleton marketplace order client configured from settings."""
    global _order_client
    if _order_client is None:
        from src.infrastructure.storage.sqlite import get_token_store

        settings = get_settings().marketplace
        token_manager = OAuthTokenManager(
            token_store=await get_token_store(),
            client_id=settings.client_id,
            client_secret=settings.client_secret,
            token_url=settings.token_url,
            scopes=settings.scopes,
            timeout=settings.timeout,
            expiry_margin_seconds=settings.expiry_margin_seconds,
        )
        _order_client = MarketplaceOrderClient(
            token_manager=token_manager,
            base_url=settings.base_url,
            marketplace_id=settings.marketplace_id,
            timeout=settings.timeout,
        )
    return _order_client


def reset_marketplace_client() -> None:
    global _order_client
    _order_client = None


__all__ = [
    "OAuthTokenManager",
    "MarketplaceOrderClient",
    "get_marketplace_client",
    "reset_marketplace_client",
]
