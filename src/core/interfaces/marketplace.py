"""Abstract interfaces for the marketplace order source."""

from abc import ABC, abstractmethod

from src.core.entities.marketplace import MarketplaceOrder, OAuthToken


class ITokenStore(ABC):
    """Persistence for marketplace OAuth tokens."""

    @abstractmethod
    async def get_token(self, provider: str) -> OAuthToken | None:
        pass

    @abstractmethod
    async def save_token(self, token: OAuthToken) -> OAuthToken:
        """Insert or replace the token for ``token.provider``."""
        pass

    @abstractmethod
    async def delete_token(self, provider: str) -> bool:
        pass


class IMarketplaceOrderSource(ABC):
    """Read-only source of marketplace sales orders."""

    @abstractmethod
    async def fetch_orders(self, limit: int = 50, offset: int = 0) -> list[MarketplaceOrder]:
        """
        Fetch recent orders.

        Raises:
            ReauthorizationRequiredError: Account must be reconnected
            MarketplaceRequestError: Marketplace call failed
        """
        pass
