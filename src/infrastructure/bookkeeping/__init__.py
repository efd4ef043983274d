"""
Bookkeeping gateway adapters.

Creates the configured gateway (local expense book or HTTP API).
"""

from src.config import get_logger, get_settings
from src.core.exceptions import ConfigurationError
from src.core.interfaces.bookkeeping import IBookkeepingGateway
from src.infrastructure.bookkeeping.http_gateway import HttpBookkeepingGateway

logger = get_logger(__name__)


async def get_bookkeeping_gateway(backend: str | None = None) -> IBookkeepingGateway:
    """
    Get a bookkeeping gateway instance.

    Args:
        backend: "local" or "http" (default from settings)
    """
    settings = get_settings()
    backend = backend or settings.bookkeeping.backend

    if backend == "local":
        from src.infrastructure.storage.sqlite import SQLiteExpenseBook, get_pool

        return SQLiteExpenseBook(await get_pool())

    if backend == "http":
        if not settings.bookkeeping.base_url:
            raise ConfigurationError("BOOKKEEPING_BASE_URL is required for the http backend")
        return HttpBookkeepingGateway(
            base_url=settings.bookkeeping.base_url,
            api_key=settings.bookkeeping.api_key,
            timeout=settings.bookkeeping.timeout,
        )

    raise ConfigurationError(f"Unknown bookkeeping backend: {backend}")


__all__ = ["HttpBookkeepingGateway", "get_bookkeeping_gateway"]
