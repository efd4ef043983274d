"""Core interfaces (ports) for dependency injection."""

from src.core.interfaces.bookkeeping import IBookkeepingGateway
from src.core.interfaces.inventory_store import IInventoryStore
from src.core.interfaces.marketplace import IMarketplaceOrderSource, ITokenStore
from src.core.interfaces.persistence import (
    ILedgerSession,
    IPurchaseOrderStore,
    IReconciliationStore,
    IReplenishmentStore,
    IUnitOfWork,
)

__all__ = [
    # Storage interfaces
    "IInventoryStore",
    "IReplenishmentStore",
    "IPurchaseOrderStore",
    "IReconciliationStore",
    "ILedgerSession",
    "IUnitOfWork",
    # Bookkeeping interfaces
    "IBookkeepingGateway",
    # Marketplace interfaces
    "ITokenStore",
    "IMarketplaceOrderSource",
]
