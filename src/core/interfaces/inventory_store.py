"""Abstract interface for inventory item storage."""

from abc import ABC, abstractmethod

from src.core.entities.inventory import InventoryItem, ItemKind


class IInventoryStore(ABC):
    """
    Interface for inventory item persistence.

    Implementations are bound to one ledger session, so every call made
    through the same store shares that session's transaction.
    """

    @abstractmethod
    async def create_item(self, item: InventoryItem) -> InventoryItem:
        """Create a new inventory item."""
        pass

    @abstractmethod
    async def get_item(self, item_id: int) -> InventoryItem | None:
        """Get inventory item by ID."""
        pass

    @abstractmethod
    async def get_item_by_sku(self, sku: str) -> InventoryItem | None:
        """Get inventory item by SKU."""
        pass

    @abstractmethod
    async def update_item(self, item: InventoryItem) -> InventoryItem:
        """Persist every mutable field of the item."""
        pass

    @abstractmethod
    async def delete_item(self, item_id: int) -> bool:
        """Delete inventory item. Returns False if it did not exist."""
        pass

    @abstractmethod
    async def list_items(
        self,
        kind: ItemKind | None = None,
        limit: int = 100,
        offset: int = 0,
    ) -> list[InventoryItem]:
        """List inventory items, optionally filtered by kind."""
        pass

    @abstractmethod
    async def list_low_stock(
        self,
        kind: ItemKind | None = None,
        limit: int = 100,
        offset: int = 0,
    ) -> list[InventoryItem]:
        """List items whose quantity is below their reorder point."""
        pass

    @abstractmethod
    async def count_linked_products(self, packaging_id: int) -> int:
        """Count products that allocate the given packaging item."""
        pass
