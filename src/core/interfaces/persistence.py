"""
Abstract interfaces for ledger persistence.

A unit of work hands out ledger sessions. Every store on a session is bound
to the same connection, so a ``transaction()`` session commits or rolls back
items, replenishment events, purchase orders and reconciliation tasks together.
"""

from abc import ABC, abstractmethod
from contextlib import AbstractAsyncContextManager

from src.core.entities.bookkeeping import ReconciliationStatus, ReconciliationTask
from src.core.entities.purchase_order import (
    PurchaseOrder,
    PurchaseOrderItem,
    PurchaseOrderStatus,
)
from src.core.entities.replenishment import ReplenishmentEvent
from src.core.interfaces.inventory_store import IInventoryStore


class IReplenishmentStore(ABC):
    """Append-only store for replenishment events."""

    @abstractmethod
    async def add_event(self, event: ReplenishmentEvent) -> ReplenishmentEvent:
        """Append an event. Raises DuplicateBookkeepingLinkError on a reused entry id."""
        pass

    @abstractmethod
    async def get_event(self, event_id: str) -> ReplenishmentEvent | None:
        pass

    @abstractmethod
    async def find_by_bookkeeping_entry(self, entry_id: str) -> ReplenishmentEvent | None:
        """Find the event already linked to a bookkeeping entry."""
        pass

    @abstractmethod
    async def list_for_item(self, item_id: int) -> list[ReplenishmentEvent]:
        """Events for an item in chronological (insertion) order."""
        pass

    @abstractmethod
    async def count_for_item(self, item_id: int) -> int:
        pass


class IPurchaseOrderStore(ABC):
    """Interface for purchase order and line persistence."""

    @abstractmethod
    async def create_order(self, order: PurchaseOrder) -> PurchaseOrder:
        """Insert the order header and all of its lines."""
        pass

    @abstractmethod
    async def get_order(self, po_id: int) -> PurchaseOrder | None:
        """Get order with its lines."""
        pass

    @abstractmethod
    async def get_order_by_number(self, po_number: str) -> PurchaseOrder | None:
        pass

    @abstractmethod
    async def update_order(self, order: PurchaseOrder) -> PurchaseOrder:
        """Persist header fields (status, dates, supplier, notes, total, guard flag)."""
        pass

    @abstractmethod
    async def delete_order(self, po_id: int) -> bool:
        pass

    @abstractmethod
    async def list_orders(
        self,
        status: PurchaseOrderStatus | None = None,
        limit: int = 100,
        offset: int = 0,
    ) -> list[PurchaseOrder]:
        """List orders, newest first, with their lines."""
        pass

    @abstractmethod
    async def add_line(self, line: PurchaseOrderItem) -> PurchaseOrderItem:
        pass

    @abstractmethod
    async def update_line(self, line: PurchaseOrderItem) -> PurchaseOrderItem:
        pass

    @abstractmethod
    async def delete_line(self, line_id: int) -> bool:
        pass

    @abstractmethod
    async def count_lines_for_item(self, item_id: int, open_only: bool = False) -> int:
        """Count order lines referencing an item; ``open_only`` skips received, completed and cancelled orders."""
        pass

    @abstractmethod
    async def last_order_number(self, prefix: str) -> str | None:
        """Highest order number starting with ``prefix``, or None."""
        pass


class IReconciliationStore(ABC):
    """Queue of bookkeeping entries awaiting manual or scheduled retry."""

    @abstractmethod
    async def enqueue(self, task: ReconciliationTask) -> ReconciliationTask:
        pass

    @abstractmethod
    async def get_task(self, task_id: int) -> ReconciliationTask | None:
        pass

    @abstractmethod
    async def list_tasks(
        self,
        status: ReconciliationStatus | None = None,
        limit: int = 100,
        offset: int = 0,
    ) -> list[ReconciliationTask]:
        """List tasks, oldest first."""
        pass

    @abstractmethod
    async def update_task(self, task: ReconciliationTask) -> ReconciliationTask:
        pass


class ILedgerSession(ABC):
    """Bundle of stores sharing one connection."""

    items: IInventoryStore
    events: IReplenishmentStore
    orders: IPurchaseOrderStore
    reconciliation: IReconciliationStore


class IUnitOfWork(ABC):
    """Factory for ledger sessions."""

    @abstractmethod
    def transaction(self) -> AbstractAsyncContextManager[ILedgerSession]:
        """
        Open a write session.

        The session holds the database write lock until it exits; it commits
        on normal exit and rolls back on any exception.
        """
        pass

    @abstractmethod
    def read(self) -> AbstractAsyncContextManager[ILedgerSession]:
        """Open a read-only session."""
        pass
