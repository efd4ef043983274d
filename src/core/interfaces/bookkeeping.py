"""Abstract interface for the bookkeeping gateway."""

from abc import ABC, abstractmethod

from src.core.entities.bookkeeping import BookkeepingEntry


class IBookkeepingGateway(ABC):
    """
    Records expense entries in the bookkeeping system.

    Implementations must be idempotent on ``entry.reference_id``: recording an
    entry whose reference already exists returns the existing entry id.
    """

    name: str = "bookkeeping"

    @abstractmethod
    async def record(self, entry: BookkeepingEntry) -> str:
        """
        Record an expense entry.

        Returns:
            Entry id assigned by the bookkeeping system

        Raises:
            GatewayUnavailableError: Transient failure, safe to retry
            InvalidEntryError: Entry rejected, retrying will not help
        """
        pass

    async def close(self) -> None:
        """Release gateway resources."""
        return None
