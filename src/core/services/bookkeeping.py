"""
Bookkeeping Dispatcher.

Sends expense entries to the bookkeeping gateway with bounded retries.
Transient gateway failures are retried with exponential backoff; a rejected
entry fails immediately. When retries run out the caller gets no entry id and
is expected to queue the entry for reconciliation.
"""

from dataclasses import dataclass
from typing import Any

from tenacity import (
    RetryCallState,
    retry,
    retry_if_exception_type,
    stop_after_attempt,
    wait_exponential,
)

from src.config import get_logger
from src.core.entities.bookkeeping import BookkeepingEntry
from src.core.exceptions import GatewayUnavailableError
from src.core.interfaces.bookkeeping import IBookkeepingGateway

logger = get_logger(__name__)


@dataclass
class DispatchOutcome:
    """Result of delivering one entry."""

    reference_id: str
    entry_id: str | None
    attempts: int
    error: str | None = None

    @property
    def recorded(self) -> bool:
        return self.entry_id is not None


class BookkeepingDispatcher:
    """Retrying front for an ``IBookkeepingGateway``."""

    def __init__(
        self,
        gateway: IBookkeepingGateway,
        max_attempts: int = 3,
        retry_delay: float = 0.5,
        retry_multiplier: float = 2.0,
    ):
        self._gateway = gateway
        self._max_attempts = max(1, max_attempts)
        self._retry_delay = retry_delay
        self._retry_multiplier = retry_multiplier

    @property
    def gateway_name(self) -> str:
        return getattr(self._gateway, "name", type(self._gateway).__name__)

    def _get_retry_decorator(self) -> Any:
        """Get tenacity retry decorator with current settings."""
        return retry(
            stop=stop_after_attempt(self._max_attempts),
            wait=wait_exponential(
                multiplier=self._retry_delay,
                min=self._retry_delay,
                max=self._retry_delay * (self._retry_multiplier**3),
                exp_base=self._retry_multiplier,
            ),
            retry=retry_if_exception_type(GatewayUnavailableError),
            before_sleep=self._log_retry,
            reraise=True,
        )

    @staticmethod
    def _log_retry(retry_state: RetryCallState) -> None:
        """Log retry attempts."""
        logger.warning(
            "bookkeeping_retry",
            attempt=retry_state.attempt_number,
            error=str(retry_state.outcome.exception()) if retry_state.outcome else None,
        )

    async def deliver(self, entry: BookkeepingEntry) -> DispatchOutcome:
        """
        Record ``entry``, retrying transient failures.

        Raises:
            InvalidEntryError: The gateway rejected the entry
        """
        attempts = 0

        async def _record() -> str:
            nonlocal attempts
            attempts += 1
            return await self._gateway.record(entry)

        try:
            entry_id = await self._get_retry_decorator()(_record)()
        except GatewayUnavailableError as e:
            logger.error(
                "bookkeeping_retries_exhausted",
                gateway=self.gateway_name,
                reference_id=entry.reference_id,
                attempts=attempts,
                error=e.message,
            )
            return DispatchOutcome(
                reference_id=entry.reference_id,
                entry_id=None,
                attempts=attempts,
                error=e.message,
            )

        logger.info(
            "bookkeeping_entry_recorded",
            gateway=self.gateway_name,
            reference_id=entry.reference_id,
            entry_id=entry_id,
            amount=entry.amount,
            attempts=attempts,
        )
        return DispatchOutcome(reference_id=entry.reference_id, entry_id=entry_id, attempts=attempts)
