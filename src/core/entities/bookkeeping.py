"""Bookkeeping entries and the manual reconciliation queue."""

from datetime import date, datetime
from decimal import Decimal
from enum import Enum

from pydantic import BaseModel, Field


class BookkeepingEntry(BaseModel):
    """
    Expense entry sent to the bookkeeping gateway.

    ``reference_id`` is the idempotency key: recording the same reference twice
    yields the same entry id.
    """

    reference_id: str
    category: str
    amount: Decimal
    entry_date: date = Field(default_factory=date.today)
    memo: str = ""


class ReconciliationStatus(str, Enum):
    PENDING = "pending"
    RESOLVED = "resolved"


class ReconciliationTask(BaseModel):
    """A bookkeeping entry that could not be recorded after all retries."""

    id: int | None = None
    event_id: str  # ReplenishmentEvent.id
    entry: BookkeepingEntry
    status: ReconciliationStatus = ReconciliationStatus.PENDING
    attempts: int = 0
    last_error: str | None = None
    resolved_entry_id: str | None = None
    created_at: datetime = Field(default_factory=datetime.utcnow)
    updated_at: datetime = Field(default_factory=datetime.utcnow)

    @property
    def is_pending(self) -> bool:
        return self.status == ReconciliationStatus.PENDING
