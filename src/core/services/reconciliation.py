"""
Bookkeeping Reconciler.

Drains the queue of bookkeeping entries whose gateway calls ran out of
retries. Each retry reuses the entry's reference id, so an entry that did
reach the bookkeeping system before the failure is found rather than
duplicated.
"""

from dataclasses import dataclass, field
from datetime import datetime

from src.config import get_logger
from src.core.entities.bookkeeping import ReconciliationStatus, ReconciliationTask
from src.core.exceptions import (
    InvalidEntryError,
    ReconciliationTaskNotFoundError,
    ValidationError,
)
from src.core.interfaces.persistence import IUnitOfWork
from src.core.services.bookkeeping import BookkeepingDispatcher

logger = get_logger(__name__)


@dataclass
class ReconciliationReport:
    """Summary of a ``retry_pending`` run."""

    attempted: int = 0
    resolved: int = 0
    failed: int = 0
    tasks: list[ReconciliationTask] = field(default_factory=list)


class BookkeepingReconciler:
    """Retries or manually resolves queued bookkeeping entries."""

    def __init__(self, uow: IUnitOfWork, dispatcher: BookkeepingDispatcher):
        self._uow = uow
        self._dispatcher = dispatcher

    async def pending(self, limit: int = 100) -> list[ReconciliationTask]:
        """Tasks still waiting for an entry id, oldest first."""
        return await self.list_tasks(ReconciliationStatus.PENDING, limit=limit)

    async def list_tasks(
        self,
        status: ReconciliationStatus | None = None,
        limit: int = 100,
        offset: int = 0,
    ) -> list[ReconciliationTask]:
        async with self._uow.read() as session:
            return await session.reconciliation.list_tasks(status=status, limit=limit, offset=offset)

    async def retry_pending(self, limit: int = 50) -> ReconciliationReport:
        """
        Re-send up to ``limit`` pending entries.

        A task is resolved when the gateway returns an entry id. Otherwise its
        attempt count and last error are updated and it stays pending.
        """
        report = ReconciliationReport()

        for task in await self.pending(limit=limit):
            report.attempted += 1
            try:
                outcome = await self._dispatcher.deliver(task.entry)
                task.attempts += outcome.attempts
                task.last_error = outcome.error
                entry_id = outcome.entry_id
            except InvalidEntryError as e:
                task.attempts += 1
                task.last_error = e.message
                entry_id = None
                logger.error(
                    "reconciliation_entry_rejected",
                    task_id=task.id,
                    event_id=task.event_id,
                    error=e.message,
                )

            if entry_id is not None:
                task.status = ReconciliationStatus.RESOLVED
                task.resolved_entry_id = entry_id
                report.resolved += 1
            else:
                report.failed += 1

            task.updated_at = datetime.utcnow()
            async with self._uow.transaction() as session:
                task = await session.reconciliation.update_task(task)
            report.tasks.append(task)

        logger.info(
            "reconciliation_run_complete",
            attempted=report.attempted,
            resolved=report.resolved,
            failed=report.failed,
        )
        return report

    async def resolve(self, task_id: int, entry_id: str) -> ReconciliationTask:
        """Mark a task resolved with an entry that was recorded by hand."""
        entry_id = (entry_id or "").strip()
        if not entry_id:
            raise ValidationError("entry_id", "entry id is required", entry_id)

        async with self._uow.transaction() as session:
            task = await session.reconciliation.get_task(task_id)
            if task is None:
                raise ReconciliationTaskNotFoundError(task_id)
            if not task.is_pending:
                raise ValidationError("task_id", "task is already resolved", task_id)

            task.status = ReconciliationStatus.RESOLVED
            task.resolved_entry_id = entry_id
            task.updated_at = datetime.utcnow()
            task = await session.reconciliation.update_task(task)

        logger.info("reconciliation_task_resolved", task_id=task_id, entry_id=entry_id, manual=True)
        return task
