"""SQLite implementation of the bookkeeping reconciliation queue."""

import aiosqlite

from src.core.entities.bookkeeping import (
    BookkeepingEntry,
    ReconciliationStatus,
    ReconciliationTask,
)
from src.core.exceptions import DatabaseError
from src.core.interfaces.persistence import IReconciliationStore
from src.infrastructure.storage.sqlite.rows import parse_date, parse_datetime, parse_decimal


class SQLiteReconciliationStore(IReconciliationStore):
    """Reconciliation tasks, bound to one connection."""

    def __init__(self, conn: aiosqlite.Connection):
        self._conn = conn

    async def enqueue(self, task: ReconciliationTask) -> ReconciliationTask:
        try:
            cursor = await self._conn.execute(
                """
                INSERT INTO reconciliation_tasks (
                    event_id, reference_id, category, amount, entry_date, memo,
                    status, attempts, last_error, resolved_entry_id, created_at, updated_at
                ) VALUES (?, ?, ?, ?, ?, ?, ?, ?, ?, ?, ?, ?)
                """,
                (
                    task.event_id,
                    task.entry.reference_id,
                    task.entry.category,
                    str(task.entry.amount),
                    task.entry.entry_date.isoformat(),
                    task.entry.memo,
                    task.status.value,
                    task.attempts,
                    task.last_error,
                    task.resolved_entry_id,
                    task.created_at.isoformat(),
                    task.updated_at.isoformat(),
                ),
            )
        except aiosqlite.IntegrityError as e:
            raise DatabaseError("enqueue_reconciliation", str(e)) from e
        task.id = cursor.lastrowid
        return task

    async def get_task(self, task_id: int) -> ReconciliationTask | None:
        cursor = await self._conn.execute(
            "SELECT * FROM reconciliation_tasks WHERE id = ?", (task_id,)
        )
        row = await cursor.fetchone()
        return self._row_to_task(row) if row else None

    async def list_tasks(
        self,
        status: ReconciliationStatus | None = None,
        limit: int = 100,
        offset: int = 0,
    ) -> list[ReconciliationTask]:
        cursor = await self._conn.execute(
            """
            SELECT * FROM reconciliation_tasks
            WHERE (? IS NULL OR status = ?)
            ORDER BY id ASC
            LIMIT ? OFFSET ?
            """,
            (
                status.value if status else None,
                status.value if status else None,
                limit,
                offset,
            ),
        )
        rows = await cursor.fetchall()
        return [self._row_to_task(row) for row in rows]

    async def update_task(self, task: ReconciliationTask) -> ReconciliationTask:
        await self._conn.execute(
            """
            UPDATE reconciliation_tasks SET
                status = ?,
                attempts = ?,
                last_error = ?,
                resolved_entry_id = ?,
                updated_at = ?
            WHERE id = ?
            """,
            (
                task.status.value,
                task.attempts,
                task.last_error,
                task.resolved_entry_id,
                task.updated_at.isoformat(),
                task.id,
            ),
        )
        return task

    @staticmethod
    def _row_to_task(row: aiosqlite.Row) -> ReconciliationTask:
        return ReconciliationTask(
            id=row["id"],
            event_id=row["event_id"],
            entry=BookkeepingEntry(
                reference_id=row["reference_id"],
                category=row["category"],
                amount=parse_decimal(row["amount"]),
                entry_date=parse_date(row["entry_date"]),
                memo=row["memo"] or "",
            ),
            status=ReconciliationStatus(row["status"]),
            attempts=row["attempts"],
            last_error=row["last_error"],
            resolved_entry_id=row["resolved_entry_id"],
            created_at=parse_datetime(row["created_at"]),
            updated_at=parse_datetime(row["updated_at"]),
        )
