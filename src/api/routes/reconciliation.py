"""Bookkeeping reconciliation queue endpoints."""

from fastapi import APIRouter, Depends, Query

from src.api.dependencies import get_reconciler
from src.application.dto.requests import ResolveTaskRequest, RetryReconciliationRequest
from src.application.dto.responses import (
    ErrorResponse,
    ReconciliationListResponse,
    ReconciliationRunResponse,
    ReconciliationTaskResponse,
)
from src.core.entities.bookkeeping import ReconciliationStatus
from src.core.services import BookkeepingReconciler

router = APIRouter(prefix="/api/reconciliation", tags=["reconciliation"])


@router.get("", response_model=ReconciliationListResponse)
async def list_tasks(
    status_filter: ReconciliationStatus | None = Query(
        default=ReconciliationStatus.PENDING, alias="status"
    ),
    limit: int = Query(default=100, ge=1, le=500),
    offset: int = Query(default=0, ge=0),
    reconciler: BookkeepingReconciler = Depends(get_reconciler),
) -> ReconciliationListResponse:
    """List queued bookkeeping entries (pending by default)."""
    tasks = await reconciler.list_tasks(status=status_filter, limit=limit, offset=offset)
    return ReconciliationListResponse(
        tasks=[ReconciliationTaskResponse.from_entity(task) for task in tasks],
        total=len(tasks),
    )


@router.post("/retry", response_model=ReconciliationRunResponse)
async def retry_pending(
    request: RetryReconciliationRequest | None = None,
    reconciler: BookkeepingReconciler = Depends(get_reconciler),
) -> ReconciliationRunResponse:
    """Re-send pending entries to the bookkeeping gateway."""
    limit = request.limit if request else 50
    report = await reconciler.retry_pending(limit=limit)
    return ReconciliationRunResponse(
        attempted=report.attempted,
        resolved=report.resolved,
        failed=report.failed,
        tasks=[ReconciliationTaskResponse.from_entity(task) for task in report.tasks],
    )


@router.post(
    "/{task_id}/resolve",
    response_model=ReconciliationTaskResponse,
    responses={400: {"model": ErrorResponse}, 404: {"model": ErrorResponse}},
)
async def resolve_task(
    task_id: int,
    request: ResolveTaskRequest,
    reconciler: BookkeepingReconciler = Depends(get_reconciler),
) -> ReconciliationTaskResponse:
    """Resolve a task with an entry that was recorded by hand."""
    task = await reconciler.resolve(task_id, request.entry_id)
    return ReconciliationTaskResponse.from_entity(task)
