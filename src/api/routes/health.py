"""
Health check endpoints.
"""

import time

from fastapi import APIRouter, Depends

from src.api.dependencies import get_app_settings
from src.application.dto.responses import HealthResponse, ProviderHealthResponse
from src.config import Settings, get_logger

logger = get_logger(__name__)

router = APIRouter(prefix="/api/health", tags=["health"])

# Track startup time
_start_time = time.time()


@router.get("", response_model=HealthResponse)
async def health_check(settings: Settings = Depends(get_app_settings)) -> HealthResponse:
    """
    Basic health check.

    Returns service status and uptime.
    """
    return HealthResponse(
        status="healthy",
        version=settings.app_version,
        uptime_seconds=time.time() - _start_time,
    )


@router.get("/db", response_model=HealthResponse)
async def db_health(settings: Settings = Depends(get_app_settings)) -> HealthResponse:
    """
    Database health check.

    Tests SQLite connectivity and response time.
    """
    from src.infrastructure.storage.sqlite import get_pool

    try:
        pool = await get_pool()
        start = time.time()
        async with pool.acquire() as conn:
            await conn.execute("SELECT 1")
        latency = (time.time() - start) * 1000

        db_status = ProviderHealthResponse(
            name="sqlite",
            available=True,
            latency_ms=latency,
        )

    except Exception as e:
        logger.warning("db_health_failed", error=str(e))
        db_status = ProviderHealthResponse(
            name="sqlite",
            available=False,
            error=str(e),
        )

    return HealthResponse(
        status="healthy" if db_status.available else "unhealthy",
        version=settings.app_version,
        uptime_seconds=time.time() - _start_time,
        database=db_status,
    )


@router.get("/bookkeeping", response_model=HealthResponse)
async def bookkeeping_health(settings: Settings = Depends(get_app_settings)) -> HealthResponse:
    """
    Bookkeeping backend status.

    Reports the configured backend and how many entries wait for
    reconciliation. A non-empty queue marks the service degraded.
    """
    from src.application.services import get_bookkeeping_reconciler

    try:
        reconciler = await get_bookkeeping_reconciler()
        pending = await reconciler.pending(limit=1)
        bookkeeping_status = ProviderHealthResponse(
            name=settings.bookkeeping.backend,
            available=not pending,
            error="entries waiting for reconciliation" if pending else None,
        )

    except Exception as e:
        logger.warning("bookkeeping_health_failed", error=str(e))
        bookkeeping_status = ProviderHealthResponse(
            name=settings.bookkeeping.backend,
            available=False,
            error=str(e),
        )

    return HealthResponse(
        status="healthy" if bookkeeping_status.available else "degraded",
        version=settings.app_version,
        uptime_seconds=time.time() - _start_time,
        bookkeeping=bookkeeping_status,
    )
