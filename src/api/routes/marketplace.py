"""Marketplace order endpoints (read-only display)."""

from fastapi import APIRouter, Depends, Query

from src.api.dependencies import get_marketplace_orders
from src.application.dto.responses import (
    ErrorResponse,
    MarketplaceOrderListResponse,
    MarketplaceOrderResponse,
)
from src.core.interfaces import IMarketplaceOrderSource

router = APIRouter(prefix="/api/marketplace", tags=["marketplace"])


@router.get(
    "/orders",
    response_model=MarketplaceOrderListResponse,
    responses={401: {"model": ErrorResponse}, 502: {"model": ErrorResponse}},
)
async def list_marketplace_orders(
    limit: int = Query(default=50, ge=1, le=200),
    offset: int = Query(default=0, ge=0),
    source: IMarketplaceOrderSource = Depends(get_marketplace_orders),
) -> MarketplaceOrderListResponse:
    """
    Recent marketplace sales orders.

    Returns 401 with REAUTHORIZATION_REQUIRED when the account must be
    reconnected.
    """
    orders = await source.fetch_orders(limit=limit, offset=offset)
    return MarketplaceOrderListResponse(
        orders=[MarketplaceOrderResponse.from_entity(order) for order in orders],
        total=len(orders),
        limit=limit,
        offset=offset,
    )
