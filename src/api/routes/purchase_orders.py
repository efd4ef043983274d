"""Purchase order endpoints."""

from fastapi import APIRouter, Depends, Query, status

from src.api.dependencies import get_engine
from src.application.dto.requests import (
    CreatePurchaseOrderRequest,
    PurchaseOrderLineRequest,
    StatusChangeRequest,
    UpdateLineRequest,
    UpdatePurchaseOrderRequest,
)
from src.application.dto.responses import (
    ErrorResponse,
    PurchaseOrderListResponse,
    PurchaseOrderResponse,
    ReconciliationTaskResponse,
    ReplenishmentEventResponse,
    StatusChangeResponse,
)
from src.core.entities.purchase_order import PurchaseOrderItem, PurchaseOrderStatus
from src.core.services import PurchaseOrderEngine

router = APIRouter(prefix="/api/purchase-orders", tags=["purchase-orders"])


@router.post(
    "",
    response_model=PurchaseOrderResponse,
    status_code=status.HTTP_201_CREATED,
    responses={
        400: {"model": ErrorResponse},
        404: {"model": ErrorResponse},
        409: {"model": ErrorResponse},
    },
)
async def create_purchase_order(
    request: CreatePurchaseOrderRequest,
    engine: PurchaseOrderEngine = Depends(get_engine),
) -> PurchaseOrderResponse:
    """Create a pending purchase order."""
    order = await engine.create_order(
        items=[PurchaseOrderItem(**line.model_dump()) for line in request.items],
        supplier=request.supplier,
        po_number=request.po_number,
        order_date=request.order_date,
        expected_delivery=request.expected_delivery,
        notes=request.notes,
    )
    return PurchaseOrderResponse.from_entity(order)


@router.get("", response_model=PurchaseOrderListResponse)
async def list_purchase_orders(
    status_filter: PurchaseOrderStatus | None = Query(default=None, alias="status"),
    limit: int = Query(default=100, ge=1, le=500),
    offset: int = Query(default=0, ge=0),
    engine: PurchaseOrderEngine = Depends(get_engine),
) -> PurchaseOrderListResponse:
    """List purchase orders, newest first."""
    orders = await engine.list_orders(status=status_filter, limit=limit, offset=offset)
    return PurchaseOrderListResponse(
        orders=[PurchaseOrderResponse.from_entity(order) for order in orders],
        total=len(orders),
        limit=limit,
        offset=offset,
    )


@router.get(
    "/{po_id}",
    response_model=PurchaseOrderResponse,
    responses={404: {"model": ErrorResponse}},
)
async def get_purchase_order(
    po_id: int,
    engine: PurchaseOrderEngine = Depends(get_engine),
) -> PurchaseOrderResponse:
    order = await engine.get_order(po_id)
    return PurchaseOrderResponse.from_entity(order)


@router.patch(
    "/{po_id}",
    response_model=PurchaseOrderResponse,
    responses={404: {"model": ErrorResponse}, 409: {"model": ErrorResponse}},
)
async def update_purchase_order(
    po_id: int,
    request: UpdatePurchaseOrderRequest,
    engine: PurchaseOrderEngine = Depends(get_engine),
) -> PurchaseOrderResponse:
    """Change supplier, expected delivery or notes."""
    order = await engine.update_details(po_id, **request.model_dump(exclude_unset=True))
    return PurchaseOrderResponse.from_entity(order)


@router.delete(
    "/{po_id}",
    status_code=status.HTTP_204_NO_CONTENT,
    responses={404: {"model": ErrorResponse}, 409: {"model": ErrorResponse}},
)
async def delete_purchase_order(
    po_id: int,
    engine: PurchaseOrderEngine = Depends(get_engine),
) -> None:
    """Delete a pending or cancelled order."""
    await engine.delete_order(po_id)


@router.post(
    "/{po_id}/items",
    response_model=PurchaseOrderResponse,
    status_code=status.HTTP_201_CREATED,
    responses={
        400: {"model": ErrorResponse},
        404: {"model": ErrorResponse},
        409: {"model": ErrorResponse},
    },
)
async def add_line(
    po_id: int,
    request: PurchaseOrderLineRequest,
    engine: PurchaseOrderEngine = Depends(get_engine),
) -> PurchaseOrderResponse:
    order = await engine.add_item(po_id, **request.model_dump())
    return PurchaseOrderResponse.from_entity(order)


@router.patch(
    "/{po_id}/items/{line_id}",
    response_model=PurchaseOrderResponse,
    responses={
        400: {"model": ErrorResponse},
        404: {"model": ErrorResponse},
        409: {"model": ErrorResponse},
    },
)
async def update_line(
    po_id: int,
    line_id: int,
    request: UpdateLineRequest,
    engine: PurchaseOrderEngine = Depends(get_engine),
) -> PurchaseOrderResponse:
    order = await engine.update_item(po_id, line_id, **request.model_dump(exclude_unset=True))
    return PurchaseOrderResponse.from_entity(order)


@router.delete(
    "/{po_id}/items/{line_id}",
    response_model=PurchaseOrderResponse,
    responses={404: {"model": ErrorResponse}, 409: {"model": ErrorResponse}},
)
async def remove_line(
    po_id: int,
    line_id: int,
    engine: PurchaseOrderEngine = Depends(get_engine),
) -> PurchaseOrderResponse:
    order = await engine.remove_item(po_id, line_id)
    return PurchaseOrderResponse.from_entity(order)


@router.post(
    "/{po_id}/status",
    response_model=StatusChangeResponse,
    responses={
        404: {"model": ErrorResponse},
        409: {"model": ErrorResponse},
        422: {"model": ErrorResponse},
    },
)
async def change_status(
    po_id: int,
    request: StatusChangeRequest,
    engine: PurchaseOrderEngine = Depends(get_engine),
) -> StatusChangeResponse:
    """
    Move an order to another status.

    Receiving credits every line exactly once; repeating the request
    returns ``changed: false``.
    """
    result = await engine.advance_status(po_id, request.status)
    return StatusChangeResponse(
        order=PurchaseOrderResponse.from_entity(result.order),
        previous_status=result.previous_status.value,
        changed=result.changed,
        events=[ReplenishmentEventResponse.from_entity(e) for e in result.events],
        reconciliation_tasks=[
            ReconciliationTaskResponse.from_entity(t) for t in result.reconciliation_tasks
        ],
    )
