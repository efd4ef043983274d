"""Inventory management endpoints."""

from fastapi import APIRouter, Depends, Query, status

from src.api.dependencies import get_ledger, get_recorder
from src.application.dto.requests import (
    DebitRequest,
    DefineItemRequest,
    RecordReplenishmentRequest,
    UpdateItemRequest,
)
from src.application.dto.responses import (
    CompositeCostResponse,
    ErrorResponse,
    InventoryItemResponse,
    InventoryListResponse,
    ReplenishmentEventResponse,
    StockLevelResponse,
)
from src.core.entities.inventory import ItemKind
from src.core.services import InventoryLedger, ReplenishmentRecorder

router = APIRouter(prefix="/api/inventory", tags=["inventory"])


@router.post(
    "",
    response_model=InventoryItemResponse,
    status_code=status.HTTP_201_CREATED,
    responses={400: {"model": ErrorResponse}, 404: {"model": ErrorResponse}},
)
async def define_item(
    request: DefineItemRequest,
    ledger: InventoryLedger = Depends(get_ledger),
) -> InventoryItemResponse:
    """Define a product or packaging item with zero stock."""
    item = await ledger.define_item(**request.model_dump())
    return InventoryItemResponse.from_entity(item)


@router.get("", response_model=InventoryListResponse)
async def list_items(
    kind: ItemKind | None = None,
    limit: int = Query(default=100, ge=1, le=500),
    offset: int = Query(default=0, ge=0),
    ledger: InventoryLedger = Depends(get_ledger),
) -> InventoryListResponse:
    """List inventory items, optionally filtered by kind."""
    items = await ledger.list_items(kind=kind, limit=limit, offset=offset)
    return InventoryListResponse(
        items=[InventoryItemResponse.from_entity(item) for item in items],
        total=len(items),
        limit=limit,
        offset=offset,
    )


@router.get("/low-stock", response_model=InventoryListResponse)
async def list_low_stock(
    kind: ItemKind | None = None,
    limit: int = Query(default=100, ge=1, le=500),
    offset: int = Query(default=0, ge=0),
    ledger: InventoryLedger = Depends(get_ledger),
) -> InventoryListResponse:
    """List items below their reorder point."""
    items = await ledger.list_low_stock(kind=kind, limit=limit, offset=offset)
    return InventoryListResponse(
        items=[InventoryItemResponse.from_entity(item) for item in items],
        total=len(items),
        limit=limit,
        offset=offset,
    )


@router.get(
    "/{item_id}",
    response_model=InventoryItemResponse,
    responses={404: {"model": ErrorResponse}},
)
async def get_item(
    item_id: int,
    ledger: InventoryLedger = Depends(get_ledger),
) -> InventoryItemResponse:
    item = await ledger.get_item(item_id)
    return InventoryItemResponse.from_entity(item)


@router.patch(
    "/{item_id}",
    response_model=InventoryItemResponse,
    responses={400: {"model": ErrorResponse}, 404: {"model": ErrorResponse}},
)
async def update_item(
    item_id: int,
    request: UpdateItemRequest,
    ledger: InventoryLedger = Depends(get_ledger),
) -> InventoryItemResponse:
    """Change descriptive fields. Quantity and cost are not editable here."""
    item = await ledger.update_item_details(item_id, **request.model_dump(exclude_unset=True))
    return InventoryItemResponse.from_entity(item)


@router.delete(
    "/{item_id}",
    status_code=status.HTTP_204_NO_CONTENT,
    responses={404: {"model": ErrorResponse}, 409: {"model": ErrorResponse}},
)
async def delete_item(
    item_id: int,
    ledger: InventoryLedger = Depends(get_ledger),
) -> None:
    """Delete an item with no history, order lines or linked products."""
    await ledger.delete_item(item_id)


@router.get(
    "/{item_id}/composite-cost",
    response_model=CompositeCostResponse,
    responses={400: {"model": ErrorResponse}, 404: {"model": ErrorResponse}},
)
async def get_composite_cost(
    item_id: int,
    ledger: InventoryLedger = Depends(get_ledger),
) -> CompositeCostResponse:
    """Product unit cost including its allocated packaging."""
    composite = await ledger.composite_unit_cost(item_id)
    item = await ledger.get_item(item_id)
    return CompositeCostResponse(
        item_id=item_id,
        unit_cost=item.unit_cost,
        composite_unit_cost=composite,
    )


@router.post(
    "/{item_id}/debit",
    response_model=StockLevelResponse,
    responses={
        400: {"model": ErrorResponse},
        404: {"model": ErrorResponse},
        409: {"model": ErrorResponse},
    },
)
async def debit_stock(
    item_id: int,
    request: DebitRequest,
    ledger: InventoryLedger = Depends(get_ledger),
) -> StockLevelResponse:
    """Remove stock. Unit cost is unchanged."""
    quantity, unit_cost = await ledger.debit(item_id, request.quantity)
    return StockLevelResponse(item_id=item_id, quantity=quantity, unit_cost=unit_cost)


@router.post(
    "/{item_id}/replenishments",
    response_model=ReplenishmentEventResponse,
    status_code=status.HTTP_201_CREATED,
    responses={
        400: {"model": ErrorResponse},
        404: {"model": ErrorResponse},
        409: {"model": ErrorResponse},
        422: {"model": ErrorResponse},
    },
)
async def record_replenishment(
    item_id: int,
    request: RecordReplenishmentRequest,
    recorder: ReplenishmentRecorder = Depends(get_recorder),
) -> ReplenishmentEventResponse:
    """Record a manual stock-in event and credit the item."""
    event = await recorder.record(item_id, **request.model_dump())
    return ReplenishmentEventResponse.from_entity(event)


@router.get(
    "/{item_id}/replenishments",
    response_model=list[ReplenishmentEventResponse],
    responses={404: {"model": ErrorResponse}},
)
async def get_replenishment_history(
    item_id: int,
    recorder: ReplenishmentRecorder = Depends(get_recorder),
) -> list[ReplenishmentEventResponse]:
    """Replenishment history for an item, oldest first."""
    events = await recorder.history(item_id)
    return [ReplenishmentEventResponse.from_entity(event) for event in events]
