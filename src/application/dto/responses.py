"""Response DTOs for API endpoints.

Pydantic v2 models for API response serialization.
These are the ONLY contracts between core services and API layer.

Money values are Decimals and serialize as strings.
"""

from datetime import date, datetime
from decimal import Decimal

from pydantic import BaseModel, Field

from src.core.entities.bookkeeping import ReconciliationTask
from src.core.entities.inventory import InventoryItem
from src.core.entities.marketplace import MarketplaceOrder
from src.core.entities.purchase_order import PurchaseOrder, PurchaseOrderItem
from src.core.entities.replenishment import ReplenishmentEvent

# --- Inventory ---


class InventoryItemResponse(BaseModel):
    """Inventory item response DTO."""

    id: int
    kind: str
    name: str
    sku: str | None = None
    quantity: int
    unit_cost: Decimal = Field(..., description="Weighted average cost per unit")
    total_value: Decimal
    reorder_point: int
    is_active: bool
    stock_status: str
    linked_packaging_id: int | None = None
    packaging_quantity_per_unit: int = 1
    include_packaging_cost: bool = True
    last_replenished_at: date | None = None
    created_at: datetime
    updated_at: datetime

    @classmethod
    def from_entity(cls, item: InventoryItem) -> "InventoryItemResponse":
        return cls(
            id=item.id,  # type: ignore[arg-type]
            kind=item.kind.value,
            name=item.name,
            sku=item.sku,
            quantity=item.quantity,
            unit_cost=item.unit_cost,
            total_value=item.total_value,
            reorder_point=item.reorder_point,
            is_active=item.is_active,
            stock_status=item.stock_status.value,
            linked_packaging_id=item.linked_packaging_id,
            packaging_quantity_per_unit=item.packaging_quantity_per_unit,
            include_packaging_cost=item.include_packaging_cost,
            last_replenished_at=item.last_replenished_at,
            created_at=item.created_at,
            updated_at=item.updated_at,
        )


class InventoryListResponse(BaseModel):
    """Paginated inventory list response."""

    items: list[InventoryItemResponse]
    total: int
    limit: int
    offset: int


class StockLevelResponse(BaseModel):
    """Quantity and unit cost after a credit or debit."""

    item_id: int
    quantity: int
    unit_cost: Decimal


class CompositeCostResponse(BaseModel):
    """Product unit cost including allocated packaging."""

    item_id: int
    unit_cost: Decimal
    composite_unit_cost: Decimal


class ReplenishmentEventResponse(BaseModel):
    """Replenishment (stock-in) event response DTO."""

    id: str
    inventory_item_id: int
    quantity: int
    batch_cost: Decimal
    batch_unit_cost: Decimal
    shipping: Decimal
    vat: Decimal
    event_date: date
    source_purchase_order_item_id: int | None = None
    bookkeeping_entry_id: str | None = None
    invoice_link: str | None = None
    comments: str | None = None
    recorded_at: datetime

    @classmethod
    def from_entity(cls, event: ReplenishmentEvent) -> "ReplenishmentEventResponse":
        return cls(
            id=event.id,
            inventory_item_id=event.inventory_item_id,
            quantity=event.quantity,
            batch_cost=event.batch_cost,
            batch_unit_cost=event.batch_unit_cost,
            shipping=event.shipping,
            vat=event.vat,
            event_date=event.event_date,
            source_purchase_order_item_id=event.source_purchase_order_item_id,
            bookkeeping_entry_id=event.bookkeeping_entry_id,
            invoice_link=event.invoice_link,
            comments=event.comments,
            recorded_at=event.recorded_at,
        )


# --- Purchase Orders ---


class PurchaseOrderLineResponse(BaseModel):
    """Purchase order line response DTO."""

    id: int
    packaging_item_id: int
    quantity: int
    unit_cost: Decimal
    total_cost: Decimal
    supplier: str | None = None
    notes: str | None = None

    @classmethod
    def from_entity(cls, line: PurchaseOrderItem) -> "PurchaseOrderLineResponse":
        return cls(
            id=line.id,  # type: ignore[arg-type]
            packaging_item_id=line.packaging_item_id,
            quantity=line.quantity,
            unit_cost=line.unit_cost,
            total_cost=line.total_cost,
            supplier=line.supplier,
            notes=line.notes,
        )


class PurchaseOrderResponse(BaseModel):
    """Purchase order response DTO."""

    id: int
    po_number: str
    status: str
    supplier: str | None = None
    order_date: date
    expected_delivery: date | None = None
    actual_delivery: date | None = None
    notes: str | None = None
    total_cost: Decimal
    received_side_effects_applied: bool
    items: list[PurchaseOrderLineResponse] = Field(default_factory=list)
    created_at: datetime
    updated_at: datetime

    @classmethod
    def from_entity(cls, order: PurchaseOrder) -> "PurchaseOrderResponse":
        return cls(
            id=order.id,  # type: ignore[arg-type]
            po_number=order.po_number,
            status=order.status.value,
            supplier=order.supplier,
            order_date=order.order_date,
            expected_delivery=order.expected_delivery,
            actual_delivery=order.actual_delivery,
            notes=order.notes,
            total_cost=order.total_cost,
            received_side_effects_applied=order.received_side_effects_applied,
            items=[PurchaseOrderLineResponse.from_entity(line) for line in order.items],
            created_at=order.created_at,
            updated_at=order.updated_at,
        )


class PurchaseOrderListResponse(BaseModel):
    """Paginated purchase order list response."""

    orders: list[PurchaseOrderResponse]
    total: int
    limit: int
    offset: int


class ReconciliationTaskResponse(BaseModel):
    """Queued bookkeeping entry response DTO."""

    id: int
    event_id: str
    reference_id: str
    category: str
    amount: Decimal
    entry_date: date
    memo: str
    status: str
    attempts: int
    last_error: str | None = None
    resolved_entry_id: str | None = None
    created_at: datetime
    updated_at: datetime

    @classmethod
    def from_entity(cls, task: ReconciliationTask) -> "ReconciliationTaskResponse":
        return cls(
            id=task.id,  # type: ignore[arg-type]
            event_id=task.event_id,
            reference_id=task.entry.reference_id,
            category=task.entry.category,
            amount=task.entry.amount,
            entry_date=task.entry.entry_date,
            memo=task.entry.memo,
            status=task.status.value,
            attempts=task.attempts,
            last_error=task.last_error,
            resolved_entry_id=task.resolved_entry_id,
            created_at=task.created_at,
            updated_at=task.updated_at,
        )


class StatusChangeResponse(BaseModel):
    """Result of a status change request."""

    order: PurchaseOrderResponse
    previous_status: str
    changed: bool = Field(..., description="False when the request was a no-op")
    events: list[ReplenishmentEventResponse] = Field(default_factory=list)
    reconciliation_tasks: list[ReconciliationTaskResponse] = Field(default_factory=list)


# --- Reconciliation ---


class ReconciliationListResponse(BaseModel):
    tasks: list[ReconciliationTaskResponse]
    total: int


class ReconciliationRunResponse(BaseModel):
    """Summary of a reconciliation retry run."""

    attempted: int
    resolved: int
    failed: int
    tasks: list[ReconciliationTaskResponse] = Field(default_factory=list)


# --- Marketplace ---


class MarketplaceOrderLineResponse(BaseModel):
    line_item_id: str
    title: str
    sku: str | None = None
    quantity: int
    total: Decimal


class MarketplaceOrderResponse(BaseModel):
    """Marketplace sales order (read-only)."""

    order_id: str
    created_at: datetime | None = None
    status: str | None = None
    buyer: str | None = None
    total: Decimal
    currency: str
    lines: list[MarketplaceOrderLineResponse] = Field(default_factory=list)

    @classmethod
    def from_entity(cls, order: MarketplaceOrder) -> "MarketplaceOrderResponse":
        return cls(
            order_id=order.order_id,
            created_at=order.created_at,
            status=order.status,
            buyer=order.buyer,
            total=order.total,
            currency=order.currency,
            lines=[MarketplaceOrderLineResponse(**line.model_dump()) for line in order.lines],
        )


class MarketplaceOrderListResponse(BaseModel):
    orders: list[MarketplaceOrderResponse]
    total: int
    limit: int
    offset: int


# --- Health / Errors ---


class ProviderHealthResponse(BaseModel):
    """Provider health status."""

    name: str
    available: bool
    latency_ms: float | None = None
    error: str | None = None


class HealthResponse(BaseModel):
    """Health check response."""

    status: str
    version: str = "1.0.0"
    uptime_seconds: float
    database: ProviderHealthResponse | None = None
    bookkeeping: ProviderHealthResponse | None = None


class ErrorResponse(BaseModel):
    """Standardized error response DTO.

    Every error response includes:
    - error_code: machine-readable code (e.g. ORDER_NOT_FOUND)
    - message: human-readable description
    - hint: suggested recovery action
    - path: request path that triggered the error
    """

    error_code: str = Field(..., description="Machine-readable error code")
    message: str = Field(..., description="Human-readable error description")
    hint: str | None = Field(default=None, description="Suggested recovery action")
    detail: str | None = Field(default=None, description="Additional details")
    details: dict | None = Field(default=None, description="Structured error context")
    path: str | None = Field(default=None, description="Request path")
    timestamp: datetime = Field(default_factory=datetime.now)
