"""Request DTOs for API endpoints.

Pydantic v2 models for API request validation.
These are the ONLY contracts between API and core services.

Quantity and cost bounds are enforced again by the core services, which
raise domain errors; the checks here only reject obviously malformed input.
"""

from datetime import date
from decimal import Decimal

from pydantic import BaseModel, Field

from src.core.entities.inventory import ItemKind
from src.core.entities.purchase_order import PurchaseOrderStatus

# --- Inventory ---


class DefineItemRequest(BaseModel):
    """Request to define a new inventory item (starts at zero stock)."""

    kind: ItemKind = Field(..., description="product or packaging")
    name: str = Field(..., min_length=1, description="Display name")
    sku: str | None = Field(default=None, description="Stock-keeping unit code")
    reorder_point: int | None = Field(
        default=None,
        ge=0,
        description="Low-stock threshold (defaults to INVENTORY_DEFAULT_REORDER_POINT)",
    )
    is_active: bool = Field(default=True, description="Manual active flag")
    linked_packaging_id: int | None = Field(
        default=None, description="Packaging item consumed per unit (products only)"
    )
    packaging_quantity_per_unit: int = Field(default=1, ge=1)
    include_packaging_cost: bool = Field(
        default=True, description="Include packaging in the composite unit cost"
    )


class UpdateItemRequest(BaseModel):
    """Partial update of an item's descriptive fields.

    Quantity and unit cost are not accepted; they only change through stock
    movements.
    """

    name: str | None = Field(default=None, min_length=1)
    sku: str | None = None
    reorder_point: int | None = Field(default=None, ge=0)
    is_active: bool | None = None
    linked_packaging_id: int | None = None
    packaging_quantity_per_unit: int | None = Field(default=None, ge=1)
    include_packaging_cost: bool | None = None


class DebitRequest(BaseModel):
    """Request to remove stock from an item."""

    quantity: int = Field(..., description="Units to remove (positive integer)")


class RecordReplenishmentRequest(BaseModel):
    """Request to record a manual replenishment (stock-in event)."""

    quantity: int = Field(..., description="Units received")
    batch_cost: Decimal = Field(
        ..., description="Landed cost of the whole batch, shipping and VAT included"
    )
    shipping: Decimal = Field(default=Decimal("0"), description="Shipping share of batch_cost")
    vat: Decimal = Field(default=Decimal("0"), description="VAT share of batch_cost")
    event_date: date | None = Field(default=None, description="Defaults to today")
    bookkeeping_entry_id: str | None = Field(
        default=None, description="Link an existing bookkeeping entry"
    )
    book_expense: bool = Field(
        default=False, description="Create a new bookkeeping entry for this batch"
    )
    invoice_link: str | None = Field(default=None, description="Supplier invoice URL")
    comments: str | None = None


# --- Purchase Orders ---


class PurchaseOrderLineRequest(BaseModel):
    """One packaging line on a purchase order."""

    packaging_item_id: int = Field(..., description="Packaging inventory item ID")
    quantity: int = Field(..., description="Units ordered")
    unit_cost: Decimal = Field(..., description="Cost per unit")
    supplier: str | None = Field(default=None, description="Overrides the order's supplier")
    notes: str | None = None


class CreatePurchaseOrderRequest(BaseModel):
    """Request to create a pending purchase order."""

    po_number: str | None = Field(
        default=None,
        description="PO number (generated as <prefix>-<year>-<sequence> when omitted)",
        examples=["PO-2026-000042"],
    )
    supplier: str | None = None
    order_date: date | None = Field(default=None, description="Defaults to today")
    expected_delivery: date | None = None
    notes: str | None = None
    items: list[PurchaseOrderLineRequest] = Field(default_factory=list)


class UpdatePurchaseOrderRequest(BaseModel):
    """Partial update of a purchase order's descriptive fields."""

    supplier: str | None = None
    expected_delivery: date | None = None
    notes: str | None = None


class UpdateLineRequest(BaseModel):
    """Partial update of a purchase order line."""

    packaging_item_id: int | None = None
    quantity: int | None = None
    unit_cost: Decimal | None = None
    supplier: str | None = None
    notes: str | None = None


class StatusChangeRequest(BaseModel):
    """Request to move a purchase order to another status."""

    status: PurchaseOrderStatus = Field(..., description="Target status")


# --- Reconciliation ---


class RetryReconciliationRequest(BaseModel):
    """Request to re-send pending bookkeeping entries."""

    limit: int = Field(default=50, ge=1, le=500, description="Max tasks to retry")


class ResolveTaskRequest(BaseModel):
    """Request to resolve a task with an entry recorded by hand."""

    entry_id: str = Field(..., min_length=1, description="Bookkeeping entry ID")
