"""Data Transfer Objects for API layer.

Request DTOs: Validate and parse incoming API requests.
Response DTOs: Structure and serialize API responses.

These are the ONLY contracts between API handlers and core services.
"""

from src.application.dto.requests import (
    CreatePurchaseOrderRequest,
    DebitRequest,
    DefineItemRequest,
    PurchaseOrderLineRequest,
    RecordReplenishmentRequest,
    ResolveTaskRequest,
    RetryReconciliationRequest,
    StatusChangeRequest,
    UpdateItemRequest,
    UpdateLineRequest,
    UpdatePurchaseOrderRequest,
)
from src.application.dto.responses import (
    CompositeCostResponse,
    ErrorResponse,
    HealthResponse,
    InventoryItemResponse,
    InventoryListResponse,
    MarketplaceOrderListResponse,
    MarketplaceOrderResponse,
    ProviderHealthResponse,
    PurchaseOrderLineResponse,
    PurchaseOrderListResponse,
    PurchaseOrderResponse,
    ReconciliationListResponse,
    ReconciliationRunResponse,
    ReconciliationTaskResponse,
    ReplenishmentEventResponse,
    StatusChangeResponse,
    StockLevelResponse,
)

__all__ = [
    # Requests
    "DefineItemRequest",
    "UpdateItemRequest",
    "DebitRequest",
    "RecordReplenishmentRequest",
    "PurchaseOrderLineRequest",
    "CreatePurchaseOrderRequest",
    "UpdatePurchaseOrderRequest",
    "UpdateLineRequest",
    "StatusChangeRequest",
    "RetryReconciliationRequest",
    "ResolveTaskRequest",
    # Responses
    "InventoryItemResponse",
    "InventoryListResponse",
    "StockLevelResponse",
    "CompositeCostResponse",
    "ReplenishmentEventResponse",
    "PurchaseOrderLineResponse",
    "PurchaseOrderResponse",
    "PurchaseOrderListResponse",
    "StatusChangeResponse",
    "ReconciliationTaskResponse",
    "ReconciliationListResponse",
    "ReconciliationRunResponse",
    "MarketplaceOrderResponse",
    "MarketplaceOrderListResponse",
    "ProviderHealthResponse",
    "HealthResponse",
    "ErrorResponse",
]
