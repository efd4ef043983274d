"""
Domain exceptions for the Stockroom application.

Provides specific exception types for different error scenarios. Every error
carries enough identifiers in ``details`` (item ID, PO ID, attempted
transition) to support manual reconciliation.
"""

from decimal import Decimal
from typing import Any


class StockroomError(Exception):
    """Base exception for all Stockroom errors."""

    retryable: bool = False

    def __init__(
        self,
        message: str,
        code: str | None = None,
        details: dict[str, Any] | None = None,
    ):
        super().__init__(message)
        self.message = message
        self.code = code or self.__class__.__name__
        self.details = details or {}

    def to_dict(self) -> dict:
        """Convert to dictionary for API responses."""
        return {
            "error": self.code,
            "message": self.message,
            "details": self.details,
            "retryable": self.retryable,
        }


# Validation Exceptions
class ValidationError(StockroomError):
    """Input validation failed."""

    def __init__(self, field: str, message: str, value: Any = None):
        super().__init__(
            f"Validation error for '{field}': {message}",
            code="VALIDATION_ERROR",
            details={
                "field": field,
                "message": message,
                "value": str(value)[:100] if value is not None else None,
            },
        )


class InvalidQuantityError(ValidationError):
    """Quantity must be a positive whole number."""

    def __init__(self, quantity: Any, item_id: int | None = None):
        super().__init__(
            field="quantity",
            message=f"Quantity must be a positive integer, got {quantity!r}",
            value=quantity,
        )
        self.code = "INVALID_QUANTITY"
        self.details["item_id"] = item_id


class InvalidCostError(ValidationError):
    """Cost must be a non-negative amount."""

    def __init__(self, cost: Any, item_id: int | None = None, field: str = "unit_cost"):
        super().__init__(
            field=field,
            message=f"Cost must be a non-negative amount, got {cost!r}",
            value=cost,
        )
        self.code = "INVALID_COST"
        self.details["item_id"] = item_id


# Ledger Exceptions
class LedgerError(StockroomError):
    """Base exception for inventory ledger operations."""

    pass


class UnknownItemError(LedgerError):
    """Inventory item does not exist."""

    def __init__(self, item_id: int):
        super().__init__(
            f"Inventory item not found: {item_id}",
            code="UNKNOWN_ITEM",
            details={"item_id": item_id},
        )


class InsufficientStockError(LedgerError):
    """Debit would drive quantity negative."""

    def __init__(self, item_id: int, requested: int, available: int):
        super().__init__(
            f"Insufficient stock for item {item_id}: requested {requested}, available {available}",
            code="INSUFFICIENT_STOCK",
            details={"item_id": item_id, "requested": requested, "available": available},
        )


class InvalidItemKindError(LedgerError):
    """Operation requires an item of a different kind."""

    def __init__(self, item_id: int, expected: str, actual: str):
        super().__init__(
            f"Inventory item {item_id} is a {actual}, expected {expected}",
            code="INVALID_ITEM_KIND",
            details={"item_id": item_id, "expected": expected, "actual": actual},
        )


class ItemInUseError(LedgerError):
    """Item cannot be deleted while referenced."""

    def __init__(self, item_id: int, reason: str):
        super().__init__(
            f"Inventory item {item_id} is in use: {reason}",
            code="ITEM_IN_USE",
            details={"item_id": item_id, "reason": reason},
        )


# Purchase Order Exceptions
class PurchaseOrderError(StockroomError):
    """Base exception for purchase order operations."""

    pass


class OrderNotFoundError(PurchaseOrderError):
    """Purchase order not found."""

    def __init__(self, po_id: int):
        super().__init__(
            f"Purchase order not found: {po_id}",
            code="ORDER_NOT_FOUND",
            details={"po_id": po_id},
        )


class OrderLineNotFoundError(PurchaseOrderError):
    """Purchase order line not found on the given order."""

    def __init__(self, po_id: int, line_id: int):
        super().__init__(
            f"Line {line_id} not found on purchase order {po_id}",
            code="ORDER_LINE_NOT_FOUND",
            details={"po_id": po_id, "line_id": line_id},
        )


class DuplicatePurchaseOrderError(PurchaseOrderError):
    """PO number already in use."""

    def __init__(self, po_number: str):
        super().__init__(
            f"Purchase order number already exists: {po_number}",
            code="DUPLICATE_PURCHASE_ORDER",
            details={"po_number": po_number},
        )


class InvalidTransitionError(PurchaseOrderError):
    """Status change is not an allowed edge."""

    def __init__(self, po_id: int, current: str, requested: str, reason: str | None = None):
        message = f"Cannot move purchase order {po_id} from {current} to {requested}"
        if reason:
            message += f": {reason}"
        super().__init__(
            message,
            code="INVALID_TRANSITION",
            details={"po_id": po_id, "current": current, "requested": requested},
        )


class OrderLockedError(PurchaseOrderError):
    """Order no longer accepts the requested edit."""

    def __init__(self, po_id: int, status: str, operation: str):
        super().__init__(
            f"Purchase order {po_id} is {status}; {operation} is not allowed",
            code="ORDER_LOCKED",
            details={"po_id": po_id, "status": status, "operation": operation},
        )


# Storage Exceptions
class StorageError(StockroomError):
    """Base exception for storage operations."""

    pass


class DatabaseError(StorageError):
    """Database operation failed."""

    def __init__(self, operation: str, error: str):
        super().__init__(
            f"Database error during {operation}: {error}",
            code="DATABASE_ERROR",
            details={"operation": operation, "error": error},
        )


class DuplicateBookkeepingLinkError(StorageError):
    """Bookkeeping entry is already linked to another replenishment."""

    def __init__(self, entry_id: str, existing_event_id: str):
        super().__init__(
            f"Bookkeeping entry {entry_id} is already linked to replenishment {existing_event_id}",
            code="DUPLICATE_BOOKKEEPING_LINK",
            details={"entry_id": entry_id, "existing_event_id": existing_event_id},
        )


# Bookkeeping Exceptions
class BookkeepingError(StockroomError):
    """Base exception for bookkeeping gateway calls."""

    pass


class GatewayUnavailableError(BookkeepingError):
    """Bookkeeping gateway could not be reached. Safe to retry."""

    retryable = True

    def __init__(self, gateway: str, reason: str | None = None, reference_id: str | None = None):
        super().__init__(
            f"Bookkeeping gateway unavailable: {gateway}" + (f" - {reason}" if reason else ""),
            code="GATEWAY_UNAVAILABLE",
            details={"gateway": gateway, "reason": reason, "reference_id": reference_id},
        )


class InvalidEntryError(BookkeepingError):
    """Bookkeeping gateway rejected the entry. Not retryable."""

    def __init__(self, reference_id: str, reason: str, amount: Decimal | None = None):
        super().__init__(
            f"Bookkeeping entry {reference_id} rejected: {reason}",
            code="INVALID_ENTRY",
            details={
                "reference_id": reference_id,
                "reason": reason,
                "amount": str(amount) if amount is not None else None,
            },
        )


class ReconciliationTaskNotFoundError(BookkeepingError):
    """Reconciliation task not found."""

    def __init__(self, task_id: int):
        super().__init__(
            f"Reconciliation task not found: {task_id}",
            code="RECONCILIATION_TASK_NOT_FOUND",
            details={"task_id": task_id},
        )


# Marketplace Exceptions
class MarketplaceError(StockroomError):
    """Base exception for the marketplace order source."""

    pass


class ReauthorizationRequiredError(MarketplaceError):
    """Stored refresh token is missing, expired, or revoked."""

    def __init__(self, provider: str, reason: str):
        super().__init__(
            f"Marketplace account must be reconnected ({provider}): {reason}",
            code="REAUTHORIZATION_REQUIRED",
            details={"provider": provider, "reason": reason},
        )


class MarketplaceRequestError(MarketplaceError):
    """Marketplace API call failed."""

    def __init__(self, operation: str, reason: str, status_code: int | None = None):
        super().__init__(
            f"Marketplace {operation} failed: {reason}",
            code="MARKETPLACE_REQUEST_FAILED",
            details={"operation": operation, "reason": reason, "status_code": status_code},
        )
        self.retryable = status_code is None or status_code >= 500


class ConfigurationError(StockroomError):
    """Configuration error."""

    pass
