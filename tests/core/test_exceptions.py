"""Unit tests for domain exceptions."""

from decimal import Decimal

import pytest

from src.core.exceptions import (
    BookkeepingError,
    DuplicateBookkeepingLinkError,
    GatewayUnavailableError,
    InsufficientStockError,
    InvalidCostError,
    InvalidEntryError,
    InvalidQuantityError,
    InvalidTransitionError,
    LedgerError,
    MarketplaceRequestError,
    OrderLockedError,
    OrderNotFoundError,
    PurchaseOrderError,
    ReauthorizationRequiredError,
    StockroomError,
    StorageError,
    UnknownItemError,
    ValidationError,
)


class TestStockroomError:
    """Tests for base StockroomError exception."""

    def test_basic_initialization(self):
        error = StockroomError("Something went wrong")
        assert str(error) == "Something went wrong"
        assert error.message == "Something went wrong"
        assert error.code == "StockroomError"
        assert error.details == {}
        assert error.retryable is False

    def test_with_custom_code(self):
        error = StockroomError("Error message", code="CUSTOM_ERROR")
        assert error.code == "CUSTOM_ERROR"

    def test_to_dict(self):
        error = StockroomError("Test error", code="TEST_CODE", details={"extra": "info"})
        assert error.to_dict() == {
            "error": "TEST_CODE",
            "message": "Test error",
            "details": {"extra": "info"},
            "retryable": False,
        }


class TestValidationErrors:
    def test_validation_error(self):
        error = ValidationError("name", "name is required", "")
        assert error.code == "VALIDATION_ERROR"
        assert error.details["field"] == "name"

    def test_value_is_truncated(self):
        error = ValidationError("notes", "too long", "x" * 500)
        assert len(error.details["value"]) == 100

    def test_invalid_quantity(self):
        error = InvalidQuantityError(-3, item_id=7)
        assert isinstance(error, ValidationError)
        assert error.code == "INVALID_QUANTITY"
        assert error.details["item_id"] == 7
        assert error.details["field"] == "quantity"

    def test_invalid_cost_field(self):
        error = InvalidCostError("-1", item_id=2, field="batch_cost")
        assert error.code == "INVALID_COST"
        assert error.details["field"] == "batch_cost"


class TestLedgerErrors:
    def test_unknown_item(self):
        error = UnknownItemError(42)
        assert isinstance(error, LedgerError)
        assert error.details == {"item_id": 42}

    def test_insufficient_stock_carries_levels(self):
        error = InsufficientStockError(1, requested=10, available=3)
        assert error.code == "INSUFFICIENT_STOCK"
        assert error.details == {"item_id": 1, "requested": 10, "available": 3}


class TestPurchaseOrderErrors:
    def test_not_found(self):
        error = OrderNotFoundError(9)
        assert isinstance(error, PurchaseOrderError)
        assert error.details["po_id"] == 9

    def test_invalid_transition_records_edge(self):
        error = InvalidTransitionError(3, "completed", "pending")
        assert error.code == "INVALID_TRANSITION"
        assert error.details == {"po_id": 3, "current": "completed", "requested": "pending"}
        assert "completed to pending" in error.message

    def test_invalid_transition_reason(self):
        error = InvalidTransitionError(3, "cancelled", "received", reason="order changed")
        assert error.message.endswith(": order changed")

    def test_order_locked(self):
        error = OrderLockedError(5, "shipped", "add item")
        assert error.code == "ORDER_LOCKED"
        assert error.details["operation"] == "add item"


class TestBookkeepingErrors:
    def test_gateway_unavailable_is_retryable(self):
        error = GatewayUnavailableError("http", "HTTP 503", "ref-1")
        assert isinstance(error, BookkeepingError)
        assert error.retryable is True
        assert error.details["reference_id"] == "ref-1"

    def test_invalid_entry_is_not_retryable(self):
        error = InvalidEntryError("ref-1", "negative amount", Decimal("-1.00"))
        assert error.retryable is False
        assert error.details["amount"] == "-1.00"

    def test_duplicate_link_is_storage_error(self):
        error = DuplicateBookkeepingLinkError("EXP-1", "event-1")
        assert isinstance(error, StorageError)
        assert error.details["existing_event_id"] == "event-1"


class TestMarketplaceErrors:
    def test_reauthorization_required(self):
        error = ReauthorizationRequiredError("ebay", "refresh token expired")
        assert error.code == "REAUTHORIZATION_REQUIRED"
        assert "reconnected" in error.message

    @pytest.mark.parametrize(
        ("status_code", "retryable"),
        [(None, True), (500, True), (503, True), (400, False), (404, False)],
    )
    def test_request_error_retryable_by_status(self, status_code, retryable):
        error = MarketplaceRequestError("fetch orders", "failed", status_code=status_code)
        assert error.retryable is retryable
