"""Tests for the domain error to HTTP mapping."""

from unittest.mock import MagicMock

import pytest

from src.api.middleware.error_handler import build_error_response
from src.core.exceptions import (
    GatewayUnavailableError,
    InsufficientStockError,
    InvalidEntryError,
    InvalidQuantityError,
    InvalidTransitionError,
    OrderLockedError,
    ReauthorizationRequiredError,
    UnknownItemError,
)


def fake_request(path: str = "/api/test") -> MagicMock:
    request = MagicMock()
    request.url.path = path
    request.state.request_id = "req-1"
    return request


@pytest.mark.parametrize(
    ("exc", "status_code", "error_code"),
    [
        (InvalidQuantityError(0), 400, "INVALID_QUANTITY"),
        (UnknownItemError(7), 404, "UNKNOWN_ITEM"),
        (InsufficientStockError(7, requested=5, available=2), 409, "INSUFFICIENT_STOCK"),
        (InvalidTransitionError(1, "pending", "completed"), 409, "INVALID_TRANSITION"),
        (OrderLockedError(1, "shipped", "add item"), 409, "ORDER_LOCKED"),
        (InvalidEntryError("ref", "negative amount"), 422, "INVALID_ENTRY"),
        (GatewayUnavailableError("http", "offline"), 503, "GATEWAY_UNAVAILABLE"),
        (ReauthorizationRequiredError("ebay", "expired"), 401, "REAUTHORIZATION_REQUIRED"),
    ],
)
def test_domain_errors_map_to_status(exc, status_code, error_code):
    response = build_error_response(fake_request(), exc)

    assert response.status_code == status_code
    assert error_code.encode() in response.body


def test_unexpected_errors_are_500():
    response = build_error_response(fake_request(), RuntimeError("boom"))

    assert response.status_code == 500
    assert b"RuntimeError" in response.body
