"""
Error handling middleware.

Standardizes all API error responses to include:
- error_code: machine-readable identifier
- message: human-readable description
- hint: suggested recovery action
"""

import traceback
from collections.abc import Awaitable, Callable

from fastapi import FastAPI, Request, status
from fastapi.responses import JSONResponse
from starlette.middleware.base import BaseHTTPMiddleware
from starlette.responses import Response

from src.application.dto.responses import ErrorResponse
from src.config import get_logger
from src.core.exceptions import (
    ConfigurationError,
    DuplicateBookkeepingLinkError,
    DuplicatePurchaseOrderError,
    GatewayUnavailableError,
    InsufficientStockError,
    InvalidEntryError,
    InvalidItemKindError,
    InvalidTransitionError,
    ItemInUseError,
    MarketplaceRequestError,
    OrderLineNotFoundError,
    OrderLockedError,
    OrderNotFoundError,
    ReauthorizationRequiredError,
    ReconciliationTaskNotFoundError,
    StockroomError,
    StorageError,
    UnknownItemError,
    ValidationError,
)

logger = get_logger(__name__)


# Map exceptions to HTTP status codes (first isinstance match wins)
EXCEPTION_STATUS_MAP: dict[type[Exception], int] = {
    ValidationError: status.HTTP_400_BAD_REQUEST,
    InvalidItemKindError: status.HTTP_400_BAD_REQUEST,
    UnknownItemError: status.HTTP_404_NOT_FOUND,
    OrderNotFoundError: status.HTTP_404_NOT_FOUND,
    OrderLineNotFoundError: status.HTTP_404_NOT_FOUND,
    ReconciliationTaskNotFoundError: status.HTTP_404_NOT_FOUND,
    InsufficientStockError: status.HTTP_409_CONFLICT,
    InvalidTransitionError: status.HTTP_409_CONFLICT,
    OrderLockedError: status.HTTP_409_CONFLICT,
    ItemInUseError: status.HTTP_409_CONFLICT,
    DuplicatePurchaseOrderError: status.HTTP_409_CONFLICT,
    DuplicateBookkeepingLinkError: status.HTTP_409_CONFLICT,
    InvalidEntryError: status.HTTP_422_UNPROCESSABLE_ENTITY,
    GatewayUnavailableError: status.HTTP_503_SERVICE_UNAVAILABLE,
    ReauthorizationRequiredError: status.HTTP_401_UNAUTHORIZED,
    MarketplaceRequestError: status.HTTP_502_BAD_GATEWAY,
    StorageError: status.HTTP_500_INTERNAL_SERVER_ERROR,
    ConfigurationError: status.HTTP_500_INTERNAL_SERVER_ERROR,
}

# Hint messages per error code
HINT_MAP: dict[str, str] = {
    "UNKNOWN_ITEM": "Check the item ID and try GET /api/inventory to list items.",
    "ORDER_NOT_FOUND": "Check the order ID and try GET /api/purchase-orders to list orders.",
    "ORDER_LINE_NOT_FOUND": "Fetch the order to see its current line IDs.",
    "RECONCILIATION_TASK_NOT_FOUND": "Try GET /api/reconciliation to list queued entries.",
    "INVALID_QUANTITY": "Quantities are positive whole numbers.",
    "INVALID_COST": "Costs are non-negative amounts.",
    "INVALID_ITEM_KIND": "Purchase orders only carry packaging; composite cost is for products.",
    "INSUFFICIENT_STOCK": "Check the item's quantity before removing stock.",
    "INVALID_TRANSITION": "Allowed: pending→confirmed→shipped→received→completed; cancel before receipt.",
    "ORDER_LOCKED": "Lines can only change while the order is pending or confirmed.",
    "ITEM_IN_USE": "Deactivate the item instead of deleting it.",
    "DUPLICATE_PURCHASE_ORDER": "Omit po_number to have one generated.",
    "DUPLICATE_BOOKKEEPING_LINK": "Each bookkeeping entry can back only one replenishment.",
    "INVALID_ENTRY": "The bookkeeping system rejected the entry. Nothing was applied.",
    "GATEWAY_UNAVAILABLE": "The bookkeeping system is unreachable. Retry later.",
    "REAUTHORIZATION_REQUIRED": "Reconnect the marketplace account to issue new tokens.",
    "MARKETPLACE_REQUEST_FAILED": "The marketplace API call failed. Retry later.",
    "VALIDATION_ERROR": "Check the request body against the API schema.",
    "DATABASE_ERROR": "A database operation failed. Check server logs.",
}

# Default hints by HTTP status code
STATUS_HINTS: dict[int, str] = {
    400: "Check the request parameters and body.",
    401: "Credentials are missing or no longer valid.",
    404: "The requested resource was not found. Verify the ID.",
    409: "The request conflicts with the current state of the resource.",
    422: "The request could not be processed. Check the input format.",
    500: "An internal error occurred. Check server logs.",
    502: "An upstream service returned an error. Retry later.",
    503: "The service is temporarily unavailable. Retry later.",
}


def _get_hint(error_code: str, status_code: int) -> str:
    """Resolve hint from error code, falling back to status-based hint."""
    return HINT_MAP.get(error_code) or STATUS_HINTS.get(status_code, "")


def _status_for(exc: Exception) -> int:
    for exc_type, code in EXCEPTION_STATUS_MAP.items():
        if isinstance(exc, exc_type):
            return code
    return status.HTTP_500_INTERNAL_SERVER_ERROR


def build_error_response(request: Request, exc: Exception) -> JSONResponse:
    """Convert exception to standardized JSON response."""
    status_code = _status_for(exc)

    # Prefer StockroomError.code, fall back to class name
    if isinstance(exc, StockroomError):
        error_code = exc.code
        message = exc.message
        details = exc.details or None
    else:
        error_code = exc.__class__.__name__
        message = str(exc)
        details = None

    request_id = getattr(request.state, "request_id", None)
    log = logger.error if status_code >= 500 else logger.warning
    log(
        "request_error",
        request_id=request_id,
        path=request.url.path,
        error_type=error_code,
        error=message,
        details=details,
        traceback=traceback.format_exc() if status_code >= 500 else None,
    )

    error_response = ErrorResponse(
        error_code=error_code,
        message=message,
        hint=_get_hint(error_code, status_code),
        details=details,
        path=request.url.path,
    )
    return JSONResponse(
        status_code=status_code,
        content=error_response.model_dump(mode="json"),
    )


class ErrorHandlerMiddleware(BaseHTTPMiddleware):
    """
    Global error handling middleware.

    Converts exceptions that escaped the registered handlers to
    standardized JSON error responses.
    """

    async def dispatch(
        self,
        request: Request,
        call_next: Callable[[Request], Awaitable[Response]],
    ) -> Response:
        """Handle request with error catching."""
        try:
            return await call_next(request)

        except Exception as e:
            return build_error_response(request, e)


def setup_exception_handlers(app: FastAPI) -> None:
    """Set up FastAPI exception handlers."""
    from fastapi.exceptions import RequestValidationError
    from starlette.exceptions import HTTPException

    @app.exception_handler(StockroomError)
    async def domain_exception_handler(
        request: Request,
        exc: StockroomError,
    ) -> JSONResponse:
        """Map domain errors to their HTTP status."""
        return build_error_response(request, exc)

    @app.exception_handler(RequestValidationError)
    async def validation_exception_handler(
        request: Request,
        exc: RequestValidationError,
    ) -> JSONResponse:
        """Handle Pydantic validation errors."""
        errors = []
        for error in exc.errors():
            loc = " -> ".join(str(part) for part in error["loc"])
            errors.append(f"{loc}: {error['msg']}")

        return JSONResponse(
            status_code=422,
            content=ErrorResponse(
                error_code="VALIDATION_ERROR",
                message="Request validation failed",
                hint="Check the request body fields and types.",
                detail="; ".join(errors),
                path=request.url.path,
            ).model_dump(mode="json"),
        )

    @app.exception_handler(HTTPException)
    async def http_exception_handler(
        request: Request,
        exc: HTTPException,
    ) -> JSONResponse:
        """Handle HTTP exceptions with standardized format."""
        error_code = _infer_error_code(exc.status_code)
        hint = _get_hint(error_code, exc.status_code)

        return JSONResponse(
            status_code=exc.status_code,
            content=ErrorResponse(
                error_code=error_code,
                message=str(exc.detail) if exc.detail else "An error occurred",
                hint=hint,
                path=request.url.path,
            ).model_dump(mode="json"),
        )


def _infer_error_code(status_code: int) -> str:
    """Infer a machine-readable error code from an HTTPException status."""
    return {
        400: "BAD_REQUEST",
        401: "UNAUTHORIZED",
        404: "NOT_FOUND",
        405: "METHOD_NOT_ALLOWED",
        409: "CONFLICT",
        422: "UNPROCESSABLE_ENTITY",
    }.get(status_code, "HTTP_ERROR")
