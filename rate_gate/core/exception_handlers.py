"""Global exception handlers for consistent error responses.

Design:
- StoreUnavailableError (and StoreTimeoutError) -> 503
- Other AppError subclasses -> 400
- Unexpected Exception -> generic 500 (safety net)
- All responses include request_id for correlation

Rate limiting itself never raises into this layer (the decision engine fails
open); these handlers cover routes that touch the store directly and any
wiring failure.
"""

import logging

from fastapi import Request
from fastapi.responses import JSONResponse

from rate_gate.core.errors import AppError, StoreUnavailableError
from rate_gate.core.logging import get_request_id

logger = logging.getLogger(__name__)


async def app_error_handler(request: Request, exc: AppError) -> JSONResponse:
    """Handle domain application errors with a consistent JSON envelope.

    Args:
        request: FastAPI request object.
        exc: AppError instance (or subclass).

    Returns:
        JSONResponse with ``{"error": {code, message, request_id, details?}}``.
    """
    status_code = 503 if isinstance(exc, StoreUnavailableError) else 400

    logger.warning(
        "app_error_handled",
        extra={
            "error_code": exc.code,
            "error_message": exc.message,
            "status_code": status_code,
            "has_details": bool(exc.details),
        },
    )

    error_content = {
        "code": exc.code,
        "message": exc.message,
        "request_id": get_request_id(),
    }
    if exc.details:
        error_content["details"] = exc.details

    return JSONResponse(
        status_code=status_code,
        content={"error": error_content},
    )


async def general_exception_handler(request: Request, exc: Exception) -> JSONResponse:
    """Fallback handler for unexpected errors.

    Logs the failure and returns a generic message; no exception text or
    stack trace reaches the client.
    """
    logger.error(
        "unhandled_exception",
        extra={
            "error_type": type(exc).__name__,
            "error_msg": str(exc),
            "request_path": request.url.path,
            "request_method": request.method,
        },
    )

    return JSONResponse(
        status_code=500,
        content={
            "error": {
                "code": "internal_server_error",
                "message": "An unexpected error occurred. Please try again later.",
                "request_id": get_request_id(),
            }
        },
    )


def setup_exception_handlers(app) -> None:
    """Register all exception handlers with the FastAPI app."""
    app.exception_handler(AppError)(app_error_handler)
    app.exception_handler(Exception)(general_exception_handler)
