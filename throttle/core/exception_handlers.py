"""Global exception handlers for consistent error responses.

Design:
- RateLimitAppError → 429 with the policy message as plain-text body and
  quota headers
- Other AppError subclasses → 400 JSON error envelope
- Unexpected Exception → generic 500 (safety net)
"""

import logging

from fastapi import Request
from fastapi.responses import JSONResponse, PlainTextResponse

from throttle.core.config import settings
from throttle.core.errors import AppError, RateLimitAppError
from throttle.core.logging import get_request_id
from throttle.core.rate_limit import HEADER_LIMIT, HEADER_REMAINING, HEADER_RESET

logger = logging.getLogger(__name__)


async def rate_limit_error_handler(request: Request, exc: RateLimitAppError) -> PlainTextResponse:
    """Render a throttled request as HTTP 429.

    The body is the policy's rejection message. Quota headers mirror the ones
    sent on allowed responses, plus ``Retry-After`` with the seconds until the
    client's window resets.
    """
    details = exc.details or {}
    headers: dict[str, str] = {}

    if settings.app.rate_limit_include_headers and "reset_seconds" in details:
        headers[HEADER_LIMIT] = str(details.get("limit", 0))
        headers[HEADER_REMAINING] = str(details.get("remaining", 0))
        headers[HEADER_RESET] = str(details["reset_seconds"])
        headers["Retry-After"] = str(details["reset_seconds"])

    return PlainTextResponse(exc.message, status_code=429, headers=headers or None)


async def app_error_handler(request: Request, exc: AppError) -> JSONResponse:
    """Handle domain application errors with consistent JSON format.

    All responses include:
    - error.code: Machine-readable error code
    - error.message: Human-readable message
    - error.request_id: For distributed tracing
    - error.details: Optional structured context

    Args:
        request: FastAPI request object.
        exc: AppError instance (or subclass).

    Returns:
        JSONResponse with status 400 and error details.
    """
    status_code = 400

    logger.warning(
        "app_error_handled",
        extra={
            "error_code": exc.code,
            "error_message": exc.message,
            "status_code": status_code,
            "has_details": bool(exc.details),
            "request_id": get_request_id(),
        }
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

    Logs the failure for debugging while returning a generic message, so no
    stack trace or exception text reaches the client.
    """
    logger.error(
        "unhandled_exception",
        extra={
            "error_type": type(exc).__name__,
            "error_msg": str(exc),
            "request_path": request.url.path,
            "request_method": request.method,
            "request_id": get_request_id(),
        }
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
    """Register all exception handlers with FastAPI app.

    Starlette resolves handlers by walking the exception's MRO, so the
    RateLimitAppError handler wins over the AppError one.

    Args:
        app: FastAPI application instance.
    """
    app.exception_handler(RateLimitAppError)(rate_limit_error_handler)
    app.exception_handler(AppError)(app_error_handler)
    app.exception_handler(Exception)(general_exception_handler)
