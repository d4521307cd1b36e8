"""FastAPI exception handlers for converting GatewayError to HTTP responses.

Every non-webhook failure is rendered as the shared error envelope:
{"error": {"code", "message", "details"?}}

The ErrorCode-to-HTTP status mapping:
- 400 Bad Request: Validation and idempotency key errors
- 401 Unauthorized: Webhook callback token rejected
- 404 Not Found: Unknown webhook or route
- 429 Too Many Requests: Client exceeded its rate limit window
- 500 Internal Server Error: Missing configuration and unhandled failures

Provider errors are relayed as {"success": false, "error": <provider body>}
with the provider's own status code.

Usage:
    from gateway_api.exceptions import register_exception_handlers
    register_exception_handlers(app)
"""

from collections.abc import Sequence
from typing import Any

from fastapi import FastAPI, Request
from fastapi.exception_handlers import http_exception_handler
from fastapi.exceptions import RequestValidationError
from fastapi.responses import JSONResponse
from starlette.exceptions import HTTPException as StarletteHTTPException
from starlette.status import (
    HTTP_400_BAD_REQUEST,
    HTTP_401_UNAUTHORIZED,
    HTTP_404_NOT_FOUND,
    HTTP_429_TOO_MANY_REQUESTS,
    HTTP_500_INTERNAL_SERVER_ERROR,
    HTTP_502_BAD_GATEWAY,
)

from gateway_shared.models.errors import ErrorCode, ErrorResponse, GatewayError, ProviderError
from gateway_shared.utils.logging import get_logger

logger = get_logger(__name__)

# Map ErrorCode to HTTP status codes
ERROR_CODE_TO_HTTP_STATUS: dict[ErrorCode, int] = {
    # Webhook authentication
    ErrorCode.INVALID_WEBHOOK_TOKEN: HTTP_401_UNAUTHORIZED,
    ErrorCode.CONFIGURATION_ERROR: HTTP_500_INTERNAL_SERVER_ERROR,
    # Request validation -> 400 Bad Request
    ErrorCode.VALIDATION_ERROR: HTTP_400_BAD_REQUEST,
    ErrorCode.MISSING_IDEMPOTENCY_KEY: HTTP_400_BAD_REQUEST,
    ErrorCode.INVALID_IDEMPOTENCY_KEY: HTTP_400_BAD_REQUEST,
    # Not found -> 404
    ErrorCode.WEBHOOK_NOT_FOUND: HTTP_404_NOT_FOUND,
    ErrorCode.NOT_FOUND: HTTP_404_NOT_FOUND,
    # Throttling -> 429
    ErrorCode.RATE_LIMITED: HTTP_429_TOO_MANY_REQUESTS,
    # Server side -> 500
    ErrorCode.PROVIDER_NOT_CONFIGURED: HTTP_500_INTERNAL_SERVER_ERROR,
    ErrorCode.INTERNAL_SERVER_ERROR: HTTP_500_INTERNAL_SERVER_ERROR,
}


def get_http_status_for_error(code: ErrorCode) -> int:
    """Get HTTP status code for an ErrorCode.

    Args:
        code: The ErrorCode to map

    Returns:
        HTTP status code, defaults to 400 if not explicitly mapped.
    """
    return ERROR_CODE_TO_HTTP_STATUS.get(code, HTTP_400_BAD_REQUEST)


def error_response(error: ErrorResponse, status_code: int) -> JSONResponse:
    """Render an error envelope, omitting absent details."""
    return JSONResponse(
        status_code=status_code,
        content=error.model_dump(mode="json", exclude_none=True),
    )


def format_validation_errors(errors: Sequence[Any]) -> list[dict[str, str]]:
    """Flatten pydantic errors into [{field, message}] entries.

    The leading "body" location segment added by FastAPI is dropped.
    """
    details = []
    for err in errors:
        loc = [str(part) for part in err.get("loc", ()) if part != "body"]
        details.append({"field": ".".join(loc) or "body", "message": err.get("msg", "")})
    return details


async def gateway_error_handler(request: Request, exc: GatewayError) -> JSONResponse:
    """Handle GatewayError exceptions and convert to JSON response."""
    return error_response(exc.to_response(), get_http_status_for_error(exc.code))


async def validation_error_handler(
    request: Request, exc: RequestValidationError
) -> JSONResponse:
    """Render request validation failures as 400 VALIDATION_ERROR."""
    details = format_validation_errors(exc.errors())
    logger.warning("Request validation failed on %s: %s", request.url.path, details)
    return error_response(
        ErrorResponse.from_code(ErrorCode.VALIDATION_ERROR, details=details),
        HTTP_400_BAD_REQUEST,
    )


async def provider_error_handler(request: Request, exc: ProviderError) -> JSONResponse:
    """Relay a payment provider failure with the provider's status and body."""
    logger.error("Xendit API error (status=%s): %s", exc.status_code, exc.body or exc)
    return JSONResponse(
        status_code=exc.status_code or HTTP_502_BAD_GATEWAY,
        content={"success": False, "error": exc.body or {"message": str(exc)}},
    )


async def not_found_handler(request: Request, exc: StarletteHTTPException) -> Any:
    """Render unknown routes in the error envelope; defer other HTTP errors."""
    if exc.status_code == HTTP_404_NOT_FOUND:
        return error_response(ErrorResponse.from_code(ErrorCode.NOT_FOUND), HTTP_404_NOT_FOUND)
    return await http_exception_handler(request, exc)


async def generic_exception_handler(request: Request, exc: Exception) -> JSONResponse:
    """Handle unexpected exceptions with a generic error response.

    The traceback is logged; no internal details reach the client.
    """
    logger.exception("Unhandled exception on %s %s: %s", request.method, request.url.path, exc)
    return error_response(
        ErrorResponse.from_code(ErrorCode.INTERNAL_SERVER_ERROR),
        HTTP_500_INTERNAL_SERVER_ERROR,
    )


def register_exception_handlers(app: FastAPI) -> None:
    """Register all exception handlers with the FastAPI app.

    Args:
        app: The FastAPI application instance.
    """
    app.add_exception_handler(GatewayError, gateway_error_handler)  # type: ignore[arg-type]
    app.add_exception_handler(RequestValidationError, validation_error_handler)  # type: ignore[arg-type]
    app.add_exception_handler(ProviderError, provider_error_handler)  # type: ignore[arg-type]
    app.add_exception_handler(StarletteHTTPException, not_found_handler)  # type: ignore[arg-type]
    app.add_exception_handler(Exception, generic_exception_handler)
