"""Per-IP rate limiting middleware.

Every request counts against the caller's fixed window. Responses carry the
RateLimit-Limit, RateLimit-Remaining and RateLimit-Reset headers; requests
over the limit get a 429 error envelope with Retry-After and never reach a
route.
"""

from collections.abc import Callable

from starlette.middleware.base import BaseHTTPMiddleware, RequestResponseEndpoint
from starlette.requests import Request
from starlette.responses import Response
from starlette.types import ASGIApp

from gateway_api.exceptions import error_response, get_http_status_for_error
from gateway_shared.models.errors import ErrorCode, ErrorResponse
from gateway_shared.services.rate_limiter import RateLimitDecision, RequestRateLimiter
from gateway_shared.utils.logging import get_logger

logger = get_logger(__name__)

ANONYMOUS_CLIENT = "anonymous"


def _apply_headers(response: Response, decision: RateLimitDecision) -> None:
    response.headers["RateLimit-Limit"] = str(decision.limit)
    response.headers["RateLimit-Remaining"] = str(decision.remaining)
    response.headers["RateLimit-Reset"] = str(decision.reset_after)


class RateLimitMiddleware(BaseHTTPMiddleware):
    """Rejects clients that exceed their request budget."""

    def __init__(self, app: ASGIApp, limiter_factory: Callable[[], RequestRateLimiter]) -> None:
        """Initialize the middleware.

        Args:
            app: Wrapped ASGI application
            limiter_factory: Returns the limiter to use; called per request so
                tests can swap the limiter between requests
        """
        super().__init__(app)
        self._limiter_factory = limiter_factory

    async def dispatch(
        self, request: Request, call_next: RequestResponseEndpoint
    ) -> Response:
        client_key = request.client.host if request.client else ANONYMOUS_CLIENT
        decision = self._limiter_factory().hit(client_key)

        if not decision.allowed:
            logger.warning(
                "Rate limit exceeded for %s on %s %s",
                client_key,
                request.method,
                request.url.path,
            )
            code = ErrorCode.RATE_LIMITED
            response: Response = error_response(
                ErrorResponse.from_code(code), get_http_status_for_error(code)
            )
            response.headers["Retry-After"] = str(decision.reset_after)
        else:
            response = await call_next(request)

        _apply_headers(response, decision)
        return response
