"""Idempotency-Key middleware for the provider "create" endpoints.

POST requests to a protected path must carry an Idempotency-Key header with a
canonical UUID. The first successful response for a (method, path, key) is
cached; repeats within the expiry window get the cached status and body
verbatim, flagged with an Idempotent-Replayed header, and the route is not
called again.
"""

from collections.abc import Callable, Iterable

from starlette.middleware.base import BaseHTTPMiddleware, RequestResponseEndpoint
from starlette.requests import Request
from starlette.responses import Response
from starlette.types import ASGIApp

from gateway_api.exceptions import error_response, get_http_status_for_error
from gateway_shared.models.errors import ErrorCode, ErrorResponse
from gateway_shared.services.idempotency_ledger import (
    IDEMPOTENCY_KEY_HEADER,
    IdempotencyLedger,
    is_valid_idempotency_key,
)
from gateway_shared.utils.logging import get_logger

logger = get_logger(__name__)

REPLAYED_HEADER = "Idempotent-Replayed"


def _reject(code: ErrorCode) -> Response:
    return error_response(ErrorResponse.from_code(code), get_http_status_for_error(code))


class IdempotencyMiddleware(BaseHTTPMiddleware):
    """Caches and replays responses keyed by the client's Idempotency-Key."""

    def __init__(
        self,
        app: ASGIApp,
        ledger_factory: Callable[[], IdempotencyLedger],
        protected_paths: Iterable[str],
    ) -> None:
        """Initialize the middleware.

        Args:
            app: Wrapped ASGI application
            ledger_factory: Returns the ledger to use; called per request so
                tests can swap the ledger between requests
            protected_paths: Exact paths whose POSTs require a key
        """
        super().__init__(app)
        self._ledger_factory = ledger_factory
        self._protected_paths = frozenset(protected_paths)

    async def dispatch(
        self, request: Request, call_next: RequestResponseEndpoint
    ) -> Response:
        path = request.url.path
        if request.method != "POST" or path not in self._protected_paths:
            return await call_next(request)

        idempotency_key = request.headers.get(IDEMPOTENCY_KEY_HEADER)
        if not idempotency_key:
            logger.warning("Rejected %s %s: missing %s", request.method, path, IDEMPOTENCY_KEY_HEADER)
            return _reject(ErrorCode.MISSING_IDEMPOTENCY_KEY)
        if not is_valid_idempotency_key(idempotency_key):
            logger.warning("Rejected %s %s: malformed idempotency key", request.method, path)
            return _reject(ErrorCode.INVALID_IDEMPOTENCY_KEY)

        ledger = self._ledger_factory()
        key = ledger.compound_key(request.method, path, idempotency_key)

        cached = ledger.lookup(key)
        if cached is not None:
            logger.info("Returning cached response for idempotency key %s", idempotency_key)
            return Response(
                content=cached.body,
                status_code=cached.status_code,
                media_type=cached.media_type,
                headers={REPLAYED_HEADER: "true"},
            )

        response = await call_next(request)

        # Only 2xx responses are cached.
        if not 200 <= response.status_code < 300:
            return response

        chunks = []
        async for chunk in response.body_iterator:  # type: ignore[attr-defined]
            chunks.append(chunk if isinstance(chunk, bytes) else chunk.encode())
        body = b"".join(chunks)

        ledger.store(
            key,
            status_code=response.status_code,
            body=body,
            media_type=response.headers.get("content-type"),
        )

        return Response(
            content=body,
            status_code=response.status_code,
            headers=dict(response.headers),
        )
