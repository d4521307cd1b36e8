"""FastAPI application for the Xendit payment gateway.

This package provides REST endpoints for:
- Health checks
- Xendit webhook ingestion and the received-webhook admin views
- Idempotent payment request and invoice creation (proxied to Xendit)
"""

from fastapi import FastAPI
from fastapi.middleware.cors import CORSMiddleware
from mangum import Mangum

from gateway_api.dependencies import get_idempotency_ledger, get_rate_limiter
from gateway_api.exceptions import register_exception_handlers
from gateway_api.middleware.correlation import CorrelationIdMiddleware
from gateway_api.middleware.idempotency import IdempotencyMiddleware
from gateway_api.middleware.rate_limit import RateLimitMiddleware
from gateway_api.routes.health import router as health_router
from gateway_api.routes.invoices import router as invoices_router
from gateway_api.routes.payment_requests import router as payment_requests_router
from gateway_api.routes.webhooks import router as webhooks_router
from gateway_shared.config import get_settings
from gateway_shared.utils.logging import configure_logging, get_logger

API_PREFIX = "/api/v1"

# POST paths that require an Idempotency-Key header
IDEMPOTENT_PATHS = (
    f"{API_PREFIX}/payment-requests",
    f"{API_PREFIX}/invoices",
)

settings = get_settings()
configure_logging(settings.log_level)
logger = get_logger(__name__)

app = FastAPI(
    title="Xendit Payment Gateway API",
    description="Payment gateway facade over the Xendit API with webhook ingestion",
    version="0.1.0",
)

# Middleware added last runs first: CORS, correlation ID, rate limit, idempotency.
app.add_middleware(
    IdempotencyMiddleware,
    ledger_factory=get_idempotency_ledger,
    protected_paths=IDEMPOTENT_PATHS,
)
app.add_middleware(RateLimitMiddleware, limiter_factory=get_rate_limiter)
app.add_middleware(CorrelationIdMiddleware)
app.add_middleware(
    CORSMiddleware,
    allow_origins=settings.cors_origins,
    allow_credentials=True,
    allow_methods=["*"],
    allow_headers=["*"],
)

register_exception_handlers(app)

app.include_router(health_router)
app.include_router(webhooks_router, prefix=API_PREFIX)
app.include_router(payment_requests_router, prefix=API_PREFIX)
app.include_router(invoices_router, prefix=API_PREFIX)

logger.info("Gateway API initialized (environment=%s)", settings.environment)


# Lambda handler - Mangum wraps FastAPI for AWS Lambda + API Gateway
handler = Mangum(app, lifespan="off")


def run_server(host: str = "0.0.0.0", port: int = 8080, reload: bool = True) -> None:
    """Run the FastAPI server.

    Args:
        host: Host to bind to (default: 0.0.0.0)
        port: Port to listen on (default: 8080)
        reload: Enable hot reload for development (default: True)
    """
    import uvicorn

    if reload:
        # Use string reference for reload mode (uvicorn requirement)
        uvicorn.run(
            "gateway_api.main:app",
            host=host,
            port=port,
            reload=True,
            reload_dirs=["api/src", "shared/src"],
        )
    else:
        uvicorn.run(app, host=host, port=port)


if __name__ == "__main__":
    run_server()
