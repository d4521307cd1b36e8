"""API route modules."""

from .health import router as health_router
from .invoices import router as invoices_router
from .payment_requests import router as payment_requests_router
from .webhooks import router as webhooks_router

__all__ = [
    "health_router",
    "invoices_router",
    "payment_requests_router",
    "webhooks_router",
]
