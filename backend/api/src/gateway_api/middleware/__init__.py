"""HTTP middleware for the gateway API."""

from .correlation import CorrelationIdMiddleware
from .idempotency import IdempotencyMiddleware
from .rate_limit import RateLimitMiddleware

__all__ = ["CorrelationIdMiddleware", "IdempotencyMiddleware", "RateLimitMiddleware"]
