"""FastAPI dependency injection providers for shared services.

This module provides factory functions for service instances using @lru_cache
so every request shares one instance per process. The in-memory registries
(dedup store, webhook store, idempotency ledger) live exactly as long as the
process, which is what makes at-most-once processing hold within it.

Service Dependency Graph:
    Settings (get_settings)
        ├── DynamoDBRecordStore
        │       ├── BookingUpdater
        │       └── AuditLogWriter
        ├── InMemoryIdempotencyLedger
        ├── RequestRateLimiter
        └── XenditClient
    InMemoryDedupStore, InMemoryWebhookStore
        └── WebhookHandler (+ BookingUpdater, AuditLogWriter)

Testing:
    Use reset_services() to clear cached instances between tests, or
    app.dependency_overrides to inject fakes.
"""

from functools import lru_cache

from gateway_shared.config import get_settings, reset_settings
from gateway_shared.services.audit_log import AuditLogWriter
from gateway_shared.services.booking_updater import BookingUpdater
from gateway_shared.services.dedup_store import DedupStore, InMemoryDedupStore
from gateway_shared.services.idempotency_ledger import (
    IdempotencyLedger,
    InMemoryIdempotencyLedger,
)
from gateway_shared.services.rate_limiter import RequestRateLimiter
from gateway_shared.services.record_store import DynamoDBRecordStore, RecordStore
from gateway_shared.services.webhook_handler import WebhookHandler
from gateway_shared.services.webhook_store import InMemoryWebhookStore, WebhookStore
from gateway_shared.services.xendit_client import XenditClient


@lru_cache
def get_record_store() -> RecordStore:
    """Get cached record store backed by DynamoDB."""
    return DynamoDBRecordStore(table_prefix=get_settings().table_prefix)


@lru_cache
def get_dedup_store() -> DedupStore:
    """Get the process-wide dedup identifier store."""
    return InMemoryDedupStore()


@lru_cache
def get_webhook_store() -> WebhookStore:
    """Get the process-wide store of received webhooks."""
    return InMemoryWebhookStore()


@lru_cache
def get_idempotency_ledger() -> IdempotencyLedger:
    """Get the process-wide idempotency ledger."""
    settings = get_settings()
    return InMemoryIdempotencyLedger(
        ttl_seconds=settings.idempotency_ttl_seconds,
        sweep_threshold=settings.idempotency_sweep_threshold,
    )


@lru_cache
def get_rate_limiter() -> RequestRateLimiter:
    """Get the process-wide per-IP rate limiter."""
    settings = get_settings()
    return RequestRateLimiter.from_window_ms(
        max_requests=settings.rate_limit_max_requests,
        window_ms=settings.rate_limit_window_ms,
    )


@lru_cache
def get_booking_updater() -> BookingUpdater:
    return BookingUpdater(store=get_record_store())


@lru_cache
def get_audit_log_writer() -> AuditLogWriter:
    return AuditLogWriter(store=get_record_store())


@lru_cache
def get_webhook_handler() -> WebhookHandler:
    """Get cached WebhookHandler instance.

    Returns:
        WebhookHandler wired to the shared registries and record store.
    """
    return WebhookHandler(
        dedup_store=get_dedup_store(),
        webhook_store=get_webhook_store(),
        booking_updater=get_booking_updater(),
        audit_log=get_audit_log_writer(),
        retention_seconds=get_settings().webhook_retention_seconds,
    )


@lru_cache
def get_xendit_client() -> XenditClient:
    """Get cached Xendit API client configured from settings."""
    settings = get_settings()
    return XenditClient(
        api_key=settings.xendit_api_key,
        base_url=settings.xendit_base_url,
        api_version=settings.xendit_api_version,
        timeout=settings.xendit_timeout_seconds,
    )


def reset_services() -> None:
    """Clear all cached service instances and settings.

    Example:
        @pytest.fixture(autouse=True)
        def reset_state():
            yield
            reset_services()
    """
    get_record_store.cache_clear()
    get_dedup_store.cache_clear()
    get_webhook_store.cache_clear()
    get_idempotency_ledger.cache_clear()
    get_rate_limiter.cache_clear()
    get_booking_updater.cache_clear()
    get_audit_log_writer.cache_clear()
    get_webhook_handler.cache_clear()
    get_xendit_client.cache_clear()
    reset_settings()
