"""Backend services for the payment gateway."""

from .audit_log import AuditLogWriter
from .booking_updater import BookingUpdater, BookingUpdateResult
from .dedup_store import DedupStore, InMemoryDedupStore
from .idempotency_ledger import (
    IdempotencyLedger,
    InMemoryIdempotencyLedger,
    LedgerEntry,
    is_valid_idempotency_key,
)
from .rate_limiter import RateLimitDecision, RequestRateLimiter
from .record_store import DynamoDBRecordStore, RecordStore
from .ssm_service import SSMService, SSMServiceError, get_ssm_service
from .status_mapper import map_provider_status
from .webhook_auth import verify_callback_token
from .webhook_handler import WebhookHandler, WebhookOutcome
from .webhook_store import InMemoryWebhookStore, WebhookStore
from .xendit_client import XenditClient

__all__ = [
    "AuditLogWriter",
    "BookingUpdater",
    "BookingUpdateResult",
    "DedupStore",
    "InMemoryDedupStore",
    "IdempotencyLedger",
    "InMemoryIdempotencyLedger",
    "LedgerEntry",
    "is_valid_idempotency_key",
    "DynamoDBRecordStore",
    "RecordStore",
    "RateLimitDecision",
    "RequestRateLimiter",
    "SSMService",
    "SSMServiceError",
    "get_ssm_service",
    "map_provider_status",
    "verify_callback_token",
    "WebhookHandler",
    "WebhookOutcome",
    "WebhookStore",
    "InMemoryWebhookStore",
    "XenditClient",
]
