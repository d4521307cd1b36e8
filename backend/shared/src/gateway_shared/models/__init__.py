"""Pydantic models for the payment gateway."""

from .enums import (
    BookingStatus,
    EventFamily,
    ProcessingResult,
    TransactionStatus,
    WebhookEventType,
)
from .errors import (
    ERROR_MESSAGES,
    BookingUpdateError,
    ErrorBody,
    ErrorCode,
    ErrorResponse,
    GatewayError,
    ProviderError,
    RecordNotFoundError,
    StoreUnavailableError,
)
from .webhook import PaymentEffect, WebhookEvent, WebhookPayload, WebhookRecord

__all__ = [
    # Enums
    "BookingStatus",
    "EventFamily",
    "ProcessingResult",
    "TransactionStatus",
    "WebhookEventType",
    # Webhooks
    "PaymentEffect",
    "WebhookEvent",
    "WebhookPayload",
    "WebhookRecord",
    # Errors
    "BookingUpdateError",
    "ERROR_MESSAGES",
    "ErrorBody",
    "ErrorCode",
    "ErrorResponse",
    "GatewayError",
    "ProviderError",
    "RecordNotFoundError",
    "StoreUnavailableError",
]
