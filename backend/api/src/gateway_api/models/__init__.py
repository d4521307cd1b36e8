"""API request/response models."""

from .payments import InvoiceCreate, PaymentRequestCreate, ProviderResult
from .webhooks import (
    WebhookDetailResponse,
    WebhookListData,
    WebhookListResponse,
    WebhookResponse,
)

__all__ = [
    "InvoiceCreate",
    "PaymentRequestCreate",
    "ProviderResult",
    "WebhookDetailResponse",
    "WebhookListData",
    "WebhookListResponse",
    "WebhookResponse",
]
