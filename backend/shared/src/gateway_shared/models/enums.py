"""Enumerations shared by the webhook pipeline."""

from enum import Enum


class TransactionStatus(str, Enum):
    """Local transaction status derived from the provider status."""

    COMPLETED = "completed"
    AUTHORIZED = "authorized"
    PENDING = "pending"
    FAILED = "failed"
    CANCELLED = "cancelled"
    EXPIRED = "expired"
    UNKNOWN = "unknown"


class BookingStatus(str, Enum):
    """Derived top-level booking status markers."""

    CONTENT_PENDING = "Content Pending"
    PROCESSING = "Processing"


class WebhookEventType(str, Enum):
    """Event tags the provider is known to send."""

    PAYMENT_CAPTURE = "payment.capture"
    PAYMENT_SUCCEEDED = "payment.succeeded"
    CAPTURE_SUCCEEDED = "capture.succeeded"
    PAYMENT_AUTHORIZATION = "payment.authorization"
    PAYMENT_FAILURE = "payment.failure"
    PAYMENT_FAILED = "payment.failed"
    PAYMENT_REQUEST_EXPIRY = "payment_request.expiry"
    PAYMENT_REQUEST_SUCCEEDED = "payment_request.succeeded"
    PAYMENT_REQUEST_FAILED = "payment_request.failed"


class EventFamily(str, Enum):
    """Groups of event tags sharing one handling strategy.

    The value is the tag written to the audit log for the family.
    """

    PAYMENT_SUCCEEDED = "payment.capture"
    CAPTURE_SUCCEEDED = "capture.succeeded"
    AUTHORIZATION = "payment.authorization"
    PAYMENT_FAILED = "payment.failure"
    REQUEST_EXPIRED = "payment_request.expiry"
    REQUEST_SUCCEEDED = "payment_request.succeeded"
    REQUEST_FAILED = "payment_request.failed"
    UNRECOGNIZED = "unrecognized"


class ProcessingResult(str, Enum):
    """Outcome of processing one webhook delivery."""

    SUCCESS = "success"
    SKIPPED = "skipped"
    IGNORED = "ignored"
    DUPLICATE = "duplicate"
