"""Webhook event models.

The provider sends one loosely typed envelope for every event family. It is
validated into WebhookEvent, and each family is normalized into a
PaymentEffect before it reaches the booking updater.
"""

import math
from datetime import datetime
from typing import Any

from pydantic import BaseModel, ConfigDict, Field, field_validator, model_validator


def _has_non_finite(value: Any) -> bool:
    if isinstance(value, float):
        return not math.isfinite(value)
    if isinstance(value, dict):
        return any(_has_non_finite(v) for v in value.values())
    if isinstance(value, list):
        return any(_has_non_finite(v) for v in value)
    return False


class WebhookPayload(BaseModel):
    """The `data` object of a webhook event.

    Only `status` is required; unknown fields are kept so that newer provider
    payloads pass validation and reach the audit log untouched. NaN and
    Infinity are rejected at any depth.
    """

    model_config = ConfigDict(extra="allow", allow_inf_nan=False)

    status: str = Field(..., min_length=1, description="Provider status, e.g. SUCCEEDED")
    payment_id: str | None = None
    id: str | None = Field(default=None, description="Capture ID on capture events")
    payment_request_id: str | None = None
    reference_id: str | None = Field(
        default=None,
        description="Caller correlation key, also the booking document ID",
    )
    amount: int | float | None = None
    captured_amount: int | float | None = None
    authorized_amount: int | float | None = None
    request_amount: int | float | None = None
    currency: str | None = None
    channel_code: str | None = None
    failure_code: str | None = None

    @model_validator(mode="after")
    def _reject_non_finite_extras(self) -> "WebhookPayload":
        if self.model_extra and _has_non_finite(self.model_extra):
            raise ValueError("numbers must be finite")
        return self

    def as_dict(self) -> dict[str, Any]:
        """Return the payload as received, extra fields included."""
        return self.model_dump(exclude_unset=True)


class WebhookEvent(BaseModel):
    """Inbound webhook envelope."""

    model_config = ConfigDict(
        extra="allow",
        json_schema_extra={
            "examples": [
                {
                    "event": "payment.capture",
                    "business_id": "5f27a14a9bf05c73dd040bc8",
                    "created": "2025-01-15T10:30:00.000Z",
                    "data": {
                        "payment_id": "py-1a2b3c4d",
                        "reference_id": "order-1",
                        "status": "SUCCEEDED",
                        "amount": 150000,
                        "currency": "IDR",
                    },
                }
            ]
        },
    )

    event: str = Field(..., min_length=1, description="Event tag, e.g. payment.capture")
    business_id: str = Field(..., min_length=1)
    created: str = Field(..., description="ISO-8601 creation timestamp")
    api_version: str | None = None
    data: WebhookPayload

    @field_validator("created")
    @classmethod
    def _validate_created(cls, value: str) -> str:
        # Kept as the original string: it is part of the dedup identifier.
        try:
            datetime.fromisoformat(value)
        except ValueError as e:
            raise ValueError("created must be an ISO-8601 timestamp") from e
        return value


class WebhookRecord(BaseModel):
    """An in-memory record of a non-duplicate webhook delivery."""

    model_config = ConfigDict(frozen=True, populate_by_name=True)

    id: str
    event: str
    business_id: str
    created: str
    data: dict[str, Any]
    received_at: datetime = Field(..., serialization_alias="receivedAt")
    processed_at: datetime = Field(..., serialization_alias="processedAt")


class PaymentEffect(BaseModel):
    """Canonical payment data handed to the booking updater."""

    model_config = ConfigDict(frozen=True)

    reference_id: str | None
    status: str
    payment_id: str | None = None
    payment_request_id: str | None = None
    amount: int | float | None = None
    currency: str | None = None
    channel_code: str | None = None
    failure_code: str | None = None

    @classmethod
    def from_payment(cls, data: WebhookPayload) -> "PaymentEffect":
        """Normalize a payment or payment-request payload."""
        return cls(
            reference_id=data.reference_id,
            status=data.status,
            payment_id=data.payment_id,
            payment_request_id=data.payment_request_id,
            amount=data.amount,
            currency=data.currency,
            channel_code=data.channel_code,
            failure_code=data.failure_code,
        )

    @classmethod
    def from_capture(cls, data: WebhookPayload) -> "PaymentEffect":
        """Normalize a capture payload.

        The capture ID stands in for the payment ID and the captured amount
        falls back to the authorized amount.
        """
        amount = data.captured_amount or data.authorized_amount
        return cls(
            reference_id=data.reference_id,
            status=data.status,
            payment_id=data.id,
            payment_request_id=data.payment_request_id,
            amount=amount,
            currency=data.currency,
            channel_code=data.channel_code,
            failure_code=data.failure_code,
        )
