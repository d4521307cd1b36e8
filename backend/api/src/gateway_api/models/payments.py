"""Request models for the provider "create" endpoints.

Only the fields the gateway relies on are validated. Everything else is
forwarded to Xendit untouched, so the provider stays the authority on its own
request schema.
"""

from typing import Any

from pydantic import BaseModel, ConfigDict, Field


class PaymentRequestCreate(BaseModel):
    """Body of POST /payment-requests."""

    model_config = ConfigDict(
        extra="allow",
        json_schema_extra={
            "examples": [
                {
                    "reference_id": "order-1",
                    "type": "PAY",
                    "country": "ID",
                    "currency": "IDR",
                    "request_amount": 150000,
                    "channel_code": "CARDS",
                    "channel_properties": {},
                }
            ]
        },
    )

    reference_id: str = Field(..., min_length=1, max_length=255)
    currency: str = Field(..., min_length=3, max_length=3)
    request_amount: float | None = Field(default=None, ge=0)
    amount: float | None = Field(default=None, ge=0)
    description: str | None = Field(default=None, min_length=1, max_length=1000)
    metadata: dict[str, Any] | None = None


class InvoiceCreate(BaseModel):
    """Body of POST /invoices."""

    model_config = ConfigDict(
        extra="allow",
        json_schema_extra={
            "examples": [{"external_id": "invoice-order-1", "amount": 150000, "currency": "IDR"}]
        },
    )

    external_id: str = Field(..., min_length=1, max_length=255)
    amount: float = Field(..., ge=0)
    description: str | None = Field(default=None, min_length=1)
    invoice_duration: int | None = Field(default=None, ge=1, le=31536000)
    currency: str | None = None


class ProviderResult(BaseModel):
    """Successful provider call, wrapping the provider's response body."""

    success: bool = True
    data: Any
