"""Webhook API response models.

Inbound webhook bodies are validated with gateway_shared.models.WebhookEvent;
this module only covers what the API sends back.
"""

from typing import Any

from pydantic import BaseModel, ConfigDict, Field


class WebhookResponse(BaseModel):
    """Acknowledgement for a processed or duplicate webhook delivery."""

    model_config = ConfigDict(
        populate_by_name=True,
        json_schema_extra={
            "examples": [
                {
                    "success": True,
                    "message": "Webhook processed successfully",
                    "webhookId": "payment.capture-py-123-2025-01-01T00:00:00Z",
                    "event": "payment.capture",
                    "status": "SUCCEEDED",
                    "referenceId": "order-1",
                }
            ]
        },
    )

    success: bool = True
    message: str
    webhook_id: str = Field(..., alias="webhookId")
    event: str | None = None
    status: str | None = None
    reference_id: str | None = Field(default=None, alias="referenceId")
    duplicate: bool | None = Field(
        default=None,
        description="Set to true when the delivery was already processed",
    )


class WebhookListData(BaseModel):
    webhooks: list[dict[str, Any]]
    total: int


class WebhookListResponse(BaseModel):
    """Recently received webhooks, newest first."""

    success: bool = True
    data: WebhookListData


class WebhookDetailResponse(BaseModel):
    success: bool = True
    data: dict[str, Any]
