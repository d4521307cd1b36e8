"""Webhook endpoints for Xendit payment notifications.

Provides endpoints for:
- Receiving Xendit webhook events (payment, capture, payment request families)
- Listing and fetching recently received webhooks (admin/debug)

These endpoints do NOT require JWT authentication. Deliveries are
authenticated with the shared x-callback-token header, which is checked
before the body is parsed or validated.
"""

from fastapi import APIRouter, Depends, Header, Request
from pydantic import ValidationError

from gateway_api.dependencies import get_webhook_handler, get_webhook_store
from gateway_api.exceptions import format_validation_errors
from gateway_api.models.webhooks import (
    WebhookDetailResponse,
    WebhookListData,
    WebhookListResponse,
    WebhookResponse,
)
from gateway_shared.config import get_settings
from gateway_shared.models.errors import ErrorCode, ErrorResponse, GatewayError
from gateway_shared.models.webhook import WebhookEvent
from gateway_shared.services.webhook_auth import verify_callback_token
from gateway_shared.services.webhook_handler import WEBHOOK_ID_HEADER, WebhookHandler
from gateway_shared.services.webhook_store import WebhookStore
from gateway_shared.utils.logging import get_logger

logger = get_logger(__name__)

router = APIRouter(tags=["webhooks"])


async def verify_webhook_token(
    x_callback_token: str | None = Header(default=None),
) -> None:
    """Reject the delivery unless x-callback-token matches the configured token."""
    verify_callback_token(get_settings().webhook_callback_token, x_callback_token)


@router.post(
    "/webhooks",
    summary="Receive Xendit webhook events",
    description="""
Endpoint for Xendit webhook events. Handles:
- payment.capture / payment.succeeded: Marks the booking transaction completed
- capture.succeeded: Same, from a capture object
- payment.failure / payment.failed / payment_request.failed: Marks it failed
- payment_request.expiry: Marks it expired
- payment.authorization / payment_request.succeeded: Audit only

**Authentication**: x-callback-token header must match the configured token.

**Idempotent**: A repeated delivery (same webhook-id header, or same derived
identifier) returns 200 with `duplicate: true` and is not processed again.
""",
    response_model=WebhookResponse,
    response_model_exclude_none=True,
    dependencies=[Depends(verify_webhook_token)],
    responses={
        200: {"description": "Event processed (or acknowledged as duplicate)"},
        400: {"description": "Invalid webhook body", "model": ErrorResponse},
        401: {"description": "Invalid or missing callback token", "model": ErrorResponse},
        500: {"description": "Token not configured or processing failed", "model": ErrorResponse},
    },
)
async def receive_webhook(
    request: Request,
    delivery_id: str | None = Header(default=None, alias=WEBHOOK_ID_HEADER),
    handler: WebhookHandler = Depends(get_webhook_handler),
) -> WebhookResponse:
    """Handle an incoming Xendit webhook delivery."""
    try:
        payload = await request.json()
    except ValueError:
        raise GatewayError(
            code=ErrorCode.VALIDATION_ERROR,
            details=[{"field": "body", "message": "Body must be a JSON object"}],
        )

    try:
        event = WebhookEvent.model_validate(payload)
    except ValidationError as e:
        details = format_validation_errors(e.errors())
        logger.warning("Webhook validation failed: %s", details)
        raise GatewayError(code=ErrorCode.VALIDATION_ERROR, details=details)

    outcome = await handler.process(event, delivery_id)

    if outcome.duplicate:
        return WebhookResponse(
            message="Webhook already processed",
            webhook_id=outcome.webhook_id,
            duplicate=True,
        )

    return WebhookResponse(
        message="Webhook processed successfully",
        webhook_id=outcome.webhook_id,
        event=event.event,
        status=event.data.status,
        reference_id=event.data.reference_id,
    )


@router.get(
    "/webhooks",
    summary="List received webhooks",
    response_model=WebhookListResponse,
)
async def list_webhooks(
    store: WebhookStore = Depends(get_webhook_store),
) -> WebhookListResponse:
    """List webhooks received by this process, newest first."""
    webhooks = [
        record.model_dump(mode="json", by_alias=True) for record in store.list_recent()
    ]
    return WebhookListResponse(data=WebhookListData(webhooks=webhooks, total=len(webhooks)))


@router.get(
    "/webhooks/{webhook_id}",
    summary="Get a received webhook",
    response_model=WebhookDetailResponse,
    responses={404: {"description": "Webhook not found", "model": ErrorResponse}},
)
async def get_webhook(
    webhook_id: str,
    store: WebhookStore = Depends(get_webhook_store),
) -> WebhookDetailResponse:
    """Fetch one received webhook by its identifier."""
    record = store.get(webhook_id)
    if record is None:
        raise GatewayError(code=ErrorCode.WEBHOOK_NOT_FOUND, details={"webhookId": webhook_id})
    return WebhookDetailResponse(data=record.model_dump(mode="json", by_alias=True))
