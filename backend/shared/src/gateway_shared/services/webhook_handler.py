"""Webhook handler for processing payment provider events.

Provides business logic for handling webhook events separate from
HTTP routing concerns:
- Dedup identifier derivation and at-most-once processing per identifier
- Retention of received events for the admin surface
- Dispatch by event family to the booking updater and audit log

Dedup identifiers and received-webhook records are kept for the lifetime of
the process unless a retention window is configured, in which case both
registries are swept at most once per sweep interval as deliveries arrive.

Known gap: an identifier is marked processed before its handler runs and the
mark is not rolled back when the handler fails, so a provider retry that
reuses the identifier is reported as a duplicate and never re-executed.
"""

import datetime as dt
import time
from collections.abc import Awaitable, Callable

from pydantic import BaseModel

from gateway_shared.models.enums import EventFamily, ProcessingResult, WebhookEventType
from gateway_shared.models.webhook import PaymentEffect, WebhookEvent, WebhookRecord
from gateway_shared.services.audit_log import AuditLogWriter
from gateway_shared.services.booking_updater import BookingUpdater, BookingUpdateResult
from gateway_shared.services.dedup_store import DedupStore
from gateway_shared.services.webhook_store import WebhookStore
from gateway_shared.utils.logging import get_logger, log_webhook_event

logger = get_logger(__name__)

WEBHOOK_ID_HEADER = "webhook-id"
DEFAULT_SWEEP_INTERVAL_SECONDS = 300.0

EVENT_FAMILIES: dict[str, EventFamily] = {
    WebhookEventType.PAYMENT_CAPTURE.value: EventFamily.PAYMENT_SUCCEEDED,
    WebhookEventType.PAYMENT_SUCCEEDED.value: EventFamily.PAYMENT_SUCCEEDED,
    WebhookEventType.CAPTURE_SUCCEEDED.value: EventFamily.CAPTURE_SUCCEEDED,
    WebhookEventType.PAYMENT_AUTHORIZATION.value: EventFamily.AUTHORIZATION,
    WebhookEventType.PAYMENT_FAILURE.value: EventFamily.PAYMENT_FAILED,
    WebhookEventType.PAYMENT_FAILED.value: EventFamily.PAYMENT_FAILED,
    WebhookEventType.PAYMENT_REQUEST_EXPIRY.value: EventFamily.REQUEST_EXPIRED,
    WebhookEventType.PAYMENT_REQUEST_SUCCEEDED.value: EventFamily.REQUEST_SUCCEEDED,
    WebhookEventType.PAYMENT_REQUEST_FAILED.value: EventFamily.REQUEST_FAILED,
}


def classify_event(event_type: str) -> EventFamily:
    """Return the handling family for an event tag."""
    return EVENT_FAMILIES.get(event_type, EventFamily.UNRECOGNIZED)


def derive_webhook_id(event: WebhookEvent, delivery_id: str | None = None) -> str:
    """Derive the dedup identifier of a delivery.

    An explicit delivery ID (webhook-id header) is used verbatim. Otherwise
    the ID is "{event}-{id}-{created}" where id is the first present of
    payment_id, id, payment_request_id, reference_id.
    """
    if delivery_id:
        return delivery_id

    data = event.data
    identifier = data.payment_id or data.id or data.payment_request_id or data.reference_id
    return f"{event.event}-{identifier or 'unknown'}-{event.created}"


class WebhookOutcome(BaseModel):
    """Result of processing one webhook delivery."""

    webhook_id: str
    event: str
    family: EventFamily
    duplicate: bool = False
    processing_result: ProcessingResult
    booking: BookingUpdateResult | None = None


class WebhookHandler:
    """Dispatches webhook events to the booking updater and audit log."""

    def __init__(
        self,
        dedup_store: DedupStore,
        webhook_store: WebhookStore,
        booking_updater: BookingUpdater,
        audit_log: AuditLogWriter,
        retention_seconds: float | None = None,
        sweep_interval_seconds: float = DEFAULT_SWEEP_INTERVAL_SECONDS,
        clock: Callable[[], float] = time.monotonic,
    ) -> None:
        """Initialize the handler.

        Args:
            dedup_store: Identifiers already processed
            webhook_store: Received-webhook records for the admin surface
            booking_updater: Applies payment effects to bookings
            audit_log: Payment log writer
            retention_seconds: Age after which identifiers and records are
                forgotten; None keeps them for the lifetime of the process
            sweep_interval_seconds: Minimum time between two sweeps
            clock: Monotonic clock used to pace sweeps
        """
        self.retention_seconds = retention_seconds
        self._sweep_interval = sweep_interval_seconds
        self._clock = clock
        self._last_sweep = clock()
        self._dedup = dedup_store
        self._webhooks = webhook_store
        self._bookings = booking_updater
        self._audit = audit_log
        self._handlers: dict[
            EventFamily, Callable[[WebhookEvent], Awaitable[BookingUpdateResult | None]]
        ] = {
            EventFamily.PAYMENT_SUCCEEDED: self._handle_payment_succeeded,
            EventFamily.CAPTURE_SUCCEEDED: self._handle_capture_succeeded,
            EventFamily.AUTHORIZATION: self._handle_authorization,
            EventFamily.PAYMENT_FAILED: self._handle_payment_failed,
            EventFamily.REQUEST_EXPIRED: self._handle_request_expired,
            EventFamily.REQUEST_SUCCEEDED: self._handle_request_succeeded,
            EventFamily.REQUEST_FAILED: self._handle_request_failed,
            EventFamily.UNRECOGNIZED: self._handle_unrecognized,
        }

    async def process(self, event: WebhookEvent, delivery_id: str | None = None) -> WebhookOutcome:
        """Process one authenticated, validated webhook event.

        Args:
            event: Parsed webhook envelope
            delivery_id: Explicit delivery identifier from the webhook-id header

        Returns:
            WebhookOutcome; duplicates are reported, not raised.

        Raises:
            Exception: Any handler failure propagates. The identifier stays marked.
        """
        self._maybe_sweep()
        webhook_id = derive_webhook_id(event, delivery_id)
        family = classify_event(event.event)

        # Check and mark in one non-suspending step.
        if not self._dedup.check_and_mark(webhook_id):
            log_webhook_event(logger, event.event, webhook_id, result="duplicate")
            return WebhookOutcome(
                webhook_id=webhook_id,
                event=event.event,
                family=family,
                duplicate=True,
                processing_result=ProcessingResult.DUPLICATE,
            )

        now = dt.datetime.now(dt.UTC)
        self._webhooks.add(
            WebhookRecord(
                id=webhook_id,
                event=event.event,
                business_id=event.business_id,
                created=event.created,
                data=event.data.as_dict(),
                received_at=now,
                processed_at=now,
            )
        )

        log_webhook_event(
            logger,
            event.event,
            webhook_id,
            reference_id=event.data.reference_id,
            payment_id=event.data.payment_id,
            result="received",
            family=family.value,
            status=event.data.status,
        )

        try:
            booking = await self._handlers[family](event)
        except Exception as e:
            log_webhook_event(
                logger,
                event.event,
                webhook_id,
                reference_id=event.data.reference_id,
                result="error",
                error=str(e),
            )
            raise

        if family == EventFamily.UNRECOGNIZED:
            result = ProcessingResult.IGNORED
        elif booking is not None and not booking.success:
            result = ProcessingResult.SKIPPED
        else:
            result = ProcessingResult.SUCCESS

        log_webhook_event(
            logger,
            event.event,
            webhook_id,
            reference_id=event.data.reference_id,
            payment_id=event.data.payment_id,
            result=result.value,
            reason=booking.reason if booking else None,
        )
        return WebhookOutcome(
            webhook_id=webhook_id,
            event=event.event,
            family=family,
            processing_result=result,
            booking=booking,
        )

    def sweep_expired(self) -> int:
        """Forget identifiers and records older than the retention window.

        Returns:
            Number of identifiers and records removed.
        """
        if self.retention_seconds is None:
            return 0
        removed = self._dedup.sweep(self.retention_seconds)
        removed += self._webhooks.sweep(dt.timedelta(seconds=self.retention_seconds))
        if removed:
            logger.info("Swept %d expired webhook entries", removed)
        return removed

    def _maybe_sweep(self) -> None:
        if self.retention_seconds is None:
            return
        now = self._clock()
        if now - self._last_sweep < self._sweep_interval:
            return
        self._last_sweep = now
        self.sweep_expired()

    # === Family handlers ===

    async def _update_and_audit(
        self,
        event: WebhookEvent,
        effect: PaymentEffect,
        family: EventFamily,
        **audit_extra: str | None,
    ) -> BookingUpdateResult:
        booking = await self._bookings.apply(effect)
        if not booking.success:
            logger.warning(
                "Booking update skipped for %s (%s): %s",
                effect.reference_id,
                family.value,
                booking.reason,
            )
        await self._audit.write(
            event.data.as_dict(), family.value, effect.reference_id, **audit_extra
        )
        return booking

    async def _handle_payment_succeeded(self, event: WebhookEvent) -> BookingUpdateResult:
        return await self._update_and_audit(
            event, PaymentEffect.from_payment(event.data), EventFamily.PAYMENT_SUCCEEDED
        )

    async def _handle_capture_succeeded(self, event: WebhookEvent) -> BookingUpdateResult:
        data = event.data
        logger.info(
            "Capture %s succeeded for %s (captured=%s authorized=%s)",
            data.id,
            data.reference_id,
            data.captured_amount,
            data.authorized_amount,
        )
        return await self._update_and_audit(
            event,
            PaymentEffect.from_capture(data),
            EventFamily.CAPTURE_SUCCEEDED,
            capture_id=data.id,
        )

    async def _handle_authorization(self, event: WebhookEvent) -> None:
        # Approved but not captured: nothing to update yet.
        data = event.data
        logger.info(
            "Payment %s authorized (request %s, amount %s)",
            data.payment_id,
            data.payment_request_id,
            data.amount,
        )
        await self._audit.write(
            data.as_dict(), EventFamily.AUTHORIZATION.value, data.reference_id
        )
        return None

    async def _handle_payment_failed(self, event: WebhookEvent) -> BookingUpdateResult:
        logger.error(
            "Payment %s failed for %s (failure_code=%s)",
            event.data.payment_id,
            event.data.reference_id,
            event.data.failure_code,
        )
        return await self._update_and_audit(
            event, PaymentEffect.from_payment(event.data), EventFamily.PAYMENT_FAILED
        )

    async def _handle_request_expired(self, event: WebhookEvent) -> BookingUpdateResult:
        return await self._update_and_audit(
            event, PaymentEffect.from_payment(event.data), EventFamily.REQUEST_EXPIRED
        )

    async def _handle_request_succeeded(self, event: WebhookEvent) -> None:
        # A payment event is expected to follow separately.
        data = event.data
        await self._audit.write(
            data.as_dict(), EventFamily.REQUEST_SUCCEEDED.value, data.reference_id
        )
        return None

    async def _handle_request_failed(self, event: WebhookEvent) -> BookingUpdateResult:
        logger.error(
            "Payment request %s failed for %s (failure_code=%s)",
            event.data.payment_request_id,
            event.data.reference_id,
            event.data.failure_code,
        )
        return await self._update_and_audit(
            event, PaymentEffect.from_payment(event.data), EventFamily.REQUEST_FAILED
        )

    async def _handle_unrecognized(self, event: WebhookEvent) -> None:
        logger.warning("Unknown webhook event %s", event.event)
        data = event.data
        await self._audit.write(
            data.as_dict(),
            event.event,
            data.reference_id,
            processingResult=ProcessingResult.IGNORED.value,
        )
        return None
