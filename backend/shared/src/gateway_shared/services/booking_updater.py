"""Booking transaction updates driven by payment webhooks.

The booking document is identified by the event's reference_id. Updates are
partial merges of the `transaction` sub-fields plus, when the business rules
call for it, the top-level `status`. Bookings are never created here.
"""

import datetime as dt
from typing import Any

from pydantic import BaseModel

from gateway_shared.models.enums import BookingStatus, TransactionStatus
from gateway_shared.models.errors import BookingUpdateError
from gateway_shared.models.webhook import PaymentEffect
from gateway_shared.services.record_store import RecordStore
from gateway_shared.services.status_mapper import map_provider_status
from gateway_shared.utils.logging import get_logger

logger = get_logger(__name__)

BOOKINGS_COLLECTION = "booking"


class BookingUpdateResult(BaseModel):
    """Outcome of one booking update attempt."""

    success: bool
    booking_id: str | None
    status: TransactionStatus | None = None
    booking_status: BookingStatus | None = None
    reason: str | None = None


def derive_booking_status(
    provider_status: str | None,
    mapped_status: TransactionStatus,
    pay_later: Any,
    url: str | None,
) -> BookingStatus | None:
    """Compute the derived top-level booking status, if any.

    - A successful payment on a pay-now booking without a fulfillment URL
      becomes "Content Pending".
    - A pending payment on a pay-now booking with a fulfillment URL becomes
      "Processing".
    - Anything else leaves the top-level status untouched (None).
    """
    pay_now = pay_later is None or pay_later is False
    has_url = bool(url and str(url).strip())
    payment_succeeded = (
        provider_status == "SUCCEEDED" or mapped_status == TransactionStatus.COMPLETED
    )

    if payment_succeeded and pay_now and not has_url:
        return BookingStatus.CONTENT_PENDING
    if mapped_status == TransactionStatus.PENDING and pay_now and has_url:
        return BookingStatus.PROCESSING
    return None


def build_transaction_update(
    effect: PaymentEffect,
    mapped_status: TransactionStatus,
    booking_status: BookingStatus | None,
    now: str,
) -> dict[str, Any]:
    """Build the partial update, omitting fields whose source value is absent."""
    fields: dict[str, Any] = {
        "transaction.status": mapped_status.value,
        "transaction.updatedAt": now,
        "transaction.paymentId": effect.payment_id,
        "transaction.referenceId": effect.reference_id,
        "transaction.paymentRequestId": effect.payment_request_id,
        "transaction.amount": effect.amount,
        "transaction.currency": effect.currency,
        "transaction.channelCode": effect.channel_code,
        "transaction.failureCode": effect.failure_code,
        "transaction.processedAt": now,
    }
    if booking_status is not None:
        fields["status"] = booking_status.value
    return {k: v for k, v in fields.items() if v is not None}


class BookingUpdater:
    """Applies payment effects to booking records."""

    def __init__(self, store: RecordStore) -> None:
        self._store = store

    async def apply(self, effect: PaymentEffect) -> BookingUpdateResult:
        """Update the booking referenced by the payment effect.

        Args:
            effect: Normalized payment data carrying reference_id and status

        Returns:
            BookingUpdateResult; success=False with a reason when the update
            was skipped (no reference, store unavailable, booking not found).

        Raises:
            BookingUpdateError: If the store fails while available.
        """
        reference_id = effect.reference_id
        if not reference_id:
            logger.warning("Booking update skipped: event has no reference_id")
            return BookingUpdateResult(
                success=False, booking_id=None, reason="Missing reference_id"
            )

        if not self._store.is_available():
            logger.warning(
                "Record store not available - skipping booking update for %s (status %s)",
                reference_id,
                effect.status,
            )
            return BookingUpdateResult(
                success=False, booking_id=reference_id, reason="Record store not available"
            )

        try:
            booking = await self._store.get(BOOKINGS_COLLECTION, reference_id)
            if booking is None:
                logger.warning("Booking %s does not exist", reference_id)
                return BookingUpdateResult(
                    success=False, booking_id=reference_id, reason="Booking not found"
                )

            mapped_status = map_provider_status(effect.status)
            pay_later = booking.get("payLater")
            url = booking.get("url") or ""
            booking_status = derive_booking_status(effect.status, mapped_status, pay_later, url)

            now = dt.datetime.now(dt.UTC).isoformat()
            fields = build_transaction_update(effect, mapped_status, booking_status, now)
            await self._store.update(BOOKINGS_COLLECTION, reference_id, fields)

        except Exception as e:
            logger.error(
                "Failed to update booking %s (status %s): %s",
                reference_id,
                effect.status,
                e,
            )
            raise BookingUpdateError(
                f"Failed to update booking: {e}",
                reference_id=reference_id,
                status=effect.status,
            ) from e

        logger.info(
            "Booking %s transaction updated: provider=%s mapped=%s booking_status=%s "
            "pay_later=%s url=%s",
            reference_id,
            effect.status,
            mapped_status.value,
            booking_status.value if booking_status else "unchanged",
            pay_later,
            "present" if url else "empty",
        )
        return BookingUpdateResult(
            success=True,
            booking_id=reference_id,
            status=mapped_status,
            booking_status=booking_status,
        )
