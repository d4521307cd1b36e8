"""Append-only audit trail of processed webhook events."""

from typing import Any

from gateway_shared.models.errors import StoreUnavailableError
from gateway_shared.services.record_store import RecordStore
from gateway_shared.utils.logging import get_logger

logger = get_logger(__name__)

PAYMENT_LOGS_COLLECTION = "payment_logs"
AUDIT_SOURCE = "xendit_webhook"


class AuditLogWriter:
    """Writes one payment log entry per processed event.

    Pure inserts: no dedup, no updates. Failures propagate to the caller.
    """

    def __init__(self, store: RecordStore) -> None:
        self._store = store

    async def write(
        self,
        payload: dict[str, Any],
        event_family: str,
        booking_id: str | None,
        **extra: Any,
    ) -> str:
        """Append an audit entry.

        Args:
            payload: Event `data` exactly as received
            event_family: Family tag (e.g. "payment.capture")
            booking_id: Business reference of the event, if any
            **extra: Additional attributes (e.g. capture_id)

        Returns:
            ID of the new entry.

        Raises:
            StoreUnavailableError: If the record store is not available.
        """
        if not self._store.is_available():
            logger.error(
                "Record store not available - cannot write payment log for %s", booking_id
            )
            raise StoreUnavailableError("Record store not available for audit log")

        entry = {
            **payload,
            **extra,
            "event": event_family,
            "bookingId": booking_id,
            "source": AUDIT_SOURCE,
        }

        try:
            log_id = await self._store.append(PAYMENT_LOGS_COLLECTION, entry)
        except Exception as e:
            logger.error("Failed to create payment log for %s: %s", booking_id, e)
            raise

        logger.info("Payment log %s created (%s, booking %s)", log_id, event_family, booking_id)
        return log_id
