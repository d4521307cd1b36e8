"""Retention of received webhooks for the admin/debug surface.

WebhookStore is the seam for moving the records to a shared store in
multi-instance deployments. Records are kept until swept; WebhookHandler
sweeps them when a retention window is configured.
"""

import threading
from abc import ABC, abstractmethod
from datetime import datetime, timedelta, timezone

from gateway_shared.models.webhook import WebhookRecord


class WebhookStore(ABC):
    """Contract for received-webhook stores.

    Records are immutable; adding an ID that is already present keeps the
    first record.
    """

    @abstractmethod
    def add(self, record: WebhookRecord) -> WebhookRecord:
        """Store a record and return the one retained under its ID."""

    @abstractmethod
    def get(self, webhook_id: str) -> WebhookRecord | None:
        """Get a record by its webhook ID."""

    @abstractmethod
    def list_recent(self) -> list[WebhookRecord]:
        """List all records, newest received first."""

    @abstractmethod
    def sweep(self, older_than: timedelta) -> int:
        """Drop records received before now - older_than.

        Returns:
            Number of records removed.
        """


class InMemoryWebhookStore(WebhookStore):
    """Process-local webhook store. Lost on restart."""

    def __init__(self) -> None:
        self._records: dict[str, WebhookRecord] = {}
        self._lock = threading.Lock()

    def add(self, record: WebhookRecord) -> WebhookRecord:
        with self._lock:
            return self._records.setdefault(record.id, record)

    def get(self, webhook_id: str) -> WebhookRecord | None:
        return self._records.get(webhook_id)

    def list_recent(self) -> list[WebhookRecord]:
        with self._lock:
            records = list(self._records.values())
        return sorted(records, key=lambda r: r.received_at, reverse=True)

    def sweep(self, older_than: timedelta) -> int:
        cutoff = datetime.now(timezone.utc) - older_than
        with self._lock:
            expired = [k for k, r in self._records.items() if r.received_at < cutoff]
            for k in expired:
                del self._records[k]
        return len(expired)

    def __len__(self) -> int:
        return len(self._records)
