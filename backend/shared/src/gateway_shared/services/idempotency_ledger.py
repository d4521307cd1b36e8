"""Response cache for client-supplied idempotency keys.

Entries are keyed by "{METHOD}:{path}:{key}" and hold the status code and
exact body bytes of the first successful response. An entry expires 24 hours
after creation. Expired entries are dropped lazily on lookup, and all of them
are swept once the ledger grows past the sweep threshold.

IdempotencyLedger is the seam for a shared cache in multi-instance
deployments; InMemoryIdempotencyLedger keeps entries in the process.
"""

import re
import threading
import time
from abc import ABC, abstractmethod
from collections.abc import Callable
from dataclasses import dataclass

IDEMPOTENCY_KEY_HEADER = "Idempotency-Key"
IDEMPOTENCY_EXPIRY_SECONDS = 24 * 60 * 60
SWEEP_THRESHOLD = 1000

_UUID_PATTERN = re.compile(
    r"^[0-9a-f]{8}-[0-9a-f]{4}-[1-5][0-9a-f]{3}-[89ab][0-9a-f]{3}-[0-9a-f]{12}$",
    re.IGNORECASE,
)


def is_valid_idempotency_key(key: str) -> bool:
    """Return True if the key has canonical UUID (v1-v5) shape."""
    return bool(_UUID_PATTERN.match(key))


@dataclass(frozen=True)
class LedgerEntry:
    """A cached response."""

    status_code: int
    body: bytes
    media_type: str | None
    created_at: float


class IdempotencyLedger(ABC):
    """Contract for idempotency ledgers."""

    @staticmethod
    def compound_key(method: str, path: str, idempotency_key: str) -> str:
        return f"{method.upper()}:{path}:{idempotency_key}"

    @abstractmethod
    def lookup(self, key: str) -> LedgerEntry | None:
        """Return the cached entry for a compound key, or None.

        An expired entry is reported as absent.
        """

    @abstractmethod
    def store(
        self,
        key: str,
        status_code: int,
        body: bytes,
        media_type: str | None = None,
    ) -> LedgerEntry:
        """Record a response, overwriting any previous entry for the key."""

    @abstractmethod
    def sweep(self) -> int:
        """Remove every expired entry.

        Returns:
            Number of entries removed.
        """


class InMemoryIdempotencyLedger(IdempotencyLedger):
    """Process-local idempotency ledger."""

    def __init__(
        self,
        ttl_seconds: float = IDEMPOTENCY_EXPIRY_SECONDS,
        sweep_threshold: int = SWEEP_THRESHOLD,
        clock: Callable[[], float] = time.time,
    ) -> None:
        self.ttl_seconds = ttl_seconds
        self.sweep_threshold = sweep_threshold
        self.clock = clock
        self._entries: dict[str, LedgerEntry] = {}
        self._lock = threading.Lock()

    def _is_expired(self, entry: LedgerEntry, now: float) -> bool:
        return now - entry.created_at > self.ttl_seconds

    def lookup(self, key: str) -> LedgerEntry | None:
        now = self.clock()
        with self._lock:
            entry = self._entries.get(key)
            if entry is None:
                return None
            if self._is_expired(entry, now):
                del self._entries[key]
                return None
            return entry

    def store(
        self,
        key: str,
        status_code: int,
        body: bytes,
        media_type: str | None = None,
    ) -> LedgerEntry:
        entry = LedgerEntry(
            status_code=status_code,
            body=body,
            media_type=media_type,
            created_at=self.clock(),
        )
        with self._lock:
            self._entries[key] = entry
            oversized = len(self._entries) > self.sweep_threshold
        if oversized:
            self.sweep()
        return entry

    def sweep(self) -> int:
        now = self.clock()
        with self._lock:
            expired = [k for k, e in self._entries.items() if self._is_expired(e, now)]
            for k in expired:
                del self._entries[k]
        return len(expired)

    def __len__(self) -> int:
        return len(self._entries)
