"""Stores for webhook delivery deduplication.

DedupStore is the seam for swapping the process-local set for a shared
key-value store in multi-instance deployments. check_and_mark must be a
single atomic, non-suspending step: two concurrent deliveries of the same
identifier must never both observe "unseen".

Marks are kept until swept. WebhookHandler sweeps them only when a
retention window is configured; otherwise they live as long as the process.
"""

import threading
import time
from abc import ABC, abstractmethod
from collections.abc import Callable


class DedupStore(ABC):
    """Contract for dedup identifier stores."""

    @abstractmethod
    def check_and_mark(self, key: str) -> bool:
        """Mark the key as processed if it was not already.

        Args:
            key: Dedup identifier

        Returns:
            True if the key was newly marked; False if it had been seen before.
        """

    @abstractmethod
    def contains(self, key: str) -> bool:
        """Return True if the key has been marked."""

    @abstractmethod
    def sweep(self, older_than_seconds: float) -> int:
        """Forget keys marked more than `older_than_seconds` ago.

        Returns:
            Number of keys removed.
        """


class InMemoryDedupStore(DedupStore):
    """Process-local dedup store. Lost on restart."""

    def __init__(self, clock: Callable[[], float] = time.time) -> None:
        self._marked: dict[str, float] = {}  # key -> marked_at
        self._lock = threading.Lock()
        self._clock = clock

    def check_and_mark(self, key: str) -> bool:
        with self._lock:
            if key in self._marked:
                return False
            self._marked[key] = self._clock()
            return True

    def contains(self, key: str) -> bool:
        with self._lock:
            return key in self._marked

    def sweep(self, older_than_seconds: float) -> int:
        cutoff = self._clock() - older_than_seconds
        with self._lock:
            expired = [k for k, marked_at in self._marked.items() if marked_at < cutoff]
            for k in expired:
                del self._marked[k]
        return len(expired)

    def __len__(self) -> int:
        return len(self._marked)
