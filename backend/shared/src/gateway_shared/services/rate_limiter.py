"""Per-client request rate limiting.

Each client key gets `max_requests` hits per fixed window. Counters are kept
in the limits library's in-process storage, so every instance limits on its
own; pass a shared `limits` storage to limit across instances.
"""

import math
import time
from dataclasses import dataclass

from limits import RateLimitItemPerSecond
from limits.storage import MemoryStorage, Storage
from limits.strategies import FixedWindowRateLimiter

DEFAULT_MAX_REQUESTS = 100
DEFAULT_WINDOW_MS = 15 * 60 * 1000


@dataclass(frozen=True)
class RateLimitDecision:
    """Outcome of counting one request against a client's window."""

    allowed: bool
    limit: int
    remaining: int
    reset_after: int  # seconds until the window resets


class RequestRateLimiter:
    """Fixed-window limiter keyed by client (usually the remote IP)."""

    def __init__(
        self,
        max_requests: int = DEFAULT_MAX_REQUESTS,
        window_seconds: int = DEFAULT_WINDOW_MS // 1000,
        storage: Storage | None = None,
    ) -> None:
        self.max_requests = max_requests
        self.window_seconds = window_seconds
        self._item = RateLimitItemPerSecond(max_requests, window_seconds)
        self._limiter = FixedWindowRateLimiter(storage or MemoryStorage())

    @classmethod
    def from_window_ms(cls, max_requests: int, window_ms: int) -> "RequestRateLimiter":
        """Build a limiter from a window expressed in milliseconds."""
        return cls(max_requests=max_requests, window_seconds=max(1, math.ceil(window_ms / 1000)))

    def hit(self, client_key: str) -> RateLimitDecision:
        """Count one request for the client and decide whether it may proceed."""
        allowed = self._limiter.hit(self._item, client_key)
        stats = self._limiter.get_window_stats(self._item, client_key)
        return RateLimitDecision(
            allowed=allowed,
            limit=self.max_requests,
            remaining=max(0, stats.remaining),
            reset_after=max(0, math.ceil(stats.reset_time - time.time())),
        )
