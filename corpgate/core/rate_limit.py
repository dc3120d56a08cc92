"""In-process token-bucket rate limiter keyed by client address."""

import math
import threading
import time
from collections.abc import Callable
from dataclasses import dataclass

# Above this many tracked clients, buckets that have refilled completely are dropped.
MAX_TRACKED_KEYS = 10_000


@dataclass(frozen=True)
class RateLimitResult:
    allowed: bool
    limit: int
    remaining: int
    reset_seconds: int

    def headers(self) -> dict[str, str]:
        """X-RateLimit-* headers, plus Retry-After when the request was refused."""
        headers = {
            "X-RateLimit-Limit": str(self.limit),
            "X-RateLimit-Remaining": str(max(0, self.remaining)),
            "X-RateLimit-Reset": str(self.reset_seconds),
        }
        if not self.allowed:
            headers["Retry-After"] = str(max(1, self.reset_seconds))
        return headers


class RateLimiter:
    """
    Allows `limit` requests per `window_seconds` for each key.

    Each key owns a bucket of `limit` tokens that refills continuously at
    limit/window tokens per second; a request spends one token. State lives in
    this process only, so each worker process enforces its own budget.
    """

    def __init__(
        self,
        limit: int,
        window_seconds: float,
        *,
        clock: Callable[[], float] = time.monotonic,
    ) -> None:
        if limit < 1 or window_seconds <= 0:
            raise ValueError("limit must be >= 1 and window_seconds > 0")
        self.limit = limit
        self.window_seconds = window_seconds
        self._refill_rate = limit / window_seconds
        self._clock = clock
        self._buckets: dict[str, tuple[float, float]] = {}
        self._lock = threading.Lock()

    def hit(self, key: str) -> RateLimitResult:
        """Spend one token for key if one is available."""
        now = self._clock()
        with self._lock:
            tokens, last = self._buckets.get(key, (float(self.limit), now))
            tokens = min(float(self.limit), tokens + (now - last) * self._refill_rate)
            allowed = tokens >= 1.0
            if allowed:
                tokens -= 1.0
            self._buckets[key] = (tokens, now)
            if len(self._buckets) > MAX_TRACKED_KEYS:
                self._prune(now)
        if allowed:
            reset = math.ceil((self.limit - tokens) / self._refill_rate)
        else:
            reset = math.ceil((1.0 - tokens) / self._refill_rate)
        return RateLimitResult(allowed, self.limit, int(tokens), reset)

    def reset(self) -> None:
        with self._lock:
            self._buckets.clear()

    def _prune(self, now: float) -> None:
        full = [
            key
            for key, (tokens, last) in self._buckets.items()
            if tokens + (now - last) * self._refill_rate >= self.limit
        ]
        for key in full:
            del self._buckets[key]
