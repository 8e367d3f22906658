"""In-memory token-bucket rate limiter.

Used on ``POST /register`` to slow down shared-secret guessing. Buckets are
keyed by client IP and live in process memory only. Every ``sweep_every``
checks, buckets that have been idle long enough to refill completely are
dropped; a fresh bucket behaves the same, so nothing is lost.
"""

from __future__ import annotations

import math
import time

__all__ = ["RateLimiter", "RateLimitInfo", "per_minute"]


class _Bucket:
    """A single token bucket for one client."""

    __slots__ = ("tokens", "last_refill")

    def __init__(self, capacity: float, now: float):
        self.tokens: float = capacity
        self.last_refill: float = now


class RateLimitInfo:
    """Rate limit state returned by ``check()``."""

    __slots__ = ("allowed", "limit", "remaining", "reset_after")

    def __init__(self, allowed: bool, limit: int, remaining: int, reset_after: float):
        self.allowed = allowed
        self.limit = limit
        self.remaining = remaining
        self.reset_after = reset_after

    @property
    def retry_after(self) -> int:
        return max(1, math.ceil(self.reset_after))


class RateLimiter:
    """Token-bucket rate limiter keyed by client identifier.

    Parameters
    ----------
    rate : float
        Tokens added per second.
    capacity : int
        Maximum burst size (bucket capacity).
    sweep_every : int
        Run ``cleanup()`` after this many ``check()`` calls.
    """

    def __init__(self, rate: float, capacity: int, sweep_every: int = 1000):
        self.rate = rate
        self.capacity = capacity
        self.sweep_every = sweep_every
        self._buckets: dict[str, _Bucket] = {}
        self._checks = 0

    def check(self, key: str) -> RateLimitInfo:
        """Consume one token for *key* and report whether that was allowed."""
        self._checks += 1
        if self._checks % self.sweep_every == 0:
            self.cleanup()

        now = time.monotonic()

        bucket = self._buckets.get(key)
        if bucket is None:
            bucket = self._buckets[key] = _Bucket(self.capacity, now)

        elapsed = now - bucket.last_refill
        bucket.tokens = min(self.capacity, bucket.tokens + elapsed * self.rate)
        bucket.last_refill = now

        if bucket.tokens >= 1.0:
            bucket.tokens -= 1.0
            reset_after = (self.capacity - bucket.tokens) / self.rate if self.rate > 0 else 0
            return RateLimitInfo(True, self.capacity, int(bucket.tokens), reset_after)

        # Denied — time until the next token
        reset_after = (1.0 - bucket.tokens) / self.rate if self.rate > 0 else 1.0
        return RateLimitInfo(False, self.capacity, 0, reset_after)

    def cleanup(self, max_age: float | None = None) -> int:
        """Remove buckets idle longer than *max_age* seconds. Returns count removed.

        Defaults to the time an empty bucket needs to fill up again.
        """
        if max_age is None:
            max_age = self.capacity / self.rate if self.rate > 0 else 3600.0
        now = time.monotonic()
        stale = [k for k, b in self._buckets.items() if now - b.last_refill > max_age]
        for k in stale:
            del self._buckets[k]
        return len(stale)

    def __len__(self) -> int:
        return len(self._buckets)


def per_minute(requests: int) -> RateLimiter | None:
    """Limiter allowing *requests* per minute with an equal burst; None when 0."""
    if requests <= 0:
        return None
    return RateLimiter(rate=requests / 60.0, capacity=requests)
