"""Upload rate limiting keyed by client address."""

from __future__ import annotations

import math
import threading
import time
from collections.abc import Callable
from dataclasses import dataclass
from typing import Protocol


@dataclass(frozen=True, slots=True)
class RateLimitDecision:
    allowed: bool
    retry_after: int = 0


class RateLimiter(Protocol):
    def check(self, key: str, *, interval_sec: float) -> RateLimitDecision: ...


class InMemoryRateLimiter:
    """Allows one accepted request per key per interval.

    Per-process only. Entries older than the largest interval seen are pruned
    every ``cleanup_interval`` checks so the map stays bounded.
    """

    def __init__(self, clock: Callable[[], float] = time.monotonic, cleanup_interval: int = 100):
        self._clock = clock
        self._cleanup_interval = cleanup_interval
        self._last_accepted: dict[str, float] = {}
        self._max_interval = 0.0
        self._check_count = 0
        self._lock = threading.Lock()

    def check(self, key: str, *, interval_sec: float) -> RateLimitDecision:
        if interval_sec <= 0:
            return RateLimitDecision(allowed=True)

        with self._lock:
            now = self._clock()
            self._max_interval = max(self._max_interval, interval_sec)
            self._periodic_cleanup(now)

            last = self._last_accepted.get(key)
            if last is not None and now - last < interval_sec:
                remaining = interval_sec - (now - last)
                return RateLimitDecision(allowed=False, retry_after=max(1, math.ceil(remaining)))

            self._last_accepted[key] = now
            return RateLimitDecision(allowed=True)

    def reset(self) -> None:
        with self._lock:
            self._last_accepted.clear()
            self._check_count = 0

    def __len__(self) -> int:
        return len(self._last_accepted)

    def _periodic_cleanup(self, now: float) -> None:
        self._check_count += 1
        if self._check_count < self._cleanup_interval:
            return

        self._check_count = 0
        cutoff = now - self._max_interval
        stale = [key for key, seen in self._last_accepted.items() if seen <= cutoff]
        for key in stale:
            del self._last_accepted[key]
