from __future__ import annotations

from resume_ranker.core.rate_limit import InMemoryRateLimiter


class FakeClock:
    def __init__(self) -> None:
        self.now = 1000.0

    def __call__(self) -> float:
        return self.now


def test_zero_interval_always_allows() -> None:
    limiter = InMemoryRateLimiter(clock=FakeClock())
    assert all(limiter.check("1.2.3.4", interval_sec=0).allowed for _ in range(5))
    assert len(limiter) == 0


def test_second_request_inside_interval_is_rejected_with_retry_after() -> None:
    clock = FakeClock()
    limiter = InMemoryRateLimiter(clock=clock)

    assert limiter.check("1.2.3.4", interval_sec=30).allowed
    clock.now += 10.2
    decision = limiter.check("1.2.3.4", interval_sec=30)

    assert not decision.allowed
    assert decision.retry_after == 20


def test_rejected_request_does_not_extend_the_window() -> None:
    clock = FakeClock()
    limiter = InMemoryRateLimiter(clock=clock)

    limiter.check("a", interval_sec=10)
    clock.now += 5
    assert not limiter.check("a", interval_sec=10).allowed
    clock.now += 5
    assert limiter.check("a", interval_sec=10).allowed


def test_keys_are_independent() -> None:
    limiter = InMemoryRateLimiter(clock=FakeClock())
    assert limiter.check("a", interval_sec=60).allowed
    assert limiter.check("b", interval_sec=60).allowed
    assert not limiter.check("a", interval_sec=60).allowed


def test_stale_entries_are_pruned_periodically() -> None:
    clock = FakeClock()
    limiter = InMemoryRateLimiter(clock=clock, cleanup_interval=3)

    limiter.check("old-1", interval_sec=5)
    limiter.check("old-2", interval_sec=5)
    clock.now += 60
    limiter.check("fresh", interval_sec=5)

    assert len(limiter) == 1


def test_reset_clears_state() -> None:
    limiter = InMemoryRateLimiter(clock=FakeClock())
    limiter.check("a", interval_sec=60)
    limiter.reset()
    assert limiter.check("a", interval_sec=60).allowed
