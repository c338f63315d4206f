from __future__ import annotations

from resume_ranker.core.events import EventBus
from resume_ranker.core.rate_limit import InMemoryRateLimiter, RateLimiter
from resume_ranker.core.tasks import ProcessingTaskRunner

_EVENT_BUS: EventBus | None = None
_TASK_RUNNER: ProcessingTaskRunner | None = None
_RATE_LIMITER: RateLimiter | None = None


def get_event_bus() -> EventBus:
    global _EVENT_BUS
    if _EVENT_BUS is None:
        _EVENT_BUS = EventBus()
    return _EVENT_BUS


def get_task_runner() -> ProcessingTaskRunner:
    global _TASK_RUNNER
    if _TASK_RUNNER is None:
        _TASK_RUNNER = ProcessingTaskRunner(event_bus=get_event_bus())
    return _TASK_RUNNER


def get_rate_limiter() -> RateLimiter:
    global _RATE_LIMITER
    if _RATE_LIMITER is None:
        _RATE_LIMITER = InMemoryRateLimiter()
    return _RATE_LIMITER
