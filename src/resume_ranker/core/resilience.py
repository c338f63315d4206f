from __future__ import annotations

import asyncio
import logging
from collections.abc import Awaitable, Callable
from typing import TypeVar

logger = logging.getLogger(__name__)

T = TypeVar("T")

Sleep = Callable[[float], Awaitable[object]]


class OperationTimeoutError(TimeoutError):
    def __init__(self, message: str = "Operation timed out"):
        super().__init__(message)


async def with_timeout(awaitable: Awaitable[T], timeout_sec: float) -> T:
    try:
        return await asyncio.wait_for(awaitable, timeout=timeout_sec)
    except asyncio.TimeoutError as exc:
        raise OperationTimeoutError() from exc


async def run_with_retry(
    work: Callable[[], Awaitable[T]],
    *,
    max_attempts: int,
    timeout_sec: float,
    sleep: Sleep = asyncio.sleep,
    label: str = "operation",
) -> T:
    """Run ``work`` until it succeeds or ``max_attempts`` attempts have failed.

    Attempts run one after another, each bounded by ``timeout_sec``. After a
    failed attempt ``k`` (zero-indexed) the wrapper waits ``2 ** k`` seconds,
    except after the last one, whose error is re-raised unchanged.
    """
    if max_attempts < 1:
        raise ValueError("max_attempts must be at least 1")

    for attempt in range(max_attempts):
        try:
            return await with_timeout(work(), timeout_sec)
        except Exception as exc:
            logger.warning("%s attempt %d/%d failed: %s", label, attempt + 1, max_attempts, exc)
            if attempt == max_attempts - 1:
                raise
            delay = 2**attempt
            logger.info("Waiting %ss before retrying %s", delay, label)
            await sleep(delay)

    raise RuntimeError(f"{label} ran no attempts")
