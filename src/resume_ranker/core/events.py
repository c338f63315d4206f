from __future__ import annotations

import asyncio
from collections import defaultdict
from collections.abc import AsyncIterator
from typing import Any


class EventBus:
    """Fan-out of pipeline progress events, keyed by candidate id."""

    def __init__(self) -> None:
        self._queues: dict[int, list[asyncio.Queue[dict[str, Any]]]] = defaultdict(list)
        self._lock = asyncio.Lock()

    async def publish(self, candidate_id: int, event: dict[str, Any]) -> None:
        async with self._lock:
            for queue in list(self._queues.get(candidate_id, [])):
                await queue.put(event)

    async def subscribe(self, candidate_id: int) -> AsyncIterator[dict[str, Any]]:
        queue: asyncio.Queue[dict[str, Any]] = asyncio.Queue()
        async with self._lock:
            self._queues[candidate_id].append(queue)

        try:
            while True:
                event = await queue.get()
                yield event
        finally:
            async with self._lock:
                if queue in self._queues.get(candidate_id, []):
                    self._queues[candidate_id].remove(queue)
                if not self._queues.get(candidate_id):
                    self._queues.pop(candidate_id, None)

    def subscriber_count(self, candidate_id: int) -> int:
        return len(self._queues.get(candidate_id, []))
