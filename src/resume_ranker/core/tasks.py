from __future__ import annotations

import asyncio
import logging
from collections.abc import Callable
from functools import partial

from sqlalchemy.orm import Session

from resume_ranker.config import Settings, get_settings
from resume_ranker.core.events import EventBus
from resume_ranker.core.pipeline import ResumePipeline
from resume_ranker.core.resilience import Sleep
from resume_ranker.db.repositories import Repository
from resume_ranker.db.session import SessionLocal
from resume_ranker.llm.extraction import ResumeExtractor, TextModel
from resume_ranker.llm.router import LLMRouter
from resume_ranker.types import ProcessingResult

logger = logging.getLogger(__name__)


class ProcessingTaskRunner:
    """Runs resume pipelines as background tasks on the current event loop.

    ``submit`` hands back the task so callers can ignore it, await it, or
    cancel it later through ``cancel``.
    """

    def __init__(
        self,
        *,
        session_factory: Callable[[], Session] = SessionLocal,
        settings: Settings | None = None,
        event_bus: EventBus | None = None,
        model_factory: Callable[[], TextModel] | None = None,
        sleep: Sleep = asyncio.sleep,
    ):
        self.session_factory = session_factory
        self.settings = settings or get_settings()
        self.event_bus = event_bus or EventBus()
        self.model_factory = model_factory or partial(LLMRouter, self.settings)
        self.sleep = sleep
        self._tasks: dict[int, asyncio.Task[ProcessingResult]] = {}

    def submit(
        self, *, candidate_id: int, resume_text: str, role_title: str
    ) -> asyncio.Task[ProcessingResult]:
        existing = self._tasks.get(candidate_id)
        if existing is not None and not existing.done():
            raise ValueError(f"candidate {candidate_id} is already being processed")

        loop = asyncio.get_running_loop()
        task = loop.create_task(
            self.run(candidate_id=candidate_id, resume_text=resume_text, role_title=role_title),
            name=f"resume-pipeline-{candidate_id}",
        )
        self._tasks[candidate_id] = task
        task.add_done_callback(partial(self._on_done, candidate_id))
        logger.info("Background processing submitted candidate_id=%s", candidate_id)
        return task

    async def run(self, *, candidate_id: int, resume_text: str, role_title: str) -> ProcessingResult:
        async def on_progress(message: str) -> None:
            await self.event_bus.publish(
                candidate_id,
                {"type": "progress", "candidate_id": candidate_id, "message": message},
            )

        with self.session_factory() as session:
            pipeline = ResumePipeline(
                Repository(session),
                ResumeExtractor(self.model_factory()),
                settings=self.settings,
                sleep=self.sleep,
            )
            result = await pipeline.process(
                candidate_id, resume_text, role_title, on_progress=on_progress
            )

        await self.event_bus.publish(candidate_id, {"type": "result", **result.model_dump()})
        if result.status == "failed":
            logger.error(
                "Background processing failed candidate_id=%s stage=%s error=%s",
                candidate_id,
                result.stage,
                result.error,
            )
        else:
            logger.info("AI processing completed for candidate_id=%s", candidate_id)
        return result

    def cancel(self, candidate_id: int) -> bool:
        task = self._tasks.get(candidate_id)
        if task is None or task.done():
            return False
        logger.info("Cancelling background processing candidate_id=%s", candidate_id)
        return task.cancel()

    def cancel_all(self) -> int:
        return sum(1 for candidate_id in list(self._tasks) if self.cancel(candidate_id))

    def active_candidate_ids(self) -> list[int]:
        return sorted(cid for cid, task in self._tasks.items() if not task.done())

    def _on_done(self, candidate_id: int, task: asyncio.Task[ProcessingResult]) -> None:
        if self._tasks.get(candidate_id) is task:
            del self._tasks[candidate_id]
        if task.cancelled():
            logger.info("Background processing cancelled candidate_id=%s", candidate_id)
            return
        exc = task.exception()
        if exc is not None:
            logger.error(
                "Background processing crashed candidate_id=%s",
                candidate_id,
                exc_info=(type(exc), exc, exc.__traceback__),
            )
