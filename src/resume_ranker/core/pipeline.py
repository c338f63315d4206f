from __future__ import annotations

import asyncio
import inspect
import logging
from collections.abc import Awaitable, Callable, Sequence
from typing import Any, Protocol

from resume_ranker.config import Settings, get_settings
from resume_ranker.core.resilience import Sleep, run_with_retry
from resume_ranker.llm.extraction import MAX_SKILLS, MAX_STRENGTHS, MAX_WEAKNESSES, ResumeExtractor
from resume_ranker.types import (
    AssessmentDraft,
    BasicInfo,
    PipelineStage,
    ProcessingResult,
    round_half_up,
)

logger = logging.getLogger(__name__)

ProgressCallback = Callable[[str], Awaitable[None] | None]

STAGE_MESSAGES: dict[str, str] = {
    "extraction": "Extracting candidate information...",
    "skills": "Analyzing technical skills...",
    "assessment": "Generating AI assessment...",
    "done": "Complete!",
}

# always written from the stage-1 result, even when empty
_OVERWRITTEN_FIELDS = ("phone", "location", "experience", "education", "current_role")


class CandidateStore(Protocol):
    def get_candidate(self, candidate_id: int) -> Any | None: ...

    def update_candidate(self, candidate_id: int, values: dict[str, Any]) -> Any: ...

    def list_skills(self, candidate_id: int) -> Sequence[Any]: ...

    def add_skill(self, candidate_id: int, name: str, proficiency: int) -> Any: ...

    def create_assessment(self, **fields: Any) -> Any: ...


def overall_score(draft: AssessmentDraft) -> int:
    """Unweighted mean of the four sub-scores, halves rounded up."""
    scores = draft.sub_scores
    return round_half_up(sum(scores) / len(scores))


class ResumePipeline:
    """Turns raw resume text into candidate fields, skills and an assessment.

    Stages run in order and each one commits its writes before the next starts,
    so a failed run leaves whatever the earlier stages stored.
    """

    def __init__(
        self,
        store: CandidateStore,
        extractor: ResumeExtractor,
        *,
        settings: Settings | None = None,
        sleep: Sleep = asyncio.sleep,
    ):
        self.store = store
        self.extractor = extractor
        self.settings = settings or get_settings()
        self.sleep = sleep

    async def process(
        self,
        candidate_id: int,
        resume_text: str,
        role_title: str,
        on_progress: ProgressCallback | None = None,
    ) -> ProcessingResult:
        text = resume_text[: self.settings.pipeline_max_resume_chars]
        logger.info(
            "Processing resume candidate_id=%s role=%r chars=%d (truncated from %d)",
            candidate_id,
            role_title,
            len(text),
            len(resume_text),
        )

        stage: PipelineStage = "extraction"
        try:
            await self._notify(on_progress, stage)
            basic_info = await self._run_stage(stage, lambda: self.extractor.extract_basic_info(text))
            self._apply_basic_info(candidate_id, basic_info)

            stage = "skills"
            await self._notify(on_progress, stage)
            skills = await self._run_stage(stage, lambda: self.extractor.extract_skills(text))
            for skill in skills[:MAX_SKILLS]:
                self.store.add_skill(candidate_id, skill.name, skill.proficiency)
            logger.info("Stored %d skills candidate_id=%s", min(len(skills), MAX_SKILLS), candidate_id)

            stage = "assessment"
            await self._notify(on_progress, stage)
            draft = await self._run_stage(
                stage, lambda: self._generate_assessment(candidate_id, text, role_title)
            )
            self._store_assessment(candidate_id, draft)
        except Exception as exc:
            logger.exception("Resume processing failed candidate_id=%s stage=%s", candidate_id, stage)
            self._mark_for_review(candidate_id)
            return ProcessingResult(
                candidate_id=candidate_id,
                status="failed",
                stage=stage,
                error=str(exc) or exc.__class__.__name__,
            )

        await self._notify(on_progress, "done")
        logger.info("Resume processing completed candidate_id=%s", candidate_id)
        return ProcessingResult(candidate_id=candidate_id, status="completed", stage="done")

    async def _run_stage(self, stage: str, work: Callable[[], Awaitable[Any]]) -> Any:
        logger.info("Stage %s started", stage)
        result = await run_with_retry(
            work,
            max_attempts=self.settings.pipeline_max_retries,
            timeout_sec=self.settings.pipeline_stage_timeout_sec,
            sleep=self.sleep,
            label=stage,
        )
        logger.info("Stage %s completed", stage)
        return result

    def _apply_basic_info(self, candidate_id: int, info: BasicInfo) -> None:
        values: dict[str, Any] = {name: getattr(info, name) for name in _OVERWRITTEN_FIELDS}
        if info.name:
            values["name"] = info.name
        if info.email:
            values["email"] = info.email
        self.store.update_candidate(candidate_id, values)

    async def _generate_assessment(
        self, candidate_id: int, text: str, role_title: str
    ) -> AssessmentDraft:
        # read back committed state so the prompt matches what is stored
        candidate = self.store.get_candidate(candidate_id)
        skills = self.store.list_skills(candidate_id)
        logger.info("Assessing candidate_id=%s with %d stored skills", candidate_id, len(skills))
        return await self.extractor.generate_assessment(
            text,
            role_title=role_title,
            candidate=candidate,
            skills=skills,
        )

    def _store_assessment(self, candidate_id: int, draft: AssessmentDraft) -> None:
        score = overall_score(draft)
        logger.info("Overall score candidate_id=%s score=%d", candidate_id, score)
        self.store.update_candidate(candidate_id, {"score": score})
        self.store.create_assessment(
            candidate_id=candidate_id,
            technical_score=round_half_up(draft.technical_score),
            experience_score=round_half_up(draft.experience_score),
            education_score=round_half_up(draft.education_score),
            cultural_score=round_half_up(draft.cultural_score),
            recommendation=draft.recommendation,
            detailed_comments=draft.detailed_comments,
            strengths=draft.strengths[:MAX_STRENGTHS],
            weaknesses=draft.weaknesses[:MAX_WEAKNESSES],
        )

    def _mark_for_review(self, candidate_id: int) -> None:
        rollback = getattr(self.store, "rollback", None)
        try:
            if rollback is not None:
                rollback()
            self.store.update_candidate(candidate_id, {"status": "in-review"})
        except Exception:
            logger.exception("Could not reset status candidate_id=%s", candidate_id)

    async def _notify(self, on_progress: ProgressCallback | None, stage: str) -> None:
        if on_progress is None:
            return
        try:
            outcome = on_progress(STAGE_MESSAGES[stage])
            if inspect.isawaitable(outcome):
                await outcome
        except Exception as exc:
            logger.warning("Progress callback failed stage=%s error=%s", stage, exc)
