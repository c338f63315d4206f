"""Structured extraction from resume text, one model call per stage.

Each method builds its prompt from a bounded prefix of the resume, sends it to
the model and decodes the JSON payload. Retries and timeouts are applied by the
caller.
"""

from __future__ import annotations

import logging
from collections.abc import Sequence
from typing import Any, Protocol

from pydantic import ValidationError

from resume_ranker.llm.decoding import ExtractionError, decode_json
from resume_ranker.llm.prompts import ASSESSMENT_PROMPT, BASIC_INFO_PROMPT, SKILLS_PROMPT
from resume_ranker.types import AssessmentDraft, BasicInfo, SkillEstimate

logger = logging.getLogger(__name__)

BASIC_INFO_CHARS = 1000
SKILLS_CHARS = 3000
ASSESSMENT_CHARS = 2000

MAX_SKILLS = 15
MAX_STRENGTHS = 4
MAX_WEAKNESSES = 3


class TextModel(Protocol):
    async def complete(self, prompt: str) -> str: ...


class ResumeExtractor:
    def __init__(self, model: TextModel):
        self.model = model

    async def extract_basic_info(self, resume_text: str) -> BasicInfo:
        prompt = BASIC_INFO_PROMPT.format(resume_excerpt=resume_text[:BASIC_INFO_CHARS])
        text = await self.model.complete(prompt)
        logger.debug("Basic info response received (%d chars)", len(text))

        payload = decode_json(text, "object", error_message="Failed to extract basic info")
        try:
            return BasicInfo.model_validate(payload)
        except ValidationError as exc:
            raise ExtractionError("Failed to extract basic info") from exc

    async def extract_skills(self, resume_text: str) -> list[SkillEstimate]:
        prompt = SKILLS_PROMPT.format(resume_excerpt=resume_text[:SKILLS_CHARS])
        text = await self.model.complete(prompt)

        payload = decode_json(text, "array", error_message="Failed to extract skills")
        logger.info("Model returned %d skills", len(payload))

        skills: list[SkillEstimate] = []
        for raw in payload[:MAX_SKILLS]:
            try:
                skills.append(SkillEstimate.model_validate(raw))
            except ValidationError:
                logger.warning("Skipping malformed skill entry: %r", raw)
        return skills

    async def generate_assessment(
        self,
        resume_text: str,
        *,
        role_title: str,
        candidate: Any,
        skills: Sequence[Any],
    ) -> AssessmentDraft:
        prompt = ASSESSMENT_PROMPT.format(
            role_title=role_title,
            candidate_name=_field(candidate, "name"),
            candidate_experience=_field(candidate, "experience"),
            candidate_education=_field(candidate, "education"),
            skills_summary=", ".join(f"{skill.skill_name} ({skill.proficiency}%)" for skill in skills),
            resume_excerpt=resume_text[:ASSESSMENT_CHARS],
        )
        text = await self.model.complete(prompt)

        payload = decode_json(text, "object", error_message="Failed to generate assessment")
        try:
            draft = AssessmentDraft.model_validate(payload)
        except ValidationError as exc:
            raise ExtractionError("Failed to generate assessment") from exc

        logger.info("Assessment generated recommendation=%s", draft.recommendation)
        return draft.model_copy(
            update={
                "strengths": draft.strengths[:MAX_STRENGTHS],
                "weaknesses": draft.weaknesses[:MAX_WEAKNESSES],
            }
        )


def _field(candidate: Any, name: str) -> str:
    value = getattr(candidate, name, None) if candidate is not None else None
    return str(value) if value else "Unknown"
