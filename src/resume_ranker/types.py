from __future__ import annotations

import math
from typing import Any, Literal

from pydantic import BaseModel, ConfigDict, Field, field_validator

CandidateStatus = Literal["in-review", "shortlisted", "rejected"]
Recommendation = Literal["Strong Hire", "Hire", "Maybe", "No Hire"]
PipelineStage = Literal["extraction", "skills", "assessment", "done"]

RECOMMENDATIONS: tuple[str, ...] = ("Strong Hire", "Hire", "Maybe", "No Hire")


def round_half_up(value: float) -> int:
    return int(math.floor(value + 0.5))


def _clamp_score(value: Any) -> float:
    if isinstance(value, bool):
        raise ValueError("score must be a number")
    if isinstance(value, str):
        value = value.strip().rstrip("%")
    return max(0.0, min(100.0, float(value)))


def _optional_text(value: Any) -> str | None:
    if value is None:
        return None
    if isinstance(value, (list, tuple)):
        return ", ".join(str(item) for item in value)
    return str(value)


class BasicInfo(BaseModel):
    model_config = ConfigDict(populate_by_name=True, extra="ignore")

    name: str | None = None
    email: str | None = None
    phone: str | None = None
    location: str | None = None
    experience: str | None = None
    education: str | None = None
    current_role: str | None = Field(default=None, alias="currentRole")

    @field_validator(
        "name", "email", "phone", "location", "experience", "education", "current_role", mode="before"
    )
    @classmethod
    def coerce_text(cls, value: Any) -> str | None:
        return _optional_text(value)


class SkillEstimate(BaseModel):
    model_config = ConfigDict(extra="ignore")

    name: str
    proficiency: int = 0

    @field_validator("name", mode="before")
    @classmethod
    def validate_name(cls, value: Any) -> str:
        text = str(value or "").strip()
        if not text:
            raise ValueError("skill name must not be empty")
        return text

    @field_validator("proficiency", mode="before")
    @classmethod
    def validate_proficiency(cls, value: Any) -> int:
        if value is None:
            return 0
        return round_half_up(_clamp_score(value))


class AssessmentDraft(BaseModel):
    model_config = ConfigDict(populate_by_name=True, extra="ignore")

    technical_score: float = Field(alias="technicalScore")
    experience_score: float = Field(alias="experienceScore")
    education_score: float = Field(alias="educationScore")
    cultural_score: float = Field(alias="culturalScore")
    recommendation: Recommendation
    detailed_comments: str = Field(default="", alias="detailedComments")
    strengths: list[str] = Field(default_factory=list)
    weaknesses: list[str] = Field(default_factory=list)

    @field_validator(
        "technical_score", "experience_score", "education_score", "cultural_score", mode="before"
    )
    @classmethod
    def validate_score(cls, value: Any) -> float:
        return _clamp_score(value)

    @field_validator("recommendation", mode="before")
    @classmethod
    def normalize_recommendation(cls, value: Any) -> Any:
        if not isinstance(value, str):
            return value
        lookup = {label.lower(): label for label in RECOMMENDATIONS}
        return lookup.get(" ".join(value.split()).lower(), value)

    @field_validator("detailed_comments", mode="before")
    @classmethod
    def coerce_comments(cls, value: Any) -> str:
        return _optional_text(value) or ""

    @field_validator("strengths", "weaknesses", mode="before")
    @classmethod
    def coerce_points(cls, value: Any) -> list[str]:
        if value is None:
            return []
        if isinstance(value, str):
            return [value]
        return [str(item) for item in value]

    @property
    def sub_scores(self) -> tuple[float, float, float, float]:
        return (self.technical_score, self.experience_score, self.education_score, self.cultural_score)


class ProcessingResult(BaseModel):
    candidate_id: int
    status: Literal["completed", "failed"]
    stage: PipelineStage
    error: str | None = None


class ModelResponse(BaseModel):
    content: str
    raw: dict[str, Any] = Field(default_factory=dict)
