from __future__ import annotations

from datetime import datetime
from typing import Any, Literal

from pydantic import BaseModel, Field

from resume_ranker.types import CandidateStatus


class RoleCreateRequest(BaseModel):
    title: str = Field(min_length=1)
    department: str = Field(min_length=1)
    location: str = Field(min_length=1)
    type: str = Field(min_length=1)
    status: str = "open"


class RoleResponse(BaseModel):
    id: int
    title: str
    department: str
    location: str
    type: str
    status: str
    created_at: str | None = None
    applicants: int | None = None


class CandidateResponse(BaseModel):
    id: int
    role_id: int
    name: str
    email: str
    phone: str | None = None
    location: str | None = None
    experience: str | None = None
    education: str | None = None
    current_role: str | None = None
    resume_path: str | None = None
    status: str
    score: int
    applied_date: str | None = None


class RoleDetailResponse(BaseModel):
    role: RoleResponse
    candidates: list[CandidateResponse]


class CandidateUploadResponse(CandidateResponse):
    message: str


class CandidateUpdateRequest(BaseModel):
    name: str | None = None
    email: str | None = None
    phone: str | None = None
    location: str | None = None
    experience: str | None = None
    education: str | None = None
    current_role: str | None = None
    status: CandidateStatus | None = None
    score: int | None = Field(default=None, ge=0, le=100)


class SkillResponse(BaseModel):
    id: int
    candidate_id: int
    skill_name: str
    proficiency: int


class AssessmentResponse(BaseModel):
    id: int
    candidate_id: int
    technical_score: int
    experience_score: int
    education_score: int
    cultural_score: int
    recommendation: str
    detailed_comments: str
    strengths: list[str] = Field(default_factory=list)
    weaknesses: list[str] = Field(default_factory=list)


class CandidateDetailResponse(BaseModel):
    candidate: CandidateResponse
    skills: list[SkillResponse]
    assessment: AssessmentResponse | None = None
    processing: bool = False


class AppConfigResponse(BaseModel):
    upload_rate_limit_seconds: int
    enable_new_role_creation: bool
    enable_resume_uploads: bool


class AppConfigUpdateRequest(BaseModel):
    upload_rate_limit_seconds: int | None = Field(default=None, ge=0)
    enable_new_role_creation: bool | None = None
    enable_resume_uploads: bool | None = None


class AppConfigChangeResponse(BaseModel):
    message: str
    config: AppConfigResponse


class DebugResponse(BaseModel):
    summary: dict[str, int]
    data: dict[str, list[dict[str, Any]]]


class MessageResponse(BaseModel):
    message: str
    status: Literal["ok"] = "ok"


def isoformat(value: datetime | None) -> str | None:
    return value.isoformat() if value else None
