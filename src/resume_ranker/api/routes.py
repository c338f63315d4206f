from __future__ import annotations

import logging

from fastapi import (
    APIRouter,
    Depends,
    File,
    Form,
    HTTPException,
    Request,
    UploadFile,
    WebSocket,
    WebSocketDisconnect,
)
from fastapi.concurrency import run_in_threadpool
from fastapi.responses import FileResponse
from sqlalchemy.orm import Session

from resume_ranker.api.deps import (
    admit_upload,
    get_app_config,
    get_app_settings,
    get_db,
    get_limiter,
    get_runner,
)
from resume_ranker.api.schemas import (
    AppConfigChangeResponse,
    AppConfigResponse,
    AppConfigUpdateRequest,
    AssessmentResponse,
    CandidateDetailResponse,
    CandidateResponse,
    CandidateUpdateRequest,
    CandidateUploadResponse,
    DebugResponse,
    MessageResponse,
    RoleCreateRequest,
    RoleDetailResponse,
    RoleResponse,
    SkillResponse,
    isoformat,
)
from resume_ranker.config import Settings
from resume_ranker.core.app_config import AppConfig, update_app_config
from resume_ranker.core.intake import accept_resume_upload
from resume_ranker.core.rate_limit import RateLimiter
from resume_ranker.core.runtime import get_event_bus
from resume_ranker.core.tasks import ProcessingTaskRunner
from resume_ranker.db.models import AIAssessment, Candidate, Role, Skill
from resume_ranker.db.repositories import Repository

logger = logging.getLogger(__name__)

router = APIRouter(prefix="/api", tags=["api"])

_TOGGLES = {
    "roles": ("enable_new_role_creation", "Role creation"),
    "uploads": ("enable_resume_uploads", "Resume uploads"),
}
_NULLABLE_CANDIDATE_FIELDS = {"phone", "location", "experience", "education", "current_role"}


@router.get("/roles", response_model=list[RoleResponse])
def list_roles(db: Session = Depends(get_db)) -> list[RoleResponse]:
    repo = Repository(db)
    return [role_response(role, applicants=count) for role, count in repo.list_roles()]


@router.post("/roles", response_model=RoleResponse, status_code=201)
def create_role(
    payload: RoleCreateRequest,
    db: Session = Depends(get_db),
    config: AppConfig = Depends(get_app_config),
) -> RoleResponse:
    if not config.enable_new_role_creation:
        raise HTTPException(status_code=403, detail="New role creation is currently disabled")

    repo = Repository(db)
    role = repo.create_role(
        title=payload.title,
        department=payload.department,
        location=payload.location,
        type=payload.type,
        status=payload.status or "open",
    )
    return role_response(role, applicants=0)


@router.get("/roles/{role_id}", response_model=RoleDetailResponse)
def get_role(role_id: int, db: Session = Depends(get_db)) -> RoleDetailResponse:
    repo = Repository(db)
    role = repo.get_role(role_id)
    if not role:
        raise HTTPException(status_code=404, detail="Role not found")

    candidates = repo.list_candidates_by_role(role_id)
    return RoleDetailResponse(
        role=role_response(role, applicants=len(candidates)),
        candidates=[candidate_response(row) for row in candidates],
    )


@router.post("/candidates", response_model=CandidateUploadResponse, status_code=201)
async def upload_candidate(
    request: Request,
    role_id: int = Form(...),
    resume: UploadFile = File(...),
    db: Session = Depends(get_db),
    runner: ProcessingTaskRunner = Depends(get_runner),
    limiter: RateLimiter = Depends(get_limiter),
    config: AppConfig = Depends(get_app_config),
    settings: Settings = Depends(get_app_settings),
) -> CandidateUploadResponse:
    repo = Repository(db)
    role = await run_in_threadpool(
        admit_upload, request, role_id, repo=repo, limiter=limiter, config=config
    )

    content = await resume.read()
    candidate = await accept_resume_upload(
        repo,
        runner,
        settings,
        role=role,
        filename=resume.filename or "resume",
        content=content,
    )
    return CandidateUploadResponse(
        **candidate_response(candidate).model_dump(),
        message="Resume uploaded successfully. AI analysis in progress.",
    )


@router.get("/candidates/{candidate_id}", response_model=CandidateDetailResponse)
def get_candidate(
    candidate_id: int,
    db: Session = Depends(get_db),
    runner: ProcessingTaskRunner = Depends(get_runner),
) -> CandidateDetailResponse:
    repo = Repository(db)
    candidate = repo.get_candidate(candidate_id)
    if not candidate:
        raise HTTPException(status_code=404, detail="Candidate not found")

    assessment = repo.get_assessment(candidate_id)
    return CandidateDetailResponse(
        candidate=candidate_response(candidate),
        skills=[skill_response(row) for row in repo.list_skills(candidate_id)],
        assessment=assessment_response(assessment) if assessment else None,
        processing=candidate_id in runner.active_candidate_ids(),
    )


@router.put("/candidates/{candidate_id}", response_model=CandidateResponse)
def update_candidate(
    candidate_id: int,
    payload: CandidateUpdateRequest,
    db: Session = Depends(get_db),
) -> CandidateResponse:
    changes = {
        key: value
        for key, value in payload.model_dump(exclude_unset=True).items()
        if value is not None or key in _NULLABLE_CANDIDATE_FIELDS
    }
    repo = Repository(db)
    try:
        candidate = repo.update_candidate(candidate_id, changes)
    except ValueError as exc:
        raise HTTPException(status_code=404, detail=str(exc)) from exc
    return candidate_response(candidate)


@router.delete("/candidates/{candidate_id}", response_model=MessageResponse)
def delete_candidate(
    candidate_id: int,
    db: Session = Depends(get_db),
    runner: ProcessingTaskRunner = Depends(get_runner),
    settings: Settings = Depends(get_app_settings),
) -> MessageResponse:
    repo = Repository(db)
    candidate = repo.get_candidate(candidate_id)
    if not candidate:
        raise HTTPException(status_code=404, detail="Candidate not found")

    runner.cancel(candidate_id)
    resume_name = candidate.resume_path
    repo.delete_candidate(candidate_id)
    if resume_name:
        (settings.upload_dir / resume_name).unlink(missing_ok=True)
    return MessageResponse(message=f"Candidate {candidate_id} deleted")


@router.get("/candidates/{candidate_id}/resume")
def download_resume(
    candidate_id: int,
    db: Session = Depends(get_db),
    settings: Settings = Depends(get_app_settings),
) -> FileResponse:
    candidate = Repository(db).get_candidate(candidate_id)
    if not candidate or not candidate.resume_path:
        raise HTTPException(status_code=404, detail="Resume not found")

    path = settings.upload_dir / candidate.resume_path
    if not path.is_file():
        raise HTTPException(status_code=404, detail="Resume not found")
    return FileResponse(path, filename=candidate.resume_path)


@router.websocket("/candidates/{candidate_id}/stream")
async def stream_candidate_progress(websocket: WebSocket, candidate_id: int) -> None:
    await websocket.accept()
    event_bus = get_event_bus()
    try:
        async for event in event_bus.subscribe(candidate_id):
            await websocket.send_json(event)
            if event.get("type") == "result":
                await websocket.close()
                return
    except WebSocketDisconnect:
        return


@router.get("/config", response_model=AppConfigResponse)
def get_config(config: AppConfig = Depends(get_app_config)) -> AppConfigResponse:
    return AppConfigResponse(**config.model_dump())


@router.patch("/config", response_model=AppConfigResponse)
def patch_config(
    payload: AppConfigUpdateRequest,
    settings: Settings = Depends(get_app_settings),
) -> AppConfigResponse:
    changes = payload.model_dump(exclude_none=True)
    config = update_app_config(settings.app_config_path, **changes)
    return AppConfigResponse(**config.model_dump())


@router.post("/config/{feature}/{action}", response_model=AppConfigChangeResponse)
def toggle_feature(
    feature: str,
    action: str,
    settings: Settings = Depends(get_app_settings),
) -> AppConfigChangeResponse:
    if feature not in _TOGGLES or action not in {"enable", "disable"}:
        raise HTTPException(status_code=404, detail="Unknown config toggle")

    key, label = _TOGGLES[feature]
    config = update_app_config(settings.app_config_path, **{key: action == "enable"})
    return AppConfigChangeResponse(
        message=f"{label} {action}d",
        config=AppConfigResponse(**config.model_dump()),
    )


@router.get("/debug", response_model=DebugResponse)
def debug_dump(
    db: Session = Depends(get_db),
    settings: Settings = Depends(get_app_settings),
) -> DebugResponse:
    _require_admin(settings)
    rows = Repository(db).dump_all()
    data = {
        "roles": [role_response(row).model_dump() for row in rows["roles"]],
        "candidates": [candidate_response(row).model_dump() for row in rows["candidates"]],
        "skills": [skill_response(row).model_dump() for row in rows["skills"]],
        "assessments": [assessment_response(row).model_dump() for row in rows["assessments"]],
    }
    return DebugResponse(
        summary={
            "totalRoles": len(data["roles"]),
            "totalCandidates": len(data["candidates"]),
            "totalSkills": len(data["skills"]),
            "totalAssessments": len(data["assessments"]),
        },
        data=data,
    )


@router.delete("/reset", response_model=MessageResponse)
def reset_data(
    db: Session = Depends(get_db),
    runner: ProcessingTaskRunner = Depends(get_runner),
    settings: Settings = Depends(get_app_settings),
) -> MessageResponse:
    _require_admin(settings)
    cancelled = runner.cancel_all()
    Repository(db).reset_all()

    removed = 0
    if settings.upload_dir.is_dir():
        for path in settings.upload_dir.iterdir():
            if path.is_file() and path.name != ".gitkeep":
                try:
                    path.unlink()
                    removed += 1
                except OSError as exc:
                    logger.error("Error deleting file %s: %s", path, exc)

    logger.warning("Data reset: cancelled=%d files_removed=%d", cancelled, removed)
    return MessageResponse(message="Database and files reset successfully")


def _require_admin(settings: Settings) -> None:
    if not settings.admin_endpoints_enabled:
        raise HTTPException(status_code=404, detail="Not found")


def role_response(role: Role, applicants: int | None = None) -> RoleResponse:
    return RoleResponse(
        id=role.id,
        title=role.title,
        department=role.department,
        location=role.location,
        type=role.type,
        status=role.status,
        created_at=isoformat(role.created_at),
        applicants=applicants,
    )


def candidate_response(candidate: Candidate) -> CandidateResponse:
    return CandidateResponse(
        id=candidate.id,
        role_id=candidate.role_id,
        name=candidate.name,
        email=candidate.email,
        phone=candidate.phone,
        location=candidate.location,
        experience=candidate.experience,
        education=candidate.education,
        current_role=candidate.current_role,
        resume_path=candidate.resume_path,
        status=candidate.status,
        score=candidate.score,
        applied_date=isoformat(candidate.applied_date),
    )


def skill_response(skill: Skill) -> SkillResponse:
    return SkillResponse(
        id=skill.id,
        candidate_id=skill.candidate_id,
        skill_name=skill.skill_name,
        proficiency=skill.proficiency,
    )


def assessment_response(assessment: AIAssessment) -> AssessmentResponse:
    return AssessmentResponse(
        id=assessment.id,
        candidate_id=assessment.candidate_id,
        technical_score=assessment.technical_score,
        experience_score=assessment.experience_score,
        education_score=assessment.education_score,
        cultural_score=assessment.cultural_score,
        recommendation=assessment.recommendation,
        detailed_comments=assessment.detailed_comments,
        strengths=list(assessment.strengths_json or []),
        weaknesses=list(assessment.weaknesses_json or []),
    )
