from __future__ import annotations

from pathlib import Path

from fastapi import APIRouter, Depends, File, Form, HTTPException, Request, UploadFile
from fastapi.concurrency import run_in_threadpool
from fastapi.responses import HTMLResponse, RedirectResponse, Response
from fastapi.templating import Jinja2Templates
from sqlalchemy.orm import Session

from resume_ranker.api.deps import (
    admit_upload,
    get_app_config,
    get_app_settings,
    get_db,
    get_limiter,
    get_runner,
)
from resume_ranker.config import Settings
from resume_ranker.core.app_config import AppConfig
from resume_ranker.core.intake import accept_resume_upload
from resume_ranker.core.rate_limit import RateLimiter
from resume_ranker.core.tasks import ProcessingTaskRunner
from resume_ranker.db.repositories import Repository

router = APIRouter(tags=["web"])
templates = Jinja2Templates(directory=str(Path(__file__).resolve().parent / "templates"))


def _message(request: Request, message: str, status_code: int) -> HTMLResponse:
    return templates.TemplateResponse(
        request,
        "message.html",
        {"message": message},
        status_code=status_code,
    )


@router.get("/", response_class=HTMLResponse)
def dashboard(
    request: Request,
    db: Session = Depends(get_db),
    config: AppConfig = Depends(get_app_config),
) -> HTMLResponse:
    repo = Repository(db)
    return templates.TemplateResponse(
        request,
        "dashboard.html",
        {"roles": repo.list_roles(), "config": config},
    )


@router.post("/web/roles")
def create_role(
    request: Request,
    title: str = Form(...),
    department: str = Form(...),
    location: str = Form(...),
    type: str = Form(...),
    db: Session = Depends(get_db),
    config: AppConfig = Depends(get_app_config),
) -> Response:
    if not config.enable_new_role_creation:
        return _message(request, "New role creation is currently disabled", 403)

    role = Repository(db).create_role(title=title, department=department, location=location, type=type)
    return RedirectResponse(url=f"/roles/{role.id}", status_code=303)


@router.get("/roles/{role_id}", response_class=HTMLResponse)
def role_detail(
    role_id: int,
    request: Request,
    db: Session = Depends(get_db),
    runner: ProcessingTaskRunner = Depends(get_runner),
    config: AppConfig = Depends(get_app_config),
) -> HTMLResponse:
    repo = Repository(db)
    role = repo.get_role(role_id)
    if not role:
        return _message(request, "Role not found", 404)

    return templates.TemplateResponse(
        request,
        "role_detail.html",
        {
            "role": role,
            "candidates": repo.list_candidates_by_role(role_id),
            "processing": set(runner.active_candidate_ids()),
            "config": config,
        },
    )


@router.post("/web/roles/{role_id}/candidates")
async def upload_resume(
    role_id: int,
    request: Request,
    resume: UploadFile = File(...),
    db: Session = Depends(get_db),
    runner: ProcessingTaskRunner = Depends(get_runner),
    limiter: RateLimiter = Depends(get_limiter),
    config: AppConfig = Depends(get_app_config),
    settings: Settings = Depends(get_app_settings),
) -> Response:
    repo = Repository(db)
    try:
        role = await run_in_threadpool(
            admit_upload, request, role_id, repo=repo, limiter=limiter, config=config
        )
    except HTTPException as exc:
        return _message(request, exc.detail, exc.status_code)

    candidate = await accept_resume_upload(
        repo,
        runner,
        settings,
        role=role,
        filename=resume.filename or "resume",
        content=await resume.read(),
    )
    return RedirectResponse(url=f"/roles/{role_id}/candidates/{candidate.id}", status_code=303)


@router.get("/roles/{role_id}/candidates/{candidate_id}", response_class=HTMLResponse)
def candidate_detail(
    role_id: int,
    candidate_id: int,
    request: Request,
    db: Session = Depends(get_db),
    runner: ProcessingTaskRunner = Depends(get_runner),
) -> HTMLResponse:
    repo = Repository(db)
    candidate = repo.get_candidate(candidate_id)
    if not candidate or candidate.role_id != role_id:
        return _message(request, "Candidate not found", 404)

    return templates.TemplateResponse(
        request,
        "candidate_detail.html",
        {
            "role": candidate.role,
            "candidate": candidate,
            "skills": repo.list_skills(candidate_id),
            "assessment": repo.get_assessment(candidate_id),
            "processing": candidate_id in runner.active_candidate_ids(),
        },
    )


@router.post("/web/candidates/{candidate_id}/status")
def update_status(
    candidate_id: int,
    status: str = Form(...),
    db: Session = Depends(get_db),
) -> Response:
    repo = Repository(db)
    candidate = repo.get_candidate(candidate_id)
    if not candidate:
        return RedirectResponse(url="/", status_code=303)

    if status in {"in-review", "shortlisted", "rejected"}:
        repo.update_candidate(candidate_id, {"status": status})
    return RedirectResponse(
        url=f"/roles/{candidate.role_id}/candidates/{candidate_id}", status_code=303
    )
