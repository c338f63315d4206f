from __future__ import annotations

import asyncio
import json
from pathlib import Path

import typer
import uvicorn

from resume_ranker.api.app import create_app
from resume_ranker.config import get_settings
from resume_ranker.core.app_config import AppConfig, load_app_config, update_app_config
from resume_ranker.core.intake import store_resume
from resume_ranker.core.tasks import ProcessingTaskRunner
from resume_ranker.db.init import init_database
from resume_ranker.db.repositories import Repository
from resume_ranker.db.session import SessionLocal
from resume_ranker.logging_config import configure_logging

app = typer.Typer(help="Resume Ranker CLI")
roles_app = typer.Typer(help="Manage open roles")
candidates_app = typer.Typer(help="Process and inspect candidates")
config_app = typer.Typer(help="Runtime feature flags")

app.add_typer(roles_app, name="roles")
app.add_typer(candidates_app, name="candidates")
app.add_typer(config_app, name="config")

_INITIALIZED = False


def ensure_initialized() -> None:
    global _INITIALIZED
    if _INITIALIZED:
        return
    init_database()
    _INITIALIZED = True


@app.command("init")
def init_cmd() -> None:
    """Initialize database and data directories."""
    configure_logging()
    result = init_database()
    typer.echo(json.dumps({"ok": True, **result}, indent=2))


@roles_app.command("create")
def roles_create(
    title: str = typer.Option(..., "--title"),
    department: str = typer.Option(..., "--department"),
    location: str = typer.Option(..., "--location"),
    type: str = typer.Option("Full-time", "--type"),
) -> None:
    configure_logging()
    ensure_initialized()
    if not load_app_config(get_settings().app_config_path).enable_new_role_creation:
        raise typer.BadParameter("new role creation is currently disabled")

    with SessionLocal() as db:
        role = Repository(db).create_role(
            title=title, department=department, location=location, type=type
        )
        typer.echo(json.dumps({"id": role.id, "title": role.title}, indent=2))


@roles_app.command("list")
def roles_list() -> None:
    configure_logging()
    ensure_initialized()
    with SessionLocal() as db:
        rows = Repository(db).list_roles()
        typer.echo(
            json.dumps(
                [
                    {
                        "id": role.id,
                        "title": role.title,
                        "department": role.department,
                        "status": role.status,
                        "applicants": applicants,
                    }
                    for role, applicants in rows
                ],
                indent=2,
            )
        )


@candidates_app.command("process")
def candidates_process(
    role_id: int = typer.Option(..., "--role-id"),
    file: Path = typer.Option(..., "--file", exists=True, readable=True),
) -> None:
    """Create a candidate from a resume file and run the pipeline in the foreground."""
    configure_logging()
    ensure_initialized()
    settings = get_settings()

    with SessionLocal() as db:
        repo = Repository(db)
        role = repo.get_role(role_id)
        if not role:
            raise typer.BadParameter(f"role {role_id} not found")

        candidate, resume_text = store_resume(
            repo, settings, role=role, filename=file.name, content=file.read_bytes()
        )
        candidate_id = candidate.id
        role_title = role.title

    runner = ProcessingTaskRunner(settings=settings)
    result = asyncio.run(
        runner.run(candidate_id=candidate_id, resume_text=resume_text, role_title=role_title)
    )
    typer.echo(json.dumps(result.model_dump(), indent=2))


@candidates_app.command("show")
def candidates_show(candidate_id: int = typer.Option(..., "--candidate-id")) -> None:
    configure_logging()
    ensure_initialized()
    with SessionLocal() as db:
        repo = Repository(db)
        candidate = repo.get_candidate(candidate_id)
        if not candidate:
            raise typer.BadParameter(f"candidate {candidate_id} not found")

        assessment = repo.get_assessment(candidate_id)
        typer.echo(
            json.dumps(
                {
                    "id": candidate.id,
                    "role_id": candidate.role_id,
                    "name": candidate.name,
                    "email": candidate.email,
                    "current_role": candidate.current_role,
                    "status": candidate.status,
                    "score": candidate.score,
                    "skills": [
                        {"name": skill.skill_name, "proficiency": skill.proficiency}
                        for skill in repo.list_skills(candidate_id)
                    ],
                    "assessment": (
                        {
                            "recommendation": assessment.recommendation,
                            "technical_score": assessment.technical_score,
                            "experience_score": assessment.experience_score,
                            "education_score": assessment.education_score,
                            "cultural_score": assessment.cultural_score,
                            "strengths": assessment.strengths_json or [],
                            "weaknesses": assessment.weaknesses_json or [],
                        }
                        if assessment
                        else None
                    ),
                },
                indent=2,
            )
        )


@config_app.command("show")
def config_show() -> None:
    configure_logging()
    config = load_app_config(get_settings().app_config_path)
    typer.echo(json.dumps(config.model_dump(), indent=2))


@config_app.command("set")
def config_set(
    key: str = typer.Argument(...),
    value: str = typer.Argument(...),
) -> None:
    configure_logging()
    if key not in AppConfig.model_fields:
        raise typer.BadParameter(f"unknown config key {key!r}")

    try:
        config = update_app_config(get_settings().app_config_path, **{key: value})
    except ValueError as exc:
        raise typer.BadParameter(str(exc)) from exc
    typer.echo(json.dumps(config.model_dump(), indent=2))


@app.command("serve")
def serve(
    host: str | None = typer.Option(None, "--host"),
    port: int | None = typer.Option(None, "--port"),
) -> None:
    configure_logging()
    ensure_initialized()
    settings = get_settings()
    app_instance = create_app()
    uvicorn.run(app_instance, host=host or settings.app_host, port=port or settings.app_port)
