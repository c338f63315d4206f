from __future__ import annotations

from collections.abc import Generator

from fastapi import HTTPException, Request
from sqlalchemy.orm import Session

from resume_ranker.config import Settings, get_settings
from resume_ranker.core.app_config import AppConfig, load_app_config
from resume_ranker.core.rate_limit import RateLimiter
from resume_ranker.core.runtime import get_rate_limiter, get_task_runner
from resume_ranker.core.tasks import ProcessingTaskRunner
from resume_ranker.db.models import Role
from resume_ranker.db.repositories import Repository
from resume_ranker.db.session import get_db_session


def get_db() -> Generator[Session, None, None]:
    yield from get_db_session()


def get_runner() -> ProcessingTaskRunner:
    return get_task_runner()


def get_limiter() -> RateLimiter:
    return get_rate_limiter()


def get_app_config() -> AppConfig:
    return load_app_config(get_settings().app_config_path)


def get_app_settings() -> Settings:
    return get_settings()


def client_key(request: Request) -> str:
    forwarded = request.headers.get("x-forwarded-for")
    if forwarded:
        return forwarded.split(",")[0].strip() or "unknown"
    return request.client.host if request.client else "unknown"


def admit_upload(
    request: Request,
    role_id: int,
    *,
    repo: Repository,
    limiter: RateLimiter,
    config: AppConfig,
) -> Role:
    """Checks an upload against the rate limit, the upload switch and the role.

    Raises ``HTTPException`` with 429, 403 or 404; returns the target role.
    """
    decision = limiter.check(client_key(request), interval_sec=config.upload_rate_limit_seconds)
    if not decision.allowed:
        raise HTTPException(
            status_code=429,
            detail=(
                f"Rate limit exceeded. Please wait {decision.retry_after} seconds "
                "before uploading again."
            ),
            headers={"Retry-After": str(decision.retry_after)},
        )

    if not config.enable_resume_uploads:
        raise HTTPException(status_code=403, detail="Resume uploads are currently disabled.")

    role = repo.get_role(role_id)
    if not role:
        raise HTTPException(status_code=404, detail="Role not found")
    return role
