from __future__ import annotations

import logging

from fastapi.concurrency import run_in_threadpool

from resume_ranker.config import Settings
from resume_ranker.core.resume_text import extract_resume_text, stored_filename
from resume_ranker.core.tasks import ProcessingTaskRunner
from resume_ranker.db.models import Candidate, Role
from resume_ranker.db.repositories import Repository

logger = logging.getLogger(__name__)

PLACEHOLDER_NAME = "Processing..."
PLACEHOLDER_EMAIL = "processing@temp.com"


def store_resume(
    repo: Repository,
    settings: Settings,
    *,
    role: Role,
    filename: str,
    content: bytes,
) -> tuple[Candidate, str]:
    """Save the file and create the placeholder candidate.

    Returns the candidate together with the text extracted from the file.
    """
    target = settings.upload_dir / stored_filename(filename)
    target.parent.mkdir(parents=True, exist_ok=True)
    target.write_bytes(content)
    logger.info("Resume saved path=%s bytes=%d", target, len(content))

    candidate = repo.create_candidate(
        role_id=role.id,
        name=PLACEHOLDER_NAME,
        email=PLACEHOLDER_EMAIL,
        resume_path=target.name,
        status="in-review",
        score=0,
    )

    resume_text = extract_resume_text(content, filename)
    logger.info("Resume text extracted candidate_id=%s chars=%d", candidate.id, len(resume_text))
    return candidate, resume_text


async def accept_resume_upload(
    repo: Repository,
    runner: ProcessingTaskRunner,
    settings: Settings,
    *,
    role: Role,
    filename: str,
    content: bytes,
) -> Candidate:
    """Store the upload and schedule the pipeline without waiting for it.

    File, PDF and database work run in the threadpool; the pipeline task is
    created on the calling event loop. Progress shows up later in the
    candidate, skill and assessment rows.
    """
    candidate, resume_text = await run_in_threadpool(
        store_resume, repo, settings, role=role, filename=filename, content=content
    )
    runner.submit(candidate_id=candidate.id, resume_text=resume_text, role_title=role.title)
    return candidate
