from __future__ import annotations

from pathlib import Path

from resume_ranker.config import get_settings
from resume_ranker.db.base import Base
from resume_ranker.db.session import engine
from resume_ranker.db import models  # noqa: F401


def ensure_data_directories() -> None:
    settings = get_settings()
    paths: list[Path] = [
        settings.data_dir,
        settings.upload_dir,
        settings.app_config_path.parent,
    ]
    for path in paths:
        path.mkdir(parents=True, exist_ok=True)


def init_database() -> dict[str, list[str]]:
    ensure_data_directories()
    Base.metadata.create_all(bind=engine)
    return {"tables": sorted(Base.metadata.tables)}
