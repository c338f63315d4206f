"""Runtime feature flags persisted as a small JSON file.

Unlike ``Settings`` these can be flipped while the server runs (API or CLI).
"""

from __future__ import annotations

import json
import logging
from pathlib import Path
from typing import Any

from pydantic import BaseModel, Field, ValidationError

logger = logging.getLogger(__name__)


class AppConfig(BaseModel):
    upload_rate_limit_seconds: int = Field(default=0, ge=0)
    enable_new_role_creation: bool = True
    enable_resume_uploads: bool = True


def load_app_config(path: Path) -> AppConfig:
    if not path.exists():
        return AppConfig()
    try:
        payload = json.loads(path.read_text(encoding="utf-8"))
        return AppConfig.model_validate(payload)
    except (OSError, json.JSONDecodeError, ValidationError) as exc:
        logger.error("Error reading app config %s: %s", path, exc)
        return AppConfig()


def update_app_config(path: Path, **changes: Any) -> AppConfig:
    current = load_app_config(path)
    updated = AppConfig.model_validate({**current.model_dump(), **changes})
    path.parent.mkdir(parents=True, exist_ok=True)
    path.write_text(json.dumps(updated.model_dump(), indent=4), encoding="utf-8")
    logger.info("App config updated: %s", changes)
    return updated
