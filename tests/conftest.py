from __future__ import annotations

import os
import tempfile
from pathlib import Path

_TEST_ROOT = Path(tempfile.mkdtemp(prefix="resume-ranker-tests-"))
os.environ["APP_ENV"] = "test"
os.environ["DATABASE_URL"] = f"sqlite:///{_TEST_ROOT / 'test.db'}"
os.environ["DATA_DIR"] = str(_TEST_ROOT)
os.environ["UPLOAD_DIR"] = str(_TEST_ROOT / "uploads")
os.environ["APP_CONFIG_PATH"] = str(_TEST_ROOT / "config.json")
os.environ["OPENAI_API_KEY"] = ""
os.environ["LOCAL_LLM_ENABLED"] = "false"

import pytest  # noqa: E402

from resume_ranker.config import get_settings  # noqa: E402
from resume_ranker.core.runtime import get_rate_limiter  # noqa: E402
from resume_ranker.db.base import Base  # noqa: E402
from resume_ranker.db.init import ensure_data_directories  # noqa: E402
from resume_ranker.db.session import engine  # noqa: E402


@pytest.fixture(autouse=True)
def reset_db() -> None:
    ensure_data_directories()
    Base.metadata.drop_all(bind=engine)
    Base.metadata.create_all(bind=engine)
    get_settings().app_config_path.unlink(missing_ok=True)
    get_rate_limiter().reset()
    yield
