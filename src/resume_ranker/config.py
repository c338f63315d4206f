from __future__ import annotations

from functools import lru_cache
from pathlib import Path

from dotenv import load_dotenv
from pydantic import field_validator
from pydantic_settings import BaseSettings, SettingsConfigDict

load_dotenv()


class Settings(BaseSettings):
    model_config = SettingsConfigDict(env_file=".env", env_file_encoding="utf-8", extra="ignore")

    app_name: str = "Resume Ranker"
    app_env: str = "development"
    app_host: str = "127.0.0.1"
    app_port: int = 3000
    log_level: str = "INFO"

    database_url: str = "sqlite:///./data/resume_ranker.db"
    data_dir: Path = Path("./data")
    upload_dir: Path = Path("./data/uploads/resumes")
    app_config_path: Path = Path("./data/config.json")

    openai_api_key: str = ""
    openai_base_url: str = "https://api.openai.com/v1"
    openai_model_extractor: str = "gpt-5-mini"
    openai_timeout_sec: int = 60

    local_llm_enabled: bool = False
    local_llm_base_url: str = "http://localhost:11434/v1"
    local_llm_api_key: str = "local"
    local_llm_model: str = "qwen2.5:14b-instruct"
    local_llm_timeout_sec: int = 90

    llm_extract_provider: str = "openai"
    llm_max_output_tokens: int = 4000

    pipeline_max_retries: int = 3
    pipeline_stage_timeout_sec: float = 45.0
    pipeline_max_resume_chars: int = 50000

    web_ui_enabled: bool = True
    admin_endpoints_enabled: bool = True
    cors_origins: str = "http://127.0.0.1:3000"

    @field_validator("app_env")
    @classmethod
    def validate_env(cls, value: str) -> str:
        allowed = {"development", "staging", "production", "test"}
        if value not in allowed:
            raise ValueError(f"app_env must be one of {sorted(allowed)}")
        return value

    @field_validator("llm_extract_provider")
    @classmethod
    def validate_provider(cls, value: str) -> str:
        if value not in {"openai", "local"}:
            raise ValueError("llm_extract_provider must be 'openai' or 'local'")
        return value

    @field_validator("pipeline_max_retries")
    @classmethod
    def validate_retries(cls, value: int) -> int:
        if value < 1:
            raise ValueError("pipeline_max_retries must be at least 1")
        return value

    @property
    def cors_origin_list(self) -> list[str]:
        return [origin.strip() for origin in self.cors_origins.split(",") if origin.strip()]


@lru_cache(maxsize=1)
def get_settings() -> Settings:
    return Settings()
