# infrastructure/config/settings.py
from __future__ import annotations

from pathlib import Path
from typing import Optional

from pydantic import field_validator
from pydantic_settings import BaseSettings, SettingsConfigDict

PROJECT_ROOT = Path(__file__).parent.parent.parent

PREFIX = "APITEST_"


class Settings(BaseSettings):
    """
    Runtime configuration from APITEST_* variables.
    .env (project root) is read as well; process variables win over it.
    """
    model_config = SettingsConfigDict(
        env_prefix=PREFIX,
        env_file=PROJECT_ROOT / ".env",
        env_file_encoding="utf-8",
        env_ignore_empty=True,
        extra="ignore",
        frozen=True,
    )

    default_base_url: str = "http://localhost:3000"
    request_timeout_sec: float = 30
    keep_unresolved: bool = True
    dynamic_variables: bool = True
    log_level: str = "INFO"
    definitions_dir: Path = PROJECT_ROOT / "definitions"
    max_workers: int = 4
    artifacts_dir: Optional[Path] = None
    max_wait_sec: int = 30

    @field_validator("log_level")
    @classmethod
    def _upper_level(cls, value: str) -> str:
        return value.upper()

    @field_validator("definitions_dir", "artifacts_dir")
    @classmethod
    def _project_relative(cls, value: Optional[Path]) -> Optional[Path]:
        if value is None or value.is_absolute():
            return value
        return PROJECT_ROOT / value

    @classmethod
    def from_env(cls, env_file: Optional[Path] = None) -> "Settings":
        if env_file is None:
            return cls()
        return cls(_env_file=env_file)
