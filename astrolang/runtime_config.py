"""Runtime configuration loaded from environment variables and .env files."""

from __future__ import annotations

from pathlib import Path

from pydantic import Field, field_validator
from pydantic_settings import BaseSettings, SettingsConfigDict

_ENV_FILE = Path(__file__).resolve().parent.parent / ".env"


class RuntimeSettings(BaseSettings):
    """Runtime configuration resolved from the process environment."""

    model_config = SettingsConfigDict(
        env_file=str(_ENV_FILE),
        extra="ignore",
        populate_by_name=True,
    )

    log_level: str = Field(default="INFO", alias="LOG_LEVEL")
    include_prelude: bool = Field(default=False, alias="ASTROLANG_PRELUDE")
    max_resolution_depth: int = Field(default=256, ge=1, alias="ASTROLANG_MAX_DEPTH")
    facts_file: Path | None = Field(default=None, alias="ASTROLANG_FACTS_FILE")

    @field_validator("facts_file", mode="before")
    @classmethod
    def _expand_optional_path(cls, value: Path | str | None) -> Path | None:
        if value in {None, ""}:
            return None
        return Path(value).expanduser()


runtime_settings = RuntimeSettings()

__all__ = ["RuntimeSettings", "runtime_settings"]
