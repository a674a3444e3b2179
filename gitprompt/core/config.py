"""Unified configuration via pydantic-settings."""

from pathlib import Path

from pydantic import field_validator
from pydantic_settings import BaseSettings, SettingsConfigDict

from gitprompt.core.branches import DEFAULT_BASE_BRANCH

_LOG_LEVELS = ("DEBUG", "INFO", "WARNING", "ERROR", "CRITICAL")


class PromptSettings(BaseSettings):
    model_config = SettingsConfigDict(
        env_prefix="GITPROMPT_",
        env_file=".env",
        env_file_encoding="utf-8",
        extra="ignore",
    )

    # Output
    style: str = "pretty"
    styles_file: Path | None = None

    # Repository queries
    git_binary: str = "git"
    command_timeout: float = 5.0
    isolate_index: bool = True
    fallback_base_branch: str = DEFAULT_BASE_BRANCH

    # Logging; None means "derive from -v count"
    log_level: str | None = None

    @field_validator("command_timeout")
    @classmethod
    def validate_timeout(cls, v: float) -> float:
        if v <= 0:
            raise ValueError("command_timeout must be positive")
        return v

    @field_validator("styles_file")
    @classmethod
    def expand_styles_file(cls, v: Path | None) -> Path | None:
        return v.expanduser() if v is not None else None

    @field_validator("log_level")
    @classmethod
    def validate_log_level(cls, v: str | None) -> str | None:
        if v is None:
            return None
        level = v.strip().upper()
        if level not in _LOG_LEVELS:
            raise ValueError(f"unknown log level: {v}")
        return level
