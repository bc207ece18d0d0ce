"""Configuration loading and validation."""

from __future__ import annotations

from pathlib import Path
from typing import Any

import yaml
from pydantic import ValidationError, field_validator
from pydantic_settings import BaseSettings, SettingsConfigDict


class ConfigValidationError(Exception):
    """Raised when configuration validation fails."""

    def __init__(self, message: str, errors: list[dict[str, Any]] | None = None):
        super().__init__(message)
        self.errors = errors or []


class Settings(BaseSettings):
    """Application settings from environment."""

    model_config = SettingsConfigDict(
        env_file=".env",
        env_file_encoding="utf-8",
        extra="ignore",
    )

    # Storage
    data_dir: str = "./data"

    # Sync
    settle_window_seconds: float = 0.6

    # LLM
    llm_model: str = "gpt-4o-mini"
    llm_temperature: float = 0.1
    llm_max_retries: int = 3

    # Runtime
    log_level: str = "INFO"
    json_logs: bool = False

    @field_validator("settle_window_seconds")
    @classmethod
    def _non_negative_window(cls, v: float) -> float:
        if v < 0:
            raise ValueError("settle window cannot be negative")
        return v

    @field_validator("log_level", mode="before")
    @classmethod
    def _upper_level(cls, v: Any) -> str:
        return str(v).strip().upper() or "INFO"

    @property
    def cache_dir(self) -> Path:
        return Path(self.data_dir) / "cache"

    @property
    def remote_dir(self) -> Path:
        return Path(self.data_dir) / "remote"


def load_config(
    path: Path | None = None,
    settings: Settings | None = None,
) -> Settings:
    """Load settings from the environment, overlaid with an optional YAML file.

    A missing YAML file is not an error; the environment values are used as-is.

    Raises:
        ConfigValidationError: If the YAML file holds invalid values
    """
    settings = settings or Settings()
    path = path or Path("config/trackflow.yaml")
    if not path.exists():
        return settings

    with open(path, encoding="utf-8") as f:
        data = yaml.safe_load(f) or {}

    if not isinstance(data, dict):
        raise ConfigValidationError(f"Expected a mapping in {path}")

    merged = settings.model_dump()
    merged.update(data)
    try:
        return Settings.model_validate(merged)
    except ValidationError as e:
        raise ConfigValidationError(
            f"Invalid {path.name}",
            errors=e.errors(),
        ) from e
