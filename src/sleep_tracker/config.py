"""Configuration management for the sleep tracker."""

from __future__ import annotations

from functools import lru_cache
from pathlib import Path

from pydantic import Field, field_validator
from pydantic_settings import BaseSettings, SettingsConfigDict


class SleepTrackerSettings(BaseSettings):
    """Runtime configuration sourced from environment variables and optional .env file."""

    model_config = SettingsConfigDict(env_file=".env", env_file_encoding="utf-8", extra="ignore")

    storage_backend: str = Field(default="memory", validation_alias="SLEEP_TRACKER_STORAGE")
    chroma_persist_path: Path = Field(
        default=Path("./storage/chroma"), validation_alias="SLEEP_TRACKER_CHROMA_PATH"
    )
    chroma_collection: str = Field(
        default="sleep_nights", validation_alias="SLEEP_TRACKER_CHROMA_COLLECTION"
    )
    log_level: str = Field(default="INFO", validation_alias="SLEEP_TRACKER_LOG_LEVEL")
    io_workers: int = Field(default=4, validation_alias="SLEEP_TRACKER_IO_WORKERS")

    @field_validator("log_level")
    @classmethod
    def _normalize_log_level(cls, value: str) -> str:
        normalized = value.strip().upper()
        if normalized not in {"CRITICAL", "ERROR", "WARNING", "INFO", "DEBUG"}:
            raise ValueError(
                "SLEEP_TRACKER_LOG_LEVEL must be one of CRITICAL, ERROR, WARNING, INFO, DEBUG"
            )
        return normalized

    @field_validator("storage_backend")
    @classmethod
    def _normalize_backend(cls, value: str) -> str:
        normalized = value.strip().lower()
        if normalized not in {"memory", "chroma"}:
            raise ValueError("SLEEP_TRACKER_STORAGE must be 'memory' or 'chroma'")
        return normalized

    @field_validator("io_workers")
    @classmethod
    def _validate_io_workers(cls, value: int) -> int:
        if value < 1:
            raise ValueError("SLEEP_TRACKER_IO_WORKERS must be >= 1")
        return value


@lru_cache(maxsize=1)
def get_settings() -> SleepTrackerSettings:
    """Return cached settings instance."""

    settings = SleepTrackerSettings()
    settings.chroma_persist_path = settings.chroma_persist_path.expanduser().resolve()
    return settings


__all__ = ["SleepTrackerSettings", "get_settings"]
