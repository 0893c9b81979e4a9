from __future__ import annotations

from functools import lru_cache
from pathlib import Path
from typing import Any, Iterable

from pydantic import AliasChoices, Field, field_validator
from pydantic_settings import BaseSettings, SettingsConfigDict


class AppSettings(BaseSettings):
    """Environment-driven application configuration."""

    model_config = SettingsConfigDict(
        env_file=(".env", ".env.local"),
        env_file_encoding="utf-8",
        extra="ignore",
    )

    APP_NAME: str = "Hobby Time Tracker"
    BASE_DIR: Path = Field(default_factory=lambda: Path(__file__).resolve().parent.parent.parent)
    DATA_DIR: Path = Field(default_factory=lambda: Path(__file__).resolve().parent.parent.parent / "data")
    TZ: str = "America/Chicago"

    API_KEY: str = Field(default="", validation_alias=AliasChoices("API_KEY", "API_TOKEN"))
    JWT_SECRET: str = "change-me"
    JWT_ACCESS_TTL_MIN: int = 15
    JWT_REFRESH_TTL_DAYS: int = 7
    ALLOWED_ORIGINS: list[str] = Field(default_factory=list)
    AUTH_ALLOW_API_KEY: bool = True

    DB_URL: str = Field(default="", validation_alias=AliasChoices("DB_URL", "DATABASE_URL"))

    HOST: str = "0.0.0.0"
    PORT: int = 8089

    # Timer and dashboard behaviour
    TIMER_TICK_SECONDS: float = 1.0
    WEEKLY_GOAL_HOURS: float = 2.0
    SAMPLE_BATCH_SIZE: int = 10
    SAMPLE_BATCH_WORKERS: int = 4

    # Object storage used by the "upload and share" CSV export path
    STORAGE_URL: str = ""
    STORAGE_BUCKET: str = "user-exports"
    STORAGE_KEY: str = ""
    STORAGE_TIMEOUT_SECONDS: float = 10.0

    @property
    def storage_configured(self) -> bool:
        return bool(self.STORAGE_URL and self.STORAGE_BUCKET)

    @field_validator("ALLOWED_ORIGINS", mode="before")
    @classmethod
    def parse_allowed_origins(cls, value: Any) -> list[str]:
        if value in (None, "", []):
            return []
        if isinstance(value, str):
            return [item.strip() for item in value.split(",") if item.strip()]
        if isinstance(value, Iterable):
            return [str(item).strip() for item in value if str(item).strip()]
        raise TypeError("ALLOWED_ORIGINS must be a comma separated string or list")

    @field_validator("TIMER_TICK_SECONDS")
    @classmethod
    def positive_tick(cls, value: float) -> float:
        if value <= 0:
            raise ValueError("TIMER_TICK_SECONDS must be positive")
        return value


@lru_cache(maxsize=1)
def get_settings() -> AppSettings:
    settings = AppSettings()
    settings.DATA_DIR.mkdir(parents=True, exist_ok=True)
    if not settings.DB_URL:
        settings.DB_URL = f"sqlite:///{settings.DATA_DIR}/data.db"
    return settings


settings = get_settings()
