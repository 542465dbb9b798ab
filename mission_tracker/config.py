"""
Configuration and settings for the mission tracker service.
"""

from __future__ import annotations

from functools import lru_cache
from typing import Optional
from zoneinfo import ZoneInfo, ZoneInfoNotFoundError

from pydantic import AliasChoices, Field, field_validator
from pydantic_settings import BaseSettings, SettingsConfigDict


class Settings(BaseSettings):
    """Environment-backed settings for the FastAPI service."""

    model_config = SettingsConfigDict(
        env_file=".env",
        env_file_encoding="utf-8",
        extra="ignore",
        populate_by_name=True,
    )

    api_prefix: str = Field(default="/api")
    log_level: str = Field(default="INFO")

    # Firebase (Auth + Firestore)
    firebase_project_id: Optional[str] = Field(default=None)
    firebase_credentials_path: Optional[str] = Field(
        default=None,
        validation_alias=AliasChoices(
            "FIREBASE_CREDENTIALS_PATH", "GOOGLE_APPLICATION_CREDENTIALS"
        ),
    )

    # Optional SQL store for self-hosted deployments (Postgres, SQLite, ...)
    database_url: Optional[str] = Field(default=None)

    # Development toggles
    use_in_memory_backends: bool = Field(
        default=False,
        validation_alias=AliasChoices(
            "MISSIONS_USE_IN_MEMORY_BACKENDS", "USE_IN_MEMORY_BACKENDS"
        ),
    )

    # Day boundaries for date filtering are computed in this zone.
    missions_timezone: str = Field(default="UTC")

    # Session cookie issued after a successful Google sign-in.
    session_cookie_name: str = Field(default="session")
    session_cookie_days: int = Field(default=5, ge=1, le=14)
    session_cookie_secure: bool = Field(default=True)

    @field_validator("missions_timezone")
    @classmethod
    def known_timezone(cls, value: str) -> str:
        try:
            ZoneInfo(value)
        except (ZoneInfoNotFoundError, ValueError) as e:
            raise ValueError(f"Unknown time zone: {value}") from e
        return value

    @property
    def firebase_configured(self) -> bool:
        return bool(self.firebase_project_id or self.firebase_credentials_path)

    @property
    def tzinfo(self) -> ZoneInfo:
        return ZoneInfo(self.missions_timezone)


@lru_cache(maxsize=1)
def get_settings() -> Settings:
    """Return cached settings instance."""
    return Settings()
