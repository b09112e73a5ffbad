"""Application settings and configuration management."""
from __future__ import annotations

from pydantic import Field
from pydantic_settings import BaseSettings, SettingsConfigDict


class Settings(BaseSettings):
    """Settings loaded from environment variables or defaults."""

    DB_PATH: str = Field(default="data/interviews.db")
    CONFIG_PATH: str = Field(default="app_config.json")
    API_PREFIX: str = "/api/v1"

    FALLBACK_GREETING: str = (
        "Hello! I'm ready to help you with this problem. How would you like to start?"
    )
    TRANSCRIPT_CHAR_LIMIT: int = Field(default=60000, ge=1000)

    model_config = SettingsConfigDict(env_file=".env", validate_assignment=True, extra="ignore")


settings = Settings()
