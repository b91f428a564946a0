"""
Application configuration using Pydantic Settings.

Environment-based infrastructure switching is controlled by the ENVIRONMENT variable.
"""

from functools import lru_cache
from typing import List, Literal

from pydantic import Field
from pydantic_settings import BaseSettings, SettingsConfigDict


class Settings(BaseSettings):
    """Application settings loaded from environment variables."""

    model_config = SettingsConfigDict(
        env_file=".env",
        env_file_encoding="utf-8",
        case_sensitive=True,
        extra="ignore",
    )

    # ===========================================
    # Environment
    # ===========================================
    ENVIRONMENT: Literal["local"] = "local"
    DEBUG: bool = True
    LOG_LEVEL: str = "INFO"

    # ===========================================
    # Database
    # ===========================================
    DATABASE_URL: str = "sqlite+aiosqlite:///./studyplan.db"

    # ===========================================
    # Auth
    # ===========================================
    # Only the mock provider ships with this service; the bearer token is the user id.
    AUTH_PROVIDER: Literal["mock"] = "mock"
    AUTH_REQUIRED: bool = True

    # ===========================================
    # Server
    # ===========================================
    HOST: str = "0.0.0.0"
    PORT: int = 8000
    ALLOWED_ORIGINS: List[str] = Field(
        default=["http://localhost:3000", "http://localhost:5173"]
    )

    # ===========================================
    # Scheduling
    # ===========================================
    # How replace/append date steps that carry no explicit due date:
    # - now: every new step is due "now"
    # - continue: new steps are bucketed after the plan's existing schedule
    DEFAULT_STEP_DATE_MODE: Literal["now", "continue"] = "now"

    REMIX_TITLE_SUFFIX: str = " (Remix)"
    FORK_TITLE_SUFFIX: str = " (Forked)"

    @property
    def is_local(self) -> bool:
        """Check if running in local environment."""
        return self.ENVIRONMENT == "local"


@lru_cache()
def get_settings() -> Settings:
    """
    Get cached settings instance.

    Using lru_cache ensures settings are loaded only once.
    """
    return Settings()
