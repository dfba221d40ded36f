"""Application configuration and settings management.

This module defines the application settings loaded from environment
variables and provides a helper for accessing the cached settings object.
"""

from functools import lru_cache
from typing import List

from pydantic_settings import BaseSettings


class Settings(BaseSettings):
    """Application configuration loaded from environment variables.

    Attributes:
        DATABASE_URL: Database connection string.
        LOCK_TIMEOUT_SECONDS: How long a transaction waits for a row lock
            before the store gives up and reports contention.
        ALLOWED_ORIGINS: Allowed origins for CORS.
        LOG_LEVEL: Root logging level.
        AUDIT_ACTOR: Name recorded as ``deleted_by`` in the species audit
            log when no explicit actor is given.
    """

    DATABASE_URL: str = "sqlite:///./birdwatch.db"
    LOCK_TIMEOUT_SECONDS: float = 5.0
    ALLOWED_ORIGINS: List[str] = ["*"]
    LOG_LEVEL: str = "INFO"
    AUDIT_ACTOR: str = "system"

    class Config:
        """Pydantic configuration for loading environment variables."""

        env_file = ".env"
        extra = "allow"


@lru_cache()
def get_settings() -> Settings:
    """Return cached application settings.

    The settings object is cached to prevent reloading environment
    variables multiple times during application lifetime.
    """

    return Settings()
