"""Application settings loaded from environment variables.

Environment Configuration:
    ZENVI_ENV: Deployment environment (local | test | staging | prod)
    DATABASE_URL: Database connection string (required)

Auth Configuration:
    JWT_SECRET: HS256 signing secret shared with the identity provider
        (required in staging/prod, development default otherwise)
    JWT_ISSUER: Expected JWT issuer (trailing slash stripped)
    JWT_AUDIENCES: Comma-separated list of allowed audiences

Redis / Celery Configuration:
    REDIS_URL: Redis connection string (required for worker)
    CELERY_BROKER_URL: Celery broker URL (defaults to REDIS_URL)
    CELERY_RESULT_BACKEND: Celery result backend URL (defaults to REDIS_URL)

Media Configuration:
    MEDIA_STORAGE_PATH: Directory where uploaded media files are written
    MAX_MEDIA_BYTES: Maximum accepted upload size

Logging Configuration:
    LOG_JSON: Render JSON log lines (false for console-friendly output)
    LOG_LEVEL: Root log level name (default INFO)
"""

from enum import Enum
from functools import lru_cache
from typing import Annotated

from pydantic import Field, model_validator
from pydantic_settings import BaseSettings

DEV_JWT_SECRET = "zenvi-dev-secret-change-me-in-every-deployment"


class Environment(str, Enum):
    """Valid deployment environments."""

    LOCAL = "local"
    TEST = "test"
    STAGING = "staging"
    PROD = "prod"


class Settings(BaseSettings):
    """Application configuration.

    Settings are loaded from environment variables.
    Validation rules:
    - DATABASE_URL is always required
    - JWT_SECRET must be set explicitly in staging and prod
    - MAX_MEDIA_BYTES must be positive
    """

    zenvi_env: Environment = Field(default=Environment.LOCAL, alias="ZENVI_ENV")
    database_url: Annotated[str, Field(alias="DATABASE_URL")]

    # Auth settings
    jwt_secret: str = Field(default=DEV_JWT_SECRET, alias="JWT_SECRET")
    jwt_issuer: str = Field(default="zenvi-identity", alias="JWT_ISSUER")
    jwt_audiences: str = Field(default="zenvi-api", alias="JWT_AUDIENCES")

    # Redis / Celery settings
    redis_url: str | None = Field(default=None, alias="REDIS_URL")
    celery_broker_url: str | None = Field(default=None, alias="CELERY_BROKER_URL")
    celery_result_backend: str | None = Field(default=None, alias="CELERY_RESULT_BACKEND")

    # Media storage
    media_storage_path: str = Field(default="data/uploads", alias="MEDIA_STORAGE_PATH")
    max_media_bytes: int = Field(default=10 * 1024 * 1024, alias="MAX_MEDIA_BYTES")  # 10 MB

    # Logging
    log_json: bool = Field(default=True, alias="LOG_JSON")
    log_level: str = Field(default="INFO", alias="LOG_LEVEL")

    model_config = {
        "env_file": ".env",
        "env_file_encoding": "utf-8",
        "extra": "ignore",
        "populate_by_name": True,
    }

    @model_validator(mode="after")
    def validate_required_settings(self) -> "Settings":
        """Ensure production environments do not run on development defaults."""
        if self.zenvi_env in (Environment.STAGING, Environment.PROD):
            if not self.jwt_secret or self.jwt_secret == DEV_JWT_SECRET:
                raise ValueError(f"JWT_SECRET is required for ZENVI_ENV={self.zenvi_env.value}")

        if self.max_media_bytes <= 0:
            raise ValueError("MAX_MEDIA_BYTES must be a positive integer")

        return self

    @property
    def audience_list(self) -> list[str]:
        """Parse comma-separated audiences into a list."""
        return [a.strip() for a in self.jwt_audiences.split(",") if a.strip()]

    @property
    def normalized_issuer(self) -> str:
        """Return issuer with trailing slash stripped."""
        return self.jwt_issuer.rstrip("/")

    @property
    def effective_celery_broker_url(self) -> str | None:
        """Return Celery broker URL, falling back to REDIS_URL if not set."""
        return self.celery_broker_url or self.redis_url

    @property
    def effective_celery_result_backend(self) -> str | None:
        """Return Celery result backend URL, falling back to REDIS_URL if not set."""
        return self.celery_result_backend or self.redis_url


@lru_cache
def get_settings() -> Settings:
    """Get cached application settings.

    Returns:
        Settings instance loaded from environment.

    Raises:
        ValidationError: If required settings are missing or invalid.
    """
    return Settings()


def clear_settings_cache() -> None:
    """Clear the settings cache. Useful for testing."""
    get_settings.cache_clear()
