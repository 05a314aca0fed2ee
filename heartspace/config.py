"""
Application configuration using environment variables.

Every field can be set from the environment (case-insensitive) or a ``.env``
file, e.g. ``DATABASE_URL=postgresql://...`` or ``MEDIA_ROOT=/srv/media``.
"""
import secrets
from datetime import timedelta
from functools import lru_cache
from typing import List

from pydantic import field_validator
from pydantic_settings import BaseSettings

# Used when SECRET_KEY is unset; tokens then die with the process
_GENERATED_SECRET = secrets.token_urlsafe(32)


class Settings(BaseSettings):
    """HeartSpace settings."""

    app_name: str = "HeartSpace API"
    debug: bool = False
    environment: str = "development"

    # Tokens
    secret_key: str = _GENERATED_SECRET
    algorithm: str = "HS256"
    access_token_expire_days: int = 7

    # Store
    database_url: str = "sqlite:///./heartspace.db"
    database_pool_size: int = 20
    database_max_overflow: int = 10

    # Uploaded artwork images are written under media_root and served at media_url
    media_root: str = "./data/media"
    media_url: str = "/media"
    max_upload_bytes: int = 10 * 1024 * 1024

    # Comma-separated
    cors_origins: str = "http://localhost:5173,http://localhost:3000"

    signup_rate_limit: str = "3/minute"
    signin_rate_limit: str = "5/minute"

    class Config:
        env_file = ".env"
        env_file_encoding = "utf-8"
        case_sensitive = False

    @field_validator("media_url")
    @classmethod
    def _media_url_is_absolute_path(cls, value: str) -> str:
        value = "/" + value.strip("/")
        if value == "/":
            raise ValueError("media_url cannot be the site root")
        return value

    @field_validator("access_token_expire_days", "max_upload_bytes")
    @classmethod
    def _positive(cls, value: int) -> int:
        if value <= 0:
            raise ValueError("must be positive")
        return value

    @property
    def cors_origin_list(self) -> List[str]:
        return [origin.strip() for origin in self.cors_origins.split(",") if origin.strip()]

    @property
    def access_token_lifetime(self) -> timedelta:
        return timedelta(days=self.access_token_expire_days)

    @property
    def uses_generated_secret(self) -> bool:
        return self.secret_key == _GENERATED_SECRET


@lru_cache()
def get_settings() -> Settings:
    """Load settings once; refuse to run production on a throwaway secret."""
    settings = Settings()
    if settings.environment == "production" and settings.uses_generated_secret:
        raise ValueError(
            "SECRET_KEY must be set in production! "
            "Generate one with: python -c \"import secrets; print(secrets.token_urlsafe(32))\""
        )
    return settings
