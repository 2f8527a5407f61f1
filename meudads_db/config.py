"""Configuration management using Pydantic Settings."""

from __future__ import annotations

from functools import lru_cache
from typing import Literal

from pydantic import AliasChoices, Field
from pydantic_settings import BaseSettings, SettingsConfigDict


class Settings(BaseSettings):
    """Application settings loaded from environment variables."""

    model_config = SettingsConfigDict(
        env_prefix="",
        env_file=".env",
        env_file_encoding="utf-8",
        extra="ignore",
        populate_by_name=True,
    )

    # Database
    database_url: str | None = Field(
        default=None,
        validation_alias=AliasChoices("DATABASE_URL", "POSTGRES_URL", "database_url"),
    )
    db_pool_size: int = 5
    db_pool_min_size: int = 1
    db_pool_timeout: float = 30.0
    db_connect_timeout: float = 10.0

    # Emergency access: fall back to the mock database when the real one is
    # missing or unreachable. Off unless explicitly enabled.
    emergency_access: bool = False
    emergency_admin_email: str = "admin@meudads.com.br"
    emergency_admin_password_hash: str | None = None

    # Auth / crypto
    jwt_secret: str | None = None
    crypto_key: str | None = None
    crypto_iv: str | None = None

    # External services
    resend_api_key: str | None = None
    from_email: str = "noreply@meudads.com.br"
    graph_api_ver: str = "v21.0"
    mocha_users_service_api_key: str | None = None
    mocha_users_service_api_url: str | None = None

    # Deployment detection
    vercel: str | None = None
    vercel_env: str | None = None
    deployment_platform: str | None = None
    cf_pages: str | None = None

    # Logging
    log_level: str = "INFO"
    log_format: Literal["console", "json"] = "console"


@lru_cache
def get_settings() -> Settings:
    """Get cached settings instance."""
    return Settings()
