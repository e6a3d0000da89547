"""
Configuration and settings for the EventDesk backend.
"""

from __future__ import annotations

from functools import lru_cache
from typing import Optional

from pydantic import Field
from pydantic_settings import BaseSettings, SettingsConfigDict


class Settings(BaseSettings):
    """Environment-backed settings for the FastAPI service."""

    model_config = SettingsConfigDict(
        env_file=".env", env_file_encoding="utf-8", extra="ignore"
    )

    api_prefix: str = Field(default="/api")
    functions_prefix: str = Field(default="/functions/v1")
    # Where the privileged functions are served; defaults to the auth project.
    functions_url: Optional[str] = Field(default=None)
    log_level: str = Field(default="INFO")

    # Relational store (Postgres expected, any SQLAlchemy URL works)
    database_url: Optional[str] = Field(default=None)

    # Hosted auth service (GoTrue REST API)
    supabase_url: Optional[str] = Field(default=None)
    supabase_anon_key: Optional[str] = Field(default=None)
    supabase_service_role_key: Optional[str] = Field(default=None)
    password_reset_redirect_url: str = Field(
        default="http://localhost:8080/reset-password"
    )

    # S3-compatible object storage
    storage_endpoint: Optional[str] = Field(default=None)
    storage_region: Optional[str] = Field(default=None)
    storage_access_key_id: Optional[str] = Field(default=None)
    storage_secret_access_key: Optional[str] = Field(default=None)
    storage_public_url: Optional[str] = Field(default=None)
    upload_max_workers: int = Field(default=4, ge=1, le=32)

    # Development toggles
    use_in_memory_backends: bool = Field(default=False)
    serve_functions: bool = Field(default=True)
    cors_allow_origins: list[str] = Field(default_factory=lambda: ["*"])


@lru_cache(maxsize=1)
def get_settings() -> Settings:
    """Return cached settings instance."""
    return Settings()
