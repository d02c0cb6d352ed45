"""Configuration management for the FastAPI application."""
from __future__ import annotations

import os
from functools import lru_cache
from typing import Any

from dotenv import load_dotenv
from pydantic import BaseModel, Field, field_validator

load_dotenv()

SUPABASE_PLACEHOLDER_URLS = {"your_supabase_project_url", "https://your-project-id.supabase.co"}
SUPABASE_PLACEHOLDER_KEYS = {"your_supabase_anon_key", "your-anon-key-here"}


class Settings(BaseModel):
    """Application configuration loaded from environment variables."""

    app_env: str = "dev"
    database_url: str = "sqlite:///./data.db"
    cors_origins: list[str] = Field(default_factory=list)
    version: str = "0.1.0"
    log_level: str = "INFO"
    supabase_url: str = ""
    supabase_anon_key: str = ""
    github_api_url: str = "https://api.github.com"
    status_poll_interval: float = Field(default=30.0, gt=0)
    status_polling_enabled: bool = True
    deploy_site_url: str = "https://dealership-reconditioning-app.netlify.app"
    deploy_claim_url: str = "https://app.netlify.com/claim/demo-site"

    @field_validator("cors_origins", mode="before")
    @classmethod
    def assemble_cors_origins(cls, value: Any) -> list[str]:
        if isinstance(value, str):
            if not value:
                return []
            return [origin.strip() for origin in value.split(",") if origin.strip()]
        if isinstance(value, list):
            return value
        return []

    @field_validator("github_api_url")
    @classmethod
    def strip_trailing_slash(cls, value: str) -> str:
        return value.rstrip("/")

    @property
    def supabase_configured(self) -> bool:
        return bool(
            self.supabase_url
            and self.supabase_anon_key
            and self.supabase_url not in SUPABASE_PLACEHOLDER_URLS
            and self.supabase_anon_key not in SUPABASE_PLACEHOLDER_KEYS
        )

    @property
    def async_database_url(self) -> str:
        if self.database_url.startswith("sqlite+aiosqlite://"):
            return self.database_url
        if self.database_url.startswith("sqlite:///"):
            return self.database_url.replace("sqlite:///", "sqlite+aiosqlite:///")
        if self.database_url.startswith("sqlite://"):
            return self.database_url.replace("sqlite://", "sqlite+aiosqlite://")
        return self.database_url


def _build_settings() -> Settings:
    raw_values: dict[str, Any] = {
        "app_env": os.getenv("APP_ENV"),
        "database_url": os.getenv("DATABASE_URL"),
        "cors_origins": os.getenv("CORS_ORIGINS"),
        "version": os.getenv("APP_VERSION"),
        "log_level": os.getenv("LOG_LEVEL"),
        "supabase_url": os.getenv("SUPABASE_URL"),
        "supabase_anon_key": os.getenv("SUPABASE_ANON_KEY"),
        "github_api_url": os.getenv("GITHUB_API_URL"),
        "status_poll_interval": os.getenv("STATUS_POLL_INTERVAL"),
        "status_polling_enabled": os.getenv("STATUS_POLLING_ENABLED"),
        "deploy_site_url": os.getenv("DEPLOY_SITE_URL"),
        "deploy_claim_url": os.getenv("DEPLOY_CLAIM_URL"),
    }
    filtered_values = {key: value for key, value in raw_values.items() if value is not None}
    return Settings(**filtered_values)


@lru_cache()
def get_settings() -> Settings:
    """Return a cached settings instance."""
    return _build_settings()
