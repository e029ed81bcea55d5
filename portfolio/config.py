"""
Application configuration using pydantic-settings.
Loads from environment variables with .env file support.
"""

from functools import lru_cache
from typing import Literal

from pydantic_settings import BaseSettings, SettingsConfigDict


class Settings(BaseSettings):
    """Application settings loaded from environment variables."""

    model_config = SettingsConfigDict(
        env_file=".env",
        env_file_encoding="utf-8",
        case_sensitive=False,
    )

    # Database
    database_url: str = "sqlite+aiosqlite:///./portfolio.db"

    # Security
    secret_key: str = "change-this-in-production-minimum-32-characters-long"
    algorithm: str = "HS256"
    access_token_expire_minutes: int = 60
    refresh_token_expire_days: int = 7

    # Management surface
    sign_in_path: str = "/auth"
    # "strict": only identities whose profile has is_admin may pass the gate.
    # "lax": any authenticated identity passes; writes still hit row policies.
    admin_gate_mode: Literal["strict", "lax"] = "strict"

    # Application
    debug: bool = False
    environment: str = "development"
    log_level: str = "INFO"  # DEBUG, INFO, WARNING, ERROR

    # API Settings
    api_v1_prefix: str = "/api/v1"
    project_name: str = "Portfolio"
    version: str = "1.0.0"
    cors_origins: list[str] = [
        "http://localhost:3000",
        "http://localhost:5173",  # Vite default
        "http://127.0.0.1:5173",
    ]

    # Rate limiting
    rate_limit_auth_per_minute: int = 10      # per IP for sign-in/sign-up
    rate_limit_api_per_minute: int = 100      # per user or IP for general API
    rate_limit_comments_per_minute: int = 5   # per IP for public comment posts
    rate_limit_enabled: bool = True

    @property
    def is_development(self) -> bool:
        """Check if running in development mode."""
        return self.environment == "development"


@lru_cache
def get_settings() -> Settings:
    """Get cached settings instance."""
    return Settings()
