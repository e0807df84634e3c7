"""
Application configuration.

Loads settings from environment variables with sensible defaults.
Variables are prefixed with POSTELMA_ (e.g. POSTELMA_DEFAULT_PLAN=pro).
"""

from __future__ import annotations

from functools import lru_cache
from typing import Literal

from pydantic_settings import BaseSettings, SettingsConfigDict

from postelma.core.models import Plan


class Settings(BaseSettings):
    """Application settings loaded from environment."""

    model_config = SettingsConfigDict(
        env_prefix="POSTELMA_",
        env_file=".env",
        env_file_encoding="utf-8",
        extra="ignore",
    )

    # ==========================================================================
    # Environment
    # ==========================================================================

    environment: str = "development"
    debug: bool = True
    log_level: str = "INFO"

    # ==========================================================================
    # Workspace
    # ==========================================================================

    # Plan assumed when a session is resolved without an explicit plan
    default_plan: Plan = Plan.FREE
    invitation_expiry_days: int = 7

    # ==========================================================================
    # Storage
    # ==========================================================================

    storage_backend: Literal["memory", "json"] = "memory"
    data_dir: str = "./data"

    # Optional YAML fixture loaded into storage at startup
    seed_file: str = ""

    # ==========================================================================
    # Helpers
    # ==========================================================================

    @property
    def is_production(self) -> bool:
        return self.environment == "production"


@lru_cache
def get_settings() -> Settings:
    """Get cached settings instance."""
    return Settings()
