"""
Rami - Configuration and settings.

Everything is optional so the wizard runs out of the box with file drafts.
Supabase fields are only needed when DRAFT_BACKEND=supabase.
"""

from functools import lru_cache
from pathlib import Path
from typing import Literal

from pydantic_settings import BaseSettings, SettingsConfigDict


class RamiSettings(BaseSettings):
    """Application settings, read from the environment and .env."""

    model_config = SettingsConfigDict(
        env_file=".env",
        env_file_encoding="utf-8",
        extra="ignore",
    )

    # Application
    rami_env: Literal["development", "staging", "production"] = "development"
    log_level: Literal["DEBUG", "INFO", "WARNING", "ERROR"] = "INFO"

    # Supabase (only for the supabase draft backend)
    supabase_url: str | None = None
    supabase_service_role_key: str | None = None

    # Drafts
    draft_backend: Literal["memory", "file", "supabase"] = "file"
    draft_namespace: str = "rami_wizard_v2"
    draft_dir: Path = Path(".rami_drafts")
    draft_table: str = "wizard_drafts"
    draft_background_writes: bool = True

    # Session JSONL logs
    session_log_enabled: bool = False
    session_log_dir: Path = Path("session_logs")

    # Dev user for the CLI
    dev_user_id: str = "local"

    @property
    def is_development(self) -> bool:
        return self.rami_env == "development"

    @property
    def is_production(self) -> bool:
        return self.rami_env == "production"


@lru_cache
def get_settings() -> RamiSettings:
    """Get cached settings instance."""
    return RamiSettings()


class _SettingsProxy:
    """Lazy proxy for settings to avoid loading .env at import time."""

    _instance: RamiSettings | None = None

    def __getattr__(self, name: str):
        if self._instance is None:
            self._instance = get_settings()
        return getattr(self._instance, name)


settings = _SettingsProxy()
