"""Runtime configuration."""

from __future__ import annotations

from functools import lru_cache
from pathlib import Path

from pydantic_settings import BaseSettings, SettingsConfigDict


class Settings(BaseSettings):
    """Engine settings, read from ``CODEVAULT_*`` environment variables."""

    model_config = SettingsConfigDict(env_prefix="CODEVAULT_", env_file=".env", extra="ignore")

    db_path: Path = Path(".codevault/codevault.db")
    version_window_seconds: float = 120.0
    store_timeout_seconds: float = 5.0
    read_retries: int = 1
    default_framework: str = "next.js"
    log_level: str = "INFO"


@lru_cache(maxsize=1)
def get_settings() -> Settings:
    return Settings()
