"""Fixture builder configuration via Pydantic BaseSettings."""

from __future__ import annotations

from typing import Optional

from pydantic_settings import BaseSettings


class Settings(BaseSettings):
    """Settings loaded from environment variables with the FIXTURES_ prefix.

    Used when a builder is created without an explicit database, and to seed
    the random generator that drives randomized seed values.
    """

    DATABASE_URL: Optional[str] = None
    LOG_LEVEL: str = "INFO"
    RANDOM_SEED: int = 42
    FIXTURE_PATTERNS: list[str] = ["*.json", "*.yaml", "*.yml"]
    SQL_ECHO: bool = False

    model_config = {"env_prefix": "FIXTURES_", "case_sensitive": True}


_settings: Optional[Settings] = None


def get_settings() -> Settings:
    """Get or create the singleton settings."""
    global _settings
    if _settings is None:
        _settings = Settings()
    return _settings


def set_settings(settings: Optional[Settings]) -> None:
    """Override the global settings. Passing None reloads from the environment."""
    global _settings
    _settings = settings
