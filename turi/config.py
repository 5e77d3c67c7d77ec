"""
Turi — Centralized configuration.

Loads all settings from .env and validates them.
Every module that needs a setting imports the singleton from here.
"""

from __future__ import annotations

import os
from pathlib import Path

from dotenv import load_dotenv
from pydantic import BaseModel, field_validator

# Load .env from project root (two levels up from turi/config.py)
_ENV_PATH = Path(__file__).resolve().parent.parent / ".env"
load_dotenv(_ENV_PATH)

_DEFAULT_REMINDER_MINUTES = 15


class Settings(BaseModel):
    """Application settings loaded from environment variables."""

    # SQLite key-value store holding the app data blob
    DATABASE_PATH: str = "data/turi.db"

    # Reminders
    NOTIFICATIONS_ENABLED: bool = False
    REMINDER_MINUTES: int = _DEFAULT_REMINDER_MINUTES   # lead time before the due date

    # Display
    LANGUAGE: str = "en"
    TIMEZONE: str = "UTC"

    LOG_LEVEL: str = "INFO"

    @field_validator("NOTIFICATIONS_ENABLED", mode="before")
    @classmethod
    def parse_enabled(cls, v: str | bool) -> bool:
        if isinstance(v, bool):
            return v
        return str(v).strip().lower() in ("1", "true", "yes", "on")

    @field_validator("REMINDER_MINUTES", mode="before")
    @classmethod
    def parse_minutes(cls, v: str | int) -> int:
        try:
            minutes = int(v)
        except (TypeError, ValueError):
            return _DEFAULT_REMINDER_MINUTES
        return minutes if minutes > 0 else _DEFAULT_REMINDER_MINUTES

    @field_validator("LANGUAGE", mode="before")
    @classmethod
    def parse_language(cls, v: str) -> str:
        return (v or "en").strip().lower()[:2] or "en"


def _load_settings() -> Settings:
    """Load settings from environment."""
    return Settings(
        DATABASE_PATH=os.getenv("DATABASE_PATH", "data/turi.db"),
        NOTIFICATIONS_ENABLED=os.getenv("NOTIFICATIONS_ENABLED", "false"),
        REMINDER_MINUTES=os.getenv("REMINDER_MINUTES", str(_DEFAULT_REMINDER_MINUTES)),
        LANGUAGE=os.getenv("LANGUAGE", "en"),
        TIMEZONE=os.getenv("TIMEZONE", "UTC"),
        LOG_LEVEL=os.getenv("LOG_LEVEL", "INFO"),
    )


# Module-level singleton, imported as:
#   from turi.config import settings
settings = _load_settings()
