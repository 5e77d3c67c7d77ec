"""Shared test fixtures and configuration.

Sets up environment defaults before turi.config is imported, and provides
common fixtures like a temp app data store and a controllable clock.
"""

import os

# Patch env vars BEFORE any turi imports
os.environ.setdefault("DATABASE_PATH", ":memory:")
os.environ.setdefault("NOTIFICATIONS_ENABLED", "false")
os.environ.setdefault("REMINDER_MINUTES", "15")
os.environ.setdefault("LANGUAGE", "en")

from datetime import datetime

import pytest


class FakeClock:
    """Callable clock whose time the test moves by hand."""

    def __init__(self, now: datetime) -> None:
        self.now = now

    def __call__(self) -> datetime:
        return self.now


@pytest.fixture
def clock():
    """Clock starting Monday 2025-06-02 08:00."""
    return FakeClock(datetime(2025, 6, 2, 8, 0))


@pytest.fixture
def translator():
    from turi.core.locale import CatalogTranslator
    return CatalogTranslator("en")


@pytest.fixture
def tmp_db_path(tmp_path):
    """Return a temporary SQLite DB path."""
    return str(tmp_path / "test_turi.db")


@pytest.fixture
def app_db(tmp_db_path):
    """Return an AppDataDB instance backed by a temp file."""
    from turi.data.db import AppDataDB
    return AppDataDB(db_path=tmp_db_path)


@pytest.fixture
def notifier():
    from turi.adapters.local_notifier import InMemoryNotifier
    return InMemoryNotifier()
