"""
Turi — App Data Store.

All groups, members and tasks live in a single versioned JSON blob, kept in
a small SQLite key-value table so it survives restarts.
"""

from __future__ import annotations

import json
import logging
import sqlite3
from datetime import tzinfo
from pathlib import Path

from turi.data.migration import app_data_from_dict, app_data_to_dict
from turi.data.models import AppData

logger = logging.getLogger(__name__)

APP_DATA_KEY = "@turi_app_data"


class AppDataDB:
    """SQLite-backed key-value storage for the app data blob."""

    def __init__(self, db_path: str | None = None, tz: tzinfo | None = None) -> None:
        if db_path is None:
            from turi.config import settings
            db_path = settings.DATABASE_PATH

        self._db_path = db_path
        self._tz = tz
        # An in-memory database only lives as long as its connection
        self._shared_conn: sqlite3.Connection | None = None
        if db_path == ":memory:":
            self._shared_conn = sqlite3.connect(db_path)
        else:
            Path(db_path).parent.mkdir(parents=True, exist_ok=True)
        self._init_db()

    def _connect(self) -> sqlite3.Connection:
        if self._shared_conn is not None:
            return self._shared_conn
        return sqlite3.connect(self._db_path)

    def _init_db(self) -> None:
        with self._connect() as conn:
            conn.execute("""
                CREATE TABLE IF NOT EXISTS kv (
                    key   TEXT PRIMARY KEY,
                    value TEXT NOT NULL
                )
            """)
        logger.debug("Key-value table initialized at %s", self._db_path)

    def get_item(self, key: str) -> str | None:
        with self._connect() as conn:
            row = conn.execute("SELECT value FROM kv WHERE key = ?", (key,)).fetchone()
        return row[0] if row else None

    def set_item(self, key: str, value: str) -> None:
        with self._connect() as conn:
            conn.execute(
                "INSERT INTO kv (key, value) VALUES (?, ?) "
                "ON CONFLICT(key) DO UPDATE SET value = excluded.value",
                (key, value),
            )

    def remove_item(self, key: str) -> None:
        with self._connect() as conn:
            conn.execute("DELETE FROM kv WHERE key = ?", (key,))

    def load(self) -> AppData:
        """Load and migrate the stored app data; empty data if missing or unreadable."""
        raw = self.get_item(APP_DATA_KEY)
        if raw is None:
            return AppData()
        try:
            blob = json.loads(raw)
            if not isinstance(blob, dict):
                raise TypeError(f"expected a JSON object, got {type(blob).__name__}")
            return app_data_from_dict(blob, self._tz)
        except (ValueError, KeyError, TypeError, AttributeError) as exc:
            logger.error("Stored app data is unreadable, starting empty: %s", exc)
            return AppData()

    def save(self, data: AppData) -> None:
        self.set_item(APP_DATA_KEY, json.dumps(app_data_to_dict(data), ensure_ascii=False))
        logger.debug("App data saved (%d groups)", len(data.groups))

    def clear(self) -> None:
        self.remove_item(APP_DATA_KEY)
        logger.info("App data cleared")
