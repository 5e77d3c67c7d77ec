"""Notification port — abstract interface for local reminder delivery.

Core modules depend on this protocol, never on a specific notification API.
"""

from __future__ import annotations

from datetime import datetime
from typing import Protocol


class NotificationError(Exception):
    """Raised when a notification provider operation fails."""


class NotificationPort(Protocol):
    """Abstract reminder scheduling interface used by core modules."""

    async def schedule(
        self, fire_at: datetime, title: str, body: str, data: dict,
    ) -> str: ...

    async def cancel_task(self, task_id: str) -> int: ...

    async def cancel_group(self, group_id: str) -> int: ...
