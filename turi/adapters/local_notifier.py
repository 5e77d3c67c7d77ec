"""In-process notification adapter — implements NotificationPort.

Keeps pending reminders in memory and logs them. Handed to GroupService in
development and tests; a device build swaps in the OS notification API.
"""

from __future__ import annotations

import logging
import uuid
from dataclasses import dataclass, field
from datetime import datetime

from turi.ports.notification_port import NotificationError

logger = logging.getLogger(__name__)


@dataclass
class PendingReminder:
    id: str
    fire_at: datetime
    title: str
    body: str
    data: dict = field(default_factory=dict)


class InMemoryNotifier:
    """In-memory implementation of NotificationPort."""

    def __init__(self) -> None:
        self._pending: dict[str, PendingReminder] = {}

    @property
    def pending(self) -> list[PendingReminder]:
        return sorted(self._pending.values(), key=lambda r: r.fire_at)

    async def schedule(
        self, fire_at: datetime, title: str, body: str, data: dict,
    ) -> str:
        if fire_at.tzinfo is not None:
            raise NotificationError(f"Reminder time must be naive local time, got {fire_at!r}")
        reminder_id = uuid.uuid4().hex
        self._pending[reminder_id] = PendingReminder(
            id=reminder_id, fire_at=fire_at, title=title, body=body, data=dict(data),
        )
        logger.info("Reminder %s scheduled for %s: %s", reminder_id, fire_at, title)
        return reminder_id

    async def cancel_task(self, task_id: str) -> int:
        return self._cancel_where("taskId", task_id)

    async def cancel_group(self, group_id: str) -> int:
        return self._cancel_where("groupId", group_id)

    def _cancel_where(self, key: str, value: str) -> int:
        doomed = [rid for rid, r in self._pending.items() if r.data.get(key) == value]
        for rid in doomed:
            del self._pending[rid]
        if doomed:
            logger.info("Cancelled %d reminder(s) for %s=%s", len(doomed), key, value)
        return len(doomed)
