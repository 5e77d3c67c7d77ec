"""
Turi — Group Action Service.

Applies user actions (add/remove members and tasks, mark done, skip turn) to
the stored groups. Every action appends to the group's activity log, saves
the app data, and keeps reminders consistent by cancelling a task's old
reminder before scheduling the new one.

The scheduling core stays pure; this is the one place its results are
written back into the records.
"""

from __future__ import annotations

import logging
import uuid
from dataclasses import replace
from datetime import datetime
from typing import TYPE_CHECKING, Callable

from turi.core.completion import is_completed_for_current_period
from turi.core.locale import CatalogTranslator
from turi.core.reminders import (
    cancel_task_reminder,
    reschedule_group_reminders,
    reschedule_task_reminder,
)
from turi.core.rotation import (
    RotationResult,
    apply_rotation,
    apply_streak,
    mark_done,
    remove_member_from_task,
    replace_member_ids,
    skip_turn,
)
from turi.data.models import ActivityType, Group, GroupActivity, Member, Schedule, Task

if TYPE_CHECKING:
    from turi.core.locale import Translator
    from turi.data.db import AppDataDB
    from turi.ports.notification_port import NotificationPort

logger = logging.getLogger(__name__)


class TuriError(Exception):
    """Base class for errors raised by group actions."""


class GroupNotFoundError(TuriError):
    pass


class TaskNotFoundError(TuriError):
    pass


class MemberNotFoundError(TuriError):
    pass


def _new_id(prefix: str) -> str:
    return f"{prefix}_{uuid.uuid4().hex[:12]}"


class GroupService:
    """Stateful facade over the stored groups."""

    def __init__(
        self,
        db: AppDataDB,
        notifier: NotificationPort | None = None,
        translator: Translator | None = None,
        reminder_minutes: int | None = None,
        notifications_enabled: bool | None = None,
        clock: Callable[[], datetime] = datetime.now,
    ) -> None:
        if reminder_minutes is None or notifications_enabled is None:
            from turi.config import settings
            if reminder_minutes is None:
                reminder_minutes = settings.REMINDER_MINUTES
            if notifications_enabled is None:
                notifications_enabled = settings.NOTIFICATIONS_ENABLED

        self._db = db
        self._notifier = notifier
        self._translator = translator or CatalogTranslator()
        self._reminder_minutes = reminder_minutes
        self._notifications_enabled = notifications_enabled and notifier is not None
        self._clock = clock
        self._data = db.load()

    # -- lookups -----------------------------------------------------------

    @property
    def groups(self) -> list[Group]:
        return list(self._data.groups)

    def get_group(self, group_id: str) -> Group:
        for group in self._data.groups:
            if group.id == group_id:
                return group
        raise GroupNotFoundError(f"Group {group_id} not found")

    def _get_task(self, group: Group, task_id: str) -> Task:
        task = group.task(task_id)
        if task is None:
            raise TaskNotFoundError(f"Task {task_id} not found in group {group.id}")
        return task

    # -- internals ---------------------------------------------------------

    def _store(self, group: Group) -> Group:
        self._data.groups = [group if g.id == group.id else g for g in self._data.groups]
        self._db.save(self._data)
        return group

    def _activity(
        self,
        kind: ActivityType,
        now: datetime,
        actor_id: str | None = None,
        target_id: str | None = None,
        **metadata: str,
    ) -> GroupActivity:
        return GroupActivity(
            id=_new_id("activity"),
            type=kind,
            timestamp=now,
            actor_id=actor_id,
            target_id=target_id,
            metadata=metadata,
        )

    async def _refresh_task_reminder(self, group: Group, task: Task, now: datetime) -> None:
        if not self._notifications_enabled:
            return
        await reschedule_task_reminder(
            self._notifier, task, group, self._reminder_minutes, now, self._translator,
        )

    async def _refresh_group_reminders(self, group: Group, now: datetime) -> None:
        if not self._notifications_enabled:
            return
        await reschedule_group_reminders(
            self._notifier, group, self._reminder_minutes, now, self._translator,
        )

    # -- groups and members ------------------------------------------------

    async def create_group(
        self, name: str, owner_id: str = "", icon: str = "", color_preset: str = "",
    ) -> Group:
        now = self._clock()
        group = Group(
            id=_new_id("group"),
            name=name,
            icon=icon,
            color_preset=color_preset,
            owner_id=owner_id,
            created_at=now,
            activities=[self._activity(ActivityType.GROUP_CREATED, now)],
        )
        self._data.groups.append(group)
        self._db.save(self._data)
        logger.info("Group created: %s '%s'", group.id, name)
        return group

    async def add_member(self, group_id: str, name: str, avatar_color: str = "") -> Member:
        group = self.get_group(group_id)
        now = self._clock()
        member = Member(id=_new_id("member"), name=name, avatar_color=avatar_color)
        activity = self._activity(
            ActivityType.MEMBER_ADDED, now, target_id=member.id, memberName=name,
        )
        self._store(replace(
            group,
            members=[*group.members, member],
            activities=[*group.activities, activity],
        ))
        logger.info("Member %s '%s' added to group %s", member.id, name, group_id)
        return member

    async def delete_member(self, group_id: str, member_id: str) -> Group:
        """Remove a member from the group and from every task rotation."""
        group = self.get_group(group_id)
        member = group.member(member_id)
        if member is None:
            raise MemberNotFoundError(f"Member {member_id} not found in group {group_id}")

        now = self._clock()
        activity = self._activity(
            ActivityType.MEMBER_DELETED, now, target_id=member_id, memberName=member.name,
        )
        updated = self._store(replace(
            group,
            members=[m for m in group.members if m.id != member_id],
            tasks=[remove_member_from_task(t, member_id) for t in group.tasks],
            activities=[*group.activities, activity],
        ))
        logger.info("Member %s removed from group %s", member_id, group_id)

        # Assignments may have shifted for any task
        await self._refresh_group_reminders(updated, now)
        return updated

    # -- tasks -------------------------------------------------------------

    async def add_task(
        self,
        group_id: str,
        name: str,
        schedule: Schedule,
        member_ids: list[str] | None = None,
        icon: str = "",
    ) -> Task:
        group = self.get_group(group_id)
        now = self._clock()
        task = Task(
            id=_new_id("task"),
            name=name,
            icon=icon,
            schedule=schedule,
            member_ids=list(member_ids or []),
        )
        activity = self._activity(
            ActivityType.TASK_CREATED, now, target_id=task.id, taskName=name, taskIcon=icon,
        )
        updated = self._store(replace(
            group,
            tasks=[*group.tasks, task],
            activities=[*group.activities, activity],
        ))
        logger.info("Task %s '%s' added to group %s", task.id, name, group_id)
        await self._refresh_task_reminder(updated, task, now)
        return task

    async def update_task(
        self,
        group_id: str,
        task_id: str,
        name: str | None = None,
        icon: str | None = None,
        schedule: Schedule | None = None,
        member_ids: list[str] | None = None,
    ) -> Task:
        group = self.get_group(group_id)
        task = self._get_task(group, task_id)

        if member_ids is not None:
            task = replace_member_ids(task, member_ids)
        if name is not None:
            task = replace(task, name=name)
        if icon is not None:
            task = replace(task, icon=icon)
        if schedule is not None:
            task = replace(task, schedule=schedule)

        updated = self._store(replace(
            group, tasks=[task if t.id == task_id else t for t in group.tasks],
        ))
        logger.info("Task %s updated", task_id)
        await self._refresh_task_reminder(updated, task, self._clock())
        return task

    async def delete_task(self, group_id: str, task_id: str) -> None:
        group = self.get_group(group_id)
        task = self._get_task(group, task_id)
        now = self._clock()

        if self._notifier is not None:
            await cancel_task_reminder(self._notifier, task_id)

        activity = self._activity(
            ActivityType.TASK_DELETED, now,
            target_id=task_id, taskName=task.name, taskIcon=task.icon,
        )
        self._store(replace(
            group,
            tasks=[t for t in group.tasks if t.id != task_id],
            activities=[*group.activities, activity],
        ))
        logger.info("Task %s deleted from group %s", task_id, group_id)

    # -- rotation ----------------------------------------------------------

    async def mark_task_done(self, group_id: str, task_id: str) -> RotationResult | None:
        """Complete the current turn; None if nobody is assigned or it is already done."""
        group = self.get_group(group_id)
        task = self._get_task(group, task_id)
        now = self._clock()

        if is_completed_for_current_period(task, now):
            logger.info("Task %s already completed for the current period", task_id)
            return None

        result = mark_done(task, group.members, now)
        if result is None:
            return None

        done = replace(apply_rotation(task, result), last_completed_at=now)
        activity = self._activity(
            ActivityType.TASK_COMPLETED, now,
            actor_id=result.member_id, target_id=task_id,
            taskName=task.name, taskIcon=task.icon,
        )
        updated = self._store(replace(
            group,
            members=apply_streak(group.members, result.streak_update),
            tasks=[done if t.id == task_id else t for t in group.tasks],
            activities=[*group.activities, activity],
        ))
        logger.info(
            "Task %s done by %s, next index %d",
            task_id, result.member_id, result.new_assigned_index,
        )
        await self._refresh_task_reminder(updated, done, now)
        return result

    async def skip_turn(self, group_id: str, task_id: str) -> RotationResult | None:
        group = self.get_group(group_id)
        task = self._get_task(group, task_id)
        now = self._clock()

        result = skip_turn(task, group.members, now)
        if result is None:
            return None

        skipped = apply_rotation(task, result)
        activity = self._activity(
            ActivityType.TASK_SKIPPED, now,
            actor_id=result.member_id, target_id=task_id,
            taskName=task.name, taskIcon=task.icon,
        )
        updated = self._store(replace(
            group,
            tasks=[skipped if t.id == task_id else t for t in group.tasks],
            activities=[*group.activities, activity],
        ))
        logger.info("Task %s skipped by %s", task_id, result.member_id)
        await self._refresh_task_reminder(updated, skipped, now)
        return result
