"""
Turi — Task Reminders.

Derives when a task's reminder should fire (due date minus a lead time) and
keeps the notification port in sync: cancel a task's old reminder, then
schedule its new one. Rescheduling a group is a plain sequential loop.

This module is provider-agnostic: it depends on the NotificationPort
protocol, not on a specific notification API.
"""

from __future__ import annotations

import logging
from dataclasses import dataclass, field
from datetime import datetime, timedelta
from typing import TYPE_CHECKING

from turi.core.completion import first_unsatisfied_due_date, is_completed_for_date
from turi.core.due_dates import compute_next_due_date
from turi.core.rotation import assigned_member_name, rotation_member_ids
from turi.core.schedule_format import format_schedule_info

if TYPE_CHECKING:
    from turi.core.locale import Translator
    from turi.data.models import Group, Task
    from turi.ports.notification_port import NotificationPort

logger = logging.getLogger(__name__)


@dataclass
class Reminder:
    fire_at: datetime
    title: str
    body: str
    data: dict = field(default_factory=dict)


# ---------------------------------------------------------------------------
# Timing
# ---------------------------------------------------------------------------


def compute_notification_time(
    task: Task,
    reminder_minutes: int,
    now: datetime,
    due: datetime | None = None,
) -> datetime | None:
    """Return when the reminder should fire, or None to suppress it.

    Suppressed when no due date can be computed, when the fire time is not in
    the future, or when the task is already done for the period holding the
    due date.
    """
    if due is None:
        due = compute_next_due_date(task, now)
    if due is None:
        return None

    fire_at = due - timedelta(minutes=reminder_minutes)
    if fire_at <= now:
        return None
    if is_completed_for_date(task, due):
        logger.debug("Task %s already done for period containing %s", task.id, due)
        return None
    return fire_at


def build_reminder(
    task: Task,
    group: Group,
    reminder_minutes: int,
    now: datetime,
    translator: Translator,
) -> Reminder | None:
    """Assemble the reminder for a task, or None if nothing should fire.

    When the task is already done for the period of its next due date, the
    reminder targets the first occurrence that completion does not cover.
    """
    if not rotation_member_ids(task, group.members):
        logger.debug("Skipping reminder for task %s - no assigned members", task.id)
        return None

    due = compute_next_due_date(task, now)
    if due is not None and is_completed_for_date(task, due):
        due = first_unsatisfied_due_date(task)
    fire_at = compute_notification_time(task, reminder_minutes, now, due=due)
    if fire_at is None:
        return None

    info = format_schedule_info(task, now, translator, due=due)
    schedule_text = info.text or translator.t("notification.dueSoon")
    return Reminder(
        fire_at=fire_at,
        title=translator.t("notification.title", task=task.name),
        body=translator.t(
            "notification.body",
            member=assigned_member_name(task, group, translator),
            schedule=schedule_text,
        ),
        data={"taskId": task.id, "groupId": group.id, "type": "task_reminder"},
    )


# ---------------------------------------------------------------------------
# Port orchestration
# ---------------------------------------------------------------------------


async def schedule_task_reminder(
    notifier: NotificationPort,
    task: Task,
    group: Group,
    reminder_minutes: int,
    now: datetime,
    translator: Translator,
) -> str | None:
    """Schedule the task's reminder. Returns the provider id, or None if skipped."""
    reminder = build_reminder(task, group, reminder_minutes, now, translator)
    if reminder is None:
        return None
    try:
        reminder_id = await notifier.schedule(
            reminder.fire_at, reminder.title, reminder.body, reminder.data,
        )
    except Exception as exc:
        logger.error("Failed to schedule reminder for task %s: %s", task.id, exc)
        return None
    logger.info("Scheduled reminder for task %s at %s", task.id, reminder.fire_at)
    return reminder_id


async def cancel_task_reminder(notifier: NotificationPort, task_id: str) -> None:
    try:
        await notifier.cancel_task(task_id)
    except Exception as exc:
        logger.error("Failed to cancel reminder for task %s: %s", task_id, exc)


async def reschedule_task_reminder(
    notifier: NotificationPort,
    task: Task,
    group: Group,
    reminder_minutes: int,
    now: datetime,
    translator: Translator,
) -> str | None:
    """Cancel the task's old reminder before scheduling its new one."""
    await cancel_task_reminder(notifier, task.id)
    return await schedule_task_reminder(
        notifier, task, group, reminder_minutes, now, translator,
    )


async def reschedule_group_reminders(
    notifier: NotificationPort,
    group: Group,
    reminder_minutes: int,
    now: datetime,
    translator: Translator,
) -> int:
    """Cancel every reminder of the group, then schedule each task in order.

    Returns the number of reminders scheduled.
    """
    try:
        await notifier.cancel_group(group.id)
    except Exception as exc:
        logger.error("Failed to cancel reminders for group %s: %s", group.id, exc)
        return 0

    scheduled = 0
    for task in group.tasks:
        if await schedule_task_reminder(
            notifier, task, group, reminder_minutes, now, translator,
        ):
            scheduled += 1
    return scheduled
