"""Plain-text agenda of every group's tasks: who is up, and when it is due."""

from __future__ import annotations

import logging
from datetime import datetime
from typing import TYPE_CHECKING

from turi.core.completion import completion_status
from turi.core.rotation import assigned_member_name, rotation_member_ids
from turi.core.schedule_format import format_schedule_info

if TYPE_CHECKING:
    from turi.core.locale import Translator
    from turi.data.models import Group, Task

logger = logging.getLogger(__name__)


def format_task_line(task: Task, group: Group, now: datetime, translator: Translator) -> str:
    """One agenda line, e.g. "  Dishes — Dana — Daily - Tomorrow (9:00 PM)"."""
    if rotation_member_ids(task, group.members):
        who = assigned_member_name(task, group, translator)
    else:
        who = translator.t("agenda.unassigned")

    info = format_schedule_info(task, now, translator)
    label = f"{task.icon} {task.name}" if task.icon else task.name
    line = f"  {label} — {who} — {info.text}"
    if info.time_label:
        line += f" ({info.time_label})"

    done, message = completion_status(task, now, translator)
    if done:
        line += f" ✓ {message}"
    elif info.is_overdue:
        line += f" [{translator.t('agenda.overdue')}]"
    return line


def build_agenda(groups: list[Group], now: datetime, translator: Translator) -> str:
    if not groups:
        return translator.t("agenda.empty")

    blocks: list[str] = []
    for group in groups:
        lines = [group.name]
        lines.extend(format_task_line(t, group, now, translator) for t in group.tasks)
        blocks.append("\n".join(lines))
    return "\n\n".join(blocks)


def main() -> None:
    """Print the agenda for the configured database, language and timezone."""
    from zoneinfo import ZoneInfo

    from turi.config import settings
    from turi.core.locale import CatalogTranslator
    from turi.data.db import AppDataDB

    tz = ZoneInfo(settings.TIMEZONE)
    db = AppDataDB(settings.DATABASE_PATH, tz=tz)
    now = datetime.now(tz).replace(tzinfo=None)
    data = db.load()
    logger.info("Loaded %d group(s) from %s", len(data.groups), settings.DATABASE_PATH)
    print(build_agenda(data.groups, now, CatalogTranslator(settings.LANGUAGE)))
