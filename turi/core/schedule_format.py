"""Human-readable schedule text for a task.

Pure formatting over the due date calculator and the overdue evaluator; the
translator is always passed in by the caller.
"""

from __future__ import annotations

from dataclasses import dataclass
from datetime import datetime
from typing import TYPE_CHECKING

from turi.core.calendar_math import days_between, day_index, parse_time_string
from turi.core.completion import is_overdue
from turi.core.due_dates import coerce_repeat, compute_next_due_date
from turi.core.locale import day_name, month_abbr
from turi.data.models import Repeat, Schedule, Task

if TYPE_CHECKING:
    from turi.core.locale import Translator

_UNSET = object()


@dataclass
class ScheduleInfo:
    text: str                 # "Weekly - Monday - Tomorrow"
    repeat_label: str         # "Weekly - Monday"
    date_label: str           # "Today" | "Tomorrow" | "Friday" | "Feb 28, 2025"
    time_label: str | None    # "2:30 PM"
    is_overdue: bool


def format_time_12h(value: str | None, translator: Translator) -> str | None:
    """Render "14:30" as "2:30 PM"; malformed strings are returned unchanged."""
    if not value:
        return None
    parsed = parse_time_string(value)
    if parsed is None:
        return value
    hours, minutes = parsed
    period = translator.t("common.pm") if hours >= 12 else translator.t("common.am")
    display = hours % 12 or 12
    return f"{display}:{minutes:02d} {period}"


def format_absolute_date(when: datetime, translator: Translator) -> str:
    """Apple Reminders style: "Dec 1, 2025"."""
    return f"{month_abbr(translator, when.month)} {when.day}, {when.year}"


def repeat_label(schedule: Schedule, translator: Translator) -> str:
    repeat = coerce_repeat(schedule.repeat)
    if repeat is None:
        return ""
    label = translator.t(f"schedule.repeat.{repeat.value}")
    if repeat in (Repeat.WEEKLY, Repeat.BIWEEKLY):
        dow = schedule.day_of_week
        if isinstance(dow, int) and 0 <= dow <= 6:
            label = f"{label} - {day_name(translator, dow)}"
    return label


def due_date_label(due: datetime | None, now: datetime, translator: Translator) -> str:
    """Today / Tomorrow / weekday name up to a week out / absolute date beyond."""
    if due is None:
        return ""
    days = days_between(now, due)
    if days == 0:
        return translator.t("common.today")
    if days == 1:
        return translator.t("common.tomorrow")
    if 2 <= days <= 7:
        return day_name(translator, day_index(due))
    return format_absolute_date(due, translator)


def format_schedule_info(
    task: Task,
    now: datetime,
    translator: Translator,
    due: datetime | None | object = _UNSET,
    overdue: bool | None = None,
) -> ScheduleInfo:
    """Build the repeat/date/time labels shown for a task.

    ``due`` and ``overdue`` may be supplied when the caller has already
    computed them. Overdue tasks always read as due "Today".
    """
    if due is _UNSET:
        due = compute_next_due_date(task, now)
    if overdue is None:
        overdue = is_overdue(task, now)

    if overdue:
        date_label = translator.t("common.today")
    else:
        date_label = due_date_label(due, now, translator)

    repeat = repeat_label(task.schedule, translator)
    text = f"{repeat} - {date_label}" if date_label else repeat
    return ScheduleInfo(
        text=text,
        repeat_label=repeat,
        date_label=date_label,
        time_label=format_time_12h(task.schedule.time, translator),
        is_overdue=overdue,
    )


def format_relative_due(task: Task, now: datetime, translator: Translator) -> str:
    """Relative countdown such as "Due tomorrow" or "Due in 3 weeks"."""
    due = compute_next_due_date(task, now)
    if due is None:
        return translator.t("task.noSchedule")

    days = days_between(now, due)
    if days <= 0:
        return translator.t("task.dueToday")
    if days == 1:
        return translator.t("task.dueTomorrow")
    if days <= 7:
        return translator.t("task.dueInDays", count=days)
    if days <= 31:
        return translator.t("task.dueInWeeks", count=days // 7)
    return translator.t("task.dueInMonths", count=days // 30)
