"""Completion and overdue evaluation for recurring tasks.

A completion satisfies the whole period it falls in: the calendar day for
daily rules, the ISO week for weekday/weekend/weekly/biweekly rules, the
calendar month for monthly/quarterly/semi-annual rules and the calendar
year for yearly rules.
"""

from __future__ import annotations

import logging
from datetime import datetime
from typing import TYPE_CHECKING

from turi.core.calendar_math import same_day, same_iso_week, same_month, same_year
from turi.core.due_dates import coerce_repeat, compute_next_due_date
from turi.data.models import Repeat, Schedule, Task

if TYPE_CHECKING:
    from turi.core.locale import Translator

logger = logging.getLogger(__name__)

_WEEK_PERIOD = {Repeat.WEEKDAYS, Repeat.WEEKENDS, Repeat.WEEKLY, Repeat.BIWEEKLY}
_MONTH_PERIOD = {Repeat.MONTHLY, Repeat.EVERY_3_MONTHS, Repeat.EVERY_6_MONTHS}

# Upper bound on occurrences that can share one period (weekdays: 5 per week)
_MAX_OCCURRENCES_PER_PERIOD = 8


def period_matches(schedule: Schedule, d1: datetime, d2: datetime) -> bool:
    """True if ``d1`` and ``d2`` fall in the same completion period of the rule."""
    repeat = coerce_repeat(schedule.repeat)
    if repeat == Repeat.DAILY:
        return same_day(d1, d2)
    if repeat in _WEEK_PERIOD:
        return same_iso_week(d1, d2)
    if repeat in _MONTH_PERIOD:
        return same_month(d1, d2)
    if repeat == Repeat.YEARLY:
        return same_year(d1, d2)
    return False


def is_completed_for_date(task: Task, when: datetime) -> bool:
    """True if the latest completion lies in the period containing ``when``."""
    last = task.last_completion
    if last is None:
        return False
    return period_matches(task.schedule, last, when)


def is_completed_for_current_period(task: Task, now: datetime) -> bool:
    return is_completed_for_date(task, now)


def first_unsatisfied_due_date(task: Task) -> datetime | None:
    """First occurrence after the last completion that the completion does not cover.

    Occurrences inside the completion's own period count as done, so a weekly
    task finished early on Monday is next owed the following week.
    """
    last = task.last_completion
    if last is None:
        return None
    due = compute_next_due_date(task, last)
    for _ in range(_MAX_OCCURRENCES_PER_PERIOD):
        if due is None or not period_matches(task.schedule, due, last):
            return due
        due = compute_next_due_date(task, due)
    return due


def is_overdue(task: Task, now: datetime) -> bool:
    """True when an occurrence has come and gone since the last completion.

    A task that has never been completed is never overdue here.
    """
    if task.last_completion is None:
        return False
    owed = first_unsatisfied_due_date(task)
    if owed is None:
        return False
    return owed <= now


def completion_status(
    task: Task, now: datetime, translator: Translator,
) -> tuple[bool, str]:
    """Return (is_completed, message) for the current period, e.g. "Done for today!"."""
    if not is_completed_for_current_period(task, now):
        return False, ""

    repeat = coerce_repeat(task.schedule.repeat)
    if repeat == Repeat.DAILY:
        key = "completion.doneToday"
    elif repeat in _WEEK_PERIOD:
        key = "completion.doneThisWeek"
    elif repeat in _MONTH_PERIOD:
        key = "completion.doneThisMonth"
    else:
        key = "completion.doneThisYear"
    return True, translator.t(key)
