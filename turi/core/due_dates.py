"""Due date calculator — next concrete due date/time for a recurrence rule.

The answer is always the earliest occurrence of the rule that lies strictly
after ``now`` and on or after the rule's start date. Because it depends only
on (schedule, now), repeated calls are idempotent and a later ``now`` can
never produce an earlier due date.

No I/O: this module only transforms data.
"""

from __future__ import annotations

import logging
from datetime import date, datetime, time, timedelta
from typing import Callable

from turi.core.calendar_math import (
    add_months,
    clamped_day_of_month,
    day_index,
    last_weekday_of_month,
    nth_weekday_of_month,
    parse_time_string,
)
from turi.data.models import MonthlyMode, Repeat, Schedule, Task

logger = logging.getLogger(__name__)

DEFAULT_DUE_TIME = time(9, 0)

_MONTH_STEPS = {
    Repeat.MONTHLY: 1,
    Repeat.EVERY_3_MONTHS: 3,
    Repeat.EVERY_6_MONTHS: 6,
    Repeat.YEARLY: 12,
}


def scheduled_time(schedule: Schedule) -> time:
    """Time of day the rule fires; 09:00 when unset or malformed."""
    if not schedule.time:
        return DEFAULT_DUE_TIME
    parsed = parse_time_string(schedule.time)
    if parsed is None:
        logger.warning("Malformed schedule time %r, using 09:00", schedule.time)
        return DEFAULT_DUE_TIME
    return time(*parsed)


def coerce_repeat(value: Repeat | str | None) -> Repeat | None:
    """Return the Repeat member for ``value`` or None if unrecognized."""
    if isinstance(value, Repeat):
        return value
    try:
        return Repeat(value)
    except ValueError:
        return None


def _valid_weekday(value: int | None) -> bool:
    return isinstance(value, int) and 0 <= value <= 6


def _monthly_placement(schedule: Schedule) -> Callable[[int, int], date] | None:
    """Pick the day-in-month resolver for a month-based rule, or None if malformed."""
    mode = schedule.monthly_mode
    if mode is None:
        # Infer the mode from whichever fields are present
        if schedule.week is not None:
            mode = MonthlyMode.DAY_OF_WEEK
        elif schedule.day_of_month is not None:
            mode = MonthlyMode.DAY_OF_MONTH

    if mode == MonthlyMode.DAY_OF_WEEK:
        week, weekday = schedule.week, schedule.day_of_week
        if not (isinstance(week, int) and 1 <= week <= 4 and _valid_weekday(weekday)):
            return None
        return lambda y, m: nth_weekday_of_month(y, m, weekday, week)

    if mode == MonthlyMode.DAY_OF_MONTH:
        dom = schedule.day_of_month
        if not (isinstance(dom, int) and 1 <= dom <= 31):
            return None
        return lambda y, m: clamped_day_of_month(y, m, dom)

    if mode == MonthlyMode.LAST_DAY_OF_MONTH:
        weekday = schedule.day_of_week
        if not _valid_weekday(weekday):
            return None
        return lambda y, m: last_weekday_of_month(y, m, weekday)

    # No mode at all: repeat on the start date's day of month
    if schedule.start_date is not None:
        anchor_day = schedule.start_date.day
        return lambda y, m: clamped_day_of_month(y, m, anchor_day)
    return None


def _next_daily(schedule: Schedule, day: date, at: time, now: datetime) -> datetime:
    candidate = datetime.combine(day, at)
    if candidate <= now:
        candidate += timedelta(days=1)
    return candidate


def _next_matching_day(
    days: set[int], day: date, at: time, now: datetime,
) -> datetime | None:
    for offset in range(8):
        d = day + timedelta(days=offset)
        if day_index(d) in days and datetime.combine(d, at) > now:
            return datetime.combine(d, at)
    return None


def _next_weekly(
    schedule: Schedule, day: date, at: time, now: datetime,
) -> datetime | None:
    target = schedule.day_of_week
    if not _valid_weekday(target):
        logger.warning("Weekly rule without a valid day_of_week: %r", target)
        return None
    offset = (target - day_index(day) + 7) % 7
    candidate = datetime.combine(day + timedelta(days=offset), at)
    if candidate <= now:
        candidate += timedelta(days=7)
    return candidate


def _next_month_based(
    schedule: Schedule, step: int, day: date, at: time, now: datetime,
) -> datetime | None:
    place = _monthly_placement(schedule)
    if place is None:
        logger.warning("Month-based rule %r has no usable day fields", schedule.repeat)
        return None
    if step > 1 and schedule.start_date is None:
        logger.warning("Rule %r needs a start_date to anchor its months", schedule.repeat)
        return None

    for offset in range(step * 2 + 1):
        year, month = add_months(day.year, day.month, offset)
        if step > 1 and (month - schedule.start_date.month) % step:
            continue
        due_day = place(year, month)
        if due_day < day:
            continue
        candidate = datetime.combine(due_day, at)
        if candidate > now:
            return candidate
    return None


def compute_next_due_date(task: Task | Schedule, now: datetime) -> datetime | None:
    """Return the next due datetime for a task (or a bare schedule).

    Returns None only when the rule is unrecognized or malformed.

    Biweekly rules currently use the weekly search, so they come due every
    week; the two-week cadence only affects completion periods.
    """
    schedule = task.schedule if isinstance(task, Task) else task
    repeat = coerce_repeat(schedule.repeat)
    if repeat is None:
        logger.warning("Unrecognized repeat kind: %r", schedule.repeat)
        return None

    at = scheduled_time(schedule)
    day = now.date()
    if schedule.start_date is not None and schedule.start_date > day:
        day = schedule.start_date

    if repeat == Repeat.DAILY:
        return _next_daily(schedule, day, at, now)
    if repeat == Repeat.WEEKDAYS:
        return _next_matching_day({1, 2, 3, 4, 5}, day, at, now)
    if repeat == Repeat.WEEKENDS:
        return _next_matching_day({0, 6}, day, at, now)
    if repeat in (Repeat.WEEKLY, Repeat.BIWEEKLY):
        return _next_weekly(schedule, day, at, now)
    return _next_month_based(schedule, _MONTH_STEPS[repeat], day, at, now)
