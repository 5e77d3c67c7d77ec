"""Calendar math primitives — pure date utilities for task scheduling.

Weekday indexes follow the stored-data convention (Sunday = 0 ... Saturday = 6),
not Python's ``date.weekday()`` (Monday = 0). Months are 1-based.

No I/O and no hidden state: every function depends only on its arguments.
"""

from __future__ import annotations

import calendar
import re
from datetime import date, datetime, timedelta

SUNDAY, MONDAY, TUESDAY, WEDNESDAY, THURSDAY, FRIDAY, SATURDAY = range(7)

_TIME_RE = re.compile(r"^(\d{1,2}):(\d{2})$")


def day_index(d: date) -> int:
    """Weekday of ``d`` with Sunday = 0."""
    return (d.weekday() + 1) % 7


def _as_date(d: date) -> date:
    return d.date() if isinstance(d, datetime) else d


def iso_week_number(d: date) -> int:
    """ISO-8601 week number (weeks start Monday, week 1 holds the first Thursday)."""
    return _as_date(d).isocalendar()[1]


def iso_week_year(d: date) -> int:
    """Year the ISO week of ``d`` belongs to (can differ from ``d.year``)."""
    return _as_date(d).isocalendar()[0]


def same_iso_week(d1: date, d2: date) -> bool:
    return (
        iso_week_number(d1) == iso_week_number(d2)
        and iso_week_year(d1) == iso_week_year(d2)
    )


def same_month(d1: date, d2: date) -> bool:
    return d1.year == d2.year and d1.month == d2.month


def same_day(d1: date, d2: date) -> bool:
    return _as_date(d1) == _as_date(d2)


def same_year(d1: date, d2: date) -> bool:
    return d1.year == d2.year


def days_in_month(year: int, month: int) -> int:
    return calendar.monthrange(year, month)[1]


def clamped_day_of_month(year: int, month: int, day: int) -> date:
    """Return ``year-month-day``, clamping ``day`` to the month length (Jan 31 -> Feb 28)."""
    return date(year, month, max(1, min(day, days_in_month(year, month))))


def add_months(year: int, month: int, offset: int) -> tuple[int, int]:
    """Shift a (year, month) pair by ``offset`` months, rolling the year as needed."""
    index = year * 12 + (month - 1) + offset
    return index // 12, index % 12 + 1


def nth_weekday_of_month(year: int, month: int, weekday: int, n: int) -> date:
    """Return the n-th (1-4) ``weekday`` of the month.

    If the month has fewer than ``n`` occurrences, the last occurrence is
    returned; the result never rolls into the following month.

    Raises ValueError if ``n`` is outside 1..4 or ``weekday`` outside 0..6.
    """
    if not 1 <= n <= 4:
        raise ValueError(f"Occurrence must be 1-4, got {n!r}")
    if not 0 <= weekday <= 6:
        raise ValueError(f"Weekday must be 0-6, got {weekday!r}")

    first = date(year, month, 1)
    offset = (weekday - day_index(first)) % 7
    candidate = first + timedelta(days=offset + (n - 1) * 7)
    if candidate.month != month:
        return last_weekday_of_month(year, month, weekday)
    return candidate


def last_weekday_of_month(year: int, month: int, weekday: int) -> date:
    """Return the last ``weekday`` of the month, scanning back from its last day."""
    current = date(year, month, days_in_month(year, month))
    while day_index(current) != weekday:
        current -= timedelta(days=1)
    return current


def parse_time_string(value: str | None) -> tuple[int, int] | None:
    """Parse a strict 24-hour "HH:MM" string into (hours, minutes).

    Returns None for anything malformed or out of range.
    """
    if not isinstance(value, str):
        return None
    match = _TIME_RE.match(value.strip())
    if not match:
        return None
    hours, minutes = int(match.group(1)), int(match.group(2))
    if not (0 <= hours <= 23 and 0 <= minutes <= 59):
        return None
    return hours, minutes


def start_of_day(dt: datetime) -> datetime:
    """Zero the time-of-day components of ``dt``."""
    return dt.replace(hour=0, minute=0, second=0, microsecond=0)


def days_between(d1: date, d2: date) -> int:
    """Whole calendar days from ``d1`` to ``d2`` (negative if ``d2`` is earlier)."""
    return (_as_date(d2) - _as_date(d1)).days
