"""
Turi — Data Models.

Groups own members and tasks; tasks rotate through their members. These
records arrive fully migrated from turi.data.migration, so the scheduling
core only ever sees the canonical Schedule form below.
"""

from __future__ import annotations

from dataclasses import dataclass, field
from datetime import date, datetime
from enum import Enum

APP_DATA_VERSION = "1.0.0"


class Repeat(str, Enum):
    DAILY = "daily"
    WEEKDAYS = "weekdays"
    WEEKENDS = "weekends"
    WEEKLY = "weekly"
    BIWEEKLY = "biweekly"
    MONTHLY = "monthly"
    EVERY_3_MONTHS = "every3months"
    EVERY_6_MONTHS = "every6months"
    YEARLY = "yearly"


class MonthlyMode(str, Enum):
    DAY_OF_WEEK = "dayOfWeek"              # nth weekday, e.g. 2nd Tuesday
    DAY_OF_MONTH = "dayOfMonth"            # fixed day, clamped to month length
    LAST_DAY_OF_MONTH = "lastDayOfMonth"   # last given weekday of the month


class ActivityType(str, Enum):
    TASK_COMPLETED = "task_completed"
    TASK_SKIPPED = "task_skipped"
    TASK_CREATED = "task_created"
    TASK_DELETED = "task_deleted"
    MEMBER_ADDED = "member_added"
    MEMBER_DELETED = "member_deleted"
    GROUP_CREATED = "group_created"


@dataclass
class Schedule:
    """A recurrence rule. Weekdays use Sunday = 0."""

    repeat: Repeat | str
    time: str | None = None                   # "HH:MM", 24h; None -> 09:00
    start_date: date | None = None
    day_of_week: int | None = None            # weekly, biweekly, monthly modes
    week: int | None = None                   # monthly nth-weekday mode, 1-4
    day_of_month: int | None = None           # monthly fixed-day mode, 1-31
    monthly_mode: MonthlyMode | None = None


@dataclass
class Member:
    id: str
    name: str
    avatar_color: str = ""
    streak_count: int = 0
    last_streak_date: datetime | None = None


@dataclass
class CompletionRecord:
    member_id: str
    completed_at: datetime


@dataclass
class SkipRecord:
    member_id: str
    skipped_at: datetime


@dataclass
class Task:
    """A recurring chore rotating through ``member_ids``."""

    id: str
    name: str
    schedule: Schedule
    icon: str = ""
    member_ids: list[str] = field(default_factory=list)
    assigned_index: int = 0
    completion_history: list[CompletionRecord] = field(default_factory=list)
    skip_history: list[SkipRecord] = field(default_factory=list)
    last_completed_at: datetime | None = None   # legacy single-timestamp field

    @property
    def last_completion(self) -> datetime | None:
        """Most recent completion across the legacy field and the history log."""
        stamps = [c.completed_at for c in self.completion_history]
        if self.last_completed_at is not None:
            stamps.append(self.last_completed_at)
        return max(stamps) if stamps else None


@dataclass
class GroupActivity:
    id: str
    type: ActivityType
    timestamp: datetime
    actor_id: str | None = None
    target_id: str | None = None
    metadata: dict = field(default_factory=dict)


@dataclass
class Group:
    id: str
    name: str
    icon: str = ""
    color_preset: str = ""
    owner_id: str = ""
    members: list[Member] = field(default_factory=list)
    tasks: list[Task] = field(default_factory=list)
    created_at: datetime | None = None
    activities: list[GroupActivity] = field(default_factory=list)

    def member(self, member_id: str) -> Member | None:
        return next((m for m in self.members if m.id == member_id), None)

    def task(self, task_id: str) -> Task | None:
        return next((t for t in self.tasks if t.id == task_id), None)


@dataclass
class User:
    id: str
    name: str
    avatar_color: str = ""


@dataclass
class AppData:
    version: str = APP_DATA_VERSION
    groups: list[Group] = field(default_factory=list)
    user: User | None = None
    onboarding_completed: bool = False
