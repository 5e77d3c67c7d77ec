"""
Turi — Schema migration and (de)serialization.

Stored app data mixes three generations of task schedules:

- unified:  ``schedule = {repeat, dayOfWeek, week, dayOfMonth, type, time, startDate}``
- object:   ``schedule = {frequency, day, type, dayOfWeek, week, dayOfMonth, time}``
- flat:     ``frequency`` + ``scheduleDay`` / ``scheduleWeek`` / ``scheduleTime``

Everything is normalized here, once, into the canonical models. Timestamps
are converted to naive local wall-clock time in the configured zone so the
scheduling core never mixes aware and naive datetimes.
"""

from __future__ import annotations

import logging
from datetime import date, datetime, tzinfo

from turi.data.models import (
    APP_DATA_VERSION,
    ActivityType,
    AppData,
    CompletionRecord,
    Group,
    GroupActivity,
    Member,
    MonthlyMode,
    Repeat,
    Schedule,
    SkipRecord,
    Task,
    User,
)

logger = logging.getLogger(__name__)


# ---------------------------------------------------------------------------
# Scalars
# ---------------------------------------------------------------------------


def parse_timestamp(value: str | None, tz: tzinfo | None = None) -> datetime | None:
    """Parse an ISO timestamp into naive local time; None for missing or invalid."""
    if not value:
        return None
    try:
        parsed = datetime.fromisoformat(str(value).replace("Z", "+00:00"))
    except ValueError:
        logger.warning("Ignoring malformed timestamp %r", value)
        return None
    if parsed.tzinfo is not None:
        parsed = parsed.astimezone(tz).replace(tzinfo=None)
    return parsed


def format_timestamp(value: datetime | None) -> str | None:
    return value.isoformat() if value is not None else None


def _parse_start_date(value: str | None, tz: tzinfo | None) -> date | None:
    parsed = parse_timestamp(value, tz)
    return parsed.date() if parsed is not None else None


def _int_or_none(value: object) -> int | None:
    if value is None or value == "":
        return None
    try:
        return int(value)
    except (TypeError, ValueError):
        logger.warning("Ignoring non-integer schedule field %r", value)
        return None


def _monthly_mode(value: str | None) -> MonthlyMode | None:
    if value is None:
        return None
    try:
        return MonthlyMode(value)
    except ValueError:
        logger.warning("Unknown monthly schedule type %r", value)
        return None


# ---------------------------------------------------------------------------
# Schedules
# ---------------------------------------------------------------------------


def _repeat_or_raw(value: str) -> Repeat | str:
    try:
        return Repeat(value)
    except ValueError:
        # Kept as-is; the due date calculator treats it as unrecognized
        logger.warning("Unknown repeat kind %r", value)
        return value


def _from_unified(raw: dict, tz: tzinfo | None) -> Schedule:
    return Schedule(
        repeat=_repeat_or_raw(raw["repeat"]),
        time=raw.get("time") or None,
        start_date=_parse_start_date(raw.get("startDate"), tz),
        day_of_week=_int_or_none(raw.get("dayOfWeek")),
        week=_int_or_none(raw.get("week")),
        day_of_month=_int_or_none(raw.get("dayOfMonth")),
        monthly_mode=_monthly_mode(raw.get("type")),
    )


def _from_frequency_object(raw: dict, tz: tzinfo | None) -> Schedule:
    frequency = raw["frequency"]
    day_of_week = raw.get("dayOfWeek")
    if frequency == "weekly":
        day_of_week = raw.get("day", day_of_week)
    return Schedule(
        repeat=_repeat_or_raw(frequency),
        time=raw.get("time") or None,
        start_date=_parse_start_date(raw.get("startDate"), tz),
        day_of_week=_int_or_none(day_of_week),
        week=_int_or_none(raw.get("week")),
        day_of_month=_int_or_none(raw.get("dayOfMonth")),
        monthly_mode=_monthly_mode(raw.get("type")),
    )


def _from_flat_fields(raw_task: dict) -> Schedule:
    frequency = raw_task.get("frequency") or "daily"
    day = _int_or_none(raw_task.get("scheduleDay"))
    week = _int_or_none(raw_task.get("scheduleWeek"))
    schedule = Schedule(
        repeat=_repeat_or_raw(frequency),
        time=raw_task.get("scheduleTime") or None,
    )
    if frequency == "weekly":
        schedule.day_of_week = day
        if day is None:
            logger.warning("Legacy weekly task %s has no scheduleDay", raw_task.get("id"))
    elif frequency == "monthly":
        if day is not None:
            schedule.monthly_mode = MonthlyMode.DAY_OF_WEEK
            schedule.day_of_week = day
            schedule.week = week or 1
        else:
            # Legacy monthly tasks without a day fell on the 1st
            schedule.monthly_mode = MonthlyMode.DAY_OF_MONTH
            schedule.day_of_month = 1
    return schedule


def normalize_schedule(raw_task: dict, tz: tzinfo | None = None) -> Schedule:
    """Return the canonical Schedule for any stored task representation."""
    raw = raw_task.get("schedule")
    if isinstance(raw, dict) and raw.get("repeat"):
        return _from_unified(raw, tz)
    if isinstance(raw, dict) and raw.get("frequency"):
        return _from_frequency_object(raw, tz)
    return _from_flat_fields(raw_task)


def schedule_to_dict(schedule: Schedule) -> dict:
    repeat = schedule.repeat.value if isinstance(schedule.repeat, Repeat) else schedule.repeat
    data: dict = {"repeat": repeat}
    if schedule.time:
        data["time"] = schedule.time
    if schedule.start_date is not None:
        data["startDate"] = schedule.start_date.isoformat()
    if schedule.day_of_week is not None:
        data["dayOfWeek"] = schedule.day_of_week
    if schedule.week is not None:
        data["week"] = schedule.week
    if schedule.day_of_month is not None:
        data["dayOfMonth"] = schedule.day_of_month
    if schedule.monthly_mode is not None:
        data["type"] = schedule.monthly_mode.value
    return data


# ---------------------------------------------------------------------------
# Records
# ---------------------------------------------------------------------------


def member_from_dict(raw: dict, tz: tzinfo | None = None) -> Member:
    return Member(
        id=raw["id"],
        name=raw.get("name", ""),
        avatar_color=raw.get("avatarColor", ""),
        streak_count=_int_or_none(raw.get("streakCount")) or 0,
        last_streak_date=parse_timestamp(raw.get("lastStreakDate"), tz),
    )


def member_to_dict(member: Member) -> dict:
    return {
        "id": member.id,
        "name": member.name,
        "avatarColor": member.avatar_color,
        "streakCount": member.streak_count,
        "lastStreakDate": format_timestamp(member.last_streak_date),
    }


def task_from_dict(raw: dict, tz: tzinfo | None = None) -> Task:
    completions: list[CompletionRecord] = []
    for entry in raw.get("completionHistory") or []:
        stamp = parse_timestamp(entry.get("completedAt") or entry.get("timestamp"), tz)
        if stamp is not None:
            completions.append(CompletionRecord(member_id=entry.get("memberId", ""), completed_at=stamp))

    skips: list[SkipRecord] = []
    for entry in raw.get("skipHistory") or []:
        stamp = parse_timestamp(entry.get("skippedAt") or entry.get("timestamp"), tz)
        if stamp is not None:
            skips.append(SkipRecord(member_id=entry.get("memberId", ""), skipped_at=stamp))

    member_ids = list(raw.get("memberIds") or [])
    assigned = _int_or_none(raw.get("assignedIndex")) or 0
    if member_ids:
        assigned = max(0, min(assigned, len(member_ids) - 1))
    else:
        assigned = 0

    return Task(
        id=raw["id"],
        name=raw.get("name", ""),
        icon=raw.get("icon", ""),
        schedule=normalize_schedule(raw, tz),
        member_ids=member_ids,
        assigned_index=assigned,
        completion_history=completions,
        skip_history=skips,
        last_completed_at=parse_timestamp(raw.get("lastCompletedAt"), tz),
    )


def task_to_dict(task: Task) -> dict:
    return {
        "id": task.id,
        "name": task.name,
        "icon": task.icon,
        "memberIds": list(task.member_ids),
        "assignedIndex": task.assigned_index,
        "schedule": schedule_to_dict(task.schedule),
        "completionHistory": [
            {"memberId": c.member_id, "completedAt": c.completed_at.isoformat()}
            for c in task.completion_history
        ],
        "skipHistory": [
            {"memberId": s.member_id, "skippedAt": s.skipped_at.isoformat()}
            for s in task.skip_history
        ],
        "lastCompletedAt": format_timestamp(task.last_completed_at),
    }


def activity_from_dict(raw: dict, tz: tzinfo | None = None) -> GroupActivity | None:
    try:
        kind = ActivityType(raw.get("type"))
    except ValueError:
        logger.warning("Dropping activity with unknown type %r", raw.get("type"))
        return None
    metadata = dict(raw.get("metadata") or {})
    metadata.pop("type", None)
    return GroupActivity(
        id=raw.get("id", ""),
        type=kind,
        timestamp=parse_timestamp(raw.get("timestamp"), tz) or datetime.min,
        actor_id=raw.get("actorId"),
        target_id=raw.get("targetId"),
        metadata=metadata,
    )


def activity_to_dict(activity: GroupActivity) -> dict:
    return {
        "id": activity.id,
        "type": activity.type.value,
        "timestamp": activity.timestamp.isoformat(),
        "actorId": activity.actor_id,
        "targetId": activity.target_id,
        "metadata": {"type": activity.type.value, **activity.metadata},
    }


def group_from_dict(raw: dict, tz: tzinfo | None = None) -> Group:
    activities = [activity_from_dict(a, tz) for a in raw.get("activities") or []]
    return Group(
        id=raw["id"],
        name=raw.get("name", ""),
        icon=raw.get("icon", ""),
        color_preset=raw.get("colorPreset", ""),
        owner_id=raw.get("ownerId", ""),
        members=[member_from_dict(m, tz) for m in raw.get("members") or []],
        tasks=[task_from_dict(t, tz) for t in raw.get("tasks") or []],
        created_at=parse_timestamp(raw.get("createdAt"), tz),
        activities=[a for a in activities if a is not None],
    )


def group_to_dict(group: Group) -> dict:
    return {
        "id": group.id,
        "name": group.name,
        "icon": group.icon,
        "colorPreset": group.color_preset,
        "ownerId": group.owner_id,
        "members": [member_to_dict(m) for m in group.members],
        "tasks": [task_to_dict(t) for t in group.tasks],
        "createdAt": format_timestamp(group.created_at),
        "activities": [activity_to_dict(a) for a in group.activities],
    }


def migrate_app_data(raw: dict) -> dict:
    """Bring a stored blob up to APP_DATA_VERSION (schedule shapes are handled per task)."""
    if raw.get("version") != APP_DATA_VERSION:
        logger.info("Migrating app data from version %r to %s", raw.get("version"), APP_DATA_VERSION)
        raw = {**raw, "version": APP_DATA_VERSION}
    return raw


def app_data_from_dict(raw: dict, tz: tzinfo | None = None) -> AppData:
    raw = migrate_app_data(raw)
    user_raw = raw.get("user")
    user = None
    if isinstance(user_raw, dict) and user_raw.get("id"):
        user = User(
            id=user_raw["id"],
            name=user_raw.get("name", ""),
            avatar_color=user_raw.get("avatarColor", ""),
        )
    return AppData(
        version=raw["version"],
        groups=[group_from_dict(g, tz) for g in raw.get("groups") or []],
        user=user,
        onboarding_completed=bool(raw.get("onboardingCompleted", False)),
    )


def app_data_to_dict(data: AppData) -> dict:
    result: dict = {
        "version": data.version,
        "groups": [group_to_dict(g) for g in data.groups],
        "onboardingCompleted": data.onboarding_completed,
    }
    if data.user is not None:
        result["user"] = {
            "id": data.user.id,
            "name": data.user.name,
            "avatarColor": data.user.avatar_color,
        }
    return result
