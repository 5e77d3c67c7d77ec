"""Round-robin assignment of a task among its members, plus member streaks.

Every function returns new values; nothing here mutates the task or member
records passed in. The caller applies the results (see apply_rotation).
"""

from __future__ import annotations

import logging
from dataclasses import dataclass, replace
from datetime import datetime
from typing import TYPE_CHECKING

from turi.core.calendar_math import days_between
from turi.data.models import CompletionRecord, Member, SkipRecord, Task

if TYPE_CHECKING:
    from turi.core.locale import Translator
    from turi.data.models import Group

logger = logging.getLogger(__name__)


@dataclass
class StreakUpdate:
    member_id: str
    streak_count: int
    last_streak_date: datetime


@dataclass
class RotationResult:
    """Outcome of a mark-done or skip action, applied by the caller."""

    new_assigned_index: int                         # position in task.member_ids
    member_id: str                                  # whose turn it was
    completion_record: CompletionRecord | None = None
    skip_record: SkipRecord | None = None
    streak_update: StreakUpdate | None = None


def rotation_member_ids(task: Task, members: list[Member] | None = None) -> list[str]:
    """Task member ids in rotation order, restricted to the roster when given."""
    if members is None:
        return list(task.member_ids)
    roster = {m.id for m in members}
    return [mid for mid in task.member_ids if mid in roster]


def safe_assigned_index(task: Task, count: int | None = None) -> int:
    """Clamp the assigned index into [0, count - 1]; 0 for an empty rotation."""
    if count is None:
        count = len(task.member_ids)
    if count <= 0:
        return 0
    return max(0, min(task.assigned_index, count - 1))


def _eligible_positions(task: Task, members: list[Member] | None) -> list[int]:
    """Positions in ``member_ids`` whose member is still on the roster."""
    if members is None:
        return list(range(len(task.member_ids)))
    roster = {m.id for m in members}
    return [i for i, mid in enumerate(task.member_ids) if mid in roster]


def _current_position(task: Task, members: list[Member] | None) -> int | None:
    """Position in ``member_ids`` of the member on the hook.

    If the assigned index points at someone no longer on the roster, the turn
    passes to the next eligible member, wrapping around.
    """
    positions = _eligible_positions(task, members)
    if not positions:
        return None
    index = safe_assigned_index(task)
    return next((p for p in positions if p >= index), positions[0])


def current_assignee_id(task: Task, members: list[Member] | None = None) -> str | None:
    position = _current_position(task, members)
    if position is None:
        return None
    return task.member_ids[position]


def assigned_member_name(task: Task, group: Group, translator: Translator) -> str:
    """Name of the member on the hook, or the localized "Someone"."""
    member_id = current_assignee_id(task, group.members)
    member = group.member(member_id) if member_id else None
    if member is None or not member.name:
        return translator.t("activity.someone")
    return member.name


def update_streak(member: Member, now: datetime) -> StreakUpdate:
    """Extend the streak if the member's last streak day was today or yesterday, else restart at 1."""
    last = member.last_streak_date
    if last is not None and 0 <= days_between(last, now) <= 1:
        count = member.streak_count + 1
    else:
        count = 1
    return StreakUpdate(member_id=member.id, streak_count=count, last_streak_date=now)


def _advance(task: Task, members: list[Member] | None) -> tuple[str, int] | None:
    """Return (current member id, next assigned index), both in ``member_ids`` terms."""
    positions = _eligible_positions(task, members)
    current = _current_position(task, members)
    if current is None:
        return None
    following = positions[(positions.index(current) + 1) % len(positions)]
    return task.member_ids[current], following


def mark_done(
    task: Task, members: list[Member] | None, now: datetime,
) -> RotationResult | None:
    """Complete the current turn and hand the task to the next member.

    Returns None when the task has nobody to rotate through.
    """
    advanced = _advance(task, members)
    if advanced is None:
        logger.debug("Task %s has no members, mark_done is a no-op", task.id)
        return None
    member_id, next_index = advanced

    streak = None
    member = next((m for m in members or [] if m.id == member_id), None)
    if member is not None:
        streak = update_streak(member, now)

    return RotationResult(
        new_assigned_index=next_index,
        member_id=member_id,
        completion_record=CompletionRecord(member_id=member_id, completed_at=now),
        streak_update=streak,
    )


def skip_turn(
    task: Task, members: list[Member] | None, now: datetime,
) -> RotationResult | None:
    """Pass the turn to the next member without a completion or streak change."""
    advanced = _advance(task, members)
    if advanced is None:
        logger.debug("Task %s has no members, skip_turn is a no-op", task.id)
        return None
    member_id, next_index = advanced
    return RotationResult(
        new_assigned_index=next_index,
        member_id=member_id,
        skip_record=SkipRecord(member_id=member_id, skipped_at=now),
    )


def apply_rotation(task: Task, result: RotationResult) -> Task:
    """Return a copy of ``task`` with the rotation result applied."""
    completions = list(task.completion_history)
    skips = list(task.skip_history)
    if result.completion_record is not None:
        completions.append(result.completion_record)
    if result.skip_record is not None:
        skips.append(result.skip_record)
    return replace(
        task,
        assigned_index=result.new_assigned_index,
        completion_history=completions,
        skip_history=skips,
    )


def apply_streak(members: list[Member], update: StreakUpdate | None) -> list[Member]:
    """Return the roster with one member's streak fields replaced."""
    if update is None:
        return list(members)
    return [
        replace(
            m,
            streak_count=update.streak_count,
            last_streak_date=update.last_streak_date,
        )
        if m.id == update.member_id else m
        for m in members
    ]


def replace_member_ids(task: Task, member_ids: list[str]) -> Task:
    """Swap in an edited member list, keeping the same person on the hook if possible.

    If the previous assignee is gone the index resets to 0; otherwise it
    follows them to their new position.
    """
    previous = current_assignee_id(task)
    if previous is not None and previous in member_ids:
        new_index = member_ids.index(previous)
    else:
        new_index = 0
    return replace(task, member_ids=list(member_ids), assigned_index=new_index)


def remove_member_from_task(task: Task, member_id: str) -> Task:
    if member_id not in task.member_ids:
        return task
    return replace_member_ids(task, [mid for mid in task.member_ids if mid != member_id])
