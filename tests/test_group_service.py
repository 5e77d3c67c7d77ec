"""Tests for turi.core.group_service — user actions over stored groups."""

from datetime import datetime, timedelta

import pytest

from turi.core.calendar_math import FRIDAY
from turi.core.group_service import (
    GroupNotFoundError,
    GroupService,
    MemberNotFoundError,
    TaskNotFoundError,
)
from turi.data.models import ActivityType, Repeat, Schedule


@pytest.fixture
def service(app_db, notifier, translator, clock):
    return GroupService(
        app_db,
        notifier=notifier,
        translator=translator,
        reminder_minutes=15,
        notifications_enabled=True,
        clock=clock,
    )


async def _household(service):
    """Group 'Home' with Ana and Ben sharing a daily task."""
    group = await service.create_group("Home", owner_id="u1")
    ana = await service.add_member(group.id, "Ana")
    ben = await service.add_member(group.id, "Ben")
    task = await service.add_task(
        group.id, "Dishes", Schedule(repeat=Repeat.DAILY), member_ids=[ana.id, ben.id],
    )
    return group.id, ana, ben, task


class TestGroupsAndMembers:
    @pytest.mark.asyncio
    async def test_create_group_persists(self, service, app_db, clock):
        group = await service.create_group("Home", owner_id="u1", icon="🏠")

        assert group.created_at == clock.now
        assert group.activities[0].type == ActivityType.GROUP_CREATED
        stored = app_db.load().groups
        assert [g.name for g in stored] == ["Home"]
        assert stored[0].owner_id == "u1"

    @pytest.mark.asyncio
    async def test_add_member_logs_activity(self, service):
        group = await service.create_group("Home")
        member = await service.add_member(group.id, "Ana", avatar_color="#f00")

        refreshed = service.get_group(group.id)
        assert refreshed.member(member.id).avatar_color == "#f00"
        assert refreshed.activities[-1].type == ActivityType.MEMBER_ADDED
        assert refreshed.activities[-1].metadata == {"memberName": "Ana"}

    @pytest.mark.asyncio
    async def test_unknown_group(self, service):
        with pytest.raises(GroupNotFoundError):
            await service.add_member("group_missing", "Ana")

    @pytest.mark.asyncio
    async def test_delete_member_removes_from_rotations(self, service, notifier):
        group_id, ana, ben, task = await _household(service)

        group = await service.delete_member(group_id, ana.id)

        assert group.member(ana.id) is None
        assert group.task(task.id).member_ids == [ben.id]
        assert group.activities[-1].type == ActivityType.MEMBER_DELETED
        assert len(notifier.pending) == 1
        assert notifier.pending[0].body.startswith("Ben's turn")

    @pytest.mark.asyncio
    async def test_delete_unknown_member(self, service):
        group = await service.create_group("Home")
        with pytest.raises(MemberNotFoundError):
            await service.delete_member(group.id, "member_missing")


class TestTasks:
    @pytest.mark.asyncio
    async def test_add_task_schedules_reminder(self, service, notifier):
        group_id, ana, _, task = await _household(service)

        assert len(notifier.pending) == 1
        reminder = notifier.pending[0]
        assert reminder.fire_at == datetime(2025, 6, 2, 8, 45)
        assert reminder.title == "🔔 Dishes"
        assert reminder.data == {"taskId": task.id, "groupId": group_id, "type": "task_reminder"}

    @pytest.mark.asyncio
    async def test_add_task_without_members_schedules_nothing(self, service, notifier):
        group = await service.create_group("Home")
        await service.add_task(group.id, "Plants", Schedule(repeat=Repeat.DAILY))
        assert notifier.pending == []

    @pytest.mark.asyncio
    async def test_update_task_reschedules(self, service, notifier):
        group_id, _, _, task = await _household(service)

        updated = await service.update_task(
            group_id, task.id, name="Dinner dishes",
            schedule=Schedule(repeat=Repeat.WEEKLY, day_of_week=FRIDAY, time="20:00"),
        )

        assert updated.name == "Dinner dishes"
        assert len(notifier.pending) == 1
        assert notifier.pending[0].fire_at == datetime(2025, 6, 6, 19, 45)
        assert service.get_group(group_id).task(task.id).schedule.day_of_week == FRIDAY

    @pytest.mark.asyncio
    async def test_update_member_ids_keeps_assignee(self, service):
        group_id, ana, ben, task = await _household(service)
        await service.skip_turn(group_id, task.id)  # Ben is up

        updated = await service.update_task(group_id, task.id, member_ids=[ben.id, ana.id])

        assert updated.assigned_index == 0
        assert updated.member_ids == [ben.id, ana.id]

    @pytest.mark.asyncio
    async def test_delete_task_cancels_reminder(self, service, notifier):
        group_id, _, _, task = await _household(service)

        await service.delete_task(group_id, task.id)

        assert notifier.pending == []
        group = service.get_group(group_id)
        assert group.tasks == []
        assert group.activities[-1].type == ActivityType.TASK_DELETED

    @pytest.mark.asyncio
    async def test_unknown_task(self, service):
        group = await service.create_group("Home")
        with pytest.raises(TaskNotFoundError):
            await service.delete_task(group.id, "task_missing")


class TestRotationActions:
    @pytest.mark.asyncio
    async def test_mark_done_rotates_and_records(self, service, notifier, clock):
        group_id, ana, ben, task = await _household(service)

        result = await service.mark_task_done(group_id, task.id)

        assert result.member_id == ana.id
        group = service.get_group(group_id)
        done = group.task(task.id)
        assert done.assigned_index == 1
        assert done.last_completed_at == clock.now
        assert done.completion_history[-1].member_id == ana.id
        assert group.member(ana.id).streak_count == 1
        activity = group.activities[-1]
        assert activity.type == ActivityType.TASK_COMPLETED
        assert activity.actor_id == ana.id
        # Done for today, so the reminder moves to tomorrow's turn
        assert len(notifier.pending) == 1
        assert notifier.pending[0].fire_at == datetime(2025, 6, 3, 8, 45)
        assert notifier.pending[0].body.startswith("Ben's turn")

    @pytest.mark.asyncio
    async def test_mark_done_twice_in_one_period(self, service, clock):
        group_id, _, _, task = await _household(service)

        await service.mark_task_done(group_id, task.id)
        clock.now += timedelta(hours=2)

        assert await service.mark_task_done(group_id, task.id) is None
        assert service.get_group(group_id).task(task.id).assigned_index == 1

    @pytest.mark.asyncio
    async def test_streak_over_consecutive_days(self, service, clock):
        group = await service.create_group("Solo")
        ana = await service.add_member(group.id, "Ana")
        task = await service.add_task(group.id, "Walk", Schedule(repeat=Repeat.DAILY), [ana.id])

        for _ in range(3):
            await service.mark_task_done(group.id, task.id)
            clock.now += timedelta(days=1)

        assert service.get_group(group.id).member(ana.id).streak_count == 3

    @pytest.mark.asyncio
    async def test_weekly_done_early_reminds_next_week(self, service, notifier):
        group = await service.create_group("Home")
        ana = await service.add_member(group.id, "Ana")
        task = await service.add_task(
            group.id, "Trash", Schedule(repeat=Repeat.WEEKLY, day_of_week=FRIDAY), [ana.id],
        )

        await service.mark_task_done(group.id, task.id)

        assert len(notifier.pending) == 1
        assert notifier.pending[0].fire_at == datetime(2025, 6, 13, 8, 45)
        assert notifier.pending[0].data["taskId"] == task.id

    @pytest.mark.asyncio
    async def test_skip_turn(self, service, notifier):
        group_id, ana, ben, task = await _household(service)

        result = await service.skip_turn(group_id, task.id)

        assert result.member_id == ana.id
        group = service.get_group(group_id)
        skipped = group.task(task.id)
        assert skipped.assigned_index == 1
        assert skipped.completion_history == []
        assert skipped.skip_history[-1].member_id == ana.id
        assert group.member(ana.id).streak_count == 0
        assert group.activities[-1].type == ActivityType.TASK_SKIPPED
        assert notifier.pending[0].body.startswith("Ben's turn")

    @pytest.mark.asyncio
    async def test_no_members(self, service):
        group = await service.create_group("Home")
        task = await service.add_task(group.id, "Plants", Schedule(repeat=Repeat.DAILY))
        assert await service.mark_task_done(group.id, task.id) is None
        assert await service.skip_turn(group.id, task.id) is None


class TestPersistenceAndSettings:
    @pytest.mark.asyncio
    async def test_state_survives_reload(self, service, app_db, translator, clock):
        group_id, _, ben, task = await _household(service)
        await service.mark_task_done(group_id, task.id)

        reloaded = GroupService(app_db, translator=translator, clock=clock)
        group = reloaded.get_group(group_id)
        assert group.task(task.id).assigned_index == 1
        assert len(reloaded.groups) == 1

    @pytest.mark.asyncio
    async def test_notifications_disabled(self, app_db, notifier, translator, clock):
        service = GroupService(
            app_db, notifier=notifier, translator=translator,
            reminder_minutes=15, notifications_enabled=False, clock=clock,
        )
        await _household(service)
        assert notifier.pending == []

    @pytest.mark.asyncio
    async def test_settings_defaults(self, app_db, notifier, clock):
        # conftest disables notifications through the environment
        service = GroupService(app_db, notifier=notifier, clock=clock)
        await _household(service)
        assert notifier.pending == []
