"""Tests for turi.data.migration — stored schedule shapes and record (de)serialization."""

from datetime import date, datetime, timedelta, timezone

from turi.core.due_dates import compute_next_due_date
from turi.data.migration import (
    activity_from_dict,
    activity_to_dict,
    app_data_from_dict,
    app_data_to_dict,
    migrate_app_data,
    normalize_schedule,
    parse_timestamp,
    schedule_to_dict,
    task_from_dict,
    task_to_dict,
)
from turi.data.models import APP_DATA_VERSION, ActivityType, MonthlyMode, Repeat

UTC_MINUS_5 = timezone(timedelta(hours=-5))


class TestParseTimestamp:
    def test_zulu_converted_to_local_wall_clock(self):
        parsed = parse_timestamp("2025-06-02T14:00:00.000Z", UTC_MINUS_5)
        assert parsed == datetime(2025, 6, 2, 9, 0)
        assert parsed.tzinfo is None

    def test_naive_kept(self):
        assert parse_timestamp("2025-06-02T09:30:00", UTC_MINUS_5) == datetime(2025, 6, 2, 9, 30)

    def test_missing_and_malformed(self):
        assert parse_timestamp(None) is None
        assert parse_timestamp("") is None
        assert parse_timestamp("yesterday-ish") is None


class TestNormalizeSchedule:
    def test_unified_form(self):
        schedule = normalize_schedule({
            "schedule": {
                "repeat": "monthly",
                "type": "dayOfMonth",
                "dayOfMonth": 31,
                "time": "18:00",
                "startDate": "2025-01-15T00:00:00",
            },
        })
        assert schedule.repeat == Repeat.MONTHLY
        assert schedule.monthly_mode == MonthlyMode.DAY_OF_MONTH
        assert schedule.day_of_month == 31
        assert schedule.time == "18:00"
        assert schedule.start_date == date(2025, 1, 15)

    def test_frequency_object_weekly_uses_day(self):
        schedule = normalize_schedule({"schedule": {"frequency": "weekly", "day": 3, "time": "07:15"}})
        assert schedule.repeat == Repeat.WEEKLY
        assert schedule.day_of_week == 3
        assert schedule.time == "07:15"

    def test_frequency_object_monthly(self):
        schedule = normalize_schedule({
            "schedule": {"frequency": "monthly", "type": "lastDayOfMonth", "dayOfWeek": 1},
        })
        assert schedule.monthly_mode == MonthlyMode.LAST_DAY_OF_MONTH
        assert schedule.day_of_week == 1

    def test_flat_legacy_monthly_nth_weekday(self):
        schedule = normalize_schedule({"frequency": "monthly", "scheduleWeek": 4, "scheduleDay": 5})
        assert schedule.monthly_mode == MonthlyMode.DAY_OF_WEEK
        assert (schedule.week, schedule.day_of_week) == (4, 5)
        assert compute_next_due_date(schedule, datetime(2025, 2, 1)) == datetime(2025, 2, 28, 9, 0)

    def test_flat_legacy_monthly_without_week_uses_first(self):
        schedule = normalize_schedule({"frequency": "monthly", "scheduleDay": 2})
        assert schedule.week == 1

    def test_flat_legacy_monthly_without_day_falls_on_first(self):
        schedule = normalize_schedule({"frequency": "monthly"})
        assert schedule.monthly_mode == MonthlyMode.DAY_OF_MONTH
        assert schedule.day_of_month == 1

    def test_flat_legacy_weekly(self):
        schedule = normalize_schedule({"frequency": "weekly", "scheduleDay": "2", "scheduleTime": "20:00"})
        assert schedule.repeat == Repeat.WEEKLY
        assert schedule.day_of_week == 2
        assert schedule.time == "20:00"

    def test_nothing_at_all_is_daily(self):
        assert normalize_schedule({}).repeat == Repeat.DAILY

    def test_unknown_repeat_kept_raw(self):
        assert normalize_schedule({"schedule": {"repeat": "hourly"}}).repeat == "hourly"

    def test_non_integer_fields_dropped(self):
        schedule = normalize_schedule({"schedule": {"repeat": "weekly", "dayOfWeek": "friday"}})
        assert schedule.day_of_week is None

    def test_to_dict_is_unified_form(self):
        schedule = normalize_schedule({"frequency": "monthly", "scheduleWeek": 2, "scheduleDay": 3})
        assert schedule_to_dict(schedule) == {
            "repeat": "monthly", "dayOfWeek": 3, "week": 2, "type": "dayOfWeek",
        }


class TestTaskRecords:
    def test_history_accepts_both_timestamp_keys(self):
        task = task_from_dict({
            "id": "t1",
            "name": "Dishes",
            "memberIds": ["a", "b"],
            "frequency": "daily",
            "completionHistory": [
                {"memberId": "a", "completedAt": "2025-06-01T09:00:00"},
                {"memberId": "b", "timestamp": "2025-06-02T09:00:00"},
                {"memberId": "a"},
            ],
            "skipHistory": [{"memberId": "b", "timestamp": "2025-06-03T09:00:00"}],
        })
        assert [c.member_id for c in task.completion_history] == ["a", "b"]
        assert task.skip_history[0].skipped_at == datetime(2025, 6, 3, 9, 0)
        assert task.last_completion == datetime(2025, 6, 2, 9, 0)

    def test_assigned_index_clamped(self):
        assert task_from_dict({"id": "t1", "memberIds": ["a", "b"], "assignedIndex": 5}).assigned_index == 1
        assert task_from_dict({"id": "t1", "memberIds": [], "assignedIndex": 5}).assigned_index == 0

    def test_legacy_last_completed_at(self):
        task = task_from_dict({"id": "t1", "lastCompletedAt": "2025-06-02T07:00:00"})
        assert task.last_completion == datetime(2025, 6, 2, 7, 0)

    def test_to_dict_then_back_keeps_schedule(self):
        raw = {
            "id": "t1",
            "name": "Plants",
            "memberIds": ["a"],
            "schedule": {"repeat": "every3months", "startDate": "2025-01-31"},
        }
        again = task_from_dict(task_to_dict(task_from_dict(raw)))
        assert again.schedule.repeat == Repeat.EVERY_3_MONTHS
        assert again.schedule.start_date == date(2025, 1, 31)


class TestActivities:
    def test_unknown_type_dropped(self):
        assert activity_from_dict({"id": "x", "type": "task_exploded"}) is None

    def test_metadata_type_stripped_and_restored(self):
        activity = activity_from_dict({
            "id": "x",
            "type": "task_completed",
            "timestamp": "2025-06-02T09:00:00",
            "actorId": "a",
            "targetId": "t1",
            "metadata": {"type": "task_completed", "taskName": "Dishes"},
        })
        assert activity.type == ActivityType.TASK_COMPLETED
        assert activity.metadata == {"taskName": "Dishes"}
        assert activity_to_dict(activity)["metadata"] == {"type": "task_completed", "taskName": "Dishes"}


class TestAppData:
    def test_migrate_stamps_version(self):
        assert migrate_app_data({"groups": []})["version"] == APP_DATA_VERSION

    def test_migrate_does_not_mutate_input(self):
        raw = {"version": "0.9.0"}
        migrate_app_data(raw)
        assert raw == {"version": "0.9.0"}

    def test_full_blob(self):
        raw = {
            "version": "0.9.0",
            "onboardingCompleted": True,
            "user": {"id": "u1", "name": "Ana", "avatarColor": "#f00"},
            "groups": [{
                "id": "g1",
                "name": "Home",
                "members": [{"id": "a", "name": "Ana", "streakCount": 2}],
                "tasks": [{"id": "t1", "name": "Dishes", "memberIds": ["a"], "frequency": "daily"}],
                "activities": [
                    {"id": "x1", "type": "group_created", "timestamp": "2025-06-01T10:00:00"},
                    {"id": "x2", "type": "bogus"},
                ],
            }],
        }
        data = app_data_from_dict(raw)
        assert data.version == APP_DATA_VERSION
        assert data.onboarding_completed is True
        assert data.user.name == "Ana"
        group = data.groups[0]
        assert group.member("a").streak_count == 2
        assert group.task("t1").schedule.repeat == Repeat.DAILY
        assert len(group.activities) == 1

        out = app_data_to_dict(data)
        assert out["version"] == APP_DATA_VERSION
        assert out["user"]["id"] == "u1"
        assert out["groups"][0]["tasks"][0]["schedule"] == {"repeat": "daily"}

    def test_no_user(self):
        data = app_data_from_dict({"groups": []})
        assert data.user is None
        assert "user" not in app_data_to_dict(data)
