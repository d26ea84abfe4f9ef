"""Tests for the shared workflow layer."""

import json
from datetime import date
from unittest.mock import MagicMock

import pytest

from vital.adapters.file_store import FileHabitStore
from vital.adapters.supabase_rest import SupabaseRestAdapter
from vital.config import Config
from vital.core.progress import GoalProgress
from vital.core.recurrence import HabitDefinition, active_dates, is_active_on_date
from vital.workflows import (
    HabitNotFoundError,
    ScheduleError,
    add_habit,
    archive_habit,
    build_schedule,
    edit_habit,
    get_repository,
    habits_for_day,
    toggle_day,
    weekly_reports,
)


@pytest.fixture
def repo(tmp_path):
    store = FileHabitStore(tmp_path / "habits.json")
    store.create_habit(HabitDefinition(id="walk", name="Walk", start_date=date(2024, 1, 1), priority=2))
    store.create_habit(
        HabitDefinition(
            id="gym",
            name="Gym",
            start_date=date(2024, 1, 1),
            frequency="custom",
            frequency_data=json.dumps({"type": "specific_weekdays", "weekdays": ["monday", "thursday"]}),
            target_value=3,
            priority=1,
        )
    )
    return store


class TestGetRepository:
    def test_file_backend(self, tmp_path):
        repo = get_repository(Config(backend="file", data_file=str(tmp_path / "h.json")))
        assert isinstance(repo, FileHabitStore)
        assert repo.path == tmp_path / "h.json"

    def test_supabase_backend(self):
        repo = get_repository(Config(backend="supabase"))
        assert isinstance(repo, SupabaseRestAdapter)


class TestHabitsForDay:
    def test_filters_to_active_habits(self, repo):
        # Tuesday: gym is off
        entries = habits_for_day(repo, date(2024, 1, 2))
        assert [h.id for h, _ in entries] == ["walk"]

    def test_pairs_with_progress(self, repo):
        monday = date(2024, 1, 1)
        repo.upsert_progress(GoalProgress("gym", monday, completed_value=3, is_completed=True))
        entries = dict((h.id, p) for h, p in habits_for_day(repo, monday))
        assert entries["gym"].is_completed is True
        assert entries["walk"] is None


class TestToggleDay:
    def test_cycles_through_states(self, repo):
        monday = date(2024, 1, 1)
        first = toggle_day(repo, "gym", monday)
        assert (first.completed_value, first.is_completed) == (3, True)
        second = toggle_day(repo, "gym", monday)
        assert (second.completed_value, second.is_completed) == (3, False)
        third = toggle_day(repo, "gym", monday)
        assert (third.completed_value, third.is_completed) == (0, False)
        assert len(repo.fetch_progress(monday, monday)) == 1

    def test_inactive_day_is_ignored(self, repo):
        tuesday = date(2024, 1, 2)
        assert toggle_day(repo, "gym", tuesday) is None
        assert repo.fetch_progress(tuesday, tuesday) == []

    def test_keeps_notes(self, repo):
        monday = date(2024, 1, 1)
        repo.upsert_progress(GoalProgress("gym", monday, notes="legs"))
        assert toggle_day(repo, "gym", monday).notes == "legs"

    def test_unknown_habit(self, repo):
        with pytest.raises(HabitNotFoundError):
            toggle_day(repo, "swim", date(2024, 1, 1))


class TestArchiveHabit:
    def test_hides_habit(self, repo):
        archive_habit(repo, "walk")
        assert [h.id for h in repo.fetch_habits()] == ["gym"]

    def test_unknown_habit(self, repo):
        with pytest.raises(HabitNotFoundError):
            archive_habit(repo, "swim")


class TestWeeklyReports:
    def test_reports_every_habit(self, repo):
        repo.upsert_progress(GoalProgress("gym", date(2024, 1, 1), completed_value=3, is_completed=True))
        reports = {r.habit.id: r for r in weekly_reports(repo, date(2024, 1, 3))}
        assert reports["gym"].active_days == [date(2024, 1, 1), date(2024, 1, 4)]
        assert reports["gym"].percentage == 50
        assert reports["walk"].percentage == 0

    def test_bounded_habit_uses_full_range(self, repo):
        repo.create_habit(
            HabitDefinition(id="fast", start_date=date(2023, 12, 1), end_date=date(2023, 12, 10), priority=9)
        )
        for day in range(1, 6):
            repo.upsert_progress(GoalProgress("fast", date(2023, 12, day), completed_value=1, is_completed=True))
        reports = {r.habit.id: r for r in weekly_reports(repo, date(2024, 1, 3))}
        assert reports["fast"].percentage == 50

    def test_no_habits(self, tmp_path):
        assert weekly_reports(FileHabitStore(tmp_path / "empty.json"), date(2024, 1, 3)) == []

    def test_fetch_covers_every_progress_window(self):
        repo = MagicMock()
        repo.fetch_habits.return_value = [
            HabitDefinition(id="fast", start_date=date(2023, 6, 1), end_date=date(2023, 6, 10)),
            HabitDefinition(id="walk", start_date=date(2023, 1, 1)),
            HabitDefinition(id="trip", start_date=date(2024, 3, 1), end_date=date(2024, 3, 20)),
        ]
        repo.fetch_progress.return_value = []
        weekly_reports(repo, date(2024, 1, 3))
        repo.fetch_progress.assert_called_once_with(date(2023, 6, 1), date(2024, 3, 20))

    def test_fetch_includes_viewed_week(self):
        repo = MagicMock()
        repo.fetch_habits.return_value = [HabitDefinition(id="walk", start_date=date(2024, 1, 1))]
        repo.fetch_progress.return_value = []
        weekly_reports(repo, date(2024, 1, 3), week_anchor=date(2024, 3, 6))
        repo.fetch_progress.assert_called_once_with(date(2024, 1, 1), date(2024, 3, 10))

    def test_reports_carry_progress_by_date(self, repo):
        row = GoalProgress("gym", date(2024, 1, 1), completed_value=3, is_completed=True)
        repo.upsert_progress(row)
        reports = {r.habit.id: r for r in weekly_reports(repo, date(2024, 1, 3))}
        assert reports["gym"].progress == {date(2024, 1, 1): row}
        assert reports["walk"].progress == {}


class TestBuildSchedule:
    def test_defaults_to_daily(self):
        assert build_schedule() == {"frequency": "daily", "frequency_days": None, "frequency_data": None}

    def test_weekly(self):
        assert build_schedule("Weekly")["frequency"] == "weekly"

    def test_days_imply_custom(self):
        schedule = build_schedule(days=["Thursday", "monday"])
        assert schedule["frequency"] == "custom"
        assert schedule["frequency_days"] == ["monday", "thursday"]
        assert json.loads(schedule["frequency_data"]) == {
            "type": "specific_weekdays",
            "weekdays": ["monday", "thursday"],
        }

    def test_monthdays(self):
        schedule = build_schedule(monthdays=[15, 1])
        assert schedule["frequency_days"] is None
        assert json.loads(schedule["frequency_data"]) == {"type": "specific_monthdays", "monthdays": [1, 15]}

    def test_yeardays(self):
        schedule = build_schedule(yeardays=["12-25", "2024-02-29", "02-29"])
        assert json.loads(schedule["frequency_data"])["yeardays"] == ["12-25", "2024-02-29", "02-29"]

    def test_every(self):
        schedule = build_schedule("custom", every=3)
        assert json.loads(schedule["frequency_data"]) == {"type": "repeat", "repeatInterval": 3, "repeatUnit": "days"}

    @pytest.mark.parametrize(
        "kwargs,message",
        [
            ({"frequency": "hourly"}, "Unknown frequency"),
            ({"frequency": "custom"}, "need days"),
            ({"frequency": "daily", "days": ["monday"]}, "only apply to custom"),
            ({"days": ["funday"]}, "Unknown weekday"),
            ({"days": ["monday"], "every": 2}, "only one"),
            ({"monthdays": [1], "yeardays": ["12-25"]}, "only one"),
            ({"monthdays": [0, 32]}, "1-31"),
            ({"yeardays": ["12/25"]}, "Invalid year day"),
            ({"yeardays": ["02-30"]}, "Invalid year day"),
            ({"every": 0}, "at least 1"),
        ],
    )
    def test_rejects_bad_options(self, kwargs, message):
        with pytest.raises(ScheduleError, match=message):
            build_schedule(**kwargs)

    def test_built_rule_drives_recurrence(self):
        habit = HabitDefinition.from_row({"start_date": "2024-01-01", **build_schedule(monthdays=[2])})
        assert active_dates(habit, date(2024, 1, 1), date(2024, 2, 29)) == [date(2024, 1, 2), date(2024, 2, 2)]


class TestAddHabit:
    def test_creates_habit(self, repo):
        habit = add_habit(
            repo,
            "Stretch",
            date(2024, 1, 1),
            build_schedule(every=2),
            end_date=date(2024, 1, 31),
            priority=5,
        )
        assert habit.id
        stored = repo.fetch_habits()[0]
        assert (stored.id, stored.name, stored.priority) == (habit.id, "Stretch", 5)
        assert stored.end_date == date(2024, 1, 31)
        assert is_active_on_date(stored, date(2024, 1, 3)) is True
        assert is_active_on_date(stored, date(2024, 1, 4)) is False


class TestEditHabit:
    def test_updates_columns(self, repo):
        habit = edit_habit(repo, "walk", {"name": "Long walk", **build_schedule(days=["saturday"])})
        assert habit.name == "Long walk"
        assert is_active_on_date(habit, date(2024, 1, 6)) is True
        assert is_active_on_date(habit, date(2024, 1, 1)) is False

    def test_back_to_daily_clears_rule(self, repo):
        habit = edit_habit(repo, "gym", build_schedule("daily"))
        assert habit.frequency_data is None
        assert habit.frequency_days == frozenset()
        assert is_active_on_date(habit, date(2024, 1, 2)) is True

    def test_unknown_habit(self, repo):
        with pytest.raises(HabitNotFoundError):
            edit_habit(repo, "swim", {"name": "Swim"})

    def test_archived_habit_is_not_editable(self, repo):
        archive_habit(repo, "walk")
        with pytest.raises(HabitNotFoundError):
            edit_habit(repo, "walk", {"name": "Walk"})
