"""Shared workflow layer between the CLI and any other front end.

Each function takes a HabitRepository, does its I/O through it, and leaves
the decisions to the functional core.
"""

import logging
from datetime import date

from .adapters.file_store import FileHabitStore
from .adapters.supabase_rest import SupabaseRestAdapter
from .config import Config
from .core.progress import (
    GoalProgress,
    HabitReport,
    build_report,
    next_progress_state,
    progress_by_date,
    progress_window,
    week_days,
)
from .core.recurrence import (
    DAY_NAMES,
    Frequency,
    FrequencyRule,
    HabitDefinition,
    Repeat,
    SpecificMonthdays,
    SpecificWeekdays,
    SpecificYeardays,
    encode_frequency_rule,
    is_active_on_date,
)
from .ports.habit_repo import HabitNotFoundError, HabitRepository

logger = logging.getLogger(__name__)


class ScheduleError(ValueError):
    """Raised when schedule options don't describe a valid recurrence."""

    pass


def get_repository(config: Config) -> HabitRepository:
    """Resolve the configured storage backend."""
    if config.backend == "supabase":
        return SupabaseRestAdapter(config)
    return FileHabitStore(config.data_path)


def find_habit(repo: HabitRepository, habit_id: str) -> HabitDefinition:
    habit = next((h for h in repo.fetch_habits() if h.id == habit_id), None)
    if habit is None:
        raise HabitNotFoundError(f"No active habit with id {habit_id!r}")
    return habit


# ============== Habit Definition ==============


def _check_yearday(value: str) -> str:
    try:
        if len(value) == 10:
            date.fromisoformat(value)
        elif len(value) == 5:
            # Leap year so 02-29 is accepted
            date.fromisoformat(f"2000-{value}")
        else:
            raise ValueError
    except ValueError:
        raise ScheduleError(f"Invalid year day {value!r}, expected YYYY-MM-DD or MM-DD")
    return value


def build_schedule(
    frequency: str | None = None,
    days: list[str] | None = None,
    monthdays: list[int] | None = None,
    yeardays: list[str] | None = None,
    every: int | None = None,
) -> dict:
    """
    Turn schedule options into goals columns.

    Returns a dict with frequency, frequency_days and frequency_data. Any of
    days/monthdays/yeardays/every implies a custom frequency; weekdays are
    stored both as the structured rule and as frequency_days.
    """
    days = [d.strip().lower() for d in days or []]
    rules = [opt for opt in (monthdays or None, yeardays or None, every) if opt is not None]
    if len(rules) > 1 or (rules and days):
        raise ScheduleError("Choose only one of days, month days, year days or repeat interval")

    custom = bool(days or rules)
    frequency = (frequency or (Frequency.CUSTOM.value if custom else Frequency.DAILY.value)).lower()
    if frequency not in {f.value for f in Frequency}:
        raise ScheduleError(f"Unknown frequency {frequency!r}")
    if frequency != Frequency.CUSTOM.value:
        if custom:
            raise ScheduleError(f"Days and rules only apply to custom habits, not {frequency}")
        return {"frequency": frequency, "frequency_days": None, "frequency_data": None}
    if not custom:
        raise ScheduleError("Custom habits need days, month days, year days or a repeat interval")

    rule: FrequencyRule
    if days:
        unknown = [d for d in days if d not in DAY_NAMES]
        if unknown:
            raise ScheduleError(f"Unknown weekday(s): {', '.join(unknown)}")
        days = [d for d in DAY_NAMES if d in days]
        rule = SpecificWeekdays(frozenset(days))
    elif monthdays:
        bad = [d for d in monthdays if not 1 <= d <= 31]
        if bad:
            raise ScheduleError(f"Month days must be 1-31, got {bad}")
        rule = SpecificMonthdays(frozenset(monthdays))
    elif yeardays:
        rule = SpecificYeardays(tuple(_check_yearday(y.strip()) for y in yeardays))
    else:
        if every < 1:
            raise ScheduleError(f"Repeat interval must be at least 1, got {every}")
        rule = Repeat(every)

    return {
        "frequency": frequency,
        "frequency_days": days or None,
        "frequency_data": encode_frequency_rule(rule),
    }


def add_habit(
    repo: HabitRepository,
    name: str,
    start_date: date,
    schedule: dict,
    end_date: date | None = None,
    target_value: float = 1,
    priority: int = 1,
) -> HabitDefinition:
    """Create a habit from a name, date range and build_schedule() columns."""
    row = {
        "name": name,
        "start_date": start_date.isoformat(),
        "end_date": end_date.isoformat() if end_date else None,
        "target_value": target_value,
        "priority": priority,
        **schedule,
    }
    habit = repo.create_habit(HabitDefinition.from_row(row))
    logger.info(f"Created habit {habit.id} ({habit.name})")
    return habit


def edit_habit(repo: HabitRepository, habit_id: str, updates: dict) -> HabitDefinition:
    """Apply column updates to an active habit."""
    find_habit(repo, habit_id)
    return repo.update_habit(habit_id, updates)


def archive_habit(repo: HabitRepository, habit_id: str) -> None:
    """Soft-delete an active habit."""
    find_habit(repo, habit_id)
    repo.deactivate_habit(habit_id)


# ============== Daily Progress ==============


def habits_for_day(
    repo: HabitRepository,
    day: date,
) -> list[tuple[HabitDefinition, GoalProgress | None]]:
    """Active habits for a day, paired with that day's progress row if any."""
    habits = [h for h in repo.fetch_habits() if is_active_on_date(h, day)]
    progress = repo.fetch_progress(day, day)
    return [(h, progress_by_date(progress, h.id).get(day)) for h in habits]


def toggle_day(repo: HabitRepository, habit_id: str, day: date) -> GoalProgress | None:
    """
    Advance a habit's progress for a day through the toggle cycle.

    Returns the stored row, or None if the habit isn't active that day.
    """
    habit = find_habit(repo, habit_id)
    if not is_active_on_date(habit, day):
        logger.info(f"Habit {habit_id} is not active on {day}, ignoring toggle")
        return None

    current = progress_by_date(repo.fetch_progress(day, day), habit.id).get(day)
    completed_value, is_completed = next_progress_state(current, habit.target_value)
    updated = GoalProgress(
        goal_id=habit.id,
        date=day,
        completed_value=completed_value,
        is_completed=is_completed,
        notes=current.notes if current else None,
    )
    return repo.upsert_progress(updated)


def weekly_reports(
    repo: HabitRepository,
    today: date,
    week_anchor: date | None = None,
) -> list[HabitReport]:
    """Completion reports for every active habit, each carrying its progress rows."""
    habits = repo.fetch_habits()
    if not habits:
        return []

    # One fetch covering every habit's window plus the week being shown
    week = week_days(week_anchor or today)
    windows = [progress_window(h, today) for h in habits]
    start = min([week[0], *(s for s, _ in windows)])
    end = max([week[-1], *(e for _, e in windows)])
    progress = repo.fetch_progress(start, end)

    return [build_report(h, progress, today, week_anchor) for h in habits]
