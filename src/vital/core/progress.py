"""Pure habit progress logic - no I/O dependencies."""

import math
from dataclasses import dataclass, field
from datetime import date, timedelta

from .recurrence import HabitDefinition, active_dates, as_date

# Open-ended habits load a month back and a week ahead
LOOKBACK_DAYS = 30
LOOKAHEAD_DAYS = 7


@dataclass
class GoalProgress:
    """A habit's progress on a single day."""

    goal_id: str
    date: date
    completed_value: float = 0
    is_completed: bool = False
    notes: str | None = None

    @property
    def is_cancelled(self) -> bool:
        """Marked, but explicitly not done."""
        return self.completed_value != 0 and not self.is_completed

    @classmethod
    def from_row(cls, data: dict) -> "GoalProgress":
        """Create GoalProgress from a goal_progress table row."""
        return cls(
            goal_id=str(data["goal_id"]),
            date=as_date(data["date"]),
            completed_value=data.get("completed_value") or 0,
            is_completed=bool(data.get("is_completed", False)),
            notes=data.get("notes"),
        )

    def to_row(self) -> dict:
        return {
            "goal_id": self.goal_id,
            "date": self.date.isoformat(),
            "completed_value": self.completed_value,
            "is_completed": self.is_completed,
            "notes": self.notes,
        }


@dataclass
class HabitReport:
    """Completion summary for one habit over a window."""

    habit: HabitDefinition
    active_days: list[date]
    completed_days: list[date]
    percentage: int
    progress: dict[date, GoalProgress] = field(default_factory=dict)


def week_days(anchor: date) -> list[date]:
    """Monday through Sunday of the week containing anchor."""
    monday = anchor - timedelta(days=anchor.weekday())
    return [monday + timedelta(days=i) for i in range(7)]


def next_progress_state(
    current: GoalProgress | None,
    target_value: float,
) -> tuple[float, bool]:
    """
    Advance a day through the toggle cycle: empty -> completed -> cancelled -> empty.

    Returns (completed_value, is_completed) for the next state.
    """
    if current is None or current.completed_value == 0:
        return target_value, True
    if current.is_completed:
        return target_value, False
    return 0, False


def progress_window(habit: HabitDefinition, today: date) -> tuple[date, date]:
    """Date range of progress rows needed to render and score a habit."""
    if habit.end_date:
        return habit.start_date, habit.end_date

    start = max(habit.start_date, today - timedelta(days=LOOKBACK_DAYS))
    return start, today + timedelta(days=LOOKAHEAD_DAYS)


def progress_by_date(progress: list[GoalProgress], goal_id: str) -> dict[date, GoalProgress]:
    """Index one habit's progress rows by date."""
    return {p.date: p for p in progress if p.goal_id == goal_id}


def _scoring_days(habit: HabitDefinition, today: date, week_anchor: date | None) -> list[date]:
    if habit.end_date:
        # Bounded habits are scored from the start up to today
        return active_dates(habit, habit.start_date, min(today, habit.end_date))
    week = week_days(week_anchor or today)
    return active_dates(habit, week[0], week[-1])


def build_report(
    habit: HabitDefinition,
    progress: list[GoalProgress],
    today: date,
    week_anchor: date | None = None,
) -> HabitReport:
    """
    Score a habit against its progress rows.

    Habits with an end date are scored over their whole elapsed range,
    open-ended habits over the week containing week_anchor (default today).
    Only active days count.
    """
    by_date = progress_by_date(progress, habit.id)
    active = _scoring_days(habit, today, week_anchor)
    completed = [d for d in active if d in by_date and by_date[d].is_completed]

    percentage = 0
    if active:
        # Half-up rounding, not banker's
        percentage = math.floor(len(completed) * 100 / len(active) + 0.5)

    return HabitReport(
        habit=habit,
        active_days=active,
        completed_days=completed,
        percentage=percentage,
        progress=by_date,
    )


def completion_percentage(
    habit: HabitDefinition,
    progress: list[GoalProgress],
    today: date,
    week_anchor: date | None = None,
) -> int:
    """Percentage of active days completed (0 when nothing is active)."""
    return build_report(habit, progress, today, week_anchor).percentage
