"""Habit repository interface."""

from datetime import date
from typing import Protocol

from vital.core.progress import GoalProgress
from vital.core.recurrence import HabitDefinition


class HabitNotFoundError(Exception):
    """Raised when a habit id doesn't match a stored habit."""

    pass


class HabitRepository(Protocol):
    """Interface for reading habits and their daily progress from any backend."""

    def fetch_habits(self) -> list[HabitDefinition]:
        """Fetch active habits, highest priority first."""
        ...

    def create_habit(self, habit: HabitDefinition) -> HabitDefinition:
        """Store a new habit. Returns it with its assigned id."""
        ...

    def update_habit(self, habit_id: str, updates: dict) -> HabitDefinition:
        """Apply column updates (goals row shape) to a habit and return it."""
        ...

    def fetch_progress(self, start_date: date, end_date: date) -> list[GoalProgress]:
        """Fetch progress rows in an inclusive date range."""
        ...

    def upsert_progress(self, progress: GoalProgress) -> GoalProgress:
        """Insert or replace the progress row for (goal_id, date)."""
        ...

    def deactivate_habit(self, habit_id: str) -> None:
        """Soft-delete a habit."""
        ...
