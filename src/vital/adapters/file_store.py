"""File-based habit storage adapter."""

import json
import logging
import os
import uuid
from dataclasses import replace
from datetime import date
from pathlib import Path

from vital.core.progress import GoalProgress
from vital.core.recurrence import HabitDefinition, InvalidHabitError
from vital.ports.habit_repo import HabitNotFoundError

logger = logging.getLogger(__name__)


class FileHabitStore:
    """
    File-based habit storage.

    Implements HabitRepository protocol. Goals and progress live in one JSON
    document using the same row shapes as the hosted tables.
    """

    def __init__(self, path: Path | str):
        self.path = Path(path).expanduser()
        self.path.parent.mkdir(parents=True, exist_ok=True)

    def _read(self) -> dict:
        if not self.path.exists():
            return {"goals": [], "goal_progress": []}
        data = json.loads(self.path.read_text())
        data.setdefault("goals", [])
        data.setdefault("goal_progress", [])
        return data

    def _write(self, data: dict) -> None:
        # Atomic replace
        tmp = self.path.with_suffix(self.path.suffix + ".tmp")
        tmp.write_text(json.dumps(data, indent=2))
        os.replace(tmp, self.path)

    def create_habit(self, habit: HabitDefinition) -> HabitDefinition:
        """Store a new habit, assigning an id if it has none."""
        data = self._read()
        habit = replace(habit, id=habit.id or uuid.uuid4().hex)
        if any(str(g.get("id")) == habit.id for g in data["goals"]):
            raise ValueError(f"Habit {habit.id!r} already exists")
        data["goals"].append(habit.to_row())
        self._write(data)
        return habit

    def update_habit(self, habit_id: str, updates: dict) -> HabitDefinition:
        """Apply column updates to a habit and return it."""
        data = self._read()
        for i, row in enumerate(data["goals"]):
            if str(row.get("id")) == habit_id:
                merged = {**row, **{k: v for k, v in updates.items() if k != "id"}}
                # Validate before anything is written
                habit = HabitDefinition.from_row(merged)
                data["goals"][i] = merged
                self._write(data)
                return habit
        raise HabitNotFoundError(f"No habit with id {habit_id!r}")

    def fetch_habits(self) -> list[HabitDefinition]:
        """Fetch active habits, highest priority first."""
        habits = []
        for row in self._read()["goals"]:
            if not row.get("is_active", True):
                continue
            try:
                habits.append(HabitDefinition.from_row(row))
            except InvalidHabitError as e:
                logger.warning(f"Skipping habit row: {e}")
        return sorted(habits, key=lambda h: h.priority, reverse=True)

    def fetch_progress(self, start_date: date, end_date: date) -> list[GoalProgress]:
        """Fetch progress rows in an inclusive date range."""
        progress = [GoalProgress.from_row(r) for r in self._read()["goal_progress"]]
        return [p for p in progress if start_date <= p.date <= end_date]

    def upsert_progress(self, progress: GoalProgress) -> GoalProgress:
        """Insert or replace the progress row for (goal_id, date)."""
        data = self._read()
        key = (progress.goal_id, progress.date.isoformat())
        data["goal_progress"] = [
            r for r in data["goal_progress"] if (str(r["goal_id"]), r["date"]) != key
        ]
        data["goal_progress"].append(progress.to_row())
        self._write(data)
        return progress

    def deactivate_habit(self, habit_id: str) -> None:
        """Soft-delete a habit by clearing is_active."""
        data = self._read()
        for row in data["goals"]:
            if str(row.get("id")) == habit_id:
                row["is_active"] = False
        self._write(data)
