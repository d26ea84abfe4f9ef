"""Ports - interfaces/protocols for external dependencies."""

from .habit_repo import HabitNotFoundError, HabitRepository

__all__ = [
    "HabitNotFoundError",
    "HabitRepository",
]
