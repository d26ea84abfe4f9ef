"""Functional core - pure business logic with no I/O."""

from .recurrence import (
    Frequency,
    FrequencyRule,
    HabitDefinition,
    InvalidHabitError,
    Repeat,
    SpecificMonthdays,
    SpecificWeekdays,
    SpecificYeardays,
    active_dates,
    encode_frequency_rule,
    is_active_on_date,
    parse_frequency_data,
)
from .progress import (
    GoalProgress,
    HabitReport,
    build_report,
    completion_percentage,
    next_progress_state,
    progress_window,
    week_days,
)

__all__ = [
    # Recurrence
    "Frequency",
    "FrequencyRule",
    "HabitDefinition",
    "InvalidHabitError",
    "Repeat",
    "SpecificMonthdays",
    "SpecificWeekdays",
    "SpecificYeardays",
    "active_dates",
    "encode_frequency_rule",
    "is_active_on_date",
    "parse_frequency_data",
    # Progress
    "GoalProgress",
    "HabitReport",
    "build_report",
    "completion_percentage",
    "next_progress_state",
    "progress_window",
    "week_days",
]
