"""Pure habit recurrence logic - no I/O dependencies."""

import json
import logging
from dataclasses import dataclass, field
from datetime import date, datetime, timedelta
from enum import Enum

logger = logging.getLogger(__name__)

# Sunday-first, matching how the app stores weekday names
DAY_NAMES = ["sunday", "monday", "tuesday", "wednesday", "thursday", "friday", "saturday"]


class InvalidHabitError(ValueError):
    """Raised when a habit row can't be turned into a HabitDefinition."""

    pass


class Frequency(str, Enum):
    DAILY = "daily"
    WEEKLY = "weekly"
    MONTHLY = "monthly"
    CUSTOM = "custom"


@dataclass(frozen=True)
class SpecificWeekdays:
    weekdays: frozenset[str]


@dataclass(frozen=True)
class SpecificMonthdays:
    monthdays: frozenset[int]


@dataclass(frozen=True)
class SpecificYeardays:
    """Entries are either YYYY-MM-DD or MM-DD."""

    yeardays: tuple[str, ...]


@dataclass(frozen=True)
class Repeat:
    """Every N days counting from the habit's start date."""

    interval: int


FrequencyRule = SpecificWeekdays | SpecificMonthdays | SpecificYeardays | Repeat


def day_name(d: date) -> str:
    """Lowercase weekday name using the Sunday-first mapping."""
    # date.weekday() is Monday=0, shift so Sunday=0
    return DAY_NAMES[(d.weekday() + 1) % 7]


def as_date(value: date | datetime | str) -> date:
    """Truncate a date-like value to a calendar date."""
    if isinstance(value, datetime):
        return value.date()
    if isinstance(value, date):
        return value
    if not isinstance(value, str):
        raise TypeError(f"expected a date or ISO string, got {type(value).__name__}")
    # ISO date or datetime text; the time part is dropped
    return date.fromisoformat(value.strip()[:10])


def _is_int(value) -> bool:
    # bool is an int subclass; floats (including inf) are never day counts
    return isinstance(value, int) and not isinstance(value, bool)


def _list_of(data: dict, key: str, kind: type) -> list:
    """Fetch a list field whose items all have one JSON type."""
    values = data[key]
    if not isinstance(values, list):
        raise TypeError(f"{key} must be a list, got {type(values).__name__}")
    check = _is_int if kind is int else (lambda v: isinstance(v, kind))
    for v in values:
        if not check(v):
            raise TypeError(f"{key} entries must be {kind.__name__}, got {v!r}")
    return values


def _parse_rule(data: dict) -> FrequencyRule | None:
    """Build a rule from decoded frequency data, None if the type is unknown.

    Raises ValueError/TypeError for a known type with bad fields.
    """
    match data.get("type"):
        case "specific_weekdays":
            weekdays = _list_of(data, "weekdays", str)
            return SpecificWeekdays(frozenset(w.lower() for w in weekdays))
        case "specific_monthdays":
            return SpecificMonthdays(frozenset(_list_of(data, "monthdays", int)))
        case "specific_yeardays":
            return SpecificYeardays(tuple(_list_of(data, "yeardays", str)))
        case "repeat":
            interval = data["repeatInterval"]
            if not _is_int(interval):
                raise TypeError(f"repeatInterval must be an integer, got {interval!r}")
            if interval < 1:
                raise ValueError(f"repeatInterval must be >= 1, got {interval}")
            return Repeat(interval)
        case _:
            return None


def parse_frequency_data(
    raw: str | dict | None,
    log: logging.Logger = logger,
) -> FrequencyRule | None:
    """
    Parse stored frequency data into a FrequencyRule.

    Accepts the JSON text stored in the database or an already-decoded dict.
    Returns None (and logs) when the data is missing, malformed, or of an
    unknown type. Never raises.
    """
    if raw is None or raw == "":
        return None

    try:
        data = json.loads(raw) if isinstance(raw, str) else raw
        if not isinstance(data, dict):
            raise TypeError(f"expected an object, got {type(data).__name__}")
        rule = _parse_rule(data)
    except (json.JSONDecodeError, KeyError, TypeError, ValueError) as e:
        log.warning(f"Error parsing frequency_data {raw!r}: {e}")
        return None

    if rule is None:
        log.warning(f"Unrecognized frequency type: {data.get('type')!r}")
    return rule


def encode_frequency_rule(rule: FrequencyRule) -> str:
    """Serialize a rule to the JSON text stored in frequency_data."""
    match rule:
        case SpecificWeekdays(weekdays):
            data = {"type": "specific_weekdays", "weekdays": [d for d in DAY_NAMES if d in weekdays]}
        case SpecificMonthdays(monthdays):
            data = {"type": "specific_monthdays", "monthdays": sorted(monthdays)}
        case SpecificYeardays(yeardays):
            data = {"type": "specific_yeardays", "yeardays": list(yeardays)}
        case Repeat(interval):
            data = {"type": "repeat", "repeatInterval": interval, "repeatUnit": "days"}
    return json.dumps(data)


@dataclass(frozen=True)
class HabitDefinition:
    """A habit (goal) snapshot as stored in the goals table."""

    start_date: date
    frequency: str = Frequency.DAILY.value
    end_date: date | None = None
    frequency_days: frozenset[str] = field(default_factory=frozenset)
    frequency_data: str | dict | None = None
    id: str = ""
    name: str = ""
    target_value: float = 1
    priority: int = 0
    is_active: bool = True

    @classmethod
    def from_row(cls, row: dict) -> "HabitDefinition":
        """Create a HabitDefinition from a goals table row."""
        try:
            start = as_date(row["start_date"])
            end = as_date(row["end_date"]) if row.get("end_date") else None
        except KeyError:
            raise InvalidHabitError(f"Habit {row.get('id', '?')} has no start_date")
        except (TypeError, ValueError) as e:
            raise InvalidHabitError(f"Habit {row.get('id', '?')} has an invalid date: {e}")

        days = row.get("frequency_days") or []
        if not isinstance(days, list) or not all(isinstance(d, str) for d in days):
            raise InvalidHabitError(f"Habit {row.get('id', '?')} has invalid frequency_days: {days!r}")

        priority = row.get("priority") or 0
        if not _is_int(priority):
            raise InvalidHabitError(f"Habit {row.get('id', '?')} has invalid priority: {priority!r}")

        target = row.get("target_value") or 1
        if isinstance(target, bool) or not isinstance(target, (int, float)):
            raise InvalidHabitError(f"Habit {row.get('id', '?')} has invalid target_value: {target!r}")

        return cls(
            start_date=start,
            end_date=end,
            frequency=row.get("frequency") or Frequency.DAILY.value,
            frequency_days=frozenset(d.lower() for d in days),
            frequency_data=row.get("frequency_data"),
            id=str(row.get("id", "")),
            name=row.get("name", ""),
            target_value=target,
            priority=priority,
            is_active=row.get("is_active", True),
        )

    def to_row(self) -> dict:
        """Serialize back to a goals table row."""
        return {
            "id": self.id,
            "name": self.name,
            "start_date": self.start_date.isoformat(),
            "end_date": self.end_date.isoformat() if self.end_date else None,
            "frequency": self.frequency,
            "frequency_days": sorted(self.frequency_days) or None,
            "frequency_data": self.frequency_data,
            "target_value": self.target_value,
            "priority": self.priority,
            "is_active": self.is_active,
        }


def _rule_matches(rule: FrequencyRule, on: date, start: date) -> bool:
    match rule:
        case SpecificWeekdays(weekdays):
            return day_name(on) in weekdays
        case SpecificMonthdays(monthdays):
            return on.day in monthdays
        case SpecificYeardays(yeardays):
            full = on.isoformat()
            month_day = on.strftime("%m-%d")
            # Entries without a year match every year via the suffix
            return any(y == full or y.endswith(month_day) for y in yeardays)
        case Repeat(interval):
            diff_days = (on - start).days
            return diff_days >= 0 and diff_days % interval == 0


def is_active_on_date(
    habit: HabitDefinition,
    on: date | datetime,
    log: logging.Logger = logger,
) -> bool:
    """
    Check whether a habit should be tracked on a given day.

    Pure function - no I/O beyond logging unparseable frequency data.
    Time of day is ignored for every date involved.
    """
    on = as_date(on)
    start = as_date(habit.start_date)

    if on < start:
        return False

    # End date is inclusive
    if habit.end_date and on > as_date(habit.end_date):
        return False

    match habit.frequency:
        case Frequency.DAILY:
            return True
        case Frequency.CUSTOM:
            rule = parse_frequency_data(habit.frequency_data, log)
            if rule is not None:
                return _rule_matches(rule, on, start)
            return day_name(on) in {d.lower() for d in habit.frequency_days}
        case Frequency.WEEKLY:
            # Weekly habits are only tracked on Mondays
            return day_name(on) == "monday"
        case _:
            return True


def active_dates(
    habit: HabitDefinition,
    start: date,
    end: date,
    log: logging.Logger = logger,
) -> list[date]:
    """All dates in [start, end] on which the habit is active."""
    days = []
    current = as_date(start)
    end = as_date(end)
    while current <= end:
        if is_active_on_date(habit, current, log):
            days.append(current)
        current += timedelta(days=1)
    return days
