"""Vital CLI - habit tracking."""

import json
import logging
import sys
from datetime import date

import click
import requests

from .adapters.supabase_rest import AuthenticationError
from .config import load_config
from .core.progress import GoalProgress, week_days
from .core.recurrence import Frequency, is_active_on_date
from .workflows import (
    HabitNotFoundError,
    add_habit,
    archive_habit,
    build_schedule,
    edit_habit,
    find_habit,
    get_repository,
    habits_for_day,
    toggle_day,
    weekly_reports,
)

DAY_LABELS = ["Mon", "Tue", "Wed", "Thu", "Fri", "Sat", "Sun"]


def _fail(message: str):
    click.echo(f"Error: {message}", err=True)
    sys.exit(1)


def _parse_date(value: str | None) -> date:
    if not value:
        return date.today()
    try:
        return date.fromisoformat(value)
    except ValueError:
        _fail(f"Invalid date {value!r}, expected YYYY-MM-DD")


def _split(value: str | None) -> list[str]:
    """Comma-separated option value to a list."""
    if not value:
        return []
    return [v.strip() for v in value.split(",") if v.strip()]


def _int_list(value: str | None) -> list[int]:
    try:
        return [int(v) for v in _split(value)]
    except ValueError:
        _fail(f"Invalid day numbers {value!r}, expected e.g. 1,15")


def _repository():
    return get_repository(load_config())


def _status_marker(progress: GoalProgress | None) -> str:
    if progress is None or progress.completed_value == 0:
        return "·"
    return "✓" if progress.is_completed else "✗"


date_option = click.option(
    "--date", "-d", "target_date", default=None, help="Date (YYYY-MM-DD), defaults to today"
)


def schedule_options(command):
    """Options shared by add and edit describing when a habit recurs."""
    options = [
        click.option(
            "--frequency",
            type=click.Choice([freq.value for freq in Frequency], case_sensitive=False),
            default=None,
            help="daily, weekly (Mondays), monthly or custom",
        ),
        click.option("--days", default=None, help="Weekdays, e.g. monday,thursday"),
        click.option("--monthdays", default=None, help="Days of the month, e.g. 1,15"),
        click.option("--yeardays", default=None, help="Dates as MM-DD or YYYY-MM-DD, e.g. 12-25"),
        click.option("--every", type=int, default=None, help="Repeat every N days from the start date"),
    ]
    for option in reversed(options):
        command = option(command)
    return command


@click.group()
@click.version_option()
@click.option("--debug", is_flag=True, help="Enable debug logging")
def main(debug: bool):
    """Vital - habit tracker CLI."""
    if debug:
        logging.basicConfig(
            format="%(asctime)s - %(name)s - %(levelname)s - %(message)s",
            level=logging.DEBUG,
        )


@main.command()
@date_option
@click.option("--json", "as_json", is_flag=True, help="Output as JSON")
def today(target_date: str | None, as_json: bool):
    """List habits active on a day."""
    day = _parse_date(target_date)
    try:
        entries = habits_for_day(_repository(), day)
    except (AuthenticationError, requests.RequestException) as e:
        _fail(str(e))

    if as_json:
        click.echo(
            json.dumps(
                [
                    {
                        "id": h.id,
                        "name": h.name,
                        "frequency": h.frequency,
                        "completed_value": p.completed_value if p else 0,
                        "is_completed": p.is_completed if p else False,
                    }
                    for h, p in entries
                ],
                indent=2,
            )
        )
        return

    if not entries:
        click.echo(f"No habits for {day.strftime('%A, %b %d')}.")
        return

    click.echo(f"Habits for {day.strftime('%A, %b %d')}\n")
    for habit, progress in entries:
        click.echo(f"  [{_status_marker(progress)}] {habit.name} ({habit.id})")


@main.command()
@date_option
@click.option("--json", "as_json", is_flag=True, help="Output as JSON")
def week(target_date: str | None, as_json: bool):
    """Show the week's grid and completion per habit."""
    anchor = _parse_date(target_date)
    days = week_days(anchor)
    try:
        reports = weekly_reports(_repository(), date.today(), week_anchor=anchor)
    except (AuthenticationError, requests.RequestException) as e:
        _fail(str(e))

    if as_json:
        click.echo(
            json.dumps(
                [
                    {
                        "id": r.habit.id,
                        "name": r.habit.name,
                        "active_days": [d.isoformat() for d in r.active_days],
                        "completed_days": [d.isoformat() for d in r.completed_days],
                        "percentage": r.percentage,
                    }
                    for r in reports
                ],
                indent=2,
            )
        )
        return

    if not reports:
        click.echo("No active habits.")
        return

    click.echo(f"Week of {days[0].strftime('%b %d')}\n")
    click.echo(f"  {'':24} {' '.join(f'{label:>3}' for label in DAY_LABELS)}")
    for report in reports:
        cells = []
        for d in days:
            marker = _status_marker(report.progress.get(d)) if is_active_on_date(report.habit, d) else " "
            cells.append(f"{marker:>3}")
        click.echo(f"  {report.habit.name[:24]:24} {' '.join(cells)}  {report.percentage}%")


@main.command()
@click.argument("habit_id")
@date_option
def check(habit_id: str, target_date: str | None):
    """Check whether a habit is active on a day."""
    day = _parse_date(target_date)
    try:
        habit = find_habit(_repository(), habit_id)
    except (AuthenticationError, HabitNotFoundError, requests.RequestException) as e:
        _fail(str(e))

    state = "active" if is_active_on_date(habit, day) else "not active"
    click.echo(f"{habit.name} is {state} on {day.isoformat()}")


@main.command()
@click.argument("habit_id")
@date_option
def toggle(habit_id: str, target_date: str | None):
    """Cycle a day's status: empty -> done -> cancelled -> empty."""
    day = _parse_date(target_date)
    try:
        result = toggle_day(_repository(), habit_id, day)
    except (AuthenticationError, HabitNotFoundError, requests.RequestException) as e:
        _fail(str(e))

    if result is None:
        click.echo(f"Habit {habit_id} is not active on {day.isoformat()}.")
        return

    if result.is_completed:
        click.echo(f"✓ {day.isoformat()} marked done")
    elif result.completed_value:
        click.echo(f"✗ {day.isoformat()} marked cancelled")
    else:
        click.echo(f"· {day.isoformat()} cleared")


@main.command()
@click.argument("name")
@click.option("--start", default=None, help="Start date (YYYY-MM-DD), defaults to today")
@click.option("--end", default=None, help="Last tracked date (YYYY-MM-DD)")
@schedule_options
@click.option("--target", type=int, default=1, help="Completions needed per day")
@click.option("--priority", type=int, default=1, help="Higher sorts first")
def add(
    name: str,
    start: str | None,
    end: str | None,
    frequency: str | None,
    days: str | None,
    monthdays: str | None,
    yeardays: str | None,
    every: int | None,
    target: int,
    priority: int,
):
    """Create a habit."""
    start_date = _parse_date(start)
    end_date = _parse_date(end) if end else None
    if end_date and end_date < start_date:
        _fail("End date is before start date")

    try:
        schedule = build_schedule(frequency, _split(days), _int_list(monthdays), _split(yeardays), every)
        habit = add_habit(_repository(), name, start_date, schedule, end_date, target, priority)
    except (AuthenticationError, ValueError, requests.RequestException) as e:
        _fail(str(e))
    click.echo(f"Added habit {habit.name} ({habit.id})")


@main.command()
@click.argument("habit_id")
@click.option("--name", default=None, help="New name")
@click.option("--start", default=None, help="New start date (YYYY-MM-DD)")
@click.option("--end", default=None, help="New last tracked date (YYYY-MM-DD)")
@click.option("--no-end", is_flag=True, help="Remove the end date")
@schedule_options
@click.option("--target", type=int, default=None, help="Completions needed per day")
@click.option("--priority", type=int, default=None, help="Higher sorts first")
def edit(
    habit_id: str,
    name: str | None,
    start: str | None,
    end: str | None,
    no_end: bool,
    frequency: str | None,
    days: str | None,
    monthdays: str | None,
    yeardays: str | None,
    every: int | None,
    target: int | None,
    priority: int | None,
):
    """Change a habit's name, dates, schedule, target or priority."""
    updates = {}
    if name:
        updates["name"] = name
    if start:
        updates["start_date"] = _parse_date(start).isoformat()
    if end:
        updates["end_date"] = _parse_date(end).isoformat()
    elif no_end:
        updates["end_date"] = None
    if target is not None:
        updates["target_value"] = target
    if priority is not None:
        updates["priority"] = priority
    reschedule = any((frequency, days, monthdays, yeardays)) or every is not None
    if not updates and not reschedule:
        _fail("Nothing to change")

    try:
        if reschedule:
            updates.update(
                build_schedule(frequency, _split(days), _int_list(monthdays), _split(yeardays), every)
            )
        habit = edit_habit(_repository(), habit_id, updates)
    except (AuthenticationError, HabitNotFoundError, ValueError, requests.RequestException) as e:
        _fail(str(e))
    click.echo(f"Updated habit {habit.name} ({habit.id})")


@main.command()
@click.argument("habit_id")
def archive(habit_id: str):
    """Archive (soft-delete) a habit."""
    try:
        archive_habit(_repository(), habit_id)
    except (AuthenticationError, HabitNotFoundError, requests.RequestException) as e:
        _fail(str(e))
    click.echo(f"Archived habit {habit_id}")


if __name__ == "__main__":
    main()
