"""Supabase REST adapter - HTTP client for habits and progress."""

import logging
from datetime import date

import requests

from vital.config import Config, load_config
from vital.core.progress import GoalProgress
from vital.core.recurrence import HabitDefinition, InvalidHabitError
from vital.ports.habit_repo import HabitNotFoundError

logger = logging.getLogger(__name__)

REST_PATH = "/rest/v1"
GOALS_TABLE = "goals"
PROGRESS_TABLE = "goal_progress"


class AuthenticationError(Exception):
    """Raised when the backend credentials are missing."""

    pass


class SupabaseRestAdapter:
    """
    Supabase (PostgREST) adapter.

    Implements HabitRepository protocol. Row-level security on the backend
    scopes every query to the token's user. No business logic - just I/O.
    """

    def __init__(self, config: Config | None = None, session: requests.Session | None = None):
        self.config = config or load_config()
        self._session = session or requests.Session()

    def _headers(self) -> dict[str, str]:
        if not self.config.supabase_url or not self.config.supabase_api_key:
            raise AuthenticationError(
                "Missing Supabase credentials. Add SUPABASE_URL and SUPABASE_API_KEY to config/vital.conf"
            )
        if not self.config.supabase_access_token:
            raise AuthenticationError("No access token. Add SUPABASE_ACCESS_TOKEN to config/vital.conf")
        return {
            "apikey": self.config.supabase_api_key,
            "Authorization": f"Bearer {self.config.supabase_access_token}",
        }

    def _url(self, table: str) -> str:
        return f"{self.config.supabase_url}{REST_PATH}/{table}"

    def _get(self, table: str, params: list[tuple[str, str]]) -> list[dict]:
        """Make authenticated select request."""
        resp = self._session.get(self._url(table), headers=self._headers(), params=params)
        resp.raise_for_status()
        return resp.json()

    def fetch_habits(self) -> list[HabitDefinition]:
        """Fetch active habits, highest priority first."""
        rows = self._get(
            GOALS_TABLE,
            [("select", "*"), ("is_active", "eq.true"), ("order", "priority.desc")],
        )
        habits = []
        for row in rows:
            try:
                habits.append(HabitDefinition.from_row(row))
            except InvalidHabitError as e:
                logger.warning(f"Skipping habit row: {e}")
        return habits

    def _write(self, method: str, table: str, payload: dict, params: list[tuple[str, str]] | None = None) -> list[dict]:
        """Make authenticated insert/update request returning the stored rows."""
        headers = self._headers()
        headers["Prefer"] = "return=representation"
        resp = self._session.request(method, self._url(table), headers=headers, params=params, json=payload)
        resp.raise_for_status()
        return resp.json()

    def create_habit(self, habit: HabitDefinition) -> HabitDefinition:
        """Insert a goal row; the backend assigns the id."""
        row = habit.to_row()
        if not row["id"]:
            del row["id"]
        if self.config.supabase_user_id:
            row["user_id"] = self.config.supabase_user_id
        rows = self._write("POST", GOALS_TABLE, row)
        return HabitDefinition.from_row(rows[0])

    def update_habit(self, habit_id: str, updates: dict) -> HabitDefinition:
        """Patch a goal row and return the stored result."""
        rows = self._write("PATCH", GOALS_TABLE, updates, params=[("id", f"eq.{habit_id}")])
        if not rows:
            raise HabitNotFoundError(f"No habit with id {habit_id!r}")
        return HabitDefinition.from_row(rows[0])

    def fetch_progress(self, start_date: date, end_date: date) -> list[GoalProgress]:
        """Fetch progress rows in an inclusive date range."""
        rows = self._get(
            PROGRESS_TABLE,
            [
                ("select", "*"),
                ("date", f"gte.{start_date.isoformat()}"),
                ("date", f"lte.{end_date.isoformat()}"),
            ],
        )
        return [GoalProgress.from_row(r) for r in rows]

    def upsert_progress(self, progress: GoalProgress) -> GoalProgress:
        """Insert or replace the progress row for (goal_id, date)."""
        headers = self._headers()
        headers["Prefer"] = "resolution=merge-duplicates,return=representation"
        resp = self._session.post(
            self._url(PROGRESS_TABLE),
            headers=headers,
            params=[("on_conflict", "goal_id,date")],
            json=progress.to_row(),
        )
        resp.raise_for_status()
        rows = resp.json()
        return GoalProgress.from_row(rows[0]) if rows else progress

    def deactivate_habit(self, habit_id: str) -> None:
        """Soft-delete a habit by clearing is_active."""
        resp = self._session.patch(
            self._url(GOALS_TABLE),
            headers=self._headers(),
            params=[("id", f"eq.{habit_id}")],
            json={"is_active": False},
        )
        resp.raise_for_status()
        logger.info(f"Deactivated habit {habit_id}")
