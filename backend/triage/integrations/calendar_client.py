"""Calendar and task collaborator client."""

from __future__ import annotations

from dataclasses import dataclass
from datetime import datetime
from typing import Any, Protocol
from urllib.parse import quote, urlencode

from triage.integrations._http import HttpRequestError, request_json

GOOGLE_CALENDAR_API_BASE_URL = "https://www.googleapis.com/calendar/v3"
GOOGLE_TASKS_API_BASE_URL = "https://tasks.googleapis.com/tasks/v1"
_TASK_PAGE_SIZE = 100
_MAX_TASK_PAGES = 20


class CommitError(RuntimeError):
    """Raised when an event or task could not be written."""


@dataclass(frozen=True, slots=True)
class CalendarEntry:
    title: str
    start: datetime | None


@dataclass(frozen=True, slots=True)
class TaskEntry:
    title: str
    due: datetime | None


class CalendarTaskClient(Protocol):
    """Calendar/task store used for commits and duplicate lookups."""

    def create_event(
        self,
        title: str,
        start: datetime,
        end: datetime,
        description: str,
        *,
        reminder_minutes: int | None = None,
    ) -> str:
        """Create a calendar event and return its id."""

    def insert_task(self, title: str, notes: str, due: datetime) -> str:
        """Create a task and return its id."""

    def list_events(self, start: datetime, end: datetime) -> list[CalendarEntry]:
        """List events overlapping ``[start, end]``."""

    def list_open_tasks(self) -> list[TaskEntry]:
        """List tasks that are not completed."""


def _parse_google_time(value: str | None) -> datetime | None:
    if not value:
        return None
    try:
        return datetime.fromisoformat(value.replace("Z", "+00:00"))
    except ValueError:
        return None


@dataclass(slots=True)
class GoogleWorkspaceClient:
    """Google Calendar + Tasks REST client using a pre-issued OAuth access token."""

    access_token: str
    calendar_id: str = "primary"
    tasklist_id: str = "@default"
    timeout_seconds: int = 30

    def create_event(
        self,
        title: str,
        start: datetime,
        end: datetime,
        description: str,
        *,
        reminder_minutes: int | None = None,
    ) -> str:
        body: dict[str, Any] = {
            "summary": title,
            "description": description,
            "start": {"dateTime": start.isoformat()},
            "end": {"dateTime": end.isoformat()},
        }
        if reminder_minutes is not None:
            body["reminders"] = {
                "useDefault": False,
                "overrides": [{"method": "popup", "minutes": reminder_minutes}],
            }
        payload = self._call("POST", f"{GOOGLE_CALENDAR_API_BASE_URL}/calendars/{self._calendar()}/events", body)
        return str(payload.get("id") or "")

    def insert_task(self, title: str, notes: str, due: datetime) -> str:
        body = {"title": title, "notes": notes, "due": due.isoformat()}
        payload = self._call("POST", f"{GOOGLE_TASKS_API_BASE_URL}/lists/{self._tasklist()}/tasks", body)
        return str(payload.get("id") or "")

    def list_events(self, start: datetime, end: datetime) -> list[CalendarEntry]:
        params = urlencode(
            {
                "timeMin": start.isoformat(),
                "timeMax": end.isoformat(),
                "singleEvents": "true",
                "orderBy": "startTime",
            }
        )
        payload = self._call("GET", f"{GOOGLE_CALENDAR_API_BASE_URL}/calendars/{self._calendar()}/events?{params}")
        return [
            CalendarEntry(
                title=str(item.get("summary") or ""),
                start=_parse_google_time((item.get("start") or {}).get("dateTime")),
            )
            for item in payload.get("items") or []
        ]

    def list_open_tasks(self) -> list[TaskEntry]:
        tasks: list[TaskEntry] = []
        page_token: str | None = None
        for _ in range(_MAX_TASK_PAGES):
            query: dict[str, Any] = {"showCompleted": "false", "maxResults": _TASK_PAGE_SIZE}
            if page_token:
                query["pageToken"] = page_token
            url = f"{GOOGLE_TASKS_API_BASE_URL}/lists/{self._tasklist()}/tasks?{urlencode(query)}"
            payload = self._call("GET", url)
            tasks.extend(
                TaskEntry(title=str(item.get("title") or ""), due=_parse_google_time(item.get("due")))
                for item in payload.get("items") or []
                if item.get("status") != "completed"
            )
            page_token = payload.get("nextPageToken")
            if not page_token:
                break
        return tasks

    def _call(self, method: str, url: str, body: dict[str, Any] | None = None) -> dict[str, Any]:
        try:
            return request_json(
                method,
                url,
                headers={"Authorization": f"Bearer {self.access_token}"},
                payload=body,
                timeout_seconds=self.timeout_seconds,
            )
        except HttpRequestError as exc:
            raise CommitError(str(exc)) from exc

    def _calendar(self) -> str:
        return quote(self.calendar_id, safe="")

    def _tasklist(self) -> str:
        return quote(self.tasklist_id, safe="")
