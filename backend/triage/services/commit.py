"""Resolve, dedup, and write one approved item to the calendar or task list."""

from __future__ import annotations

import logging
from dataclasses import dataclass
from datetime import datetime

from triage.integrations.calendar_client import CalendarTaskClient, CommitError
from triage.models.approval_item import ITEM_TYPE_TASK, OUTCOME_COMMITTED, OUTCOME_DUPLICATE
from triage.services.dedup import WARNING_MARKER, DedupGuard
from triage.temporal import DateParseError, resolve_date, resolve_due_instant, resolve_event_window

logger = logging.getLogger(__name__)


@dataclass(frozen=True, slots=True)
class CommitOutcome:
    outcome: str
    external_id: str | None = None
    when: datetime | None = None


class CalendarCommitter:
    """Commits items through the dedup guard to the calendar/task collaborator."""

    def __init__(
        self,
        client: CalendarTaskClient,
        *,
        now: datetime,
        reminder_minutes: int | None = None,
    ) -> None:
        self._client = client
        self._now = now
        self._reminder_minutes = reminder_minutes
        self._guard = DedupGuard(client, now=now)

    def commit(
        self,
        *,
        title: str,
        date_text: str,
        time_text: str,
        item_type: str,
        details: str,
    ) -> CommitOutcome:
        """Write one item; raises ``DateParseError`` for undatable events and ``CommitError`` on write failure."""

        if item_type == ITEM_TYPE_TASK:
            return self._commit_task(title=title, date_text=date_text, time_text=time_text, details=details)
        return self._commit_event(title=title, date_text=date_text, time_text=time_text, details=details)

    def _commit_task(self, *, title: str, date_text: str, time_text: str, details: str) -> CommitOutcome:
        due = resolve_due_instant(date_text, time_text, now=self._now)
        if self._guard.is_duplicate_task(title, due):
            logger.info("commit.duplicate_task title=%r due=%s", title, due.isoformat())
            return CommitOutcome(outcome=OUTCOME_DUPLICATE, when=due)

        task_title = title
        if not _date_resolves(date_text, self._now):
            task_title = f"{WARNING_MARKER} {title}"
        task_id = self._client.insert_task(task_title, details, due)
        if not task_id:
            raise CommitError(f"Task service returned no id for {title!r}")
        return CommitOutcome(outcome=OUTCOME_COMMITTED, external_id=task_id, when=due)

    def _commit_event(self, *, title: str, date_text: str, time_text: str, details: str) -> CommitOutcome:
        window = resolve_event_window(date_text, time_text, now=self._now)
        if self._guard.is_duplicate_event(title, window.start):
            logger.info("commit.duplicate_event title=%r start=%s", title, window.start.isoformat())
            return CommitOutcome(outcome=OUTCOME_DUPLICATE, when=window.start)

        event_id = self._client.create_event(
            title,
            window.start,
            window.end,
            details,
            reminder_minutes=self._reminder_minutes,
        )
        if not event_id:
            raise CommitError(f"Calendar service returned no id for {title!r}")
        return CommitOutcome(outcome=OUTCOME_COMMITTED, external_id=event_id, when=window.start)


def _date_resolves(date_text: str, now: datetime) -> bool:
    try:
        resolve_date(date_text, now=now)
    except DateParseError:
        return False
    return True
