"""Duplicate guards run before calendar and task commits."""

from __future__ import annotations

import logging
import re
from datetime import datetime, timedelta

from triage.integrations.calendar_client import CalendarTaskClient

logger = logging.getLogger(__name__)

WARNING_MARKER = "⚠️"
EVENT_DEDUP_WINDOW = timedelta(hours=1)

_WARNING_PREFIX_RE = re.compile(r"^\s*(?:⚠️?|\[!\])\s*")
_TIMESTAMP_SUFFIX_RE = re.compile(
    r"\s*[-@]?\s*[(\[]?\s*(?:\d{4}-\d{2}-\d{2}(?:[ t]\d{1,2}:\d{2}(?::\d{2})?)?|\d{1,2}:\d{2}(?:\s*[ap]\.?m\.?)?)\s*[)\]]?\s*$",
    re.IGNORECASE,
)


def normalize_task_title(title: str) -> str:
    """Lower-case a task title and strip the warning marker and trailing timestamp."""

    cleaned = _WARNING_PREFIX_RE.sub("", title or "")
    cleaned = _TIMESTAMP_SUFFIX_RE.sub("", cleaned)
    return re.sub(r"\s+", " ", cleaned).strip().lower()


class DedupGuard:
    """Exact-title task dedup scoped to today and windowed substring event dedup.

    Both lookups fail open: a read error is logged and the item is treated as new.
    """

    def __init__(self, client: CalendarTaskClient, *, now: datetime) -> None:
        self._client = client
        self._now = now

    def is_duplicate_task(self, title: str, due: datetime) -> bool:
        if due.date() != self._now.date():
            return False
        wanted = normalize_task_title(title)
        if not wanted:
            return False
        try:
            open_tasks = self._client.list_open_tasks()
        except Exception:
            logger.exception("dedup.task_lookup_failed title=%r", title)
            return False
        return any(normalize_task_title(task.title) == wanted for task in open_tasks)

    def is_duplicate_event(self, title: str, start: datetime) -> bool:
        wanted = (title or "").strip().lower()
        if not wanted:
            return False
        window_start = start - EVENT_DEDUP_WINDOW
        window_end = start + EVENT_DEDUP_WINDOW
        try:
            events = self._client.list_events(window_start, window_end)
        except Exception:
            logger.exception("dedup.event_lookup_failed title=%r start=%s", title, start.isoformat())
            return False
        for event in events:
            if event.start is not None and not window_start <= event.start <= window_end:
                continue
            if wanted in event.title.lower():
                return True
        return False
