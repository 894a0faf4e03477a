"""Unit tests for duplicate guards and calendar/task commits."""

from __future__ import annotations

import unittest
from datetime import datetime, timedelta, timezone

from triage.integrations.calendar_client import CalendarEntry, CommitError, TaskEntry
from triage.services.commit import CalendarCommitter
from triage.services.dedup import DedupGuard, normalize_task_title
from triage.temporal import DateParseError

NOW = datetime(2024, 11, 4, 10, 15, tzinfo=timezone.utc)


class _StubCalendar:
    def __init__(
        self,
        *,
        events: list[CalendarEntry] | None = None,
        tasks: list[TaskEntry] | None = None,
        fail_lookups: bool = False,
        fail_writes: bool = False,
    ) -> None:
        self.events = events or []
        self.tasks = tasks or []
        self.fail_lookups = fail_lookups
        self.fail_writes = fail_writes
        self.created_events: list[tuple[str, datetime, datetime, str, int | None]] = []
        self.inserted_tasks: list[tuple[str, str, datetime]] = []
        self.task_lookups = 0

    def create_event(self, title, start, end, description, *, reminder_minutes=None):
        if self.fail_writes:
            raise CommitError("calendar unavailable")
        self.created_events.append((title, start, end, description, reminder_minutes))
        return f"evt-{len(self.created_events)}"

    def insert_task(self, title, notes, due):
        if self.fail_writes:
            raise CommitError("tasks unavailable")
        self.inserted_tasks.append((title, notes, due))
        return f"task-{len(self.inserted_tasks)}"

    def list_events(self, start, end):
        if self.fail_lookups:
            raise RuntimeError("read timeout")
        return list(self.events)

    def list_open_tasks(self):
        self.task_lookups += 1
        if self.fail_lookups:
            raise RuntimeError("read timeout")
        return list(self.tasks)


class NormalizeTaskTitleTests(unittest.TestCase):
    def test_strips_marker_suffix_and_case(self) -> None:
        self.assertEqual(normalize_task_title("⚠️ Buy Milk"), "buy milk")
        self.assertEqual(normalize_task_title("Buy milk (2024-11-04 09:00)"), "buy milk")
        self.assertEqual(normalize_task_title("Buy milk - 3:30 PM"), "buy milk")
        self.assertEqual(normalize_task_title("  buy   milk "), "buy milk")


class DedupGuardTests(unittest.TestCase):
    def test_task_due_today_with_same_title_is_duplicate(self) -> None:
        guard = DedupGuard(_StubCalendar(tasks=[TaskEntry(title="⚠️ buy MILK", due=None)]), now=NOW)

        self.assertTrue(guard.is_duplicate_task("Buy milk", NOW))
        self.assertFalse(guard.is_duplicate_task("Buy bread", NOW))

    def test_task_due_another_day_is_never_duplicate(self) -> None:
        client = _StubCalendar(tasks=[TaskEntry(title="Buy milk", due=NOW)])
        guard = DedupGuard(client, now=NOW)

        self.assertFalse(guard.is_duplicate_task("Buy milk", NOW + timedelta(days=1)))
        self.assertEqual(client.task_lookups, 0)

    def test_event_within_an_hour_containing_title_is_duplicate(self) -> None:
        existing = datetime(2024, 11, 14, 15, 0, tzinfo=timezone.utc)
        guard = DedupGuard(
            _StubCalendar(events=[CalendarEntry(title="Dentist appointment with Dr. Lee", start=existing)]),
            now=NOW,
        )

        self.assertTrue(guard.is_duplicate_event("dentist appointment", existing + timedelta(minutes=30)))
        self.assertFalse(guard.is_duplicate_event("Dentist appointment", existing + timedelta(hours=2)))
        self.assertFalse(guard.is_duplicate_event("Haircut", existing))

    def test_lookup_failures_fail_open(self) -> None:
        guard = DedupGuard(_StubCalendar(fail_lookups=True), now=NOW)

        with self.assertLogs("triage.services.dedup", level="ERROR"):
            self.assertFalse(guard.is_duplicate_task("Buy milk", NOW))
        with self.assertLogs("triage.services.dedup", level="ERROR"):
            self.assertFalse(guard.is_duplicate_event("Dentist", NOW))


class CalendarCommitterTests(unittest.TestCase):
    def test_event_commit_uses_resolved_window_and_reminder(self) -> None:
        client = _StubCalendar()
        committer = CalendarCommitter(client, now=NOW, reminder_minutes=30)

        outcome = committer.commit(
            title="Dentist",
            date_text="14th of November",
            time_text="3:30 PM",
            item_type="event",
            details="cleaning",
        )

        self.assertEqual(outcome.outcome, "committed")
        self.assertEqual(outcome.external_id, "evt-1")
        title, start, end, description, reminder = client.created_events[0]
        self.assertEqual((title, description, reminder), ("Dentist", "cleaning", 30))
        self.assertEqual(start, datetime(2024, 11, 14, 15, 30, tzinfo=timezone.utc))
        self.assertEqual(end, datetime(2024, 11, 14, 16, 30, tzinfo=timezone.utc))

    def test_duplicate_event_is_not_written(self) -> None:
        start = datetime(2024, 11, 5, 7, 0, tzinfo=timezone.utc)
        client = _StubCalendar(events=[CalendarEntry(title="Team standup", start=start)])
        committer = CalendarCommitter(client, now=NOW)

        outcome = committer.commit(
            title="standup", date_text="tomorrow", time_text="", item_type="event", details=""
        )

        self.assertEqual(outcome.outcome, "duplicate")
        self.assertIsNone(outcome.external_id)
        self.assertEqual(client.created_events, [])

    def test_undatable_event_raises(self) -> None:
        committer = CalendarCommitter(_StubCalendar(), now=NOW)

        with self.assertRaises(DateParseError):
            committer.commit(title="Party", date_text="someday", time_text="", item_type="event", details="")

    def test_undatable_task_is_due_now_with_warning_marker(self) -> None:
        client = _StubCalendar()
        committer = CalendarCommitter(client, now=NOW)

        committer.commit(title="Renew passport", date_text="soon", time_text="", item_type="task", details="")

        title, _, due = client.inserted_tasks[0]
        self.assertEqual(title, "⚠️ Renew passport")
        self.assertEqual(due, NOW)

    def test_tomorrow_task_is_not_checked_against_today(self) -> None:
        client = _StubCalendar(tasks=[TaskEntry(title="Buy milk", due=NOW)])
        committer = CalendarCommitter(client, now=NOW)

        outcome = committer.commit(
            title="Buy milk", date_text="tomorrow", time_text="", item_type="task", details=""
        )

        self.assertEqual(outcome.outcome, "committed")
        self.assertEqual(client.inserted_tasks[0][2], datetime(2024, 11, 5, 9, 0, tzinfo=timezone.utc))

    def test_write_failure_raises_commit_error(self) -> None:
        committer = CalendarCommitter(_StubCalendar(fail_writes=True), now=NOW)

        with self.assertRaises(CommitError):
            committer.commit(title="Buy milk", date_text="today", time_text="", item_type="task", details="")


if __name__ == "__main__":
    unittest.main()
