"""Service-level tests for the detect-and-score run."""

from __future__ import annotations

import unittest
from datetime import datetime, timedelta, timezone

from sqlalchemy import create_engine, delete, select
from sqlalchemy.orm import Session, sessionmaker
from sqlalchemy.pool import StaticPool

from triage.extraction.extractor_interface import ExtractorInterface
from triage.extraction.llm_extractor import ExtractionError
from triage.extraction.types import CandidateEvent, Transcript
from triage.integrations.notifications import SummaryRow
from triage.models.approval_item import STATUS_PENDING, ApprovalItem
from triage.models.base import Base
from triage.models.preference import Preference
from triage.models.processed_log import ProcessedLog
from triage.models.score_history import ScoreHistoryRecord
from triage.services.commit import CommitOutcome
from triage.services.detection import run_detection
from triage.services.preferences import PreferenceService

NOW = datetime(2024, 11, 4, 10, 15, tzinfo=timezone.utc)

BUY_MILK = CandidateEvent(title="Buy milk", date="today", is_reminder=True, details="need milk")
LAKE_STORY = CandidateEvent(title="Story about the lake", details="back when we were kids")


class _StubSource:
    def __init__(self, transcripts: list[Transcript]) -> None:
        self.transcripts = transcripts
        self.calls: list[tuple[datetime, datetime]] = []

    def list_transcripts(self, *, start: datetime, end: datetime) -> list[Transcript]:
        self.calls.append((start, end))
        return list(self.transcripts)


class _StubExtractor(ExtractorInterface):
    def __init__(self, by_log: dict[str, list[CandidateEvent] | Exception]) -> None:
        self.by_log = by_log
        self.seen: list[str] = []
        self.on_extract = None

    def extract(self, transcript: Transcript) -> list[CandidateEvent]:
        self.seen.append(transcript.id)
        if self.on_extract is not None:
            self.on_extract(transcript)
        result = self.by_log.get(transcript.id, [])
        if isinstance(result, Exception):
            raise result
        return list(result)


class _RecordingNotifier:
    def __init__(self) -> None:
        self.approval_requests: list[list[SummaryRow]] = []
        self.completion_notices: list[list[SummaryRow]] = []

    def send_approval_request(self, rows: list[SummaryRow]) -> None:
        self.approval_requests.append(rows)

    def send_completion_notice(self, rows: list[SummaryRow]) -> None:
        self.completion_notices.append(rows)


class _StubCommitter:
    def __init__(self) -> None:
        self.titles: list[str] = []

    def commit(self, *, title: str, date_text: str, time_text: str, item_type: str, details: str) -> CommitOutcome:
        self.titles.append(title)
        return CommitOutcome(outcome="committed", external_id="task-1", when=NOW)


def _transcript(log_id: str, *, hours_ago: float = 1, markdown: str = "Groceries: buy milk today.") -> Transcript:
    return Transcript(
        id=log_id,
        title=f"Conversation {log_id}",
        start_time=NOW - timedelta(hours=hours_ago),
        markdown=markdown,
    )


class DetectionServiceTests(unittest.TestCase):
    @classmethod
    def setUpClass(cls) -> None:
        cls.engine = create_engine(
            "sqlite+pysqlite:///:memory:",
            future=True,
            connect_args={"check_same_thread": False},
            poolclass=StaticPool,
        )
        cls.SessionLocal = sessionmaker(bind=cls.engine, autoflush=False, autocommit=False, future=True)
        Base.metadata.create_all(cls.engine)

    @classmethod
    def tearDownClass(cls) -> None:
        Base.metadata.drop_all(cls.engine)
        cls.engine.dispose()

    def setUp(self) -> None:
        self.db: Session = self.SessionLocal()
        self._reset_tables()

    def tearDown(self) -> None:
        self.db.close()

    def test_every_candidate_gets_history_and_passing_ones_become_pending(self) -> None:
        notifier = _RecordingNotifier()
        extractor = _StubExtractor({"log-1": [BUY_MILK, LAKE_STORY]})

        result = run_detection(
            self.db,
            _StubSource([_transcript("log-1")]),
            extractor,
            now=NOW,
            notifier=notifier,
            require_approval=True,
        )

        self.assertEqual((result.candidates_scored, result.candidates_passed, result.pending_created), (2, 1, 1))
        history = self.db.scalars(select(ScoreHistoryRecord).order_by(ScoreHistoryRecord.id)).all()
        self.assertEqual([(h.title, h.score, h.threshold, h.passed_threshold) for h in history], [
            ("Buy milk", 70, 70, True),
            ("Story about the lake", 45, 70, False),
        ])
        self.assertTrue(history[0].factors_json["action_verbs"])
        self.assertIsNone(history[1].approval_item_id)

        item = self.db.scalar(select(ApprovalItem))
        self.assertEqual(item.id, "20241104101500-log-1-1")
        self.assertEqual(item.status, STATUS_PENDING)
        self.assertEqual((item.item_type, item.score, item.source_log_title), ("task", 70, "Conversation log-1"))
        self.assertEqual(history[0].approval_item_id, item.id)

        self.assertEqual(len(notifier.approval_requests), 1)
        self.assertEqual([row.title for row in notifier.approval_requests[0]], ["Buy milk"])
        self.assertEqual(notifier.completion_notices, [])

    def test_rerun_skips_processed_transcripts(self) -> None:
        source = _StubSource([_transcript("log-1")])
        extractor = _StubExtractor({"log-1": [BUY_MILK]})

        first = run_detection(self.db, source, extractor, now=NOW, require_approval=True)
        second = run_detection(self.db, source, extractor, now=NOW + timedelta(minutes=5), require_approval=True)

        self.assertEqual(first.transcripts_processed, 1)
        self.assertEqual((second.transcripts_processed, second.transcripts_skipped), (0, 1))
        self.assertEqual(extractor.seen, ["log-1"])
        self.assertEqual(len(self.db.scalars(select(ApprovalItem)).all()), 1)
        self.assertEqual(len(self.db.scalars(select(ScoreHistoryRecord)).all()), 1)

    def test_extraction_failure_still_marks_transcript_processed(self) -> None:
        extractor = _StubExtractor(
            {
                "log-1": ExtractionError("OpenAI HTTP 500"),
                "log-2": [BUY_MILK],
            }
        )

        with self.assertLogs("triage.services.detection", level="WARNING"):
            result = run_detection(
                self.db,
                _StubSource([_transcript("log-1", hours_ago=2), _transcript("log-2")]),
                extractor,
                now=NOW,
                require_approval=True,
            )

        self.assertEqual((result.extraction_failures, result.transcripts_processed, result.pending_created), (1, 2, 1))
        processed = set(self.db.scalars(select(ProcessedLog.log_id)).all())
        self.assertEqual(processed, {"log-1", "log-2"})

    def test_transcripts_outside_lookback_are_ignored(self) -> None:
        extractor = _StubExtractor({"old": [BUY_MILK], "new": [BUY_MILK]})

        result = run_detection(
            self.db,
            _StubSource([_transcript("old", hours_ago=30), _transcript("new")]),
            extractor,
            now=NOW,
            require_approval=True,
            lookback_hours=24,
        )

        self.assertEqual(result.transcripts_seen, 1)
        self.assertEqual(extractor.seen, ["new"])

    def test_threshold_is_read_from_preferences(self) -> None:
        PreferenceService(self.db).set_threshold(75)
        self.db.commit()

        result = run_detection(
            self.db,
            _StubSource([_transcript("log-1")]),
            _StubExtractor({"log-1": [BUY_MILK]}),
            now=NOW,
            require_approval=True,
        )

        self.assertEqual((result.candidates_scored, result.candidates_passed), (1, 0))
        record = self.db.scalar(select(ScoreHistoryRecord))
        self.assertEqual((record.score, record.threshold, record.passed_threshold), (70, 75, False))

    def test_direct_add_mode_commits_and_sends_completion_notice(self) -> None:
        notifier = _RecordingNotifier()
        committer = _StubCommitter()

        result = run_detection(
            self.db,
            _StubSource([_transcript("log-1")]),
            _StubExtractor({"log-1": [BUY_MILK, LAKE_STORY]}),
            now=NOW,
            notifier=notifier,
            committer=committer,
            require_approval=False,
        )

        self.assertEqual((result.direct_added, result.pending_created), (1, 0))
        self.assertEqual(committer.titles, ["Buy milk"])
        self.assertEqual(self.db.scalars(select(ApprovalItem)).all(), [])
        self.assertEqual(notifier.approval_requests, [])
        self.assertEqual(notifier.completion_notices[0][0].when, "2024-11-04 10:15")

    def test_mixed_naive_and_aware_start_times_are_ordered(self) -> None:
        naive = Transcript(
            id="naive",
            title="Naive clock",
            start_time=datetime(2024, 11, 4, 9, 0),
            markdown="Groceries: buy milk today.",
        )
        aware = _transcript("aware", hours_ago=2)
        extractor = _StubExtractor({})

        result = run_detection(self.db, _StubSource([naive, aware]), extractor, now=NOW, require_approval=True)

        self.assertEqual(result.transcripts_processed, 2)
        self.assertEqual(extractor.seen, ["aware", "naive"])

    def test_direct_add_records_transcript_before_external_write(self) -> None:
        seen_at_commit: list[list[str]] = []
        committer = _StubCommitter()
        original_commit = committer.commit

        def commit(**kwargs: str) -> CommitOutcome:
            seen_at_commit.append(list(self.db.scalars(select(ProcessedLog.log_id)).all()))
            return original_commit(**kwargs)

        committer.commit = commit

        run_detection(
            self.db,
            _StubSource([_transcript("log-1")]),
            _StubExtractor({"log-1": [BUY_MILK]}),
            now=NOW,
            committer=committer,
            require_approval=False,
        )

        self.assertEqual(seen_at_commit, [["log-1"]])

    def test_transcript_claimed_by_another_worker_gets_no_external_write(self) -> None:
        committer = _StubCommitter()
        extractor = _StubExtractor({"log-1": [BUY_MILK], "log-2": [BUY_MILK]})
        other_db = self.SessionLocal()
        self.addCleanup(other_db.close)

        def other_worker_records_log_2(transcript: Transcript) -> None:
            if transcript.id == "log-1":
                other_db.add(ProcessedLog(log_id="log-2", processed_at=NOW))
                other_db.commit()

        extractor.on_extract = other_worker_records_log_2

        with self.assertLogs("triage.services.detection", level="WARNING"):
            result = run_detection(
                self.db,
                _StubSource([_transcript("log-1", hours_ago=2), _transcript("log-2")]),
                extractor,
                now=NOW,
                committer=committer,
                require_approval=False,
            )

        self.assertEqual((result.transcripts_processed, result.transcripts_skipped), (1, 1))
        self.assertEqual(extractor.seen, ["log-1"])
        self.assertEqual(committer.titles, ["Buy milk"])
        history = self.db.scalars(select(ScoreHistoryRecord.source_log_id)).all()
        self.assertEqual(history, ["log-1"])

    def test_direct_add_mode_requires_committer(self) -> None:
        with self.assertRaises(ValueError):
            run_detection(self.db, _StubSource([]), _StubExtractor({}), now=NOW, require_approval=False)

    def _reset_tables(self) -> None:
        self.db.execute(delete(ScoreHistoryRecord))
        self.db.execute(delete(ApprovalItem))
        self.db.execute(delete(ProcessedLog))
        self.db.execute(delete(Preference))
        self.db.commit()


if __name__ == "__main__":
    unittest.main()
