"""Detect-and-score run: transcripts -> candidates -> scores -> approval items."""

from __future__ import annotations

import logging
from datetime import datetime, timedelta, timezone
from time import perf_counter
from zoneinfo import ZoneInfo

from sqlalchemy import select
from sqlalchemy.exc import IntegrityError
from sqlalchemy.orm import Session

from triage.config import get_settings
from triage.extraction.extractor_interface import ExtractorInterface
from triage.extraction.llm_extractor import ExtractionError
from triage.extraction.types import CandidateEvent, Transcript
from triage.integrations.calendar_client import CommitError
from triage.integrations.lifelog_source import TranscriptSource
from triage.integrations.notifications import Notifier, SummaryRow
from triage.models.processed_log import ProcessedLog
from triage.models.score_history import ScoreHistoryRecord
from triage.schemas.runs import DetectionRunResult
from triage.scoring.engine import ScoredEvent, ScoringEngine
from triage.services.approvals import build_item_id, create_pending_item
from triage.services.commit import CalendarCommitter
from triage.services.preferences import PreferenceService
from triage.temporal import DateParseError

logger = logging.getLogger(__name__)


def run_detection(
    db: Session,
    source: TranscriptSource,
    extractor: ExtractorInterface,
    *,
    now: datetime | None = None,
    notifier: Notifier | None = None,
    committer: CalendarCommitter | None = None,
    require_approval: bool | None = None,
    lookback_hours: int | None = None,
) -> DetectionRunResult:
    """Score candidates from new transcripts and queue the ones that clear the threshold.

    Every candidate gets exactly one score-history row. Each transcript is
    marked processed even when extraction fails, so a bad transcript never
    stalls the ones behind it.
    """

    settings = get_settings()
    run_at = now or datetime.now(ZoneInfo(settings.timezone))
    approval_mode = settings.require_approval if require_approval is None else require_approval
    window = timedelta(hours=settings.lookback_hours if lookback_hours is None else lookback_hours)
    if not approval_mode and committer is None:
        raise ValueError("Direct-add mode needs a calendar committer.")

    total_started = perf_counter()
    preferences = PreferenceService(db)
    engine = ScoringEngine(preferences)
    result = DetectionRunResult()
    pending_rows: list[SummaryRow] = []
    added_rows: list[SummaryRow] = []

    transcripts = _in_window(source.list_transcripts(start=run_at - window, end=run_at), run_at, window)
    result.transcripts_seen = len(transcripts)
    already_processed = _processed_log_ids(db, [t.id for t in transcripts])

    for transcript in transcripts:
        if transcript.id in already_processed:
            result.transcripts_skipped += 1
            continue
        already_processed.add(transcript.id)
        if not _claim_transcript(db, transcript.id, run_at):
            result.transcripts_skipped += 1
            continue

        candidates = _extract_candidates(extractor, transcript, result)
        for ordinal, candidate in enumerate(candidates, start=1):
            scored = engine.score(candidate, transcript.markdown)
            threshold = preferences.get_threshold()
            passed = scored.passes(threshold)
            history = ScoreHistoryRecord(
                timestamp=run_at,
                source_log_id=transcript.id,
                title=candidate.title,
                date_text=candidate.date,
                time_text=candidate.time,
                item_type=candidate.item_type,
                score=scored.score,
                threshold=threshold,
                factors_json=scored.factors.as_dict(),
                passed_threshold=passed,
            )
            db.add(history)
            result.candidates_scored += 1
            logger.debug(
                "detection.scored log_id=%s ordinal=%d score=%d threshold=%d factors=%s",
                transcript.id,
                ordinal,
                scored.score,
                threshold,
                ",".join(scored.factors.triggered()),
            )
            if not passed:
                continue
            result.candidates_passed += 1

            if approval_mode:
                item = create_pending_item(
                    db,
                    item_id=build_item_id(run_at, transcript.id, ordinal),
                    scored=scored,
                    transcript=transcript,
                )
                history.approval_item_id = item.id
                result.pending_created += 1
                pending_rows.append(_summary_row(candidate, scored.score, _when_text(candidate)))
            else:
                row = _direct_add(committer, scored, transcript)
                if row is None:
                    result.direct_add_failures += 1
                else:
                    result.direct_added += 1
                    added_rows.append(row)

        db.commit()
        result.transcripts_processed += 1

    _notify(notifier, pending_rows, added_rows)
    logger.info(
        (
            "detection.run_timing transcripts=%d processed=%d skipped=%d extraction_failures=%d "
            "scored=%d passed=%d pending=%d direct_added=%d total_ms=%.2f"
        ),
        result.transcripts_seen,
        result.transcripts_processed,
        result.transcripts_skipped,
        result.extraction_failures,
        result.candidates_scored,
        result.candidates_passed,
        result.pending_created,
        result.direct_added,
        (perf_counter() - total_started) * 1000.0,
    )
    return result


def _in_window(transcripts: list[Transcript], run_at: datetime, window: timedelta) -> list[Transcript]:
    earliest = run_at - window
    selected: list[tuple[datetime, Transcript]] = []
    for transcript in transcripts:
        started = transcript.start_time
        if started.tzinfo is None:
            started = started.replace(tzinfo=run_at.tzinfo or timezone.utc)
        if earliest <= started <= run_at:
            selected.append((started, transcript))
    selected.sort(key=lambda pair: pair[0])
    return [transcript for _, transcript in selected]


def _claim_transcript(db: Session, log_id: str, run_at: datetime) -> bool:
    """Flush the processed-log row before any extraction or external write for the transcript."""

    db.add(ProcessedLog(log_id=log_id, processed_at=run_at))
    try:
        db.flush()
    except IntegrityError:
        # Another worker recorded this transcript first; its run owns the candidates.
        db.rollback()
        logger.warning("detection.transcript_already_recorded log_id=%s", log_id)
        return False
    return True


def _processed_log_ids(db: Session, log_ids: list[str]) -> set[str]:
    if not log_ids:
        return set()
    return set(db.scalars(select(ProcessedLog.log_id).where(ProcessedLog.log_id.in_(log_ids))).all())


def _extract_candidates(
    extractor: ExtractorInterface,
    transcript: Transcript,
    result: DetectionRunResult,
) -> list[CandidateEvent]:
    started = perf_counter()
    try:
        candidates = extractor.extract(transcript)
    except ExtractionError as exc:
        logger.warning("detection.extraction_failed log_id=%s error=%s", transcript.id, exc)
        result.extraction_failures += 1
        return []
    except Exception:
        logger.exception("detection.extraction_crashed log_id=%s", transcript.id)
        result.extraction_failures += 1
        return []
    logger.info(
        "detection.extraction_timing log_id=%s candidates=%d extract_ms=%.2f",
        transcript.id,
        len(candidates),
        (perf_counter() - started) * 1000.0,
    )
    return candidates


def _direct_add(committer: CalendarCommitter, scored: ScoredEvent, transcript: Transcript) -> SummaryRow | None:
    candidate = scored.candidate
    try:
        outcome = committer.commit(
            title=candidate.title,
            date_text=candidate.date,
            time_text=candidate.time,
            item_type=candidate.item_type,
            details=candidate.details,
        )
    except (CommitError, DateParseError) as exc:
        logger.warning("detection.direct_add_failed log_id=%s title=%r error=%s", transcript.id, candidate.title, exc)
        return None
    except Exception:
        logger.exception("detection.direct_add_crashed log_id=%s title=%r", transcript.id, candidate.title)
        return None
    when = outcome.when.strftime("%Y-%m-%d %H:%M") if outcome.when else _when_text(candidate)
    return _summary_row(candidate, scored.score, when)


def _summary_row(candidate: CandidateEvent, score: int, when: str) -> SummaryRow:
    return SummaryRow(
        item_type=candidate.item_type,
        title=candidate.title,
        when=when,
        details=candidate.details,
        score=score,
    )


def _when_text(candidate: CandidateEvent) -> str:
    return " ".join(part for part in (candidate.date, candidate.time) if part)


def _notify(notifier: Notifier | None, pending_rows: list[SummaryRow], added_rows: list[SummaryRow]) -> None:
    if notifier is None:
        return
    try:
        if pending_rows:
            notifier.send_approval_request(pending_rows)
        if added_rows:
            notifier.send_completion_notice(added_rows)
    except Exception:
        logger.exception("detection.notify_failed pending=%d added=%d", len(pending_rows), len(added_rows))
