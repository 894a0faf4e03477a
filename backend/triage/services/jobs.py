"""Scheduled job entrypoints wired to configured collaborators."""

from __future__ import annotations

import logging
from datetime import datetime
from time import perf_counter
from zoneinfo import ZoneInfo

from triage.config import get_settings
from triage.db.session import SessionLocal
from triage.extraction.extractor_interface import ExtractorInterface
from triage.extraction.llm_extractor import ExtractionError, LLMExtractor, OpenAIChatCompletionsClient
from triage.integrations.calendar_client import CalendarTaskClient, CommitError, GoogleWorkspaceClient
from triage.integrations.lifelog_source import LifelogApiClient, TranscriptSource, TranscriptSourceError
from triage.integrations.notifications import LoggingNotifier
from triage.schemas.runs import ApprovalScanResult, DetectionRunResult
from triage.scoring.learner import ThresholdAdjustment
from triage.services.approvals import apply_approved_items
from triage.services.commit import CalendarCommitter
from triage.services.detection import run_detection
from triage.services.learning import run_threshold_adjustment

logger = logging.getLogger(__name__)


def get_default_extractor() -> ExtractorInterface:
    """Return the LLM extractor implementation."""

    settings = get_settings()
    if not settings.openai_api_key:
        raise ExtractionError("OPENAI_API_KEY is not configured. Set it in backend/.env before running detection.")
    return LLMExtractor(
        OpenAIChatCompletionsClient(
            api_key=settings.openai_api_key,
            model=settings.openai_model,
            base_url=settings.openai_base_url,
            timeout_seconds=settings.openai_timeout_seconds,
        )
    )


def get_default_source() -> TranscriptSource:
    settings = get_settings()
    if not settings.lifelog_api_key:
        raise TranscriptSourceError("LIFELOG_API_KEY is not configured.")
    return LifelogApiClient(
        api_key=settings.lifelog_api_key,
        base_url=settings.lifelog_base_url,
        timeout_seconds=settings.lifelog_timeout_seconds,
    )


def get_default_calendar_client() -> CalendarTaskClient:
    settings = get_settings()
    if not settings.google_access_token:
        raise CommitError("GOOGLE_ACCESS_TOKEN is not configured.")
    return GoogleWorkspaceClient(
        access_token=settings.google_access_token,
        calendar_id=settings.google_calendar_id,
        tasklist_id=settings.google_tasklist_id,
        timeout_seconds=settings.google_timeout_seconds,
    )


def current_time() -> datetime:
    return datetime.now(ZoneInfo(get_settings().timezone))


def build_committer(now: datetime) -> CalendarCommitter:
    return CalendarCommitter(
        get_default_calendar_client(),
        now=now,
        reminder_minutes=get_settings().reminder_minutes,
    )


def run_detection_job() -> DetectionRunResult:
    """Short-interval trigger: detect and score new transcripts."""

    settings = get_settings()
    now = current_time()
    total_started = perf_counter()
    db = SessionLocal()
    try:
        result = run_detection(
            db,
            get_default_source(),
            get_default_extractor(),
            now=now,
            notifier=LoggingNotifier(settings.notification_recipient),
            committer=None if settings.require_approval else build_committer(now),
        )
        logger.info("jobs.detection_timing total_ms=%.2f", (perf_counter() - total_started) * 1000.0)
        return result
    except Exception:
        logger.exception("jobs.detection_failed elapsed_ms=%.2f", (perf_counter() - total_started) * 1000.0)
        raise
    finally:
        db.close()


def run_approval_job() -> ApprovalScanResult:
    """Long-interval trigger, first half: commit approved items."""

    total_started = perf_counter()
    db = SessionLocal()
    try:
        result = apply_approved_items(db, build_committer(current_time()))
        logger.info("jobs.approval_timing total_ms=%.2f", (perf_counter() - total_started) * 1000.0)
        return result
    except Exception:
        logger.exception("jobs.approval_failed elapsed_ms=%.2f", (perf_counter() - total_started) * 1000.0)
        raise
    finally:
        db.close()


def run_relearn_job() -> ThresholdAdjustment:
    """Long-interval trigger, second half: retune the threshold."""

    total_started = perf_counter()
    db = SessionLocal()
    try:
        result = run_threshold_adjustment(db)
        logger.info("jobs.relearn_timing total_ms=%.2f", (perf_counter() - total_started) * 1000.0)
        return result
    except Exception:
        logger.exception("jobs.relearn_failed elapsed_ms=%.2f", (perf_counter() - total_started) * 1000.0)
        raise
    finally:
        db.close()
