"""Approval workflow: pending -> approved -> processing -> processed | error.

``pending -> approved`` and ``pending -> rejected`` are operator actions. The
scan drives ``approved -> processing`` as an atomic compare-and-set before any
external call, so a concurrent scan that loses the race skips the item.
"""

from __future__ import annotations

import logging
from datetime import datetime, timezone
from time import perf_counter

from sqlalchemy import delete, select, update
from sqlalchemy.orm import Session

from triage.extraction.types import Transcript
from triage.integrations.calendar_client import CommitError
from triage.models.approval_item import (
    OUTCOME_DUPLICATE,
    STATUS_APPROVED,
    STATUS_ERROR,
    STATUS_PENDING,
    STATUS_PROCESSED,
    STATUS_PROCESSING,
    STATUS_REJECTED,
    ApprovalItem,
)
from triage.models.score_history import FEEDBACK_LABELS, ScoreHistoryRecord
from triage.schemas.runs import ApprovalScanResult
from triage.scoring.engine import ScoredEvent
from triage.services.commit import CalendarCommitter
from triage.temporal import DateParseError

logger = logging.getLogger(__name__)

_APPROVABLE_FROM = (STATUS_PENDING, STATUS_ERROR)
_REJECTABLE_FROM = (STATUS_PENDING,)


class InvalidTransitionError(RuntimeError):
    """Raised when an operator action does not fit the item's current status."""


def build_item_id(run_at: datetime, source_log_id: str, ordinal: int) -> str:
    """Derive a unique item id from run time, transcript id, and candidate ordinal."""

    return f"{run_at.strftime('%Y%m%d%H%M%S')}-{source_log_id}-{ordinal}"


def create_pending_item(
    db: Session,
    *,
    item_id: str,
    scored: ScoredEvent,
    transcript: Transcript,
) -> ApprovalItem:
    """Record a scored candidate that cleared the threshold."""

    candidate = scored.candidate
    item = ApprovalItem(
        id=item_id,
        status=STATUS_PENDING,
        title=candidate.title,
        date_text=candidate.date,
        time_text=candidate.time,
        item_type=candidate.item_type,
        details=candidate.details,
        score=scored.score,
        source_log_id=transcript.id,
        source_log_title=transcript.title,
        source_log_started_at=transcript.start_time,
    )
    db.add(item)
    db.flush()
    return item


def get_item(db: Session, item_id: str) -> ApprovalItem | None:
    return db.get(ApprovalItem, item_id)


def list_items(
    db: Session,
    *,
    status: str | None = None,
    limit: int = 100,
    offset: int = 0,
) -> list[ApprovalItem]:
    """List approval items, newest first."""

    stmt = select(ApprovalItem)
    if status is not None:
        stmt = stmt.where(ApprovalItem.status == status)
    stmt = stmt.order_by(ApprovalItem.created_at.desc(), ApprovalItem.id.asc()).limit(limit).offset(offset)
    return list(db.scalars(stmt).all())


def approve_item(db: Session, item_id: str) -> ApprovalItem | None:
    """Operator approval; also the manual retry path for items in ``error``."""

    return _operator_transition(db, item_id, allowed_from=_APPROVABLE_FROM, target=STATUS_APPROVED)


def reject_item(db: Session, item_id: str) -> ApprovalItem | None:
    """Operator rejection of a pending item."""

    return _operator_transition(db, item_id, allowed_from=_REJECTABLE_FROM, target=STATUS_REJECTED)


def claim_item(db: Session, item_id: str) -> bool:
    """Atomically move an item from ``approved`` to ``processing``; False when another run got there first."""

    result = db.execute(
        update(ApprovalItem)
        .where(ApprovalItem.id == item_id, ApprovalItem.status == STATUS_APPROVED)
        .values(status=STATUS_PROCESSING, updated_at=datetime.now(timezone.utc))
        .execution_options(synchronize_session=False)
    )
    db.commit()
    return result.rowcount == 1


def mark_processed(db: Session, item_id: str, *, outcome: str, external_id: str | None = None) -> bool:
    """Finalize a claimed item after the commit succeeded or was recognized as a duplicate."""

    now = datetime.now(timezone.utc)
    return _finish(
        db,
        item_id,
        status=STATUS_PROCESSED,
        outcome=outcome,
        external_id=external_id,
        error_message=None,
        updated_at=now,
        processed_at=now,
    )


def mark_error(db: Session, item_id: str, message: str) -> bool:
    """Finalize a claimed item whose commit failed; it stays put until re-approved."""

    return _finish(
        db,
        item_id,
        status=STATUS_ERROR,
        error_message=message[:1024],
        updated_at=datetime.now(timezone.utc),
    )


def apply_approved_items(db: Session, committer: CalendarCommitter) -> ApprovalScanResult:
    """Commit every item that was ``approved`` when the scan started."""

    total_started = perf_counter()
    item_ids = list(
        db.scalars(
            select(ApprovalItem.id)
            .where(ApprovalItem.status == STATUS_APPROVED)
            .order_by(ApprovalItem.created_at.asc(), ApprovalItem.id.asc())
        ).all()
    )
    result = ApprovalScanResult(scanned=len(item_ids))

    for item_id in item_ids:
        if not claim_item(db, item_id):
            logger.info("approvals.claim_skipped item_id=%s", item_id)
            result.skipped += 1
            continue

        item = db.get(ApprovalItem, item_id)
        if item is None:
            result.skipped += 1
            continue
        try:
            outcome = committer.commit(
                title=item.title,
                date_text=item.date_text,
                time_text=item.time_text,
                item_type=item.item_type,
                details=item.details,
            )
        except (CommitError, DateParseError) as exc:
            logger.warning("approvals.commit_failed item_id=%s error=%s", item_id, exc)
            mark_error(db, item_id, str(exc))
            result.errors += 1
            continue
        except Exception as exc:
            logger.exception("approvals.commit_crashed item_id=%s", item_id)
            mark_error(db, item_id, f"{exc.__class__.__name__}: {exc}")
            result.errors += 1
            continue

        mark_processed(db, item_id, outcome=outcome.outcome, external_id=outcome.external_id)
        if outcome.outcome == OUTCOME_DUPLICATE:
            result.duplicates += 1
        else:
            result.committed += 1

    logger.info(
        "approvals.scan_timing scanned=%d committed=%d duplicates=%d errors=%d skipped=%d total_ms=%.2f",
        result.scanned,
        result.committed,
        result.duplicates,
        result.errors,
        result.skipped,
        (perf_counter() - total_started) * 1000.0,
    )
    return result


def clear_pending_items(db: Session) -> int:
    """Maintenance: delete every item still waiting for a decision."""

    pending_ids = select(ApprovalItem.id).where(ApprovalItem.status == STATUS_PENDING)
    db.execute(
        update(ScoreHistoryRecord)
        .where(ScoreHistoryRecord.approval_item_id.in_(pending_ids))
        .values(approval_item_id=None)
        .execution_options(synchronize_session=False)
    )
    result = db.execute(
        delete(ApprovalItem)
        .where(ApprovalItem.status == STATUS_PENDING)
        .execution_options(synchronize_session=False)
    )
    db.commit()
    logger.info("approvals.cleared_pending count=%d", result.rowcount)
    return result.rowcount


def record_feedback(db: Session, item_id: str, feedback: str) -> ApprovalItem | None:
    """Label a reviewed item and its score-history record for threshold learning."""

    if feedback not in FEEDBACK_LABELS:
        raise ValueError(f"Unknown feedback label: {feedback}")
    item = db.get(ApprovalItem, item_id)
    if item is None:
        return None
    item.feedback = feedback
    item.updated_at = datetime.now(timezone.utc)
    db.execute(
        update(ScoreHistoryRecord)
        .where(ScoreHistoryRecord.approval_item_id == item_id)
        .values(feedback=feedback)
        .execution_options(synchronize_session=False)
    )
    db.commit()
    db.refresh(item)
    return item


def _operator_transition(
    db: Session,
    item_id: str,
    *,
    allowed_from: tuple[str, ...],
    target: str,
) -> ApprovalItem | None:
    item = db.get(ApprovalItem, item_id)
    if item is None:
        return None
    result = db.execute(
        update(ApprovalItem)
        .where(ApprovalItem.id == item_id, ApprovalItem.status.in_(allowed_from))
        .values(status=target, error_message=None, updated_at=datetime.now(timezone.utc))
        .execution_options(synchronize_session=False)
    )
    if result.rowcount != 1:
        db.rollback()
        db.refresh(item)
        raise InvalidTransitionError(f"Cannot move item {item_id} from {item.status} to {target}")
    db.commit()
    db.refresh(item)
    logger.info("approvals.operator_transition item_id=%s status=%s", item_id, target)
    return item


def _finish(db: Session, item_id: str, *, status: str, **values: object) -> bool:
    result = db.execute(
        update(ApprovalItem)
        .where(ApprovalItem.id == item_id, ApprovalItem.status == STATUS_PROCESSING)
        .values(status=status, **values)
        .execution_options(synchronize_session=False)
    )
    db.commit()
    if result.rowcount != 1:
        logger.warning("approvals.finish_lost_lease item_id=%s status=%s", item_id, status)
        return False
    return True
