"""Score history queries and reviewer labels."""

from sqlalchemy import select
from sqlalchemy.orm import Session

from triage.models.score_history import FEEDBACK_LABELS, ScoreHistoryRecord


def list_score_history(
    db: Session,
    *,
    source_log_id: str | None = None,
    passed: bool | None = None,
    limit: int = 200,
    offset: int = 0,
) -> list[ScoreHistoryRecord]:
    """List score history, newest first."""

    stmt = select(ScoreHistoryRecord)
    if source_log_id is not None:
        stmt = stmt.where(ScoreHistoryRecord.source_log_id == source_log_id)
    if passed is not None:
        stmt = stmt.where(ScoreHistoryRecord.passed_threshold == passed)
    stmt = stmt.order_by(ScoreHistoryRecord.timestamp.desc(), ScoreHistoryRecord.id.desc()).limit(limit).offset(offset)
    return list(db.scalars(stmt).all())


def set_score_feedback(db: Session, record_id: int, feedback: str) -> ScoreHistoryRecord | None:
    """Label one record, including candidates that never became approval items."""

    if feedback not in FEEDBACK_LABELS:
        raise ValueError(f"Unknown feedback label: {feedback}")
    record = db.get(ScoreHistoryRecord, record_id)
    if record is None:
        return None
    record.feedback = feedback
    db.commit()
    db.refresh(record)
    return record
