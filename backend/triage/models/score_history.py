"""Score history model."""

from datetime import datetime, timezone

from sqlalchemy import JSON, Boolean, DateTime, ForeignKey, Integer, String
from sqlalchemy.orm import Mapped, mapped_column

from triage.models.base import Base, IdMixin

FEEDBACK_NONE = "none"
FEEDBACK_CORRECT = "correct"
FEEDBACK_SHOULD_NOT_HAVE_INCLUDED = "should_not_have_included"
FEEDBACK_MISSED_IMPORTANT = "missed_important"

FEEDBACK_LABELS = (
    FEEDBACK_NONE,
    FEEDBACK_CORRECT,
    FEEDBACK_SHOULD_NOT_HAVE_INCLUDED,
    FEEDBACK_MISSED_IMPORTANT,
)


class ScoreHistoryRecord(Base, IdMixin):
    """Immutable record of one scored candidate; only the feedback label changes."""

    __tablename__ = "score_history"

    timestamp: Mapped[datetime] = mapped_column(
        DateTime(timezone=True),
        default=lambda: datetime.now(timezone.utc),
        nullable=False,
        index=True,
    )
    source_log_id: Mapped[str] = mapped_column(String(255), index=True, nullable=False)
    title: Mapped[str] = mapped_column(String(512), nullable=False)
    date_text: Mapped[str] = mapped_column(String(128), default="", nullable=False)
    time_text: Mapped[str] = mapped_column(String(64), default="", nullable=False)
    item_type: Mapped[str] = mapped_column(String(16), nullable=False)
    score: Mapped[int] = mapped_column(Integer, nullable=False)
    threshold: Mapped[int] = mapped_column(Integer, nullable=False)
    factors_json: Mapped[dict[str, bool]] = mapped_column(JSON, default=dict, nullable=False)
    passed_threshold: Mapped[bool] = mapped_column(Boolean, nullable=False)
    feedback: Mapped[str] = mapped_column(String(32), default=FEEDBACK_NONE, nullable=False)
    approval_item_id: Mapped[str | None] = mapped_column(
        ForeignKey("approval_items.id", ondelete="SET NULL"),
        index=True,
        nullable=True,
    )
