"""Approval workflow item model."""

from datetime import datetime, timezone

from sqlalchemy import DateTime, Integer, String, Text
from sqlalchemy.orm import Mapped, mapped_column

from triage.models.base import Base, CreatedAtMixin

STATUS_PENDING = "pending"
STATUS_APPROVED = "approved"
STATUS_REJECTED = "rejected"
STATUS_PROCESSING = "processing"
STATUS_PROCESSED = "processed"
STATUS_ERROR = "error"

APPROVAL_STATUSES = (
    STATUS_PENDING,
    STATUS_APPROVED,
    STATUS_REJECTED,
    STATUS_PROCESSING,
    STATUS_PROCESSED,
    STATUS_ERROR,
)
TERMINAL_STATUSES = frozenset({STATUS_REJECTED, STATUS_PROCESSED, STATUS_ERROR})

ITEM_TYPE_EVENT = "event"
ITEM_TYPE_TASK = "task"

OUTCOME_COMMITTED = "committed"
OUTCOME_DUPLICATE = "duplicate"


class ApprovalItem(Base, CreatedAtMixin):
    """Candidate that cleared the threshold, tracked from detection through commit."""

    __tablename__ = "approval_items"

    id: Mapped[str] = mapped_column(String(128), primary_key=True)
    status: Mapped[str] = mapped_column(String(16), default=STATUS_PENDING, index=True, nullable=False)
    title: Mapped[str] = mapped_column(String(512), nullable=False)
    date_text: Mapped[str] = mapped_column(String(128), default="", nullable=False)
    time_text: Mapped[str] = mapped_column(String(64), default="", nullable=False)
    item_type: Mapped[str] = mapped_column(String(16), default=ITEM_TYPE_EVENT, nullable=False)
    details: Mapped[str] = mapped_column(Text, default="", nullable=False)
    score: Mapped[int | None] = mapped_column(Integer, nullable=True)
    feedback: Mapped[str | None] = mapped_column(String(32), nullable=True)
    source_log_id: Mapped[str] = mapped_column(String(255), index=True, nullable=False)
    source_log_title: Mapped[str] = mapped_column(String(512), default="", nullable=False)
    source_log_started_at: Mapped[datetime | None] = mapped_column(DateTime(timezone=True), nullable=True)
    outcome: Mapped[str | None] = mapped_column(String(32), nullable=True)
    external_id: Mapped[str | None] = mapped_column(String(255), nullable=True)
    error_message: Mapped[str | None] = mapped_column(String(1024), nullable=True)
    updated_at: Mapped[datetime] = mapped_column(
        DateTime(timezone=True),
        default=lambda: datetime.now(timezone.utc),
        nullable=False,
    )
    processed_at: Mapped[datetime | None] = mapped_column(DateTime(timezone=True), nullable=True)
