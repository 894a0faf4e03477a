"""Processed transcript idempotence record."""

from datetime import datetime, timezone

from sqlalchemy import DateTime, String
from sqlalchemy.orm import Mapped, mapped_column

from triage.models.base import Base, IdMixin


class ProcessedLog(Base, IdMixin):
    """One row per transcript ever run through detection."""

    __tablename__ = "processed_logs"

    log_id: Mapped[str] = mapped_column(String(255), unique=True, nullable=False)
    processed_at: Mapped[datetime] = mapped_column(
        DateTime(timezone=True),
        default=lambda: datetime.now(timezone.utc),
        nullable=False,
    )
