"""SQLAlchemy metadata registry import for Alembic."""

from triage.models import ApprovalItem, Preference, ProcessedLog, ScoreHistoryRecord
from triage.models.base import Base

__all__ = ["Base", "ApprovalItem", "Preference", "ProcessedLog", "ScoreHistoryRecord"]
