"""ORM models package exports."""

from triage.models.approval_item import ApprovalItem
from triage.models.preference import Preference
from triage.models.processed_log import ProcessedLog
from triage.models.score_history import ScoreHistoryRecord

__all__ = [
    "ApprovalItem",
    "Preference",
    "ProcessedLog",
    "ScoreHistoryRecord",
]
