"""Typed extraction outputs independent of persistence."""

from dataclasses import dataclass
from datetime import datetime


@dataclass(slots=True)
class CandidateEvent:
    """Unscored event or task candidate produced by the extractor."""

    title: str
    date: str = ""
    time: str = ""
    is_reminder: bool = False
    details: str = ""

    @property
    def item_type(self) -> str:
        return "task" if self.is_reminder else "event"


@dataclass(slots=True)
class Transcript:
    """One life log entry returned by the transcript source."""

    id: str
    title: str
    start_time: datetime
    markdown: str
