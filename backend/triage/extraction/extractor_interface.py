"""Extractor interface for pluggable candidate extraction."""

from abc import ABC, abstractmethod

from triage.extraction.types import CandidateEvent, Transcript


class ExtractorInterface(ABC):
    """Abstract candidate extractor."""

    @abstractmethod
    def extract(self, transcript: Transcript) -> list[CandidateEvent]:
        """Extract candidate events and tasks from one transcript."""
