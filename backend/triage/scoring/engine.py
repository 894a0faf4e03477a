"""Rule-based confidence scoring for candidate events."""

from __future__ import annotations

from dataclasses import asdict, dataclass, fields
from typing import Protocol

from triage.extraction.types import CandidateEvent
from triage.scoring import rules
from triage.scoring.rules import WeightTable


@dataclass(frozen=True, slots=True)
class ScoreFactors:
    """Which lexical factors fired for a candidate."""

    action_verbs: bool = False
    intent_phrases: bool = False
    temporal_indicators: bool = False
    priority_markers: bool = False
    direct_command: bool = False
    specific_details: bool = False
    repetition: bool = False
    voice_emphasis: bool = False
    attention_phrase: bool = False
    uncertainty_markers: bool = False
    casual_conversation: bool = False

    def as_dict(self) -> dict[str, bool]:
        return asdict(self)

    def triggered(self) -> list[str]:
        return [f.name for f in fields(self) if getattr(self, f.name)]


@dataclass(frozen=True, slots=True)
class ScoredEvent:
    """A candidate plus its score and factor breakdown."""

    candidate: CandidateEvent
    score: int
    factors: ScoreFactors
    false_positive_penalty: bool = False

    def passes(self, threshold: int) -> bool:
        return self.score >= threshold


class WeightSource(Protocol):
    """Anything that can hand out the current weight table."""

    def get_weight_table(self) -> WeightTable:
        """Return the weight table to score with right now."""


class _FixedWeights:
    def __init__(self, table: WeightTable) -> None:
        self._table = table

    def get_weight_table(self) -> WeightTable:
        return self._table


class ScoringEngine:
    """Scores candidates with a transparent factor -> phrase list -> weight table."""

    def __init__(self, weight_source: WeightSource) -> None:
        self._weight_source = weight_source

    @classmethod
    def with_weights(cls, table: WeightTable | None = None) -> ScoringEngine:
        return cls(_FixedWeights(table or WeightTable()))

    def score(self, candidate: CandidateEvent, source_text: str = "") -> ScoredEvent:
        """Score one candidate; the result is not clamped to [0, 100]."""

        weights = self._weight_source.get_weight_table()
        raw_text = f"{candidate.title} {candidate.details}"
        text = raw_text.lower()
        source = (source_text or "").lower()
        temporal_text = f"{text} {candidate.date} {candidate.time}".lower()

        triggered: dict[str, bool] = {}
        for name, pattern in rules.PHRASE_PATTERNS.items():
            haystack = temporal_text if name == rules.TEMPORAL_INDICATORS else text
            hit = pattern.search(haystack) is not None
            if not hit and name in rules.SOURCE_TEXT_FACTORS and source:
                hit = pattern.search(source) is not None
            triggered[name] = hit

        triggered[rules.DIRECT_COMMAND] = rules.COMMAND_PATTERN.search(candidate.title.strip().lower()) is not None
        triggered[rules.SPECIFIC_DETAILS] = bool(
            rules.QUANTITY_PATTERN.search(text) or rules.PLACE_PATTERN.search(text)
        )
        triggered[rules.REPETITION] = self._has_repeated_action(text)
        triggered[rules.VOICE_EMPHASIS] = "!" in raw_text or rules.CAPS_RUN_PATTERN.search(raw_text) is not None

        score = rules.BASE_SCORE
        for name in rules.FACTOR_NAMES:
            if triggered[name]:
                score += weights[name]

        # Applied after and on top of factor weights, even when the same phrase fired a factor.
        penalty = rules.FALSE_POSITIVE_PATTERN.search(text) is not None
        if penalty:
            score -= rules.FALSE_POSITIVE_PENALTY

        return ScoredEvent(
            candidate=candidate,
            score=score,
            factors=ScoreFactors(**triggered),
            false_positive_penalty=penalty,
        )

    @staticmethod
    def _has_repeated_action(text: str) -> bool:
        pattern = rules.PHRASE_PATTERNS[rules.ACTION_VERBS]
        seen: set[str] = set()
        for match in pattern.finditer(text):
            phrase = match.group(0)
            if phrase in seen:
                return True
            seen.add(phrase)
        return False
