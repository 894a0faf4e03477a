"""Feedback-driven acceptance threshold adjustment."""

from __future__ import annotations

import math
from collections.abc import Iterable
from dataclasses import dataclass
from typing import Protocol

from triage.models.score_history import (
    FEEDBACK_MISSED_IMPORTANT,
    FEEDBACK_NONE,
    FEEDBACK_SHOULD_NOT_HAVE_INCLUDED,
)

MIN_LABELED_SAMPLES = 5
MIN_THRESHOLD = 50
MAX_THRESHOLD = 95


class FeedbackSample(Protocol):
    passed_threshold: bool
    feedback: str


@dataclass(frozen=True, slots=True)
class ThresholdAdjustment:
    """Outcome of one learning pass."""

    previous_threshold: int
    new_threshold: int
    adjustment: int
    false_positives: int
    false_negatives: int
    labeled_samples: int

    @property
    def changed(self) -> bool:
        return self.new_threshold != self.previous_threshold


class ThresholdLearner:
    """Moves the threshold up on false positives and down on false negatives."""

    def __init__(
        self,
        *,
        min_samples: int = MIN_LABELED_SAMPLES,
        min_threshold: int = MIN_THRESHOLD,
        max_threshold: int = MAX_THRESHOLD,
    ) -> None:
        self.min_samples = min_samples
        self.min_threshold = min_threshold
        self.max_threshold = max_threshold

    def adjust(
        self,
        history: Iterable[FeedbackSample],
        current_threshold: int,
        learning_rate: float,
    ) -> ThresholdAdjustment:
        labeled = [record for record in history if (record.feedback or FEEDBACK_NONE) != FEEDBACK_NONE]
        false_positives = sum(
            1 for r in labeled if r.passed_threshold and r.feedback == FEEDBACK_SHOULD_NOT_HAVE_INCLUDED
        )
        false_negatives = sum(
            1 for r in labeled if not r.passed_threshold and r.feedback == FEEDBACK_MISSED_IMPORTANT
        )
        if len(labeled) < self.min_samples:
            return ThresholdAdjustment(
                previous_threshold=current_threshold,
                new_threshold=current_threshold,
                adjustment=0,
                false_positives=false_positives,
                false_negatives=false_negatives,
                labeled_samples=len(labeled),
            )

        # Rounded first so float noise (3 * 0.1 * 10 == 3.0000000000000004) cannot tip the ceiling.
        raw = round((false_positives - false_negatives) * learning_rate * 10, 9)
        adjustment = math.ceil(raw) if raw > 0 else math.floor(raw)
        new_threshold = max(self.min_threshold, min(self.max_threshold, current_threshold + adjustment))
        return ThresholdAdjustment(
            previous_threshold=current_threshold,
            new_threshold=new_threshold,
            adjustment=adjustment,
            false_positives=false_positives,
            false_negatives=false_negatives,
            labeled_samples=len(labeled),
        )
