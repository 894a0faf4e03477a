"""Candidate scoring and threshold learning."""

from triage.scoring.engine import ScoredEvent, ScoreFactors, ScoringEngine
from triage.scoring.learner import ThresholdAdjustment, ThresholdLearner
from triage.scoring.rules import WeightTable

__all__ = [
    "ScoreFactors",
    "ScoredEvent",
    "ScoringEngine",
    "ThresholdAdjustment",
    "ThresholdLearner",
    "WeightTable",
]
