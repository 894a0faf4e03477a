"""Threshold relearning from accumulated reviewer feedback."""

from __future__ import annotations

import logging

from sqlalchemy import select
from sqlalchemy.orm import Session

from triage.models.score_history import FEEDBACK_NONE, ScoreHistoryRecord
from triage.scoring.learner import ThresholdAdjustment, ThresholdLearner
from triage.services.preferences import PreferenceService

logger = logging.getLogger(__name__)


def run_threshold_adjustment(db: Session, *, learner: ThresholdLearner | None = None) -> ThresholdAdjustment:
    """Recompute the score threshold and persist it when it moved."""

    preferences = PreferenceService(db)
    history = db.scalars(select(ScoreHistoryRecord).where(ScoreHistoryRecord.feedback != FEEDBACK_NONE)).all()
    adjustment = (learner or ThresholdLearner()).adjust(
        history,
        preferences.get_threshold(),
        preferences.get_learning_rate(),
    )
    if adjustment.changed:
        preferences.set_threshold(adjustment.new_threshold)
        db.commit()
    logger.info(
        "learning.threshold_adjustment labeled=%d false_positives=%d false_negatives=%d previous=%d new=%d",
        adjustment.labeled_samples,
        adjustment.false_positives,
        adjustment.false_negatives,
        adjustment.previous_threshold,
        adjustment.new_threshold,
    )
    return adjustment
