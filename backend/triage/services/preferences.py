"""Preference store access, read fresh from the database on every call."""

from __future__ import annotations

import logging

from sqlalchemy import select
from sqlalchemy.orm import Session

from triage.config import get_settings
from triage.models.preference import Preference
from triage.scoring.rules import DEFAULT_WEIGHTS, WeightTable

logger = logging.getLogger(__name__)

SCORE_THRESHOLD_KEY = "score_threshold"
LEARNING_RATE_KEY = "learning_rate"
WEIGHT_KEY_PREFIX = "weight."


class PreferenceService:
    """Typed accessors over the flat preference table.

    Values are never cached so that an operator's manual edit applies to the
    very next scoring or learning run.
    """

    def __init__(self, db: Session) -> None:
        self._db = db

    def get_threshold(self) -> int:
        value = self._get(SCORE_THRESHOLD_KEY)
        if value is None:
            return get_settings().default_score_threshold
        try:
            return int(float(value))
        except ValueError:
            logger.warning("preferences.invalid_value key=%s value=%r", SCORE_THRESHOLD_KEY, value)
            return get_settings().default_score_threshold

    def set_threshold(self, threshold: int) -> None:
        if not 0 <= threshold <= 100:
            raise ValueError("Score threshold must be between 0 and 100.")
        self._set(SCORE_THRESHOLD_KEY, str(int(threshold)))

    def get_learning_rate(self) -> float:
        value = self._get(LEARNING_RATE_KEY)
        if value is None:
            return get_settings().default_learning_rate
        try:
            return float(value)
        except ValueError:
            logger.warning("preferences.invalid_value key=%s value=%r", LEARNING_RATE_KEY, value)
            return get_settings().default_learning_rate

    def set_learning_rate(self, learning_rate: float) -> None:
        if learning_rate < 0:
            raise ValueError("Learning rate must not be negative.")
        self._set(LEARNING_RATE_KEY, repr(float(learning_rate)))

    def get_weight_table(self) -> WeightTable:
        rows = self._db.scalars(select(Preference).where(Preference.key.startswith(WEIGHT_KEY_PREFIX))).all()
        table = WeightTable()
        for row in rows:
            name = row.key[len(WEIGHT_KEY_PREFIX) :]
            if name not in DEFAULT_WEIGHTS:
                continue
            try:
                table.set(name, int(float(row.value)))
            except ValueError:
                logger.warning("preferences.invalid_value key=%s value=%r", row.key, row.value)
        return table

    def set_weight(self, factor: str, weight: int) -> None:
        if factor not in DEFAULT_WEIGHTS:
            raise KeyError(f"Unknown scoring factor: {factor}")
        self._set(f"{WEIGHT_KEY_PREFIX}{factor}", str(int(weight)))

    def snapshot(self) -> dict[str, object]:
        return {
            "score_threshold": self.get_threshold(),
            "learning_rate": self.get_learning_rate(),
            "weights": self.get_weight_table().as_dict(),
        }

    def _get(self, key: str) -> str | None:
        return self._db.scalar(select(Preference.value).where(Preference.key == key))

    def _set(self, key: str, value: str) -> None:
        row = self._db.get(Preference, key)
        if row is None:
            self._db.add(Preference(key=key, value=value))
        else:
            row.value = value
        self._db.flush()
