"""Preference schemas."""

from __future__ import annotations

from pydantic import BaseModel, Field, model_validator


class PreferencesRead(BaseModel):
    """Current threshold, learning rate, and factor weights."""

    score_threshold: int
    learning_rate: float
    weights: dict[str, int]


class PreferencesUpdateRequest(BaseModel):
    """Operator edits to the preference store."""

    score_threshold: int | None = Field(default=None, ge=0, le=100)
    learning_rate: float | None = Field(default=None, ge=0)
    weights: dict[str, int] | None = None

    @model_validator(mode="after")
    def validate_non_empty_update(self) -> "PreferencesUpdateRequest":
        if self.score_threshold is None and self.learning_rate is None and not self.weights:
            raise ValueError("At least one field must be provided.")
        return self
