"""Approval item schemas."""

from datetime import datetime
from typing import Literal

from pydantic import BaseModel, ConfigDict


class ApprovalItemRead(BaseModel):
    """Serialized approval item."""

    model_config = ConfigDict(from_attributes=True)

    id: str
    status: str
    title: str
    date_text: str
    time_text: str
    item_type: str
    details: str
    score: int | None
    feedback: str | None
    source_log_id: str
    source_log_title: str
    source_log_started_at: datetime | None
    outcome: str | None
    external_id: str | None
    error_message: str | None
    created_at: datetime
    updated_at: datetime
    processed_at: datetime | None


class FeedbackRequest(BaseModel):
    """Reviewer label used by threshold learning."""

    feedback: Literal["none", "correct", "should_not_have_included", "missed_important"]


class ClearPendingResult(BaseModel):
    deleted: int
