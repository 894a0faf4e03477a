"""Score history schemas."""

from datetime import datetime

from pydantic import BaseModel, ConfigDict


class ScoreHistoryRead(BaseModel):
    """Serialized score history record."""

    model_config = ConfigDict(from_attributes=True)

    id: int
    timestamp: datetime
    source_log_id: str
    title: str
    date_text: str
    time_text: str
    item_type: str
    score: int
    threshold: int
    factors_json: dict[str, bool]
    passed_threshold: bool
    feedback: str
    approval_item_id: str | None
