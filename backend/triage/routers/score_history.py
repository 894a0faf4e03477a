"""Score history routes."""

from fastapi import APIRouter, Depends, HTTPException, Path, Query
from sqlalchemy.orm import Session

from triage.db.dependencies import get_db
from triage.schemas.approval import FeedbackRequest
from triage.schemas.common import ApiResponse
from triage.schemas.score_history import ScoreHistoryRead
from triage.services.score_history import list_score_history, set_score_feedback

router = APIRouter(prefix="/score-history")


@router.get("", response_model=ApiResponse[list[ScoreHistoryRead]])
def get_score_history(
    source_log_id: str | None = Query(default=None),
    passed: bool | None = Query(default=None),
    limit: int = Query(default=200, ge=1, le=1000),
    offset: int = Query(default=0, ge=0),
    db: Session = Depends(get_db),
) -> ApiResponse[list[ScoreHistoryRead]]:
    """List scored candidates."""

    records = list_score_history(db, source_log_id=source_log_id, passed=passed, limit=limit, offset=offset)
    return ApiResponse(data=[ScoreHistoryRead.model_validate(record) for record in records])


@router.post("/{record_id}/feedback", response_model=ApiResponse[ScoreHistoryRead])
def post_score_feedback(
    payload: FeedbackRequest,
    record_id: int = Path(..., ge=1),
    db: Session = Depends(get_db),
) -> ApiResponse[ScoreHistoryRead]:
    """Label a scored candidate, e.g. one below threshold that mattered."""

    record = set_score_feedback(db, record_id, payload.feedback)
    if record is None:
        raise HTTPException(status_code=404, detail="Score history record not found")
    return ApiResponse(data=ScoreHistoryRead.model_validate(record))
