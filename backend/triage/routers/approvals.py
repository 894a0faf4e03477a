"""Approval workflow routes for the operator."""

from fastapi import APIRouter, Depends, HTTPException, Path, Query
from sqlalchemy.orm import Session

from triage.db.dependencies import get_db
from triage.models.approval_item import APPROVAL_STATUSES
from triage.schemas.approval import ApprovalItemRead, ClearPendingResult, FeedbackRequest
from triage.schemas.common import ApiResponse
from triage.services.approvals import (
    InvalidTransitionError,
    approve_item,
    clear_pending_items,
    list_items,
    record_feedback,
    reject_item,
)

router = APIRouter(prefix="/approvals")


@router.get("", response_model=ApiResponse[list[ApprovalItemRead]])
def get_approvals(
    status: str | None = Query(default=None),
    limit: int = Query(default=100, ge=1, le=500),
    offset: int = Query(default=0, ge=0),
    db: Session = Depends(get_db),
) -> ApiResponse[list[ApprovalItemRead]]:
    """List approval items, optionally filtered by status."""

    if status is not None and status not in APPROVAL_STATUSES:
        raise HTTPException(status_code=422, detail=f"Unknown status: {status}")
    items = list_items(db, status=status, limit=limit, offset=offset)
    return ApiResponse(data=[ApprovalItemRead.model_validate(item) for item in items])


@router.post("/{item_id}/approve", response_model=ApiResponse[ApprovalItemRead])
def post_approve(
    item_id: str = Path(..., min_length=1),
    db: Session = Depends(get_db),
) -> ApiResponse[ApprovalItemRead]:
    """Approve a pending item, or re-approve one that ended in error."""

    try:
        item = approve_item(db, item_id)
    except InvalidTransitionError as exc:
        raise HTTPException(status_code=409, detail=str(exc)) from exc
    if item is None:
        raise HTTPException(status_code=404, detail="Approval item not found")
    return ApiResponse(data=ApprovalItemRead.model_validate(item))


@router.post("/{item_id}/reject", response_model=ApiResponse[ApprovalItemRead])
def post_reject(
    item_id: str = Path(..., min_length=1),
    db: Session = Depends(get_db),
) -> ApiResponse[ApprovalItemRead]:
    """Reject a pending item."""

    try:
        item = reject_item(db, item_id)
    except InvalidTransitionError as exc:
        raise HTTPException(status_code=409, detail=str(exc)) from exc
    if item is None:
        raise HTTPException(status_code=404, detail="Approval item not found")
    return ApiResponse(data=ApprovalItemRead.model_validate(item))


@router.post("/{item_id}/feedback", response_model=ApiResponse[ApprovalItemRead])
def post_feedback(
    payload: FeedbackRequest,
    item_id: str = Path(..., min_length=1),
    db: Session = Depends(get_db),
) -> ApiResponse[ApprovalItemRead]:
    """Label a reviewed item for threshold learning."""

    item = record_feedback(db, item_id, payload.feedback)
    if item is None:
        raise HTTPException(status_code=404, detail="Approval item not found")
    return ApiResponse(data=ApprovalItemRead.model_validate(item))


@router.delete("/pending", response_model=ApiResponse[ClearPendingResult])
def delete_pending(db: Session = Depends(get_db)) -> ApiResponse[ClearPendingResult]:
    """Delete every item still awaiting a decision."""

    return ApiResponse(data=ClearPendingResult(deleted=clear_pending_items(db)))
