"""Manual triggers for the periodic runs."""

from fastapi import APIRouter, HTTPException

from triage.extraction.llm_extractor import ExtractionError
from triage.integrations.calendar_client import CommitError
from triage.integrations.lifelog_source import TranscriptSourceError
from triage.schemas.common import ApiResponse
from triage.schemas.runs import ApprovalScanResult, DetectionRunResult, ThresholdAdjustmentRead
from triage.services.jobs import run_approval_job, run_detection_job, run_relearn_job

router = APIRouter(prefix="/runs")


@router.post("/detect", response_model=ApiResponse[DetectionRunResult])
def post_detect() -> ApiResponse[DetectionRunResult]:
    """Run detect-and-score now."""

    try:
        return ApiResponse(data=run_detection_job())
    except (ExtractionError, TranscriptSourceError, CommitError) as exc:
        raise HTTPException(status_code=503, detail=str(exc)) from exc


@router.post("/apply-approvals", response_model=ApiResponse[ApprovalScanResult])
def post_apply_approvals() -> ApiResponse[ApprovalScanResult]:
    """Commit approved items now."""

    try:
        return ApiResponse(data=run_approval_job())
    except CommitError as exc:
        raise HTTPException(status_code=503, detail=str(exc)) from exc


@router.post("/relearn", response_model=ApiResponse[ThresholdAdjustmentRead])
def post_relearn() -> ApiResponse[ThresholdAdjustmentRead]:
    """Recompute the score threshold from feedback now."""

    return ApiResponse(data=ThresholdAdjustmentRead.model_validate(run_relearn_job()))
