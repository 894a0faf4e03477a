"""Periodic run summary schemas."""

from pydantic import BaseModel, ConfigDict


class DetectionRunResult(BaseModel):
    """Detect-and-score run summary."""

    transcripts_seen: int = 0
    transcripts_processed: int = 0
    transcripts_skipped: int = 0
    extraction_failures: int = 0
    candidates_scored: int = 0
    candidates_passed: int = 0
    pending_created: int = 0
    direct_added: int = 0
    direct_add_failures: int = 0


class ApprovalScanResult(BaseModel):
    """Apply-approvals run summary."""

    scanned: int = 0
    committed: int = 0
    duplicates: int = 0
    errors: int = 0
    skipped: int = 0


class ThresholdAdjustmentRead(BaseModel):
    """Threshold learning run summary."""

    model_config = ConfigDict(from_attributes=True)

    previous_threshold: int
    new_threshold: int
    adjustment: int
    false_positives: int
    false_negatives: int
    labeled_samples: int
