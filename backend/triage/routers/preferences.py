"""Preference routes for operator tuning."""

from fastapi import APIRouter, Depends, HTTPException
from sqlalchemy.orm import Session

from triage.db.dependencies import get_db
from triage.schemas.common import ApiResponse
from triage.schemas.preference import PreferencesRead, PreferencesUpdateRequest
from triage.services.preferences import PreferenceService

router = APIRouter(prefix="/preferences")


@router.get("", response_model=ApiResponse[PreferencesRead])
def get_preferences(db: Session = Depends(get_db)) -> ApiResponse[PreferencesRead]:
    """Return the threshold, learning rate, and weights in effect right now."""

    return ApiResponse(data=PreferencesRead.model_validate(PreferenceService(db).snapshot()))


@router.patch("", response_model=ApiResponse[PreferencesRead])
def patch_preferences(
    payload: PreferencesUpdateRequest,
    db: Session = Depends(get_db),
) -> ApiResponse[PreferencesRead]:
    """Apply operator edits; they take effect on the next run."""

    preferences = PreferenceService(db)
    try:
        if payload.score_threshold is not None:
            preferences.set_threshold(payload.score_threshold)
        if payload.learning_rate is not None:
            preferences.set_learning_rate(payload.learning_rate)
        for factor, weight in (payload.weights or {}).items():
            preferences.set_weight(factor, weight)
    except (KeyError, ValueError) as exc:
        db.rollback()
        raise HTTPException(status_code=422, detail=str(exc)) from exc
    db.commit()
    return ApiResponse(data=PreferencesRead.model_validate(preferences.snapshot()))
