"""Advisory meal analysis endpoints."""

from __future__ import annotations

from typing import Literal
from uuid import UUID  # noqa: TC003

from fastapi import APIRouter, Depends, HTTPException, Query, Request, status

from glucose_advisor.api.deps import get_container, not_found, require_user_id
from glucose_advisor.api.schemas import AdvisoryRequest, advisory_payload
from glucose_advisor.domain.analysis import AnalysisFeedback  # noqa: TC001
from glucose_advisor.domain.errors import AdvisoryUnavailableError

router = APIRouter(prefix="/advisory", tags=["advisory"])


@router.post("", status_code=status.HTTP_201_CREATED)
async def run_advisory(
    payload: AdvisoryRequest,
    request: Request,
    user_id: UUID = Depends(require_user_id),
) -> dict[str, object]:
    """Request an advisory for a stored analysis or meal entry."""
    container = get_container(request)
    if (payload.analysis_id is None) == (payload.meal_entry_id is None):
        raise HTTPException(
            status_code=status.HTTP_422_UNPROCESSABLE_ENTITY,
            detail="Provide exactly one of analysis_id or meal_entry_id",
        )
    analysis = None
    meal_entry = None
    if payload.analysis_id is not None:
        analysis = container.analysis_service.get_analysis(
            user_id, payload.analysis_id
        )
        if analysis is None:
            raise not_found("Analysis")
    else:
        meal_entry = container.meal_service.get_entry(user_id, payload.meal_entry_id)
        if meal_entry is None:
            raise not_found("Meal entry")

    try:
        record = await container.advisory_service.analyze(
            user_id,
            analysis=analysis,
            meal_entry=meal_entry,
            baseline_glucose=payload.baseline_glucose,
            user_profile=container.profile_service.get_profile(user_id),
            force=payload.force,
        )
    except AdvisoryUnavailableError as exc:
        raise HTTPException(
            status_code=status.HTTP_503_SERVICE_UNAVAILABLE, detail=str(exc)
        ) from exc
    return advisory_payload(record)


@router.get("")
async def list_advisories(
    request: Request,
    risk_level: Literal["low", "moderate", "high"] | None = None,
    page: int = Query(default=1, ge=1),
    limit: int = Query(default=20, ge=1, le=100),
    user_id: UUID = Depends(require_user_id),
) -> dict[str, object]:
    """Return the caller's advisory history."""
    records = get_container(request).advisory_service.history(
        user_id, risk_level=risk_level, page=page, limit=limit
    )
    return {"advisories": [advisory_payload(record) for record in records]}


@router.get("/stats")
async def advisory_stats(
    request: Request,
    days: int = Query(default=30, ge=1, le=365),
    user_id: UUID = Depends(require_user_id),
) -> dict[str, object]:
    """Summarize recent advisories."""
    stats = get_container(request).advisory_service.stats(user_id, days)
    return {
        "total_analyses": stats.total_analyses,
        "average_rating": stats.average_rating,
        "high_risk_meals": stats.high_risk_meals,
        "moderate_risk_meals": stats.moderate_risk_meals,
        "low_risk_meals": stats.low_risk_meals,
        "average_processing_time_ms": stats.average_processing_time_ms,
        "average_predicted_peak": stats.average_predicted_peak,
        "period_days": stats.period_days,
    }


@router.get("/{record_id}")
async def get_advisory(
    record_id: UUID, request: Request, user_id: UUID = Depends(require_user_id)
) -> dict[str, object]:
    """Return one advisory record."""
    record = get_container(request).advisory_service.get_record(user_id, record_id)
    if record is None:
        raise not_found("Advisory")
    return advisory_payload(record)


@router.put("/{record_id}/feedback")
async def advisory_feedback(
    record_id: UUID,
    feedback: AnalysisFeedback,
    request: Request,
    user_id: UUID = Depends(require_user_id),
) -> dict[str, object]:
    """Store the caller's feedback on an advisory."""
    record = get_container(request).advisory_service.submit_feedback(
        user_id, record_id, feedback
    )
    if record is None:
        raise not_found("Advisory")
    return advisory_payload(record)
