"""Food analysis endpoints."""

from __future__ import annotations

from datetime import datetime  # noqa: TC003
from uuid import UUID  # noqa: TC003

from fastapi import APIRouter, Depends, HTTPException, Query, Request, status

from glucose_advisor.api.deps import get_container, not_found, require_user_id
from glucose_advisor.api.schemas import (
    ShareRequest,
    analysis_payload,
    outcome_payload,
)
from glucose_advisor.domain.analysis import (  # noqa: TC001
    AnalysisFeedback,
    AnalysisRequest,
    MealType,
    RiskLevel,
)

router = APIRouter(prefix="/analyses", tags=["analyses"])


@router.post("", status_code=status.HTTP_201_CREATED)
async def create_analysis(
    payload: AnalysisRequest,
    request: Request,
    include_advisory: bool = False,
    user_id: UUID = Depends(require_user_id),
) -> dict[str, object]:
    """Run the glucose impact pipeline for detected foods."""
    outcome = await get_container(request).analysis_service.analyze(
        user_id, payload, include_advisory=include_advisory
    )
    return outcome_payload(outcome)


@router.get("")
async def list_analyses(  # noqa: PLR0913
    request: Request,
    meal_type: MealType | None = None,
    risk_level: RiskLevel | None = None,
    start: datetime | None = None,
    end: datetime | None = None,
    page: int = Query(default=1, ge=1),
    limit: int = Query(default=20, ge=1, le=100),
    user_id: UUID = Depends(require_user_id),
) -> dict[str, object]:
    """Return the caller's analysis history."""
    analyses = get_container(request).analysis_service.history(
        user_id,
        meal_type=meal_type,
        risk_level=risk_level,
        start=start,
        end=end,
        page=page,
        limit=limit,
    )
    return {
        "analyses": [analysis_payload(analysis) for analysis in analyses],
        "page": page,
    }


@router.get("/stats")
async def analysis_stats(
    request: Request,
    days: int = Query(default=30, ge=1, le=365),
    user_id: UUID = Depends(require_user_id),
) -> dict[str, object]:
    """Summarize recent analyses."""
    stats = get_container(request).analysis_service.stats(user_id, days)
    return {
        "total_analyses": stats.total_analyses,
        "average_rating": stats.average_rating,
        "high_risk_meals": stats.high_risk_meals,
        "average_calories": stats.average_calories,
        "average_carbs": stats.average_carbs,
        "period_days": stats.period_days,
    }


@router.get("/{analysis_id}")
async def get_analysis(
    analysis_id: UUID, request: Request, user_id: UUID = Depends(require_user_id)
) -> dict[str, object]:
    """Return one analysis."""
    analysis = get_container(request).analysis_service.get_analysis(
        user_id, analysis_id
    )
    if analysis is None:
        raise not_found("Analysis")
    return analysis_payload(analysis)


@router.put("/{analysis_id}/feedback")
async def update_feedback(
    analysis_id: UUID,
    feedback: AnalysisFeedback,
    request: Request,
    user_id: UUID = Depends(require_user_id),
) -> dict[str, object]:
    """Store the caller's feedback on an analysis."""
    analysis = get_container(request).analysis_service.update_feedback(
        user_id, analysis_id, feedback
    )
    if analysis is None:
        raise not_found("Analysis")
    return analysis_payload(analysis)


@router.post("/{analysis_id}/share")
async def share_analysis(
    analysis_id: UUID,
    payload: ShareRequest,
    request: Request,
    user_id: UUID = Depends(require_user_id),
) -> dict[str, object]:
    """Share an analysis with e-mail addresses."""
    try:
        analysis = get_container(request).analysis_service.share(
            user_id, analysis_id, payload.emails
        )
    except ValueError as exc:
        raise HTTPException(
            status_code=status.HTTP_422_UNPROCESSABLE_ENTITY, detail=str(exc)
        ) from exc
    if analysis is None:
        raise not_found("Analysis")
    return {"shared_with": analysis.shared_with}


@router.delete("/{analysis_id}", status_code=status.HTTP_204_NO_CONTENT)
async def delete_analysis(
    analysis_id: UUID, request: Request, user_id: UUID = Depends(require_user_id)
) -> None:
    """Soft delete an analysis."""
    if not get_container(request).analysis_service.delete(user_id, analysis_id):
        raise not_found("Analysis")
