"""Glucose reading endpoints."""

from __future__ import annotations

from datetime import datetime  # noqa: TC003
from uuid import UUID  # noqa: TC003

from fastapi import APIRouter, Depends, Query, Request, status

from glucose_advisor.api.deps import get_container, not_found, require_user_id
from glucose_advisor.api.schemas import reading_payload
from glucose_advisor.domain.glucose import (  # noqa: TC001
    GlucoseReadingInput,
    ReadingType,
)

router = APIRouter(prefix="/glucose", tags=["glucose"])


@router.post("", status_code=status.HTTP_201_CREATED)
async def record_reading(
    payload: GlucoseReadingInput,
    request: Request,
    user_id: UUID = Depends(require_user_id),
) -> dict[str, object]:
    """Store a glucose reading."""
    reading = get_container(request).glucose_service.record(user_id, payload)
    return reading_payload(reading)


@router.get("/latest")
async def latest_reading(
    request: Request, user_id: UUID = Depends(require_user_id)
) -> dict[str, object]:
    """Return the caller's most recent reading."""
    reading = get_container(request).glucose_service.latest(user_id)
    if reading is None:
        raise not_found("Glucose reading")
    return reading_payload(reading)


@router.get("")
async def list_readings(  # noqa: PLR0913
    request: Request,
    start: datetime | None = None,
    end: datetime | None = None,
    reading_type: ReadingType | None = None,
    page: int = Query(default=1, ge=1),
    limit: int = Query(default=20, ge=1, le=100),
    user_id: UUID = Depends(require_user_id),
) -> dict[str, object]:
    """Return the caller's reading history."""
    readings = get_container(request).glucose_service.history(
        user_id,
        start=start,
        end=end,
        reading_type=reading_type,
        page=page,
        limit=limit,
    )
    return {"readings": [reading_payload(item) for item in readings], "page": page}


@router.get("/stats")
async def reading_stats(
    request: Request,
    days: int = Query(default=7, ge=1, le=365),
    user_id: UUID = Depends(require_user_id),
) -> dict[str, object]:
    """Summarize recent readings."""
    stats = get_container(request).glucose_service.stats(user_id, days)
    return {
        "average_glucose": stats.average_glucose,
        "count": stats.count,
        "min_value": stats.min_value,
        "max_value": stats.max_value,
        "period_days": stats.period_days,
    }


@router.put("/{reading_id}")
async def update_reading(
    reading_id: UUID,
    payload: GlucoseReadingInput,
    request: Request,
    user_id: UUID = Depends(require_user_id),
) -> dict[str, object]:
    """Replace a reading."""
    reading = get_container(request).glucose_service.update(
        user_id, reading_id, payload
    )
    if reading is None:
        raise not_found("Glucose reading")
    return reading_payload(reading)


@router.delete("/{reading_id}", status_code=status.HTTP_204_NO_CONTENT)
async def delete_reading(
    reading_id: UUID, request: Request, user_id: UUID = Depends(require_user_id)
) -> None:
    """Soft delete a reading."""
    if not get_container(request).glucose_service.delete(user_id, reading_id):
        raise not_found("Glucose reading")
