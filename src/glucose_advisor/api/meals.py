"""Meal log endpoints."""

from __future__ import annotations

from datetime import datetime  # noqa: TC003
from uuid import UUID  # noqa: TC003

from fastapi import APIRouter, Depends, HTTPException, Query, Request, status

from glucose_advisor.api.deps import get_container, not_found, require_user_id
from glucose_advisor.api.schemas import PortionUpdate, meal_payload
from glucose_advisor.domain.analysis import MealType  # noqa: TC001
from glucose_advisor.domain.meals import (  # noqa: TC001
    MealEntryInput,
    MealEntryUpdate,
    MealGlucoseInput,
)

router = APIRouter(prefix="/meals", tags=["meals"])


@router.post("", status_code=status.HTTP_201_CREATED)
async def create_meal(
    payload: MealEntryInput,
    request: Request,
    user_id: UUID = Depends(require_user_id),
) -> dict[str, object]:
    """Log a meal."""
    entry = get_container(request).meal_service.create_entry(user_id, payload)
    return meal_payload(entry)


@router.get("")
async def list_meals(  # noqa: PLR0913
    request: Request,
    meal_type: MealType | None = None,
    start: datetime | None = None,
    end: datetime | None = None,
    page: int = Query(default=1, ge=1),
    limit: int = Query(default=20, ge=1, le=100),
    user_id: UUID = Depends(require_user_id),
) -> dict[str, object]:
    """Return the caller's meal log."""
    entries = get_container(request).meal_service.list_entries(
        user_id, meal_type=meal_type, start=start, end=end, page=page, limit=limit
    )
    return {"meals": [meal_payload(entry) for entry in entries], "page": page}


@router.get("/{entry_id}")
async def get_meal(
    entry_id: UUID, request: Request, user_id: UUID = Depends(require_user_id)
) -> dict[str, object]:
    """Return one meal entry."""
    entry = get_container(request).meal_service.get_entry(user_id, entry_id)
    if entry is None:
        raise not_found("Meal entry")
    return meal_payload(entry)


@router.patch("/{entry_id}")
async def update_meal(
    entry_id: UUID,
    payload: MealEntryUpdate,
    request: Request,
    user_id: UUID = Depends(require_user_id),
) -> dict[str, object]:
    """Update notes, mood, tags or items."""
    entry = get_container(request).meal_service.update_entry(
        user_id, entry_id, payload
    )
    if entry is None:
        raise not_found("Meal entry")
    return meal_payload(entry)


@router.patch("/{entry_id}/items/{item_index}")
async def update_meal_item(
    entry_id: UUID,
    item_index: int,
    payload: PortionUpdate,
    request: Request,
    user_id: UUID = Depends(require_user_id),
) -> dict[str, object]:
    """Change the portion of one item."""
    entry = get_container(request).meal_service.update_item_portion(
        user_id, entry_id, item_index, payload.portion_amount
    )
    if entry is None:
        raise not_found("Meal item")
    return meal_payload(entry)


@router.post("/{entry_id}/glucose")
async def add_meal_glucose(
    entry_id: UUID,
    payload: MealGlucoseInput,
    request: Request,
    user_id: UUID = Depends(require_user_id),
) -> dict[str, object]:
    """Attach a reading taken before or after the meal."""
    try:
        entry = get_container(request).meal_service.add_glucose(
            user_id, entry_id, payload
        )
    except ValueError as exc:
        raise HTTPException(
            status_code=status.HTTP_422_UNPROCESSABLE_ENTITY, detail=str(exc)
        ) from exc
    if entry is None:
        raise not_found("Meal entry")
    return meal_payload(entry)


@router.delete("/{entry_id}", status_code=status.HTTP_204_NO_CONTENT)
async def delete_meal(
    entry_id: UUID, request: Request, user_id: UUID = Depends(require_user_id)
) -> None:
    """Soft delete a meal entry."""
    if not get_container(request).meal_service.delete_entry(user_id, entry_id):
        raise not_found("Meal entry")
