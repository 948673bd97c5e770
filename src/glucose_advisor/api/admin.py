"""Admin API endpoints for catalog maintenance."""

from __future__ import annotations

from uuid import UUID  # noqa: TC003

from fastapi import APIRouter, Depends, HTTPException, Request, status

from glucose_advisor.api.deps import get_container, not_found, require_admin
from glucose_advisor.api.schemas import FoodCreate, FoodUpdate, food_payload

router = APIRouter(
    prefix="/admin", tags=["admin"], dependencies=[Depends(require_admin)]
)


@router.get("/health")
async def admin_health() -> dict[str, str]:
    """Admin health check endpoint."""
    return {"status": "ok"}


@router.post("/foods", status_code=status.HTTP_201_CREATED)
async def create_food(payload: FoodCreate, request: Request) -> dict[str, object]:
    """Add a food to the catalog."""
    try:
        record = get_container(request).catalog_service.create_food(
            payload.model_dump()
        )
    except ValueError as exc:
        raise HTTPException(
            status_code=status.HTTP_422_UNPROCESSABLE_ENTITY, detail=str(exc)
        ) from exc
    return food_payload(record)


@router.patch("/foods/{food_id}")
async def update_food(
    food_id: UUID, payload: FoodUpdate, request: Request
) -> dict[str, object]:
    """Apply a partial update to a catalog food."""
    try:
        record = get_container(request).catalog_service.update_food(
            food_id, payload.model_dump(exclude_unset=True)
        )
    except ValueError as exc:
        raise HTTPException(
            status_code=status.HTTP_422_UNPROCESSABLE_ENTITY, detail=str(exc)
        ) from exc
    if record is None:
        raise not_found("Food")
    return food_payload(record)


@router.delete("/foods/{food_id}", status_code=status.HTTP_204_NO_CONTENT)
async def deactivate_food(food_id: UUID, request: Request) -> None:
    """Remove a food from matching and browsing."""
    if not get_container(request).catalog_service.deactivate_food(food_id):
        raise not_found("Food")
