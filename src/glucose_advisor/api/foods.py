"""Nutrient catalog endpoints."""

from __future__ import annotations

from uuid import UUID  # noqa: TC003

from fastapi import APIRouter, HTTPException, Query, Request, status

from glucose_advisor.api.deps import get_container, not_found
from glucose_advisor.api.schemas import food_payload
from glucose_advisor.domain.errors import CatalogUnavailableError
from glucose_advisor.domain.foods import FoodCategory  # noqa: TC001

router = APIRouter(prefix="/foods", tags=["foods"])


@router.get("")
async def search_foods(  # noqa: PLR0913
    request: Request,
    q: str | None = None,
    category: FoodCategory | None = None,
    max_glycemic_index: float | None = Query(default=None, ge=0, le=100),
    recommended: bool = False,
    page: int = Query(default=1, ge=1),
    limit: int = Query(default=20, ge=1, le=100),
) -> dict[str, object]:
    """Browse the catalog."""
    foods = get_container(request).catalog_service.search(
        q,
        category=category,
        max_glycemic_index=max_glycemic_index,
        recommended_only=recommended,
        page=page,
        limit=limit,
    )
    return {"foods": [food_payload(food) for food in foods], "page": page}


@router.get("/recommended")
async def recommended_foods(request: Request) -> dict[str, object]:
    """Foods recommended for people with diabetes, lowest GI first."""
    foods = get_container(request).catalog_service.list_recommended()
    return {"foods": [food_payload(food) for food in foods]}


@router.get("/glycemic-index")
async def foods_by_glycemic_index(
    request: Request,
    min_index: float = Query(default=0, ge=0, le=100),
    max_index: float = Query(default=100, ge=0, le=100),
) -> dict[str, object]:
    """Foods with a glycemic index inside the range."""
    foods = get_container(request).catalog_service.list_by_glycemic_index(
        min_index, max_index
    )
    return {"foods": [food_payload(food) for food in foods]}


@router.get("/match")
async def match_food(request: Request, name: str) -> dict[str, object]:
    """Resolve a free-text food name to a catalog entry."""
    try:
        record = get_container(request).catalog_service.match(name)
    except CatalogUnavailableError as exc:
        raise HTTPException(
            status_code=status.HTTP_503_SERVICE_UNAVAILABLE, detail=str(exc)
        ) from exc
    return {"food": food_payload(record) if record is not None else None}


@router.get("/{food_id}")
async def get_food(food_id: UUID, request: Request) -> dict[str, object]:
    """Return one catalog food."""
    record = get_container(request).catalog_service.get_food(food_id)
    if record is None:
        raise not_found("Food")
    return food_payload(record)
