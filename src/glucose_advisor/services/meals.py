"""Meal logging service."""

import logging
from dataclasses import dataclass, replace
from datetime import UTC, datetime
from typing import Protocol
from uuid import UUID, uuid4

from glucose_advisor.domain.analysis import MealAggregate, MealType
from glucose_advisor.domain.errors import CatalogUnavailableError
from glucose_advisor.domain.foods import NutrientRecord
from glucose_advisor.domain.meals import (
    MealEntry,
    MealEntryInput,
    MealEntryUpdate,
    MealGlucoseInput,
    MealGlucoseReading,
    MealItem,
    MealItemInput,
    NutritionInfoInput,
)
from glucose_advisor.services.aggregation import (
    aggregate_contributions,
    per_100g_values,
    scale_per_100g,
)
from glucose_advisor.services.catalog import CatalogService

_logger = logging.getLogger(__name__)


class MealRepository(Protocol):
    """Persistence interface for meal entries."""

    def create_entry(self, entry: MealEntry) -> MealEntry:
        """Insert a meal entry and return it."""

    def get_entry(self, user_id: UUID, entry_id: UUID) -> MealEntry | None:
        """Return an active entry owned by the user."""

    def list_entries(  # noqa: PLR0913
        self,
        user_id: UUID,
        *,
        meal_type: MealType | None,
        start: datetime | None,
        end: datetime | None,
        limit: int,
        offset: int,
    ) -> list[MealEntry]:
        """Return active entries, newest first."""

    def update_entry(self, entry: MealEntry) -> MealEntry:
        """Replace a meal entry and return it."""


@dataclass
class MealService:
    """Service that prices meal items and persists meal entries."""

    catalog: CatalogService
    repository: MealRepository

    def create_entry(self, user_id: UUID, payload: MealEntryInput) -> MealEntry:
        """Price items and store a new meal entry."""
        items = [self._price_item(item) for item in payload.items]
        entry = MealEntry(
            id=uuid4(),
            user_id=user_id,
            meal_type=payload.meal_type,
            items=items,
            totals=_totals(items),
            logged_at=payload.logged_at or datetime.now(tz=UTC),
            analysis_id=payload.analysis_id,
            notes=payload.notes,
            mood=payload.mood,
            tags=list(payload.tags),
        )
        return self.repository.create_entry(entry)

    def list_entries(  # noqa: PLR0913
        self,
        user_id: UUID,
        *,
        meal_type: MealType | None = None,
        start: datetime | None = None,
        end: datetime | None = None,
        page: int = 1,
        limit: int = 20,
    ) -> list[MealEntry]:
        """Return a page of the user's meal entries."""
        return self.repository.list_entries(
            user_id,
            meal_type=meal_type,
            start=start,
            end=end,
            limit=limit,
            offset=(max(page, 1) - 1) * limit,
        )

    def get_entry(self, user_id: UUID, entry_id: UUID) -> MealEntry | None:
        """Return a meal entry."""
        return self.repository.get_entry(user_id, entry_id)

    def update_entry(
        self, user_id: UUID, entry_id: UUID, payload: MealEntryUpdate
    ) -> MealEntry | None:
        """Apply a partial update; replacing items refreshes totals."""
        entry = self.repository.get_entry(user_id, entry_id)
        if entry is None:
            return None
        changes: dict[str, object] = {}
        if payload.items is not None:
            items = [self._price_item(item) for item in payload.items]
            changes["items"] = items
            changes["totals"] = _totals(items)
        if payload.notes is not None:
            changes["notes"] = payload.notes
        if payload.mood is not None:
            changes["mood"] = payload.mood
        if payload.tags is not None:
            changes["tags"] = list(payload.tags)
        return self.repository.update_entry(replace(entry, **changes))

    def update_item_portion(
        self, user_id: UUID, entry_id: UUID, item_index: int, portion_amount: float
    ) -> MealEntry | None:
        """Change one item's portion and recompute it from its snapshot."""
        if portion_amount <= 0:
            raise ValueError("portion_amount must be positive")
        entry = self.repository.get_entry(user_id, entry_id)
        if entry is None or not 0 <= item_index < len(entry.items):
            return None
        item = entry.items[item_index]
        nutritional_data = (
            scale_per_100g(item.per_100g, portion_amount)
            if item.per_100g is not None
            else None
        )
        items = list(entry.items)
        items[item_index] = replace(
            item, portion_amount=portion_amount, nutritional_data=nutritional_data
        )
        return self.repository.update_entry(
            replace(entry, items=items, totals=_totals(items))
        )

    def add_glucose(
        self, user_id: UUID, entry_id: UUID, payload: MealGlucoseInput
    ) -> MealEntry | None:
        """Attach a reading taken before or after the meal."""
        entry = self.repository.get_entry(user_id, entry_id)
        if entry is None:
            return None
        reading = MealGlucoseReading(
            value=payload.value,
            recorded_at=payload.recorded_at or datetime.now(tz=UTC),
            source=payload.source,
            minutes_after_meal=payload.minutes_after_meal,
        )
        if payload.kind == "before":
            updated = replace(entry, glucose_before=reading)
        else:
            if payload.minutes_after_meal is None:
                raise ValueError("minutes_after_meal is required for after readings")
            readings = sorted(
                [*entry.glucose_after, reading],
                key=lambda item: item.minutes_after_meal or 0,
            )
            updated = replace(entry, glucose_after=readings)
        return self.repository.update_entry(updated)

    def delete_entry(self, user_id: UUID, entry_id: UUID) -> bool:
        """Soft delete a meal entry."""
        entry = self.repository.get_entry(user_id, entry_id)
        if entry is None:
            return False
        self.repository.update_entry(replace(entry, is_active=False))
        return True

    def _price_item(self, item: MealItemInput) -> MealItem:
        per_100g: dict[str, float] | None = None
        if item.food_id is not None:
            record = self._catalog_food(item.food_id)
            if record is not None:
                per_100g = per_100g_values(record)
        if per_100g is None and item.nutrition is not None:
            if item.nutrition.is_complete():
                per_100g = _per_100g_from_portion(item.nutrition, item.portion_amount)
        nutritional_data = (
            scale_per_100g(per_100g, item.portion_amount)
            if per_100g is not None
            else None
        )
        return MealItem(
            name=item.name,
            portion_amount=item.portion_amount,
            portion_unit=item.portion_unit,
            source=item.source,
            food_id=item.food_id,
            nutritional_data=nutritional_data,
            per_100g=per_100g,
            confidence=item.confidence,
        )

    def _catalog_food(self, food_id: UUID) -> NutrientRecord | None:
        try:
            record = self.catalog.get_food(food_id)
        except CatalogUnavailableError:
            _logger.exception(
                "Catalog lookup failed for meal item",
                extra={"food_id": str(food_id)},
            )
            return None
        if record is None:
            _logger.warning(
                "Meal item references unknown food",
                extra={"food_id": str(food_id)},
            )
        return record


def _per_100g_from_portion(
    nutrition: NutritionInfoInput, portion_amount: float
) -> dict[str, float]:
    factor = 100 / portion_amount
    return {
        "calories": (nutrition.calories or 0.0) * factor,
        "carbohydrates_g": (nutrition.carbohydrates or 0.0) * factor,
        "protein_g": (nutrition.protein or 0.0) * factor,
        "fat_g": (nutrition.fat or 0.0) * factor,
        "fiber_g": (nutrition.fiber or 0.0) * factor,
        "glycemic_index": nutrition.glycemic_index or 0.0,
        "glycemic_load": (nutrition.glycemic_load or 0.0) * factor,
    }


def _totals(items: list[MealItem]) -> MealAggregate:
    return aggregate_contributions(item.nutritional_data for item in items)
