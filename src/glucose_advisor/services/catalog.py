"""Nutrient catalog access and detected-food matching."""

import logging
from dataclasses import dataclass
from typing import Protocol
from uuid import UUID, uuid4

from glucose_advisor.domain.errors import CatalogUnavailableError
from glucose_advisor.domain.foods import FoodCategory, NutrientRecord
from glucose_advisor.services.cache import Cache

MIN_SEARCH_TERM_LENGTH = 4

_NO_MATCH = "__no_match__"
_CACHE_PREFIX = "catalog:"

_logger = logging.getLogger(__name__)


class FoodCatalogRepository(Protocol):
    """Read and maintenance interface for the nutrient catalog."""

    def find_by_exact_or_substring(self, name: str) -> NutrientRecord | None:
        """Return an active food whose name contains the text, ignoring case."""

    def search_text(self, term: str) -> NutrientRecord | None:
        """Return the first active food matching a full-text search."""

    def get_food(self, food_id: UUID) -> NutrientRecord | None:
        """Return a food by id, if present and active."""

    def search_foods(  # noqa: PLR0913
        self,
        *,
        query: str | None,
        category: FoodCategory | None,
        max_glycemic_index: float | None,
        recommended_only: bool,
        limit: int,
        offset: int,
    ) -> list[NutrientRecord]:
        """Return active foods matching the filters, ordered by name."""

    def list_recommended(self) -> list[NutrientRecord]:
        """Return active diabetes-recommended foods by ascending GI."""

    def list_by_glycemic_index(
        self, min_index: float, max_index: float
    ) -> list[NutrientRecord]:
        """Return active foods with a GI inside the inclusive range."""

    def create_food(self, record: NutrientRecord) -> NutrientRecord:
        """Insert a food and return it."""

    def update_food(self, record: NutrientRecord) -> NutrientRecord:
        """Replace a food's fields and return it."""

    def deactivate_food(self, food_id: UUID) -> bool:
        """Soft delete a food; return false when it does not exist."""


@dataclass
class CatalogService:
    """Resolves detected food names to catalog records."""

    repository: FoodCatalogRepository
    cache: Cache
    match_ttl_seconds: int = 3600

    def match(self, detected_name: str) -> NutrientRecord | None:
        """Match a free-text food name: substring first, then per-term search."""
        name = detected_name.strip()
        if not name:
            return None
        cache_key = f"{_CACHE_PREFIX}match:{name.lower()}"
        cached = self.cache.get(cache_key)
        if cached == _NO_MATCH:
            return None
        if isinstance(cached, NutrientRecord):
            return cached

        record = self._lookup(self.repository.find_by_exact_or_substring, name)
        if record is None:
            for term in name.split():
                if len(term) < MIN_SEARCH_TERM_LENGTH:
                    continue
                record = self._lookup(self.repository.search_text, term)
                if record is not None:
                    break

        if record is None:
            _logger.info("No catalog match for %r", name)
        self.cache.set(
            cache_key,
            record if record is not None else _NO_MATCH,
            ttl_seconds=self.match_ttl_seconds,
        )
        return record

    def get_food(self, food_id: UUID) -> NutrientRecord | None:
        """Return a catalog food by id."""
        return self._lookup(self.repository.get_food, food_id)

    def search(  # noqa: PLR0913
        self,
        query: str | None = None,
        *,
        category: FoodCategory | None = None,
        max_glycemic_index: float | None = None,
        recommended_only: bool = False,
        page: int = 1,
        limit: int = 20,
    ) -> list[NutrientRecord]:
        """Browse the catalog with optional filters."""
        return self.repository.search_foods(
            query=query.strip() if query else None,
            category=category,
            max_glycemic_index=max_glycemic_index,
            recommended_only=recommended_only,
            limit=limit,
            offset=(max(page, 1) - 1) * limit,
        )

    def list_recommended(self) -> list[NutrientRecord]:
        """Return foods recommended for people with diabetes."""
        return self.repository.list_recommended()

    def list_by_glycemic_index(
        self, min_index: float = 0, max_index: float = 100
    ) -> list[NutrientRecord]:
        """Return foods within a glycemic index range."""
        return self.repository.list_by_glycemic_index(min_index, max_index)

    def create_food(self, payload: dict[str, object]) -> NutrientRecord:
        """Validate and insert a new catalog food."""
        record = NutrientRecord.create(id=uuid4(), **payload)
        if not record.calories_consistent():
            _logger.warning(
                "Calories disagree with macros",
                extra={"food": record.name, "calories": record.calories},
            )
        created = self.repository.create_food(record)
        self.cache.invalidate(_CACHE_PREFIX)
        return created

    def update_food(
        self, food_id: UUID, payload: dict[str, object]
    ) -> NutrientRecord | None:
        """Apply a partial update and re-derive defaults."""
        current = self.repository.get_food(food_id)
        if current is None:
            return None
        merged: dict[str, object] = {
            "name": current.name,
            "category": current.category,
            "glycemic_index": current.glycemic_index,
            "glycemic_load": current.glycemic_load,
            "carbohydrates_g": current.carbohydrates_g,
            "fat_g": current.fat_g,
            "protein_g": current.protein_g,
            "fiber_g": current.fiber_g,
            "digestion_time_min": current.digestion_time_min,
            "calories": current.calories,
            "diabetes_recommended": current.diabetes_recommended,
            "description": current.description,
        }
        if "glycemic_index" in payload and "diabetes_recommended" not in payload:
            merged["diabetes_recommended"] = None
        merged.update(payload)
        record = NutrientRecord.create(id=current.id, **merged)
        updated = self.repository.update_food(record)
        self.cache.invalidate(_CACHE_PREFIX)
        return updated

    def deactivate_food(self, food_id: UUID) -> bool:
        """Soft delete a catalog food."""
        removed = self.repository.deactivate_food(food_id)
        self.cache.invalidate(_CACHE_PREFIX)
        return removed

    @staticmethod
    def _lookup(func, argument):  # type: ignore[no-untyped-def]
        try:
            return func(argument)
        except Exception as exc:
            raise CatalogUnavailableError(f"Catalog lookup failed: {exc}") from exc
