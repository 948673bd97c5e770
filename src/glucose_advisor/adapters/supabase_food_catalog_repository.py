"""Supabase implementation of the nutrient catalog."""

from dataclasses import dataclass
from uuid import UUID

from supabase import Client

from glucose_advisor.domain.foods import FoodCategory, NutrientRecord
from glucose_advisor.services.catalog import FoodCatalogRepository

_TABLE = "foods"


@dataclass
class SupabaseFoodCatalogRepository(FoodCatalogRepository):
    """Supabase-backed nutrient catalog."""

    client: Client

    def find_by_exact_or_substring(self, name: str) -> NutrientRecord | None:
        """Return the first active food whose name contains the text."""
        response = (
            self.client.table(_TABLE)
            .select("*")
            .eq("is_active", True)
            .ilike("name", f"%{_escape_like(name)}%")
            .order("name")
            .limit(1)
            .execute()
        )
        if not response.data:
            return None
        return _parse_food(response.data[0])

    def search_text(self, term: str) -> NutrientRecord | None:
        """Return the first active food matching a full-text search."""
        response = (
            self.client.table(_TABLE)
            .select("*")
            .eq("is_active", True)
            .text_search("name", term, {"type": "plain"})
            .limit(1)
            .execute()
        )
        if not response.data:
            return None
        return _parse_food(response.data[0])

    def get_food(self, food_id: UUID) -> NutrientRecord | None:
        """Return an active food by id."""
        response = (
            self.client.table(_TABLE)
            .select("*")
            .eq("id", str(food_id))
            .eq("is_active", True)
            .limit(1)
            .execute()
        )
        if not response.data:
            return None
        return _parse_food(response.data[0])

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
        request = self.client.table(_TABLE).select("*").eq("is_active", True)
        if query:
            request = request.ilike("name", f"%{_escape_like(query)}%")
        if category is not None:
            request = request.eq("category", str(category))
        if max_glycemic_index is not None:
            request = request.lte("glycemic_index", max_glycemic_index)
        if recommended_only:
            request = request.eq("diabetes_recommended", True)
        response = request.order("name").range(offset, offset + limit - 1).execute()
        return [_parse_food(row) for row in response.data or []]

    def list_recommended(self) -> list[NutrientRecord]:
        """Return diabetes-recommended foods by ascending glycemic index."""
        response = (
            self.client.table(_TABLE)
            .select("*")
            .eq("is_active", True)
            .eq("diabetes_recommended", True)
            .order("glycemic_index")
            .execute()
        )
        return [_parse_food(row) for row in response.data or []]

    def list_by_glycemic_index(
        self, min_index: float, max_index: float
    ) -> list[NutrientRecord]:
        """Return foods whose glycemic index lies in the range."""
        response = (
            self.client.table(_TABLE)
            .select("*")
            .eq("is_active", True)
            .gte("glycemic_index", min_index)
            .lte("glycemic_index", max_index)
            .order("glycemic_index")
            .execute()
        )
        return [_parse_food(row) for row in response.data or []]

    def create_food(self, record: NutrientRecord) -> NutrientRecord:
        """Insert a catalog food."""
        response = self.client.table(_TABLE).insert(_food_row(record)).execute()
        if not response.data:
            raise RuntimeError("Failed to create catalog food")
        return _parse_food(response.data[0])

    def update_food(self, record: NutrientRecord) -> NutrientRecord:
        """Replace a catalog food's fields."""
        payload = _food_row(record)
        payload.pop("id")
        response = (
            self.client.table(_TABLE)
            .update(payload)
            .eq("id", str(record.id))
            .execute()
        )
        if not response.data:
            raise RuntimeError("Failed to update catalog food")
        return _parse_food(response.data[0])

    def deactivate_food(self, food_id: UUID) -> bool:
        """Mark a catalog food inactive."""
        response = (
            self.client.table(_TABLE)
            .update({"is_active": False})
            .eq("id", str(food_id))
            .execute()
        )
        return bool(response.data)


def _escape_like(text: str) -> str:
    return text.replace("\\", "\\\\").replace("%", "\\%").replace("_", "\\_")


def _food_row(record: NutrientRecord) -> dict[str, object]:
    return {
        "id": str(record.id),
        "name": record.name,
        "category": str(record.category),
        "glycemic_index": record.glycemic_index,
        "glycemic_load": record.glycemic_load,
        "carbohydrates_g": record.carbohydrates_g,
        "fat_g": record.fat_g,
        "protein_g": record.protein_g,
        "fiber_g": record.fiber_g,
        "calories": record.calories,
        "digestion_time_min": record.digestion_time_min,
        "diabetes_recommended": record.diabetes_recommended,
        "description": record.description,
        "is_active": record.is_active,
    }


def _parse_food(row: dict[str, object]) -> NutrientRecord:
    """Parse a catalog row into a domain model."""
    return NutrientRecord(
        id=UUID(str(row["id"])),
        name=str(row.get("name", "")),
        category=FoodCategory(str(row.get("category", FoodCategory.PROCESSED))),
        glycemic_index=float(row.get("glycemic_index", 0.0)),
        glycemic_load=float(row.get("glycemic_load", 0.0)),
        carbohydrates_g=float(row.get("carbohydrates_g", 0.0)),
        fat_g=float(row.get("fat_g", 0.0)),
        protein_g=float(row.get("protein_g", 0.0)),
        fiber_g=float(row.get("fiber_g", 0.0)),
        calories=float(row.get("calories", 0.0)),
        digestion_time_min=float(row.get("digestion_time_min", 60.0)),
        diabetes_recommended=bool(row.get("diabetes_recommended", False)),
        description=row.get("description"),
        is_active=bool(row.get("is_active", True)),
    )
