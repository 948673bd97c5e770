"""Supabase repository for meal entries."""

from dataclasses import asdict, dataclass
from datetime import UTC, datetime
from uuid import UUID

from supabase import Client

from glucose_advisor.adapters.serialization import (
    contribution_to_json,
    parse_aggregate,
    parse_contribution,
    parse_datetime,
)
from glucose_advisor.domain.analysis import MealType
from glucose_advisor.domain.meals import (
    ItemSource,
    MealEntry,
    MealGlucoseReading,
    MealItem,
    Mood,
    PortionUnit,
    ReadingSource,
)
from glucose_advisor.services.meals import MealRepository

_TABLE = "meal_entries"


@dataclass
class SupabaseMealRepository(MealRepository):
    """Supabase implementation for meal entries."""

    client: Client

    def create_entry(self, entry: MealEntry) -> MealEntry:
        """Insert a meal entry row."""
        response = self.client.table(_TABLE).insert(_entry_row(entry)).execute()
        if not response.data:
            raise RuntimeError("Failed to create meal entry")
        return _parse_entry(response.data[0])

    def get_entry(self, user_id: UUID, entry_id: UUID) -> MealEntry | None:
        """Return an active meal entry owned by the user."""
        response = (
            self.client.table(_TABLE)
            .select("*")
            .eq("id", str(entry_id))
            .eq("user_id", str(user_id))
            .eq("is_active", True)
            .limit(1)
            .execute()
        )
        if not response.data:
            return None
        return _parse_entry(response.data[0])

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
        """Return active meal entries, newest first."""
        request = (
            self.client.table(_TABLE)
            .select("*")
            .eq("user_id", str(user_id))
            .eq("is_active", True)
        )
        if meal_type is not None:
            request = request.eq("meal_type", str(meal_type))
        if start is not None:
            request = request.gte("logged_at", start.isoformat())
        if end is not None:
            request = request.lt("logged_at", end.isoformat())
        response = (
            request.order("logged_at", desc=True)
            .range(offset, offset + limit - 1)
            .execute()
        )
        return [_parse_entry(row) for row in response.data or []]

    def update_entry(self, entry: MealEntry) -> MealEntry:
        """Replace a meal entry row."""
        payload = _entry_row(entry)
        payload.pop("id")
        response = (
            self.client.table(_TABLE)
            .update(payload)
            .eq("id", str(entry.id))
            .execute()
        )
        if not response.data:
            raise RuntimeError("Failed to update meal entry")
        return _parse_entry(response.data[0])


def _reading_json(reading: MealGlucoseReading) -> dict[str, object]:
    return {
        "value": reading.value,
        "recorded_at": reading.recorded_at.isoformat(),
        "source": str(reading.source),
        "minutes_after_meal": reading.minutes_after_meal,
    }


def _entry_row(entry: MealEntry) -> dict[str, object]:
    return {
        "id": str(entry.id),
        "user_id": str(entry.user_id),
        "meal_type": str(entry.meal_type),
        "items": [
            {
                "name": item.name,
                "food_id": str(item.food_id) if item.food_id else None,
                "portion_amount": item.portion_amount,
                "portion_unit": str(item.portion_unit),
                "source": str(item.source),
                "nutritional_data": contribution_to_json(item.nutritional_data),
                "per_100g": item.per_100g,
                "confidence": item.confidence,
            }
            for item in entry.items
        ],
        "totals": asdict(entry.totals),
        "logged_at": entry.logged_at.isoformat(),
        "glucose_before": (
            _reading_json(entry.glucose_before) if entry.glucose_before else None
        ),
        "glucose_after": [_reading_json(reading) for reading in entry.glucose_after],
        "analysis_id": str(entry.analysis_id) if entry.analysis_id else None,
        "notes": entry.notes,
        "mood": str(entry.mood) if entry.mood else None,
        "tags": list(entry.tags),
        "is_active": entry.is_active,
    }


def _parse_reading(raw: dict[str, object]) -> MealGlucoseReading:
    minutes = raw.get("minutes_after_meal")
    return MealGlucoseReading(
        value=float(raw.get("value", 0.0)),
        recorded_at=parse_datetime(raw.get("recorded_at")) or datetime.now(tz=UTC),
        source=ReadingSource(str(raw.get("source") or ReadingSource.MANUAL)),
        minutes_after_meal=int(minutes) if minutes is not None else None,
    )


def _parse_item(raw: dict[str, object]) -> MealItem:
    food_id = raw.get("food_id")
    per_100g = raw.get("per_100g")
    confidence = raw.get("confidence")
    return MealItem(
        name=str(raw.get("name", "")),
        portion_amount=float(raw.get("portion_amount", 100.0)),
        portion_unit=PortionUnit(str(raw.get("portion_unit") or PortionUnit.GRAMS)),
        source=ItemSource(str(raw.get("source") or ItemSource.MANUAL_ENTRY)),
        food_id=UUID(str(food_id)) if food_id else None,
        nutritional_data=parse_contribution(raw.get("nutritional_data")),
        per_100g=(
            {key: float(value) for key, value in per_100g.items()}
            if isinstance(per_100g, dict)
            else None
        ),
        confidence=float(confidence) if confidence is not None else None,
    )


def _parse_entry(row: dict[str, object]) -> MealEntry:
    before = row.get("glucose_before")
    analysis_id = row.get("analysis_id")
    mood = row.get("mood")
    return MealEntry(
        id=UUID(str(row["id"])),
        user_id=UUID(str(row["user_id"])),
        meal_type=MealType(str(row["meal_type"])),
        items=[_parse_item(item) for item in row.get("items") or []],
        totals=parse_aggregate(row.get("totals")),
        logged_at=parse_datetime(row.get("logged_at")) or datetime.now(tz=UTC),
        glucose_before=_parse_reading(before) if isinstance(before, dict) else None,
        glucose_after=[
            _parse_reading(reading) for reading in row.get("glucose_after") or []
        ],
        analysis_id=UUID(str(analysis_id)) if analysis_id else None,
        notes=row.get("notes"),
        mood=Mood(str(mood)) if mood else None,
        tags=list(row.get("tags") or []),
        is_active=bool(row.get("is_active", True)),
    )
