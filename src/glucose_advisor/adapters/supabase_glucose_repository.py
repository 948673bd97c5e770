"""Supabase repository for glucose readings."""

from dataclasses import dataclass
from datetime import UTC, datetime
from uuid import UUID

from supabase import Client

from glucose_advisor.adapters.serialization import parse_datetime
from glucose_advisor.domain.glucose import (
    GlucoseReading,
    GlucoseUnit,
    MealContext,
    ReadingType,
)
from glucose_advisor.services.glucose import GlucoseRepository

_TABLE = "glucose_readings"


@dataclass
class SupabaseGlucoseRepository(GlucoseRepository):
    """Supabase implementation for glucose readings."""

    client: Client

    def create_reading(self, reading: GlucoseReading) -> GlucoseReading:
        """Insert a reading row."""
        response = self.client.table(_TABLE).insert(_reading_row(reading)).execute()
        if not response.data:
            raise RuntimeError("Failed to create glucose reading")
        return _parse_reading(response.data[0])

    def get_reading(self, user_id: UUID, reading_id: UUID) -> GlucoseReading | None:
        """Return an active reading owned by the user."""
        response = (
            self.client.table(_TABLE)
            .select("*")
            .eq("id", str(reading_id))
            .eq("user_id", str(user_id))
            .eq("is_active", True)
            .limit(1)
            .execute()
        )
        if not response.data:
            return None
        return _parse_reading(response.data[0])

    def get_latest(self, user_id: UUID) -> GlucoseReading | None:
        """Return the most recent active reading."""
        response = (
            self.client.table(_TABLE)
            .select("*")
            .eq("user_id", str(user_id))
            .eq("is_active", True)
            .order("recorded_at", desc=True)
            .limit(1)
            .execute()
        )
        if not response.data:
            return None
        return _parse_reading(response.data[0])

    def list_readings(  # noqa: PLR0913
        self,
        user_id: UUID,
        *,
        start: datetime | None,
        end: datetime | None,
        reading_type: ReadingType | None,
        limit: int,
        offset: int,
    ) -> list[GlucoseReading]:
        """Return active readings, newest first."""
        request = (
            self.client.table(_TABLE)
            .select("*")
            .eq("user_id", str(user_id))
            .eq("is_active", True)
        )
        if start is not None:
            request = request.gte("recorded_at", start.isoformat())
        if end is not None:
            request = request.lt("recorded_at", end.isoformat())
        if reading_type is not None:
            request = request.eq("reading_type", str(reading_type))
        response = (
            request.order("recorded_at", desc=True)
            .range(offset, offset + limit - 1)
            .execute()
        )
        return [_parse_reading(row) for row in response.data or []]

    def update_reading(self, reading: GlucoseReading) -> GlucoseReading:
        """Replace a reading row."""
        payload = _reading_row(reading)
        payload.pop("id")
        response = (
            self.client.table(_TABLE)
            .update(payload)
            .eq("id", str(reading.id))
            .execute()
        )
        if not response.data:
            raise RuntimeError("Failed to update glucose reading")
        return _parse_reading(response.data[0])


def _reading_row(reading: GlucoseReading) -> dict[str, object]:
    return {
        "id": str(reading.id),
        "user_id": str(reading.user_id),
        "value": reading.value,
        "unit": str(reading.unit),
        "reading_type": str(reading.reading_type),
        "meal_context": str(reading.meal_context),
        "notes": reading.notes,
        "recorded_at": reading.recorded_at.isoformat(),
        "is_active": reading.is_active,
    }


def _parse_reading(row: dict[str, object]) -> GlucoseReading:
    return GlucoseReading(
        id=UUID(str(row["id"])),
        user_id=UUID(str(row["user_id"])),
        value=float(row.get("value", 0.0)),
        unit=GlucoseUnit(str(row.get("unit") or GlucoseUnit.MG_DL)),
        reading_type=ReadingType(str(row.get("reading_type") or ReadingType.RANDOM)),
        meal_context=MealContext(str(row.get("meal_context") or MealContext.NONE)),
        notes=row.get("notes"),
        recorded_at=parse_datetime(row.get("recorded_at")) or datetime.now(tz=UTC),
        is_active=bool(row.get("is_active", True)),
    )
