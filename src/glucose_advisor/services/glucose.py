"""Glucose reading service."""

from dataclasses import dataclass, replace
from datetime import UTC, datetime, timedelta
from typing import Protocol
from uuid import UUID, uuid4

from glucose_advisor.domain.glucose import (
    GlucoseReading,
    GlucoseReadingInput,
    GlucoseStats,
    ReadingType,
)


class GlucoseRepository(Protocol):
    """Persistence interface for glucose readings."""

    def create_reading(self, reading: GlucoseReading) -> GlucoseReading:
        """Insert a reading and return it."""

    def get_reading(self, user_id: UUID, reading_id: UUID) -> GlucoseReading | None:
        """Return an active reading owned by the user."""

    def get_latest(self, user_id: UUID) -> GlucoseReading | None:
        """Return the most recent active reading."""

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

    def update_reading(self, reading: GlucoseReading) -> GlucoseReading:
        """Replace a reading and return it."""


@dataclass
class GlucoseService:
    """Records and summarizes blood glucose readings."""

    repository: GlucoseRepository

    def record(self, user_id: UUID, payload: GlucoseReadingInput) -> GlucoseReading:
        """Store a new reading."""
        reading = GlucoseReading(
            id=uuid4(),
            user_id=user_id,
            value=payload.value,
            unit=payload.unit,
            reading_type=payload.reading_type,
            meal_context=payload.meal_context,
            notes=payload.notes,
            recorded_at=payload.recorded_at or datetime.now(tz=UTC),
        )
        return self.repository.create_reading(reading)

    def latest(self, user_id: UUID) -> GlucoseReading | None:
        """Return the user's most recent reading."""
        return self.repository.get_latest(user_id)

    def history(  # noqa: PLR0913
        self,
        user_id: UUID,
        *,
        start: datetime | None = None,
        end: datetime | None = None,
        reading_type: ReadingType | None = None,
        page: int = 1,
        limit: int = 20,
    ) -> list[GlucoseReading]:
        """Return a page of readings, newest first."""
        return self.repository.list_readings(
            user_id,
            start=start,
            end=end,
            reading_type=reading_type,
            limit=limit,
            offset=(max(page, 1) - 1) * limit,
        )

    def stats(self, user_id: UUID, days: int = 7) -> GlucoseStats:
        """Average, count and extremes of readings over the last days."""
        start = datetime.now(tz=UTC) - timedelta(days=days)
        readings = self.repository.list_readings(
            user_id,
            start=start,
            end=None,
            reading_type=None,
            limit=10_000,
            offset=0,
        )
        if not readings:
            return GlucoseStats(
                average_glucose=None,
                count=0,
                min_value=None,
                max_value=None,
                period_days=days,
            )
        values = [reading.value_mg_dl for reading in readings]
        return GlucoseStats(
            average_glucose=round(sum(values) / len(values), 1),
            count=len(values),
            min_value=min(values),
            max_value=max(values),
            period_days=days,
        )

    def update(
        self, user_id: UUID, reading_id: UUID, payload: GlucoseReadingInput
    ) -> GlucoseReading | None:
        """Replace the editable fields of a reading."""
        current = self.repository.get_reading(user_id, reading_id)
        if current is None:
            return None
        updated = replace(
            current,
            value=payload.value,
            unit=payload.unit,
            reading_type=payload.reading_type,
            meal_context=payload.meal_context,
            notes=payload.notes,
            recorded_at=payload.recorded_at or current.recorded_at,
        )
        return self.repository.update_reading(updated)

    def delete(self, user_id: UUID, reading_id: UUID) -> bool:
        """Soft delete a reading."""
        current = self.repository.get_reading(user_id, reading_id)
        if current is None:
            return False
        self.repository.update_reading(replace(current, is_active=False))
        return True
