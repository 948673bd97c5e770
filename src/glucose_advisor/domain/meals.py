"""Domain models for meal logging."""

from dataclasses import dataclass, field
from datetime import datetime
from enum import StrEnum
from uuid import UUID

from pydantic import BaseModel, Field

from glucose_advisor.domain.analysis import (
    DEFAULT_PORTION_GRAMS,
    MealAggregate,
    MealType,
    NutritionalContribution,
)


class PortionUnit(StrEnum):
    """Unit of a logged portion."""

    GRAMS = "grams"
    OUNCES = "ounces"
    CUPS = "cups"
    PIECES = "pieces"
    SLICES = "slices"
    TABLESPOONS = "tablespoons"
    TEASPOONS = "teaspoons"


class ItemSource(StrEnum):
    """How a meal item was entered."""

    PHOTO_DETECTION = "photo_detection"
    MANUAL_ENTRY = "manual_entry"
    TEXT_SCAN = "text_scan"
    DATABASE_SEARCH = "database_search"


class ReadingSource(StrEnum):
    """Device a meal glucose reading came from."""

    MANUAL = "manual"
    CGM = "cgm"
    GLUCOMETER = "glucometer"


class Mood(StrEnum):
    """Self-reported mood after a meal."""

    EXCELLENT = "excellent"
    GOOD = "good"
    NEUTRAL = "neutral"
    POOR = "poor"
    TERRIBLE = "terrible"


@dataclass(frozen=True)
class MealItem:
    """Logged meal item with its nutritional contribution."""

    name: str
    portion_amount: float
    portion_unit: PortionUnit
    source: ItemSource
    food_id: UUID | None = None
    nutritional_data: NutritionalContribution | None = None
    per_100g: dict[str, float] | None = None
    confidence: float | None = None


@dataclass(frozen=True)
class MealGlucoseReading:
    """Glucose value attached to a meal."""

    value: float
    recorded_at: datetime
    source: ReadingSource
    minutes_after_meal: int | None = None


@dataclass(frozen=True)
class GlucoseResponse:
    """Observed glucose response to a meal."""

    baseline: float
    peak: float
    peak_time_min: int | None
    increase: float
    percent_increase: float


@dataclass(frozen=True)
class MealEntry:
    """Meal log with items, totals and attached readings."""

    id: UUID
    user_id: UUID
    meal_type: MealType
    items: list[MealItem]
    totals: MealAggregate
    logged_at: datetime
    glucose_before: MealGlucoseReading | None = None
    glucose_after: list[MealGlucoseReading] = field(default_factory=list)
    analysis_id: UUID | None = None
    notes: str | None = None
    mood: Mood | None = None
    tags: list[str] = field(default_factory=list)
    is_active: bool = True

    def glucose_response(self) -> GlucoseResponse | None:
        """Summarize before/after readings, if both exist."""
        if self.glucose_before is None or not self.glucose_after:
            return None
        baseline = self.glucose_before.value
        peak_reading = max(self.glucose_after, key=lambda reading: reading.value)
        increase = peak_reading.value - baseline
        percent = round(increase / baseline * 100, 1) if baseline else 0.0
        return GlucoseResponse(
            baseline=baseline,
            peak=peak_reading.value,
            peak_time_min=peak_reading.minutes_after_meal,
            increase=increase,
            percent_increase=percent,
        )


class NutritionInfoInput(BaseModel):
    """Nutrition supplied by the client for a meal item."""

    calories: float | None = Field(default=None, ge=0)
    carbohydrates: float | None = Field(default=None, ge=0)
    protein: float | None = Field(default=None, ge=0)
    fat: float | None = Field(default=None, ge=0)
    fiber: float | None = Field(default=None, ge=0)
    glycemic_index: float | None = Field(default=None, ge=0, le=100)
    glycemic_load: float | None = Field(default=None, ge=0)

    def is_complete(self) -> bool:
        """Return true when the core macro fields are all present."""
        return all(
            value is not None
            for value in (self.calories, self.carbohydrates, self.protein, self.fat)
        )


class MealItemInput(BaseModel):
    """Meal item payload."""

    name: str = Field(min_length=1, max_length=200)
    food_id: UUID | None = None
    portion_amount: float = Field(default=DEFAULT_PORTION_GRAMS, gt=0)
    portion_unit: PortionUnit = PortionUnit.GRAMS
    nutrition: NutritionInfoInput | None = None
    source: ItemSource = ItemSource.MANUAL_ENTRY
    confidence: float | None = Field(default=None, ge=0, le=100)


class MealEntryInput(BaseModel):
    """Payload for creating a meal entry."""

    meal_type: MealType
    items: list[MealItemInput] = Field(min_length=1)
    logged_at: datetime | None = None
    analysis_id: UUID | None = None
    notes: str | None = Field(default=None, max_length=500)
    mood: Mood | None = None
    tags: list[str] = Field(default_factory=list)


class MealEntryUpdate(BaseModel):
    """Partial update of a meal entry."""

    items: list[MealItemInput] | None = Field(default=None, min_length=1)
    notes: str | None = Field(default=None, max_length=500)
    mood: Mood | None = None
    tags: list[str] | None = None


class MealGlucoseInput(BaseModel):
    """Glucose reading to attach before or after a meal."""

    kind: str = Field(pattern="^(before|after)$")
    value: float = Field(ge=30, le=600)
    recorded_at: datetime | None = None
    minutes_after_meal: int | None = Field(default=None, gt=0)
    source: ReadingSource = ReadingSource.MANUAL
