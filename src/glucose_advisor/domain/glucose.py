"""Glucose reading models and classification."""

from dataclasses import dataclass
from datetime import datetime
from enum import StrEnum
from uuid import UUID

from pydantic import BaseModel, Field, model_validator

from glucose_advisor.domain.analysis import RiskLevel

MMOL_TO_MG_DL = 18
HYPOGLYCEMIA_MG_DL = 70
MIN_READING_MG_DL = 30
MAX_READING_MG_DL = 600
FASTING_NORMAL_MAX = 100
FASTING_PREDIABETIC_MAX = 125
POSTPRANDIAL_NORMAL_MAX = 140
POSTPRANDIAL_PREDIABETIC_MAX = 199


class GlucoseUnit(StrEnum):
    """Unit of a glucose value."""

    MG_DL = "mg/dL"
    MMOL_L = "mmol/L"


class ReadingType(StrEnum):
    """When a reading was taken relative to meals and sleep."""

    FASTING = "fasting"
    POSTPRANDIAL = "postprandial"
    RANDOM = "random"
    BEDTIME = "bedtime"
    PRE_MEAL = "pre_meal"
    POST_MEAL = "post_meal"


class MealContext(StrEnum):
    """Meal a reading is attached to."""

    BEFORE_BREAKFAST = "before_breakfast"
    AFTER_BREAKFAST = "after_breakfast"
    BEFORE_LUNCH = "before_lunch"
    AFTER_LUNCH = "after_lunch"
    BEFORE_DINNER = "before_dinner"
    AFTER_DINNER = "after_dinner"
    BEFORE_SNACK = "before_snack"
    AFTER_SNACK = "after_snack"
    NONE = "none"


class GlucoseClass(StrEnum):
    """Clinical band of a reading."""

    LOW = "low"
    NORMAL = "normal"
    PREDIABETIC = "prediabetic"
    DIABETIC = "diabetic"
    ELEVATED = "elevated"
    HIGH = "high"


_CLASS_RISK = {
    GlucoseClass.LOW: RiskLevel.HIGH,
    GlucoseClass.NORMAL: RiskLevel.LOW,
    GlucoseClass.PREDIABETIC: RiskLevel.MEDIUM,
    GlucoseClass.ELEVATED: RiskLevel.MEDIUM,
    GlucoseClass.DIABETIC: RiskLevel.HIGH,
    GlucoseClass.HIGH: RiskLevel.HIGH,
}


@dataclass(frozen=True)
class GlucoseReading:
    """A stored blood glucose reading."""

    id: UUID
    user_id: UUID
    value: float
    unit: GlucoseUnit
    reading_type: ReadingType
    recorded_at: datetime
    meal_context: MealContext = MealContext.NONE
    notes: str | None = None
    is_active: bool = True

    @property
    def value_mg_dl(self) -> float:
        """Reading value converted to mg/dL."""
        if self.unit == GlucoseUnit.MMOL_L:
            return self.value * MMOL_TO_MG_DL
        return self.value

    @property
    def classification(self) -> GlucoseClass:
        """Clinical band of the reading for its reading type."""
        return classify_glucose(self.value_mg_dl, self.reading_type)

    @property
    def risk_level(self) -> RiskLevel:
        """Risk implied by the classification."""
        return _CLASS_RISK[self.classification]


class GlucoseReadingInput(BaseModel):
    """Payload for creating or updating a reading."""

    value: float = Field(gt=0)
    unit: GlucoseUnit = GlucoseUnit.MG_DL
    reading_type: ReadingType
    meal_context: MealContext = MealContext.NONE
    notes: str | None = Field(default=None, max_length=200)
    recorded_at: datetime | None = None

    @model_validator(mode="after")
    def _value_in_range(self) -> "GlucoseReadingInput":
        value = self.value
        if self.unit == GlucoseUnit.MMOL_L:
            value *= MMOL_TO_MG_DL
        if not MIN_READING_MG_DL <= value <= MAX_READING_MG_DL:
            raise ValueError(
                f"value must be between {MIN_READING_MG_DL} and "
                f"{MAX_READING_MG_DL} mg/dL"
            )
        return self


@dataclass(frozen=True)
class GlucoseStats:
    """Summary of readings over a period."""

    average_glucose: float | None
    count: int
    min_value: float | None
    max_value: float | None
    period_days: int


def classify_glucose(value_mg_dl: float, reading_type: ReadingType) -> GlucoseClass:
    """Classify a mg/dL value according to when it was measured."""
    if value_mg_dl < HYPOGLYCEMIA_MG_DL:
        return GlucoseClass.LOW
    if reading_type == ReadingType.FASTING:
        if value_mg_dl <= FASTING_NORMAL_MAX:
            return GlucoseClass.NORMAL
        if value_mg_dl <= FASTING_PREDIABETIC_MAX:
            return GlucoseClass.PREDIABETIC
        return GlucoseClass.DIABETIC
    if reading_type in {ReadingType.POSTPRANDIAL, ReadingType.POST_MEAL}:
        if value_mg_dl <= POSTPRANDIAL_NORMAL_MAX:
            return GlucoseClass.NORMAL
        if value_mg_dl <= POSTPRANDIAL_PREDIABETIC_MAX:
            return GlucoseClass.PREDIABETIC
        return GlucoseClass.DIABETIC
    if value_mg_dl <= POSTPRANDIAL_NORMAL_MAX:
        return GlucoseClass.NORMAL
    if value_mg_dl <= POSTPRANDIAL_PREDIABETIC_MAX:
        return GlucoseClass.ELEVATED
    return GlucoseClass.HIGH
