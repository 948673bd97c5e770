"""Food analysis domain models."""

from dataclasses import dataclass, field
from datetime import datetime
from enum import StrEnum
from uuid import UUID

from pydantic import BaseModel, ConfigDict, Field
from pydantic.alias_generators import to_camel

from glucose_advisor.domain.profiles import DiabetesType

DEFAULT_PORTION_GRAMS = 100.0
HIGH_GLYCEMIC_INDEX = 70
HIGH_GLYCEMIC_LOAD = 20


class MealType(StrEnum):
    """Meal slot of an analysis or meal entry."""

    BREAKFAST = "breakfast"
    LUNCH = "lunch"
    DINNER = "dinner"
    SNACK = "snack"


class RiskLevel(StrEnum):
    """Coarse classification of a predicted glucose spike."""

    LOW = "low"
    MEDIUM = "medium"
    HIGH = "high"


class RecommendationType(StrEnum):
    """Kind of advice a recommendation carries."""

    CONSUMPTION_ORDER = "consumption_order"
    TIMING = "timing"
    PORTION_ADJUSTMENT = "portion_adjustment"
    PAIRING = "pairing"
    AVOIDANCE = "avoidance"


class Priority(StrEnum):
    """Recommendation priority."""

    HIGH = "high"
    MEDIUM = "medium"
    LOW = "low"


class GlucoseSource(StrEnum):
    """Where the baseline glucose of an analysis came from."""

    MANUAL = "manual"
    LATEST_READING = "latest_reading"
    PROFILE = "profile"
    DEFAULT = "default"


@dataclass(frozen=True)
class NutritionalContribution:
    """Nutrients contributed by one portion, rounded per field."""

    calories: int
    carbohydrates_g: int
    protein_g: int
    fat_g: int
    fiber_g: int
    glycemic_index: float
    glycemic_load: int


@dataclass(frozen=True)
class DetectedFoodItem:
    """A detected or manually entered food and its catalog match."""

    name: str
    confidence: float
    portion_grams: float = DEFAULT_PORTION_GRAMS
    user_adjusted: bool = False
    matched_food_id: UUID | None = None
    nutritional_data: NutritionalContribution | None = None
    lookup_failed: bool = False


@dataclass(frozen=True)
class MealAggregate:
    """Totals across every item of an analysis or meal."""

    total_calories: int = 0
    total_carbs_g: int = 0
    total_protein_g: int = 0
    total_fat_g: int = 0
    total_fiber_g: int = 0
    average_glycemic_index: int = 0
    total_glycemic_load: int = 0
    estimated_digestion_time_min: int = 60


@dataclass(frozen=True)
class GlucosePrediction:
    """Rule-based glucose response estimate."""

    peak_increase: float
    peak_time_min: int
    duration_min: int
    peak_value: int
    risk_level: RiskLevel
    confidence: int


@dataclass(frozen=True)
class Recommendation:
    """A single rule-triggered piece of advice."""

    type: RecommendationType
    priority: Priority
    message: str
    reasoning: str


@dataclass(frozen=True)
class GlucoseContext:
    """Baseline glucose used for a prediction."""

    value: float
    source: GlucoseSource
    recorded_at: datetime


class ActualGlucoseResponse(BaseModel):
    """Glucose response the user observed after the meal."""

    peak_value: float | None = Field(default=None, ge=30, le=600)
    peak_time_min: int | None = Field(default=None, ge=0)
    notes: str | None = Field(default=None, max_length=500)


class AnalysisFeedback(BaseModel):
    """User feedback on a stored analysis."""

    rating: int | None = Field(default=None, ge=1, le=5)
    helpful: bool | None = None
    comments: str | None = Field(default=None, max_length=500)
    actual_glucose_response: ActualGlucoseResponse | None = None
    submitted_at: datetime | None = None


class DetectedFoodInput(BaseModel):
    """A detected food as submitted for analysis."""

    model_config = ConfigDict(alias_generator=to_camel, populate_by_name=True)

    name: str = Field(min_length=1, max_length=200)
    confidence: float = Field(default=100.0, ge=0, le=100)
    portion: float = Field(default=DEFAULT_PORTION_GRAMS, gt=0)


class AnalysisRequest(BaseModel):
    """Input of the analysis pipeline."""

    model_config = ConfigDict(alias_generator=to_camel, populate_by_name=True)

    detected_foods: list[DetectedFoodInput] = Field(min_length=1)
    meal_type: MealType
    current_glucose: float | None = Field(default=None, ge=30, le=600)
    diabetes_type: DiabetesType | None = None
    photo_url: str | None = None


@dataclass(frozen=True)
class FoodAnalysis:
    """Persisted result of one analysis request."""

    id: UUID
    user_id: UUID
    meal_type: MealType
    current_glucose: GlucoseContext
    diabetes_type: DiabetesType
    items: list[DetectedFoodItem]
    aggregate: MealAggregate
    prediction: GlucosePrediction
    recommendations: list[Recommendation]
    processing_time_ms: int
    created_at: datetime
    photo_url: str | None = None
    feedback: AnalysisFeedback | None = None
    shared_with: list[str] = field(default_factory=list)
    is_active: bool = True

    @property
    def overall_risk(self) -> RiskLevel:
        """Combined risk of the prediction and the meal composition."""
        return overall_risk(self.aggregate, self.prediction)


@dataclass(frozen=True)
class AnalysisStats:
    """Aggregate statistics over a user's analyses."""

    total_analyses: int
    average_rating: float | None
    high_risk_meals: int
    average_calories: float | None
    average_carbs: float | None
    period_days: int


def overall_risk(aggregate: MealAggregate, prediction: GlucosePrediction) -> RiskLevel:
    """Return the overall risk of a meal given its prediction."""
    high_gi = aggregate.average_glycemic_index > HIGH_GLYCEMIC_INDEX
    high_gl = aggregate.total_glycemic_load > HIGH_GLYCEMIC_LOAD
    if prediction.risk_level == RiskLevel.HIGH or (high_gi and high_gl):
        return RiskLevel.HIGH
    if prediction.risk_level == RiskLevel.MEDIUM or high_gi or high_gl:
        return RiskLevel.MEDIUM
    return RiskLevel.LOW
