"""Models for external advisory results."""

from dataclasses import dataclass
from datetime import datetime
from typing import Literal
from uuid import UUID

from pydantic import BaseModel, Field, model_validator

from glucose_advisor.domain.analysis import AnalysisFeedback


class EatingOrderStep(BaseModel):
    """One position in the suggested eating order."""

    order: int = Field(ge=1)
    food_name: str
    reason: str


class AdvisoryGlucosePrediction(BaseModel):
    """Glucose prediction produced by the advisory service."""

    predicted_peak_glucose: float = Field(ge=50, le=600)
    time_to_reach_peak: float = Field(ge=15, le=240)
    predicted_glucose_after_2_hours: float = Field(ge=50, le=600)
    risk_level: Literal["low", "moderate", "high"]


class EstimatedNutrition(BaseModel):
    """Nutrition the advisory service estimated for a food."""

    calories: float | None = Field(default=None, ge=0)
    carbohydrates: float | None = Field(default=None, ge=0)
    protein: float | None = Field(default=None, ge=0)
    fat: float | None = Field(default=None, ge=0)
    fiber: float | None = Field(default=None, ge=0)
    glycemic_index: float | None = Field(default=None, ge=0, le=100)


class NutritionalEstimate(BaseModel):
    """Estimate for a food that lacked catalog data."""

    food_name: str
    estimated_nutrition: EstimatedNutrition
    confidence: Literal["high", "medium", "low"]
    reasoning: str | None = None


class AdvisoryRecommendation(BaseModel):
    """Recommendation returned by the advisory service."""

    type: Literal["eating_order", "timing", "portion", "general"]
    message: str
    priority: Literal["high", "medium", "low"]


class AdvisoryReasoning(BaseModel):
    """Rationale behind the advisory output."""

    eating_order_rationale: str
    glucose_prediction_rationale: str
    key_factors: list[str] = Field(default_factory=list)


class AdvisoryResult(BaseModel):
    """Validated structured output of the advisory service."""

    eating_order: list[EatingOrderStep] = Field(default_factory=list)
    glucose_prediction: AdvisoryGlucosePrediction
    nutritional_estimates: list[NutritionalEstimate] = Field(default_factory=list)
    recommendations: list[AdvisoryRecommendation] = Field(default_factory=list)
    reasoning: AdvisoryReasoning

    @model_validator(mode="after")
    def _sequential_eating_order(self) -> "AdvisoryResult":
        self.eating_order.sort(key=lambda step: step.order)
        for position, step in enumerate(self.eating_order, start=1):
            if step.order != position:
                raise ValueError("eating order must be sequential starting from 1")
        return self


@dataclass(frozen=True)
class AdvisoryMetadata:
    """Request metadata stored with an advisory result."""

    model: str
    baseline_glucose: float
    processing_time_ms: int
    requested_at: datetime


@dataclass(frozen=True)
class AdvisoryRecord:
    """Stored advisory result, kept apart from rule-based predictions."""

    id: UUID
    user_id: UUID | None
    analysis_id: UUID | None
    meal_entry_id: UUID | None
    result: AdvisoryResult
    metadata: AdvisoryMetadata
    feedback: AnalysisFeedback | None = None
    is_active: bool = True


@dataclass(frozen=True)
class AdvisoryStats:
    """Aggregate statistics over stored advisory results."""

    total_analyses: int
    average_rating: float | None
    high_risk_meals: int
    moderate_risk_meals: int
    low_risk_meals: int
    average_processing_time_ms: float | None
    average_predicted_peak: float | None
    period_days: int
