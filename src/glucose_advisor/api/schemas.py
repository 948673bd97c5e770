"""Request bodies and response presenters for the HTTP API."""

from uuid import UUID

from fastapi.encoders import jsonable_encoder
from pydantic import BaseModel, ConfigDict, Field
from pydantic.alias_generators import to_camel

from glucose_advisor.domain.advisory import AdvisoryRecord
from glucose_advisor.domain.analysis import FoodAnalysis
from glucose_advisor.domain.foods import FoodCategory, NutrientRecord
from glucose_advisor.domain.glucose import GlucoseReading
from glucose_advisor.domain.meals import MealEntry
from glucose_advisor.domain.profiles import DiabetesType
from glucose_advisor.services.analysis import AnalysisOutcome


class _CamelModel(BaseModel):
    model_config = ConfigDict(alias_generator=to_camel, populate_by_name=True)


class ShareRequest(_CamelModel):
    emails: list[str] = Field(min_length=1)


class PortionUpdate(_CamelModel):
    portion_amount: float = Field(gt=0)


class AdvisoryRequest(_CamelModel):
    """Run the advisory for a stored analysis or meal entry."""

    analysis_id: UUID | None = None
    meal_entry_id: UUID | None = None
    baseline_glucose: float | None = Field(default=None, ge=30, le=600)
    force: bool = False


class ProfileInput(_CamelModel):
    diabetes_type: DiabetesType = DiabetesType.TYPE_2
    age: int | None = Field(default=None, ge=0, le=120)
    weight_kg: float | None = Field(default=None, gt=0)
    height_m: float | None = Field(default=None, gt=0, le=3)
    baseline_glucose: float | None = Field(default=None, ge=30, le=600)
    dietary_preferences: list[str] = Field(default_factory=list)


class FoodCreate(_CamelModel):
    """Catalog food payload; values are per 100 g."""

    name: str = Field(min_length=1, max_length=200)
    category: FoodCategory
    glycemic_index: float = Field(ge=0, le=100)
    glycemic_load: float = Field(ge=0, le=50)
    carbohydrates_g: float = Field(ge=0, le=100)
    fat_g: float = Field(ge=0, le=100)
    protein_g: float = Field(ge=0, le=100)
    fiber_g: float = Field(ge=0, le=50)
    digestion_time_min: float = Field(ge=5, le=480)
    calories: float | None = Field(default=None, ge=0, le=900)
    diabetes_recommended: bool | None = None
    description: str | None = Field(default=None, max_length=500)


class FoodUpdate(_CamelModel):
    name: str | None = Field(default=None, min_length=1, max_length=200)
    category: FoodCategory | None = None
    glycemic_index: float | None = Field(default=None, ge=0, le=100)
    glycemic_load: float | None = Field(default=None, ge=0, le=50)
    carbohydrates_g: float | None = Field(default=None, ge=0, le=100)
    fat_g: float | None = Field(default=None, ge=0, le=100)
    protein_g: float | None = Field(default=None, ge=0, le=100)
    fiber_g: float | None = Field(default=None, ge=0, le=50)
    digestion_time_min: float | None = Field(default=None, ge=5, le=480)
    calories: float | None = Field(default=None, ge=0, le=900)
    diabetes_recommended: bool | None = None
    description: str | None = Field(default=None, max_length=500)


def food_payload(record: NutrientRecord) -> dict[str, object]:
    payload = jsonable_encoder(record)
    payload["glycemic_index_class"] = str(record.glycemic_index_class)
    payload["glycemic_load_class"] = str(record.glycemic_load_class)
    return payload


def analysis_payload(analysis: FoodAnalysis) -> dict[str, object]:
    payload = jsonable_encoder(analysis)
    payload["overall_risk"] = str(analysis.overall_risk)
    return payload


def outcome_payload(outcome: AnalysisOutcome) -> dict[str, object]:
    payload = analysis_payload(outcome.analysis)
    payload["advisory_status"] = outcome.advisory_status
    payload["advisory"] = (
        advisory_payload(outcome.advisory) if outcome.advisory is not None else None
    )
    return payload


def reading_payload(reading: GlucoseReading) -> dict[str, object]:
    payload = jsonable_encoder(reading)
    payload["classification"] = str(reading.classification)
    payload["risk_level"] = str(reading.risk_level)
    return payload


def meal_payload(entry: MealEntry) -> dict[str, object]:
    payload = jsonable_encoder(entry)
    payload["glucose_response"] = jsonable_encoder(entry.glucose_response())
    return payload


def advisory_payload(record: AdvisoryRecord) -> dict[str, object]:
    return jsonable_encoder(record)
