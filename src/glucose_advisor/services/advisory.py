"""Advisory meal analysis using LLMs."""

import json
import logging
import time
from collections.abc import Callable
from dataclasses import dataclass, replace
from datetime import UTC, datetime, timedelta
from typing import Protocol, TypeVar
from uuid import UUID, uuid4

from pydantic import ValidationError

from glucose_advisor.domain.advisory import (
    AdvisoryMetadata,
    AdvisoryRecord,
    AdvisoryResult,
    AdvisoryStats,
)
from glucose_advisor.domain.analysis import (
    AnalysisFeedback,
    FoodAnalysis,
    NutritionalContribution,
)
from glucose_advisor.domain.errors import (
    AdvisoryUnavailableError,
    CatalogUnavailableError,
)
from glucose_advisor.domain.meals import MealEntry, PortionUnit
from glucose_advisor.domain.profiles import UserProfile
from glucose_advisor.services.aggregation import compute_contribution
from glucose_advisor.services.catalog import CatalogService

_logger = logging.getLogger(__name__)
_T = TypeVar("_T")

_NULLABLE_NUMBER = {"anyOf": [{"type": "number", "minimum": 0}, {"type": "null"}]}

ADVISORY_SCHEMA: dict[str, object] = {
    "type": "object",
    "properties": {
        "eating_order": {
            "type": "array",
            "items": {
                "type": "object",
                "properties": {
                    "order": {"type": "integer", "minimum": 1},
                    "food_name": {"type": "string"},
                    "reason": {"type": "string"},
                },
                "required": ["order", "food_name", "reason"],
                "additionalProperties": False,
            },
        },
        "glucose_prediction": {
            "type": "object",
            "properties": {
                "predicted_peak_glucose": {"type": "number"},
                "time_to_reach_peak": {"type": "number"},
                "predicted_glucose_after_2_hours": {"type": "number"},
                "risk_level": {"type": "string", "enum": ["low", "moderate", "high"]},
            },
            "required": [
                "predicted_peak_glucose",
                "time_to_reach_peak",
                "predicted_glucose_after_2_hours",
                "risk_level",
            ],
            "additionalProperties": False,
        },
        "nutritional_estimates": {
            "type": "array",
            "items": {
                "type": "object",
                "properties": {
                    "food_name": {"type": "string"},
                    "estimated_nutrition": {
                        "type": "object",
                        "properties": {
                            "calories": _NULLABLE_NUMBER,
                            "carbohydrates": _NULLABLE_NUMBER,
                            "protein": _NULLABLE_NUMBER,
                            "fat": _NULLABLE_NUMBER,
                            "fiber": _NULLABLE_NUMBER,
                            "glycemic_index": _NULLABLE_NUMBER,
                        },
                        "required": [
                            "calories",
                            "carbohydrates",
                            "protein",
                            "fat",
                            "fiber",
                            "glycemic_index",
                        ],
                        "additionalProperties": False,
                    },
                    "confidence": {"type": "string", "enum": ["high", "medium", "low"]},
                    "reasoning": {"anyOf": [{"type": "string"}, {"type": "null"}]},
                },
                "required": [
                    "food_name",
                    "estimated_nutrition",
                    "confidence",
                    "reasoning",
                ],
                "additionalProperties": False,
            },
        },
        "recommendations": {
            "type": "array",
            "items": {
                "type": "object",
                "properties": {
                    "type": {
                        "type": "string",
                        "enum": ["eating_order", "timing", "portion", "general"],
                    },
                    "message": {"type": "string"},
                    "priority": {"type": "string", "enum": ["high", "medium", "low"]},
                },
                "required": ["type", "message", "priority"],
                "additionalProperties": False,
            },
        },
        "reasoning": {
            "type": "object",
            "properties": {
                "eating_order_rationale": {"type": "string"},
                "glucose_prediction_rationale": {"type": "string"},
                "key_factors": {"type": "array", "items": {"type": "string"}},
            },
            "required": [
                "eating_order_rationale",
                "glucose_prediction_rationale",
                "key_factors",
            ],
            "additionalProperties": False,
        },
    },
    "required": [
        "eating_order",
        "glucose_prediction",
        "nutritional_estimates",
        "recommendations",
        "reasoning",
    ],
    "additionalProperties": False,
}

ADVISORY_INSTRUCTIONS = (
    "You are a diabetes management expert and nutritionist. "
    "Give evidence-based advice on meal order, timing and glucose management."
)

_REQUIRED_NUTRITION = ("calories", "carbohydrates", "protein", "fat")


class AdvisoryClient(Protocol):
    """Interface for structured LLM completions."""

    async def complete(  # noqa: PLR0913
        self,
        *,
        model: str,
        reasoning_effort: str | None,
        store: bool,
        instructions: str,
        prompt: str,
        schema: dict[str, object],
    ) -> dict[str, object]:
        """Return the structured output for a prompt."""


class AdvisoryRepository(Protocol):
    """Persistence interface for advisory records."""

    def create_record(self, record: AdvisoryRecord) -> AdvisoryRecord:
        """Insert an advisory record and return it."""

    def get_record(self, user_id: UUID, record_id: UUID) -> AdvisoryRecord | None:
        """Return an active record owned by the user."""

    def find_for_analysis(self, analysis_id: UUID) -> AdvisoryRecord | None:
        """Return the latest active record tied to an analysis."""

    def find_for_meal_entry(self, meal_entry_id: UUID) -> AdvisoryRecord | None:
        """Return the latest active record tied to a meal entry."""

    def list_records(  # noqa: PLR0913
        self,
        user_id: UUID,
        *,
        risk_level: str | None,
        since: datetime | None,
        limit: int,
        offset: int,
    ) -> list[AdvisoryRecord]:
        """Return active records, newest first."""

    def update_record(self, record: AdvisoryRecord) -> AdvisoryRecord:
        """Replace a record and return it."""


@dataclass
class AdvisoryService:
    """Prepares advisory prompts, validates results and stores them."""

    client: AdvisoryClient
    catalog: CatalogService
    repository: AdvisoryRepository
    model: str
    reasoning_effort: str | None
    store: bool
    default_baseline_glucose: float = 80.0

    async def request_advisory(
        self,
        meal_summary: dict[str, object],
        baseline_glucose: float,
        user_profile: UserProfile | None = None,
    ) -> AdvisoryResult:
        """Ask the advisory model about a meal and validate its answer."""
        prompt = build_prompt(meal_summary, baseline_glucose, user_profile)
        try:
            raw = await self.client.complete(
                model=self.model,
                reasoning_effort=self.reasoning_effort,
                store=self.store,
                instructions=ADVISORY_INSTRUCTIONS,
                prompt=prompt,
                schema=ADVISORY_SCHEMA,
            )
            return AdvisoryResult.model_validate(raw)
        except ValidationError as exc:
            _logger.warning("Advisory output failed validation: %s", exc)
            raise AdvisoryUnavailableError("Advisory output was invalid") from exc
        except Exception as exc:
            _logger.exception("Advisory request failed")
            raise AdvisoryUnavailableError(f"Advisory request failed: {exc}") from exc

    async def analyze(  # noqa: PLR0913
        self,
        user_id: UUID,
        *,
        analysis: FoodAnalysis | None = None,
        meal_entry: MealEntry | None = None,
        baseline_glucose: float | None = None,
        user_profile: UserProfile | None = None,
        force: bool = False,
    ) -> AdvisoryRecord:
        """Run the advisory for an analysis or meal entry and store it."""
        if analysis is not None and meal_entry is None:
            existing = self._stored(self.repository.find_for_analysis, analysis.id)
            summary = self.summarize_analysis(analysis)
        elif meal_entry is not None and analysis is None:
            existing = self._stored(
                self.repository.find_for_meal_entry, meal_entry.id
            )
            summary = self.summarize_meal_entry(meal_entry)
        else:
            raise ValueError("Provide exactly one of analysis or meal_entry")
        if existing is not None and not force:
            return existing
        baseline = (
            baseline_glucose
            if baseline_glucose is not None
            else self.default_baseline_glucose
        )

        started = time.perf_counter()
        result = await self.request_advisory(summary, baseline, user_profile)
        elapsed_ms = int((time.perf_counter() - started) * 1000)

        record = AdvisoryRecord(
            id=uuid4(),
            user_id=user_id,
            analysis_id=analysis.id if analysis is not None else None,
            meal_entry_id=meal_entry.id if meal_entry is not None else None,
            result=result,
            metadata=AdvisoryMetadata(
                model=self.model,
                baseline_glucose=baseline,
                processing_time_ms=elapsed_ms,
                requested_at=datetime.now(tz=UTC),
            ),
        )
        return self._stored(self.repository.create_record, record)

    def _stored(self, operation: Callable[..., _T], *args: object) -> _T:
        try:
            return operation(*args)
        except Exception as exc:
            _logger.exception("Advisory storage failed")
            raise AdvisoryUnavailableError(f"Advisory storage failed: {exc}") from exc

    def summarize_analysis(self, analysis: FoodAnalysis) -> dict[str, object]:
        """Build the meal summary sent to the model from an analysis."""
        foods = []
        for item in analysis.items:
            nutrition = (
                _nutrition_dict(item.nutritional_data)
                if item.nutritional_data is not None
                else self._estimate_from_catalog(item.name, item.portion_grams)
            )
            foods.append(
                _food_entry(item.name, item.portion_grams, "grams", nutrition)
            )
        return build_meal_summary(str(analysis.meal_type), foods)

    def summarize_meal_entry(self, entry: MealEntry) -> dict[str, object]:
        """Build the meal summary sent to the model from a meal entry."""
        foods = []
        for item in entry.items:
            if item.nutritional_data is not None:
                nutrition = _nutrition_dict(item.nutritional_data)
            elif item.portion_unit == PortionUnit.GRAMS:
                nutrition = self._estimate_from_catalog(item.name, item.portion_amount)
            else:
                nutrition = {}
            foods.append(
                _food_entry(
                    item.name, item.portion_amount, str(item.portion_unit), nutrition
                )
            )
        return build_meal_summary(str(entry.meal_type), foods)

    def history(
        self,
        user_id: UUID,
        *,
        risk_level: str | None = None,
        page: int = 1,
        limit: int = 20,
    ) -> list[AdvisoryRecord]:
        """Return a page of the user's advisory records."""
        return self.repository.list_records(
            user_id,
            risk_level=risk_level,
            since=None,
            limit=limit,
            offset=(max(page, 1) - 1) * limit,
        )

    def get_record(self, user_id: UUID, record_id: UUID) -> AdvisoryRecord | None:
        """Return a single advisory record."""
        return self.repository.get_record(user_id, record_id)

    def submit_feedback(
        self, user_id: UUID, record_id: UUID, feedback: AnalysisFeedback
    ) -> AdvisoryRecord | None:
        """Attach user feedback to an advisory record."""
        record = self.repository.get_record(user_id, record_id)
        if record is None:
            return None
        stamped = feedback.model_copy(update={"submitted_at": datetime.now(tz=UTC)})
        return self.repository.update_record(replace(record, feedback=stamped))

    def stats(self, user_id: UUID, days: int = 30) -> AdvisoryStats:
        """Summarize advisory records over the last days."""
        records = self.repository.list_records(
            user_id,
            risk_level=None,
            since=datetime.now(tz=UTC) - timedelta(days=days),
            limit=10_000,
            offset=0,
        )
        ratings = [
            record.feedback.rating
            for record in records
            if record.feedback is not None and record.feedback.rating is not None
        ]
        risks = [record.result.glucose_prediction.risk_level for record in records]
        peaks = [
            record.result.glucose_prediction.predicted_peak_glucose
            for record in records
        ]
        times = [record.metadata.processing_time_ms for record in records]
        return AdvisoryStats(
            total_analyses=len(records),
            average_rating=_average(ratings),
            high_risk_meals=risks.count("high"),
            moderate_risk_meals=risks.count("moderate"),
            low_risk_meals=risks.count("low"),
            average_processing_time_ms=_average(times),
            average_predicted_peak=_average(peaks),
            period_days=days,
        )

    def _estimate_from_catalog(
        self, name: str, portion_grams: float
    ) -> dict[str, float]:
        try:
            record = self.catalog.match(name)
        except CatalogUnavailableError:
            _logger.warning("Catalog unavailable while enriching %r", name)
            return {}
        if record is None:
            return {}
        return _nutrition_dict(compute_contribution(record, portion_grams))


def build_meal_summary(
    meal_type: str, foods: list[dict[str, object]]
) -> dict[str, object]:
    """Assemble the meal summary with totals over the provided foods."""
    totals = {
        "calories": 0.0,
        "carbohydrates": 0.0,
        "protein": 0.0,
        "fat": 0.0,
        "fiber": 0.0,
        "glycemic_load": 0.0,
    }
    for food in foods:
        nutrition = food.get("nutritional_info")
        if not isinstance(nutrition, dict):
            continue
        for key in totals:
            totals[key] += float(nutrition.get(key) or 0.0)
    return {
        "meal_type": meal_type,
        "total_items": len(foods),
        "foods": foods,
        "total_nutrition": totals,
    }


def build_prompt(
    meal_summary: dict[str, object],
    baseline_glucose: float,
    user_profile: UserProfile | None,
) -> str:
    """Render the advisory prompt."""
    diabetes_type = "type 2"
    age: object = "unknown"
    weight: object = "unknown"
    if user_profile is not None:
        diabetes_type = str(user_profile.diabetes_type)
        age = user_profile.age if user_profile.age is not None else "unknown"
        weight = (
            user_profile.weight_kg if user_profile.weight_kg is not None else "unknown"
        )
    return (
        f"Analyze this meal for a person with {diabetes_type} diabetes.\n\n"
        f"Meal data:\n{json.dumps(meal_summary, indent=2)}\n\n"
        f"Baseline glucose: {baseline_glucose:g} mg/dL\n"
        f"User profile: age {age}, weight {weight} kg, diabetes {diabetes_type}\n\n"
        "Estimate nutrition for foods with missing data from the name and "
        "typical portions. Recommend the eating order that minimizes glucose "
        "spikes, predict the glucose peak and the value after two hours, and "
        "explain the reasoning. Put fiber and protein before carbohydrates "
        "and complex carbohydrates before simple sugars."
    )


def _food_entry(
    name: str, amount: float, unit: str, nutrition: dict[str, float]
) -> dict[str, object]:
    return {
        "name": name,
        "portion": {"amount": amount, "unit": unit},
        "nutritional_info": nutrition,
        "has_complete_nutrition": all(
            nutrition.get(key) is not None for key in _REQUIRED_NUTRITION
        ),
    }


def _nutrition_dict(data: NutritionalContribution) -> dict[str, float]:
    return {
        "calories": data.calories,
        "carbohydrates": data.carbohydrates_g,
        "protein": data.protein_g,
        "fat": data.fat_g,
        "fiber": data.fiber_g,
        "glycemic_index": data.glycemic_index,
        "glycemic_load": data.glycemic_load,
    }


def _average(values: list[float] | list[int]) -> float | None:
    if not values:
        return None
    return round(sum(values) / len(values), 1)
