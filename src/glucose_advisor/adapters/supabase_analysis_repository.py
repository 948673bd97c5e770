"""Supabase repository for food analyses."""

from dataclasses import asdict, dataclass
from datetime import UTC, datetime
from uuid import UUID

from supabase import Client

from glucose_advisor.adapters.serialization import (
    contribution_to_json,
    feedback_to_json,
    parse_aggregate,
    parse_contribution,
    parse_datetime,
    parse_feedback,
)
from glucose_advisor.domain.analysis import (
    DetectedFoodItem,
    FoodAnalysis,
    GlucoseContext,
    GlucosePrediction,
    GlucoseSource,
    MealType,
    Priority,
    Recommendation,
    RecommendationType,
    RiskLevel,
)
from glucose_advisor.domain.profiles import DiabetesType
from glucose_advisor.services.analysis import AnalysisRepository

_TABLE = "food_analyses"


@dataclass
class SupabaseAnalysisRepository(AnalysisRepository):
    """Supabase implementation for food analyses."""

    client: Client

    def create_analysis(self, analysis: FoodAnalysis) -> FoodAnalysis:
        """Insert an analysis row."""
        response = self.client.table(_TABLE).insert(_analysis_row(analysis)).execute()
        if not response.data:
            raise RuntimeError("Failed to create food analysis")
        return _parse_analysis(response.data[0])

    def get_analysis(self, user_id: UUID, analysis_id: UUID) -> FoodAnalysis | None:
        """Return an active analysis owned by the user."""
        response = (
            self.client.table(_TABLE)
            .select("*")
            .eq("id", str(analysis_id))
            .eq("user_id", str(user_id))
            .eq("is_active", True)
            .limit(1)
            .execute()
        )
        if not response.data:
            return None
        return _parse_analysis(response.data[0])

    def list_analyses(  # noqa: PLR0913
        self,
        user_id: UUID,
        *,
        meal_type: MealType | None,
        risk_level: RiskLevel | None,
        start: datetime | None,
        end: datetime | None,
        limit: int,
        offset: int,
    ) -> list[FoodAnalysis]:
        """Return active analyses, newest first."""
        request = (
            self.client.table(_TABLE)
            .select("*")
            .eq("user_id", str(user_id))
            .eq("is_active", True)
        )
        if meal_type is not None:
            request = request.eq("meal_type", str(meal_type))
        if risk_level is not None:
            request = request.eq("risk_level", str(risk_level))
        if start is not None:
            request = request.gte("created_at", start.isoformat())
        if end is not None:
            request = request.lt("created_at", end.isoformat())
        response = (
            request.order("created_at", desc=True)
            .range(offset, offset + limit - 1)
            .execute()
        )
        return [_parse_analysis(row) for row in response.data or []]

    def update_analysis(self, analysis: FoodAnalysis) -> FoodAnalysis:
        """Persist feedback, sharing and activity changes."""
        response = (
            self.client.table(_TABLE)
            .update(
                {
                    "feedback": feedback_to_json(analysis.feedback),
                    "shared_with": list(analysis.shared_with),
                    "is_active": analysis.is_active,
                    "updated_at": datetime.now(tz=UTC).isoformat(),
                }
            )
            .eq("id", str(analysis.id))
            .execute()
        )
        if not response.data:
            raise RuntimeError("Failed to update food analysis")
        return _parse_analysis(response.data[0])


def _analysis_row(analysis: FoodAnalysis) -> dict[str, object]:
    prediction = asdict(analysis.prediction)
    prediction["risk_level"] = str(analysis.prediction.risk_level)
    return {
        "id": str(analysis.id),
        "user_id": str(analysis.user_id),
        "meal_type": str(analysis.meal_type),
        "photo_url": analysis.photo_url,
        "current_glucose": {
            "value": analysis.current_glucose.value,
            "source": str(analysis.current_glucose.source),
            "recorded_at": analysis.current_glucose.recorded_at.isoformat(),
        },
        "diabetes_type": str(analysis.diabetes_type),
        "items": [
            {
                "name": item.name,
                "confidence": item.confidence,
                "portion_grams": item.portion_grams,
                "user_adjusted": item.user_adjusted,
                "matched_food_id": (
                    str(item.matched_food_id) if item.matched_food_id else None
                ),
                "nutritional_data": contribution_to_json(item.nutritional_data),
                "lookup_failed": item.lookup_failed,
            }
            for item in analysis.items
        ],
        "aggregate": asdict(analysis.aggregate),
        "prediction": prediction,
        "risk_level": str(analysis.prediction.risk_level),
        "recommendations": [
            {
                "type": str(recommendation.type),
                "priority": str(recommendation.priority),
                "message": recommendation.message,
                "reasoning": recommendation.reasoning,
            }
            for recommendation in analysis.recommendations
        ],
        "processing_time_ms": analysis.processing_time_ms,
        "created_at": analysis.created_at.isoformat(),
        "feedback": feedback_to_json(analysis.feedback),
        "shared_with": list(analysis.shared_with),
        "is_active": analysis.is_active,
    }


def _parse_analysis(row: dict[str, object]) -> FoodAnalysis:
    glucose = dict(row.get("current_glucose") or {})
    prediction = dict(row.get("prediction") or {})
    created_at = parse_datetime(row.get("created_at")) or datetime.now(tz=UTC)
    return FoodAnalysis(
        id=UUID(str(row["id"])),
        user_id=UUID(str(row["user_id"])),
        meal_type=MealType(str(row["meal_type"])),
        photo_url=row.get("photo_url"),
        current_glucose=GlucoseContext(
            value=float(glucose.get("value", 0.0)),
            source=GlucoseSource(str(glucose.get("source", GlucoseSource.DEFAULT))),
            recorded_at=parse_datetime(glucose.get("recorded_at")) or created_at,
        ),
        diabetes_type=DiabetesType(
            str(row.get("diabetes_type") or DiabetesType.TYPE_2)
        ),
        items=[_parse_item(item) for item in row.get("items") or []],
        aggregate=parse_aggregate(row.get("aggregate")),
        prediction=GlucosePrediction(
            peak_increase=float(prediction.get("peak_increase", 0.0)),
            peak_time_min=int(prediction.get("peak_time_min", 0)),
            duration_min=int(prediction.get("duration_min", 0)),
            peak_value=int(prediction.get("peak_value", 0)),
            risk_level=RiskLevel(str(prediction.get("risk_level", RiskLevel.LOW))),
            confidence=int(prediction.get("confidence", 0)),
        ),
        recommendations=[
            Recommendation(
                type=RecommendationType(str(item["type"])),
                priority=Priority(str(item["priority"])),
                message=str(item.get("message", "")),
                reasoning=str(item.get("reasoning", "")),
            )
            for item in row.get("recommendations") or []
        ],
        processing_time_ms=int(row.get("processing_time_ms", 0)),
        created_at=created_at,
        feedback=parse_feedback(row.get("feedback")),
        shared_with=list(row.get("shared_with") or []),
        is_active=bool(row.get("is_active", True)),
    )


def _parse_item(raw: dict[str, object]) -> DetectedFoodItem:
    matched = raw.get("matched_food_id")
    return DetectedFoodItem(
        name=str(raw.get("name", "")),
        confidence=float(raw.get("confidence", 0.0)),
        portion_grams=float(raw.get("portion_grams", 100.0)),
        user_adjusted=bool(raw.get("user_adjusted", False)),
        matched_food_id=UUID(str(matched)) if matched else None,
        nutritional_data=parse_contribution(raw.get("nutritional_data")),
        lookup_failed=bool(raw.get("lookup_failed", False)),
    )
