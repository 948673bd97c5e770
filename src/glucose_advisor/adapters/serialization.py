"""Row conversions shared by the Supabase repositories."""

from dataclasses import asdict, fields
from datetime import datetime

from glucose_advisor.domain.analysis import (
    AnalysisFeedback,
    MealAggregate,
    NutritionalContribution,
)


def parse_datetime(value: object) -> datetime | None:
    """Parse an ISO timestamp column."""
    if isinstance(value, datetime):
        return value
    if isinstance(value, str) and value:
        return datetime.fromisoformat(value)
    return None


def contribution_to_json(data: NutritionalContribution | None) -> dict | None:
    if data is None:
        return None
    return asdict(data)


def parse_contribution(raw: object) -> NutritionalContribution | None:
    if not isinstance(raw, dict):
        return None
    return NutritionalContribution(
        calories=int(raw.get("calories", 0)),
        carbohydrates_g=int(raw.get("carbohydrates_g", 0)),
        protein_g=int(raw.get("protein_g", 0)),
        fat_g=int(raw.get("fat_g", 0)),
        fiber_g=int(raw.get("fiber_g", 0)),
        glycemic_index=float(raw.get("glycemic_index", 0.0)),
        glycemic_load=int(raw.get("glycemic_load", 0)),
    )


def parse_aggregate(raw: object) -> MealAggregate:
    if not isinstance(raw, dict):
        return MealAggregate()
    known = {item.name for item in fields(MealAggregate)}
    return MealAggregate(
        **{
            key: int(value)
            for key, value in raw.items()
            if key in known and value is not None
        }
    )


def feedback_to_json(feedback: AnalysisFeedback | None) -> dict | None:
    if feedback is None:
        return None
    return feedback.model_dump(mode="json")


def parse_feedback(raw: object) -> AnalysisFeedback | None:
    if not isinstance(raw, dict):
        return None
    return AnalysisFeedback.model_validate(raw)
