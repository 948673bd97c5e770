"""Threshold rules that turn a meal analysis into advice."""

from collections.abc import Callable
from dataclasses import dataclass

from glucose_advisor.domain.analysis import (
    GlucosePrediction,
    MealAggregate,
    Priority,
    Recommendation,
    RecommendationType,
    RiskLevel,
)

FIBER_FIRST_MIN_G = 5
HIGH_GLYCEMIC_INDEX = 70
LOW_PROTEIN_G = 10


@dataclass(frozen=True)
class _Rule:
    applies: Callable[[MealAggregate, GlucosePrediction], bool]
    recommendation: Recommendation


_RULES = (
    _Rule(
        lambda aggregate, _: aggregate.total_fiber_g > FIBER_FIRST_MIN_G,
        Recommendation(
            type=RecommendationType.CONSUMPTION_ORDER,
            priority=Priority.HIGH,
            message="Eat fiber-rich foods first to slow glucose absorption",
            reasoning="High fiber content detected",
        ),
    ),
    _Rule(
        lambda aggregate, _: aggregate.average_glycemic_index > HIGH_GLYCEMIC_INDEX,
        Recommendation(
            type=RecommendationType.TIMING,
            priority=Priority.HIGH,
            message="Consider eating this meal after physical activity",
            reasoning="High glycemic index foods detected",
        ),
    ),
    _Rule(
        lambda _, prediction: prediction.risk_level == RiskLevel.HIGH,
        Recommendation(
            type=RecommendationType.PORTION_ADJUSTMENT,
            priority=Priority.HIGH,
            message="Consider reducing portion size by 25-30%",
            reasoning="Predicted high glucose spike",
        ),
    ),
    _Rule(
        lambda aggregate, _: aggregate.total_protein_g < LOW_PROTEIN_G,
        Recommendation(
            type=RecommendationType.PAIRING,
            priority=Priority.MEDIUM,
            message="Add protein to help stabilize blood sugar",
            reasoning="Low protein content in current meal",
        ),
    ),
)


def recommend(
    aggregate: MealAggregate, prediction: GlucosePrediction
) -> list[Recommendation]:
    """Evaluate every rule in declaration order and collect those that fire."""
    return [
        rule.recommendation for rule in _RULES if rule.applies(aggregate, prediction)
    ]
