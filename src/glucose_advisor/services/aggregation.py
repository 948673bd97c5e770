"""Nutrient aggregation across the items of a meal."""

from collections.abc import Iterable, Mapping

from glucose_advisor.domain.analysis import (
    DetectedFoodItem,
    MealAggregate,
    NutritionalContribution,
)
from glucose_advisor.domain.foods import NutrientRecord, round_half_up

BASE_DIGESTION_MIN = 60
DIGESTION_MIN_PER_G_FAT = 2
DIGESTION_MIN_PER_G_PROTEIN = 1.5
DIGESTION_MIN_PER_G_FIBER = 3


def per_100g_values(record: NutrientRecord) -> dict[str, float]:
    """Nutrient values of a catalog record keyed like a per-100 g snapshot."""
    return {
        "calories": record.calories,
        "carbohydrates_g": record.carbohydrates_g,
        "protein_g": record.protein_g,
        "fat_g": record.fat_g,
        "fiber_g": record.fiber_g,
        "glycemic_index": record.glycemic_index,
        "glycemic_load": record.glycemic_load,
    }


def scale_per_100g(
    per_100g: Mapping[str, float], portion_grams: float
) -> NutritionalContribution:
    """Scale per-100 g values to a portion, rounding each field on its own."""
    factor = portion_grams / 100
    return NutritionalContribution(
        calories=round_half_up(per_100g.get("calories", 0.0) * factor),
        carbohydrates_g=round_half_up(per_100g.get("carbohydrates_g", 0.0) * factor),
        protein_g=round_half_up(per_100g.get("protein_g", 0.0) * factor),
        fat_g=round_half_up(per_100g.get("fat_g", 0.0) * factor),
        fiber_g=round_half_up(per_100g.get("fiber_g", 0.0) * factor),
        glycemic_index=per_100g.get("glycemic_index", 0.0),
        glycemic_load=round_half_up(per_100g.get("glycemic_load", 0.0) * factor),
    )


def compute_contribution(
    record: NutrientRecord, portion_grams: float
) -> NutritionalContribution:
    """Scale a per-100 g record to a portion."""
    return scale_per_100g(per_100g_values(record), portion_grams)


def estimate_digestion_time(fat_g: float, protein_g: float, fiber_g: float) -> int:
    """Linear digestion time model, in minutes."""
    return round_half_up(
        BASE_DIGESTION_MIN
        + DIGESTION_MIN_PER_G_FAT * fat_g
        + DIGESTION_MIN_PER_G_PROTEIN * protein_g
        + DIGESTION_MIN_PER_G_FIBER * fiber_g
    )


def aggregate(items: Iterable[DetectedFoodItem]) -> MealAggregate:
    """Sum per-item contributions; unmatched items add nothing."""
    return aggregate_contributions(item.nutritional_data for item in items)


def aggregate_contributions(
    contributions: Iterable[NutritionalContribution | None],
) -> MealAggregate:
    """Sum contributions and compute the carb-weighted glycemic index."""
    calories = carbs = protein = fat = fiber = glycemic_load = 0
    weighted_gi = 0.0
    for data in contributions:
        if data is None:
            continue
        calories += data.calories
        carbs += data.carbohydrates_g
        protein += data.protein_g
        fat += data.fat_g
        fiber += data.fiber_g
        glycemic_load += data.glycemic_load
        weighted_gi += data.glycemic_index * data.carbohydrates_g

    if carbs > 0:
        average_gi = round_half_up(weighted_gi / carbs)
    else:
        average_gi = 0

    return MealAggregate(
        total_calories=calories,
        total_carbs_g=carbs,
        total_protein_g=protein,
        total_fat_g=fat,
        total_fiber_g=fiber,
        average_glycemic_index=average_gi,
        total_glycemic_load=glycemic_load,
        estimated_digestion_time_min=estimate_digestion_time(fat, protein, fiber),
    )
