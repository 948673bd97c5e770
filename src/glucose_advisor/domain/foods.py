"""Nutrient catalog domain models."""

import math
from dataclasses import dataclass
from enum import StrEnum
from uuid import UUID

LOW_GLYCEMIC_INDEX_MAX = 55
MEDIUM_GLYCEMIC_INDEX_MAX = 70
LOW_GLYCEMIC_LOAD_MAX = 10
MEDIUM_GLYCEMIC_LOAD_MAX = 20
CALORIE_TOLERANCE_KCAL = 1.0

_RANGES: dict[str, tuple[float, float]] = {
    "glycemic_index": (0, 100),
    "glycemic_load": (0, 50),
    "carbohydrates_g": (0, 100),
    "fat_g": (0, 100),
    "protein_g": (0, 100),
    "fiber_g": (0, 50),
    "calories": (0, 900),
    "digestion_time_min": (5, 480),
}


class FoodCategory(StrEnum):
    """Catalog grouping for a food."""

    CEREALS = "cereals"
    FRUITS = "fruits"
    VEGETABLES = "vegetables"
    LEGUMES = "legumes"
    MEATS = "meats"
    FISH = "fish"
    DAIRY = "dairy"
    FATS = "fats"
    SUGARS = "sugars"
    BEVERAGES = "beverages"
    NUTS = "nuts"
    CONDIMENTS = "condiments"
    PROCESSED = "processed"


class GlycemicClass(StrEnum):
    """Coarse classification of glycemic index or load."""

    LOW = "low"
    MEDIUM = "medium"
    HIGH = "high"


def round_half_up(value: float) -> int:
    """Round to the nearest integer with halves going up."""
    return math.floor(value + 0.5)


def macro_calories(carbohydrates_g: float, protein_g: float, fat_g: float) -> float:
    """Atwater estimate: 4 kcal/g carbs and protein, 9 kcal/g fat."""
    return carbohydrates_g * 4 + protein_g * 4 + fat_g * 9


@dataclass(frozen=True)
class NutrientRecord:
    """Per-100 g nutrition facts for a catalog food."""

    id: UUID
    name: str
    category: FoodCategory
    glycemic_index: float
    glycemic_load: float
    carbohydrates_g: float
    fat_g: float
    protein_g: float
    fiber_g: float
    calories: float
    digestion_time_min: float
    diabetes_recommended: bool
    description: str | None = None
    is_active: bool = True

    @classmethod
    def create(  # noqa: PLR0913
        cls,
        *,
        id: UUID,  # noqa: A002
        name: str,
        category: FoodCategory | str,
        glycemic_index: float,
        glycemic_load: float,
        carbohydrates_g: float,
        fat_g: float,
        protein_g: float,
        fiber_g: float,
        digestion_time_min: float,
        calories: float | None = None,
        diabetes_recommended: bool | None = None,
        description: str | None = None,
        is_active: bool = True,
    ) -> "NutrientRecord":
        """Build a record, deriving calories and the diabetes flag when absent."""
        if calories is None:
            calories = round_half_up(macro_calories(carbohydrates_g, protein_g, fat_g))
        if diabetes_recommended is None:
            diabetes_recommended = glycemic_index <= LOW_GLYCEMIC_INDEX_MAX
        values = {
            "glycemic_index": glycemic_index,
            "glycemic_load": glycemic_load,
            "carbohydrates_g": carbohydrates_g,
            "fat_g": fat_g,
            "protein_g": protein_g,
            "fiber_g": fiber_g,
            "calories": calories,
            "digestion_time_min": digestion_time_min,
        }
        for field_name, value in values.items():
            low, high = _RANGES[field_name]
            if not low <= value <= high:
                raise ValueError(f"{field_name} must be between {low} and {high}")
        if not name.strip():
            raise ValueError("name is required")
        return cls(
            id=id,
            name=name.strip(),
            category=FoodCategory(category),
            glycemic_index=float(glycemic_index),
            glycemic_load=float(glycemic_load),
            carbohydrates_g=float(carbohydrates_g),
            fat_g=float(fat_g),
            protein_g=float(protein_g),
            fiber_g=float(fiber_g),
            calories=float(calories),
            digestion_time_min=float(digestion_time_min),
            diabetes_recommended=diabetes_recommended,
            description=description,
            is_active=is_active,
        )

    @property
    def glycemic_index_class(self) -> GlycemicClass:
        """Classify the glycemic index."""
        if self.glycemic_index <= LOW_GLYCEMIC_INDEX_MAX:
            return GlycemicClass.LOW
        if self.glycemic_index <= MEDIUM_GLYCEMIC_INDEX_MAX:
            return GlycemicClass.MEDIUM
        return GlycemicClass.HIGH

    @property
    def glycemic_load_class(self) -> GlycemicClass:
        """Classify the glycemic load."""
        if self.glycemic_load <= LOW_GLYCEMIC_LOAD_MAX:
            return GlycemicClass.LOW
        if self.glycemic_load <= MEDIUM_GLYCEMIC_LOAD_MAX:
            return GlycemicClass.MEDIUM
        return GlycemicClass.HIGH

    @property
    def total_macronutrients_g(self) -> float:
        """Sum of carbohydrates, fat and protein per 100 g."""
        return self.carbohydrates_g + self.fat_g + self.protein_g

    def calories_consistent(self, tolerance: float = CALORIE_TOLERANCE_KCAL) -> bool:
        """Return true when stored calories agree with the macro estimate."""
        expected = macro_calories(self.carbohydrates_g, self.protein_g, self.fat_g)
        return abs(self.calories - expected) <= tolerance + 0.5
