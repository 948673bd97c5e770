"""User metabolic profile models."""

from dataclasses import dataclass, field
from enum import StrEnum
from uuid import UUID


class DiabetesType(StrEnum):
    """Diabetes classification used to adjust glucose predictions."""

    TYPE_1 = "type1"
    TYPE_2 = "type2"
    PREDIABETES = "prediabetes"


@dataclass(frozen=True)
class UserProfile:
    """Metabolic profile for a user."""

    user_id: UUID
    diabetes_type: DiabetesType
    age: int | None = None
    weight_kg: float | None = None
    height_m: float | None = None
    baseline_glucose: float | None = None
    dietary_preferences: list[str] = field(default_factory=list)

    @property
    def bmi(self) -> float | None:
        """Body mass index rounded to two decimals, when measurable."""
        if not self.weight_kg or not self.height_m:
            return None
        return round(self.weight_kg / (self.height_m * self.height_m), 2)
