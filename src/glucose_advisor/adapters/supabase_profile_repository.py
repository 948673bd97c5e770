"""Supabase repository for user profiles."""

from dataclasses import dataclass
from uuid import UUID

from supabase import Client

from glucose_advisor.config import parse_diabetes_type
from glucose_advisor.domain.profiles import DiabetesType, UserProfile
from glucose_advisor.services.profiles import ProfileRepository


@dataclass
class SupabaseProfileRepository(ProfileRepository):
    """Supabase implementation for user profiles."""

    client: Client

    def get_profile(self, user_id: UUID) -> UserProfile | None:
        """Return the profile for a user."""
        response = (
            self.client.table("user_profiles")
            .select("*")
            .eq("user_id", str(user_id))
            .limit(1)
            .execute()
        )
        if not response.data:
            return None
        return _parse_profile(response.data[0])

    def upsert_profile(self, profile: UserProfile) -> UserProfile:
        """Create or replace the profile for a user."""
        response = (
            self.client.table("user_profiles")
            .upsert(
                {
                    "user_id": str(profile.user_id),
                    "diabetes_type": str(profile.diabetes_type),
                    "age": profile.age,
                    "weight_kg": profile.weight_kg,
                    "height_m": profile.height_m,
                    "baseline_glucose": profile.baseline_glucose,
                    "dietary_preferences": list(profile.dietary_preferences),
                },
                on_conflict="user_id",
            )
            .execute()
        )
        if not response.data:
            raise RuntimeError("Failed to save user profile")
        return _parse_profile(response.data[0])


def _parse_profile(row: dict[str, object]) -> UserProfile:
    raw_type = row.get("diabetes_type")
    diabetes_type = parse_diabetes_type(raw_type if isinstance(raw_type, str) else None)
    return UserProfile(
        user_id=UUID(str(row["user_id"])),
        diabetes_type=diabetes_type or DiabetesType.TYPE_2,
        age=int(row["age"]) if row.get("age") is not None else None,
        weight_kg=float(row["weight_kg"]) if row.get("weight_kg") is not None else None,
        height_m=float(row["height_m"]) if row.get("height_m") is not None else None,
        baseline_glucose=(
            float(row["baseline_glucose"])
            if row.get("baseline_glucose") is not None
            else None
        ),
        dietary_preferences=list(row.get("dietary_preferences") or []),
    )
