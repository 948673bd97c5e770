"""User profile business logic."""

from dataclasses import dataclass
from typing import Protocol
from uuid import UUID

from glucose_advisor.domain.profiles import DiabetesType, UserProfile


class ProfileRepository(Protocol):
    """Persistence interface for user profiles."""

    def get_profile(self, user_id: UUID) -> UserProfile | None:
        """Return the profile for a user, if present."""

    def upsert_profile(self, profile: UserProfile) -> UserProfile:
        """Create or replace a user's profile and return it."""


@dataclass
class ProfileService:
    """Application service for user metabolic profiles."""

    repository: ProfileRepository

    def get_profile(self, user_id: UUID) -> UserProfile | None:
        """Return a stored profile."""
        return self.repository.get_profile(user_id)

    def save_profile(self, profile: UserProfile) -> UserProfile:
        """Persist a profile."""
        return self.repository.upsert_profile(profile)

    def resolve_diabetes_type(
        self, user_id: UUID, requested: DiabetesType | None
    ) -> DiabetesType:
        """Use the requested type, else the stored one, else type 2."""
        if requested is not None:
            return requested
        profile = self.repository.get_profile(user_id)
        if profile is not None:
            return profile.diabetes_type
        return DiabetesType.TYPE_2
