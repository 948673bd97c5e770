"""User profile endpoints."""

from __future__ import annotations

from uuid import UUID  # noqa: TC003

from fastapi import APIRouter, Depends, Request
from fastapi.encoders import jsonable_encoder

from glucose_advisor.api.deps import get_container, not_found, require_user_id
from glucose_advisor.api.schemas import ProfileInput  # noqa: TC001
from glucose_advisor.domain.profiles import UserProfile

router = APIRouter(prefix="/profile", tags=["profile"])


def _profile_payload(profile: UserProfile) -> dict[str, object]:
    payload = jsonable_encoder(profile)
    payload["bmi"] = profile.bmi
    return payload


@router.get("")
async def get_profile(
    request: Request, user_id: UUID = Depends(require_user_id)
) -> dict[str, object]:
    """Return the caller's metabolic profile."""
    profile = get_container(request).profile_service.get_profile(user_id)
    if profile is None:
        raise not_found("Profile")
    return _profile_payload(profile)


@router.put("")
async def save_profile(
    payload: ProfileInput,
    request: Request,
    user_id: UUID = Depends(require_user_id),
) -> dict[str, object]:
    """Create or replace the caller's metabolic profile."""
    profile = get_container(request).profile_service.save_profile(
        UserProfile(user_id=user_id, **payload.model_dump())
    )
    return _profile_payload(profile)
