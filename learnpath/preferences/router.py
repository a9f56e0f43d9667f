"""User preferences API endpoints."""

from uuid import UUID

from fastapi import APIRouter

from learnpath.auth.dependencies import CurrentUser

from .dependencies import PreferencesServiceDep
from .schemas import Preferences, PreferencesUpdate


router = APIRouter(prefix="/v1/preferences", tags=["preferences"])


@router.get("", response_model=Preferences, summary="Get my preferences")
async def get_preferences(
    preferences_service: PreferencesServiceDep,
    user: CurrentUser,
) -> Preferences:
    """Get the current user's preferences (defaults when never set)."""
    return await preferences_service.get_preferences(UUID(str(user.id)))


@router.patch("", response_model=Preferences, summary="Update my preferences")
async def update_preferences(
    data: PreferencesUpdate,
    preferences_service: PreferencesServiceDep,
    user: CurrentUser,
) -> Preferences:
    """Update some of the current user's preferences."""
    return await preferences_service.update_preferences(UUID(str(user.id)), data)
