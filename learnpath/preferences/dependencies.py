"""FastAPI dependencies for user preferences."""

from typing import Annotated

from fastapi import Depends, HTTPException, Request, status

from .service import PreferencesService


async def get_preferences_service(request: Request) -> PreferencesService:
    """Get preferences service from app state (503 without Redis)."""
    app_state = request.app.state
    if not getattr(app_state, "preferences_service", None):
        raise HTTPException(
            status_code=status.HTTP_503_SERVICE_UNAVAILABLE,
            detail="Preferences service not available",
        )
    return app_state.preferences_service


PreferencesServiceDep = Annotated[PreferencesService, Depends(get_preferences_service)]
