"""FastAPI dependencies for the leaderboard."""

from typing import Annotated

from fastapi import Depends, HTTPException, Request, status

from .service import LeaderboardError, LeaderboardService


async def get_leaderboard_service(request: Request) -> LeaderboardService:
    """Get leaderboard service from app state."""
    app_state = request.app.state
    if not getattr(app_state, "leaderboard_service", None):
        raise HTTPException(
            status_code=status.HTTP_503_SERVICE_UNAVAILABLE,
            detail="Leaderboard service not available",
        )
    return app_state.leaderboard_service


LeaderboardServiceDep = Annotated[LeaderboardService, Depends(get_leaderboard_service)]


def handle_leaderboard_error(error: LeaderboardError) -> HTTPException:
    """Convert leaderboard errors to HTTP exceptions."""
    status_map = {
        "aggregation_failed": status.HTTP_500_INTERNAL_SERVER_ERROR,
        "aggregation_timeout": status.HTTP_504_GATEWAY_TIMEOUT,
    }

    return HTTPException(
        status_code=status_map.get(error.code, status.HTTP_500_INTERNAL_SERVER_ERROR),
        detail=error.message,
    )
