"""Leaderboard API endpoints."""

from typing import Annotated
from uuid import UUID

from fastapi import APIRouter, Query

from learnpath.auth.dependencies import OptionalUser

from .dependencies import LeaderboardServiceDep, handle_leaderboard_error
from .schemas import LeaderboardResponse
from .service import LeaderboardError, find_rank


router = APIRouter(prefix="/v1/leaderboard", tags=["leaderboard"])


@router.get(
    "/students",
    response_model=LeaderboardResponse,
    summary="Student rankings",
)
async def get_student_rankings(
    leaderboard_service: LeaderboardServiceDep,
    user: OptionalUser,
    course_url: Annotated[str | None, Query(alias="courseUrl")] = None,
) -> LeaderboardResponse:
    """Rank all students by course points plus quiz points.

    With ``courseUrl`` only that course's progress and quizzes count, and
    its attempts flagged for leaderboard refresh are cleared.
    """
    try:
        rankings = await leaderboard_service.get_rankings(course_url or None)
    except LeaderboardError as e:
        raise handle_leaderboard_error(e) from e

    current_user_rank = find_rank(rankings, UUID(str(user.id))) if user else None
    return LeaderboardResponse(rankings=rankings, current_user_rank=current_user_rank)
