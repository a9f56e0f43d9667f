"""Pydantic schemas for the student leaderboard."""

from uuid import UUID

from pydantic import Field

from learnpath.core.schemas import CamelModel


class EnrolledCourseSummary(CamelModel):
    """One enrollment counted towards course points."""

    course_id: UUID
    course_url: str | None = None
    title: str | None = None
    progress: int = Field(description="0-100 percentage")
    status: str


class LeaderboardMetrics(CamelModel):
    """Points bundle of a leaderboard entry."""

    courses_enrolled: int
    course_points: float = Field(description="Sum of enrollment progress")
    quiz_points: float = Field(description="Sum of per-course quiz averages")
    total_points: float
    enrolled_courses: list[EnrolledCourseSummary] = Field(default_factory=list)


class LeaderboardEntry(CamelModel):
    """Ranked student."""

    user_id: UUID
    name: str
    avatar: str | None = None
    rank: int = Field(0, description="1-based position")
    metrics: LeaderboardMetrics


class LeaderboardResponse(CamelModel):
    """Leaderboard rankings."""

    rankings: list[LeaderboardEntry]
    current_user_rank: int | None = None
