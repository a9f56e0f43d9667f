"""Leaderboard service layer.

Ranks every student by total points:

- course points: sum of ``progress`` over active enrollments
- quiz points: per course, the mean of per-day attempt averages, summed
- total points: course points + quiz points

Students are aggregated concurrently (bounded by a semaphore) under a
single deadline. Any per-student failure aborts the whole run; there are
no partial rankings.
"""

import asyncio
from typing import TYPE_CHECKING
from uuid import UUID

import structlog

from learnpath.auth.models import User
from learnpath.courses.models import Course
from learnpath.quizzes.scoring import quiz_points
from learnpath.utils import round_points

from .schemas import EnrolledCourseSummary, LeaderboardEntry, LeaderboardMetrics


if TYPE_CHECKING:
    from learnpath.auth.service import UserService
    from learnpath.courses.service import CourseService
    from learnpath.progress.service import ProgressService
    from learnpath.quizzes.service import QuizService

logger = structlog.get_logger(__name__)


# ==============================================================================
# Custom Exceptions
# ==============================================================================


class LeaderboardError(Exception):
    """Base leaderboard error."""

    def __init__(self, message: str, code: str = "leaderboard_error"):
        self.message = message
        self.code = code
        super().__init__(message)


class LeaderboardAggregationError(LeaderboardError):
    """A per-student lookup failed."""

    def __init__(self, message: str = "Failed to compute leaderboard"):
        super().__init__(message, "aggregation_failed")


class LeaderboardTimeoutError(LeaderboardError):
    """Aggregation exceeded its deadline."""

    def __init__(self, message: str = "Leaderboard computation timed out"):
        super().__init__(message, "aggregation_timeout")


# ==============================================================================
# Leaderboard Service
# ==============================================================================


class LeaderboardService:
    """Service computing student rankings from enrollments and quiz attempts."""

    def __init__(
        self,
        user_service: "UserService",
        course_service: "CourseService",
        progress_service: "ProgressService",
        quiz_service: "QuizService",
        max_concurrency: int = 16,
        timeout_seconds: float = 30.0,
    ):
        self.user_service = user_service
        self.course_service = course_service
        self.progress_service = progress_service
        self.quiz_service = quiz_service
        self.max_concurrency = max(1, max_concurrency)
        self.timeout_seconds = timeout_seconds

    async def get_rankings(
        self,
        course_url: str | None = None,
        timeout: float | None = None,
    ) -> list[LeaderboardEntry]:
        """Compute the ranked list of all students.

        Args:
            course_url: Restrict course and quiz points to one course
            timeout: Deadline in seconds (defaults to the service setting)

        Raises:
            LeaderboardTimeoutError: If the deadline is exceeded
            LeaderboardAggregationError: If any lookup fails
        """
        deadline = self.timeout_seconds if timeout is None else timeout

        try:
            scored = await asyncio.wait_for(self._aggregate(course_url), deadline)
            if course_url:
                await self.quiz_service.clear_pending_refresh(course_url)
        except TimeoutError as e:
            logger.error(
                "leaderboard_timeout", course_url=course_url, timeout_seconds=deadline
            )
            raise LeaderboardTimeoutError from e
        except Exception as e:
            logger.exception("leaderboard_aggregation_failed", course_url=course_url)
            raise LeaderboardAggregationError from e

        # sorted() is stable: equal totals keep the student listing order
        ranked = sorted(scored, key=lambda pair: pair[0], reverse=True)
        rankings = []
        for position, (_total, entry) in enumerate(ranked, start=1):
            entry.rank = position
            rankings.append(entry)

        logger.info(
            "leaderboard_computed",
            course_url=course_url,
            students=len(rankings),
        )
        return rankings

    async def _aggregate(
        self, course_url: str | None
    ) -> list[tuple[float, LeaderboardEntry]]:
        scope: Course | None = None
        if course_url:
            scope = await self.course_service.get_course_by_url(course_url)

        students = await self.user_service.list_students()
        semaphore = asyncio.Semaphore(self.max_concurrency)
        courses: dict[UUID, Course | None] = {}

        async def bounded(student: User) -> tuple[float, LeaderboardEntry]:
            async with semaphore:
                return await self._score_student(
                    student, course_url, scope, courses
                )

        return list(await asyncio.gather(*(bounded(s) for s in students)))

    async def _score_student(
        self,
        student: User,
        course_url: str | None,
        scope: Course | None,
        courses: dict[UUID, Course | None],
    ) -> tuple[float, LeaderboardEntry]:
        """Compute one student's unrounded total and entry."""
        if course_url and scope is None:
            # Unknown course: no enrollment can match, attempts still count
            enrollments = []
        else:
            enrollments = await self.progress_service.get_user_enrollments(
                student.id, course_id=scope.id if scope else None
            )

        enrolled_courses = []
        course_points = 0
        for enrollment in enrollments:
            if enrollment.course_id not in courses:
                courses[enrollment.course_id] = await self.course_service.get_course(
                    enrollment.course_id
                )
            course = courses[enrollment.course_id]
            course_points += enrollment.progress
            enrolled_courses.append(
                EnrolledCourseSummary(
                    course_id=enrollment.course_id,
                    course_url=course.course_url if course else None,
                    title=course.title if course else None,
                    progress=enrollment.progress,
                    status=enrollment.status,
                )
            )

        attempts = await self.quiz_service.list_scored_attempts(student.id, course_url)
        student_quiz_points = quiz_points(attempts)
        total = course_points + student_quiz_points

        entry = LeaderboardEntry(
            user_id=student.id,
            name=student.name,
            avatar=student.avatar_url,
            metrics=LeaderboardMetrics(
                courses_enrolled=len(enrollments),
                course_points=round_points(course_points),
                quiz_points=round_points(student_quiz_points),
                total_points=round_points(total),
                enrolled_courses=enrolled_courses,
            ),
        )
        return total, entry


def find_rank(rankings: list[LeaderboardEntry], user_id: UUID) -> int | None:
    """Rank of ``user_id`` in the rankings, None when absent."""
    for entry in rankings:
        if entry.user_id == user_id:
            return entry.rank
    return None
