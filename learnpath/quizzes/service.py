"""Quiz service layer.

Business logic for:
- Quiz submission with the per-day attempt cap
- Server-held day quizzes authored by teachers
- Attempt queries for students, teachers and the leaderboard
- Leaderboard refresh markers
"""

from datetime import UTC, datetime
from decimal import Decimal
from typing import TYPE_CHECKING, Any
from uuid import UUID

import structlog

from learnpath.courses.models import Course
from learnpath.utils import round_points

from .models import DayQuiz, QuizAttempt, dump_questions
from .schemas import Question, StudentQuizAverage
from .scoring import UNANSWERED, course_averages, day_averages, score_answers


if TYPE_CHECKING:
    from cassandra.cluster import Session

    from learnpath.courses.service import CourseService
    from learnpath.progress.service import ProgressService

logger = structlog.get_logger(__name__)

DEFAULT_MAX_ATTEMPTS = 2


# ==============================================================================
# Custom Exceptions
# ==============================================================================


class QuizError(Exception):
    """Base quiz error."""

    def __init__(self, message: str, code: str = "quiz_error"):
        self.message = message
        self.code = code
        super().__init__(message)


class MissingFieldsError(QuizError):
    """Course URL, day number, questions or selected answers missing."""

    def __init__(self, message: str = "Missing required fields"):
        super().__init__(message, "missing_fields")


class MaxAttemptsReachedError(QuizError):
    """Attempt cap reached for (user, course, day)."""

    def __init__(self, message: str = "Maximum attempts reached for this quiz"):
        super().__init__(message, "max_attempts_reached")


class QuizPersistenceError(QuizError):
    """Attempt could not be stored."""

    def __init__(self, message: str = "Failed to submit quiz, please try again"):
        super().__init__(message, "persistence_error")


class QuizNotFoundError(QuizError):
    """No server-held quiz for the course day."""

    def __init__(self, message: str = "Quiz not found"):
        super().__init__(message, "quiz_not_found")


class InvalidQuizDayError(QuizError):
    """Day number outside the course roadmap."""

    def __init__(self, message: str = "Day number is outside the course roadmap"):
        super().__init__(message, "invalid_day")


# ==============================================================================
# Quiz Service
# ==============================================================================


class QuizService:
    """Service for quizzes and quiz attempts."""

    def __init__(
        self,
        session: "Session",
        keyspace: str,
        course_service: "CourseService",
        progress_service: "ProgressService",
        max_attempts: int = DEFAULT_MAX_ATTEMPTS,
        completion_min_score: int = 0,
    ):
        """Initialize with Cassandra session and collaborating services."""
        self.session = session
        self.keyspace = keyspace
        self.course_service = course_service
        self.progress_service = progress_service
        self.max_attempts = max_attempts
        self.completion_min_score = completion_min_score
        self._prepare_statements()

    def _prepare_statements(self) -> None:
        """Prepare CQL statements for efficient execution."""
        # Attempts (newest attempt first within a day)
        self._list_day_attempts = self.session.prepare(f"""
            SELECT * FROM {self.keyspace}.quiz_attempts
            WHERE user_id = ? AND course_url = ? AND day_number = ?
        """)

        self._list_user_attempts = self.session.prepare(f"""
            SELECT * FROM {self.keyspace}.quiz_attempts
            WHERE user_id = ?
        """)

        self._list_user_course_attempts = self.session.prepare(f"""
            SELECT * FROM {self.keyspace}.quiz_attempts
            WHERE user_id = ? AND course_url = ?
        """)

        # LWT: the attempt_number clustering key is the cap guard
        self._insert_attempt = self.session.prepare(f"""
            INSERT INTO {self.keyspace}.quiz_attempts
            (user_id, course_url, day_number, attempt_number, title, questions,
             selected_answers, score, is_completed, needs_leaderboard_update,
             submitted_date, created_at)
            VALUES (?, ?, ?, ?, ?, ?, ?, ?, ?, ?, ?, ?)
            IF NOT EXISTS
        """)

        self._clear_attempt_flag = self.session.prepare(f"""
            UPDATE {self.keyspace}.quiz_attempts
            SET needs_leaderboard_update = false
            WHERE user_id = ? AND course_url = ? AND day_number = ?
            AND attempt_number = ?
        """)

        # Pending refresh markers
        self._insert_pending = self.session.prepare(f"""
            INSERT INTO {self.keyspace}.quiz_attempts_pending_refresh
            (course_url, user_id, day_number, attempt_number, flagged_at)
            VALUES (?, ?, ?, ?, ?)
        """)

        self._list_pending = self.session.prepare(f"""
            SELECT * FROM {self.keyspace}.quiz_attempts_pending_refresh
            WHERE course_url = ?
        """)

        self._delete_pending = self.session.prepare(f"""
            DELETE FROM {self.keyspace}.quiz_attempts_pending_refresh
            WHERE course_url = ? AND user_id = ? AND day_number = ?
            AND attempt_number = ?
        """)

        # Day quizzes
        self._get_day_quiz = self.session.prepare(f"""
            SELECT * FROM {self.keyspace}.quizzes
            WHERE course_url = ? AND day_number = ?
        """)

        self._upsert_day_quiz = self.session.prepare(f"""
            INSERT INTO {self.keyspace}.quizzes
            (course_url, day_number, title, questions, updated_by, updated_at)
            VALUES (?, ?, ?, ?, ?, ?)
        """)

    # ==========================================================================
    # Submission
    # ==========================================================================

    async def submit_quiz(
        self,
        user_id: UUID,
        course_url: str | None,
        day_number: int | None,
        title: str,
        questions: list[Question] | None,
        selected_answers: list[int | None] | None,
        submitted_date: datetime | None = None,
    ) -> QuizAttempt:
        """Score and store a quiz attempt.

        When a server-held quiz exists for the course day, the attempt is
        scored against it and its questions are snapshotted; otherwise the
        submitted questions are used.

        Raises:
            MissingFieldsError: If a required field is missing or empty
            MaxAttemptsReachedError: If every attempt slot is taken
            QuizPersistenceError: If reading or writing attempts fails
        """
        if (
            not course_url
            or day_number is None
            or day_number < 1
            or not questions
            or not selected_answers
        ):
            raise MissingFieldsError

        try:
            prior = await self.list_day_attempts(user_id, course_url, day_number)
            if len(prior) >= self.max_attempts:
                raise MaxAttemptsReachedError

            stored = await self.get_day_quiz(course_url, day_number)
            if stored is not None:
                snapshot = stored.questions
                title = title or stored.title
            else:
                snapshot = [q.model_dump(mode="json", by_alias=True) for q in questions]

            answers = [UNANSWERED if a is None else a for a in selected_answers]
            score = score_answers(snapshot, answers)
            now = datetime.now(UTC)

            attempt = await self._claim_attempt_slot(
                QuizAttempt(
                    user_id=user_id,
                    course_url=course_url,
                    day_number=day_number,
                    attempt_number=len(prior) + 1,
                    title=title,
                    questions=snapshot,
                    selected_answers=answers,
                    score=score,
                    is_completed=score >= self.completion_min_score,
                    needs_leaderboard_update=True,
                    submitted_date=submitted_date or now,
                    created_at=now,
                )
            )
            await self.session.aexecute(
                self._insert_pending,
                [course_url, user_id, day_number, attempt.attempt_number, now],
            )
        except QuizError:
            raise
        except Exception as e:
            logger.exception(
                "quiz_persistence_failed",
                user_id=str(user_id),
                course_url=course_url,
                day_number=day_number,
            )
            raise QuizPersistenceError from e

        logger.info(
            "quiz_submitted",
            user_id=str(user_id),
            course_url=course_url,
            day_number=day_number,
            attempt_number=attempt.attempt_number,
            score=score,
            server_held=stored is not None,
        )

        await self._record_quiz_progress(user_id, course_url, day_number)
        return attempt

    async def _claim_attempt_slot(self, attempt: QuizAttempt) -> QuizAttempt:
        """Insert the attempt into the first free slot up to the cap.

        A concurrent submission may win a slot between the count and the
        insert; the next slot is tried until the cap.
        """
        for slot in range(attempt.attempt_number, self.max_attempts + 1):
            attempt.attempt_number = slot
            result = await self.session.aexecute(
                self._insert_attempt,
                [
                    attempt.user_id,
                    attempt.course_url,
                    attempt.day_number,
                    attempt.attempt_number,
                    attempt.title,
                    dump_questions(attempt.questions),
                    attempt.selected_answers,
                    attempt.score,
                    attempt.is_completed,
                    attempt.needs_leaderboard_update,
                    attempt.submitted_date,
                    attempt.created_at,
                ],
            )
            if result.was_applied:
                return attempt

            logger.warning(
                "quiz_attempt_slot_taken",
                user_id=str(attempt.user_id),
                course_url=attempt.course_url,
                day_number=attempt.day_number,
                attempt_number=slot,
            )

        raise MaxAttemptsReachedError

    async def _record_quiz_progress(
        self, user_id: UUID, course_url: str, day_number: int
    ) -> None:
        """Mark the quiz day on the enrollment (best effort)."""
        try:
            course = await self.course_service.get_course_by_url(course_url)
            if course is None:
                logger.debug("quiz_progress_skipped", course_url=course_url)
                return

            attempts = await self.list_user_attempts(user_id, course_url)
            average = course_averages(attempts).get(course_url, 0.0)
            await self.progress_service.record_quiz_day(
                user_id,
                course,
                day_number,
                course_score=Decimal(str(round(average, 2))),
            )
        except Exception:
            logger.warning(
                "quiz_progress_update_failed",
                user_id=str(user_id),
                course_url=course_url,
                day_number=day_number,
                exc_info=True,
            )

    # ==========================================================================
    # Attempt Queries
    # ==========================================================================

    async def list_day_attempts(
        self, user_id: UUID, course_url: str, day_number: int
    ) -> list[QuizAttempt]:
        """Attempts for (user, course, day), newest attempt first."""
        rows = await self.session.aexecute(
            self._list_day_attempts, [user_id, course_url, day_number]
        )
        attempts = [QuizAttempt.from_row(row) for row in rows]
        return sorted(attempts, key=lambda a: a.attempt_number, reverse=True)

    async def list_user_attempts(
        self, user_id: UUID, course_url: str | None = None
    ) -> list[QuizAttempt]:
        """All attempts of a user, optionally scoped to one course."""
        if course_url is None:
            rows = await self.session.aexecute(self._list_user_attempts, [user_id])
        else:
            rows = await self.session.aexecute(
                self._list_user_course_attempts, [user_id, course_url]
            )
        return [QuizAttempt.from_row(row) for row in rows]

    async def list_scored_attempts(
        self, user_id: UUID, course_url: str | None = None
    ) -> list[QuizAttempt]:
        """Attempts carrying a score, optionally scoped to one course."""
        attempts = await self.list_user_attempts(user_id, course_url)
        return [a for a in attempts if a.score is not None]

    def remaining_attempts(self, attempts: list[QuizAttempt]) -> int:
        return max(0, self.max_attempts - len(attempts))

    async def course_quiz_averages(self, course: Course) -> list[StudentQuizAverage]:
        """Each enrolled student's mean of per-day averages in a course."""
        enrollments = await self.progress_service.get_course_enrollments(course.id)

        items = []
        for enrollment in enrollments:
            attempts = await self.list_scored_attempts(
                enrollment.user_id, course.course_url
            )
            average = course_averages(attempts).get(course.course_url, 0.0)
            items.append(
                StudentQuizAverage(
                    user_id=enrollment.user_id,
                    average=round_points(average),
                    days_attempted=len(day_averages(attempts)),
                )
            )

        return sorted(items, key=lambda item: item.average, reverse=True)

    # ==========================================================================
    # Leaderboard Refresh Markers
    # ==========================================================================

    async def clear_pending_refresh(self, course_url: str) -> int:
        """Clear needs_leaderboard_update on a course's flagged attempts.

        Idempotent: a second call finds no markers. Returns the number of
        attempts cleared.
        """
        rows = await self.session.aexecute(self._list_pending, [course_url])
        markers: list[Any] = list(rows)

        for marker in markers:
            await self.session.aexecute(
                self._clear_attempt_flag,
                [
                    marker.user_id,
                    course_url,
                    marker.day_number,
                    marker.attempt_number,
                ],
            )
            await self.session.aexecute(
                self._delete_pending,
                [
                    course_url,
                    marker.user_id,
                    marker.day_number,
                    marker.attempt_number,
                ],
            )

        if markers:
            logger.info(
                "leaderboard_flags_cleared", course_url=course_url, count=len(markers)
            )
        return len(markers)

    # ==========================================================================
    # Day Quizzes
    # ==========================================================================

    async def get_day_quiz(self, course_url: str, day_number: int) -> DayQuiz | None:
        """Get the server-held quiz for a course day."""
        result = await self.session.aexecute(
            self._get_day_quiz, [course_url, day_number]
        )
        row = result.one()
        return DayQuiz.from_row(row) if row else None

    async def require_day_quiz(self, course_url: str, day_number: int) -> DayQuiz:
        """Get the server-held quiz or raise QuizNotFoundError."""
        quiz = await self.get_day_quiz(course_url, day_number)
        if quiz is None:
            raise QuizNotFoundError
        return quiz

    async def put_day_quiz(
        self,
        course: Course,
        day_number: int,
        title: str,
        questions: list[Question],
        updated_by: UUID,
    ) -> DayQuiz:
        """Create or replace the quiz of a course day.

        Raises:
            InvalidQuizDayError: If day_number is outside 1..total_days
        """
        if not 1 <= day_number <= course.total_days:
            raise InvalidQuizDayError

        quiz = DayQuiz(
            course_url=course.course_url,
            day_number=day_number,
            title=title,
            questions=[q.model_dump(mode="json", by_alias=True) for q in questions],
            updated_by=updated_by,
            updated_at=datetime.now(UTC),
        )

        await self.session.aexecute(
            self._upsert_day_quiz,
            [
                quiz.course_url,
                quiz.day_number,
                quiz.title,
                dump_questions(quiz.questions),
                quiz.updated_by,
                quiz.updated_at,
            ],
        )

        logger.info(
            "day_quiz_saved",
            course_url=quiz.course_url,
            day_number=day_number,
            questions=len(quiz.questions),
        )
        return quiz
