"""Enrollment and day progress service layer.

Business logic for:
- Course enrollment management (enroll, withdraw, reject)
- Manual day completion with progress recalculation
- Quiz day markers recorded after quiz submissions
"""

from datetime import UTC, datetime
from decimal import Decimal
from typing import TYPE_CHECKING
from uuid import UUID

import structlog

from learnpath.courses.models import Course

from .models import Enrollment, EnrollmentStatus


if TYPE_CHECKING:
    from cassandra.cluster import Session

logger = structlog.get_logger(__name__)


# ==============================================================================
# Custom Exceptions
# ==============================================================================


class ProgressError(Exception):
    """Base progress error."""

    def __init__(self, message: str, code: str = "progress_error"):
        self.message = message
        self.code = code
        super().__init__(message)


class NotEnrolledError(ProgressError):
    """User not enrolled in course."""

    def __init__(self, message: str = "User is not enrolled in this course"):
        super().__init__(message, "not_enrolled")


class AlreadyEnrolledError(ProgressError):
    """User already enrolled."""

    def __init__(self, message: str = "User is already enrolled in this course"):
        super().__init__(message, "already_enrolled")


class InvalidDayError(ProgressError):
    """Day number outside the course roadmap."""

    def __init__(self, message: str = "Day number is outside the course roadmap"):
        super().__init__(message, "invalid_day")


# ==============================================================================
# Progress Service
# ==============================================================================


class ProgressService:
    """Service for enrollments and day progress."""

    def __init__(self, session: "Session", keyspace: str):
        """Initialize with Cassandra session."""
        self.session = session
        self.keyspace = keyspace
        self._prepare_statements()

    def _prepare_statements(self) -> None:
        """Prepare CQL statements for efficient execution."""
        columns = (
            "status, enrolled_at, started_at, completed_at, progress, score, "
            "total_days, completed_days, quiz_days, days_completed_per_duration, "
            "last_updated"
        )

        # Enrollments (by course)
        self._get_enrollment = self.session.prepare(f"""
            SELECT * FROM {self.keyspace}.enrollments
            WHERE course_id = ? AND user_id = ?
        """)

        self._get_course_enrollments = self.session.prepare(f"""
            SELECT * FROM {self.keyspace}.enrollments
            WHERE course_id = ?
        """)

        self._upsert_enrollment = self.session.prepare(f"""
            INSERT INTO {self.keyspace}.enrollments
            (course_id, user_id, {columns})
            VALUES (?, ?, ?, ?, ?, ?, ?, ?, ?, ?, ?, ?, ?)
        """)

        self._add_quiz_day = self.session.prepare(f"""
            UPDATE {self.keyspace}.enrollments
            SET quiz_days = quiz_days + ?, score = ?, last_updated = ?
            WHERE course_id = ? AND user_id = ?
        """)

        # Enrollments by user (lookup)
        self._get_user_enrollments = self.session.prepare(f"""
            SELECT * FROM {self.keyspace}.enrollments_by_user
            WHERE user_id = ?
        """)

        self._upsert_enrollment_by_user = self.session.prepare(f"""
            INSERT INTO {self.keyspace}.enrollments_by_user
            (user_id, course_id, {columns})
            VALUES (?, ?, ?, ?, ?, ?, ?, ?, ?, ?, ?, ?, ?)
        """)

        self._add_quiz_day_by_user = self.session.prepare(f"""
            UPDATE {self.keyspace}.enrollments_by_user
            SET quiz_days = quiz_days + ?, score = ?, last_updated = ?
            WHERE user_id = ? AND course_id = ?
        """)

    # ==========================================================================
    # Enrollment Operations
    # ==========================================================================

    async def enroll_user(self, user_id: UUID, course: Course) -> Enrollment:
        """Enroll user in a course.

        A withdrawn or rejected enrollment is reactivated with its
        previous day progress.

        Raises:
            AlreadyEnrolledError: If user already has an active enrollment
        """
        now = datetime.now(UTC)
        existing = await self.get_enrollment(user_id, course.id)

        if existing and existing.is_active:
            raise AlreadyEnrolledError

        if existing:
            enrollment = existing
            enrollment.status = EnrollmentStatus.ENROLLED.value
        else:
            enrollment = Enrollment(
                course_id=course.id,
                user_id=user_id,
                status=EnrollmentStatus.ENROLLED.value,
                enrolled_at=now,
            )

        enrollment.recalculate(course.total_days, now)
        enrollment.last_updated = now
        await self._save_enrollment(enrollment)

        logger.info(
            "user_enrolled",
            user_id=str(user_id),
            course_id=str(course.id),
            reactivated=existing is not None,
        )
        return enrollment

    async def get_enrollment(self, user_id: UUID, course_id: UUID) -> Enrollment | None:
        """Get enrollment by user and course."""
        result = await self.session.aexecute(self._get_enrollment, [course_id, user_id])
        row = result.one()
        return Enrollment.from_row(row) if row else None

    async def require_enrollment(self, user_id: UUID, course_id: UUID) -> Enrollment:
        """Get active enrollment or raise NotEnrolledError."""
        enrollment = await self.get_enrollment(user_id, course_id)
        if enrollment is None or not enrollment.is_active:
            raise NotEnrolledError
        return enrollment

    async def get_user_enrollments(
        self,
        user_id: UUID,
        course_id: UUID | None = None,
        include_inactive: bool = False,
    ) -> list[Enrollment]:
        """Get enrollments for a user, optionally scoped to one course."""
        rows = await self.session.aexecute(self._get_user_enrollments, [user_id])
        enrollments = [Enrollment.from_row(row) for row in rows]
        return [
            e
            for e in enrollments
            if (course_id is None or e.course_id == course_id)
            and (include_inactive or e.is_active)
        ]

    async def get_course_enrollments(
        self, course_id: UUID, include_inactive: bool = False
    ) -> list[Enrollment]:
        """Get all enrollments of a course."""
        rows = await self.session.aexecute(self._get_course_enrollments, [course_id])
        enrollments = [Enrollment.from_row(row) for row in rows]
        return [e for e in enrollments if include_inactive or e.is_active]

    async def withdraw(self, user_id: UUID, course_id: UUID) -> Enrollment:
        """Withdraw from a course (soft delete, progress is kept).

        Raises:
            NotEnrolledError: If there is no active enrollment
        """
        enrollment = await self.require_enrollment(user_id, course_id)
        enrollment.status = EnrollmentStatus.WITHDRAWN.value
        enrollment.last_updated = datetime.now(UTC)
        await self._save_enrollment(enrollment)

        logger.info(
            "user_withdrawn",
            user_id=str(user_id),
            course_id=str(course_id),
        )
        return enrollment

    async def reject(self, user_id: UUID, course_id: UUID) -> Enrollment:
        """Reject a student's enrollment (soft delete, progress is kept).

        The student may enroll again later, which reactivates the row.

        Raises:
            NotEnrolledError: If there is no active enrollment
        """
        enrollment = await self.require_enrollment(user_id, course_id)
        enrollment.status = EnrollmentStatus.REJECTED.value
        enrollment.last_updated = datetime.now(UTC)
        await self._save_enrollment(enrollment)

        logger.info(
            "enrollment_rejected",
            user_id=str(user_id),
            course_id=str(course_id),
        )
        return enrollment

    async def _save_enrollment(self, enrollment: Enrollment) -> None:
        """Write enrollment to both tables (dual-write)."""
        values = [
            enrollment.status,
            enrollment.enrolled_at,
            enrollment.started_at,
            enrollment.completed_at,
            enrollment.progress,
            enrollment.score,
            enrollment.total_days,
            enrollment.completed_days,
            enrollment.quiz_days,
            enrollment.days_completed_per_duration,
            enrollment.last_updated,
        ]

        await self.session.aexecute(
            self._upsert_enrollment,
            [enrollment.course_id, enrollment.user_id, *values],
        )
        await self.session.aexecute(
            self._upsert_enrollment_by_user,
            [enrollment.user_id, enrollment.course_id, *values],
        )

    # ==========================================================================
    # Day Progress Operations
    # ==========================================================================

    async def mark_day_complete(
        self, user_id: UUID, course: Course, day_number: int
    ) -> Enrollment:
        """Mark a roadmap day as complete and recalculate progress.

        Raises:
            InvalidDayError: If day_number is outside 1..total_days
            NotEnrolledError: If there is no active enrollment
        """
        return await self._set_day(user_id, course, day_number, completed=True)

    async def mark_day_incomplete(
        self, user_id: UUID, course: Course, day_number: int
    ) -> Enrollment:
        """Unmark a roadmap day and recalculate progress."""
        return await self._set_day(user_id, course, day_number, completed=False)

    async def _set_day(
        self, user_id: UUID, course: Course, day_number: int, completed: bool
    ) -> Enrollment:
        if not 1 <= day_number <= course.total_days:
            raise InvalidDayError

        enrollment = await self.require_enrollment(user_id, course.id)
        now = datetime.now(UTC)

        if completed:
            enrollment.completed_days.add(day_number)
        else:
            enrollment.completed_days.discard(day_number)

        previous_status = enrollment.status
        enrollment.recalculate(course.total_days, now)
        enrollment.last_updated = now
        await self._save_enrollment(enrollment)

        logger.info(
            "day_progress_updated",
            user_id=str(user_id),
            course_id=str(course.id),
            day_number=day_number,
            completed=completed,
            progress=enrollment.progress,
        )
        if enrollment.is_completed and previous_status != enrollment.status:
            logger.info(
                "course_completed",
                user_id=str(user_id),
                course_id=str(course.id),
            )
        return enrollment

    async def record_quiz_day(
        self,
        user_id: UUID,
        course: Course,
        day_number: int,
        course_score: Decimal,
    ) -> None:
        """Mark the quiz day on the user's active enrollment.

        Adds the day to quiz_days, stores the course quiz score and
        refreshes last_updated. Without an active enrollment nothing is
        written, since a CQL UPDATE would create the row.
        """
        existing = await self.get_enrollment(user_id, course.id)
        if existing is None or not existing.is_active:
            logger.debug(
                "quiz_day_skipped_not_enrolled",
                user_id=str(user_id),
                course_id=str(course.id),
                day_number=day_number,
            )
            return

        now = datetime.now(UTC)
        await self.session.aexecute(
            self._add_quiz_day,
            [{day_number}, course_score, now, course.id, user_id],
        )
        await self.session.aexecute(
            self._add_quiz_day_by_user,
            [{day_number}, course_score, now, user_id, course.id],
        )

        logger.debug(
            "quiz_day_recorded",
            user_id=str(user_id),
            course_id=str(course.id),
            day_number=day_number,
        )
