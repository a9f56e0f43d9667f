"""Database models for enrollments and course progress.

Cassandra table definitions for:
- Enrollments: one row per (course, student), partitioned by course
- Enrollments by user: the same rows partitioned by student

Architecture: Dual-write pattern for efficient queries by both
course_id and user_id perspectives. Every write goes to both tables.
"""

from datetime import UTC, datetime
from decimal import Decimal
from enum import Enum
from typing import Any
from uuid import UUID

from learnpath.utils import ensure_utc_aware, percentage


class EnrollmentStatus(str, Enum):
    """Course enrollment status."""

    ENROLLED = "enrolled"  # Enrolled, no day completed yet
    IN_PROGRESS = "in_progress"  # At least one day completed
    COMPLETED = "completed"  # Every day of the roadmap completed
    WITHDRAWN = "withdrawn"  # Student left the course (soft delete)
    REJECTED = "rejected"  # Enrollment request refused (soft delete)


# Soft-deleted enrollments are kept but no longer count anywhere
INACTIVE_STATUSES = frozenset(
    {EnrollmentStatus.WITHDRAWN.value, EnrollmentStatus.REJECTED.value}
)


# ==============================================================================
# CQL Table Definitions
# ==============================================================================

_ENROLLMENT_COLUMNS = """
    status TEXT,
    enrolled_at TIMESTAMP,
    started_at TIMESTAMP,
    completed_at TIMESTAMP,
    progress INT,
    score DECIMAL,
    total_days INT,
    completed_days SET<INT>,
    quiz_days SET<INT>,
    days_completed_per_duration TEXT,
    last_updated TIMESTAMP,
"""

# Partitioned by course_id: "who is enrolled in this course?"
ENROLLMENTS_TABLE_CQL = (
    """
CREATE TABLE IF NOT EXISTS {keyspace}.enrollments (
    course_id UUID,
    user_id UUID,"""
    + _ENROLLMENT_COLUMNS
    + """
    PRIMARY KEY (course_id, user_id)
)
"""
)

# Partitioned by user_id: "which courses is this student enrolled in?"
ENROLLMENTS_BY_USER_TABLE_CQL = (
    """
CREATE TABLE IF NOT EXISTS {keyspace}.enrollments_by_user (
    user_id UUID,
    course_id UUID,"""
    + _ENROLLMENT_COLUMNS
    + """
    PRIMARY KEY (user_id, course_id)
)
"""
)

PROGRESS_TABLES_CQL = [
    ENROLLMENTS_TABLE_CQL,
    ENROLLMENTS_BY_USER_TABLE_CQL,
]


# ==============================================================================
# Entity Classes
# ==============================================================================


class Enrollment:
    """Course enrollment with day progress.

    Attributes:
        course_id: Course UUID
        user_id: Student UUID
        status: Enrollment status
        enrolled_at: Enrollment timestamp
        started_at: First completed day timestamp
        completed_at: Course completion timestamp
        progress: Percentage of roadmap days completed (0-100)
        score: Mean of the student's per-day quiz averages in this course
        total_days: Roadmap length at last update
        completed_days: Day numbers marked complete
        quiz_days: Day numbers with a submitted quiz
        days_completed_per_duration: "<completed>/<total>" display string
        last_updated: Last progress-affecting event
    """

    def __init__(
        self,
        course_id: UUID,
        user_id: UUID,
        status: str = EnrollmentStatus.ENROLLED.value,
        enrolled_at: datetime | None = None,
        started_at: datetime | None = None,
        completed_at: datetime | None = None,
        progress: int = 0,
        score: Decimal = Decimal(0),
        total_days: int = 0,
        completed_days: set[int] | None = None,
        quiz_days: set[int] | None = None,
        last_updated: datetime | None = None,
    ):
        self.course_id = course_id
        self.user_id = user_id
        self.status = status
        self.enrolled_at = ensure_utc_aware(enrolled_at) or datetime.now(UTC)
        self.started_at = ensure_utc_aware(started_at)
        self.completed_at = ensure_utc_aware(completed_at)
        self.progress = progress
        self.score = score
        self.total_days = total_days
        self.completed_days = set(completed_days or ())
        self.quiz_days = set(quiz_days or ())
        self.last_updated = ensure_utc_aware(last_updated)

    @property
    def is_active(self) -> bool:
        """Withdrawn and rejected enrollments are inactive."""
        return self.status not in INACTIVE_STATUSES

    @property
    def is_completed(self) -> bool:
        """Check if course is completed."""
        return self.status == EnrollmentStatus.COMPLETED.value

    @property
    def days_completed_per_duration(self) -> str:
        return f"{len(self.completed_days)}/{self.total_days}"

    def recalculate(self, total_days: int, now: datetime) -> None:
        """Recompute progress and status from the completed days."""
        self.total_days = total_days
        self.progress = min(100, percentage(len(self.completed_days), total_days))

        if not self.is_active:
            return

        if total_days > 0 and len(self.completed_days) >= total_days:
            if not self.is_completed:
                self.completed_at = now
            self.status = EnrollmentStatus.COMPLETED.value
        elif self.completed_days:
            self.status = EnrollmentStatus.IN_PROGRESS.value
            self.completed_at = None
        else:
            self.status = EnrollmentStatus.ENROLLED.value
            self.completed_at = None

        if self.completed_days and self.started_at is None:
            self.started_at = now

    @classmethod
    def from_row(cls, row: Any) -> "Enrollment":
        """Create Enrollment instance from Cassandra row."""
        return cls(
            course_id=row.course_id,
            user_id=row.user_id,
            status=row.status or EnrollmentStatus.ENROLLED.value,
            enrolled_at=row.enrolled_at,
            started_at=row.started_at,
            completed_at=row.completed_at,
            progress=row.progress or 0,
            score=row.score or Decimal(0),
            total_days=row.total_days or 0,
            completed_days=row.completed_days,
            quiz_days=row.quiz_days,
            last_updated=row.last_updated,
        )

    def __repr__(self) -> str:
        return (
            f"<Enrollment user={self.user_id} course={self.course_id} "
            f"{self.status} {self.progress}%>"
        )
