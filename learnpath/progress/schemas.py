"""Pydantic schemas for enrollments and day progress.

Request and response models for:
- Course enrollment
- Day completion (manual)
- Progress queries
"""

from datetime import datetime
from decimal import Decimal
from uuid import UUID

from pydantic import Field

from learnpath.core.schemas import CamelModel

from .models import Enrollment, EnrollmentStatus


# ==============================================================================
# Enrollment Schemas
# ==============================================================================


class EnrollRequest(CamelModel):
    """Request to enroll in a course."""

    course_url: str = Field(..., min_length=1, description="Course URL")


class EnrollmentResponse(CamelModel):
    """Enrollment with day progress."""

    user_id: UUID
    course_id: UUID
    course_url: str | None = None
    course_title: str | None = None
    status: EnrollmentStatus
    progress: int = Field(description="0-100 percentage")
    score: Decimal = Decimal(0)
    completed_days: list[int] = Field(default_factory=list)
    quiz_days: list[int] = Field(default_factory=list)
    days_completed_per_duration: str
    enrolled_at: datetime
    started_at: datetime | None = None
    completed_at: datetime | None = None
    last_updated: datetime | None = None

    @classmethod
    def from_entity(
        cls,
        entity: Enrollment,
        course_url: str | None = None,
        course_title: str | None = None,
    ) -> "EnrollmentResponse":
        """Create response from entity."""
        return cls(
            user_id=entity.user_id,
            course_id=entity.course_id,
            course_url=course_url,
            course_title=course_title,
            status=EnrollmentStatus(entity.status),
            progress=entity.progress,
            score=entity.score,
            completed_days=sorted(entity.completed_days),
            quiz_days=sorted(entity.quiz_days),
            days_completed_per_duration=entity.days_completed_per_duration,
            enrolled_at=entity.enrolled_at,
            started_at=entity.started_at,
            completed_at=entity.completed_at,
            last_updated=entity.last_updated,
        )


class EnrollmentListResponse(CamelModel):
    """List of user enrollments."""

    items: list[EnrollmentResponse]
    total: int


# ==============================================================================
# Day Completion Schemas
# ==============================================================================


class DayProgressRequest(CamelModel):
    """Mark a roadmap day complete or incomplete."""

    course_url: str = Field(..., min_length=1, description="Course URL")
    day_number: int = Field(..., ge=1, description="Day number (1-based)")
