"""Pydantic schemas for courses."""

from datetime import datetime
from uuid import UUID

from pydantic import Field

from learnpath.core.schemas import CamelModel

from .models import Course


class CreateCourseRequest(CamelModel):
    """Course creation request."""

    title: str = Field(..., min_length=3, max_length=200, description="Course title")
    course_url: str | None = Field(
        None,
        min_length=3,
        max_length=200,
        pattern=r"^[a-z0-9]+(?:-[a-z0-9]+)*$",
        description="Course URL slug (generated from title when omitted)",
    )
    description: str | None = Field(
        None, max_length=5000, description="Course description"
    )
    thumbnail_url: str | None = Field(
        None, max_length=500, description="Thumbnail image URL"
    )
    total_days: int = Field(..., ge=1, le=365, description="Days in the roadmap")


class CourseResponse(CamelModel):
    """Course response."""

    id: UUID
    course_url: str
    title: str
    description: str | None = None
    thumbnail_url: str | None = None
    total_days: int
    creator_id: UUID | None = None
    created_at: datetime
    updated_at: datetime | None = None

    @classmethod
    def from_entity(cls, entity: Course) -> "CourseResponse":
        """Create response from entity."""
        return cls(
            id=entity.id,
            course_url=entity.course_url,
            title=entity.title,
            description=entity.description,
            thumbnail_url=entity.thumbnail_url,
            total_days=entity.total_days,
            creator_id=entity.creator_id,
            created_at=entity.created_at,
            updated_at=entity.updated_at,
        )


class CourseListResponse(CamelModel):
    """Course list response."""

    items: list[CourseResponse]
    total: int
