"""Database models for courses.

Cassandra table definitions for:
- Courses: one row per course, addressed by id
- Courses by URL: lookup from the human-readable course URL (slug) to the id

A course is a sequence of numbered days; each day may carry a quiz.
"""

import re
import unicodedata
from datetime import UTC, datetime
from typing import Any
from uuid import UUID, uuid4

from learnpath.utils import ensure_utc_aware


# ==============================================================================
# CQL Table Definitions
# ==============================================================================

COURSE_TABLE_CQL = """
CREATE TABLE IF NOT EXISTS {keyspace}.courses (
    id UUID PRIMARY KEY,
    course_url TEXT,
    title TEXT,
    description TEXT,
    thumbnail_url TEXT,
    total_days INT,
    creator_id UUID,
    created_at TIMESTAMP,
    updated_at TIMESTAMP
)
"""

COURSES_BY_URL_TABLE_CQL = """
CREATE TABLE IF NOT EXISTS {keyspace}.courses_by_url (
    course_url TEXT PRIMARY KEY,
    course_id UUID
)
"""

COURSES_TABLES_CQL = [
    COURSE_TABLE_CQL,
    COURSES_BY_URL_TABLE_CQL,
]


def generate_course_url(title: str) -> str:
    """Generate URL-friendly course slug from title."""
    slug = unicodedata.normalize("NFKD", title)
    slug = slug.encode("ascii", "ignore").decode("ascii")
    slug = slug.lower().strip()
    slug = re.sub(r"[^\w\s-]", "", slug)
    return re.sub(r"[-\s_]+", "-", slug).strip("-")


# ==============================================================================
# Entity Classes
# ==============================================================================


class Course:
    """Course entity.

    Attributes:
        id: Unique identifier (UUID)
        course_url: URL-friendly identifier, unique
        title: Course title
        description: Course description
        thumbnail_url: Cover image URL
        total_days: Number of days in the course roadmap
        creator_id: Teacher who created the course
        created_at: Creation timestamp
        updated_at: Last update timestamp
    """

    def __init__(
        self,
        id: UUID | None = None,
        course_url: str | None = None,
        title: str = "",
        description: str | None = None,
        thumbnail_url: str | None = None,
        total_days: int = 0,
        creator_id: UUID | None = None,
        created_at: datetime | None = None,
        updated_at: datetime | None = None,
    ):
        self.id = id or uuid4()
        self.title = title.strip()
        self.course_url = course_url or generate_course_url(title)
        self.description = description
        self.thumbnail_url = thumbnail_url
        self.total_days = total_days
        self.creator_id = creator_id
        self.created_at = ensure_utc_aware(created_at) or datetime.now(UTC)
        self.updated_at = ensure_utc_aware(updated_at)

    @classmethod
    def from_row(cls, row: Any) -> "Course":
        """Create Course instance from Cassandra row."""
        return cls(
            id=row.id,
            course_url=row.course_url,
            title=row.title or "",
            description=row.description,
            thumbnail_url=row.thumbnail_url,
            total_days=row.total_days or 0,
            creator_id=row.creator_id,
            created_at=row.created_at,
            updated_at=row.updated_at,
        )

    def __repr__(self) -> str:
        return f"<Course {self.course_url} ({self.total_days} days)>"
