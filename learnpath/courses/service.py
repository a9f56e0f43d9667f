"""Course service layer.

Business logic for:
- Course creation with unique course URLs
- Course lookups by id and by course URL
"""

from datetime import UTC, datetime
from typing import TYPE_CHECKING
from uuid import UUID

import structlog

from learnpath.courses.models import Course
from learnpath.courses.schemas import CreateCourseRequest


if TYPE_CHECKING:
    from cassandra.cluster import Session

logger = structlog.get_logger(__name__)


# ==============================================================================
# Custom Exceptions
# ==============================================================================


class CourseError(Exception):
    """Base course error."""

    def __init__(self, message: str, code: str = "course_error"):
        self.message = message
        self.code = code
        super().__init__(message)


class CourseNotFoundError(CourseError):
    """Course not found."""

    def __init__(self, message: str = "Course not found"):
        super().__init__(message, "course_not_found")


class CourseUrlExistsError(CourseError):
    """Course URL already taken."""

    def __init__(self, message: str = "Course URL already exists"):
        super().__init__(message, "course_url_exists")


# ==============================================================================
# Course Service
# ==============================================================================


class CourseService:
    """Service for course operations."""

    def __init__(self, session: "Session", keyspace: str):
        """Initialize with Cassandra session."""
        self.session = session
        self.keyspace = keyspace
        self._prepare_statements()

    def _prepare_statements(self) -> None:
        """Prepare CQL statements for efficient execution."""
        self._insert_course = self.session.prepare(f"""
            INSERT INTO {self.keyspace}.courses
            (id, course_url, title, description, thumbnail_url, total_days,
             creator_id, created_at, updated_at)
            VALUES (?, ?, ?, ?, ?, ?, ?, ?, ?)
        """)

        # LWT: the URL row is the uniqueness guard
        self._claim_course_url = self.session.prepare(f"""
            INSERT INTO {self.keyspace}.courses_by_url (course_url, course_id)
            VALUES (?, ?)
            IF NOT EXISTS
        """)

        self._get_by_id = self.session.prepare(f"""
            SELECT * FROM {self.keyspace}.courses WHERE id = ?
        """)

        self._get_id_by_url = self.session.prepare(f"""
            SELECT course_id FROM {self.keyspace}.courses_by_url WHERE course_url = ?
        """)

        self._list_all = self.session.prepare(f"""
            SELECT * FROM {self.keyspace}.courses
        """)

    async def create_course(
        self, data: CreateCourseRequest, creator_id: UUID
    ) -> Course:
        """Create a new course.

        Raises:
            CourseUrlExistsError: If the course URL is taken
        """
        course = Course(
            course_url=data.course_url,
            title=data.title,
            description=data.description,
            thumbnail_url=data.thumbnail_url,
            total_days=data.total_days,
            creator_id=creator_id,
            created_at=datetime.now(UTC),
        )

        result = await self.session.aexecute(
            self._claim_course_url, [course.course_url, course.id]
        )
        if not result.was_applied:
            raise CourseUrlExistsError

        await self.session.aexecute(
            self._insert_course,
            [
                course.id,
                course.course_url,
                course.title,
                course.description,
                course.thumbnail_url,
                course.total_days,
                course.creator_id,
                course.created_at,
                course.updated_at,
            ],
        )

        logger.info(
            "course_created",
            course_id=str(course.id),
            course_url=course.course_url,
            creator_id=str(creator_id),
        )
        return course

    async def get_course(self, course_id: UUID) -> Course | None:
        """Get course by ID."""
        result = await self.session.aexecute(self._get_by_id, [course_id])
        row = result.one()
        return Course.from_row(row) if row else None

    async def get_course_by_url(self, course_url: str) -> Course | None:
        """Get course by its course URL."""
        result = await self.session.aexecute(self._get_id_by_url, [course_url])
        row = result.one()
        if row is None:
            return None
        return await self.get_course(row.course_id)

    async def require_course_by_url(self, course_url: str) -> Course:
        """Get course by URL or raise CourseNotFoundError."""
        course = await self.get_course_by_url(course_url)
        if course is None:
            raise CourseNotFoundError
        return course

    async def list_courses(self) -> list[Course]:
        """List all courses ordered by title."""
        rows = await self.session.aexecute(self._list_all)
        courses = [Course.from_row(row) for row in rows]
        return sorted(courses, key=lambda c: c.title.lower())
