"""Fixtures for assessment tests: in-memory assessment tables."""

from datetime import UTC, datetime, timedelta
from types import SimpleNamespace
from unittest.mock import AsyncMock, Mock
from uuid import uuid4

import pytest

from learnpath.assessments.service import AssessmentService
from learnpath.courses.models import Course
from learnpath.progress.models import Enrollment
from learnpath.progress.service import NotEnrolledError, ProgressService
from tests.helpers import ResultSet, make_session


KEYSPACE = "test_ks"

ASSESSMENT_COLUMNS = (
    "id",
    "course_id",
    "title",
    "description",
    "type",
    "questions",
    "assigned_days",
    "due_date",
    "total_marks",
    "creator_id",
    "created_at",
)

SUBMISSION_COLUMNS = (
    "assessment_id",
    "student_id",
    "answers",
    "total_marks",
    "max_marks",
    "status",
    "feedback",
    "submitted_at",
    "graded_at",
    "graded_by",
)

GRADE_COLUMNS = (
    "answers",
    "total_marks",
    "status",
    "feedback",
    "graded_at",
    "graded_by",
)


class FakeAssessmentTables:
    """Answers the assessment service's CQL from Python dicts."""

    def __init__(self):
        self.assessments: dict = {}
        self.submissions: dict[tuple, SimpleNamespace] = {}

    async def execute(self, statement: str, params=None):
        params = list(params or [])
        assessments_table = f"{KEYSPACE}.assessments "
        submissions_table = f"{KEYSPACE}.assessment_submissions "

        if f"INSERT INTO {assessments_table}" in statement:
            row = SimpleNamespace(**dict(zip(ASSESSMENT_COLUMNS, params, strict=True)))
            self.assessments[row.id] = row
            return ResultSet()
        if f"FROM {assessments_table}WHERE id" in statement:
            row = self.assessments.get(params[0])
            return ResultSet([row] if row else [])
        if f"FROM {assessments_table}WHERE course_id" in statement:
            return ResultSet(
                r for r in self.assessments.values() if r.course_id == params[0]
            )
        if f"INSERT INTO {submissions_table}" in statement:
            row = SimpleNamespace(**dict(zip(SUBMISSION_COLUMNS, params, strict=True)))
            key = (row.assessment_id, row.student_id)
            if key in self.submissions:
                return ResultSet(was_applied=False)
            self.submissions[key] = row
            return ResultSet(was_applied=True)
        if f"UPDATE {submissions_table}" in statement:
            *values, assessment_id, student_id = params
            row = self.submissions[(assessment_id, student_id)]
            for column, value in zip(GRADE_COLUMNS, values, strict=True):
                setattr(row, column, value)
            return ResultSet()
        if f"FROM {submissions_table}" in statement:
            if "AND student_id" in statement:
                row = self.submissions.get(tuple(params))
                return ResultSet([row] if row else [])
            return ResultSet(
                r for r in self.submissions.values() if r.assessment_id == params[0]
            )
        raise AssertionError(f"unexpected statement: {statement}")


@pytest.fixture
def tables() -> FakeAssessmentTables:
    """In-memory assessment tables."""
    return FakeAssessmentTables()


@pytest.fixture
def course() -> Course:
    """A 10-day course."""
    return Course(course_url="python-basics", title="Python Basics", total_days=10)


@pytest.fixture
def student_id():
    """Enrolled student."""
    return uuid4()


@pytest.fixture
def progress_service(course, student_id) -> Mock:
    """Mock ProgressService; only ``student_id`` is enrolled."""

    async def require_enrollment(user_id, course_id):
        if user_id != student_id or course_id != course.id:
            raise NotEnrolledError
        return Enrollment(user_id=user_id, course_id=course_id, total_days=10)

    service = Mock(spec=ProgressService)
    service.require_enrollment = AsyncMock(side_effect=require_enrollment)
    return service


@pytest.fixture
def assessment_service(tables, progress_service) -> AssessmentService:
    """AssessmentService over the in-memory tables."""
    session = make_session()
    session.aexecute = AsyncMock(side_effect=tables.execute)
    return AssessmentService(
        session=session, keyspace=KEYSPACE, progress_service=progress_service
    )


@pytest.fixture
def due_date() -> datetime:
    """A week from now."""
    return datetime.now(UTC) + timedelta(days=7)
