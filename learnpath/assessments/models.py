"""Database models for assessments and assessment submissions.

Cassandra table definitions for:
- Assessments: instructor-authored MCQ or coding assessments of a course
- Assessment submissions: one row per (assessment, student)

Questions and answers are stored as JSON text snapshots. The submission
primary key is (assessment_id, student_id) and rows are written with
IF NOT EXISTS, so a student can submit an assessment only once.
"""

from datetime import UTC, datetime
from enum import Enum
from typing import Any
from uuid import UUID, uuid4

import orjson

from learnpath.utils import ensure_utc_aware


class AssessmentType(str, Enum):
    """Kind of questions an assessment holds."""

    MCQ = "MCQ"
    CODING = "CODING"


class SubmissionStatus(str, Enum):
    """Grading status of a submission."""

    PENDING = "pending"  # Coding answers await a teacher
    GRADED = "graded"  # Every answer has its marks


# ==============================================================================
# CQL Table Definitions
# ==============================================================================

ASSESSMENTS_TABLE_CQL = """
CREATE TABLE IF NOT EXISTS {keyspace}.assessments (
    id UUID PRIMARY KEY,
    course_id UUID,
    title TEXT,
    description TEXT,
    type TEXT,
    questions TEXT,
    assigned_days SET<INT>,
    due_date TIMESTAMP,
    total_marks INT,
    creator_id UUID,
    created_at TIMESTAMP
)
"""

# Course assessment listing: WHERE course_id = ?
ASSESSMENTS_COURSE_INDEX_CQL = """
CREATE INDEX IF NOT EXISTS assessments_course_idx ON {keyspace}.assessments (course_id)
"""

ASSESSMENT_SUBMISSIONS_TABLE_CQL = """
CREATE TABLE IF NOT EXISTS {keyspace}.assessment_submissions (
    assessment_id UUID,
    student_id UUID,
    answers TEXT,
    total_marks INT,
    max_marks INT,
    status TEXT,
    feedback TEXT,
    submitted_at TIMESTAMP,
    graded_at TIMESTAMP,
    graded_by UUID,
    PRIMARY KEY ((assessment_id), student_id)
)
"""

ASSESSMENTS_TABLES_CQL = [
    ASSESSMENTS_TABLE_CQL,
    ASSESSMENTS_COURSE_INDEX_CQL,
    ASSESSMENT_SUBMISSIONS_TABLE_CQL,
]


def dump_items(items: list[dict[str, Any]]) -> str:
    """Serialize questions or answers for a TEXT column."""
    return orjson.dumps(items).decode()


def load_items(raw: str | None) -> list[dict[str, Any]]:
    """Deserialize stored questions or answers."""
    if not raw:
        return []
    return orjson.loads(raw)


# ==============================================================================
# Entity Classes
# ==============================================================================


class Assessment:
    """Instructor-authored assessment.

    Attributes:
        id: Assessment UUID
        course_id: Course the assessment belongs to
        title: Assessment title
        description: Instructions shown to students
        type: MCQ or CODING
        questions: Question snapshots (camelCase dicts with an ``id``)
        assigned_days: Roadmap days the assessment is shown on
        due_date: Submissions close after this time
        total_marks: Sum of the question marks
        creator_id: Teacher who created it
    """

    def __init__(
        self,
        course_id: UUID,
        title: str,
        type: str,
        due_date: datetime,
        description: str = "",
        questions: list[dict[str, Any]] | None = None,
        assigned_days: set[int] | None = None,
        total_marks: int | None = None,
        creator_id: UUID | None = None,
        id: UUID | None = None,
        created_at: datetime | None = None,
    ):
        self.id = id or uuid4()
        self.course_id = course_id
        self.title = title
        self.description = description
        self.type = type
        self.questions = questions or []
        self.assigned_days = set(assigned_days or ())
        self.due_date = ensure_utc_aware(due_date)
        self.total_marks = (
            total_marks
            if total_marks is not None
            else sum(int(q.get("marks", 0)) for q in self.questions)
        )
        self.creator_id = creator_id
        self.created_at = ensure_utc_aware(created_at) or datetime.now(UTC)

    def is_open(self, now: datetime) -> bool:
        return now <= self.due_date

    def question(self, question_id: UUID | str) -> dict[str, Any] | None:
        """Find a question by id."""
        key = str(question_id)
        return next((q for q in self.questions if q.get("id") == key), None)

    @classmethod
    def from_row(cls, row: Any) -> "Assessment":
        """Create Assessment instance from Cassandra row."""
        return cls(
            id=row.id,
            course_id=row.course_id,
            title=row.title or "",
            description=row.description or "",
            type=row.type or AssessmentType.MCQ.value,
            questions=load_items(row.questions),
            assigned_days=set(row.assigned_days or ()),
            due_date=row.due_date,
            total_marks=row.total_marks,
            creator_id=row.creator_id,
            created_at=row.created_at,
        )

    def __repr__(self) -> str:
        return f"<Assessment {self.id} {self.type} {self.title!r}>"


class AssessmentSubmission:
    """A student's single submission to an assessment."""

    def __init__(
        self,
        assessment_id: UUID,
        student_id: UUID,
        answers: list[dict[str, Any]] | None = None,
        total_marks: int = 0,
        max_marks: int = 0,
        status: str = SubmissionStatus.PENDING.value,
        feedback: str | None = None,
        submitted_at: datetime | None = None,
        graded_at: datetime | None = None,
        graded_by: UUID | None = None,
    ):
        self.assessment_id = assessment_id
        self.student_id = student_id
        self.answers = answers or []
        self.total_marks = total_marks
        self.max_marks = max_marks
        self.status = status
        self.feedback = feedback
        self.submitted_at = ensure_utc_aware(submitted_at) or datetime.now(UTC)
        self.graded_at = ensure_utc_aware(graded_at)
        self.graded_by = graded_by

    @property
    def is_graded(self) -> bool:
        return self.status == SubmissionStatus.GRADED.value

    def answer(self, question_id: UUID | str) -> dict[str, Any] | None:
        key = str(question_id)
        return next((a for a in self.answers if a.get("questionId") == key), None)

    @classmethod
    def from_row(cls, row: Any) -> "AssessmentSubmission":
        """Create AssessmentSubmission instance from Cassandra row."""
        return cls(
            assessment_id=row.assessment_id,
            student_id=row.student_id,
            answers=load_items(row.answers),
            total_marks=row.total_marks or 0,
            max_marks=row.max_marks or 0,
            status=row.status or SubmissionStatus.PENDING.value,
            feedback=row.feedback,
            submitted_at=row.submitted_at,
            graded_at=row.graded_at,
            graded_by=row.graded_by,
        )

    def __repr__(self) -> str:
        return (
            f"<AssessmentSubmission {self.assessment_id} student={self.student_id} "
            f"{self.total_marks}/{self.max_marks} {self.status}>"
        )
