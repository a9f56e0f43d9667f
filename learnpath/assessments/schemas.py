"""Pydantic schemas for assessments and assessment submissions.

Questions and answers are tagged unions on ``type`` (``MCQ`` or
``CODING``).
"""

from datetime import datetime
from typing import Annotated, Any, Literal
from uuid import UUID, uuid4

from pydantic import Field, model_validator

from learnpath.core.schemas import CamelModel

from .models import (
    Assessment,
    AssessmentSubmission,
    AssessmentType,
    SubmissionStatus,
)


# ==============================================================================
# Questions
# ==============================================================================


class MCQQuestion(CamelModel):
    """Multiple choice question; the correct answer is one of the options."""

    type: Literal["MCQ"] = "MCQ"
    id: UUID = Field(default_factory=uuid4)
    question_text: str = Field(..., min_length=1, max_length=2000)
    options: list[str] = Field(..., min_length=2, max_length=20)
    correct_answer: str
    marks: int = Field(1, ge=0, le=100)

    @model_validator(mode="after")
    def check_correct_answer(self) -> "MCQQuestion":
        if self.correct_answer not in self.options:
            msg = "correctAnswer must be one of the options"
            raise ValueError(msg)
        return self


class CodingTestCase(CamelModel):
    """Input and expected output; hidden cases are not shown to students."""

    input: str = Field(..., max_length=10000)
    expected_output: str = Field(..., max_length=10000)
    is_hidden: bool = False


class CodingQuestion(CamelModel):
    """Programming problem graded by a teacher."""

    type: Literal["CODING"] = "CODING"
    id: UUID = Field(default_factory=uuid4)
    problem_statement: str = Field(..., min_length=1, max_length=10000)
    input_format: str = Field(..., max_length=2000)
    output_format: str = Field(..., max_length=2000)
    test_cases: list[CodingTestCase] = Field(default_factory=list, max_length=50)
    marks: int = Field(10, ge=0, le=1000)
    sample_code: str | None = Field(None, max_length=10000)


AssessmentQuestion = Annotated[
    MCQQuestion | CodingQuestion, Field(discriminator="type")
]


# ==============================================================================
# Answers
# ==============================================================================


class MCQAnswer(CamelModel):
    """Selected option text for an MCQ question."""

    type: Literal["MCQ"] = "MCQ"
    question_id: UUID
    selected_answer: str = Field(..., max_length=2000)


class CodingAnswer(CamelModel):
    """Source code for a coding question."""

    type: Literal["CODING"] = "CODING"
    question_id: UUID
    code: str = Field(..., min_length=1, max_length=100_000)
    language: str = Field(..., min_length=1, max_length=50)


Answer = Annotated[MCQAnswer | CodingAnswer, Field(discriminator="type")]


# ==============================================================================
# Request Schemas
# ==============================================================================


class CreateAssessmentRequest(CamelModel):
    """Assessment creation (teachers)."""

    course_url: str = Field(..., min_length=1, max_length=200)
    title: str = Field(..., min_length=1, max_length=200)
    description: str = Field(..., max_length=5000)
    type: AssessmentType
    questions: list[AssessmentQuestion] = Field(..., min_length=1, max_length=100)
    assigned_days: list[Annotated[int, Field(ge=1)]] = Field(..., min_length=1)
    due_date: datetime

    @model_validator(mode="after")
    def check_question_types(self) -> "CreateAssessmentRequest":
        """Every question matches the assessment type and ids are unique."""
        for index, question in enumerate(self.questions, start=1):
            if question.type != self.type.value:
                msg = f"Question {index} is not a {self.type.value} question"
                raise ValueError(msg)
        if len({q.id for q in self.questions}) != len(self.questions):
            msg = "Question ids must be unique"
            raise ValueError(msg)
        return self


class SubmitAssessmentRequest(CamelModel):
    """A student's answers."""

    answers: list[Answer] = Field(..., min_length=1, max_length=200)


class AnswerGrade(CamelModel):
    """Marks and feedback for one answered question."""

    question_id: UUID
    marks: int = Field(..., ge=0)
    feedback: str | None = Field(None, max_length=2000)


class GradeSubmissionRequest(CamelModel):
    """Teacher grading of a submission."""

    grades: list[AnswerGrade] = Field(default_factory=list, max_length=200)
    feedback: str | None = Field(None, max_length=5000)


# ==============================================================================
# Response Schemas
# ==============================================================================


class AssessmentResponse(CamelModel):
    """Assessment with answers and hidden test cases (teachers)."""

    id: UUID
    course_id: UUID
    title: str
    description: str
    type: AssessmentType
    questions: list[dict[str, Any]]
    assigned_days: list[int]
    due_date: datetime
    total_marks: int
    created_at: datetime

    @classmethod
    def from_entity(cls, entity: Assessment) -> "AssessmentResponse":
        """Create response from entity."""
        return cls(
            id=entity.id,
            course_id=entity.course_id,
            title=entity.title,
            description=entity.description,
            type=AssessmentType(entity.type),
            questions=entity.questions,
            assigned_days=sorted(entity.assigned_days),
            due_date=entity.due_date,
            total_marks=entity.total_marks,
            created_at=entity.created_at,
        )


def _public_question(question: dict[str, Any]) -> dict[str, Any]:
    """Drop the correct answer and hidden test cases."""
    public = {k: v for k, v in question.items() if k != "correctAnswer"}
    if "testCases" in public:
        public["testCases"] = [
            case for case in public["testCases"] if not case.get("isHidden")
        ]
    return public


class StudentAssessmentResponse(CamelModel):
    """Assessment as shown to a student, with their submission state."""

    id: UUID
    course_id: UUID
    title: str
    description: str
    type: AssessmentType
    questions: list[dict[str, Any]]
    assigned_days: list[int]
    due_date: datetime
    total_marks: int
    status: Literal["pending", "completed"]
    score: int | None = Field(None, description="Marks once graded")

    @classmethod
    def from_entity(
        cls, entity: Assessment, submission: AssessmentSubmission | None
    ) -> "StudentAssessmentResponse":
        """Create response from entity and the student's submission."""
        graded = submission is not None and submission.is_graded
        return cls(
            id=entity.id,
            course_id=entity.course_id,
            title=entity.title,
            description=entity.description,
            type=AssessmentType(entity.type),
            questions=[_public_question(q) for q in entity.questions],
            assigned_days=sorted(entity.assigned_days),
            due_date=entity.due_date,
            total_marks=entity.total_marks,
            status="completed" if submission else "pending",
            score=submission.total_marks if graded else None,
        )


class StudentAssessmentListResponse(CamelModel):
    """Assessments of a course for a student."""

    items: list[StudentAssessmentResponse]
    total: int


class AssessmentListResponse(CamelModel):
    """Assessments of a course (teachers)."""

    items: list[AssessmentResponse]
    total: int


class SubmissionResponse(CamelModel):
    """Stored submission with marks."""

    assessment_id: UUID
    student_id: UUID
    answers: list[dict[str, Any]]
    total_marks: int
    max_marks: int
    status: SubmissionStatus
    feedback: str | None = None
    submitted_at: datetime
    graded_at: datetime | None = None

    @classmethod
    def from_entity(cls, entity: AssessmentSubmission) -> "SubmissionResponse":
        """Create response from entity."""
        return cls(
            assessment_id=entity.assessment_id,
            student_id=entity.student_id,
            answers=entity.answers,
            total_marks=entity.total_marks,
            max_marks=entity.max_marks,
            status=SubmissionStatus(entity.status),
            feedback=entity.feedback,
            submitted_at=entity.submitted_at,
            graded_at=entity.graded_at,
        )


class SubmissionListResponse(CamelModel):
    """Submissions of an assessment."""

    items: list[SubmissionResponse]
    total: int
