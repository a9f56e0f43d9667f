"""Pydantic schemas for quizzes and quiz submissions.

Questions are a tagged union on ``type``. A question without a type is
read as ``single_choice``.
"""

from datetime import datetime
from typing import Annotated, Any, Literal
from uuid import UUID

from pydantic import Discriminator, Field, Tag, model_validator

from learnpath.core.schemas import CamelModel

from .models import DayQuiz, QuizAttempt


# ==============================================================================
# Questions
# ==============================================================================


class QuizOption(CamelModel):
    """Answer option with its correctness flag."""

    text: str = Field(..., max_length=1000)
    is_correct: bool = False


class SingleChoiceQuestion(CamelModel):
    """Question with one or more options, one of them correct."""

    type: Literal["single_choice"] = "single_choice"
    question: str = Field(..., max_length=2000)
    options: list[QuizOption] = Field(..., min_length=2, max_length=20)


class TrueFalseQuestion(CamelModel):
    """Question with exactly two options (true, false)."""

    type: Literal["true_false"] = "true_false"
    question: str = Field(..., max_length=2000)
    options: list[QuizOption] = Field(
        default_factory=lambda: [QuizOption(text="True"), QuizOption(text="False")],
        min_length=2,
        max_length=2,
    )


def _question_type(value: Any) -> str:
    if isinstance(value, dict):
        return value.get("type") or "single_choice"
    return getattr(value, "type", "single_choice")


Question = Annotated[
    Annotated[SingleChoiceQuestion, Tag("single_choice")]
    | Annotated[TrueFalseQuestion, Tag("true_false")],
    Discriminator(_question_type),
]


class PublicQuizOption(CamelModel):
    """Answer option as shown to students (no correctness flag)."""

    text: str


class PublicQuestion(CamelModel):
    """Question as shown to students."""

    type: str
    question: str
    options: list[PublicQuizOption]


# ==============================================================================
# Submission Schemas
# ==============================================================================


class SubmitQuizRequest(CamelModel):
    """Quiz submission.

    Required fields are checked by the service so that a missing field is
    reported as "Missing required fields" instead of a validation error.
    ``score`` is accepted for compatibility and ignored; the server
    computes it.
    """

    course_url: str | None = None
    day_number: int | None = None
    title: str = Field("", max_length=200)
    questions: list[Question] | None = None
    selected_answers: list[int | None] | None = None
    score: float | None = None
    submitted_date: datetime | None = None


class QuizAttemptResponse(CamelModel):
    """Persisted quiz attempt."""

    user_id: UUID
    course_url: str
    day_number: int
    title: str
    questions: list[dict[str, Any]]
    selected_answers: list[int]
    score: int | None
    submitted_date: datetime
    attempt_number: int
    is_completed: bool
    needs_leaderboard_update: bool

    @classmethod
    def from_entity(cls, entity: QuizAttempt) -> "QuizAttemptResponse":
        """Create response from entity."""
        return cls(
            user_id=entity.user_id,
            course_url=entity.course_url,
            day_number=entity.day_number,
            title=entity.title,
            questions=entity.questions,
            selected_answers=entity.selected_answers,
            score=entity.score,
            submitted_date=entity.submitted_date,
            attempt_number=entity.attempt_number,
            is_completed=entity.is_completed,
            needs_leaderboard_update=entity.needs_leaderboard_update,
        )


class QuizSubmissionResponse(CamelModel):
    """Quiz submission result."""

    message: str = "Quiz submitted successfully"
    submission: QuizAttemptResponse


class MyAttemptsResponse(CamelModel):
    """Caller's attempts for one course day."""

    items: list[QuizAttemptResponse]
    total: int
    max_attempts: int
    remaining_attempts: int


class StudentQuizAverage(CamelModel):
    """One student's quiz average in a course."""

    user_id: UUID
    average: float = Field(description="Mean of per-day averages")
    days_attempted: int


class CourseQuizAveragesResponse(CamelModel):
    """Per-student quiz averages for a course."""

    course_url: str
    items: list[StudentQuizAverage]


# ==============================================================================
# Day Quiz Schemas
# ==============================================================================


class DayQuizRequest(CamelModel):
    """Create or replace the quiz of a course day."""

    title: str = Field(..., min_length=1, max_length=200)
    questions: list[Question] = Field(..., min_length=1, max_length=100)

    @model_validator(mode="after")
    def check_correct_options(self) -> "DayQuizRequest":
        """Every question needs exactly one correct option."""
        for index, question in enumerate(self.questions, start=1):
            correct = sum(1 for option in question.options if option.is_correct)
            if correct != 1:
                msg = f"Question {index} must have exactly one correct option"
                raise ValueError(msg)
        return self


class DayQuizResponse(CamelModel):
    """Quiz of a course day, with correctness flags (teachers)."""

    course_url: str
    day_number: int
    title: str
    questions: list[dict[str, Any]]
    updated_at: datetime

    @classmethod
    def from_entity(cls, entity: DayQuiz) -> "DayQuizResponse":
        """Create response from entity."""
        return cls(
            course_url=entity.course_url,
            day_number=entity.day_number,
            title=entity.title,
            questions=entity.questions,
            updated_at=entity.updated_at,
        )


class PublicDayQuizResponse(CamelModel):
    """Quiz of a course day without correctness flags (students)."""

    course_url: str
    day_number: int
    title: str
    questions: list[PublicQuestion]

    @classmethod
    def from_entity(cls, entity: DayQuiz) -> "PublicDayQuizResponse":
        """Create response from entity, dropping the isCorrect flags."""
        return cls(
            course_url=entity.course_url,
            day_number=entity.day_number,
            title=entity.title,
            questions=[
                PublicQuestion(
                    type=q.get("type", "single_choice"),
                    question=q.get("question", ""),
                    options=[
                        PublicQuizOption(text=o.get("text", ""))
                        for o in q.get("options", [])
                    ],
                )
                for q in entity.questions
            ],
        )
