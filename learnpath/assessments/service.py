"""Assessment service layer.

Business logic for:
- Instructor-authored assessments (MCQ or coding)
- One submission per (student, assessment), MCQ answers marked on submit
- Teacher grading of coding answers
"""

from datetime import UTC, datetime
from typing import TYPE_CHECKING
from uuid import UUID

import structlog

from learnpath.courses.models import Course
from learnpath.progress.service import NotEnrolledError

from .marking import mark_answer, needs_grading, total_marks
from .models import (
    Assessment,
    AssessmentSubmission,
    SubmissionStatus,
    dump_items,
)
from .schemas import Answer, AnswerGrade, CreateAssessmentRequest


if TYPE_CHECKING:
    from cassandra.cluster import Session

    from learnpath.progress.service import ProgressService

logger = structlog.get_logger(__name__)


# ==============================================================================
# Custom Exceptions
# ==============================================================================


class AssessmentError(Exception):
    """Base assessment error."""

    def __init__(self, message: str, code: str = "assessment_error"):
        self.message = message
        self.code = code
        super().__init__(message)


class AssessmentNotFoundError(AssessmentError):
    """Assessment not found."""

    def __init__(self, message: str = "Assessment not found"):
        super().__init__(message, "assessment_not_found")


class InvalidAssessmentDayError(AssessmentError):
    """Assigned day outside the course roadmap."""

    def __init__(self, message: str = "Assigned days must be within the course"):
        super().__init__(message, "invalid_day")


class AssessmentClosedError(AssessmentError):
    """Submission after the due date."""

    def __init__(self, message: str = "Assessment is past its due date"):
        super().__init__(message, "assessment_closed")


class NotEnrolledInCourseError(AssessmentError):
    """Student has no active enrollment in the assessment's course."""

    def __init__(self, message: str = "You are not enrolled in this course"):
        super().__init__(message, "not_enrolled")


class InvalidAnswersError(AssessmentError):
    """Answers that do not fit the assessment's questions."""

    def __init__(self, message: str = "Answers do not match the assessment"):
        super().__init__(message, "invalid_answers")


class AlreadySubmittedError(AssessmentError):
    """Student already submitted this assessment."""

    def __init__(self, message: str = "Assessment already submitted"):
        super().__init__(message, "already_submitted")


class SubmissionNotFoundError(AssessmentError):
    """No submission for (assessment, student)."""

    def __init__(self, message: str = "Submission not found"):
        super().__init__(message, "submission_not_found")


class InvalidGradeError(AssessmentError):
    """Grade for an unanswered question or above the question marks."""

    def __init__(self, message: str = "Invalid grade"):
        super().__init__(message, "invalid_grade")


# ==============================================================================
# Assessment Service
# ==============================================================================


class AssessmentService:
    """Service for assessments and their submissions."""

    def __init__(
        self,
        session: "Session",
        keyspace: str,
        progress_service: "ProgressService",
    ):
        """Initialize with Cassandra session and the progress service."""
        self.session = session
        self.keyspace = keyspace
        self.progress_service = progress_service
        self._prepare_statements()

    def _prepare_statements(self) -> None:
        """Prepare CQL statements for efficient execution."""
        # Assessments
        self._insert_assessment = self.session.prepare(f"""
            INSERT INTO {self.keyspace}.assessments
            (id, course_id, title, description, type, questions, assigned_days,
             due_date, total_marks, creator_id, created_at)
            VALUES (?, ?, ?, ?, ?, ?, ?, ?, ?, ?, ?)
        """)

        self._get_assessment = self.session.prepare(f"""
            SELECT * FROM {self.keyspace}.assessments WHERE id = ?
        """)

        self._list_course_assessments = self.session.prepare(f"""
            SELECT * FROM {self.keyspace}.assessments WHERE course_id = ?
        """)

        # Submissions (LWT: one row per student)
        self._insert_submission = self.session.prepare(f"""
            INSERT INTO {self.keyspace}.assessment_submissions
            (assessment_id, student_id, answers, total_marks, max_marks, status,
             feedback, submitted_at, graded_at, graded_by)
            VALUES (?, ?, ?, ?, ?, ?, ?, ?, ?, ?)
            IF NOT EXISTS
        """)

        self._get_submission = self.session.prepare(f"""
            SELECT * FROM {self.keyspace}.assessment_submissions
            WHERE assessment_id = ? AND student_id = ?
        """)

        self._list_submissions = self.session.prepare(f"""
            SELECT * FROM {self.keyspace}.assessment_submissions
            WHERE assessment_id = ?
        """)

        self._update_grade = self.session.prepare(f"""
            UPDATE {self.keyspace}.assessment_submissions
            SET answers = ?, total_marks = ?, status = ?, feedback = ?,
                graded_at = ?, graded_by = ?
            WHERE assessment_id = ? AND student_id = ?
        """)

    # ==========================================================================
    # Assessments
    # ==========================================================================

    async def create_assessment(
        self, course: Course, data: CreateAssessmentRequest, creator_id: UUID
    ) -> Assessment:
        """Create an assessment for a course.

        Raises:
            InvalidAssessmentDayError: If an assigned day is outside the course
        """
        if any(day > course.total_days for day in data.assigned_days):
            raise InvalidAssessmentDayError

        assessment = Assessment(
            course_id=course.id,
            title=data.title,
            description=data.description,
            type=data.type.value,
            questions=[
                q.model_dump(mode="json", by_alias=True) for q in data.questions
            ],
            assigned_days=set(data.assigned_days),
            due_date=data.due_date,
            creator_id=creator_id,
        )

        await self.session.aexecute(
            self._insert_assessment,
            [
                assessment.id,
                assessment.course_id,
                assessment.title,
                assessment.description,
                assessment.type,
                dump_items(assessment.questions),
                assessment.assigned_days,
                assessment.due_date,
                assessment.total_marks,
                assessment.creator_id,
                assessment.created_at,
            ],
        )

        logger.info(
            "assessment_created",
            assessment_id=str(assessment.id),
            course_id=str(course.id),
            type=assessment.type,
            questions=len(assessment.questions),
            total_marks=assessment.total_marks,
        )
        return assessment

    async def get_assessment(self, assessment_id: UUID) -> Assessment | None:
        """Get assessment by ID."""
        result = await self.session.aexecute(self._get_assessment, [assessment_id])
        row = result.one()
        return Assessment.from_row(row) if row else None

    async def require_assessment(self, assessment_id: UUID) -> Assessment:
        """Get assessment or raise AssessmentNotFoundError."""
        assessment = await self.get_assessment(assessment_id)
        if assessment is None:
            raise AssessmentNotFoundError
        return assessment

    async def list_course_assessments(
        self, course_id: UUID, day: int | None = None
    ) -> list[Assessment]:
        """Assessments of a course by due date, optionally for one day."""
        rows = await self.session.aexecute(self._list_course_assessments, [course_id])
        assessments = [Assessment.from_row(row) for row in rows]
        if day is not None:
            assessments = [a for a in assessments if day in a.assigned_days]
        return sorted(assessments, key=lambda a: a.due_date)

    async def list_student_assessments(
        self, course_id: UUID, student_id: UUID, day: int | None = None
    ) -> list[tuple[Assessment, AssessmentSubmission | None]]:
        """Course assessments paired with the student's submission."""
        assessments = await self.list_course_assessments(course_id, day)
        return [
            (assessment, await self.get_submission(assessment.id, student_id))
            for assessment in assessments
        ]

    # ==========================================================================
    # Submissions
    # ==========================================================================

    async def submit(
        self, assessment_id: UUID, student_id: UUID, answers: list[Answer]
    ) -> AssessmentSubmission:
        """Mark and store a student's only submission.

        MCQ answers are marked immediately; a submission with coding
        answers stays pending until a teacher grades it. Unanswered
        questions score 0.

        Raises:
            AssessmentNotFoundError: If the assessment does not exist
            AssessmentClosedError: If the due date has passed
            NotEnrolledInCourseError: Without an active course enrollment
            InvalidAnswersError: For unknown, mistyped or repeated questions
            AlreadySubmittedError: If the student already submitted
        """
        assessment = await self.require_assessment(assessment_id)
        now = datetime.now(UTC)
        if not assessment.is_open(now):
            raise AssessmentClosedError

        try:
            await self.progress_service.require_enrollment(
                student_id, assessment.course_id
            )
        except NotEnrolledError as e:
            raise NotEnrolledInCourseError from e

        marked = self._mark(assessment, answers)
        pending = needs_grading(marked)
        submission = AssessmentSubmission(
            assessment_id=assessment.id,
            student_id=student_id,
            answers=marked,
            total_marks=total_marks(marked),
            max_marks=assessment.total_marks,
            status=(
                SubmissionStatus.PENDING.value
                if pending
                else SubmissionStatus.GRADED.value
            ),
            submitted_at=now,
            graded_at=None if pending else now,
        )

        result = await self.session.aexecute(
            self._insert_submission,
            [
                submission.assessment_id,
                submission.student_id,
                dump_items(submission.answers),
                submission.total_marks,
                submission.max_marks,
                submission.status,
                submission.feedback,
                submission.submitted_at,
                submission.graded_at,
                submission.graded_by,
            ],
        )
        if not result.was_applied:
            raise AlreadySubmittedError

        logger.info(
            "assessment_submitted",
            assessment_id=str(assessment.id),
            student_id=str(student_id),
            total_marks=submission.total_marks,
            max_marks=submission.max_marks,
            status=submission.status,
        )
        return submission

    @staticmethod
    def _mark(assessment: Assessment, answers: list[Answer]) -> list[dict]:
        seen: set[UUID] = set()
        marked = []
        for answer in answers:
            question = assessment.question(answer.question_id)
            if question is None:
                raise InvalidAnswersError(
                    f"Question {answer.question_id} is not part of this assessment"
                )
            if question.get("type") != answer.type:
                raise InvalidAnswersError(
                    f"Question {answer.question_id} expects a {question.get('type')} "
                    "answer"
                )
            if answer.question_id in seen:
                raise InvalidAnswersError(
                    f"Question {answer.question_id} is answered more than once"
                )
            seen.add(answer.question_id)
            marked.append(
                mark_answer(question, answer.model_dump(mode="json", by_alias=True))
            )
        return marked

    async def get_submission(
        self, assessment_id: UUID, student_id: UUID
    ) -> AssessmentSubmission | None:
        """Get a student's submission."""
        result = await self.session.aexecute(
            self._get_submission, [assessment_id, student_id]
        )
        row = result.one()
        return AssessmentSubmission.from_row(row) if row else None

    async def require_submission(
        self, assessment_id: UUID, student_id: UUID
    ) -> AssessmentSubmission:
        """Get a submission or raise SubmissionNotFoundError."""
        submission = await self.get_submission(assessment_id, student_id)
        if submission is None:
            raise SubmissionNotFoundError
        return submission

    async def list_submissions(self, assessment_id: UUID) -> list[AssessmentSubmission]:
        """Every submission of an assessment, oldest first."""
        rows = await self.session.aexecute(self._list_submissions, [assessment_id])
        submissions = [AssessmentSubmission.from_row(row) for row in rows]
        return sorted(submissions, key=lambda s: s.submitted_at)

    # ==========================================================================
    # Grading
    # ==========================================================================

    async def grade_submission(
        self,
        assessment_id: UUID,
        student_id: UUID,
        grades: list[AnswerGrade],
        feedback: str | None,
        graded_by: UUID,
    ) -> AssessmentSubmission:
        """Set marks on answered questions and mark the submission graded.

        Grades may override automatic MCQ marks. Answers without a grade
        keep their current marks.

        Raises:
            AssessmentNotFoundError: If the assessment does not exist
            SubmissionNotFoundError: If the student has not submitted
            InvalidGradeError: For unanswered questions or marks above the
                question's marks
        """
        assessment = await self.require_assessment(assessment_id)
        submission = await self.require_submission(assessment_id, student_id)

        for grade in grades:
            answer = submission.answer(grade.question_id)
            question = assessment.question(grade.question_id)
            if answer is None or question is None:
                raise InvalidGradeError(
                    f"Question {grade.question_id} has no answer to grade"
                )
            if grade.marks > int(question.get("marks", 0)):
                raise InvalidGradeError(
                    f"Question {grade.question_id} is worth at most "
                    f"{question.get('marks', 0)} marks"
                )
            answer["marks"] = grade.marks
            answer["feedback"] = grade.feedback

        now = datetime.now(UTC)
        submission.total_marks = total_marks(submission.answers)
        submission.status = SubmissionStatus.GRADED.value
        submission.feedback = feedback
        submission.graded_at = now
        submission.graded_by = graded_by

        await self.session.aexecute(
            self._update_grade,
            [
                dump_items(submission.answers),
                submission.total_marks,
                submission.status,
                submission.feedback,
                submission.graded_at,
                submission.graded_by,
                assessment_id,
                student_id,
            ],
        )

        logger.info(
            "assessment_graded",
            assessment_id=str(assessment_id),
            student_id=str(student_id),
            total_marks=submission.total_marks,
            max_marks=submission.max_marks,
            graded_by=str(graded_by),
        )
        return submission
