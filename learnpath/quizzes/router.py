"""Quiz API endpoints.

Provides routes for:
- Quiz submission (body or course path)
- The caller's attempts and remaining attempts
- Per-student course averages (teachers)
- Server-held day quizzes
"""

from typing import Annotated
from uuid import UUID

from fastapi import APIRouter, Query

from learnpath.auth.dependencies import CurrentUser, TeacherUser
from learnpath.courses.dependencies import CourseServiceDep, handle_course_error
from learnpath.courses.service import CourseError

from .dependencies import QuizServiceDep, handle_quiz_error
from .schemas import (
    CourseQuizAveragesResponse,
    DayQuizRequest,
    DayQuizResponse,
    MyAttemptsResponse,
    PublicDayQuizResponse,
    QuizAttemptResponse,
    QuizSubmissionResponse,
    SubmitQuizRequest,
)
from .service import QuizError, QuizService


router = APIRouter(prefix="/v1/quiz-submissions", tags=["quiz-submissions"])
course_quiz_router = APIRouter(prefix="/v1/courses", tags=["quiz-submissions"])
quizzes_router = APIRouter(prefix="/v1/quizzes", tags=["quizzes"])


async def _submit(
    quiz_service: QuizService,
    user_id: UUID,
    data: SubmitQuizRequest,
    course_url: str | None,
) -> QuizSubmissionResponse:
    try:
        attempt = await quiz_service.submit_quiz(
            user_id=user_id,
            course_url=course_url,
            day_number=data.day_number,
            title=data.title,
            questions=data.questions,
            selected_answers=data.selected_answers,
            submitted_date=data.submitted_date,
        )
    except QuizError as e:
        raise handle_quiz_error(e) from e

    return QuizSubmissionResponse(submission=QuizAttemptResponse.from_entity(attempt))


# ==============================================================================
# Submission Endpoints
# ==============================================================================


@router.post(
    "",
    response_model=QuizSubmissionResponse,
    summary="Submit quiz",
)
async def submit_quiz(
    data: SubmitQuizRequest,
    quiz_service: QuizServiceDep,
    user: CurrentUser,
) -> QuizSubmissionResponse:
    """Submit a quiz attempt for a course day.

    At most two attempts are stored per (student, course, day).
    """
    return await _submit(quiz_service, UUID(str(user.id)), data, data.course_url)


@course_quiz_router.post(
    "/{course_url}/quiz-submission",
    response_model=QuizSubmissionResponse,
    summary="Submit quiz for course",
)
async def submit_course_quiz(
    course_url: str,
    data: SubmitQuizRequest,
    quiz_service: QuizServiceDep,
    user: CurrentUser,
) -> QuizSubmissionResponse:
    """Submit a quiz attempt, course taken from the path."""
    return await _submit(quiz_service, UUID(str(user.id)), data, course_url)


# ==============================================================================
# Attempt Queries
# ==============================================================================


@router.get(
    "/my",
    response_model=MyAttemptsResponse,
    summary="List my attempts",
)
async def list_my_attempts(
    quiz_service: QuizServiceDep,
    user: CurrentUser,
    course_url: Annotated[str, Query(alias="courseUrl", min_length=1)],
    day_number: Annotated[int, Query(alias="dayNumber", ge=1)],
) -> MyAttemptsResponse:
    """List the caller's attempts for a course day, newest first."""
    attempts = await quiz_service.list_day_attempts(
        UUID(str(user.id)), course_url, day_number
    )
    return MyAttemptsResponse(
        items=[QuizAttemptResponse.from_entity(a) for a in attempts],
        total=len(attempts),
        max_attempts=quiz_service.max_attempts,
        remaining_attempts=quiz_service.remaining_attempts(attempts),
    )


@router.get(
    "/course/{course_url}/averages",
    response_model=CourseQuizAveragesResponse,
    summary="Course quiz averages",
)
async def course_quiz_averages(
    course_url: str,
    quiz_service: QuizServiceDep,
    course_service: CourseServiceDep,
    user: TeacherUser,
) -> CourseQuizAveragesResponse:
    """Each enrolled student's mean of per-day quiz averages (teacher or admin)."""
    try:
        course = await course_service.require_course_by_url(course_url)
    except CourseError as e:
        raise handle_course_error(e) from e

    items = await quiz_service.course_quiz_averages(course)
    return CourseQuizAveragesResponse(course_url=course.course_url, items=items)


# ==============================================================================
# Day Quiz Endpoints
# ==============================================================================


@quizzes_router.put(
    "/{course_url}/days/{day_number}",
    response_model=DayQuizResponse,
    summary="Save day quiz",
)
async def put_day_quiz(
    course_url: str,
    day_number: int,
    data: DayQuizRequest,
    quiz_service: QuizServiceDep,
    course_service: CourseServiceDep,
    user: TeacherUser,
) -> DayQuizResponse:
    """Create or replace the quiz of a course day (teacher or admin)."""
    try:
        course = await course_service.require_course_by_url(course_url)
    except CourseError as e:
        raise handle_course_error(e) from e

    try:
        quiz = await quiz_service.put_day_quiz(
            course,
            day_number,
            title=data.title,
            questions=data.questions,
            updated_by=UUID(str(user.id)),
        )
    except QuizError as e:
        raise handle_quiz_error(e) from e

    return DayQuizResponse.from_entity(quiz)


@quizzes_router.get(
    "/{course_url}/days/{day_number}",
    response_model=PublicDayQuizResponse,
    summary="Get day quiz",
)
async def get_day_quiz(
    course_url: str,
    day_number: int,
    quiz_service: QuizServiceDep,
    user: CurrentUser,
) -> PublicDayQuizResponse:
    """Get the quiz of a course day without the correct answers."""
    try:
        quiz = await quiz_service.require_day_quiz(course_url, day_number)
    except QuizError as e:
        raise handle_quiz_error(e) from e

    return PublicDayQuizResponse.from_entity(quiz)
