"""Enrollment and day progress API endpoints.

Provides routes for:
- Course enrollment, withdrawal and rejection
- Manual day completion
- Progress queries
"""

from uuid import UUID

from fastapi import APIRouter, status

from learnpath.auth.dependencies import CurrentUser, TeacherUser
from learnpath.courses.dependencies import CourseServiceDep, handle_course_error
from learnpath.courses.models import Course
from learnpath.courses.service import CourseError, CourseService

from .dependencies import ProgressServiceDep, handle_progress_error
from .schemas import (
    DayProgressRequest,
    EnrollmentListResponse,
    EnrollmentResponse,
    EnrollRequest,
)
from .service import ProgressError


router = APIRouter(prefix="/v1/progress", tags=["progress"])
enrollments_router = APIRouter(prefix="/v1/enrollments", tags=["enrollments"])


async def _resolve_course(course_service: CourseService, course_url: str) -> Course:
    try:
        return await course_service.require_course_by_url(course_url)
    except CourseError as e:
        raise handle_course_error(e) from e


# ==============================================================================
# Enrollment Endpoints
# ==============================================================================


@enrollments_router.post(
    "",
    response_model=EnrollmentResponse,
    status_code=status.HTTP_201_CREATED,
    summary="Enroll in course",
)
async def enroll(
    data: EnrollRequest,
    progress_service: ProgressServiceDep,
    course_service: CourseServiceDep,
    user: CurrentUser,
) -> EnrollmentResponse:
    """Enroll the current user in a course."""
    course = await _resolve_course(course_service, data.course_url)

    try:
        enrollment = await progress_service.enroll_user(UUID(str(user.id)), course)
    except ProgressError as e:
        raise handle_progress_error(e) from e

    return EnrollmentResponse.from_entity(
        enrollment, course_url=course.course_url, course_title=course.title
    )


@enrollments_router.get(
    "/my",
    response_model=EnrollmentListResponse,
    summary="List my enrollments",
)
async def list_my_enrollments(
    progress_service: ProgressServiceDep,
    course_service: CourseServiceDep,
    user: CurrentUser,
) -> EnrollmentListResponse:
    """List active enrollments of the current user."""
    enrollments = await progress_service.get_user_enrollments(UUID(str(user.id)))

    items = []
    for enrollment in enrollments:
        course = await course_service.get_course(enrollment.course_id)
        items.append(
            EnrollmentResponse.from_entity(
                enrollment,
                course_url=course.course_url if course else None,
                course_title=course.title if course else None,
            )
        )

    return EnrollmentListResponse(items=items, total=len(items))


@enrollments_router.get(
    "/{course_url}",
    response_model=EnrollmentResponse,
    summary="Get enrollment",
)
async def get_enrollment(
    course_url: str,
    progress_service: ProgressServiceDep,
    course_service: CourseServiceDep,
    user: CurrentUser,
) -> EnrollmentResponse:
    """Get the current user's enrollment in a course."""
    course = await _resolve_course(course_service, course_url)

    try:
        enrollment = await progress_service.require_enrollment(
            UUID(str(user.id)), course.id
        )
    except ProgressError as e:
        raise handle_progress_error(e) from e

    return EnrollmentResponse.from_entity(
        enrollment, course_url=course.course_url, course_title=course.title
    )


@enrollments_router.delete(
    "/{course_url}",
    response_model=EnrollmentResponse,
    summary="Withdraw from course",
)
async def withdraw(
    course_url: str,
    progress_service: ProgressServiceDep,
    course_service: CourseServiceDep,
    user: CurrentUser,
) -> EnrollmentResponse:
    """Withdraw the current user from a course.

    The enrollment is kept with status "withdrawn" and stops counting
    towards the leaderboard.
    """
    course = await _resolve_course(course_service, course_url)

    try:
        enrollment = await progress_service.withdraw(UUID(str(user.id)), course.id)
    except ProgressError as e:
        raise handle_progress_error(e) from e

    return EnrollmentResponse.from_entity(
        enrollment, course_url=course.course_url, course_title=course.title
    )


@enrollments_router.post(
    "/{course_url}/students/{student_id}/reject",
    response_model=EnrollmentResponse,
    summary="Reject enrollment",
)
async def reject_enrollment(
    course_url: str,
    student_id: UUID,
    progress_service: ProgressServiceDep,
    course_service: CourseServiceDep,
    user: TeacherUser,
) -> EnrollmentResponse:
    """Reject a student's enrollment in a course (teacher or admin).

    The enrollment is kept with status "rejected" and stops counting
    towards the leaderboard.
    """
    course = await _resolve_course(course_service, course_url)

    try:
        enrollment = await progress_service.reject(student_id, course.id)
    except ProgressError as e:
        raise handle_progress_error(e) from e

    return EnrollmentResponse.from_entity(
        enrollment, course_url=course.course_url, course_title=course.title
    )


# ==============================================================================
# Day Completion Endpoints
# ==============================================================================


@router.post(
    "/days/complete",
    response_model=EnrollmentResponse,
    summary="Mark day as complete",
)
async def mark_day_complete(
    data: DayProgressRequest,
    progress_service: ProgressServiceDep,
    course_service: CourseServiceDep,
    user: CurrentUser,
) -> EnrollmentResponse:
    """Mark a roadmap day as complete and return the updated enrollment."""
    course = await _resolve_course(course_service, data.course_url)

    try:
        enrollment = await progress_service.mark_day_complete(
            UUID(str(user.id)), course, data.day_number
        )
    except ProgressError as e:
        raise handle_progress_error(e) from e

    return EnrollmentResponse.from_entity(
        enrollment, course_url=course.course_url, course_title=course.title
    )


@router.post(
    "/days/incomplete",
    response_model=EnrollmentResponse,
    summary="Mark day as incomplete",
)
async def mark_day_incomplete(
    data: DayProgressRequest,
    progress_service: ProgressServiceDep,
    course_service: CourseServiceDep,
    user: CurrentUser,
) -> EnrollmentResponse:
    """Unmark a roadmap day."""
    course = await _resolve_course(course_service, data.course_url)

    try:
        enrollment = await progress_service.mark_day_incomplete(
            UUID(str(user.id)), course, data.day_number
        )
    except ProgressError as e:
        raise handle_progress_error(e) from e

    return EnrollmentResponse.from_entity(
        enrollment, course_url=course.course_url, course_title=course.title
    )
