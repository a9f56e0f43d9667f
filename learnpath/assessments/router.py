"""Assessment API endpoints.

Provides routes for:
- Assessment authoring and listing (teachers)
- Student submission and the caller's submission
- Submission listing and grading (teachers)
- A course's assessments as shown to the student
"""

from typing import Annotated
from uuid import UUID

from fastapi import APIRouter, Query, status

from learnpath.auth.dependencies import CurrentUser, TeacherUser
from learnpath.courses.dependencies import CourseServiceDep, handle_course_error
from learnpath.courses.service import CourseError

from .dependencies import AssessmentServiceDep, handle_assessment_error
from .schemas import (
    AssessmentListResponse,
    AssessmentResponse,
    CreateAssessmentRequest,
    GradeSubmissionRequest,
    StudentAssessmentListResponse,
    StudentAssessmentResponse,
    SubmissionListResponse,
    SubmissionResponse,
    SubmitAssessmentRequest,
)
from .service import AssessmentError


router = APIRouter(prefix="/v1/assessments", tags=["assessments"])
course_assessments_router = APIRouter(prefix="/v1/courses", tags=["assessments"])


# ==============================================================================
# Authoring Endpoints
# ==============================================================================


@router.post(
    "",
    response_model=AssessmentResponse,
    status_code=status.HTTP_201_CREATED,
    summary="Create assessment",
)
async def create_assessment(
    data: CreateAssessmentRequest,
    assessment_service: AssessmentServiceDep,
    course_service: CourseServiceDep,
    user: TeacherUser,
) -> AssessmentResponse:
    """Create an MCQ or coding assessment for course days (teacher or admin)."""
    try:
        course = await course_service.require_course_by_url(data.course_url)
    except CourseError as e:
        raise handle_course_error(e) from e

    try:
        assessment = await assessment_service.create_assessment(
            course, data, creator_id=UUID(str(user.id))
        )
    except AssessmentError as e:
        raise handle_assessment_error(e) from e

    return AssessmentResponse.from_entity(assessment)


@router.get(
    "/course/{course_url}",
    response_model=AssessmentListResponse,
    summary="List course assessments",
)
async def list_course_assessments(
    course_url: str,
    assessment_service: AssessmentServiceDep,
    course_service: CourseServiceDep,
    user: TeacherUser,
) -> AssessmentListResponse:
    """Every assessment of a course with answers, by due date."""
    try:
        course = await course_service.require_course_by_url(course_url)
    except CourseError as e:
        raise handle_course_error(e) from e

    assessments = await assessment_service.list_course_assessments(course.id)
    return AssessmentListResponse(
        items=[AssessmentResponse.from_entity(a) for a in assessments],
        total=len(assessments),
    )


@router.get(
    "/{assessment_id}",
    response_model=AssessmentResponse,
    summary="Get assessment",
)
async def get_assessment(
    assessment_id: UUID,
    assessment_service: AssessmentServiceDep,
    user: TeacherUser,
) -> AssessmentResponse:
    """Get an assessment with answers and hidden test cases."""
    try:
        assessment = await assessment_service.require_assessment(assessment_id)
    except AssessmentError as e:
        raise handle_assessment_error(e) from e

    return AssessmentResponse.from_entity(assessment)


# ==============================================================================
# Submission Endpoints
# ==============================================================================


@router.post(
    "/{assessment_id}/submit",
    response_model=SubmissionResponse,
    status_code=status.HTTP_201_CREATED,
    summary="Submit assessment",
)
async def submit_assessment(
    assessment_id: UUID,
    data: SubmitAssessmentRequest,
    assessment_service: AssessmentServiceDep,
    user: CurrentUser,
) -> SubmissionResponse:
    """Submit answers once; MCQ answers are marked immediately."""
    try:
        submission = await assessment_service.submit(
            assessment_id, UUID(str(user.id)), data.answers
        )
    except AssessmentError as e:
        raise handle_assessment_error(e) from e

    return SubmissionResponse.from_entity(submission)


@router.get(
    "/{assessment_id}/submissions/my",
    response_model=SubmissionResponse,
    summary="Get my submission",
)
async def get_my_submission(
    assessment_id: UUID,
    assessment_service: AssessmentServiceDep,
    user: CurrentUser,
) -> SubmissionResponse:
    """The caller's submission with marks and feedback."""
    try:
        submission = await assessment_service.require_submission(
            assessment_id, UUID(str(user.id))
        )
    except AssessmentError as e:
        raise handle_assessment_error(e) from e

    return SubmissionResponse.from_entity(submission)


@router.get(
    "/{assessment_id}/submissions",
    response_model=SubmissionListResponse,
    summary="List submissions",
)
async def list_submissions(
    assessment_id: UUID,
    assessment_service: AssessmentServiceDep,
    user: TeacherUser,
) -> SubmissionListResponse:
    """Every submission of an assessment (teacher or admin)."""
    try:
        await assessment_service.require_assessment(assessment_id)
    except AssessmentError as e:
        raise handle_assessment_error(e) from e

    submissions = await assessment_service.list_submissions(assessment_id)
    return SubmissionListResponse(
        items=[SubmissionResponse.from_entity(s) for s in submissions],
        total=len(submissions),
    )


@router.put(
    "/{assessment_id}/submissions/{student_id}/grade",
    response_model=SubmissionResponse,
    summary="Grade submission",
)
async def grade_submission(
    assessment_id: UUID,
    student_id: UUID,
    data: GradeSubmissionRequest,
    assessment_service: AssessmentServiceDep,
    user: TeacherUser,
) -> SubmissionResponse:
    """Set per-question marks and mark the submission graded."""
    try:
        submission = await assessment_service.grade_submission(
            assessment_id,
            student_id,
            grades=data.grades,
            feedback=data.feedback,
            graded_by=UUID(str(user.id)),
        )
    except AssessmentError as e:
        raise handle_assessment_error(e) from e

    return SubmissionResponse.from_entity(submission)


# ==============================================================================
# Student View
# ==============================================================================


@course_assessments_router.get(
    "/{course_url}/assessments",
    response_model=StudentAssessmentListResponse,
    summary="List my course assessments",
)
async def list_my_course_assessments(
    course_url: str,
    assessment_service: AssessmentServiceDep,
    course_service: CourseServiceDep,
    user: CurrentUser,
    day: Annotated[int | None, Query(ge=1)] = None,
) -> StudentAssessmentListResponse:
    """Course assessments without answers, with the caller's status."""
    try:
        course = await course_service.require_course_by_url(course_url)
    except CourseError as e:
        raise handle_course_error(e) from e

    pairs = await assessment_service.list_student_assessments(
        course.id, UUID(str(user.id)), day
    )
    return StudentAssessmentListResponse(
        items=[StudentAssessmentResponse.from_entity(a, s) for a, s in pairs],
        total=len(pairs),
    )
