"""Course API endpoints."""

from uuid import UUID

from fastapi import APIRouter, status

from learnpath.auth.dependencies import TeacherUser

from .dependencies import CourseServiceDep, handle_course_error
from .schemas import CourseListResponse, CourseResponse, CreateCourseRequest
from .service import CourseError, CourseNotFoundError


router = APIRouter(prefix="/v1/courses", tags=["courses"])


@router.post(
    "",
    response_model=CourseResponse,
    status_code=status.HTTP_201_CREATED,
    summary="Create course",
)
async def create_course(
    data: CreateCourseRequest,
    course_service: CourseServiceDep,
    user: TeacherUser,
) -> CourseResponse:
    """Create a course (teacher or admin)."""
    try:
        course = await course_service.create_course(data, creator_id=UUID(str(user.id)))
    except CourseError as e:
        raise handle_course_error(e) from e
    return CourseResponse.from_entity(course)


@router.get(
    "",
    response_model=CourseListResponse,
    summary="List courses",
)
async def list_courses(course_service: CourseServiceDep) -> CourseListResponse:
    """List all courses."""
    courses = await course_service.list_courses()
    return CourseListResponse(
        items=[CourseResponse.from_entity(c) for c in courses],
        total=len(courses),
    )


@router.get(
    "/url/{course_url}",
    response_model=CourseResponse,
    summary="Get course by URL",
)
async def get_course_by_url(
    course_url: str,
    course_service: CourseServiceDep,
) -> CourseResponse:
    """Get a course by its course URL."""
    course = await course_service.get_course_by_url(course_url)
    if course is None:
        raise handle_course_error(CourseNotFoundError())
    return CourseResponse.from_entity(course)
