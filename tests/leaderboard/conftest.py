"""Fixtures for leaderboard tests."""

from unittest.mock import AsyncMock, Mock
from uuid import uuid4

import pytest

from learnpath.auth.models import User
from learnpath.courses.models import Course
from learnpath.leaderboard.service import LeaderboardService


def make_student(name: str) -> User:
    return User(id=uuid4(), email=f"{name}@test.com", name=name, role="student")


class Directory:
    """Students, enrollments and attempts served through mocked services."""

    def __init__(self):
        self.students: list[User] = []
        self.courses: dict = {}
        self.enrollments: dict = {}
        self.attempts: dict = {}

    def add_course(self, course_url: str, total_days: int = 10) -> Course:
        course = Course(
            course_url=course_url, title=course_url.title(), total_days=total_days
        )
        self.courses[course.id] = course
        return course

    def add_student(self, name: str) -> User:
        student = make_student(name)
        self.students.append(student)
        self.enrollments[student.id] = []
        self.attempts[student.id] = []
        return student

    async def get_user_enrollments(
        self, user_id, course_id=None, include_inactive=False
    ):
        return [
            e
            for e in self.enrollments[user_id]
            if course_id is None or e.course_id == course_id
        ]

    async def list_scored_attempts(self, user_id, course_url=None):
        return [
            a
            for a in self.attempts[user_id]
            if course_url is None or a.course_url == course_url
        ]

    async def get_course(self, course_id):
        return self.courses.get(course_id)

    async def get_course_by_url(self, course_url):
        for course in self.courses.values():
            if course.course_url == course_url:
                return course
        return None


@pytest.fixture
def directory() -> Directory:
    """In-memory data behind the mocked services."""
    return Directory()


@pytest.fixture
def services(directory):
    """Mocked user, course, progress and quiz services."""
    user_service = Mock()
    user_service.list_students = AsyncMock(side_effect=lambda: list(directory.students))

    course_service = Mock()
    course_service.get_course = AsyncMock(side_effect=directory.get_course)
    course_service.get_course_by_url = AsyncMock(
        side_effect=directory.get_course_by_url
    )

    progress_service = Mock()
    progress_service.get_user_enrollments = AsyncMock(
        side_effect=directory.get_user_enrollments
    )

    quiz_service = Mock()
    quiz_service.list_scored_attempts = AsyncMock(
        side_effect=directory.list_scored_attempts
    )
    quiz_service.clear_pending_refresh = AsyncMock(return_value=0)

    return user_service, course_service, progress_service, quiz_service


@pytest.fixture
def leaderboard_service(services) -> LeaderboardService:
    """LeaderboardService over the mocked services."""
    user_service, course_service, progress_service, quiz_service = services
    return LeaderboardService(
        user_service=user_service,
        course_service=course_service,
        progress_service=progress_service,
        quiz_service=quiz_service,
        max_concurrency=4,
        timeout_seconds=5.0,
    )
