"""Tests for the course endpoints."""

from unittest.mock import Mock

import pytest
from fastapi.testclient import TestClient

from learnpath.courses.models import Course
from learnpath.courses.service import CourseService, CourseUrlExistsError
from learnpath.main import app


@pytest.fixture
def course_service() -> Mock:
    """Mock CourseService on app.state."""
    service = Mock(spec=CourseService)
    app.state.course_service = service
    return service


class TestCourses:
    """/v1/courses."""

    def test_create_requires_teacher(
        self, client: TestClient, course_service, student_headers
    ) -> None:
        """Students cannot create courses."""
        response = client.post(
            "/v1/courses",
            json={"title": "Python Basics", "totalDays": 10},
            headers=student_headers,
        )

        assert response.status_code == 403
        course_service.create_course.assert_not_awaited()

    def test_create(self, client: TestClient, course_service, teacher_headers) -> None:
        """Teachers create courses and get the course back."""
        course_service.create_course.return_value = Course(
            title="Python Basics", total_days=10
        )

        response = client.post(
            "/v1/courses",
            json={"title": "Python Basics", "totalDays": 10},
            headers=teacher_headers,
        )

        assert response.status_code == 201
        data = response.json()
        assert data["courseUrl"] == "python-basics"
        assert data["totalDays"] == 10

    def test_url_conflict(
        self, client: TestClient, course_service, teacher_headers
    ) -> None:
        """A taken course URL is a 409."""
        course_service.create_course.side_effect = CourseUrlExistsError()

        response = client.post(
            "/v1/courses",
            json={
                "title": "Python Basics",
                "courseUrl": "python-basics",
                "totalDays": 3,
            },
            headers=teacher_headers,
        )

        assert response.status_code == 409
        assert response.json()["message"] == "Course URL already exists"

    def test_invalid_course_url(
        self, client: TestClient, course_service, teacher_headers
    ) -> None:
        """Course URLs must be lowercase slugs."""
        response = client.post(
            "/v1/courses",
            json={"title": "Python Basics", "courseUrl": "Not A Slug", "totalDays": 3},
            headers=teacher_headers,
        )

        assert response.status_code == 422
        assert response.json()["details"]

    def test_get_by_url_missing(self, client: TestClient, course_service) -> None:
        """Unknown course URLs are a 404."""
        course_service.get_course_by_url.return_value = None

        response = client.get("/v1/courses/url/missing")

        assert response.status_code == 404

    def test_list(self, client: TestClient, course_service) -> None:
        """Lists all courses."""
        course_service.list_courses.return_value = [
            Course(title="Alpha", total_days=1),
            Course(title="Beta", total_days=2),
        ]

        response = client.get("/v1/courses")

        assert response.json()["total"] == 2
