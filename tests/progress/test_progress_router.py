"""Tests for the enrollment and day progress endpoints."""

from unittest.mock import Mock

import pytest
from fastapi.testclient import TestClient

from learnpath.courses.models import Course
from learnpath.courses.service import CourseNotFoundError, CourseService
from learnpath.main import app
from learnpath.progress.models import Enrollment, EnrollmentStatus
from learnpath.progress.service import (
    AlreadyEnrolledError,
    InvalidDayError,
    NotEnrolledError,
    ProgressService,
)


COURSE = Course(course_url="python-basics", title="Python Basics", total_days=4)


@pytest.fixture
def services(student_id):
    """Mock progress and course services on app.state."""
    progress_service = Mock(spec=ProgressService)
    course_service = Mock(spec=CourseService)
    course_service.require_course_by_url.return_value = COURSE
    course_service.get_course.return_value = COURSE
    app.state.progress_service = progress_service
    app.state.course_service = course_service
    return progress_service, course_service


def enrollment(user_id, **kwargs) -> Enrollment:
    return Enrollment(course_id=COURSE.id, user_id=user_id, total_days=4, **kwargs)


class TestEnrollments:
    """/v1/enrollments."""

    def test_enroll(
        self, client: TestClient, services, student_headers, student_id
    ) -> None:
        """Enrolling returns 201 with the course details."""
        progress_service, _ = services
        progress_service.enroll_user.return_value = enrollment(student_id)

        response = client.post(
            "/v1/enrollments",
            json={"courseUrl": "python-basics"},
            headers=student_headers,
        )

        assert response.status_code == 201
        data = response.json()
        assert data["courseUrl"] == "python-basics"
        assert data["status"] == "enrolled"
        assert data["daysCompletedPerDuration"] == "0/4"
        progress_service.enroll_user.assert_awaited_once_with(student_id, COURSE)

    def test_enroll_twice(self, client: TestClient, services, student_headers) -> None:
        """A duplicate enrollment is a 409."""
        progress_service, _ = services
        progress_service.enroll_user.side_effect = AlreadyEnrolledError()

        response = client.post(
            "/v1/enrollments",
            json={"courseUrl": "python-basics"},
            headers=student_headers,
        )

        assert response.status_code == 409

    def test_unknown_course(
        self, client: TestClient, services, student_headers
    ) -> None:
        """Enrolling in a missing course is a 404."""
        _, course_service = services
        course_service.require_course_by_url.side_effect = CourseNotFoundError()

        response = client.post(
            "/v1/enrollments",
            json={"courseUrl": "nope"},
            headers=student_headers,
        )

        assert response.status_code == 404

    def test_my_enrollments(
        self, client: TestClient, services, student_headers, student_id
    ) -> None:
        """Lists the caller's enrollments."""
        progress_service, _ = services
        progress_service.get_user_enrollments.return_value = [
            enrollment(
                student_id,
                status=EnrollmentStatus.IN_PROGRESS.value,
                progress=50,
                completed_days={2, 1},
            )
        ]

        response = client.get("/v1/enrollments/my", headers=student_headers)

        assert response.status_code == 200
        data = response.json()
        assert data["total"] == 1
        assert data["items"][0]["completedDays"] == [1, 2]
        assert data["items"][0]["courseTitle"] == "Python Basics"

    def test_withdraw_not_enrolled(
        self, client: TestClient, services, student_headers
    ) -> None:
        """Withdrawing without an enrollment is a 404."""
        progress_service, _ = services
        progress_service.withdraw.side_effect = NotEnrolledError()

        response = client.delete(
            "/v1/enrollments/python-basics", headers=student_headers
        )

        assert response.status_code == 404


    def test_reject_requires_teacher(
        self, client: TestClient, services, student_headers, student_id
    ) -> None:
        """Students cannot reject enrollments."""
        response = client.post(
            f"/v1/enrollments/python-basics/students/{student_id}/reject",
            headers=student_headers,
        )

        assert response.status_code == 403

    def test_teacher_rejects(
        self, client: TestClient, services, teacher_headers, student_id
    ) -> None:
        """A teacher rejection returns the enrollment with status rejected."""
        progress_service, _ = services
        progress_service.reject.return_value = enrollment(
            student_id, status=EnrollmentStatus.REJECTED.value
        )

        response = client.post(
            f"/v1/enrollments/python-basics/students/{student_id}/reject",
            headers=teacher_headers,
        )

        assert response.status_code == 200
        assert response.json()["status"] == "rejected"
        progress_service.reject.assert_awaited_once_with(student_id, COURSE.id)


class TestDayProgress:
    """/v1/progress/days."""

    def test_mark_complete(
        self, client: TestClient, services, student_headers, student_id
    ) -> None:
        """Marking a day returns the recalculated enrollment."""
        progress_service, _ = services
        progress_service.mark_day_complete.return_value = enrollment(
            student_id,
            status=EnrollmentStatus.IN_PROGRESS.value,
            progress=25,
            completed_days={1},
        )

        response = client.post(
            "/v1/progress/days/complete",
            json={"courseUrl": "python-basics", "dayNumber": 1},
            headers=student_headers,
        )

        assert response.status_code == 200
        assert response.json()["progress"] == 25
        progress_service.mark_day_complete.assert_awaited_once_with(
            student_id, COURSE, 1
        )

    def test_invalid_day(self, client: TestClient, services, student_headers) -> None:
        """A day outside the roadmap is a 400."""
        progress_service, _ = services
        progress_service.mark_day_incomplete.side_effect = InvalidDayError()

        response = client.post(
            "/v1/progress/days/incomplete",
            json={"courseUrl": "python-basics", "dayNumber": 9},
            headers=student_headers,
        )

        assert response.status_code == 400

    def test_day_number_validated(
        self, client: TestClient, services, student_headers
    ) -> None:
        """dayNumber must be positive."""
        response = client.post(
            "/v1/progress/days/complete",
            json={"courseUrl": "python-basics", "dayNumber": 0},
            headers=student_headers,
        )

        assert response.status_code == 422
