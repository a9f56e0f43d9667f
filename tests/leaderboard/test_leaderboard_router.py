"""Tests for the leaderboard endpoint."""

from unittest.mock import Mock
from uuid import uuid4

import pytest
from fastapi.testclient import TestClient

from learnpath.leaderboard.schemas import LeaderboardEntry, LeaderboardMetrics
from learnpath.leaderboard.service import (
    LeaderboardAggregationError,
    LeaderboardService,
    LeaderboardTimeoutError,
)
from learnpath.main import app


def entry(user_id, rank: int, total: float) -> LeaderboardEntry:
    return LeaderboardEntry(
        user_id=user_id,
        name=f"Student {rank}",
        rank=rank,
        metrics=LeaderboardMetrics(
            courses_enrolled=1,
            course_points=total,
            quiz_points=0,
            total_points=total,
        ),
    )


@pytest.fixture
def leaderboard_service() -> Mock:
    """Mock LeaderboardService on app.state."""
    service = Mock(spec=LeaderboardService)
    app.state.leaderboard_service = service
    return service


class TestStudentRankings:
    """GET /v1/leaderboard/students."""

    def test_anonymous_rankings(self, client: TestClient, leaderboard_service) -> None:
        """Anyone can read rankings; no current rank without a token."""
        leaderboard_service.get_rankings.return_value = [entry(uuid4(), 1, 120.0)]

        response = client.get("/v1/leaderboard/students")

        assert response.status_code == 200
        data = response.json()
        assert data["currentUserRank"] is None
        ranking = data["rankings"][0]
        assert ranking["rank"] == 1
        assert ranking["metrics"]["totalPoints"] == 120.0
        assert ranking["metrics"]["enrolledCourses"] == []
        leaderboard_service.get_rankings.assert_awaited_once_with(None)

    def test_current_user_rank(
        self, client: TestClient, leaderboard_service, student_headers, student_id
    ) -> None:
        """An authenticated caller gets their own rank."""
        leaderboard_service.get_rankings.return_value = [
            entry(uuid4(), 1, 200.0),
            entry(student_id, 2, 100.0),
        ]

        response = client.get("/v1/leaderboard/students", headers=student_headers)

        assert response.json()["currentUserRank"] == 2

    def test_course_scope(self, client: TestClient, leaderboard_service) -> None:
        """courseUrl is passed through to the service."""
        leaderboard_service.get_rankings.return_value = []

        response = client.get(
            "/v1/leaderboard/students", params={"courseUrl": "python-basics"}
        )

        assert response.status_code == 200
        assert response.json()["rankings"] == []
        leaderboard_service.get_rankings.assert_awaited_once_with("python-basics")

    def test_timeout_is_504(self, client: TestClient, leaderboard_service) -> None:
        """A timed out aggregation returns 504."""
        leaderboard_service.get_rankings.side_effect = LeaderboardTimeoutError()

        response = client.get("/v1/leaderboard/students")

        assert response.status_code == 504
        assert response.json()["message"] == "Leaderboard computation timed out"

    def test_failure_is_500(self, client: TestClient, leaderboard_service) -> None:
        """A failed aggregation returns a generic 500."""
        leaderboard_service.get_rankings.side_effect = LeaderboardAggregationError()

        response = client.get("/v1/leaderboard/students")

        assert response.status_code == 500
        assert response.json()["message"] == "Internal server error"

    def test_unavailable_without_database(self, client: TestClient) -> None:
        """Without services the endpoint reports 503."""
        response = client.get("/v1/leaderboard/students")

        assert response.status_code == 503
