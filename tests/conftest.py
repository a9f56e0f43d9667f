"""Shared fixtures for the LearnPath test suite."""

import os
import tempfile
from collections.abc import Callable, Iterator
from uuid import UUID, uuid4

import pytest
from fastapi.testclient import TestClient


os.environ.setdefault("ENVIRONMENT", "testing")
os.environ.setdefault("LOG_DIR", tempfile.mkdtemp(prefix="learnpath-logs-"))
os.environ.setdefault("LOG_REQUESTS", "false")

from learnpath.auth.permissions import UserRole  # noqa: E402
from learnpath.auth.security import create_access_token  # noqa: E402
from learnpath.main import app  # noqa: E402
from tests.helpers import make_session  # noqa: E402


SERVICE_NAMES = (
    "user_service",
    "course_service",
    "progress_service",
    "quiz_service",
    "assessment_service",
    "leaderboard_service",
    "preferences_service",
)


@pytest.fixture
def mock_session():
    """Mock Cassandra session (cassandra-asyncio-driver aexecute)."""
    return make_session()


@pytest.fixture
def make_token() -> Callable[..., str]:
    """Factory creating access tokens for a role."""

    def _make(role: UserRole = UserRole.STUDENT, user_id: UUID | None = None) -> str:
        return create_access_token(
            {
                "sub": str(user_id or uuid4()),
                "email": f"{role.value}@test.com",
                "role": role.value,
                "name": f"Test {role.value.title()}",
            }
        )

    return _make


@pytest.fixture
def student_id() -> UUID:
    """Authenticated student ID."""
    return uuid4()


@pytest.fixture
def student_headers(make_token, student_id) -> dict[str, str]:
    """Authorization header for a student."""
    token = make_token(UserRole.STUDENT, student_id)
    return {"Authorization": f"Bearer {token}"}


@pytest.fixture
def teacher_headers(make_token) -> dict[str, str]:
    """Authorization header for a teacher."""
    return {"Authorization": f"Bearer {make_token(UserRole.TEACHER)}"}


@pytest.fixture
def client() -> Iterator[TestClient]:
    """Test client without lifespan (no Cassandra, no Redis).

    Services set on app.state by a test are removed afterwards.
    """
    yield TestClient(app)
    for name in SERVICE_NAMES:
        if hasattr(app.state, name):
            delattr(app.state, name)
