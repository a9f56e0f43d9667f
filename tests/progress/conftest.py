"""Fixtures for progress tests: in-memory enrollment tables."""

from unittest.mock import AsyncMock
from uuid import uuid4

import pytest

from learnpath.courses.models import Course
from learnpath.progress.service import ProgressService
from tests.helpers import FakeEnrollmentTables, make_session


KEYSPACE = "test_ks"


@pytest.fixture
def tables() -> FakeEnrollmentTables:
    """In-memory enrollment tables."""
    return FakeEnrollmentTables(KEYSPACE)


@pytest.fixture
def progress_service(tables) -> ProgressService:
    """ProgressService over the in-memory tables."""
    session = make_session()
    session.aexecute = AsyncMock(side_effect=tables.execute)
    return ProgressService(session=session, keyspace=KEYSPACE)


@pytest.fixture
def course() -> Course:
    """A 4-day course."""
    return Course(course_url="python-basics", title="Python Basics", total_days=4)


@pytest.fixture
def user_id():
    """Enrolling student."""
    return uuid4()
