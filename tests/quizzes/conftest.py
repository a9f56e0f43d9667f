"""Fixtures for quiz tests: an in-memory stand-in for the quiz tables."""

from types import SimpleNamespace
from unittest.mock import AsyncMock, Mock
from uuid import uuid4

import pytest

from learnpath.courses.models import Course
from learnpath.quizzes.schemas import QuizOption, SingleChoiceQuestion
from learnpath.quizzes.service import QuizService
from tests.helpers import ResultSet, make_session


KEYSPACE = "test_ks"


class FakeQuizTables:
    """Answers the quiz service's CQL statements from Python dicts."""

    def __init__(self):
        self.attempts: dict[tuple, SimpleNamespace] = {}
        self.pending: dict[tuple, SimpleNamespace] = {}
        self.quizzes: dict[tuple, SimpleNamespace] = {}
        self.taken_slots: set[tuple] = set()

    async def execute(self, statement: str, params=None):
        params = list(params or [])
        pending_table = f"{KEYSPACE}.quiz_attempts_pending_refresh"
        attempts_table = f"{KEYSPACE}.quiz_attempts "
        quizzes_table = f"{KEYSPACE}.quizzes "

        if pending_table in statement:
            return self._pending(statement, params)
        if f"INSERT INTO {attempts_table}" in statement:
            return self._insert_attempt(params)
        if f"UPDATE {attempts_table}" in statement:
            self.attempts[tuple(params)].needs_leaderboard_update = False
            return ResultSet()
        if f"FROM {attempts_table}" in statement:
            return self._select_attempts(statement, params)
        if f"INSERT INTO {quizzes_table}" in statement:
            course_url, day_number, title, questions, updated_by, updated_at = params
            self.quizzes[(course_url, day_number)] = SimpleNamespace(
                course_url=course_url,
                day_number=day_number,
                title=title,
                questions=questions,
                updated_by=updated_by,
                updated_at=updated_at,
            )
            return ResultSet()
        if f"FROM {quizzes_table}" in statement:
            row = self.quizzes.get(tuple(params))
            return ResultSet([row] if row else [])
        raise AssertionError(f"unexpected statement: {statement}")

    def _insert_attempt(self, params):
        key = tuple(params[:4])
        if key in self.attempts or key in self.taken_slots:
            return ResultSet(was_applied=False)
        (
            user_id,
            course_url,
            day_number,
            attempt_number,
            title,
            questions,
            selected_answers,
            score,
            is_completed,
            needs_update,
            submitted_date,
            created_at,
        ) = params
        self.attempts[key] = SimpleNamespace(
            user_id=user_id,
            course_url=course_url,
            day_number=day_number,
            attempt_number=attempt_number,
            title=title,
            questions=questions,
            selected_answers=selected_answers,
            score=score,
            is_completed=is_completed,
            needs_leaderboard_update=needs_update,
            submitted_date=submitted_date,
            created_at=created_at,
        )
        return ResultSet(was_applied=True)

    def _select_attempts(self, statement, params):
        fields = ["user_id", "course_url", "day_number"][: len(params)]
        rows = [
            row
            for row in self.attempts.values()
            if all(getattr(row, f) == v for f, v in zip(fields, params, strict=True))
        ]
        rows.sort(key=lambda r: (r.course_url, r.day_number, -r.attempt_number))
        return ResultSet(rows)

    def _pending(self, statement, params):
        if statement.startswith("INSERT"):
            course_url, user_id, day_number, attempt_number, flagged_at = params
            self.pending[(course_url, user_id, day_number, attempt_number)] = (
                SimpleNamespace(
                    course_url=course_url,
                    user_id=user_id,
                    day_number=day_number,
                    attempt_number=attempt_number,
                    flagged_at=flagged_at,
                )
            )
            return ResultSet()
        if statement.startswith("DELETE"):
            self.pending.pop(tuple(params), None)
            return ResultSet()
        return ResultSet(r for r in self.pending.values() if r.course_url == params[0])


@pytest.fixture
def tables() -> FakeQuizTables:
    """In-memory quiz tables."""
    return FakeQuizTables()


@pytest.fixture
def course() -> Course:
    """A 10-day course."""
    return Course(course_url="python-basics", title="Python Basics", total_days=10)


@pytest.fixture
def course_service(course):
    """Mock CourseService resolving the fixture course."""
    service = Mock()
    service.get_course_by_url = AsyncMock(return_value=course)
    service.require_course_by_url = AsyncMock(return_value=course)
    return service


@pytest.fixture
def progress_service():
    """Mock ProgressService."""
    service = Mock()
    service.record_quiz_day = AsyncMock()
    service.get_course_enrollments = AsyncMock(return_value=[])
    return service


@pytest.fixture
def quiz_service(tables, course_service, progress_service) -> QuizService:
    """QuizService over the in-memory tables."""
    session = make_session()
    session.aexecute = AsyncMock(side_effect=tables.execute)
    return QuizService(
        session=session,
        keyspace=KEYSPACE,
        course_service=course_service,
        progress_service=progress_service,
    )


@pytest.fixture
def questions() -> list[SingleChoiceQuestion]:
    """Four questions; the correct option is always index 1."""
    return [
        SingleChoiceQuestion(
            question=f"Question {n}",
            options=[
                QuizOption(text="wrong"),
                QuizOption(text="right", is_correct=True),
                QuizOption(text="also wrong"),
            ],
        )
        for n in range(1, 5)
    ]


@pytest.fixture
def user_id():
    """Submitting student."""
    return uuid4()
