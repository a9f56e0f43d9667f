"""Test doubles shared across the suite."""

from datetime import datetime
from types import SimpleNamespace
from unittest.mock import AsyncMock, Mock
from uuid import uuid4

from cassandra.cluster import Session


class ResultSet(list):
    """Minimal stand-in for a cassandra-driver result set."""

    def __init__(self, rows=(), was_applied: bool = True):
        super().__init__(rows)
        self.was_applied = was_applied

    def one(self):
        return self[0] if self else None


def make_session() -> Mock:
    """Mock Cassandra session whose prepared statements are their CQL text."""
    session = Mock(spec=Session)
    session.prepare = Mock(side_effect=lambda cql: " ".join(cql.split()))
    session.aexecute = AsyncMock(return_value=ResultSet())
    return session


ENROLLMENT_COLUMNS = (
    "status",
    "enrolled_at",
    "started_at",
    "completed_at",
    "progress",
    "score",
    "total_days",
    "completed_days",
    "quiz_days",
    "days_completed_per_duration",
    "last_updated",
)


class FakeEnrollmentTables:
    """Answers the progress service's CQL from two dicts.

    ``by_course`` mirrors ``enrollments`` and ``by_user`` mirrors
    ``enrollments_by_user``; both are keyed by (course_id, user_id).
    """

    def __init__(self, keyspace: str = "test_ks"):
        self.keyspace = keyspace
        self.by_course: dict[tuple, SimpleNamespace] = {}
        self.by_user: dict[tuple, SimpleNamespace] = {}

    async def execute(self, statement: str, params=None):
        params = list(params or [])
        by_user_table = f"{self.keyspace}.enrollments_by_user"
        by_course_table = f"{self.keyspace}.enrollments "

        if f"INSERT INTO {by_user_table}" in statement:
            user_id, course_id, *values = params
            self.by_user[(course_id, user_id)] = self._row(course_id, user_id, values)
            return ResultSet()
        if f"INSERT INTO {by_course_table}" in statement:
            course_id, user_id, *values = params
            self.by_course[(course_id, user_id)] = self._row(
                course_id, user_id, values
            )
            return ResultSet()
        if f"UPDATE {by_user_table}" in statement:
            days, score, now, user_id, course_id = params
            self._add_quiz_day(self.by_user, (course_id, user_id), days, score, now)
            return ResultSet()
        if f"UPDATE {by_course_table}" in statement:
            days, score, now, course_id, user_id = params
            self._add_quiz_day(self.by_course, (course_id, user_id), days, score, now)
            return ResultSet()
        if f"FROM {by_user_table}" in statement:
            return ResultSet(r for r in self.by_user.values() if r.user_id == params[0])
        if f"FROM {by_course_table}" in statement:
            if "AND user_id" in statement:
                row = self.by_course.get(tuple(params))
                return ResultSet([row] if row else [])
            return ResultSet(
                r for r in self.by_course.values() if r.course_id == params[0]
            )
        raise AssertionError(f"unexpected statement: {statement}")

    @staticmethod
    def _row(course_id, user_id, values):
        row = SimpleNamespace(course_id=course_id, user_id=user_id)
        for column, value in zip(ENROLLMENT_COLUMNS, values, strict=True):
            setattr(row, column, set(value) if isinstance(value, set) else value)
        return row

    @staticmethod
    def _add_quiz_day(table, key, days, score, now):
        # A CQL UPDATE creates the row when it does not exist
        course_id, user_id = key
        row = table.setdefault(
            key,
            SimpleNamespace(
                course_id=course_id,
                user_id=user_id,
                **dict.fromkeys(ENROLLMENT_COLUMNS),
            ),
        )
        row.quiz_days = set(row.quiz_days or ()) | set(days)
        row.score = score
        row.last_updated = now


def mcq_question(text: str, correct: str = "b", marks: int = 2) -> dict:
    """MCQ question body with options a, b and c."""
    return {
        "type": "MCQ",
        "id": str(uuid4()),
        "questionText": text,
        "options": ["a", "b", "c"],
        "correctAnswer": correct,
        "marks": marks,
    }


def coding_question(statement: str, marks: int = 10) -> dict:
    """Coding question body with one visible and one hidden test case."""
    return {
        "type": "CODING",
        "id": str(uuid4()),
        "problemStatement": statement,
        "inputFormat": "one integer",
        "outputFormat": "one integer",
        "testCases": [
            {"input": "1", "expectedOutput": "2"},
            {"input": "5", "expectedOutput": "6", "isHidden": True},
        ],
        "marks": marks,
    }


def assessment_body(questions: list[dict], due: datetime, **overrides) -> dict:
    """Assessment creation body for the python-basics course."""
    return {
        "courseUrl": "python-basics",
        "title": "Week 1",
        "description": "First checkpoint",
        "type": questions[0]["type"],
        "questions": questions,
        "assignedDays": [3],
        "dueDate": due.isoformat(),
        **overrides,
    }
