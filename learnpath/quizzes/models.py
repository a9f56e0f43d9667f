"""Database models for quizzes and quiz attempts.

Cassandra table definitions for:
- Quiz attempts: one row per scored submission, partitioned by student
- Pending refresh markers: attempts awaiting a leaderboard run, by course
- Quizzes: the server-held question set of a course day

The attempt number is part of the primary key and attempts are written
with IF NOT EXISTS, so two concurrent submissions can never claim the
same attempt slot.
"""

from datetime import UTC, datetime
from typing import Any
from uuid import UUID

import orjson

from learnpath.utils import ensure_utc_aware


# ==============================================================================
# CQL Table Definitions
# ==============================================================================

QUIZ_ATTEMPTS_TABLE_CQL = """
CREATE TABLE IF NOT EXISTS {keyspace}.quiz_attempts (
    user_id UUID,
    course_url TEXT,
    day_number INT,
    attempt_number INT,
    title TEXT,
    questions TEXT,
    selected_answers LIST<INT>,
    score INT,
    is_completed BOOLEAN,
    needs_leaderboard_update BOOLEAN,
    submitted_date TIMESTAMP,
    created_at TIMESTAMP,
    PRIMARY KEY ((user_id), course_url, day_number, attempt_number)
) WITH CLUSTERING ORDER BY (course_url ASC, day_number ASC, attempt_number DESC)
"""

# Partitioned by course: "which attempts still need a leaderboard refresh?"
QUIZ_ATTEMPTS_PENDING_REFRESH_TABLE_CQL = """
CREATE TABLE IF NOT EXISTS {keyspace}.quiz_attempts_pending_refresh (
    course_url TEXT,
    user_id UUID,
    day_number INT,
    attempt_number INT,
    flagged_at TIMESTAMP,
    PRIMARY KEY ((course_url), user_id, day_number, attempt_number)
)
"""

QUIZZES_TABLE_CQL = """
CREATE TABLE IF NOT EXISTS {keyspace}.quizzes (
    course_url TEXT,
    day_number INT,
    title TEXT,
    questions TEXT,
    updated_by UUID,
    updated_at TIMESTAMP,
    PRIMARY KEY ((course_url), day_number)
)
"""

QUIZZES_TABLES_CQL = [
    QUIZ_ATTEMPTS_TABLE_CQL,
    QUIZ_ATTEMPTS_PENDING_REFRESH_TABLE_CQL,
    QUIZZES_TABLE_CQL,
]


def dump_questions(questions: list[dict[str, Any]]) -> str:
    """Serialize a question snapshot for a TEXT column."""
    return orjson.dumps(questions).decode()


def load_questions(raw: str | None) -> list[dict[str, Any]]:
    """Deserialize a stored question snapshot."""
    if not raw:
        return []
    return orjson.loads(raw)


# ==============================================================================
# Entity Classes
# ==============================================================================


class QuizAttempt:
    """One scored quiz submission.

    Attributes:
        user_id: Student UUID
        course_url: Course URL the quiz belongs to
        day_number: Roadmap day (1-based)
        attempt_number: 1-based attempt slot for (user, course, day)
        title: Quiz title
        questions: Question snapshot the attempt was scored against
        selected_answers: Selected option index per question (-1 = unanswered)
        score: Integer percentage 0-100
        is_completed: Completion flag
        needs_leaderboard_update: Awaiting a course leaderboard run
        submitted_date: Client-reported submission time
        created_at: Server write time
    """

    def __init__(
        self,
        user_id: UUID,
        course_url: str,
        day_number: int,
        attempt_number: int,
        title: str = "",
        questions: list[dict[str, Any]] | None = None,
        selected_answers: list[int] | None = None,
        score: int | None = None,
        is_completed: bool = False,
        needs_leaderboard_update: bool = False,
        submitted_date: datetime | None = None,
        created_at: datetime | None = None,
    ):
        self.user_id = user_id
        self.course_url = course_url
        self.day_number = day_number
        self.attempt_number = attempt_number
        self.title = title
        self.questions = questions or []
        self.selected_answers = selected_answers or []
        self.score = score
        self.is_completed = is_completed
        self.needs_leaderboard_update = needs_leaderboard_update
        self.created_at = ensure_utc_aware(created_at) or datetime.now(UTC)
        self.submitted_date = ensure_utc_aware(submitted_date) or self.created_at

    @classmethod
    def from_row(cls, row: Any) -> "QuizAttempt":
        """Create QuizAttempt instance from Cassandra row."""
        return cls(
            user_id=row.user_id,
            course_url=row.course_url,
            day_number=row.day_number,
            attempt_number=row.attempt_number,
            title=row.title or "",
            questions=load_questions(row.questions),
            selected_answers=list(row.selected_answers or []),
            score=row.score,
            is_completed=bool(row.is_completed),
            needs_leaderboard_update=bool(row.needs_leaderboard_update),
            submitted_date=row.submitted_date,
            created_at=row.created_at,
        )

    def __repr__(self) -> str:
        return (
            f"<QuizAttempt {self.course_url} day={self.day_number} "
            f"#{self.attempt_number} score={self.score}>"
        )


class DayQuiz:
    """Server-held quiz for one course day."""

    def __init__(
        self,
        course_url: str,
        day_number: int,
        title: str = "",
        questions: list[dict[str, Any]] | None = None,
        updated_by: UUID | None = None,
        updated_at: datetime | None = None,
    ):
        self.course_url = course_url
        self.day_number = day_number
        self.title = title
        self.questions = questions or []
        self.updated_by = updated_by
        self.updated_at = ensure_utc_aware(updated_at) or datetime.now(UTC)

    @classmethod
    def from_row(cls, row: Any) -> "DayQuiz":
        """Create DayQuiz instance from Cassandra row."""
        return cls(
            course_url=row.course_url,
            day_number=row.day_number,
            title=row.title or "",
            questions=load_questions(row.questions),
            updated_by=row.updated_by,
            updated_at=row.updated_at,
        )

    def __repr__(self) -> str:
        return f"<DayQuiz {self.course_url} day={self.day_number}>"
