"""Quiz scoring and attempt aggregation.

Pure functions shared by the submission handler, the course averages
endpoint and the leaderboard.

Question snapshots are plain dicts in wire shape::

    {"type": "single_choice", "question": "...",
     "options": [{"text": "...", "isCorrect": true}, ...]}
"""

from collections import defaultdict
from collections.abc import Iterable, Sequence
from typing import Any

from learnpath.utils import round_half_up

from .models import QuizAttempt


UNANSWERED = -1


def is_correct_selection(question: dict[str, Any], selected: int | None) -> bool:
    """Check whether the selected option index points at a correct option."""
    if selected is None or selected < 0:
        return False
    options = question.get("options") or []
    if selected >= len(options):
        return False
    return bool(options[selected].get("isCorrect"))


def count_correct(
    questions: Sequence[dict[str, Any]], selected_answers: Sequence[int | None]
) -> int:
    """Count positions whose selection is correct.

    Missing selections (shorter answer list) count as incorrect, extra
    selections are ignored.
    """
    return sum(
        1
        for position, question in enumerate(questions)
        if position < len(selected_answers)
        and is_correct_selection(question, selected_answers[position])
    )


def score_answers(
    questions: Sequence[dict[str, Any]], selected_answers: Sequence[int | None]
) -> int:
    """Score = round-half-up(100 * correct / total), 0 for an empty quiz.

    4 questions with 3 correct selections score 75.
    """
    total = len(questions)
    if total == 0:
        return 0
    return round_half_up(100 * count_correct(questions, selected_answers) / total)


# ==============================================================================
# Aggregation
# ==============================================================================


def day_averages(attempts: Iterable[QuizAttempt]) -> dict[tuple[str, int], float]:
    """Mean score per (course_url, day_number).

    Repeated attempts on the same day are averaged, not best-of and not
    most-recent. Attempts without a score are skipped.
    """
    scores: dict[tuple[str, int], list[int]] = defaultdict(list)
    for attempt in attempts:
        if attempt.score is None:
            continue
        scores[(attempt.course_url, attempt.day_number)].append(attempt.score)

    return {key: sum(values) / len(values) for key, values in scores.items()}


def course_averages(attempts: Iterable[QuizAttempt]) -> dict[str, float]:
    """Mean of the per-day averages, per course_url."""
    per_course: dict[str, list[float]] = defaultdict(list)
    for (course_url, _day), average in sorted(day_averages(attempts).items()):
        per_course[course_url].append(average)

    return {
        course_url: sum(values) / len(values)
        for course_url, values in per_course.items()
    }


def quiz_points(attempts: Iterable[QuizAttempt]) -> float:
    """Sum of the per-course means of per-day averages."""
    return sum(course_averages(attempts).values())
