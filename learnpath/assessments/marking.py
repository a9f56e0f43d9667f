"""Assessment marking.

MCQ answers are marked on submission: full question marks when the
selected option equals the correct answer, 0 otherwise. Coding answers
start at 0 marks and wait for a teacher.
"""

from collections.abc import Iterable
from typing import Any

from .models import AssessmentType


def mark_answer(question: dict[str, Any], answer: dict[str, Any]) -> dict[str, Any]:
    """Return a copy of ``answer`` with its automatic marks."""
    marked = {**answer, "marks": 0, "feedback": None}
    if answer["type"] == AssessmentType.MCQ.value:
        is_correct = answer.get("selectedAnswer") == question.get("correctAnswer")
        marked["correctAnswer"] = question.get("correctAnswer")
        marked["isCorrect"] = is_correct
        marked["marks"] = int(question.get("marks", 0)) if is_correct else 0
    return marked


def needs_grading(answers: Iterable[dict[str, Any]]) -> bool:
    """Coding answers leave the submission pending."""
    return any(a["type"] == AssessmentType.CODING.value for a in answers)


def total_marks(answers: Iterable[dict[str, Any]]) -> int:
    return sum(int(a.get("marks") or 0) for a in answers)
