"""Tests for automatic assessment marking."""

from learnpath.assessments.marking import mark_answer, needs_grading, total_marks
from tests.helpers import coding_question, mcq_question


class TestMarkAnswer:
    """mark_answer."""

    def test_correct_mcq_gets_question_marks(self) -> None:
        question = mcq_question("q1", marks=3)
        answer = {"type": "MCQ", "questionId": question["id"], "selectedAnswer": "b"}

        marked = mark_answer(question, answer)

        assert marked["marks"] == 3
        assert marked["isCorrect"] is True
        assert marked["correctAnswer"] == "b"
        assert "marks" not in answer

    def test_wrong_mcq_scores_zero(self) -> None:
        question = mcq_question("q1", marks=3)
        answer = {"type": "MCQ", "questionId": question["id"], "selectedAnswer": "a"}

        marked = mark_answer(question, answer)

        assert marked["marks"] == 0
        assert marked["isCorrect"] is False

    def test_coding_waits_for_teacher(self) -> None:
        """Coding answers start at zero without a verdict."""
        question = coding_question("add one")
        answer = {
            "type": "CODING",
            "questionId": question["id"],
            "code": "print(1)",
            "language": "python",
        }

        marked = mark_answer(question, answer)

        assert marked["marks"] == 0
        assert "isCorrect" not in marked


def test_needs_grading_only_with_coding() -> None:
    assert needs_grading([{"type": "MCQ"}]) is False
    assert needs_grading([{"type": "MCQ"}, {"type": "CODING"}]) is True


def test_total_marks_ignores_missing() -> None:
    assert total_marks([{"marks": 2}, {"marks": None}, {}, {"marks": 5}]) == 7
