"""Quiz module.

Provides:
- Quiz submission with a two-attempts-per-day cap
- Server-held day quizzes
- Scoring and attempt aggregation shared with the leaderboard
"""

from .models import QUIZZES_TABLES_CQL, DayQuiz, QuizAttempt


__all__ = ["QUIZZES_TABLES_CQL", "DayQuiz", "QuizAttempt"]
