"""LearnPath API - quizzes, progress and leaderboards for e-learning courses."""
