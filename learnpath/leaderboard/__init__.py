"""Student leaderboard module.

Provides:
- Ranking of all students by course points plus quiz points
- Optional scoping to a single course
"""

from .service import LeaderboardService


__all__ = ["LeaderboardService"]
