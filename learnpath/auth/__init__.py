"""Authentication and user directory.

Provides:
- Bearer token validation and role checks
- Read access to user accounts (students for the leaderboard)
"""

from .models import AUTH_TABLES_CQL, User
from .permissions import UserRole


__all__ = ["AUTH_TABLES_CQL", "User", "UserRole"]
