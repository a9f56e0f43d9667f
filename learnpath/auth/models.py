"""Database models for users.

Cassandra table definitions for:
- Users: identity, role and public profile (name, avatar)

Accounts are provisioned by the identity provider; this service reads them
to resolve roles and to list leaderboard participants.
"""

from datetime import UTC, datetime
from typing import Any
from uuid import UUID, uuid4

from learnpath.auth.permissions import UserRole
from learnpath.utils import ensure_utc_aware


USER_TABLE_CQL = """
CREATE TABLE IF NOT EXISTS {keyspace}.users (
    id UUID PRIMARY KEY,
    email TEXT,
    name TEXT,
    role TEXT,
    is_active BOOLEAN,
    avatar_url TEXT,
    created_at TIMESTAMP,
    updated_at TIMESTAMP
)
"""

# Leaderboard lists every student: WHERE role = 'student'
USER_ROLE_INDEX_CQL = """
CREATE INDEX IF NOT EXISTS users_role_idx ON {keyspace}.users (role)
"""

AUTH_TABLES_CQL = [
    USER_TABLE_CQL,
    USER_ROLE_INDEX_CQL,
]


class User:
    """User entity.

    Attributes:
        id: Unique identifier (UUID)
        email: Email address
        name: Display name
        role: User role (user, student, teacher, admin)
        is_active: Account status
        avatar_url: Profile picture URL
        created_at: Account creation timestamp
        updated_at: Last update timestamp
    """

    def __init__(
        self,
        id: UUID | None = None,
        email: str = "",
        name: str = "",
        role: str = UserRole.USER.value,
        is_active: bool = True,
        avatar_url: str | None = None,
        created_at: datetime | None = None,
        updated_at: datetime | None = None,
    ):
        self.id = id or uuid4()
        self.email = email.lower().strip()
        self.name = name
        self.role = role
        self.is_active = is_active
        self.avatar_url = avatar_url
        self.created_at = ensure_utc_aware(created_at) or datetime.now(UTC)
        self.updated_at = ensure_utc_aware(updated_at)

    @classmethod
    def from_row(cls, row: Any) -> "User":
        """Create User instance from Cassandra row."""
        return cls(
            id=row.id,
            email=row.email or "",
            name=row.name or "",
            role=row.role or UserRole.USER.value,
            is_active=row.is_active if row.is_active is not None else True,
            avatar_url=row.avatar_url,
            created_at=row.created_at,
            updated_at=row.updated_at,
        )

    def __repr__(self) -> str:
        return f"<User {self.email} ({self.role})>"
