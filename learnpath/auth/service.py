"""User directory service.

Read-only access to the users table: single lookups and role listings.
"""

from typing import TYPE_CHECKING
from uuid import UUID

import structlog

from learnpath.auth.models import User
from learnpath.auth.permissions import UserRole


if TYPE_CHECKING:
    from cassandra.cluster import Session

logger = structlog.get_logger(__name__)


class UserService:
    """Service for reading user accounts."""

    def __init__(self, session: "Session", keyspace: str):
        """Initialize with Cassandra session."""
        self.session = session
        self.keyspace = keyspace
        self._prepare_statements()

    def _prepare_statements(self) -> None:
        """Prepare CQL statements for efficient execution."""
        self._get_by_id = self.session.prepare(f"""
            SELECT * FROM {self.keyspace}.users WHERE id = ?
        """)

        self._list_by_role = self.session.prepare(f"""
            SELECT * FROM {self.keyspace}.users WHERE role = ?
        """)

    async def get_user(self, user_id: UUID) -> User | None:
        """Get a user by ID."""
        result = await self.session.aexecute(self._get_by_id, [user_id])
        row = result.one()
        return User.from_row(row) if row else None

    async def list_by_role(self, role: UserRole) -> list[User]:
        """List all users holding exactly ``role``."""
        rows = await self.session.aexecute(self._list_by_role, [role.value])
        return [User.from_row(row) for row in rows]

    async def list_students(self) -> list[User]:
        """List every student account, in storage order."""
        students = await self.list_by_role(UserRole.STUDENT)
        logger.debug("students_listed", count=len(students))
        return students
