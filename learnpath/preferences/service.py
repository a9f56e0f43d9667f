"""User preferences service layer.

Preferences live behind a ``PreferenceStore`` adapter holding flat
string maps per user. Production uses ``RedisPreferenceStore`` (one hash
per user); tests inject their own store.
"""

from typing import TYPE_CHECKING, Protocol
from uuid import UUID

import structlog

from learnpath.core.redis import preferences_key

from .schemas import Preferences, PreferencesUpdate


if TYPE_CHECKING:
    from redis.asyncio import Redis

logger = structlog.get_logger(__name__)


class PreferenceStore(Protocol):
    """Storage adapter for per-user preference maps."""

    async def load(self, user_id: UUID) -> dict[str, str]: ...

    async def save(self, user_id: UUID, values: dict[str, str]) -> None: ...


class RedisPreferenceStore:
    """Preference store backed by one Redis hash per user."""

    def __init__(self, redis: "Redis", key_prefix: str):
        self.redis = redis
        self.key_prefix = key_prefix

    async def load(self, user_id: UUID) -> dict[str, str]:
        return await self.redis.hgetall(preferences_key(self.key_prefix, str(user_id)))

    async def save(self, user_id: UUID, values: dict[str, str]) -> None:
        if values:
            await self.redis.hset(
                preferences_key(self.key_prefix, str(user_id)), mapping=values
            )


def _encode(value: str | bool) -> str:
    if isinstance(value, bool):
        return "1" if value else "0"
    return value


def _decode(raw: dict[str, str]) -> Preferences:
    """Build preferences from a stored map, ignoring unknown or bad keys."""
    defaults = Preferences()
    values = {}
    for field, default in defaults.model_dump().items():
        if field not in raw:
            continue
        if isinstance(default, bool):
            values[field] = raw[field] == "1"
        else:
            values[field] = raw[field]

    try:
        return Preferences(**values)
    except ValueError:
        logger.warning("preferences_invalid_stored_value", keys=sorted(values))
        return defaults


class PreferencesService:
    """Get and update per-user preferences."""

    def __init__(self, store: PreferenceStore):
        self.store = store

    async def get_preferences(self, user_id: UUID) -> Preferences:
        """Stored preferences merged over the defaults."""
        return _decode(await self.store.load(user_id))

    async def update_preferences(
        self, user_id: UUID, changes: PreferencesUpdate
    ) -> Preferences:
        """Apply a partial update and return the resulting preferences."""
        values = {
            field: _encode(value)
            for field, value in changes.model_dump(exclude_none=True).items()
        }
        await self.store.save(user_id, values)

        logger.info(
            "preferences_updated", user_id=str(user_id), fields=sorted(values)
        )
        return await self.get_preferences(user_id)
