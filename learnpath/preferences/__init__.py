"""User preferences module.

Provides:
- Theme, language and notification settings per user
- A pluggable preference store (Redis in production)
"""

from .service import PreferencesService, PreferenceStore, RedisPreferenceStore


__all__ = ["PreferenceStore", "PreferencesService", "RedisPreferenceStore"]
