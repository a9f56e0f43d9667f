"""Pydantic schemas for user preferences."""

from typing import Literal

from pydantic import Field

from learnpath.core.schemas import CamelModel


Theme = Literal["light", "dark", "system"]


class Preferences(CamelModel):
    """Per-user display and notification settings."""

    theme: Theme = "system"
    language: str = Field("en", pattern=r"^[a-z]{2}(-[A-Z]{2})?$")
    email_notifications: bool = True
    message_notifications: bool = True


class PreferencesUpdate(CamelModel):
    """Partial preferences update; omitted fields are left unchanged."""

    theme: Theme | None = None
    language: str | None = Field(None, pattern=r"^[a-z]{2}(-[A-Z]{2})?$")
    email_notifications: bool | None = None
    message_notifications: bool | None = None
