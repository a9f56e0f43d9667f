"""Pydantic schemas for authenticated users."""

from uuid import UUID

from pydantic import BaseModel, ConfigDict


class UserResponse(BaseModel):
    """Authenticated caller, built from the access token claims."""

    model_config = ConfigDict(from_attributes=True)

    id: UUID
    email: str
    name: str = ""
    role: str
    is_active: bool = True
