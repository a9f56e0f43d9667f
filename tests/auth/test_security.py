"""Tests for bearer token functions and auth dependencies."""

from datetime import timedelta
from uuid import uuid4

import pytest
from fastapi import HTTPException
from jose import JWTError, jwt

from learnpath.auth.dependencies import (
    get_current_user,
    get_current_user_optional,
    require_permission,
)
from learnpath.auth.permissions import UserRole
from learnpath.auth.security import create_access_token, decode_access_token
from learnpath.config import get_settings


def claims(role: UserRole = UserRole.STUDENT) -> dict:
    return {
        "sub": str(uuid4()),
        "email": "test@example.com",
        "role": role.value,
        "name": "Test User",
    }


class TestAccessToken:
    """Tests for access token creation and decoding."""

    def test_decode_access_token(self) -> None:
        """Should decode token and return payload."""
        data = claims(UserRole.STUDENT)
        token = create_access_token(data)
        payload = decode_access_token(token)

        assert payload["sub"] == data["sub"]
        assert payload["email"] == data["email"]
        assert payload["role"] == "student"
        assert payload["type"] == "access"
        assert "exp" in payload
        assert "iat" in payload

    def test_decode_access_token_expired(self) -> None:
        """Should raise JWTError for expired token."""
        token = create_access_token(claims(), expires_delta=timedelta(seconds=-1))

        with pytest.raises(JWTError):
            decode_access_token(token)

    def test_decode_access_token_invalid(self) -> None:
        """Should raise JWTError for invalid token."""
        with pytest.raises(JWTError):
            decode_access_token("invalid.token.here")

    def test_decode_access_token_wrong_type(self) -> None:
        """Should raise JWTError if token type is not 'access'."""
        settings = get_settings()
        token = jwt.encode(
            {**claims(), "type": "refresh"},
            settings.auth_secret_key,
            algorithm=settings.auth_algorithm,
        )

        with pytest.raises(JWTError, match="expected 'access'"):
            decode_access_token(token)

    def test_decode_access_token_without_subject(self) -> None:
        """Tokens without sub are rejected."""
        data = claims()
        del data["sub"]
        token = create_access_token(data)

        with pytest.raises(JWTError, match="sub"):
            decode_access_token(token)

    def test_access_tokens_unique_different_users(self) -> None:
        """Access tokens for different users are unique."""
        assert create_access_token(claims()) != create_access_token(claims())


class TestCurrentUser:
    """Tests for the current user dependencies."""

    @pytest.mark.asyncio
    async def test_user_from_token(self) -> None:
        """Claims become the authenticated user."""
        data = claims(UserRole.TEACHER)

        user = await get_current_user(create_access_token(data))

        assert str(user.id) == data["sub"]
        assert user.role == "teacher"
        assert user.name == "Test User"

    @pytest.mark.asyncio
    @pytest.mark.parametrize("token", [None, "", "garbage"])
    async def test_missing_or_invalid_token(self, token) -> None:
        """Missing and invalid tokens are 401."""
        with pytest.raises(HTTPException) as exc_info:
            await get_current_user(token)

        assert exc_info.value.status_code == 401

    @pytest.mark.asyncio
    async def test_optional_user(self) -> None:
        """The optional dependency returns None instead of failing."""
        assert await get_current_user_optional(None) is None
        assert await get_current_user_optional("garbage") is None

    @pytest.mark.asyncio
    async def test_role_check(self) -> None:
        """Students fail a teacher permission check with 403."""
        student = await get_current_user(create_access_token(claims()))
        checker = require_permission(UserRole.TEACHER)

        with pytest.raises(HTTPException) as exc_info:
            await checker(student)

        assert exc_info.value.status_code == 403
