"""Tests for request context, its middleware and log masking."""

import pytest
from fastapi.testclient import TestClient

from learnpath.core.context import (
    clear_context,
    get_context,
    set_request_id,
    set_trace_id,
    set_user_id,
)
from learnpath.core.logging import filter_sensitive_data
from learnpath.core.middleware import extract_traceparent


class TestContext:
    """Context variables."""

    def test_get_context_skips_empty_values(self) -> None:
        """Only values that are set appear in the context."""
        clear_context()
        request_id = set_request_id()

        assert get_context() == {"request_id": request_id}

        set_user_id("u-1")
        set_trace_id("t-1")
        assert get_context() == {
            "request_id": request_id,
            "user_id": "u-1",
            "trace_id": "t-1",
        }

        clear_context()
        assert get_context() == {}


class TestTraceparent:
    """W3C traceparent parsing."""

    @pytest.mark.parametrize(
        "header,expected",
        [
            (
                "00-4bf92f3577b34da6a3ce929d0e0e4736-00f067aa0ba902b7-01",
                "4bf92f3577b34da6a3ce929d0e0e4736",
            ),
            ("garbage", None),
            (None, None),
        ],
    )
    def test_extract(self, header, expected) -> None:
        """The second dash-separated field is the trace ID."""
        assert extract_traceparent(header) == expected


class TestMiddleware:
    """RequestContextMiddleware."""

    def test_request_id_echoed(self, client: TestClient) -> None:
        """A caller-supplied request ID is returned on the response."""
        response = client.get("/health/live", headers={"X-Request-ID": "req-123"})

        assert response.headers["X-Request-ID"] == "req-123"

    def test_request_id_generated(self, client: TestClient) -> None:
        """Without a header a request ID is generated."""
        response = client.get("/health/live")

        assert response.headers["X-Request-ID"]

    def test_error_body_carries_request_id(self, client: TestClient) -> None:
        """Error responses include the request ID."""
        response = client.get(
            "/v1/preferences", headers={"X-Request-ID": "req-err"}
        )

        assert response.json()["request_id"] == "req-err"


class TestSensitiveData:
    """Log masking."""

    def test_masks_tokens(self) -> None:
        """Token-like keys are masked, other keys are kept."""
        event = filter_sensitive_data(
            None,
            "info",
            {"event": "x", "access_token": "abcdefgh", "password": "pw", "path": "/"},
        )

        assert event["access_token"] == "ab****gh"
        assert event["password"] == "***"
        assert event["path"] == "/"
