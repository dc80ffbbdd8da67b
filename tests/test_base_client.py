"""Tests for BaseClient request plumbing, headers and statistics."""

from __future__ import annotations

from unittest.mock import AsyncMock, MagicMock

import pytest

from src.tencent_meeting.clients.base import BaseClient
from src.tencent_meeting.exceptions import (
    ApiError,
    AuthenticationError,
    NetworkError,
)


# ── Fixtures ─────────────────────────────────────────────────────────────────


@pytest.fixture
def client(settings, transport):
    """BaseClient using the FakeApi-backed transport."""
    return BaseClient(settings, transport)


def _failing_transport(exc: Exception) -> MagicMock:
    transport = MagicMock()
    transport.request = AsyncMock(side_effect=exc)
    return transport


# ── Requests ─────────────────────────────────────────────────────────────────


class TestRequest:
    """Tests for BaseClient.request() and stats accounting."""

    @pytest.mark.asyncio
    async def test_path_joined_to_api_url(self, client, fake_api):
        fake_api.add("GET", "/v1/meetings", json={"meetings": []})

        response = await client.get("v1/meetings")

        assert response["success"] is True
        assert str(fake_api.last_request.url) == "https://api.test.local/v1/meetings"

    @pytest.mark.asyncio
    async def test_success_and_failure_counted(self, client, fake_api):
        """2xx responses count as successes, others as failures."""
        fake_api.add("GET", "/ok", json={})

        await client.get("/ok")
        await client.get("/missing")

        stats = client.get_stats()
        assert stats["total_requests"] == 2
        assert stats["successful_requests"] == 1
        assert stats["failed_requests"] == 1
        assert client.success_rate() == 50.0
        assert client.average_response_time() >= 0.0

    @pytest.mark.asyncio
    async def test_network_error_reraised(self, settings):
        client = BaseClient(settings, _failing_transport(NetworkError("down")))

        with pytest.raises(NetworkError):
            await client.get("/v1/users")

        assert client.get_stats()["failed_requests"] == 1

    @pytest.mark.asyncio
    async def test_unexpected_error_wrapped_in_api_error(self, settings):
        """Non-toolkit exceptions from the transport become ApiError(500)."""
        client = BaseClient(settings, _failing_transport(RuntimeError("socket closed")))

        with pytest.raises(ApiError) as exc_info:
            await client.post("/v1/users", {"username": "x"})

        assert exc_info.value.status_code == 500
        assert "socket closed" in str(exc_info.value)

    @pytest.mark.asyncio
    async def test_timeout_and_retries_forwarded(self, settings):
        transport = MagicMock()
        transport.request = AsyncMock(return_value={"success": True, "data": {}})
        client = BaseClient(settings, transport, timeout=12, retry_times=0)

        await client.delete("/v1/rooms/r1")

        args = transport.request.await_args.args
        assert args[0] == "DELETE"
        assert args[1] == "https://api.test.local/v1/rooms/r1"
        assert args[4] == 12
        assert args[5] == 0

    def test_defaults_from_settings(self, client):
        assert client.timeout == 30
        assert client.retry_times == 2


# ── Headers & authentication ─────────────────────────────────────────────────


class TestHeaders:
    """Tests for header and authentication management."""

    @pytest.mark.asyncio
    async def test_auth_token_sent(self, client, fake_api):
        fake_api.add("GET", "/v1/users", json={})
        client.set_auth_token("abc")

        await client.get("/v1/users")

        assert fake_api.last_request.headers["Authorization"] == "Bearer abc"

    @pytest.mark.asyncio
    async def test_custom_authentication_type(self, client, fake_api):
        fake_api.add("GET", "/v1/users", json={})
        client.set_authentication({"type": "JWT", "token": "xyz"})

        await client.get("/v1/users")

        assert fake_api.last_request.headers["Authorization"] == "JWT xyz"

    @pytest.mark.asyncio
    async def test_clear_authentication(self, client, fake_api):
        fake_api.add("GET", "/v1/users", json={})
        client.set_auth_token("abc")
        client.clear_authentication()

        await client.get("/v1/users")

        assert "Authorization" not in fake_api.last_request.headers

    def test_header_management(self, client):
        client.add_header("X-Trace", "t1")
        client.set_headers({"X-Tenant": "acme", "X-Ignored": 5})
        client.remove_header("Accept")

        headers = client.headers
        assert headers["X-Trace"] == "t1"
        assert headers["X-Tenant"] == "acme"
        assert "X-Ignored" not in headers
        assert "Accept" not in headers

    @pytest.mark.asyncio
    async def test_set_base_url(self, client, fake_api):
        fake_api.add("GET", "/v2/ping", json={})
        client.set_base_url("https://api.test.local/v2/")

        await client.get("/ping")

        assert fake_api.last_request.url.path == "/v2/ping"

    @pytest.mark.asyncio
    async def test_reset_restores_defaults(self, client, fake_api):
        fake_api.add("GET", "/ok", json={})
        client.add_header("X-Trace", "t1")
        client.set_auth_token("abc")
        client.timeout = 1
        await client.get("/ok")

        client.reset()

        assert "X-Trace" not in client.headers
        assert client.timeout == 30
        assert client.get_stats()["total_requests"] == 0
        assert client.success_rate() == 0.0


# ── Response checking ────────────────────────────────────────────────────────


class TestEnsureSuccess:
    """Tests for BaseClient._ensure_success()."""

    def test_returns_data_dict(self, client):
        assert client._ensure_success({"success": True, "data": {"id": 1}}, "op") == {"id": 1}

    def test_wraps_non_dict_data(self, client):
        assert client._ensure_success({"success": True, "data": [1, 2]}, "op") == {"data": [1, 2]}

    def test_raises_api_error_with_response(self, client):
        response = {"success": False, "status_code": 404, "data": {"error": "nope"}}

        with pytest.raises(ApiError) as exc_info:
            client._ensure_success(response, "get_meeting")

        assert exc_info.value.status_code == 404
        assert exc_info.value.api_response == response
        assert "get_meeting failed with status 404" in str(exc_info.value)

    def test_raises_authentication_error_on_401(self, client):
        with pytest.raises(AuthenticationError):
            client._ensure_success({"success": False, "status_code": 401}, "get_user")
