"""
HTTP Client Unit Tests

Tests for the session client factory and the single-shot request helper.
"""

from unittest.mock import AsyncMock, MagicMock

import httpx
import pytest


class TestBuildClient:
    """Tests for the client factory."""

    @pytest.mark.asyncio
    async def test_each_call_builds_a_new_client(self):
        from teacher_portal.core.http_client import build_client

        client1 = build_client()
        client2 = build_client()

        try:
            assert client1 is not client2
            assert client1.cookies is not client2.cookies
        finally:
            await client1.aclose()
            await client2.aclose()

    @pytest.mark.asyncio
    async def test_client_sends_json_and_applies_timeout(self):
        from teacher_portal.core.http_client import build_client

        client = build_client(timeout=5)

        try:
            assert client.headers["Content-Type"] == "application/json"
            assert client.timeout.read == 5
        finally:
            await client.aclose()


class TestSendRequest:
    """Tests for the request helper."""

    @pytest.mark.asyncio
    async def test_returns_error_responses_without_retry(self):
        from teacher_portal.core.http_client import send_request

        mock_response = MagicMock()
        mock_response.status_code = 500

        mock_client = AsyncMock()
        mock_client.request = AsyncMock(return_value=mock_response)

        response = await send_request(mock_client, "op", "GET", "http://test.com")

        assert response.status_code == 500
        assert mock_client.request.call_count == 1

    @pytest.mark.asyncio
    async def test_transport_failure_becomes_remote_error(self):
        from teacher_portal.core.exceptions import RemoteError
        from teacher_portal.core.http_client import send_request

        mock_client = AsyncMock()
        mock_client.request = AsyncMock(side_effect=httpx.ConnectError("Connection refused"))

        with pytest.raises(RemoteError) as exc_info:
            await send_request(mock_client, "course_list", "GET", "http://test.com")

        assert exc_info.value.operation == "course_list"
        assert exc_info.value.http_status is None
        assert "Connection refused" in exc_info.value.message
        assert mock_client.request.call_count == 1

    @pytest.mark.asyncio
    async def test_passes_request_arguments_through(self):
        from teacher_portal.core.http_client import send_request

        mock_client = AsyncMock()
        mock_client.request = AsyncMock(return_value=MagicMock(status_code=200))

        await send_request(mock_client, "op", "POST", "http://test.com", json={"a": 1})

        mock_client.request.assert_awaited_once_with("POST", "http://test.com", json={"a": 1})
