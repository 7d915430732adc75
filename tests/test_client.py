"""Unit tests for gateway_cache.gateway.client."""

from __future__ import annotations

from unittest.mock import AsyncMock, MagicMock, patch

import httpx
import pytest

from gateway_cache.gateway.client import (
    BASE_URL,
    INITIAL_BACKOFF,
    MAX_BACKOFF,
    MAX_RATE_LIMIT_RETRIES,
    MAX_RETRIES,
    DiscordAPIError,
    DiscordClient,
    GatewayInfo,
)


def _make_response(
    status_code: int,
    json_data: dict | list | None = None,
    text: str = "",
    headers: dict | None = None,
) -> MagicMock:
    """Build a mock httpx.Response."""
    resp = MagicMock(spec=httpx.Response)
    resp.status_code = status_code
    resp.text = text
    resp.headers = headers or {}
    if json_data is not None:
        resp.json.return_value = json_data
    else:
        resp.json.side_effect = ValueError("No JSON")
    return resp


def _make_client() -> DiscordClient:
    """Create a DiscordClient with a mocked HTTP layer."""
    client = DiscordClient(token="test-token", user_agent="test-agent")
    client._client = AsyncMock(spec=httpx.AsyncClient)
    return client


# ---------------------------------------------------------------------------
# TestRequest
# ---------------------------------------------------------------------------


class TestRequest:
    """Tests for DiscordClient._request."""

    @pytest.mark.asyncio
    async def test_200_returns_json(self):
        client = _make_client()
        client._client.request.return_value = _make_response(200, {"id": "1"})

        result = await client._request("GET", "/test")

        assert result == {"id": "1"}

    @pytest.mark.asyncio
    @patch("gateway_cache.gateway.client.asyncio.sleep", new_callable=AsyncMock)
    async def test_429_sleeps_retry_after_then_retries(self, mock_sleep):
        client = _make_client()
        rate_resp = _make_response(429, headers={"Retry-After": "2.5"})
        ok_resp = _make_response(200, {"ok": True})
        client._client.request.side_effect = [rate_resp, ok_resp]

        result = await client._request("GET", "/test")

        assert result == {"ok": True}
        mock_sleep.assert_awaited_once_with(2.5)

    @pytest.mark.asyncio
    @patch("gateway_cache.gateway.client.asyncio.sleep", new_callable=AsyncMock)
    async def test_429_does_not_consume_retry_attempts(self, mock_sleep):
        client = _make_client()
        rate_resp = _make_response(429, headers={"Retry-After": "0.5"})
        ok_resp = _make_response(200, {"ok": True})
        client._client.request.side_effect = [rate_resp] * (MAX_RETRIES + 5) + [ok_resp]

        result = await client._request("GET", "/test")

        assert result == {"ok": True}
        assert mock_sleep.await_count == MAX_RETRIES + 5

    @pytest.mark.asyncio
    @patch("gateway_cache.gateway.client.asyncio.sleep", new_callable=AsyncMock)
    async def test_429_gives_up_after_cap(self, mock_sleep):
        client = _make_client()
        client._client.request.return_value = _make_response(429, headers={"Retry-After": "0.1"})

        with pytest.raises(DiscordAPIError) as exc_info:
            await client._request("GET", "/test")

        assert exc_info.value.status_code == 429
        assert mock_sleep.await_count == MAX_RATE_LIMIT_RETRIES

    @pytest.mark.asyncio
    async def test_401_raises_immediately(self):
        client = _make_client()
        client._client.request.return_value = _make_response(401, text="Unauthorized")

        with pytest.raises(DiscordAPIError) as exc_info:
            await client._request("GET", "/test")

        assert exc_info.value.status_code == 401
        assert exc_info.value.message == "Unauthorized"
        assert client._client.request.await_count == 1

    @pytest.mark.asyncio
    async def test_403_raises_with_json_message(self):
        client = _make_client()
        client._client.request.return_value = _make_response(
            403, json_data={"message": "Missing Access"}, text="Forbidden"
        )

        with pytest.raises(DiscordAPIError) as exc_info:
            await client._request("GET", "/test")

        assert exc_info.value.status_code == 403
        assert exc_info.value.message == "Missing Access"

    @pytest.mark.asyncio
    @patch("gateway_cache.gateway.client.asyncio.sleep", new_callable=AsyncMock)
    async def test_5xx_retries_then_succeeds(self, mock_sleep):
        client = _make_client()
        client._client.request.side_effect = [
            _make_response(500, text="Internal Server Error"),
            _make_response(200, {"ok": True}),
        ]

        result = await client._request("GET", "/test")

        assert result == {"ok": True}
        mock_sleep.assert_awaited_once_with(INITIAL_BACKOFF)

    @pytest.mark.asyncio
    @patch("gateway_cache.gateway.client.asyncio.sleep", new_callable=AsyncMock)
    async def test_5xx_exhausts_retries_raises(self, mock_sleep):
        client = _make_client()
        client._client.request.return_value = _make_response(502, text="Bad Gateway")

        with pytest.raises(DiscordAPIError) as exc_info:
            await client._request("GET", "/test")

        assert exc_info.value.status_code == 502
        assert client._client.request.await_count == MAX_RETRIES + 1

    @pytest.mark.asyncio
    @patch("gateway_cache.gateway.client.asyncio.sleep", new_callable=AsyncMock)
    async def test_timeout_retries_then_succeeds(self, mock_sleep):
        client = _make_client()
        client._client.request.side_effect = [
            httpx.TimeoutException("timeout"),
            _make_response(200, {"ok": True}),
        ]

        result = await client._request("GET", "/test")

        assert result == {"ok": True}
        mock_sleep.assert_awaited_once_with(INITIAL_BACKOFF)

    @pytest.mark.asyncio
    @patch("gateway_cache.gateway.client.asyncio.sleep", new_callable=AsyncMock)
    async def test_transport_error_exhausts_retries_raises(self, mock_sleep):
        client = _make_client()
        client._client.request.side_effect = httpx.TransportError("connection reset")

        with pytest.raises(httpx.TransportError):
            await client._request("GET", "/test")

        assert client._client.request.await_count == MAX_RETRIES + 1

    @pytest.mark.asyncio
    async def test_client_none_raises_runtime_error(self):
        client = DiscordClient(token="t", user_agent="u")

        with pytest.raises(RuntimeError, match="Client not initialized"):
            await client._request("GET", "/test")

    @pytest.mark.asyncio
    @patch("gateway_cache.gateway.client.asyncio.sleep", new_callable=AsyncMock)
    async def test_backoff_doubles_and_caps(self, mock_sleep):
        client = _make_client()
        client._client.request.side_effect = [
            _make_response(500, text="error")
        ] * MAX_RETRIES + [_make_response(200, {"ok": True})]

        await client._request("GET", "/test")

        sleep_values = [call.args[0] for call in mock_sleep.await_args_list]
        expected = INITIAL_BACKOFF
        for val in sleep_values:
            assert val == expected
            expected = min(expected * 2, MAX_BACKOFF)


# ---------------------------------------------------------------------------
# TestGetGatewayBot
# ---------------------------------------------------------------------------


class TestGetGatewayBot:
    """Tests for DiscordClient.get_gateway_bot."""

    @pytest.mark.asyncio
    async def test_parses_session_start_limit(self):
        client = _make_client()
        client._client.request.return_value = _make_response(
            200,
            {
                "url": "wss://gateway.discord.gg",
                "shards": 48,
                "session_start_limit": {
                    "total": 1000,
                    "remaining": 997,
                    "reset_after": 14400000,
                    "max_concurrency": 16,
                },
            },
        )

        info = await client.get_gateway_bot()

        assert info == GatewayInfo(
            url="wss://gateway.discord.gg",
            shards=48,
            max_concurrency=16,
            remaining_sessions=997,
        )
        client._client.request.assert_awaited_once_with("GET", "/gateway/bot")

    @pytest.mark.asyncio
    async def test_missing_limit_defaults_to_one(self):
        client = _make_client()
        client._client.request.return_value = _make_response(
            200, {"url": "wss://gateway.discord.gg", "shards": 1}
        )

        info = await client.get_gateway_bot()

        assert info.max_concurrency == 1
        assert info.remaining_sessions is None


class TestLifecycle:
    def test_headers_use_bot_token(self):
        client = DiscordClient(token="abc", user_agent="agent")

        assert client.headers["Authorization"] == "Bot abc"
        assert client.headers["User-Agent"] == "agent"

    @pytest.mark.asyncio
    async def test_context_manager_opens_and_closes(self):
        async with DiscordClient(token="abc") as client:
            assert client._client is not None
            assert str(client._client.base_url).rstrip("/") == BASE_URL

        assert client._client is None
