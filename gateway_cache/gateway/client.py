"""Discord REST API client for gateway session information.

This module provides an async HTTP client with:
- Automatic rate limit handling (429 responses)
- Exponential backoff for server errors (5xx) and transport failures
- Bot token authorization headers

Only the endpoint needed to plan a gateway fleet is exposed: ``/gateway/bot``
returns the recommended shard count and the identify ``max_concurrency``.
"""

from __future__ import annotations

import asyncio
from dataclasses import dataclass
from typing import Any

import httpx

from gateway_cache.gateway.logger import logger


# Discord API base URL
BASE_URL = "https://discord.com/api/v10"

# Retry configuration
MAX_RETRIES = 5
MAX_RATE_LIMIT_RETRIES = 30  # Cap on consecutive 429 retries
INITIAL_BACKOFF = 1.0  # seconds
MAX_BACKOFF = 64.0  # seconds

USER_AGENT = "DiscordBot (https://github.com/gateway-cache, 0.1.0)"


class DiscordAPIError(Exception):
    """Raised when Discord API returns an error."""

    def __init__(self, status_code: int, message: str) -> None:
        self.status_code = status_code
        self.message = message
        super().__init__(f"Discord API error {status_code}: {message}")


@dataclass(frozen=True)
class GatewayInfo:
    """Parsed ``GET /gateway/bot`` response."""

    url: str
    shards: int
    max_concurrency: int
    remaining_sessions: int | None = None


@dataclass
class DiscordClient:
    """Async Discord REST API client.

    Handles rate limits and retries automatically.
    """

    token: str
    user_agent: str = USER_AGENT

    def __post_init__(self) -> None:
        self._client: httpx.AsyncClient | None = None

    @property
    def headers(self) -> dict[str, str]:
        """Build request headers."""
        return {
            "Authorization": f"Bot {self.token}",
            "User-Agent": self.user_agent,
            "Content-Type": "application/json",
        }

    async def __aenter__(self) -> "DiscordClient":
        self._client = httpx.AsyncClient(
            base_url=BASE_URL,
            headers=self.headers,
            timeout=30.0,
        )
        return self

    async def __aexit__(self, *args: Any) -> None:
        if self._client:
            await self._client.aclose()
            self._client = None

    async def _request(self, method: str, path: str) -> Any:
        """Make a request with rate limit and retry handling."""
        if not self._client:
            raise RuntimeError("Client not initialized. Use async with.")

        backoff = INITIAL_BACKOFF
        rate_limit_retries = 0
        attempt = 0

        while True:
            try:
                response = await self._client.request(method, path)
            except httpx.TransportError as e:
                # Timeouts are transport errors too
                if attempt < MAX_RETRIES:
                    attempt += 1
                    logger.warning(
                        f"Retry {attempt}/{MAX_RETRIES} in {backoff:.1f}s ({e or type(e).__name__})"
                    )
                    await asyncio.sleep(backoff)
                    backoff = min(backoff * 2, MAX_BACKOFF)
                    continue
                raise

            if response.status_code == 200:
                return response.json()

            # Rate limited - wait and retry (doesn't count as attempt)
            if response.status_code == 429:
                rate_limit_retries += 1
                if rate_limit_retries > MAX_RATE_LIMIT_RETRIES:
                    raise DiscordAPIError(429, "Max rate limit retries exceeded")
                retry_after = float(response.headers.get("Retry-After", 1.0))
                logger.warning(f"Rate limited. Waiting {retry_after:.1f}s...")
                await asyncio.sleep(retry_after)
                continue

            if response.status_code >= 500 and attempt < MAX_RETRIES:
                attempt += 1
                logger.warning(
                    f"Retry {attempt}/{MAX_RETRIES} in {backoff:.1f}s (HTTP {response.status_code})"
                )
                await asyncio.sleep(backoff)
                backoff = min(backoff * 2, MAX_BACKOFF)
                continue

            error_msg = response.text
            try:
                error_msg = response.json().get("message", response.text)
            except ValueError:
                pass
            raise DiscordAPIError(response.status_code, error_msg)

    async def get_gateway_bot(self) -> GatewayInfo:
        """Fetch gateway URL, recommended shard count and identify concurrency."""
        data = await self._request("GET", "/gateway/bot")
        limit = data.get("session_start_limit") or {}
        return GatewayInfo(
            url=data["url"],
            shards=int(data["shards"]),
            max_concurrency=int(limit.get("max_concurrency", 1)),
            remaining_sessions=limit.get("remaining"),
        )
