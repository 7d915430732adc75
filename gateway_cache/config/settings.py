"""Configuration management using pydantic-settings.

Provides validated configuration with support for:
- JSON config file (config.json)
- GATEWAY_* environment variables (nested fields use "__", e.g.
  GATEWAY_IDENTIFY__CONCURRENCY=16)
- Type coercion and validation

Settings are built once at process start and passed into each component;
components never look configuration up on their own.
"""

from __future__ import annotations

import json
from functools import lru_cache
from pathlib import Path

from pydantic import BaseModel, Field, field_validator
from pydantic_settings import BaseSettings, SettingsConfigDict

from gateway_cache.store.keys import DEFAULT_IDENTIFY_PREFIX


class IdentifySettings(BaseModel):
    """Identify admission policy.

    ``concurrency`` is the fleet-wide number of handshakes Discord allows at
    once (``max_concurrency``); the other two values are local policy.
    """

    concurrency: int = Field(default=1, ge=1)
    bucket_expiry: float = Field(default=6.0, gt=0)
    retry_interval: float = Field(default=0.5, gt=0)
    key_prefix: str = DEFAULT_IDENTIFY_PREFIX


class AppSettings(BaseSettings):
    """Gateway cache settings with validation."""

    redis_url: str = "redis://127.0.0.1:6379"
    redis_pool_size: int = Field(default=10, ge=1)

    # The bot's own user id; self-membership is only tracked for this user
    client_id: int = 0
    token: str = ""

    identify: IdentifySettings = Field(default_factory=IdentifySettings)

    # None means "ask the gateway info endpoint"
    total_shards: int | None = Field(default=None, ge=1)
    node_id: int = Field(default=0, ge=0)
    shards_per_node: int = Field(default=16, ge=1)

    dispatch_enabled: bool = False
    dispatch_topics: dict[str, str] = Field(
        default_factory=lambda: {"MESSAGE_CREATE": "command"}
    )

    model_config = SettingsConfigDict(
        env_prefix="GATEWAY_",
        env_nested_delimiter="__",
        extra="ignore",
    )

    @field_validator("dispatch_topics", mode="before")
    @classmethod
    def upper_case_event_names(cls, v: object) -> object:
        """Gateway event names are upper case on the wire."""
        if isinstance(v, dict):
            return {str(k).upper(): str(t) for k, t in v.items()}
        return v

    @classmethod
    def from_json(cls, path: str | Path = "config.json") -> "AppSettings":
        """Load settings from a JSON config file.

        Environment variables still apply; values from the file take
        precedence over them because they are passed as init arguments.

        Args:
            path: Path to the JSON config file

        Returns:
            AppSettings instance with validated configuration
        """
        config_path = Path(path)
        if config_path.exists():
            with open(config_path, "r", encoding="utf-8") as f:
                data = json.load(f)
            return cls(**data)
        return cls()


@lru_cache
def get_settings(config_path: str = "config.json") -> AppSettings:
    """Get cached application settings (CLI convenience only).

    Args:
        config_path: Path to JSON config file (default: config.json)

    Returns:
        Cached AppSettings instance
    """
    return AppSettings.from_json(config_path)
