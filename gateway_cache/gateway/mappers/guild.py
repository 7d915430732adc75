"""Guild gateway JSON to cached record mapper."""

from __future__ import annotations

from typing import Any

from gateway_cache.store.models import CachedGuild

# Boost tiers known to this code; anything else is cached as -1
KNOWN_PREMIUM_TIERS = (0, 1, 2, 3)
UNKNOWN_PREMIUM_TIER = -1


def map_premium_tier(value: Any) -> int:
    """Normalize a guild's premium tier."""
    tier = int(value or 0)
    return tier if tier in KNOWN_PREMIUM_TIERS else UNKNOWN_PREMIUM_TIER


def map_guild(data: dict[str, Any]) -> CachedGuild:
    """Convert a gateway guild object (full or partial) to a CachedGuild.

    Args:
        data: Guild object from GUILD_CREATE or GUILD_UPDATE

    Returns:
        CachedGuild record
    """
    return CachedGuild(
        id=int(data["id"]),
        name=data["name"],
        owner_id=int(data["owner_id"]),
        premium_tier=map_premium_tier(data.get("premium_tier")),
    )
