"""Role gateway JSON to cached record mapper."""

from __future__ import annotations

from typing import Any

from gateway_cache.store.models import CachedRole
from gateway_cache.utils.ids import parse_bits


def map_role(data: dict[str, Any]) -> CachedRole:
    """Convert a gateway role object to a CachedRole.

    Args:
        data: Role object from GUILD_CREATE or a role event

    Returns:
        CachedRole record
    """
    return CachedRole(
        id=int(data["id"]),
        name=data["name"],
        position=int(data.get("position", 0)),
        permissions=parse_bits(data.get("permissions")),
        mentionable=bool(data.get("mentionable", False)),
    )
