"""Channel gateway JSON to cached record mapper."""

from __future__ import annotations

from typing import Any

from gateway_cache.store.models import CachedChannel, CachedOverwrite
from gateway_cache.utils.channels import CHANNEL_TYPE_DM
from gateway_cache.utils.ids import parse_bits, parse_optional_int, parse_snowflake


# Older payloads spell the overwrite type out
_OVERWRITE_TYPE_NAMES = {"role": 0, "member": 1}


def map_overwrite(data: dict[str, Any]) -> CachedOverwrite:
    """Convert a permission overwrite object to a CachedOverwrite."""
    raw_type = data["type"]
    if isinstance(raw_type, str) and not raw_type.isdigit():
        overwrite_type = _OVERWRITE_TYPE_NAMES.get(raw_type, -1)
    else:
        overwrite_type = int(raw_type)

    return CachedOverwrite(
        id=int(data["id"]),
        type=overwrite_type,
        allow=parse_bits(data.get("allow")),
        deny=parse_bits(data.get("deny")),
    )


def map_channel(data: dict[str, Any], guild_id: int | None = None) -> CachedChannel:
    """Convert a gateway channel or thread object to a CachedChannel.

    Args:
        data: Channel object from a channel/thread event or GUILD_CREATE
        guild_id: Guild to tag the channel with; channels embedded in
            GUILD_CREATE do not carry their own guild_id

    Returns:
        CachedChannel record
    """
    if guild_id is None:
        guild_id = parse_snowflake(data.get("guild_id"))

    return CachedChannel(
        id=int(data["id"]),
        type=int(data["type"]),
        guild_id=guild_id,
        name=data.get("name"),
        parent_id=parse_snowflake(data.get("parent_id")),
        position=parse_optional_int(data.get("position")),
        permission_overwrites=[
            map_overwrite(o) for o in data.get("permission_overwrites") or []
        ],
    )


def dm_channel_stub(channel_id: int) -> CachedChannel:
    """Existence-only record for a DM channel the cache has not seen yet."""
    return CachedChannel(id=channel_id, type=CHANNEL_TYPE_DM)

