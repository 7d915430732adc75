"""User gateway JSON to cached record mapper."""

from __future__ import annotations

from typing import Any

from gateway_cache.store.models import CachedUser


def map_user(data: dict[str, Any]) -> CachedUser:
    """Convert a gateway user object to a CachedUser.

    Mentions carry the same user fields plus a partial member, which is
    ignored here.

    Args:
        data: User object (may be partial)

    Returns:
        CachedUser record
    """
    return CachedUser(
        id=int(data["id"]),
        username=data.get("username", ""),
        discriminator=str(data.get("discriminator") or "0"),
        bot=bool(data.get("bot", False)),
        avatar=data.get("avatar"),
    )
