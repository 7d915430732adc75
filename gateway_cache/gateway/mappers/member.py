"""Guild member gateway JSON helpers."""

from __future__ import annotations

from typing import Any


def map_member_roles(data: dict[str, Any]) -> tuple[int, ...]:
    """Role ids of a (possibly partial) member object."""
    return tuple(int(r) for r in data.get("roles", []))


def member_user_id(data: dict[str, Any]) -> int:
    """User id of a member object.

    GUILD_MEMBER_* payloads and GUILD_CREATE members nest the user object;
    the id is required there.
    """
    return int(data["user"]["id"])
