"""Discord permission utilities.

Calculates channel permissions from cached roles and permission overwrites.
Used by the cache reader to answer "what can the bot do in this channel"
without calling the Discord API.
"""

from __future__ import annotations

from typing import Iterable

from gateway_cache.store.models import CachedOverwrite


# Permission bit flags
# See: https://discord.com/developers/docs/topics/permissions#permissions-bitwise-permission-flags
VIEW_CHANNEL = 0x0000000000000400  # 1 << 10
ADMINISTRATOR = 0x0000000000000008  # 1 << 3
SEND_MESSAGES = 0x0000000000000800  # 1 << 11
MANAGE_MESSAGES = 0x0000000000002000  # 1 << 13
EMBED_LINKS = 0x0000000000004000  # 1 << 14
READ_MESSAGE_HISTORY = 0x0000000000010000  # 1 << 16
MANAGE_WEBHOOKS = 0x0000000020000000  # 1 << 29

ALL_PERMISSIONS = 0xFFFFFFFFFFFFFFFF

OVERWRITE_TYPE_ROLE = 0
OVERWRITE_TYPE_MEMBER = 1


def compute_base_permissions(
    user_roles: Iterable[int],
    guild_roles: dict[int, int],
    everyone_role_id: int,
) -> int:
    """Compute base guild-level permissions for a user.

    Args:
        user_roles: Role IDs the user has
        guild_roles: Mapping of role_id -> permission bits
        everyone_role_id: The guild's @everyone role ID (same as guild_id)

    Returns:
        Combined permission bits from all roles
    """
    permissions = guild_roles.get(everyone_role_id, 0)

    for role_id in user_roles:
        permissions |= guild_roles.get(role_id, 0)

    if permissions & ADMINISTRATOR:
        return ALL_PERMISSIONS

    return permissions


def compute_channel_permissions(
    user_id: int,
    base_permissions: int,
    channel_overwrites: Iterable[CachedOverwrite],
    user_roles: Iterable[int],
    everyone_role_id: int,
) -> int:
    """Compute final channel-level permissions for a user.

    Applies channel permission_overwrites in order:
    1. @everyone deny -> @everyone allow
    2. Role deny (combined) -> Role allow (combined)
    3. Member deny -> Member allow

    Args:
        user_id: The user's ID
        base_permissions: Pre-computed base permissions from roles
        channel_overwrites: Cached permission overwrites of the channel
        user_roles: Role IDs the user has
        everyone_role_id: The guild's @everyone role ID

    Returns:
        Final permission bits for the channel
    """
    if base_permissions & ADMINISTRATOR:
        return ALL_PERMISSIONS

    permissions = base_permissions
    roles = set(user_roles)

    role_allow = 0
    role_deny = 0
    member_allow = 0
    member_deny = 0
    has_member_overwrite = False

    for overwrite in channel_overwrites:
        if overwrite.type == OVERWRITE_TYPE_ROLE:
            if overwrite.id == everyone_role_id:
                permissions &= ~overwrite.deny
                permissions |= overwrite.allow
            elif overwrite.id in roles:
                role_deny |= overwrite.deny
                role_allow |= overwrite.allow
        elif overwrite.type == OVERWRITE_TYPE_MEMBER and overwrite.id == user_id:
            member_deny = overwrite.deny
            member_allow = overwrite.allow
            has_member_overwrite = True

    permissions &= ~role_deny
    permissions |= role_allow

    if has_member_overwrite:
        permissions &= ~member_deny
        permissions |= member_allow

    return permissions


def has_permission(permissions: int, flag: int) -> bool:
    """Check if a permission set includes every bit of ``flag``."""
    return permissions & flag == flag
