"""Stable key names shared with every reader of the cache.

Changing any of these breaks the services that read the cache.
"""

from __future__ import annotations

GUILDS = "discord:cache:guilds"
CHANNELS = "discord:cache:channels"
ROLES = "discord:cache:roles"
USERS = "discord:cache:users"
MEMBERS = "discord:cache:members"

GUILD_CHANNELS_PREFIX = "discord:cache:guild_channels:"
GUILD_ROLES_PREFIX = "discord:cache:guild_roles:"

SHARD_STATUS = "pluralkit:shardstatus"

DEFAULT_IDENTIFY_PREFIX = "pluralkit:identify"

EVENT_TOPIC_PREFIX = "discord:evt:"

# Value stored in the per-guild index hashes; only field presence matters
PRESENT = b"true"


def guild_channels(guild_id: int) -> str:
    """Key of the channel index hash for a guild."""
    return f"{GUILD_CHANNELS_PREFIX}{guild_id}"


def guild_roles(guild_id: int) -> str:
    """Key of the role index hash for a guild."""
    return f"{GUILD_ROLES_PREFIX}{guild_id}"


def identify_bucket(bucket: int, prefix: str = DEFAULT_IDENTIFY_PREFIX) -> str:
    """Key of the identify marker for a bucket."""
    return f"{prefix}:{bucket}"


def event_topic(topic: str) -> str:
    """Key of the list that forwarded events for ``topic`` are pushed onto."""
    return f"{EVENT_TOPIC_PREFIX}{topic}"
