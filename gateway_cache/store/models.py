"""Cached record models.

Every value written into the cache hashes is one of these records, encoded by
gateway_cache.store.codec. Records are LATEST-STATE SNAPSHOTS: each update
event overwrites the previous value in place.

Design principles:
- The snowflake id is the ONLY authoritative identity of a record
- Records carry only what other services read (names, hierarchy, permissions)
- Optional fields are None when the gateway did not send them; decoding never
  invents defaults for required fields
"""

from __future__ import annotations

from pydantic import BaseModel, ConfigDict, Field


class CacheRecord(BaseModel):
    """Base for all cached records."""

    model_config = ConfigDict(extra="ignore")


class CachedGuild(CacheRecord):
    """A guild (community) record, stored in discord:cache:guilds."""

    id: int
    name: str
    owner_id: int
    # 0-3 for boost tiers, -1 for a tier this code does not know about
    premium_tier: int = 0


class CachedOverwrite(CacheRecord):
    """One channel permission overwrite, for a role (type 0) or member (type 1)."""

    id: int
    type: int
    allow: int = 0
    deny: int = 0


class CachedChannel(CacheRecord):
    """A channel or thread record, stored in discord:cache:channels.

    DM stubs only carry ``id`` and ``type``.
    """

    id: int
    type: int
    guild_id: int | None = None
    name: str | None = None
    parent_id: int | None = None
    position: int | None = None
    permission_overwrites: list[CachedOverwrite] = Field(default_factory=list)


class CachedRole(CacheRecord):
    """A guild role record, stored in discord:cache:roles."""

    id: int
    name: str
    position: int = 0
    permissions: int = 0
    mentionable: bool = False


class CachedUser(CacheRecord):
    """A user record, stored in discord:cache:users.

    Users are cached opportunistically from message authors and mentions and
    never deleted.
    """

    id: int
    username: str
    discriminator: str = "0"
    bot: bool = False
    avatar: str | None = None


class CachedGuildMember(CacheRecord):
    """The bot's own membership in one guild, stored in discord:cache:members."""

    roles: list[int] = Field(default_factory=list)


class ShardState(CacheRecord):
    """Health of one shard, stored in pluralkit:shardstatus.

    Timestamps are Unix seconds, 0 meaning "never"; latency is milliseconds.
    """

    shard_id: int = 0
    up: bool = False
    disconnection_count: int = 0
    latency: int = 0
    last_heartbeat: int = 0
    last_connection: int = 0
