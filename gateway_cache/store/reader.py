"""Read side of the cache.

Used by services that need guild structure or the bot's own permissions
without calling the Discord API. Missing records are None (or empty); a
record that exists but does not decode raises CodecError.
"""

from __future__ import annotations

from gateway_cache.store import keys
from gateway_cache.store.client import EntityStore
from gateway_cache.store.codec import RecordT, decode
from gateway_cache.store.models import (
    CachedChannel,
    CachedGuild,
    CachedGuildMember,
    CachedRole,
    CachedUser,
)
from gateway_cache.utils.channels import is_thread
from gateway_cache.utils.permissions import (
    ALL_PERMISSIONS,
    compute_base_permissions,
    compute_channel_permissions,
)


class CacheReader:
    """Typed lookups over the cache written by CacheSynchronizer."""

    def __init__(self, store: EntityStore, own_user_id: int) -> None:
        self.store = store
        self.own_user_id = own_user_id

    async def _get(self, table: str, key: int, model: type[RecordT]) -> RecordT | None:
        data = await self.store.hget(table, key)
        if data is None:
            return None
        return decode(model, data)

    async def get_guild(self, guild_id: int) -> CachedGuild | None:
        return await self._get(keys.GUILDS, guild_id, CachedGuild)

    async def get_channel(self, channel_id: int) -> CachedChannel | None:
        return await self._get(keys.CHANNELS, channel_id, CachedChannel)

    async def get_role(self, role_id: int) -> CachedRole | None:
        return await self._get(keys.ROLES, role_id, CachedRole)

    async def get_user(self, user_id: int) -> CachedUser | None:
        return await self._get(keys.USERS, user_id, CachedUser)

    async def get_self_roles(self, guild_id: int) -> list[int] | None:
        """The bot's role ids in a guild, or None if its membership is unknown."""
        member = await self._get(keys.MEMBERS, guild_id, CachedGuildMember)
        return member.roles if member is not None else None

    async def guild_channel_ids(self, guild_id: int) -> set[int]:
        return await self._index(keys.guild_channels(guild_id))

    async def guild_role_ids(self, guild_id: int) -> set[int]:
        return await self._index(keys.guild_roles(guild_id))

    async def _index(self, name: str) -> set[int]:
        data = await self.store.hgetall(name)
        return {int(field) for field in data}

    async def bot_permissions_in(self, channel_id: int) -> int:
        """The bot's effective permission bits in a cached channel.

        Threads inherit overwrites from their parent channel. DM channels and
        channels of guilds the bot has no cached membership in yield 0.
        """
        channel = await self.get_channel(channel_id)
        if channel is None or channel.guild_id is None:
            return 0

        guild_id = channel.guild_id
        self_roles = await self.get_self_roles(guild_id)
        if self_roles is None:
            return 0

        guild = await self.get_guild(guild_id)
        if guild is not None and guild.owner_id == self.own_user_id:
            return ALL_PERMISSIONS

        role_ids = {guild_id, *self_roles}
        role_permissions: dict[int, int] = {}
        for role_id in role_ids:
            role = await self.get_role(role_id)
            if role is not None:
                role_permissions[role.id] = role.permissions

        base = compute_base_permissions(self_roles, role_permissions, guild_id)

        overwrite_source = channel
        if channel.parent_id is not None and is_thread(channel.type):
            parent = await self.get_channel(channel.parent_id)
            if parent is not None:
                overwrite_source = parent

        return compute_channel_permissions(
            self.own_user_id,
            base,
            overwrite_source.permission_overwrites,
            self_roles,
            guild_id,
        )
