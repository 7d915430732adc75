"""Cache synchronizer.

Applies gateway events to the shared Redis cache, one event at a time.

Layout (see gateway_cache.store.keys):
- discord:cache:{guilds,channels,roles,users}: hash of id -> encoded record
- discord:cache:members: hash of guild id -> the bot's own membership
- discord:cache:guild_channels:<guild>, discord:cache:guild_roles:<guild>:
  per-guild indices, hash of child id -> presence marker

Every write is idempotent, so replaying an event converges to the same state.
A single event may need several writes and they are not transactional: a
failure between them can leave an index stale until the next GUILD_CREATE for
that guild, which clears both indices before repopulating them.
"""

from __future__ import annotations

import logging
from typing import Any, Awaitable, Callable

from gateway_cache.gateway import events
from gateway_cache.gateway.mappers import dm_channel_stub
from gateway_cache.store import keys
from gateway_cache.store.client import EntityStore
from gateway_cache.store.codec import decode, encode
from gateway_cache.store.errors import InvariantViolation
from gateway_cache.store.models import (
    CachedChannel,
    CachedGuild,
    CachedGuildMember,
    CachedRole,
    CachedUser,
)
from gateway_cache.utils.channels import channel_type_name

logger = logging.getLogger(__name__)

Handler = Callable[[Any], Awaitable[None]]


class CacheSynchronizer:
    """Keeps the Redis cache in step with the gateway event stream.

    Safe to call concurrently from many shard tasks sharing one store; all
    state lives in Redis.
    """

    def __init__(self, store: EntityStore, own_user_id: int) -> None:
        if own_user_id <= 0:
            raise ValueError("own_user_id must be the bot's user id")
        self.store = store
        self.own_user_id = own_user_id

        # One entry per DomainEvent variant; a missing entry is a bug, not a no-op
        self._handlers: dict[type[events.GatewayEvent], Handler] = {
            events.GuildCreate: self._save_guild_create,
            events.GuildUpdate: self._save_guild_update,
            events.GuildDelete: self._remove_guild,
            events.ChannelCreate: self._save_channel_event,
            events.ChannelUpdate: self._save_channel_event,
            events.ChannelDelete: self._remove_channel_event,
            events.ThreadCreate: self._save_channel_event,
            events.ThreadUpdate: self._save_channel_event,
            events.ThreadDelete: self._remove_channel_event,
            events.ThreadListSync: self._save_thread_list_sync,
            events.RoleCreate: self._save_role,
            events.RoleUpdate: self._save_role,
            events.RoleDelete: self._remove_role,
            events.MemberAdd: self._ignore,
            events.MemberUpdate: self._ignore,
            events.MessageCreate: self._save_message_create,
            events.MessageUpdate: self._touch_dm_channel,
            events.MessageDelete: self._touch_dm_channel,
            events.MessageDeleteBulk: self._touch_dm_channel,
            events.ReactionAdd: self._touch_dm_channel,
            events.ShardConnected: self._ignore,
            events.ShardResumed: self._ignore,
            events.ShardDisconnected: self._ignore,
            events.GatewayHeartbeat: self._ignore,
            events.Unhandled: self._ignore,
        }

    @property
    def handled_types(self) -> frozenset[type[events.GatewayEvent]]:
        return frozenset(self._handlers)

    async def apply(self, event: events.DomainEvent) -> None:
        """Apply one event to the cache.

        Raises:
            StoreError: A store command failed; the event may be retried.
            CodecError: A record needed to apply the event is corrupt.
            TypeError: The event type has no handler.
        """
        handler = self._handlers.get(type(event))
        if handler is None:
            raise TypeError(f"No cache handler for {type(event).__name__}")
        await handler(event)

    # -------------------------------------------------------------------------
    # Self member
    # -------------------------------------------------------------------------

    async def update_self_member(self, event: events.DomainEvent) -> None:
        """Record the bot's own roles if the event carries its member object.

        Raises:
            InvariantViolation: A GUILD_CREATE does not list the bot's member.
        """
        guild_id: int | None = None
        roles: tuple[int, ...] | None = None

        if isinstance(event, events.GuildCreate):
            member = event.find_member(self.own_user_id)
            if member is None:
                raise InvariantViolation(
                    f"GUILD_CREATE for guild {event.guild_id} does not include "
                    f"the bot's own member ({self.own_user_id})"
                )
            guild_id, roles = event.guild_id, member.roles

        elif isinstance(event, (events.MemberAdd, events.MemberUpdate)):
            if event.member.user_id == self.own_user_id:
                guild_id, roles = event.guild_id, event.member.roles

        elif isinstance(event, events.MessageCreate):
            if (
                event.author.id == self.own_user_id
                and event.guild_id is not None
                and event.member_roles is not None
            ):
                guild_id, roles = event.guild_id, event.member_roles

        if guild_id is not None and roles is not None:
            await self.save_self_member(guild_id, roles)

    async def save_self_member(self, guild_id: int, roles: tuple[int, ...]) -> None:
        logger.debug("save_self_member guild=%d roles=%s", guild_id, roles)
        await self.store.hset(
            keys.MEMBERS, guild_id, encode(CachedGuildMember(roles=list(roles)))
        )

    # -------------------------------------------------------------------------
    # Guilds
    # -------------------------------------------------------------------------

    async def _save_guild_create(self, event: events.GuildCreate) -> None:
        guild_id = event.guild_id
        logger.debug("save_guild_create %d", guild_id)

        # Clear both indices before anything of this snapshot is written
        await self.store.delete(keys.guild_channels(guild_id))
        await self.store.delete(keys.guild_roles(guild_id))

        await self.save_guild(event.guild)

        channels = [
            c.model_copy(update={"guild_id": guild_id})
            for c in (*event.channels, *event.threads)
        ]
        await self.store.hset_many(keys.CHANNELS, {c.id: encode(c) for c in channels})
        await self.store.hset_many(
            keys.guild_channels(guild_id), {c.id: keys.PRESENT for c in channels}
        )

        await self.store.hset_many(keys.ROLES, {r.id: encode(r) for r in event.roles})
        await self.store.hset_many(
            keys.guild_roles(guild_id), {r.id: keys.PRESENT for r in event.roles}
        )

        logger.debug(
            "save_guild_create end %d (%d channels, %d roles)",
            guild_id,
            len(channels),
            len(event.roles),
        )

    async def _save_guild_update(self, event: events.GuildUpdate) -> None:
        await self.save_guild(event.guild)

    async def save_guild(self, guild: CachedGuild) -> None:
        logger.debug("save_guild %d", guild.id)
        await self.store.hset(keys.GUILDS, guild.id, encode(guild))

    async def _remove_guild(self, event: events.GuildDelete) -> None:
        guild_id = event.guild_id
        logger.debug("remove_guild %d", guild_id)
        await self.store.hdel(keys.GUILDS, guild_id)
        await self.store.delete(keys.guild_channels(guild_id))
        await self.store.delete(keys.guild_roles(guild_id))

    # -------------------------------------------------------------------------
    # Channels and threads
    # -------------------------------------------------------------------------

    async def _save_channel_event(
        self,
        event: events.ChannelCreate | events.ChannelUpdate | events.ThreadCreate | events.ThreadUpdate,
    ) -> None:
        await self.save_channel(event.channel)

    async def save_channel(self, channel: CachedChannel) -> None:
        logger.debug("save_channel %d (%s)", channel.id, channel_type_name(channel.type))
        await self.store.hset(keys.CHANNELS, channel.id, encode(channel))

    async def _save_thread_list_sync(self, event: events.ThreadListSync) -> None:
        for thread in event.threads:
            await self.save_channel(thread)

    async def _remove_channel_event(
        self, event: events.ChannelDelete | events.ThreadDelete
    ) -> None:
        await self.remove_channel(event.channel_id)

    async def remove_channel(self, channel_id: int) -> None:
        """Delete a channel and drop it from its guild's index.

        A channel that is not cached is left alone.
        """
        logger.debug("remove_channel %d", channel_id)
        old_channel = await self.get_channel(channel_id)
        if old_channel is None:
            return

        await self.store.hdel(keys.CHANNELS, channel_id)
        if old_channel.guild_id is not None:
            await self.store.hdel(keys.guild_channels(old_channel.guild_id), channel_id)

    async def get_channel(self, channel_id: int) -> CachedChannel | None:
        """Read a cached channel; None if absent, CodecError if corrupt."""
        data = await self.store.hget(keys.CHANNELS, channel_id)
        if data is None:
            return None
        return decode(CachedChannel, data)

    async def _touch_dm_channel(
        self,
        event: events.MessageUpdate
        | events.MessageDelete
        | events.MessageDeleteBulk
        | events.ReactionAdd,
    ) -> None:
        if event.guild_id is None:
            await self.save_dm_channel_stub(event.channel_id)

    async def save_dm_channel_stub(self, channel_id: int) -> None:
        """Write a placeholder for a DM channel unless any record exists."""
        if await self.store.hexists(keys.CHANNELS, channel_id):
            return
        logger.debug("save_dm_channel_stub %d", channel_id)
        await self.store.hset(keys.CHANNELS, channel_id, encode(dm_channel_stub(channel_id)))

    # -------------------------------------------------------------------------
    # Roles
    # -------------------------------------------------------------------------

    async def _save_role(self, event: events.RoleCreate | events.RoleUpdate) -> None:
        await self.save_role(event.guild_id, event.role)

    async def save_role(self, guild_id: int, role: CachedRole) -> None:
        logger.debug("save_role %d in guild %d", role.id, guild_id)
        await self.store.hset(keys.ROLES, role.id, encode(role))
        await self.store.hset(keys.guild_roles(guild_id), role.id, keys.PRESENT)

    async def _remove_role(self, event: events.RoleDelete) -> None:
        logger.debug("remove_role %d in guild %d", event.role_id, event.guild_id)
        await self.store.hdel(keys.ROLES, event.role_id)
        await self.store.hdel(keys.guild_roles(event.guild_id), event.role_id)

    # -------------------------------------------------------------------------
    # Messages and users
    # -------------------------------------------------------------------------

    async def _save_message_create(self, event: events.MessageCreate) -> None:
        if event.guild_id is None:
            await self.save_dm_channel_stub(event.channel_id)
        await self.save_users([event.author, *event.mentions])

    async def save_users(self, users: list[CachedUser]) -> None:
        """Upsert users. Users are never removed from the cache."""
        if not users:
            return
        logger.debug("save_users %s", [u.id for u in users])
        await self.store.hset_many(keys.USERS, {u.id: encode(u) for u in users})

    async def _ignore(self, event: events.GatewayEvent) -> None:
        return None
