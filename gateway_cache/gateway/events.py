"""Typed gateway events.

Each gateway event kind the cache layer knows about is one frozen dataclass;
``DomainEvent`` is the closed union of all of them. Payloads are already
mapped into cached records by gateway_cache.gateway.parser, so consumers never
touch raw JSON. The raw dispatch payload is kept on ``raw`` (excluded from
equality) for forwarding to worker services.

Kinds the cache ignores are still listed here so that every consumer has to
decide what to do with them.
"""

from __future__ import annotations

from dataclasses import dataclass, field
from typing import Any, ClassVar, Union

from gateway_cache.store.models import CachedChannel, CachedGuild, CachedRole, CachedUser


@dataclass(frozen=True)
class GatewayEvent:
    """Base for all events. ``name`` is the gateway dispatch name."""

    name: ClassVar[str] = ""

    raw: dict[str, Any] | None = field(
        default=None, kw_only=True, compare=False, repr=False
    )


@dataclass(frozen=True)
class GuildMember:
    """The parts of a member object the cache uses."""

    user_id: int
    roles: tuple[int, ...] = ()


# -----------------------------------------------------------------------------
# Guilds
# -----------------------------------------------------------------------------


@dataclass(frozen=True)
class GuildCreate(GatewayEvent):
    """Full snapshot of a guild, sent when a shard gains visibility into it."""

    name: ClassVar[str] = "GUILD_CREATE"

    guild: CachedGuild
    channels: tuple[CachedChannel, ...] = ()
    threads: tuple[CachedChannel, ...] = ()
    roles: tuple[CachedRole, ...] = ()
    members: tuple[GuildMember, ...] = ()

    @property
    def guild_id(self) -> int:
        return self.guild.id

    def find_member(self, user_id: int) -> GuildMember | None:
        for member in self.members:
            if member.user_id == user_id:
                return member
        return None


@dataclass(frozen=True)
class GuildUpdate(GatewayEvent):
    name: ClassVar[str] = "GUILD_UPDATE"

    guild: CachedGuild


@dataclass(frozen=True)
class GuildDelete(GatewayEvent):
    """The bot left the guild, or it became unavailable."""

    name: ClassVar[str] = "GUILD_DELETE"

    guild_id: int
    unavailable: bool = False


# -----------------------------------------------------------------------------
# Channels and threads
# -----------------------------------------------------------------------------


@dataclass(frozen=True)
class ChannelCreate(GatewayEvent):
    name: ClassVar[str] = "CHANNEL_CREATE"

    channel: CachedChannel


@dataclass(frozen=True)
class ChannelUpdate(GatewayEvent):
    name: ClassVar[str] = "CHANNEL_UPDATE"

    channel: CachedChannel


@dataclass(frozen=True)
class ChannelDelete(GatewayEvent):
    name: ClassVar[str] = "CHANNEL_DELETE"

    channel_id: int


@dataclass(frozen=True)
class ThreadCreate(GatewayEvent):
    name: ClassVar[str] = "THREAD_CREATE"

    channel: CachedChannel


@dataclass(frozen=True)
class ThreadUpdate(GatewayEvent):
    name: ClassVar[str] = "THREAD_UPDATE"

    channel: CachedChannel


@dataclass(frozen=True)
class ThreadDelete(GatewayEvent):
    name: ClassVar[str] = "THREAD_DELETE"

    channel_id: int


@dataclass(frozen=True)
class ThreadListSync(GatewayEvent):
    """Active threads of a guild, sent when the bot gains access to a channel."""

    name: ClassVar[str] = "THREAD_LIST_SYNC"

    guild_id: int
    threads: tuple[CachedChannel, ...] = ()


# -----------------------------------------------------------------------------
# Roles and members
# -----------------------------------------------------------------------------


@dataclass(frozen=True)
class RoleCreate(GatewayEvent):
    name: ClassVar[str] = "GUILD_ROLE_CREATE"

    guild_id: int
    role: CachedRole


@dataclass(frozen=True)
class RoleUpdate(GatewayEvent):
    name: ClassVar[str] = "GUILD_ROLE_UPDATE"

    guild_id: int
    role: CachedRole


@dataclass(frozen=True)
class RoleDelete(GatewayEvent):
    name: ClassVar[str] = "GUILD_ROLE_DELETE"

    guild_id: int
    role_id: int


@dataclass(frozen=True)
class MemberAdd(GatewayEvent):
    name: ClassVar[str] = "GUILD_MEMBER_ADD"

    guild_id: int
    member: GuildMember


@dataclass(frozen=True)
class MemberUpdate(GatewayEvent):
    name: ClassVar[str] = "GUILD_MEMBER_UPDATE"

    guild_id: int
    member: GuildMember


# -----------------------------------------------------------------------------
# Messages and reactions
# -----------------------------------------------------------------------------


@dataclass(frozen=True)
class MessageCreate(GatewayEvent):
    """A new message. ``member_roles`` is None when no member data was sent."""

    name: ClassVar[str] = "MESSAGE_CREATE"

    channel_id: int
    guild_id: int | None
    author: CachedUser
    mentions: tuple[CachedUser, ...] = ()
    member_roles: tuple[int, ...] | None = None


@dataclass(frozen=True)
class MessageUpdate(GatewayEvent):
    name: ClassVar[str] = "MESSAGE_UPDATE"

    channel_id: int
    guild_id: int | None = None


@dataclass(frozen=True)
class MessageDelete(GatewayEvent):
    name: ClassVar[str] = "MESSAGE_DELETE"

    channel_id: int
    guild_id: int | None = None


@dataclass(frozen=True)
class MessageDeleteBulk(GatewayEvent):
    name: ClassVar[str] = "MESSAGE_DELETE_BULK"

    channel_id: int
    guild_id: int | None = None


@dataclass(frozen=True)
class ReactionAdd(GatewayEvent):
    name: ClassVar[str] = "MESSAGE_REACTION_ADD"

    channel_id: int
    guild_id: int | None = None


# -----------------------------------------------------------------------------
# Connectivity
# -----------------------------------------------------------------------------


@dataclass(frozen=True)
class ShardConnected(GatewayEvent):
    """The shard finished its handshake (READY)."""

    name: ClassVar[str] = "READY"


@dataclass(frozen=True)
class ShardResumed(GatewayEvent):
    name: ClassVar[str] = "RESUMED"


@dataclass(frozen=True)
class ShardDisconnected(GatewayEvent):
    """The shard's socket closed. ``code`` is the close code when known."""

    name: ClassVar[str] = "SHARD_DISCONNECTED"

    code: int | None = None


@dataclass(frozen=True)
class GatewayHeartbeat(GatewayEvent):
    """A heartbeat was acknowledged; ``latency_ms`` is the round trip if measured."""

    name: ClassVar[str] = "GATEWAY_HEARTBEAT"

    latency_ms: int | None = None


@dataclass(frozen=True)
class Unhandled(GatewayEvent):
    """Any dispatch the cache layer has no use for."""

    event_name: str = ""


DomainEvent = Union[
    GuildCreate,
    GuildUpdate,
    GuildDelete,
    ChannelCreate,
    ChannelUpdate,
    ChannelDelete,
    ThreadCreate,
    ThreadUpdate,
    ThreadDelete,
    ThreadListSync,
    RoleCreate,
    RoleUpdate,
    RoleDelete,
    MemberAdd,
    MemberUpdate,
    MessageCreate,
    MessageUpdate,
    MessageDelete,
    MessageDeleteBulk,
    ReactionAdd,
    ShardConnected,
    ShardResumed,
    ShardDisconnected,
    GatewayHeartbeat,
    Unhandled,
]

# Every variant of DomainEvent, for exhaustiveness checks
EVENT_TYPES: tuple[type[GatewayEvent], ...] = DomainEvent.__args__  # type: ignore[attr-defined]


def event_name(event: GatewayEvent) -> str:
    """Gateway name of an event, including the original name of Unhandled ones."""
    if isinstance(event, Unhandled):
        return event.event_name
    return event.name
