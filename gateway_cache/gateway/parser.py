"""Gateway payload to typed event parsing.

Turns Discord gateway dispatches (``t`` name plus ``d`` payload) into the
DomainEvent variants consumed by the cache layer. Dispatch names the cache
has no use for become ``Unhandled``; a known dispatch with a malformed
payload raises EventParseError.

A few pseudo-dispatch names (SHARD_DISCONNECTED, GATEWAY_HEARTBEAT) are
accepted so that gateway client adapters and recorded event files can report
connectivity transitions that never appear on the wire as dispatches.
"""

from __future__ import annotations

from dataclasses import replace
from typing import Any, Callable

from pydantic import ValidationError

from gateway_cache.gateway import events
from gateway_cache.gateway.mappers import (
    map_channel,
    map_guild,
    map_member_roles,
    map_role,
    map_user,
    member_user_id,
)
from gateway_cache.store.errors import EventParseError
from gateway_cache.utils.ids import parse_optional_int, parse_snowflake

# Gateway opcodes
OP_DISPATCH = 0
OP_HEARTBEAT_ACK = 11

Payload = dict[str, Any]


def _guild_create(d: Payload) -> events.GuildCreate:
    guild_id = int(d["id"])
    return events.GuildCreate(
        guild=map_guild(d),
        channels=tuple(map_channel(c, guild_id) for c in d.get("channels", [])),
        threads=tuple(map_channel(t, guild_id) for t in d.get("threads", [])),
        roles=tuple(map_role(r) for r in d.get("roles", [])),
        members=tuple(_member(m) for m in d.get("members", [])),
    )


def _member(d: Payload) -> events.GuildMember:
    return events.GuildMember(user_id=member_user_id(d), roles=map_member_roles(d))


def _message_create(d: Payload) -> events.MessageCreate:
    member = d.get("member")
    return events.MessageCreate(
        channel_id=int(d["channel_id"]),
        guild_id=parse_snowflake(d.get("guild_id")),
        author=map_user(d["author"]),
        mentions=tuple(map_user(m) for m in d.get("mentions", [])),
        member_roles=map_member_roles(member) if member is not None else None,
    )


def _channel_touch(
    event_type: Callable[..., events.GatewayEvent],
) -> Callable[[Payload], events.GatewayEvent]:
    def parse(d: Payload) -> events.GatewayEvent:
        return event_type(
            channel_id=int(d["channel_id"]),
            guild_id=parse_snowflake(d.get("guild_id")),
        )

    return parse


_PARSERS: dict[str, Callable[[Payload], events.GatewayEvent]] = {
    "GUILD_CREATE": _guild_create,
    "GUILD_UPDATE": lambda d: events.GuildUpdate(guild=map_guild(d)),
    "GUILD_DELETE": lambda d: events.GuildDelete(
        guild_id=int(d["id"]), unavailable=bool(d.get("unavailable", False))
    ),
    "CHANNEL_CREATE": lambda d: events.ChannelCreate(channel=map_channel(d)),
    "CHANNEL_UPDATE": lambda d: events.ChannelUpdate(channel=map_channel(d)),
    "CHANNEL_DELETE": lambda d: events.ChannelDelete(channel_id=int(d["id"])),
    "THREAD_CREATE": lambda d: events.ThreadCreate(channel=map_channel(d)),
    "THREAD_UPDATE": lambda d: events.ThreadUpdate(channel=map_channel(d)),
    "THREAD_DELETE": lambda d: events.ThreadDelete(channel_id=int(d["id"])),
    "THREAD_LIST_SYNC": lambda d: events.ThreadListSync(
        guild_id=int(d["guild_id"]),
        threads=tuple(map_channel(t, int(d["guild_id"])) for t in d.get("threads", [])),
    ),
    "GUILD_ROLE_CREATE": lambda d: events.RoleCreate(
        guild_id=int(d["guild_id"]), role=map_role(d["role"])
    ),
    "GUILD_ROLE_UPDATE": lambda d: events.RoleUpdate(
        guild_id=int(d["guild_id"]), role=map_role(d["role"])
    ),
    "GUILD_ROLE_DELETE": lambda d: events.RoleDelete(
        guild_id=int(d["guild_id"]), role_id=int(d["role_id"])
    ),
    "GUILD_MEMBER_ADD": lambda d: events.MemberAdd(
        guild_id=int(d["guild_id"]), member=_member(d)
    ),
    "GUILD_MEMBER_UPDATE": lambda d: events.MemberUpdate(
        guild_id=int(d["guild_id"]), member=_member(d)
    ),
    "MESSAGE_CREATE": _message_create,
    "MESSAGE_UPDATE": _channel_touch(events.MessageUpdate),
    "MESSAGE_DELETE": _channel_touch(events.MessageDelete),
    "MESSAGE_DELETE_BULK": _channel_touch(events.MessageDeleteBulk),
    "MESSAGE_REACTION_ADD": _channel_touch(events.ReactionAdd),
    "READY": lambda d: events.ShardConnected(),
    "RESUMED": lambda d: events.ShardResumed(),
    "SHARD_DISCONNECTED": lambda d: events.ShardDisconnected(
        code=parse_optional_int(d.get("code"))
    ),
    "GATEWAY_HEARTBEAT": lambda d: events.GatewayHeartbeat(
        latency_ms=parse_optional_int(d.get("latency_ms"))
    ),
}


def parse_dispatch(name: str, data: Payload | None) -> events.DomainEvent:
    """Parse one gateway dispatch into a typed event.

    Args:
        name: Dispatch name (the packet's ``t`` field)
        data: Dispatch payload (the packet's ``d`` field)

    Returns:
        The typed event, or ``Unhandled`` for names the cache ignores

    Raises:
        EventParseError: If the payload of a known dispatch is malformed
    """
    parser = _PARSERS.get(name)
    if parser is None:
        return events.Unhandled(name, raw=data)

    payload = data or {}
    try:
        event = parser(payload)
    except (KeyError, TypeError, ValueError, ValidationError) as e:
        raise EventParseError(name, f"{type(e).__name__}: {e}") from e

    return _with_raw(event, data)


def parse_packet(packet: Payload) -> events.DomainEvent:
    """Parse a full gateway packet (``op``, ``t``, ``d``).

    Heartbeat ACKs (op 11) become GatewayHeartbeat; any other non-dispatch
    opcode becomes Unhandled.
    """
    op = packet.get("op", OP_DISPATCH)
    if op == OP_HEARTBEAT_ACK:
        return events.GatewayHeartbeat()
    if op != OP_DISPATCH:
        return events.Unhandled(f"OP_{op}")

    name = packet.get("t")
    if not name:
        raise EventParseError("<missing>", "dispatch packet without event name")
    return parse_dispatch(name, packet.get("d"))


def _with_raw(event: events.GatewayEvent, data: Payload | None) -> events.DomainEvent:
    return replace(event, raw=data)  # type: ignore[return-value]
