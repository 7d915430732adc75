"""Mappers for converting Discord gateway JSON to cached records."""

from gateway_cache.gateway.mappers.channel import dm_channel_stub, map_channel, map_overwrite
from gateway_cache.gateway.mappers.guild import map_guild
from gateway_cache.gateway.mappers.member import map_member_roles, member_user_id
from gateway_cache.gateway.mappers.role import map_role
from gateway_cache.gateway.mappers.user import map_user

__all__ = [
    "dm_channel_stub",
    "map_channel",
    "map_overwrite",
    "map_guild",
    "map_member_roles",
    "member_user_id",
    "map_role",
    "map_user",
]
