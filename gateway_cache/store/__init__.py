"""Redis-backed store, record models and codec."""

from gateway_cache.store.client import EntityStore
from gateway_cache.store.codec import decode, encode
from gateway_cache.store.errors import (
    CacheError,
    CodecError,
    EventParseError,
    InvariantViolation,
    StoreError,
)
from gateway_cache.store.models import (
    CachedChannel,
    CachedGuild,
    CachedGuildMember,
    CachedOverwrite,
    CachedRole,
    CachedUser,
    ShardState,
)
from gateway_cache.store.reader import CacheReader

__all__ = [
    "EntityStore",
    "CacheReader",
    "decode",
    "encode",
    "CacheError",
    "CodecError",
    "EventParseError",
    "InvariantViolation",
    "StoreError",
    "CachedChannel",
    "CachedGuild",
    "CachedGuildMember",
    "CachedOverwrite",
    "CachedRole",
    "CachedUser",
    "ShardState",
]
