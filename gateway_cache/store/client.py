"""Async Redis store client.

Thin wrapper around a shared redis.asyncio connection pool that exposes only
the commands the cache layer needs and turns every Redis failure into a
StoreError. Safe to share between any number of concurrent shard tasks;
atomicity comes from Redis itself, never from client-side locking.
"""

from __future__ import annotations

import logging
from typing import Any, Mapping

import redis.asyncio as redis
from redis.exceptions import RedisError

from gateway_cache.store.errors import StoreError

logger = logging.getLogger(__name__)

Field = int | str
Value = bytes | str | int


class EntityStore:
    """Hash-map-per-key store backed by Redis."""

    def __init__(self, client: redis.Redis) -> None:
        self._redis = client

    @classmethod
    def from_url(cls, url: str, max_connections: int = 10) -> "EntityStore":
        """Create a store with its own connection pool.

        Args:
            url: Redis URL, e.g. redis://127.0.0.1:6379
            max_connections: Size of the shared connection pool
        """
        logger.info("Connecting to redis at %s (pool size %d)", url, max_connections)
        pool = redis.ConnectionPool.from_url(url, max_connections=max_connections)
        return cls(redis.Redis(connection_pool=pool))

    async def __aenter__(self) -> "EntityStore":
        return self

    async def __aexit__(self, *args: Any) -> None:
        await self.close()

    async def close(self) -> None:
        """Close the underlying connection pool."""
        await self._redis.aclose()

    async def ping(self) -> bool:
        try:
            return bool(await self._redis.ping())
        except RedisError as e:
            raise StoreError("PING", str(e)) from e

    # -------------------------------------------------------------------------
    # Hashes
    # -------------------------------------------------------------------------

    async def hset(self, name: str, key: Field, value: Value) -> None:
        """Set one field of a hash."""
        try:
            await self._redis.hset(name, key, value)
        except RedisError as e:
            raise StoreError("HSET", str(e)) from e

    async def hset_many(self, name: str, mapping: Mapping[Field, Value]) -> None:
        """Set several fields of a hash in one command. No-op when empty."""
        if not mapping:
            return
        try:
            await self._redis.hset(name, mapping=dict(mapping))
        except RedisError as e:
            raise StoreError("HSET", str(e)) from e

    async def hget(self, name: str, key: Field) -> bytes | None:
        """Get one field of a hash, or None if absent."""
        try:
            return await self._redis.hget(name, key)
        except RedisError as e:
            raise StoreError("HGET", str(e)) from e

    async def hgetall(self, name: str) -> dict[bytes, bytes]:
        """Get every field of a hash (empty dict if the key is absent)."""
        try:
            return await self._redis.hgetall(name)
        except RedisError as e:
            raise StoreError("HGETALL", str(e)) from e

    async def hdel(self, name: str, key: Field) -> int:
        """Delete one field of a hash. Returns the number of fields removed."""
        try:
            return await self._redis.hdel(name, key)
        except RedisError as e:
            raise StoreError("HDEL", str(e)) from e

    async def hexists(self, name: str, key: Field) -> bool:
        try:
            return bool(await self._redis.hexists(name, key))
        except RedisError as e:
            raise StoreError("HEXISTS", str(e)) from e

    # -------------------------------------------------------------------------
    # Keys, strings and lists
    # -------------------------------------------------------------------------

    async def delete(self, name: str) -> int:
        """Delete a whole key. Returns 1 if it existed, 0 otherwise."""
        try:
            return await self._redis.delete(name)
        except RedisError as e:
            raise StoreError("DEL", str(e)) from e

    async def set_if_absent(self, name: str, value: Value, expiry: float) -> bool:
        """SET name value PX <expiry> NX.

        Returns:
            True if the key was written, False if it already existed.
        """
        try:
            result = await self._redis.set(
                name, value, px=int(expiry * 1000), nx=True
            )
        except RedisError as e:
            raise StoreError("SET", str(e)) from e
        return bool(result)

    async def rpush(self, name: str, value: Value) -> int:
        """Append to a list. Returns the list length after the push."""
        try:
            return await self._redis.rpush(name, value)
        except RedisError as e:
            raise StoreError("RPUSH", str(e)) from e
