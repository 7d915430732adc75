"""Shared fixtures for gateway-cache tests."""

from __future__ import annotations

from types import SimpleNamespace
from typing import Any, Callable

import pytest
from redis.exceptions import ConnectionError as RedisConnectionError

from gateway_cache.gateway.cache import CacheSynchronizer
from gateway_cache.gateway.shard_state import ShardHealthTracker
from gateway_cache.store.client import EntityStore

# The bot's own user id in every test payload
OWN_USER_ID = 466378653216014359


def _b(value: Any) -> bytes:
    """Encode keys and values the way redis-py does."""
    if isinstance(value, bytes):
        return value
    return str(value).encode("utf-8")


class FakeRedis:
    """In-memory stand-in for redis.asyncio.Redis.

    Implements only the commands EntityStore uses. Keys with an expiry
    disappear once ``now`` passes it; tests move time with ``advance()``.
    Every command is appended to ``commands`` so tests can assert on writes.
    Commands named in ``failing`` raise a redis ConnectionError.
    """

    def __init__(self) -> None:
        self.hashes: dict[bytes, dict[bytes, bytes]] = {}
        self.strings: dict[bytes, bytes] = {}
        self.lists: dict[bytes, list[bytes]] = {}
        self.expiry: dict[bytes, float] = {}
        self.now = 0.0
        self.commands: list[tuple[str, Any]] = []
        self.failing: set[str] = set()
        self.closed = False

    def advance(self, seconds: float) -> None:
        self.now += seconds

    def _call(self, command: str, *args: Any) -> None:
        self.commands.append((command, args))
        if command in self.failing:
            raise RedisConnectionError(f"{command} failed")

    def _expire(self) -> None:
        for key, deadline in list(self.expiry.items()):
            if deadline <= self.now:
                self.strings.pop(key, None)
                del self.expiry[key]

    def writes(self) -> list[str]:
        return [c for c, _ in self.commands if c in ("HSET", "HDEL", "DEL", "SET", "RPUSH")]

    async def ping(self) -> bool:
        self._call("PING")
        return True

    async def aclose(self) -> None:
        self.closed = True

    async def hset(
        self,
        name: str,
        key: Any = None,
        value: Any = None,
        mapping: dict | None = None,
    ) -> int:
        self._call("HSET", name, key, mapping)
        h = self.hashes.setdefault(_b(name), {})
        items = dict(mapping or {})
        if key is not None:
            items[key] = value
        added = 0
        for k, v in items.items():
            if _b(k) not in h:
                added += 1
            h[_b(k)] = _b(v)
        return added

    async def hget(self, name: str, key: Any) -> bytes | None:
        self._call("HGET", name, key)
        return self.hashes.get(_b(name), {}).get(_b(key))

    async def hgetall(self, name: str) -> dict[bytes, bytes]:
        self._call("HGETALL", name)
        return dict(self.hashes.get(_b(name), {}))

    async def hdel(self, name: str, *keys: Any) -> int:
        self._call("HDEL", name, keys)
        h = self.hashes.get(_b(name), {})
        removed = 0
        for k in keys:
            if h.pop(_b(k), None) is not None:
                removed += 1
        if not h:
            self.hashes.pop(_b(name), None)
        return removed

    async def hexists(self, name: str, key: Any) -> bool:
        self._call("HEXISTS", name, key)
        return _b(key) in self.hashes.get(_b(name), {})

    async def delete(self, *names: str) -> int:
        self._call("DEL", names)
        self._expire()
        removed = 0
        for name in names:
            for store in (self.hashes, self.strings, self.lists):
                if store.pop(_b(name), None) is not None:
                    removed += 1
        return removed

    async def set(
        self,
        name: str,
        value: Any,
        ex: int | None = None,
        px: int | None = None,
        nx: bool = False,
    ) -> bool | None:
        self._call("SET", name, value, ex, px, nx)
        self._expire()
        key = _b(name)
        if nx and key in self.strings:
            return None
        self.strings[key] = _b(value)
        if px is not None:
            self.expiry[key] = self.now + px / 1000
        elif ex is not None:
            self.expiry[key] = self.now + ex
        return True

    async def rpush(self, name: str, *values: Any) -> int:
        self._call("RPUSH", name, values)
        lst = self.lists.setdefault(_b(name), [])
        lst.extend(_b(v) for v in values)
        return len(lst)

    def exists(self, name: str) -> bool:
        """Synchronous helper for assertions."""
        self._expire()
        key = _b(name)
        return key in self.hashes or key in self.strings or key in self.lists

    def hash_fields(self, name: str) -> set[int]:
        """Synchronous helper: the integer fields of a hash."""
        return {int(k) for k in self.hashes.get(_b(name), {})}


# -----------------------------------------------------------------------------
# Store and components
# -----------------------------------------------------------------------------


@pytest.fixture
def fake_redis() -> FakeRedis:
    return FakeRedis()


@pytest.fixture
def store(fake_redis: FakeRedis) -> EntityStore:
    return EntityStore(fake_redis)  # type: ignore[arg-type]


@pytest.fixture
def cache(store: EntityStore) -> CacheSynchronizer:
    return CacheSynchronizer(store, own_user_id=OWN_USER_ID)


@pytest.fixture
def clock() -> list[int]:
    """Mutable wall clock: tests set clock[0] to move time."""
    return [1_700_000_000]


@pytest.fixture
def tracker(store: EntityStore, clock: list[int]) -> ShardHealthTracker:
    return ShardHealthTracker(store, clock=lambda: clock[0])


# -----------------------------------------------------------------------------
# Gateway payloads
# -----------------------------------------------------------------------------


def channel_payload(channel_id: int, name: str = "general", **extra: Any) -> dict:
    data = {"id": str(channel_id), "type": 0, "name": name, "position": 0}
    data.update(extra)
    return data


def role_payload(role_id: int, name: str = "role", permissions: int = 0, **extra: Any) -> dict:
    data = {
        "id": str(role_id),
        "name": name,
        "position": 1,
        "permissions": str(permissions),
        "mentionable": False,
    }
    data.update(extra)
    return data


def user_payload(user_id: int, username: str = "user", **extra: Any) -> dict:
    data = {"id": str(user_id), "username": username, "discriminator": "0", "avatar": None}
    data.update(extra)
    return data


def member_payload(user_id: int, roles: list[int] | None = None) -> dict:
    return {"user": user_payload(user_id), "roles": [str(r) for r in roles or []]}


@pytest.fixture
def make_guild_create() -> Callable[..., dict]:
    """Factory for GUILD_CREATE payloads that include the bot's member."""

    def make(
        guild_id: int = 100,
        channels: list[int] | None = None,
        roles: list[int] | None = None,
        threads: list[int] | None = None,
        self_roles: list[int] | None = None,
        include_self: bool = True,
        name: str = "Test Guild",
    ) -> dict:
        members = [member_payload(1234, [])]
        if include_self:
            members.append(member_payload(OWN_USER_ID, self_roles or []))
        return {
            "id": str(guild_id),
            "name": name,
            "owner_id": "1234",
            "premium_tier": 1,
            "channels": [channel_payload(c, f"channel-{c}") for c in channels or []],
            "threads": [
                channel_payload(t, f"thread-{t}", type=11, parent_id=str((channels or [t])[0]))
                for t in threads or []
            ],
            "roles": [role_payload(r, f"role-{r}") for r in roles or []],
            "members": members,
        }

    return make


@pytest.fixture
def payloads() -> SimpleNamespace:
    """Builders for individual gateway objects."""
    return SimpleNamespace(
        channel=channel_payload,
        role=role_payload,
        user=user_payload,
        member=member_payload,
    )


@pytest.fixture
def own_user_id() -> int:
    return OWN_USER_ID
