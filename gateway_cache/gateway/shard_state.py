"""Shard health tracking.

Keeps one ShardState record per shard in the ``pluralkit:shardstatus`` hash,
updated on every connectivity transition. Each update is a plain
read-modify-write with no compare-and-set: it assumes exactly one process
drives a given shard id at a time. Two writers for the same shard can lose
updates.
"""

from __future__ import annotations

from typing import Callable

from gateway_cache.gateway import events
from gateway_cache.gateway.logger import logger
from gateway_cache.store import keys
from gateway_cache.store.client import EntityStore
from gateway_cache.store.codec import decode, encode
from gateway_cache.store.models import ShardState
from gateway_cache.utils.time import unix_now


class ShardHealthTracker:
    """Updates shard health records from connectivity events."""

    def __init__(
        self,
        store: EntityStore,
        clock: Callable[[], int] = unix_now,
    ) -> None:
        self.store = store
        self._clock = clock

    async def handle_event(self, shard_id: int, event: events.DomainEvent) -> None:
        """Apply a connectivity event; every other event is ignored."""
        if isinstance(event, (events.ShardConnected, events.ShardResumed)):
            await self.ready_or_resumed(shard_id)
        elif isinstance(event, events.ShardDisconnected):
            await self.socket_closed(shard_id, event.code)
        elif isinstance(event, events.GatewayHeartbeat):
            await self.heartbeated(shard_id, event.latency_ms)

    async def get_shard(self, shard_id: int) -> ShardState:
        """Read a shard's record; a shard never seen gets a fresh default."""
        data = await self.store.hget(keys.SHARD_STATUS, shard_id)
        if data is None:
            return ShardState(shard_id=shard_id)
        state = decode(ShardState, data)
        # The hash field is authoritative for the id
        state.shard_id = shard_id
        return state

    async def save_shard(self, state: ShardState) -> None:
        await self.store.hset(keys.SHARD_STATUS, state.shard_id, encode(state))

    async def all_shards(self) -> list[ShardState]:
        """Every shard record in the store, ordered by shard id."""
        data = await self.store.hgetall(keys.SHARD_STATUS)
        states = [decode(ShardState, value) for value in data.values()]
        return sorted(states, key=lambda s: s.shard_id)

    async def ready_or_resumed(self, shard_id: int) -> ShardState:
        logger.shard_ready(shard_id)
        state = await self.get_shard(shard_id)
        state.up = True
        state.last_connection = self._clock()
        await self.save_shard(state)
        return state

    async def socket_closed(self, shard_id: int, code: int | None = None) -> ShardState:
        state = await self.get_shard(shard_id)
        state.up = False
        state.disconnection_count += 1
        logger.shard_closed(shard_id, code, state.disconnection_count)
        await self.save_shard(state)
        return state

    async def heartbeated(self, shard_id: int, latency_ms: int | None = None) -> ShardState:
        """A heartbeat means the shard is alive even without a reconnect event."""
        state = await self.get_shard(shard_id)
        state.up = True
        state.last_heartbeat = self._clock()
        if latency_ms is not None:
            state.latency = latency_ms
        await self.save_shard(state)
        return state
