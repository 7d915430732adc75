"""Event routing.

Feeds every ``(shard_id, event)`` from a gateway client into the cache
components. Per shard, events are handled strictly in delivery order; a
failing event is logged and skipped so one bad event never stops the stream.
"""

from __future__ import annotations

from dataclasses import dataclass, field
from typing import AsyncIterable

from gateway_cache.gateway import events
from gateway_cache.gateway.cache import CacheSynchronizer
from gateway_cache.gateway.dispatch import EventDispatcher
from gateway_cache.gateway.logger import logger
from gateway_cache.gateway.shard_state import ShardHealthTracker


@dataclass
class EventStats:
    """Counters for a routing run."""

    processed: int = 0
    failed: int = 0
    dispatched: int = 0
    failures_by_event: dict[str, int] = field(default_factory=dict)

    def record_failure(self, event_name: str) -> None:
        self.failed += 1
        self.failures_by_event[event_name] = self.failures_by_event.get(event_name, 0) + 1


class EventRouter:
    """Routes gateway events to the cache synchronizer and shard tracker."""

    def __init__(
        self,
        cache: CacheSynchronizer,
        shard_state: ShardHealthTracker,
        dispatcher: EventDispatcher | None = None,
    ) -> None:
        self.cache = cache
        self.shard_state = shard_state
        self.dispatcher = dispatcher

    async def handle(self, shard_id: int, event: events.DomainEvent) -> bool:
        """Handle one event. Errors propagate to the caller.

        The bot's own membership is resolved before the event is applied to
        the cache.

        Returns:
            True if the event was also forwarded to a worker topic.
        """
        await self.cache.update_self_member(event)
        await self.shard_state.handle_event(shard_id, event)
        await self.cache.apply(event)

        if self.dispatcher is not None:
            return await self.dispatcher.dispatch(shard_id, event)
        return False

    async def run(
        self,
        stream: AsyncIterable[tuple[int, events.DomainEvent]],
        stats: EventStats | None = None,
    ) -> EventStats:
        """Consume an event stream until it ends, logging and skipping failures.

        Counts are added to ``stats`` when given, so failures recorded by the
        stream producer land in the same totals.
        """
        if stats is None:
            stats = EventStats()
        async for shard_id, event in stream:
            try:
                if await self.handle(shard_id, event):
                    stats.dispatched += 1
                stats.processed += 1
            except Exception as e:
                name = events.event_name(event)
                logger.event_failed(shard_id, name, e)
                stats.record_failure(name)
        return stats
