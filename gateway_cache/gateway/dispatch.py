"""Forwarding of raw gateway events to worker services.

Selected dispatches are pushed onto Redis lists (``discord:evt:<topic>``) as
JSON gateway packets, where bot workers pop them with BLPOP.
"""

from __future__ import annotations

import json
import logging

from gateway_cache.gateway import events
from gateway_cache.store import keys
from gateway_cache.store.client import EntityStore

logger = logging.getLogger(__name__)


class EventDispatcher:
    """Pushes configured event kinds onto per-topic lists."""

    def __init__(self, store: EntityStore, topics: dict[str, str]) -> None:
        """
        Args:
            store: Shared store
            topics: Gateway event name -> topic, e.g. {"MESSAGE_CREATE": "command"}
        """
        self.store = store
        self.topics = topics

    def topic_for(self, event: events.DomainEvent) -> str | None:
        return self.topics.get(events.event_name(event))

    async def dispatch(self, shard_id: int, event: events.DomainEvent) -> bool:
        """Forward the event if its kind has a topic and its raw payload is known.

        Returns:
            True if the event was pushed.
        """
        topic = self.topic_for(event)
        if topic is None or event.raw is None:
            return False

        name = events.event_name(event)
        packet = {"op": 0, "d": event.raw, "s": shard_id, "t": name}
        logger.debug("dispatching %s from shard %d to %s", name, shard_id, topic)
        await self.store.rpush(
            keys.event_topic(topic), json.dumps(packet, separators=(",", ":"))
        )
        return True
