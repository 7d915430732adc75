"""Component wiring.

Builds the cache layer from one AppSettings value and one shared store, so
every component receives its configuration explicitly.

Usage:
    async with EntityStore.from_url(settings.redis_url) as store:
        components = build_components(settings, store)
        await components.identify.acquire(shard_id)
        await components.router.handle(shard_id, event)
"""

from __future__ import annotations

from dataclasses import dataclass

from gateway_cache.config.settings import AppSettings
from gateway_cache.gateway.cache import CacheSynchronizer
from gateway_cache.gateway.dispatch import EventDispatcher
from gateway_cache.gateway.identify_queue import IdentifyGate
from gateway_cache.gateway.router import EventRouter
from gateway_cache.gateway.shard_state import ShardHealthTracker
from gateway_cache.store.client import EntityStore


@dataclass
class GatewayComponents:
    """Everything a gateway process needs, sharing one store."""

    store: EntityStore
    identify: IdentifyGate
    cache: CacheSynchronizer
    shard_state: ShardHealthTracker
    router: EventRouter
    dispatcher: EventDispatcher | None = None


def build_components(settings: AppSettings, store: EntityStore) -> GatewayComponents:
    """Wire the cache layer components.

    Raises:
        ValueError: If ``client_id`` is not configured.
    """
    cache = CacheSynchronizer(store, own_user_id=settings.client_id)
    shard_state = ShardHealthTracker(store)
    dispatcher = (
        EventDispatcher(store, settings.dispatch_topics)
        if settings.dispatch_enabled
        else None
    )
    return GatewayComponents(
        store=store,
        identify=IdentifyGate(store, settings.identify),
        cache=cache,
        shard_state=shard_state,
        router=EventRouter(cache, shard_state, dispatcher),
        dispatcher=dispatcher,
    )
