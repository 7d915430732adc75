"""Command implementations for the gateway cache CLI.

Each command opens its own store from the settings, does its work and
closes the store again.
"""

from __future__ import annotations

import json
from pathlib import Path
from typing import AsyncIterator, Iterator

from gateway_cache.config.settings import AppSettings
from gateway_cache.core import build_components
from gateway_cache.gateway import events
from gateway_cache.gateway.client import DiscordClient
from gateway_cache.gateway.logger import logger
from gateway_cache.gateway.parser import parse_packet
from gateway_cache.gateway.router import EventStats
from gateway_cache.gateway.shard_state import ShardHealthTracker
from gateway_cache.gateway.shards import GatewayPlan, resolve_gateway_plan
from gateway_cache.store.client import EntityStore
from gateway_cache.store.errors import EventParseError
from gateway_cache.store.models import ShardState


def open_store(settings: AppSettings) -> EntityStore:
    return EntityStore.from_url(settings.redis_url, max_connections=settings.redis_pool_size)


async def show_status(settings: AppSettings) -> list[ShardState]:
    """Print the health of every shard known to the store."""
    async with open_store(settings) as store:
        shards = await ShardHealthTracker(store).all_shards()

    if not shards:
        logger.warning("No shard status recorded yet")
    else:
        logger.shard_table(shards)
        up = sum(1 for s in shards if s.up)
        logger.summary(Shards=len(shards), Up=up, Down=len(shards) - up)
    return shards


async def show_plan(settings: AppSettings) -> GatewayPlan:
    """Print the shards this node runs and the identify concurrency."""
    if settings.total_shards is None:
        async with DiscordClient(token=settings.token) as client:
            plan = await resolve_gateway_plan(settings, client)
    else:
        plan = await resolve_gateway_plan(settings)

    logger.summary(
        Node=plan.node_id,
        Shards=f"{plan.first_shard}-{plan.last_shard} of {plan.total_shards}",
        Concurrency=plan.concurrency,
    )
    return plan


# Event name recorded for lines that are not a usable gateway packet
INVALID_PACKET = "INVALID_PACKET"


def read_lines(path: str | Path) -> Iterator[tuple[int, str]]:
    """Yield ``(line_number, line)`` for every non-blank line in ``path``."""
    with open(path, "r", encoding="utf-8") as f:
        for line_number, line in enumerate(f, start=1):
            line = line.strip()
            if line:
                yield line_number, line


def decode_packet(line: str) -> tuple[int, dict]:
    """Decode one recorded packet into ``(shard_id, packet)``.

    Each line is a gateway packet with an extra ``shard`` field that defaults
    to 0.

    Raises:
        ValueError: If the line is not a JSON object or its shard id is not
            an integer
    """
    packet = json.loads(line)
    if not isinstance(packet, dict):
        raise ValueError(f"expected a JSON object, got {type(packet).__name__}")

    shard = packet.get("shard", 0)
    try:
        shard_id = int(shard)
    except (TypeError, ValueError):
        raise ValueError(f"invalid shard id {shard!r}") from None
    return shard_id, packet


async def iter_events(
    path: str | Path,
    stats: EventStats | None = None,
) -> AsyncIterator[tuple[int, events.DomainEvent]]:
    """Parse recorded packets, logging and skipping unusable ones.

    Skipped lines are counted as failures in ``stats`` when given.
    """
    for line_number, line in read_lines(path):
        try:
            shard_id, packet = decode_packet(line)
        except ValueError as e:
            logger.warning(f"Skipping line {line_number}: {e}")
            if stats is not None:
                stats.record_failure(INVALID_PACKET)
            continue

        try:
            event = parse_packet(packet)
        except EventParseError as e:
            logger.event_failed(shard_id, e.event_name, e)
            if stats is not None:
                stats.record_failure(e.event_name)
            continue

        yield shard_id, event


async def replay_file(settings: AppSettings, path: str | Path) -> EventStats:
    """Route every recorded event in ``path`` through the cache layer."""
    stats = EventStats()
    async with open_store(settings) as store:
        components = build_components(settings, store)
        await components.router.run(iter_events(path, stats), stats)

    logger.summary(
        Processed=stats.processed,
        Failed=stats.failed,
        Dispatched=stats.dispatched,
    )
    if not stats.failed:
        logger.success(f"Replayed {stats.processed} events from {path}")
    return stats
