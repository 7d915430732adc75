"""Shard planning for a multi-process gateway fleet.

Each gateway process (node) runs a contiguous block of ``shards_per_node``
shards: node 0 runs shards 0-15, node 1 runs 16-31, and so on. A fleet with
fewer shards than one block runs everything in a single process.
"""

from __future__ import annotations

from dataclasses import dataclass

from gateway_cache.config.settings import AppSettings
from gateway_cache.gateway.client import DiscordClient
from gateway_cache.gateway.logger import logger


@dataclass(frozen=True)
class GatewayPlan:
    """What this node runs and how fast the fleet may identify."""

    node_id: int
    first_shard: int
    last_shard: int
    total_shards: int
    concurrency: int

    @property
    def shard_ids(self) -> range:
        return range(self.first_shard, self.last_shard + 1)


def shard_range(node_id: int, total_shards: int, shards_per_node: int = 16) -> tuple[int, int]:
    """Inclusive ``(first, last)`` shard ids run by ``node_id``.

    Raises:
        ValueError: If the node has no shards to run.
    """
    if total_shards < 1:
        raise ValueError("total_shards must be at least 1")

    if total_shards < shards_per_node:
        logger.warning(
            f"Fewer than {shards_per_node} shards, assuming a single gateway process"
        )
        return 0, total_shards - 1

    first = node_id * shards_per_node
    if first >= total_shards:
        raise ValueError(
            f"Node {node_id} is out of range for {total_shards} shards "
            f"({shards_per_node} per node)"
        )
    last = min((node_id + 1) * shards_per_node, total_shards) - 1
    return first, last


async def resolve_gateway_plan(
    settings: AppSettings, client: DiscordClient | None = None
) -> GatewayPlan:
    """Build this node's plan, asking Discord for anything not configured.

    ``client`` must already be entered; it is only used when
    ``total_shards`` is unset.
    """
    total_shards = settings.total_shards
    concurrency = settings.identify.concurrency

    if total_shards is None:
        if client is None:
            raise ValueError("total_shards is not configured and no API client was given")
        info = await client.get_gateway_bot()
        logger.info(
            f"Gateway recommends {info.shards} shards, max_concurrency {info.max_concurrency}"
        )
        total_shards = info.shards
        concurrency = info.max_concurrency

    first, last = shard_range(settings.node_id, total_shards, settings.shards_per_node)
    return GatewayPlan(
        node_id=settings.node_id,
        first_shard=first,
        last_shard=last,
        total_shards=total_shards,
        concurrency=concurrency,
    )
