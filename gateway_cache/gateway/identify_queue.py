"""Fleet-wide identify admission.

Discord only lets ``max_concurrency`` shards identify at once across the
whole bot, and each slot refills after a few seconds. Every shard is hashed
onto one of ``concurrency`` buckets (``shard_id % concurrency``); a shard may
identify once it wins ``SET <prefix>:<bucket> 1 PX <expiry> NX``. The marker's
own expiry throttles the next claim on that bucket, so there is no release
step. Correctness relies only on SET NX being atomic in Redis.
"""

from __future__ import annotations

import asyncio

from gateway_cache.config.settings import IdentifySettings
from gateway_cache.gateway.logger import logger
from gateway_cache.store import keys
from gateway_cache.store.client import EntityStore
from gateway_cache.store.errors import StoreError

# Marker value; only the key's presence matters
CLAIM_VALUE = "1"


class IdentifyGate:
    """Distributed identify queue shared by every gateway process."""

    def __init__(self, store: EntityStore, settings: IdentifySettings) -> None:
        self.store = store
        self.settings = settings

    def __repr__(self) -> str:
        return f"IdentifyGate(concurrency={self.settings.concurrency})"

    def bucket_for(self, shard_id: int) -> int:
        return shard_id % self.settings.concurrency

    def bucket_key(self, bucket: int) -> str:
        return keys.identify_bucket(bucket, self.settings.key_prefix)

    async def try_acquire(self, shard_id: int) -> bool:
        """Make one claim attempt for the shard's bucket.

        Returns:
            True if the bucket was claimed. Store errors are logged and
            reported as "not granted".
        """
        bucket = self.bucket_for(shard_id)
        try:
            return await self.store.set_if_absent(
                self.bucket_key(bucket), CLAIM_VALUE, self.settings.bucket_expiry
            )
        except StoreError as e:
            logger.allowance_error(shard_id, bucket, e)
            return False

    async def acquire(self, shard_id: int) -> None:
        """Wait until the shard may identify. Never raises for store errors.

        Polls every ``retry_interval`` seconds for as long as it takes.
        Cancelling the awaiting task stops polling.
        """
        bucket = self.bucket_for(shard_id)
        logger.waiting_for_allowance(shard_id, bucket)

        attempts = 0
        while True:
            attempts += 1
            if await self.try_acquire(shard_id):
                logger.allowance_granted(shard_id, bucket, attempts)
                return
            await asyncio.sleep(self.settings.retry_interval)

    async def request(self, shard_id: int, total_shards: int | None = None) -> None:
        """Identify-queue hook for gateway clients; ``total_shards`` is unused."""
        await self.acquire(shard_id)
