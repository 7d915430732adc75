"""Tests for gateway_cache.gateway.identify_queue."""

from __future__ import annotations

import asyncio
import logging
from unittest.mock import AsyncMock, patch

import pytest

from gateway_cache.config.settings import IdentifySettings
from gateway_cache.gateway.identify_queue import CLAIM_VALUE, IdentifyGate


def _make_gate(store, concurrency: int = 16, **overrides) -> IdentifyGate:
    settings = IdentifySettings(concurrency=concurrency, **overrides)
    return IdentifyGate(store, settings)


def _clock_sleep(fake_redis) -> AsyncMock:
    """asyncio.sleep replacement that moves the fake store's clock instead."""

    async def advance(seconds: float) -> None:
        fake_redis.advance(seconds)

    return AsyncMock(side_effect=advance)


class TestBuckets:
    def test_bucket_is_shard_modulo_concurrency(self, store) -> None:
        gate = _make_gate(store, concurrency=16)

        assert gate.bucket_for(5) == 5
        assert gate.bucket_for(21) == 5
        assert gate.bucket_for(16) == 0

    def test_single_bucket_without_concurrency(self, store) -> None:
        gate = _make_gate(store, concurrency=1)

        assert {gate.bucket_for(s) for s in range(50)} == {0}

    def test_bucket_key_uses_prefix(self, store) -> None:
        assert _make_gate(store).bucket_key(5) == "pluralkit:identify:5"
        assert _make_gate(store, key_prefix="fleet:identify").bucket_key(3) == "fleet:identify:3"


class TestTryAcquire:
    @pytest.mark.asyncio
    async def test_claims_with_expiry_and_nx(self, store, fake_redis) -> None:
        gate = _make_gate(store, bucket_expiry=6.0)

        assert await gate.try_acquire(5) is True

        command, args = fake_redis.commands[-1]
        assert command == "SET"
        assert args == ("pluralkit:identify:5", CLAIM_VALUE, None, 6000, True)

    @pytest.mark.asyncio
    async def test_second_claim_in_same_bucket_fails(self, store) -> None:
        gate = _make_gate(store)

        assert await gate.try_acquire(5) is True
        assert await gate.try_acquire(21) is False

    @pytest.mark.asyncio
    async def test_at_most_one_claim_per_bucket(self, store, fake_redis) -> None:
        gates = [_make_gate(store, concurrency=16) for _ in range(2)]

        results = await asyncio.gather(
            *(gates[shard % 2].try_acquire(shard) for shard in range(100))
        )

        granted = [shard for shard, ok in zip(range(100), results) if ok]
        assert len(granted) == 16
        assert sorted(gates[0].bucket_for(s) for s in granted) == list(range(16))
        assert all(fake_redis.exists(gates[0].bucket_key(b)) for b in range(16))

    @pytest.mark.asyncio
    async def test_claim_succeeds_after_expiry(self, store, fake_redis) -> None:
        gate = _make_gate(store, bucket_expiry=6.0)
        await gate.try_acquire(5)

        fake_redis.advance(5.9)
        assert await gate.try_acquire(21) is False
        fake_redis.advance(0.1)
        assert await gate.try_acquire(21) is True

    @pytest.mark.asyncio
    async def test_store_error_reports_not_granted(self, store, fake_redis, caplog) -> None:
        gate = _make_gate(store)
        fake_redis.failing.add("SET")

        with caplog.at_level(logging.ERROR):
            assert await gate.try_acquire(5) is False

        assert "Error getting identify allowance for shard 5" in caplog.text


class TestAcquire:
    @pytest.mark.asyncio
    async def test_free_bucket_does_not_wait(self, store, fake_redis) -> None:
        gate = _make_gate(store)
        sleep = _clock_sleep(fake_redis)

        with patch("gateway_cache.gateway.identify_queue.asyncio.sleep", sleep):
            for shard_id in range(16):
                await gate.acquire(shard_id)

        sleep.assert_not_awaited()

    @pytest.mark.asyncio
    async def test_shared_bucket_blocks_until_marker_expires(self, store, fake_redis) -> None:
        gate = _make_gate(store, concurrency=16, bucket_expiry=6.0, retry_interval=0.5)
        sleep = _clock_sleep(fake_redis)
        granted: list[tuple[int, float]] = []

        async def identify(shard_id: int) -> None:
            await gate.acquire(shard_id)
            granted.append((shard_id, fake_redis.now))

        with patch("gateway_cache.gateway.identify_queue.asyncio.sleep", sleep):
            await asyncio.gather(identify(5), identify(21))

        assert granted == [(5, 0.0), (21, 6.0)]
        assert sleep.await_count == 12
        sleep.assert_awaited_with(0.5)

    @pytest.mark.asyncio
    async def test_grants_in_one_bucket_are_spaced_by_expiry(self, store, fake_redis) -> None:
        gate = _make_gate(store, concurrency=16, bucket_expiry=6.0, retry_interval=0.5)
        sleep = _clock_sleep(fake_redis)
        times: list[float] = []

        with patch("gateway_cache.gateway.identify_queue.asyncio.sleep", sleep):
            for shard_id in (1, 17, 33, 49):
                await gate.acquire(shard_id)
                times.append(fake_redis.now)

        gaps = [b - a for a, b in zip(times, times[1:])]
        assert all(gap >= 6.0 for gap in gaps)

    @pytest.mark.asyncio
    async def test_store_errors_are_retried(self, store, fake_redis, caplog) -> None:
        gate = _make_gate(store, retry_interval=0.5)
        fake_redis.failing.add("SET")

        async def recover(seconds: float) -> None:
            fake_redis.advance(seconds)
            fake_redis.failing.clear()

        sleep = AsyncMock(side_effect=recover)
        with caplog.at_level(logging.INFO):
            with patch("gateway_cache.gateway.identify_queue.asyncio.sleep", sleep):
                await gate.acquire(3)

        assert sleep.await_count == 1
        assert "got identify allowance after 2 attempts" in caplog.text

    @pytest.mark.asyncio
    async def test_cancelling_stops_polling(self, store) -> None:
        gate = _make_gate(store, retry_interval=0.01)
        await gate.acquire(5)

        task = asyncio.create_task(gate.acquire(21))
        await asyncio.sleep(0.05)
        task.cancel()

        with pytest.raises(asyncio.CancelledError):
            await task

    @pytest.mark.asyncio
    async def test_request_delegates_to_acquire(self, store) -> None:
        gate = _make_gate(store)

        with patch.object(gate, "acquire", new_callable=AsyncMock) as acquire:
            await gate.request(7, total_shards=32)

        acquire.assert_awaited_once_with(7)
