"""Unit tests for the CacheHandle and the MemoryCache."""

import asyncio
import time
import unittest
from typing import List

from backend.src.lifecycle import ConfigurationMissingError, HandleState
from backend.src.services.cache import CacheHandle, MemoryCache
from backend.src.services.config import ConfigurationProvider
from backend.tests.fakes import SlowSecretStore


class FakeClock:
    def __init__(self) -> None:
        self.now = 1000.0

    def __call__(self) -> float:
        return self.now


class TestMemoryCache(unittest.TestCase):
    """Test cases for TTL handling and limits."""

    def setUp(self) -> None:
        self.clock = FakeClock()
        self.cache = MemoryCache(default_ttl=60, max_keys=3, clock=self.clock)

    def test_entries_expire_after_ttl(self) -> None:
        self.cache.set("session:1", {"user": "a"})
        self.cache.set("session:2", {"user": "b"}, ttl=5)

        self.clock.now += 10
        self.assertIsNone(self.cache.get("session:2"))
        self.assertEqual(self.cache.get("session:1"), {"user": "a"})

        self.clock.now += 60
        self.assertFalse(self.cache.has("session:1"))

    def test_zero_ttl_never_expires(self) -> None:
        self.cache.set("pinned", 1, ttl=0)
        self.clock.now += 10**6
        self.assertEqual(self.cache.get("pinned"), 1)

    def test_evict_expired_removes_only_expired(self) -> None:
        self.cache.set("short", 1, ttl=1)
        self.cache.set("long", 2, ttl=100)
        self.clock.now += 2

        self.assertEqual(self.cache.evict_expired(), 1)
        self.assertEqual(self.cache.stats().keys, 1)

    def test_max_keys_rejects_new_keys_only(self) -> None:
        for key in ("a", "b", "c"):
            self.assertTrue(self.cache.set(key, key))

        self.assertFalse(self.cache.set("d", "d"))
        self.assertTrue(self.cache.set("a", "updated"))
        self.assertEqual(self.cache.get("a"), "updated")

    def test_stats_count_hits_and_misses(self) -> None:
        self.cache.set("a", 1)
        self.cache.get("a")
        self.cache.get("missing")

        stats = self.cache.stats()
        self.assertEqual((stats.hits, stats.misses, stats.keys), (1, 1, 1))


class TestCacheHandle(unittest.IsolatedAsyncioTestCase):
    """Test cases for cache initialization and eviction timer cleanup."""

    async def make_config(self, **environ: str) -> ConfigurationProvider:
        config = ConfigurationProvider(environ=environ)
        await config.initialize()
        return config

    async def test_initialize_reads_config_and_starts_eviction(self) -> None:
        config = await self.make_config(
            CACHE_TTL_SECONDS="30", CACHE_CHECK_PERIOD_SECONDS="5", CACHE_MAX_KEYS="50"
        )
        handle = CacheHandle(config)

        await handle.initialize()

        self.assertEqual(handle.state, HandleState.READY)
        self.assertEqual(handle.client.default_ttl, 30.0)
        self.assertEqual(handle.client.max_keys, 50)
        self.assertFalse(handle.client.has("__cache_probe__"))
        self.assertIsNotNone(handle.eviction_task)
        await handle.teardown()

    async def test_teardown_cancels_eviction_task_and_clears(self) -> None:
        handle = CacheHandle(await self.make_config(CACHE_CHECK_PERIOD_SECONDS="60"))
        await handle.initialize()
        cache = handle.client
        cache.set("k", "v")
        task = handle.eviction_task
        assert task is not None

        self.assertIsNone(await handle.teardown())

        self.assertTrue(task.cancelled())
        self.assertIsNone(handle.eviction_task)
        self.assertEqual(cache.stats().keys, 0)
        self.assertEqual(handle.state, HandleState.STOPPED)

    async def test_eviction_runs_periodically(self) -> None:
        handle = CacheHandle(await self.make_config(CACHE_CHECK_PERIOD_SECONDS="0.01"))
        await handle.initialize()
        handle.client.set("short", 1, ttl=0.01)

        for _ in range(100):
            await asyncio.sleep(0.01)
            if handle.client.stats().keys == 0:
                break

        self.assertEqual(handle.client.stats().evictions, 1)
        await handle.teardown()

    async def test_zero_check_period_disables_timer(self) -> None:
        handle = CacheHandle(await self.make_config(CACHE_CHECK_PERIOD_SECONDS="0"))
        await handle.initialize()

        self.assertIsNone(handle.eviction_task)
        await handle.teardown()

    async def test_slow_config_lookups_do_not_block_the_loop(self) -> None:
        config = ConfigurationProvider(
            secret_store_factory=lambda: SlowSecretStore(0.2),
            environ={"CACHE_CHECK_PERIOD_SECONDS": "0"},
        )
        await config.initialize()
        handle = CacheHandle(config)
        ticks: List[float] = []

        async def tick() -> None:
            while True:
                ticks.append(time.monotonic())
                await asyncio.sleep(0.01)

        ticker = asyncio.create_task(tick())
        try:
            await handle.initialize()
        finally:
            ticker.cancel()

        gaps = [later - earlier for earlier, later in zip(ticks, ticks[1:])]
        self.assertGreater(len(ticks), 10)
        self.assertLess(max(gaps), 0.15)
        await handle.teardown()

    async def test_invalid_config_fails_initialize(self) -> None:
        handle = CacheHandle(await self.make_config(CACHE_TTL_SECONDS="ten minutes"))

        with self.assertRaises(ConfigurationMissingError):
            await handle.initialize()
        self.assertEqual(handle.state, HandleState.FAILED)


if __name__ == "__main__":
    unittest.main()
