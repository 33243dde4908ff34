"""Service handle for the cache layer."""

import asyncio
import logging
from contextlib import suppress
from typing import Optional

from backend.conf.config import Config
from backend.src.lifecycle.errors import ProvisioningFailedError
from backend.src.lifecycle.handle import ServiceHandle
from backend.src.services.cache.memory_cache import MemoryCache
from backend.src.services.config import ConfigurationProvider

logger = logging.getLogger(__name__)

_PROBE_KEY = "__cache_probe__"


class CacheHandle(ServiceHandle[MemoryCache]):
    """Owns the in-memory cache and its periodic eviction task."""

    def __init__(self, config: ConfigurationProvider, name: str = "cache") -> None:
        super().__init__(name, dependencies=[config])
        self._config = config
        self._eviction_task: Optional["asyncio.Task[None]"] = None

    @property
    def eviction_task(self) -> Optional["asyncio.Task[None]"]:
        return self._eviction_task

    async def _initialize(self) -> MemoryCache:
        # Lookups may hit the remote secret store
        ttl = await asyncio.to_thread(
            self._config.get_float, "CACHE_TTL_SECONDS", Config.CACHE_TTL_SECONDS
        )
        check_period = await asyncio.to_thread(
            self._config.get_float,
            "CACHE_CHECK_PERIOD_SECONDS",
            Config.CACHE_CHECK_PERIOD_SECONDS,
        )
        max_keys = await asyncio.to_thread(
            self._config.get_int, "CACHE_MAX_KEYS", Config.CACHE_MAX_KEYS
        )

        cache = MemoryCache(default_ttl=ttl, max_keys=max_keys)

        # Round trip through the cache before anyone depends on it
        if not cache.set(_PROBE_KEY, True, ttl=0) or cache.get(_PROBE_KEY) is not True:
            raise ProvisioningFailedError("cache probe round trip failed")
        cache.delete(_PROBE_KEY)

        if check_period > 0:
            self._eviction_task = asyncio.get_running_loop().create_task(
                self._evict_periodically(cache, check_period), name="cache-eviction"
            )
        logger.info(
            f"Cache configured (ttl={ttl}s, check_period={check_period}s, max_keys={max_keys})"
        )
        return cache

    async def _evict_periodically(self, cache: MemoryCache, period: float) -> None:
        while True:
            await asyncio.sleep(period)
            cache.evict_expired()

    async def _teardown(self, client: Optional[MemoryCache]) -> None:
        task = self._eviction_task
        self._eviction_task = None
        if task is not None:
            task.cancel()
            with suppress(asyncio.CancelledError):
                await task
        if client is not None:
            client.clear()
