"""Cache services package."""

from .cache_handle import CacheHandle
from .memory_cache import CacheStats, MemoryCache

__all__ = ["CacheHandle", "CacheStats", "MemoryCache"]
