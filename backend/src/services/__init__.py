"""Services package for backend functionality.

This package contains the lifecycle-managed backing services of the API.
"""

from .cache import CacheHandle, MemoryCache
from .config import ConfigurationProvider, HTTPSecretStoreClient
from .factory import (
    create_cache_handle,
    create_configuration_provider,
    create_orchestrator,
    create_storage_handle,
)
from .store import LocalBlobStore, StorageHandle

__all__ = [
    # Service handles
    "ConfigurationProvider",
    "StorageHandle",
    "CacheHandle",
    # Clients
    "HTTPSecretStoreClient",
    "LocalBlobStore",
    "MemoryCache",
    # Factory Functions
    "create_configuration_provider",
    "create_storage_handle",
    "create_cache_handle",
    "create_orchestrator",
]
