"""Service factory module for centralized service instantiation.

This module provides factory methods for creating the service handles and the
orchestrator that owns them, keeping service construction logic in one place.
Nothing else in the application constructs handles.
"""

import logging
from typing import Mapping, Optional

from backend.conf.config import Config
from backend.src.lifecycle import Orchestrator
from backend.src.services.cache import CacheHandle
from backend.src.services.config import ConfigurationProvider, HTTPSecretStoreClient
from backend.src.services.store import StorageHandle

logger = logging.getLogger(__name__)


def create_configuration_provider(
    environ: Optional[Mapping[str, str]] = None,
) -> ConfigurationProvider:
    """Create the configuration provider, with a remote store if one is configured.

    Args:
        environ: Environment mapping to fall back on (defaults to os.environ)

    Returns:
        Unstarted ConfigurationProvider
    """
    secret_store_url = Config.SECRET_STORE_URL
    if not secret_store_url:
        logger.info("SECRET_STORE_URL not set, configuration comes from the environment only")
        return ConfigurationProvider(environ=environ)

    def create_secret_store_client() -> HTTPSecretStoreClient:
        return HTTPSecretStoreClient(
            base_url=secret_store_url,
            token=Config.SECRET_STORE_TOKEN,
            timeout=Config.SECRET_STORE_TIMEOUT,
            max_retries=Config.SECRET_STORE_MAX_RETRIES,
        )

    logger.info(f"Using secret store at {secret_store_url}")
    return ConfigurationProvider(
        secret_store_factory=create_secret_store_client, environ=environ
    )


def create_storage_handle(config: ConfigurationProvider) -> StorageHandle:
    """Create the storage handle.

    Args:
        config: Configuration provider the storage handle depends on

    Returns:
        Unstarted StorageHandle
    """
    return StorageHandle(config)


def create_cache_handle(config: ConfigurationProvider) -> CacheHandle:
    """Create the cache handle.

    Args:
        config: Configuration provider the cache handle depends on

    Returns:
        Unstarted CacheHandle
    """
    return CacheHandle(config)


def create_orchestrator(
    grace_period: Optional[float] = None,
    environ: Optional[Mapping[str, str]] = None,
) -> Orchestrator:
    """Create the orchestrator with the config, storage and cache handles.

    The HTTP listener is attached later, once the Flask app exists.

    Args:
        grace_period: Seconds in-flight requests get on shutdown (defaults to Config)
        environ: Environment mapping for the configuration provider

    Returns:
        Orchestrator in the NotStarted phase
    """
    config = create_configuration_provider(environ)
    storage = create_storage_handle(config)
    cache = create_cache_handle(config)

    return Orchestrator(
        [config, storage, cache],
        grace_period=Config.SHUTDOWN_GRACE_PERIOD if grace_period is None else grace_period,
    )
