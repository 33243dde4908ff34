"""Configuration provider backed by a remote secret store and the environment.

Lookup order for every key:
1. Remote secret store (when configured and reachable)
2. Local environment
3. Caller-supplied default

Resolved values are cached for the lifetime of the process.
"""

import asyncio
import logging
import os
import threading
from typing import Any, Callable, Dict, Mapping, Optional

import requests

from backend.src.lifecycle.errors import ConfigurationMissingError
from backend.src.lifecycle.handle import ServiceHandle
from backend.src.services.config.secret_store import SecretStoreClient, secret_name_for

logger = logging.getLogger(__name__)

_MISSING: Any = object()

_TRUE_VALUES = {"1", "true", "yes", "on"}
_FALSE_VALUES = {"0", "false", "no", "off"}


class ResolvedConfiguration:
    """Thread-safe key resolver handed out by a ready ConfigurationProvider.

    Attributes:
        secret_store: Remote store client, or None when running on environment only
    """

    def __init__(
        self,
        environ: Mapping[str, str],
        secret_store: Optional[SecretStoreClient] = None,
    ) -> None:
        self.secret_store = secret_store
        self._environ = environ
        self._cache: Dict[str, str] = {}
        self._lock = threading.Lock()

    def get(self, key: str, default: Any = _MISSING) -> Any:
        """Resolve a configuration value.

        Args:
            key: Configuration key, e.g. "STORAGE_ROOT"
            default: Value returned when no source has the key

        Returns:
            The resolved string value, or the default

        Raises:
            ConfigurationMissingError: If no source has the key and no default was given
        """
        with self._lock:
            if key in self._cache:
                return self._cache[key]

        value = self._fetch_remote(key)
        source = "secret store"
        if value is None:
            value = self._environ.get(key)
            source = "environment"

        if value is None:
            if default is _MISSING:
                raise ConfigurationMissingError(
                    f"'{key}' not found in secret store or environment",
                    handle_name="config",
                )
            return default

        logger.debug(f"Resolved {key} from {source}")
        with self._lock:
            return self._cache.setdefault(key, value)

    def get_int(self, key: str, default: Any = _MISSING) -> int:
        return self._convert(key, default, int)

    def get_float(self, key: str, default: Any = _MISSING) -> float:
        return self._convert(key, default, float)

    def get_bool(self, key: str, default: Any = _MISSING) -> bool:
        def parse(raw: str) -> bool:
            lowered = raw.strip().lower()
            if lowered in _TRUE_VALUES:
                return True
            if lowered in _FALSE_VALUES:
                return False
            raise ValueError(f"not a boolean: {raw!r}")

        return self._convert(key, default, parse)

    def _convert(self, key: str, default: Any, parse: Callable[[str], Any]) -> Any:
        value = self.get(key, default)
        if not isinstance(value, str):
            return value
        try:
            return parse(value)
        except ValueError as e:
            raise ConfigurationMissingError(
                f"'{key}' has an invalid value: {e}", handle_name="config"
            ) from e

    def _fetch_remote(self, key: str) -> Optional[str]:
        if self.secret_store is None:
            return None
        try:
            return self.secret_store.get_secret(secret_name_for(key))
        except requests.exceptions.RequestException as e:
            logger.warning(f"Secret store lookup for {key} failed, using environment: {e}")
            return None

    def close(self) -> None:
        with self._lock:
            self._cache.clear()
        if self.secret_store is not None:
            self.secret_store.close()


class ConfigurationProvider(ServiceHandle[ResolvedConfiguration]):
    """Service handle resolving runtime configuration for the other handles."""

    def __init__(
        self,
        secret_store_factory: Optional[Callable[[], SecretStoreClient]] = None,
        environ: Optional[Mapping[str, str]] = None,
        name: str = "config",
    ) -> None:
        """Initialize the provider.

        Args:
            secret_store_factory: Builds the remote store client; None means environment only
            environ: Environment mapping to fall back on (defaults to os.environ)
            name: Handle name
        """
        super().__init__(name)
        self._secret_store_factory = secret_store_factory
        self._environ = os.environ if environ is None else environ

    async def _initialize(self) -> ResolvedConfiguration:
        if self._secret_store_factory is None:
            logger.info("No secret store configured, resolving configuration from environment")
            return ResolvedConfiguration(self._environ)

        secret_store = self._secret_store_factory()
        try:
            await asyncio.to_thread(secret_store.ping)
        except Exception:
            secret_store.close()
            raise
        return ResolvedConfiguration(self._environ, secret_store)

    async def _teardown(self, client: Optional[ResolvedConfiguration]) -> None:
        if client is not None:
            client.close()

    def get(self, key: str, default: Any = _MISSING) -> Any:
        return self.client.get(key, default)

    def get_int(self, key: str, default: Any = _MISSING) -> int:
        return self.client.get_int(key, default)

    def get_float(self, key: str, default: Any = _MISSING) -> float:
        return self.client.get_float(key, default)

    def get_bool(self, key: str, default: Any = _MISSING) -> bool:
        return self.client.get_bool(key, default)
