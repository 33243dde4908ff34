"""Service handle for durable object storage."""

import asyncio
import logging
from typing import Callable, Optional

from backend.conf.config import Config
from backend.src.lifecycle.errors import DependencyUnreachableError, ProvisioningFailedError
from backend.src.lifecycle.handle import ServiceHandle
from backend.src.services.config import ConfigurationProvider
from backend.src.services.store.blob_store import LocalBlobStore

logger = logging.getLogger(__name__)


class StorageHandle(ServiceHandle[LocalBlobStore]):
    """Brings up the blob store and makes sure the expected container exists.

    Attributes:
        container: Name of the container provisioned at startup (set on initialize)
    """

    def __init__(
        self,
        config: ConfigurationProvider,
        store_factory: Callable[[str], LocalBlobStore] = LocalBlobStore,
        name: str = "storage",
    ) -> None:
        """Initialize the storage handle.

        Args:
            config: Configuration provider this handle depends on
            store_factory: Builds the blob store from the resolved storage root
            name: Handle name
        """
        super().__init__(name, dependencies=[config])
        self._config = config
        self._store_factory = store_factory
        self.container: Optional[str] = None

    async def _initialize(self) -> LocalBlobStore:
        # Lookups may hit the remote secret store
        root = await asyncio.to_thread(self._config.get, "STORAGE_ROOT", Config.STORAGE_ROOT)
        container = await asyncio.to_thread(
            self._config.get, "STORAGE_CONTAINER", Config.STORAGE_CONTAINER
        )

        store = self._store_factory(root)
        try:
            await asyncio.to_thread(store.check_access)
        except OSError as e:
            raise DependencyUnreachableError(
                f"storage root {root} is not accessible: {e}"
            ) from e

        try:
            created = await asyncio.to_thread(store.ensure_container, container)
        except (OSError, ValueError) as e:
            raise ProvisioningFailedError(
                f"could not ensure container '{container}': {e}"
            ) from e

        if not created:
            logger.info(f"Storage container '{container}' already exists")
        self.container = container
        return store

    async def _teardown(self, client: Optional[LocalBlobStore]) -> None:
        if client is not None:
            client.close()
