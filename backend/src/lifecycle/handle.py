"""Uniform lifecycle wrapper around one backing dependency.

A ServiceHandle owns exactly one resolved client (a connection, a store, a
cache...). Concrete handles implement the `_initialize` and `_teardown` hooks;
the base class enforces the state machine:

    UNINITIALIZED -> INITIALIZING -> READY | FAILED
    READY -> TEARING_DOWN -> STOPPED
"""

import logging
from abc import ABC, abstractmethod
from enum import Enum
from typing import Any, Generic, List, Optional, Sequence, TypeVar

from backend.src.lifecycle.errors import (
    AlreadyInitializingError,
    DependencyNotReadyError,
    InitializationError,
    TeardownError,
)

logger = logging.getLogger(__name__)

ClientT = TypeVar("ClientT")


class HandleState(str, Enum):
    """Lifecycle state of a single service handle."""

    UNINITIALIZED = "Uninitialized"
    INITIALIZING = "Initializing"
    READY = "Ready"
    FAILED = "Failed"
    TEARING_DOWN = "TearingDown"
    STOPPED = "Stopped"


class ServiceHandle(ABC, Generic[ClientT]):
    """Base class for lifecycle-managed backing services.

    Attributes:
        name: Stable identifier used in logs and error messages
        state: Current lifecycle state
    """

    def __init__(
        self, name: str, dependencies: Sequence["ServiceHandle[Any]"] = ()
    ) -> None:
        """Initialize the handle.

        Args:
            name: Stable identifier for this handle
            dependencies: Handles that must be ready before this one initializes
        """
        self.name = name
        self.state = HandleState.UNINITIALIZED
        self._dependencies: List[ServiceHandle[Any]] = list(dependencies)
        self._client: Optional[ClientT] = None

    def __repr__(self) -> str:
        return f"{self.__class__.__name__}(name={self.name!r}, state={self.state.value})"

    @property
    def depends_on(self) -> List[str]:
        """Names of the handles this handle depends on, in declaration order."""
        return [dependency.name for dependency in self._dependencies]

    @property
    def client(self) -> ClientT:
        """Resolved client object; only valid while the handle is ready.

        Raises:
            DependencyNotReadyError: If the handle is not ready
        """
        if self.state is not HandleState.READY or self._client is None:
            raise DependencyNotReadyError(
                f"client requested while handle is {self.state.value}",
                handle_name=self.name,
            )
        return self._client

    def is_ready(self) -> bool:
        return self.state is HandleState.READY

    async def initialize(self) -> None:
        """Bring the handle to the ready state.

        Raises:
            AlreadyInitializingError: If the handle is not uninitialized
            DependencyNotReadyError: If a dependency is not ready
            InitializationError: If the underlying resource could not be set up
        """
        if self.state is not HandleState.UNINITIALIZED:
            raise AlreadyInitializingError(
                f"initialize() called while handle is {self.state.value}",
                handle_name=self.name,
            )

        not_ready = [dep.name for dep in self._dependencies if not dep.is_ready()]
        if not_ready:
            raise DependencyNotReadyError(
                f"dependencies not ready: {', '.join(not_ready)}",
                handle_name=self.name,
            )

        self.state = HandleState.INITIALIZING
        logger.info(f"Initializing {self.name}")
        try:
            client = await self._initialize()
        except InitializationError as e:
            self.state = HandleState.FAILED
            if e.handle_name is None:
                e.handle_name = self.name
            logger.error(f"{self.name} failed to initialize: {e.message}")
            raise
        except Exception as e:
            self.state = HandleState.FAILED
            logger.error(f"{self.name} failed to initialize: {e}")
            raise InitializationError(str(e), handle_name=self.name) from e

        self._client = client
        self.state = HandleState.READY
        logger.info(f"{self.name} ready")

    async def teardown(self) -> Optional[TeardownError]:
        """Release the handle's resources.

        No-op for handles that never became ready or are already stopped. A
        ready handle always ends up stopped, even when the release step fails.

        Returns:
            None on success, otherwise the captured TeardownError
        """
        if self.state is not HandleState.READY:
            logger.debug(f"Teardown of {self.name} skipped (state={self.state.value})")
            return None

        self.state = HandleState.TEARING_DOWN
        logger.info(f"Tearing down {self.name}")
        client = self._client
        self._client = None
        error: Optional[TeardownError] = None
        try:
            await self._teardown(client)
        except Exception as e:
            error = TeardownError(str(e), handle_name=self.name)
            error.__cause__ = e
            logger.error(f"Teardown of {self.name} failed: {e}")
        finally:
            self.state = HandleState.STOPPED

        if error is None:
            logger.info(f"{self.name} stopped")
        return error

    @abstractmethod
    async def _initialize(self) -> ClientT:
        """Create the underlying client and run its provisioning check."""

    @abstractmethod
    async def _teardown(self, client: Optional[ClientT]) -> None:
        """Release everything held by the client."""
