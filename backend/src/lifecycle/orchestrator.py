"""Startup and shutdown orchestration for the backing services.

The Orchestrator owns every ServiceHandle of the process. It initializes them
one at a time in dependency order, binds the HTTP listener once all of them are
ready and, on shutdown, unbinds the listener and tears the handles down in
reverse order. Shutdown runs at most once per process, guarded by a latch.
"""

import asyncio
import logging
import threading
from enum import Enum, IntEnum
from typing import Any, Callable, Dict, List, Optional, Protocol, Sequence

from backend.src.lifecycle.errors import (
    DependencyNotReadyError,
    InvalidDependencyGraphError,
    LifecycleError,
    ListenerBindError,
    StartupInterruptedError,
    TeardownError,
)
from backend.src.lifecycle.handle import HandleState, ServiceHandle

logger = logging.getLogger(__name__)

STARTUP_FAILURE_REASON = "startup-failure"


class Phase(str, Enum):
    """Lifecycle phase of the whole process."""

    NOT_STARTED = "NotStarted"
    STARTING = "Starting"
    SERVING = "Serving"
    STOPPING = "Stopping"
    STOPPED = "Stopped"


class ExitCode(IntEnum):
    """Process exit status decided by the shutdown path."""

    OK = 0
    STARTUP_FAILED = 1
    TEARDOWN_FAILED = 2


class Listener(Protocol):
    @property
    def is_bound(self) -> bool: ...

    async def bind(self) -> None: ...

    async def unbind(self, grace_period: float) -> bool: ...


class ShutdownLatch:
    """One-shot gate; only the first trip() call wins."""

    def __init__(self) -> None:
        self._lock = threading.Lock()
        self._tripped = False
        self.reason: Optional[str] = None

    @property
    def tripped(self) -> bool:
        return self._tripped

    def trip(self, reason: str) -> bool:
        """Trip the latch.

        Args:
            reason: Why shutdown was requested (signal name, startup-failure...)

        Returns:
            True for the caller that tripped it, False for everyone after
        """
        with self._lock:
            if self._tripped:
                return False
            self._tripped = True
            self.reason = reason
            return True


def sort_handles(handles: Sequence[ServiceHandle[Any]]) -> List[ServiceHandle[Any]]:
    """Topologically sort handles by their dependencies.

    Handles without an ordering constraint between them keep the order in
    which they were given.

    Args:
        handles: Handles to sort

    Returns:
        Handles ordered so that every dependency precedes its dependents

    Raises:
        InvalidDependencyGraphError: On duplicate names, unknown dependencies or cycles
    """
    by_name: Dict[str, ServiceHandle[Any]] = {}
    for handle in handles:
        if handle.name in by_name:
            raise InvalidDependencyGraphError(f"duplicate handle name '{handle.name}'")
        by_name[handle.name] = handle

    for handle in handles:
        unknown = [name for name in handle.depends_on if name not in by_name]
        if unknown:
            raise InvalidDependencyGraphError(
                f"'{handle.name}' depends on unknown handle(s): {', '.join(unknown)}"
            )

    ordered: List[ServiceHandle[Any]] = []
    placed: set = set()
    remaining = list(handles)
    while remaining:
        # First handle (in given order) whose dependencies are all placed
        for handle in remaining:
            if all(name in placed for name in handle.depends_on):
                ordered.append(handle)
                placed.add(handle.name)
                remaining.remove(handle)
                break
        else:
            cycle = ", ".join(sorted(handle.name for handle in remaining))
            raise InvalidDependencyGraphError(f"dependency cycle among: {cycle}")
    return ordered


class Orchestrator:
    """Drives startup and shutdown of the process's service handles.

    Attributes:
        handles: Handles in dependency order
        phase: Current lifecycle phase
        grace_period: Seconds in-flight requests get to finish on shutdown
    """

    def __init__(
        self,
        handles: Sequence[ServiceHandle[Any]],
        listener: Optional[Listener] = None,
        grace_period: float = 10.0,
        phase_publisher: Optional[Callable[["Orchestrator"], None]] = None,
    ) -> None:
        """Initialize the orchestrator.

        Args:
            handles: Handles to manage, in any order consistent with their dependencies
            listener: HTTP listener to bind once all handles are ready
            grace_period: Seconds in-flight requests get to finish on shutdown
            phase_publisher: Optional callback invoked on every phase change

        Raises:
            InvalidDependencyGraphError: If the dependency graph is invalid
        """
        self.handles: List[ServiceHandle[Any]] = sort_handles(handles)
        self.phase = Phase.NOT_STARTED
        self.grace_period = grace_period
        self._listener = listener
        self._phase_publisher = phase_publisher
        self._latch = ShutdownLatch()
        self._startup_error: Optional[LifecycleError] = None
        self._startup_settled = asyncio.Event()
        self._stopped = asyncio.Event()
        self._teardown_errors: List[TeardownError] = []
        self.exit_code: Optional[ExitCode] = None

        logger.info(
            f"Service startup order: {' -> '.join(handle.name for handle in self.handles)}"
        )

    # ------------------------------------------------------------------
    # Registry
    # ------------------------------------------------------------------
    def get(self, name: str) -> ServiceHandle[Any]:
        """Look up a handle by name.

        Raises:
            KeyError: If no handle has that name
        """
        for handle in self.handles:
            if handle.name == name:
                return handle
        raise KeyError(name)

    def client(self, name: str) -> Any:
        """Resolved client of a ready handle.

        Raises:
            KeyError: If no handle has that name
            DependencyNotReadyError: If the handle is not ready
        """
        return self.get(name).client

    def attach_listener(self, listener: Listener) -> None:
        """Set the listener; only allowed before startup."""
        if self.phase is not Phase.NOT_STARTED:
            raise LifecycleError(f"cannot attach a listener in phase {self.phase.value}")
        self._listener = listener

    def snapshot(self) -> Dict[str, Any]:
        """Read-only view of the lifecycle for health reporting."""
        return {
            "phase": self.phase.value,
            "handles": {handle.name: handle.state.value for handle in self.handles},
        }

    @property
    def teardown_errors(self) -> List[TeardownError]:
        return list(self._teardown_errors)

    # ------------------------------------------------------------------
    # Startup
    # ------------------------------------------------------------------
    async def startup(self) -> None:
        """Initialize every handle in order and bind the listener.

        Raises:
            InitializationError: First handle failure; ready handles are torn down
            ListenerBindError: If the listener could not bind
            StartupInterruptedError: If shutdown was requested while starting
            LifecycleError: If a startup is already running
        """
        if self.phase is Phase.STARTING:
            raise LifecycleError("startup already in progress")
        if self._startup_error is not None:
            raise self._startup_error
        if self._latch.tripped:
            self._startup_error = StartupInterruptedError(
                f"shutdown already requested ({self._latch.reason})"
            )
            raise self._startup_error
        if self.phase is not Phase.NOT_STARTED:
            logger.warning(f"startup() called in phase {self.phase.value}, ignoring")
            return

        self._set_phase(Phase.STARTING)
        try:
            for handle in self.handles:
                self._raise_if_shutdown_requested()
                self._check_dependencies(handle)
                await handle.initialize()

            self._raise_if_shutdown_requested()
            if self._listener is not None:
                await self._listener.bind()
            # A signal may have arrived while binding
            self._raise_if_shutdown_requested()
        except StartupInterruptedError as e:
            self._startup_error = e
            self._startup_settled.set()
            logger.info(f"Startup interrupted ({self._latch.reason})")
            await self._stopped.wait()
            raise
        except LifecycleError as e:
            self._startup_error = e
            self._startup_settled.set()
            logger.error(f"Startup failed: {e}")
            if self._latch.trip(STARTUP_FAILURE_REASON):
                await self._stop(ExitCode.STARTUP_FAILED)
            else:
                # A shutdown request owns the teardown; wait for it to finish
                await self._stopped.wait()
            raise

        self._set_phase(Phase.SERVING)
        self._startup_settled.set()
        logger.info("All services ready")

    def _raise_if_shutdown_requested(self) -> None:
        if self._latch.tripped:
            raise StartupInterruptedError(
                f"shutdown requested ({self._latch.reason}) during startup"
            )

    def _check_dependencies(self, handle: ServiceHandle[Any]) -> None:
        for name in handle.depends_on:
            dependency = self.get(name)
            if dependency.state is not HandleState.READY:
                raise DependencyNotReadyError(
                    f"dependency '{dependency.name}' is {dependency.state.value}",
                    handle_name=handle.name,
                )

    # ------------------------------------------------------------------
    # Shutdown
    # ------------------------------------------------------------------
    async def shutdown(self, reason: str) -> None:
        """Unbind the listener and tear down every ready handle, at most once.

        Later calls, whatever their reason, return immediately.

        Args:
            reason: Why shutdown was requested, typically the signal name
        """
        if not self._latch.trip(reason):
            logger.info(f"Shutdown already requested ({self._latch.reason}); ignoring {reason}")
            return

        logger.info(f"{reason} received, shutting down gracefully")
        if self.phase is Phase.STARTING:
            logger.info("Waiting for the in-progress initialization to settle")
            await self._startup_settled.wait()

        await self._stop(ExitCode.OK)

    async def wait_stopped(self) -> ExitCode:
        """Wait until shutdown has completed and return the exit code."""
        await self._stopped.wait()
        assert self.exit_code is not None
        return self.exit_code

    async def _stop(self, clean_exit_code: ExitCode) -> None:
        self._set_phase(Phase.STOPPING)
        errors: List[TeardownError] = []

        if self._listener is not None and self._listener.is_bound:
            try:
                await self._listener.unbind(self.grace_period)
            except Exception as e:
                logger.error(f"Listener unbind failed: {e}")
                error = TeardownError(str(e), handle_name="listener")
                error.__cause__ = e
                errors.append(error)

        for handle in reversed(self.handles):
            if handle.state is not HandleState.READY:
                continue
            error = await handle.teardown()
            if error is not None:
                errors.append(error)

        self._teardown_errors = errors
        if errors:
            logger.warning(f"Shutdown finished with {len(errors)} teardown error(s)")
            self.exit_code = (
                ExitCode.STARTUP_FAILED
                if clean_exit_code is ExitCode.STARTUP_FAILED
                else ExitCode.TEARDOWN_FAILED
            )
        else:
            self.exit_code = clean_exit_code

        self._set_phase(Phase.STOPPED)
        self._stopped.set()
        logger.info(f"Shutdown complete (exit code {int(self.exit_code)})")

    def _set_phase(self, phase: Phase) -> None:
        self.phase = phase
        logger.debug(f"Orchestrator phase -> {phase.value}")
        if self._phase_publisher is not None:
            self._phase_publisher(self)
