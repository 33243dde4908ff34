"""Exception types for the service lifecycle.

Every error raised while bringing backing services up or down derives from
LifecycleError so the process entry can treat them uniformly. Initialization
failures are fatal to the process; teardown failures are only ever logged.
"""

from typing import Optional


class LifecycleError(Exception):
    """Base class for all lifecycle errors."""

    default_message = "Service lifecycle error"

    def __init__(
        self,
        message: Optional[str] = None,
        handle_name: Optional[str] = None,
    ):
        """Initialize the lifecycle error.

        Args:
            message: Custom error message (uses default_message if None)
            handle_name: Name of the service handle the error belongs to, if any
        """
        self.message = message or self.default_message
        self.handle_name = handle_name
        super().__init__(self.message)

    def __str__(self) -> str:
        if self.handle_name:
            return f"[{self.handle_name}] {self.message}"
        return self.message


class InitializationError(LifecycleError):
    """A handle could not be brought to the ready state."""

    default_message = "Service initialization failed"


class ConfigurationMissingError(InitializationError):
    """A configuration key has no remote value, no environment value and no default."""

    default_message = "Required configuration value is missing"


class DependencyUnreachableError(InitializationError):
    """A remote store, storage backend or cache could not be reached or rejected our credentials."""

    default_message = "Backing dependency is unreachable"


class ProvisioningFailedError(InitializationError):
    """The idempotent provisioning check of a handle failed."""

    default_message = "Provisioning check failed"


class AlreadyInitializingError(LifecycleError):
    """initialize() was called on a handle that is not uninitialized."""

    default_message = "Service handle is already initializing"


class DependencyNotReadyError(LifecycleError):
    """A handle or its client was used before its dependencies were ready."""

    default_message = "Dependency is not ready"


class InvalidDependencyGraphError(LifecycleError):
    """The handle dependency graph has a cycle, a duplicate or an unknown name."""

    default_message = "Invalid service dependency graph"


class ListenerBindError(LifecycleError):
    """The HTTP listener could not bind its address."""

    default_message = "Failed to bind the HTTP listener"


class StartupInterruptedError(LifecycleError):
    """Startup stopped early because shutdown was requested while it ran."""

    default_message = "Startup interrupted by shutdown request"


class TeardownError(LifecycleError):
    """Releasing a handle's resources failed. Never fatal."""

    default_message = "Service teardown failed"
