"""Service lifecycle package.

This package contains the primitives that bring the backing services of the
API up in dependency order and take them down again exactly once:
- ServiceHandle: lifecycle wrapper around one backing dependency
- Orchestrator: startup/shutdown state machine and listener ownership
- HTTPListener: WSGI listener with in-flight request draining
- SignalGateway: termination signals to orchestrator shutdown
"""

from .errors import (
    AlreadyInitializingError,
    ConfigurationMissingError,
    DependencyNotReadyError,
    DependencyUnreachableError,
    InitializationError,
    InvalidDependencyGraphError,
    LifecycleError,
    ListenerBindError,
    ProvisioningFailedError,
    StartupInterruptedError,
    TeardownError,
)
from .handle import HandleState, ServiceHandle
from .listener import HTTPListener, InFlightTracker
from .orchestrator import ExitCode, Orchestrator, Phase, ShutdownLatch, sort_handles
from .signals import SignalGateway

__all__ = [
    # Handles
    "HandleState",
    "ServiceHandle",
    # Orchestration
    "ExitCode",
    "Orchestrator",
    "Phase",
    "ShutdownLatch",
    "sort_handles",
    "HTTPListener",
    "InFlightTracker",
    "SignalGateway",
    # Errors
    "LifecycleError",
    "InitializationError",
    "ConfigurationMissingError",
    "DependencyUnreachableError",
    "ProvisioningFailedError",
    "AlreadyInitializingError",
    "DependencyNotReadyError",
    "InvalidDependencyGraphError",
    "ListenerBindError",
    "StartupInterruptedError",
    "TeardownError",
]
