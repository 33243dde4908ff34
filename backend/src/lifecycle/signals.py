"""Translate process termination signals into orchestrator shutdown calls."""

import asyncio
import logging
import signal
from typing import Any, Dict, Optional, Set

from backend.src.lifecycle.orchestrator import Orchestrator

logger = logging.getLogger(__name__)


class SignalGateway:
    """Routes SIGTERM/SIGINT to Orchestrator.shutdown().

    Handlers do nothing except schedule the shutdown coroutine; the
    at-most-once guarantee lives in the orchestrator.
    """

    SIGNALS = (signal.SIGTERM, signal.SIGINT)

    def __init__(self, orchestrator: Orchestrator) -> None:
        self.orchestrator = orchestrator
        self._loop: Optional[asyncio.AbstractEventLoop] = None
        self._tasks: Set["asyncio.Task[None]"] = set()
        self._previous: Dict[signal.Signals, Any] = {}

    def register(self) -> None:
        """Install handlers on the running event loop."""
        self._loop = asyncio.get_running_loop()
        for sig in self.SIGNALS:
            try:
                self._loop.add_signal_handler(sig, self._handle, sig)
            except NotImplementedError:
                # Event loops without add_signal_handler (Windows)
                self._previous[sig] = signal.signal(sig, self._handle_threadsafe)
            logger.debug(f"Registered handler for {sig.name}")

    def unregister(self) -> None:
        """Restore default signal handling."""
        if self._loop is None:
            return
        for sig in self.SIGNALS:
            if sig in self._previous:
                signal.signal(sig, self._previous.pop(sig))
            else:
                self._loop.remove_signal_handler(sig)
        self._loop = None

    def _handle(self, sig: signal.Signals) -> None:
        task = asyncio.ensure_future(self.orchestrator.shutdown(sig.name))
        self._tasks.add(task)
        task.add_done_callback(self._tasks.discard)

    def _handle_threadsafe(self, signum: int, frame: Any) -> None:
        if self._loop is not None:
            self._loop.call_soon_threadsafe(self._handle, signal.Signals(signum))
