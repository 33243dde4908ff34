"""HTTP listener owned by the orchestrator.

Runs the Flask WSGI application on werkzeug's threaded server in a background
thread. Unbinding stops accepting connections immediately and then gives the
requests already accepted a bounded grace period to finish.
"""

import asyncio
import logging
import threading
from typing import Any, Callable, Iterable, Optional

from werkzeug.serving import BaseWSGIServer, make_server
from werkzeug.wsgi import ClosingIterator

from backend.src.lifecycle.errors import ListenerBindError

logger = logging.getLogger(__name__)

WSGIApp = Callable[[dict, Callable[..., Any]], Iterable[bytes]]


class InFlightTracker:
    """WSGI middleware counting requests that have not finished yet.

    A request counts as finished once its response iterable is closed, so
    streamed responses are tracked until the last chunk is sent.
    """

    def __init__(self, app: WSGIApp) -> None:
        self.app = app
        self._count = 0
        self._condition = threading.Condition()

    @property
    def in_flight(self) -> int:
        with self._condition:
            return self._count

    def __call__(self, environ: dict, start_response: Callable[..., Any]) -> Iterable[bytes]:
        with self._condition:
            self._count += 1
        try:
            response = self.app(environ, start_response)
        except BaseException:
            self._release()
            raise
        return ClosingIterator(response, [self._release])

    def _release(self) -> None:
        with self._condition:
            self._count -= 1
            if self._count == 0:
                self._condition.notify_all()

    def wait_idle(self, timeout: float) -> bool:
        """Block until no request is in flight.

        Args:
            timeout: Maximum number of seconds to wait

        Returns:
            True if all requests finished, False if the timeout expired first
        """
        with self._condition:
            return self._condition.wait_for(lambda: self._count == 0, timeout=timeout)


class HTTPListener:
    """Binds a WSGI application to host:port and drains it on unbind.

    Attributes:
        host: Interface to bind
        port: TCP port to bind (0 picks a free port)
    """

    # How often serve_forever checks for shutdown; bounds how long unbind keeps accepting
    POLL_INTERVAL = 0.05

    def __init__(self, app: WSGIApp, host: str, port: int) -> None:
        self.host = host
        self.port = port
        self._tracker = InFlightTracker(app)
        self._server: Optional[BaseWSGIServer] = None
        self._thread: Optional[threading.Thread] = None

    @property
    def is_bound(self) -> bool:
        return self._server is not None

    @property
    def in_flight(self) -> int:
        return self._tracker.in_flight

    @property
    def bound_port(self) -> Optional[int]:
        """Port actually bound, useful when binding port 0."""
        if self._server is None:
            return None
        return self._server.server_port

    async def bind(self) -> None:
        """Bind the socket and start serving in a background thread.

        Raises:
            ListenerBindError: If the address cannot be bound
        """
        if self._server is not None:
            return
        try:
            server = await asyncio.to_thread(
                make_server, self.host, self.port, self._tracker, threaded=True
            )
        except (OSError, SystemExit) as e:
            # werkzeug exits instead of raising when the port is already taken
            raise ListenerBindError(
                f"could not bind {self.host}:{self.port}: {e}", handle_name="listener"
            ) from e

        self._server = server
        self._thread = threading.Thread(
            target=server.serve_forever,
            kwargs={"poll_interval": self.POLL_INTERVAL},
            name="http-listener",
            daemon=True,
        )
        self._thread.start()
        logger.info(f"Listening on {self.host}:{server.server_port}")

    async def unbind(self, grace_period: float) -> bool:
        """Stop accepting connections and drain in-flight requests.

        Args:
            grace_period: Seconds to wait for in-flight requests to complete

        Returns:
            True if every in-flight request finished within the grace period
        """
        server = self._server
        if server is None:
            return True
        self._server = None

        await asyncio.to_thread(server.shutdown)
        server.server_close()
        logger.info("Listener closed, no longer accepting connections")

        pending = self._tracker.in_flight
        if pending:
            logger.info(f"Draining {pending} in-flight request(s) (grace period {grace_period}s)")
        drained = await asyncio.to_thread(self._tracker.wait_idle, grace_period)
        if not drained:
            logger.warning(
                f"Forced drain: {self._tracker.in_flight} request(s) still in flight "
                f"after {grace_period}s are abandoned"
            )

        if self._thread is not None:
            await asyncio.to_thread(self._thread.join, 1.0)
            self._thread = None
        return drained
