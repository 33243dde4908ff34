"""Readiness gate for incoming requests.

Requests are only routed to handlers while the orchestrator is serving. The
health endpoint is exempt so load balancers can always read the real state.
"""

import logging

from flask import Flask, request

from backend.src.api.middleware.exceptions import ServiceUnavailableError
from backend.src.lifecycle import Orchestrator, Phase

logger = logging.getLogger(__name__)

EXEMPT_PATHS = frozenset({"/health"})


def register_readiness_gate(app: Flask, orchestrator: Orchestrator) -> None:
    """Reject requests with 503 unless the orchestrator is serving.

    Args:
        app: Flask application
        orchestrator: Orchestrator whose phase gates the requests
    """

    @app.before_request
    def require_serving() -> None:
        if request.path in EXEMPT_PATHS:
            return None
        if orchestrator.phase is not Phase.SERVING:
            raise ServiceUnavailableError(
                f"Service is {orchestrator.phase.value.lower()}, try again later"
            )
        return None
