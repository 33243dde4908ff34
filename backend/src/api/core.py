"""Core API setup and configuration.

This module configures API middleware, error handling, and other global API components.
"""

import logging

from flask import Flask

from backend.src.api.endpoints import register_endpoints
from backend.src.api.middleware import register_middleware
from backend.src.lifecycle import Orchestrator

logger = logging.getLogger(__name__)


def setup_api(app: Flask, orchestrator: Orchestrator) -> None:
    """Set up API with middleware and endpoints.

    Args:
        app: Flask application
        orchestrator: Orchestrator owning the backing services
    """
    # Register middleware
    register_middleware(app, orchestrator)

    # Register endpoints
    register_endpoints(app, orchestrator)
