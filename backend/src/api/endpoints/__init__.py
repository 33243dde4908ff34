"""API endpoints package.

This package contains endpoint definitions for the API. Domain route groups
(auth, chat, files...) are mounted by their own packages and only reach
backing services through the orchestrator's handle registry.
"""

from flask import Flask

from backend.src.api.endpoints.health import init_health_routes
from backend.src.lifecycle import Orchestrator


def register_endpoints(app: Flask, orchestrator: Orchestrator) -> None:
    """Register all API endpoints with the application.

    Args:
        app: Flask application
        orchestrator: Orchestrator owning the backing services
    """
    app.register_blueprint(init_health_routes(orchestrator))
