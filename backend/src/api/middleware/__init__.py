"""Middleware package for API request processing.

This module registers middleware functions for the API.
"""

from flask import Flask

from backend.src.lifecycle import Orchestrator


def register_middleware(app: Flask, orchestrator: Orchestrator) -> None:
    """Register middleware with the Flask application.

    Args:
        app: Flask application
        orchestrator: Orchestrator gating requests on readiness
    """
    # Register error handler middleware
    from backend.src.api.middleware.error_handler import register_error_handlers
    from backend.src.api.middleware.readiness import register_readiness_gate

    register_error_handlers(app)
    register_readiness_gate(app, orchestrator)
