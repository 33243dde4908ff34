"""Health and service information endpoints.

This module provides Flask routes for:
1. Health/readiness reporting driven by the orchestrator's lifecycle phase
2. API information with the endpoint index
"""

import logging
from datetime import datetime, timezone
from typing import Dict, Tuple

from flask import Blueprint, Response, jsonify
from pydantic import BaseModel, Field

from backend.conf.config import Config
from backend.src.lifecycle import Orchestrator, Phase

logger = logging.getLogger(__name__)

API_ENDPOINTS: Dict[str, str] = {
    "auth": "/api/auth",
    "chat": "/api/chat",
    "user": "/api/user",
    "files": "/api/files",
    "workspaces": "/api/workspaces",
    "search": "/api/search",
    "feedback": "/api/feedback",
    "keyVault": "/api/admin/keyvault",
    "fileAnalysis": "/api/file-analysis",
}


# Schema definitions
class HealthResponseModel(BaseModel):
    """Health check response model."""

    status: str = Field(..., description="'healthy' while serving, otherwise 'unavailable'")
    timestamp: str = Field(..., description="Time of the check (ISO 8601, UTC)")
    service: str = Field(..., description="Service name")
    version: str = Field(..., description="Service version")
    environment: str = Field(..., description="Deployment environment")
    phase: str = Field(..., description="Lifecycle phase of the process")
    handles: Dict[str, str] = Field(
        default_factory=dict, description="Lifecycle state of every backing service"
    )


class ApiInfoResponseModel(BaseModel):
    """API information response model."""

    name: str = Field(..., description="Service name")
    version: str = Field(..., description="Service version")
    description: str = Field(..., description="Service description")
    endpoints: Dict[str, str] = Field(
        default_factory=dict, description="Mount points of the API route groups"
    )


def init_health_routes(orchestrator: Orchestrator) -> Blueprint:
    """Initialize health and info routes.

    Args:
        orchestrator: Orchestrator whose lifecycle state is reported

    Returns:
        Blueprint: Flask blueprint with the health and info routes.
    """
    health_bp = Blueprint("health", __name__)

    @health_bp.route("/health", methods=["GET"])
    def health() -> Tuple[Response, int]:
        """Report lifecycle phase and handle states.

        Returns 200 only once startup has fully completed, 503 in every
        other phase so load balancers stop routing traffic.
        """
        snapshot = orchestrator.snapshot()
        serving = snapshot["phase"] == Phase.SERVING.value
        response = HealthResponseModel(
            status="healthy" if serving else "unavailable",
            timestamp=datetime.now(timezone.utc).isoformat(),
            service=Config.SERVICE_NAME,
            version=Config.APP_VERSION,
            environment=Config.ENVIRONMENT,
            phase=snapshot["phase"],
            handles=snapshot["handles"],
        )
        return jsonify(response.model_dump()), 200 if serving else 503

    @health_bp.route("/api", methods=["GET"])
    def api_info() -> Tuple[Response, int]:
        response = ApiInfoResponseModel(
            name=Config.SERVICE_NAME,
            version=Config.APP_VERSION,
            description=Config.SERVICE_DESCRIPTION,
            endpoints=API_ENDPOINTS,
        )
        return jsonify(response.model_dump()), 200

    return health_bp
