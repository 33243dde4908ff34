"""Flask application and process entry point for the chat backend API."""

import argparse
import asyncio
import logging
import os
import sys
from pathlib import Path
from typing import List, Optional

from dotenv import load_dotenv
from flask import Flask
from flask_cors import CORS
from werkzeug.middleware.proxy_fix import ProxyFix

sys.path.append(os.path.dirname(os.path.dirname(os.path.abspath(__file__))))

from backend.conf.config import Config
from backend.src.api import setup_api
from backend.src.lifecycle import (
    ExitCode,
    HTTPListener,
    LifecycleError,
    Orchestrator,
    SignalGateway,
    StartupInterruptedError,
)
from backend.src.services import create_orchestrator

# Logging is configured in backend/__init__.py
logger = logging.getLogger(__name__)


def create_app(orchestrator: Orchestrator) -> Flask:
    """Create and configure the Flask application around the orchestrator."""
    logger.info("Starting application setup...")

    # Create Flask app
    app = Flask(__name__)
    app.config["MAX_CONTENT_LENGTH"] = Config.MAX_CONTENT_LENGTH

    # Trust X-Forwarded-* headers from the reverse proxy in front of us
    app.wsgi_app = ProxyFix(  # type: ignore[method-assign]
        app.wsgi_app,
        x_for=Config.TRUST_PROXY_HOPS,
        x_proto=Config.TRUST_PROXY_HOPS,
        x_host=Config.TRUST_PROXY_HOPS,
    )
    CORS(app, origins=Config.CORS_ORIGINS)

    # Set up API routes
    logger.info("Setting up API routes")
    setup_api(app, orchestrator)
    logger.info("API routes configured")

    logger.info("Application setup complete")
    return app


async def serve(orchestrator: Orchestrator) -> int:
    """Start the backing services, serve until shutdown and return the exit code.

    Args:
        orchestrator: Orchestrator with its listener attached

    Returns:
        Process exit code
    """
    gateway = SignalGateway(orchestrator)
    gateway.register()
    try:
        try:
            await orchestrator.startup()
        except StartupInterruptedError:
            logger.info("Startup interrupted by shutdown request")
        except LifecycleError as e:
            logger.error(f"Failed to start server: {e}")
            await orchestrator.wait_stopped()
            return int(ExitCode.STARTUP_FAILED)
        else:
            logger.info(f"{Config.SERVICE_NAME} running on port {Config.FLASK_PORT}")
            logger.info(f"Health check: http://localhost:{Config.FLASK_PORT}/health")
            logger.info(f"API info: http://localhost:{Config.FLASK_PORT}/api")
            logger.info(f"Environment: {Config.ENVIRONMENT}")

        return int(await orchestrator.wait_stopped())
    finally:
        gateway.unregister()


def main(argv: Optional[List[str]] = None) -> int:
    """Parse arguments, build the application and run it until shutdown."""
    parser = argparse.ArgumentParser(
        description="Run the chat backend API (--host, --port, --grace-period, --env-file)"
    )
    parser.add_argument(
        "--env-file",
        type=Path,
        default=Config.ENV_FILE,
        help=f"Path of a .env file to load before startup (default: {Config.ENV_FILE})",
    )
    parser.add_argument(
        "--host",
        type=str,
        default=None,
        help=f"Interface to bind (default: {Config.FLASK_HOST})",
    )
    parser.add_argument(
        "--port",
        type=int,
        default=None,
        help=f"Port to listen on (default: {Config.FLASK_PORT})",
    )
    parser.add_argument(
        "--grace-period",
        type=float,
        default=None,
        help=f"Seconds in-flight requests get on shutdown (default: {Config.SHUTDOWN_GRACE_PERIOD})",
    )
    args = parser.parse_args(argv)

    # Values from the .env file never override the real environment
    if args.env_file and args.env_file.exists():
        load_dotenv(args.env_file)
        Config.load_environment()
        logger.info(f"Loaded environment from {args.env_file}")

    # Set configuration from command line arguments
    if args.host is not None:
        Config.FLASK_HOST = args.host
    if args.port is not None:
        Config.FLASK_PORT = args.port
    if args.grace_period is not None:
        Config.SHUTDOWN_GRACE_PERIOD = args.grace_period

    try:
        orchestrator = create_orchestrator()
    except LifecycleError as e:
        logger.error(f"Invalid service configuration: {e}")
        return int(ExitCode.STARTUP_FAILED)

    app = create_app(orchestrator)
    orchestrator.attach_listener(HTTPListener(app, Config.FLASK_HOST, Config.FLASK_PORT))
    return asyncio.run(serve(orchestrator))


if __name__ == "__main__":
    sys.exit(main())
