"""Error handling middleware for API requests.

This module provides error handling for API requests.
"""

import logging
import traceback
from typing import Tuple

from flask import Flask, Response, current_app, jsonify, request
from werkzeug.exceptions import HTTPException, NotFound

from backend.src.api.middleware.exceptions import APIError, ErrorResponseModel

logger = logging.getLogger(__name__)


def register_error_handlers(app: Flask) -> None:
    """Register error handlers with the Flask application.

    Args:
        app: Flask application
    """

    @app.errorhandler(APIError)
    def handle_api_error(error: APIError) -> Tuple[Response, int]:  # type: ignore
        """Handle custom API errors.

        Args:
            error: Custom API error

        Returns:
            JSON response with error details
        """
        logger.error(f"API error ({error.__class__.__name__}): {error.message}")
        if hasattr(error, "details") and error.details:
            logger.error(f"Error details: {error.details}")

        return error.to_response()

    @app.errorhandler(NotFound)
    def handle_not_found(error: NotFound) -> Tuple[Response, int]:  # type: ignore
        """Answer unknown routes with a JSON 404."""
        response = ErrorResponseModel(
            error="Route not found",
            message=f"Cannot {request.method} {request.full_path.rstrip('?')}",
            status_code=404,
        )
        return jsonify(response.model_dump(exclude_none=True)), 404

    @app.errorhandler(HTTPException)
    def handle_http_exception(error: HTTPException) -> Tuple[Response, int]:  # type: ignore
        """Render werkzeug HTTP errors (413, 405...) as JSON."""
        status_code = error.code or 500
        response = ErrorResponseModel(
            error=error.name, message=error.description, status_code=status_code
        )
        return jsonify(response.model_dump(exclude_none=True)), status_code

    @app.errorhandler(Exception)
    def handle_exception(error: Exception) -> Tuple[Response, int]:  # type: ignore
        """Handle uncaught exceptions.

        Args:
            error: Exception that was raised

        Returns:
            JSON response with error message
        """
        logger.error(f"Unhandled exception: {str(error)}")
        logger.error(traceback.format_exc())

        # Only include detailed error info in debug mode
        details = str(error) if current_app.debug else None

        response = ErrorResponseModel(
            error="Internal server error", details=details, status_code=500
        )
        return jsonify(response.model_dump(exclude_none=True)), 500
