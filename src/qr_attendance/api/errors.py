from __future__ import annotations

import logging

from flask import Flask, g, jsonify
from werkzeug.exceptions import HTTPException

from ..core.exceptions import (
    AuthenticationError,
    AuthorizationError,
    ConflictError,
    NotFoundError,
    SessionCreationError,
    ValidationError,
)

logger = logging.getLogger(__name__)


def error_response(message: str, status: int, **extra):
    return jsonify({"success": False, "error": message, **extra}), status


def register_error_handlers(app: Flask) -> None:
    """Map domain exceptions to ``{"success": false, "error": ...}`` bodies."""

    @app.errorhandler(ValidationError)
    def handle_validation(e: ValidationError):
        return error_response(str(e), 400)

    @app.errorhandler(AuthenticationError)
    def handle_authentication(e: AuthenticationError):
        return error_response("Unauthorized", 401)

    @app.errorhandler(AuthorizationError)
    def handle_authorization(e: AuthorizationError):
        message = str(e)
        if message and message != "Forbidden":
            return error_response("Forbidden", 403, details=message)
        return error_response("Forbidden", 403)

    @app.errorhandler(NotFoundError)
    def handle_not_found(e: NotFoundError):
        return error_response(str(e), 404)

    @app.errorhandler(ConflictError)
    def handle_conflict(e: ConflictError):
        return error_response(str(e), 409)

    @app.errorhandler(SessionCreationError)
    def handle_session_creation(e: SessionCreationError):
        logger.error("Session creation failed: %s", e)
        return error_response(str(e), 500, sessionId=e.session_id, compensated=e.compensated)

    @app.errorhandler(HTTPException)
    def handle_http(e: HTTPException):
        return error_response(e.name, e.code or 500)

    @app.errorhandler(Exception)
    def handle_unexpected(e: Exception):
        logger.exception("Unhandled error")
        if g.get("admin_endpoint"):
            return error_response("Internal server error", 500, details=str(e))
        return error_response("Internal server error", 500)
