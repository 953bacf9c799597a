"""Translate application errors into JSON responses."""

from flask import Blueprint, current_app, jsonify
from flask_wtf.csrf import CSRFError

from .core.types import ErrorBody
from .errors import AppError, NotFoundError, ValidationError

error_handlers_bp = Blueprint("error_handlers", __name__)


def _error_response(kind, message, status_code):
    body: ErrorBody = {"error": kind, "message": message}
    return jsonify(body), status_code


@error_handlers_bp.app_errorhandler(ValidationError)
def handle_validation_error(error):
    """Handles validation errors."""
    current_app.logger.warning(f"Validation Error: {error.message}")
    return _error_response(error.kind, error.message, error.status_code)


@error_handlers_bp.app_errorhandler(NotFoundError)
def handle_not_found_error(error):
    """Handles not found errors."""
    current_app.logger.warning(f"Not Found Error: {error.message}")
    return _error_response(error.kind, error.message, error.status_code)


@error_handlers_bp.app_errorhandler(AppError)
def handle_app_error(error):
    """Handles generic application errors."""
    if error.status_code >= 500:
        current_app.logger.error(f"Application Error ({error.kind}): {error.message}")
    else:
        current_app.logger.warning(f"Application Error ({error.kind}): {error.message}")
    return _error_response(error.kind, error.message, error.status_code)


@error_handlers_bp.app_errorhandler(404)
def handle_404(e):
    """Handles generic 404 errors for routes that don't exist."""
    return _error_response("not_found", "Resource not found.", 404)


@error_handlers_bp.app_errorhandler(500)
def handle_500(e):
    """Handles unexpected server errors."""
    current_app.logger.error(f"Internal Server Error: {e}")
    return _error_response("internal_error", "An unexpected error occurred.", 500)


@error_handlers_bp.app_errorhandler(CSRFError)
def handle_csrf_error(e):
    """Handles CSRF errors, which usually indicate an expired session."""
    current_app.logger.warning(f"CSRF Error: {e.description}")
    return _error_response(
        "csrf_error", "Your session may have expired. Please try again.", 400
    )
