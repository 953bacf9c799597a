"""Utility functions for the application."""

from typing import Any

from flask import request

from .errors import ValidationError


def first_form_error(form) -> str:
    """Flatten a form's errors into a single message for a JSON response."""
    for field_name, errors in form.errors.items():
        if errors:
            return f"{field_name}: {errors[0]}"
    return "Invalid input."


def get_json_payload() -> dict[str, Any]:
    """Return the request body as a dict or raise ValidationError."""
    payload = request.get_json(silent=True)
    if payload is None:
        return {}
    if not isinstance(payload, dict):
        raise ValidationError("Request body must be a JSON object.")
    return payload
