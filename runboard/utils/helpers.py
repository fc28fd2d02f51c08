"""Shared request helpers for blueprints.

json_body:     request JSON as a dict, or ValidationError (never None)
int_arg:       optional integer query argument, or ValidationError
"""
import logging

from flask import request

from runboard.core.exceptions import ValidationError

logger = logging.getLogger(__name__)


def json_body() -> dict:
    """Return the JSON object body of the current request.

    Raises ValidationError for a missing, malformed or non-object body.
    """
    data = request.get_json(silent=True)
    if not isinstance(data, dict):
        raise ValidationError.for_field("body", "Request body must be a JSON object")
    return data


def int_arg(name: str, default=None):
    """Read ``?name=`` as an int. Absent or blank → ``default``."""
    raw = request.args.get(name)
    if raw is None or raw.strip() == "":
        return default
    try:
        return int(raw)
    except ValueError:
        raise ValidationError.for_field(name, f"{name} must be an integer") from None
