"""
Helpers shared by the JSON API blueprints.
"""
from flask import request

GENERIC_ERROR = "An unexpected error occurred. Please try again."


def json_payload():
    """Request body as a dict; malformed or non-object JSON counts as empty."""
    data = request.get_json(silent=True)
    return data if isinstance(data, dict) else {}
