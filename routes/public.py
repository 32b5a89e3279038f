"""
Public routes: health check
"""
from flask import Blueprint, jsonify

public_bp = Blueprint('public', __name__)


@public_bp.route('/health', methods=['GET'])
def health():
    """Liveness probe for the hosting platform."""
    return jsonify({"status": "ok"})
