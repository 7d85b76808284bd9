"""Health check route."""

from flask import Blueprint, current_app, jsonify

from ..app import get_image_service

health_bp = Blueprint("health", __name__)


@health_bp.route("/health", methods=["GET"])
def health():
    """Report storage backend, memory figures and file counts."""
    return jsonify(get_image_service(current_app).health())
