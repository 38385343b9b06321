"""Liveness and readiness checks for the container orchestrator."""
from flask import Blueprint, current_app

bp = Blueprint("health", __name__)

_TEXT = {"Content-Type": "text/plain"}


@bp.route("/health")
def health_check():
    return ("ok", 200, _TEXT)


@bp.route("/ready")
def readiness_check():
    """Ready once the student service is wired; never calls the identity provider."""
    if current_app.config.get("STUDENT_SERVICE") is None:
        return ("student service not configured", 503, _TEXT)
    return ("ready", 200, _TEXT)
