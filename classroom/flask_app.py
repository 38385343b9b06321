"""Flask application factory and bootstrap.

This module provides the create_app() factory function for initializing
the Flask application with all blueprints, middleware, and configuration.

Run with Gunicorn:
    gunicorn -c gunicorn.conf.py 'classroom.flask_app:create_app()'
"""
from __future__ import annotations
import logging
import os
from typing import Optional

from flask import Flask
from werkzeug.middleware.proxy_fix import ProxyFix

from classroom.config import AppConfig, load_settings
from classroom.core.identity import UserService, create_client
from classroom.core.student_service import IdentityProvider, StudentService

logger = logging.getLogger(__name__)


# ─────────────────────────────────────────────────────────────────────────────
# Application Factory
# ─────────────────────────────────────────────────────────────────────────────
def create_app(
    cfg: Optional[AppConfig] = None,
    identity: Optional[IdentityProvider] = None,
) -> Flask:
    """Create and configure Flask application.

    Args:
        cfg: Settings (loaded from the environment when omitted)
        identity: Identity provider (built from settings when omitted)
    """
    _configure_logging()

    if cfg is None:
        cfg = load_settings()
    if identity is None:
        identity = UserService(
            create_client(cfg),
            connection=cfg.identity_connection,
            email_domain=cfg.student_email_domain,
        )

    app = Flask(__name__)
    app.config["APP_CONFIG"] = cfg
    app.config["STUDENT_SERVICE"] = StudentService(identity, max_students=cfg.max_students_per_class)

    # Trust X-Forwarded-* headers from proxy (nginx)
    app.wsgi_app = ProxyFix(  # type: ignore
        app.wsgi_app,
        x_for=cfg.trusted_proxy_count,
        x_proto=cfg.trusted_proxy_count,
        x_host=cfg.trusted_proxy_count,
    )

    from classroom.api import errors, health, students

    app.register_blueprint(health.bp)
    app.register_blueprint(students.bp)

    errors.register_error_handlers(app)

    mode_label = "DEMO" if cfg.demo_mode else "PRODUCTION"
    logger.info("Mode=%s; students API registered at /api/classes", mode_label)

    return app


def _configure_logging() -> None:
    """Configure root logging once (Gunicorn may already have done so)."""
    root = logging.getLogger()
    if root.handlers:
        return
    logging.basicConfig(
        level=os.environ.get("LOG_LEVEL", "INFO").upper(),
        format="%(asctime)s %(levelname)s [%(name)s] %(message)s",
    )


if __name__ == "__main__":
    create_app().run(host="0.0.0.0", port=5000, debug=True)
