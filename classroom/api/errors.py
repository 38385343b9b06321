"""Error handlers for the application."""
import logging

from flask import jsonify
from werkzeug.exceptions import HTTPException

from classroom.core.errors import AccountError, translate_error

logger = logging.getLogger(__name__)


def register_error_handlers(app):
    """Register JSON error handlers with the Flask app."""

    @app.errorhandler(AccountError)
    def account_error(error):
        """Handle account errors raised outside the students blueprint."""
        status, body = translate_error(error)
        return jsonify(body), status

    @app.errorhandler(404)
    def not_found(error):
        """Handle 404 Not Found errors."""
        return jsonify({"statusCode": 404, "error": "Not Found"}), 404

    @app.errorhandler(405)
    def method_not_allowed(error):
        """Handle 405 Method Not Allowed errors."""
        return jsonify({"error": "Method Not Allowed"}), 405

    @app.errorhandler(500)
    def internal_error(error):
        """Handle 500 Internal Server Error."""
        logger.error("Internal error: %s", error)
        return jsonify({"error": "Internal Server Error"}), 500

    @app.errorhandler(Exception)
    def handle_exception(error):
        """Handle uncaught exceptions without leaking details."""
        if isinstance(error, HTTPException):
            return jsonify({"error": error.name}), error.code

        logger.error("Unhandled exception: %s", error, exc_info=True)
        status, body = translate_error(error)
        return jsonify(body), status
