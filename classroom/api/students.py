"""Student account REST endpoints.

All business logic lives in ``classroom.core.student_service``; these routes
only parse the request, run the auth pipeline and serialize the result.

Routes (tenant = class id):
    POST   /api/classes/<classid>/students                     create
    GET    /api/classes/<classid>/students                     list
    GET    /api/classes/<classid>/students/<userid>            read one
    DELETE /api/classes/<classid>/students/<userid>            delete
    POST   /api/classes/<classid>/students/<userid>/password   reset password
"""

from __future__ import annotations
import logging

from flask import Blueprint, current_app, jsonify, request

from classroom.api.decorators import authenticate, check_valid_user, get_caller, require_supervisor
from classroom.core.errors import AccountError, translate_error
from classroom.core.student_service import StudentService

bp = Blueprint("students", __name__, url_prefix="/api/classes")

logger = logging.getLogger(__name__)


def _service() -> StudentService:
    return current_app.config["STUDENT_SERVICE"]


@bp.errorhandler(AccountError)
def handle_account_error(error: AccountError):
    """Translate account errors into their JSON response."""
    status, body = translate_error(error)
    return jsonify(body), status


@bp.after_request
def add_correlation_id(response):
    """Echo the correlation ID header for tracing."""
    correlation_id = request.headers.get("X-Correlation-Id")
    if correlation_id:
        response.headers["X-Correlation-Id"] = correlation_id
    return response


@bp.route("/<classid>/students", methods=["POST"])
@authenticate
@check_valid_user
@require_supervisor
def create_student(classid: str):
    """Create a student in the class.

    Body: ``{"username": "..."}``

    Returns:
        201 Created with ``{id, username, password}``
    """
    payload = request.get_json(silent=True)
    if not isinstance(payload, dict):
        payload = {}

    student = _service().create_student(classid, payload.get("username"), caller=get_caller())
    return jsonify(student), 201


@bp.route("/<classid>/students", methods=["GET"])
@authenticate
@check_valid_user
def get_students(classid: str):
    """List the students of the class as ``[{id, username}, ...]``."""
    students = _service().get_students(classid)
    return jsonify(students), 200


@bp.route("/<classid>/students/<userid>", methods=["GET"])
@authenticate
@check_valid_user
@require_supervisor
def get_student(classid: str, userid: str):
    """Return ``{id, username}`` for one student."""
    student = _service().get_student(classid, userid)
    return jsonify(student), 200


@bp.route("/<classid>/students/<userid>", methods=["DELETE"])
@authenticate
@check_valid_user
@require_supervisor
def delete_student(classid: str, userid: str):
    """Delete a student.

    Returns:
        204 No Content
    """
    _service().delete_student(classid, userid, caller=get_caller())
    return "", 204


@bp.route("/<classid>/students/<userid>/password", methods=["POST"])
@authenticate
@check_valid_user
@require_supervisor
def reset_password(classid: str, userid: str):
    """Issue a new password for a student.

    Returns:
        200 OK with ``{id, username, password}``
    """
    student = _service().reset_password(classid, userid, caller=get_caller())
    return jsonify(student), 200
