"""Classroom student accounts service.

To build the Flask app:
    from classroom.flask_app import create_app

To use the account lifecycle service directly:
    from classroom.core.student_service import StudentService
"""
# Note: flask_app is not imported here so the core and identity client
# can be used without Flask installed.
