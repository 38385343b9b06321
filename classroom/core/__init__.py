"""Core Business Logic Module

This module provides the student account lifecycle logic, independent of
the HTTP framework.

Module Structure:
    - identity/            : Identity provider Management API client
    - student_service.py   : Account orchestration (create/list/get/delete/reset)
    - validators.py        : Username and class id validation
    - credentials.py       : Random username/password generation
    - quota.py             : Per-class student ceiling
    - tenant_guard.py      : Class ownership checks
    - errors.py            : Error taxonomy and HTTP translation
    - audit.py             : Signed audit trail of account events

Usage Pattern:
    These modules are NOT auto-imported to avoid Flask dependencies
    when using only the identity client standalone.

        from classroom.core.student_service import StudentService
        from classroom.core.errors import translate_error
"""
