"""
Student Service Layer: account lifecycle orchestration

This module owns every decision made about student accounts between the HTTP
surface and the identity provider: input validation, class quotas, class
ownership checks, credential generation and error translation.

Architecture:
    Students API (/api/classes/*) ──> student_service.py ──> classroom.core.identity ──> provider

Features:
    - Username validation before any provider call
    - Quota check against the provider's live student count
    - Cross-class lookups reported as 404, never 403
    - Passwords generated per call and returned exactly once
    - Provider failures collapsed to client-safe ProviderError (500)

The service is stateless: every call is an independent request/response
transformation over the injected identity provider.
"""

from __future__ import annotations
import logging
from typing import Any, Dict, List, Optional, Protocol

from . import audit
from .context import CallerContext
from .credentials import generate_password
from .errors import AccountError, DuplicateUsernameError, NotFoundError, ProviderError
from .identity.exceptions import UserAlreadyExistsError, UserNotFoundError
from .quota import DEFAULT_MAX_STUDENTS, check_quota
from .student_transformer import StudentTransformer
from .tenant_guard import ensure_ownership
from .validators import validate_tenant, validate_username

logger = logging.getLogger(__name__)


class IdentityProvider(Protocol):
    """Identity provider capabilities consumed by the service."""

    def get_oauth_token(self) -> str: ...

    def create_user(self, tenant: str, username: str, password: str) -> Dict[str, Any]: ...

    def get_user(self, user_id: str) -> Dict[str, Any]: ...

    def delete_user(self, user_id: str) -> None: ...

    def modify_user(self, user_id: str, changes: Dict[str, Any]) -> Dict[str, Any]: ...

    def get_users(self, tenant: str) -> List[Dict[str, Any]]: ...

    def get_user_counts(self, tenant: str) -> Dict[str, int]: ...


def _operator(caller: Optional[CallerContext]) -> str:
    return caller.user_id if caller else "system"


class StudentService:
    """Create, list, read, delete and reset passwords of student accounts."""

    def __init__(self, identity: IdentityProvider, max_students: int = DEFAULT_MAX_STUDENTS):
        """Initialize student service.

        Args:
            identity: Identity provider client (injected so tests can substitute a fake)
            max_students: Per-class student ceiling
        """
        self.identity = identity
        self.max_students = max_students

    # ─────────────────────────────────────────────────────────────────────────
    # Operations
    # ─────────────────────────────────────────────────────────────────────────

    def create_student(
        self,
        tenant: str,
        username: Any,
        caller: Optional[CallerContext] = None,
    ) -> Dict[str, Any]:
        """Create a student account in a class.

        Args:
            tenant: Class id
            username: Requested username (raw request value)
            caller: Verified caller, for audit attribution

        Returns:
            ``{id, username, password}``; the only time the password is returned

        Raises:
            MissingFieldError / InvalidFormatError: Bad username (400)
            QuotaExceededError: Class is full (409)
            DuplicateUsernameError: Username taken (409)
            ProviderError: Any other provider failure (500)
        """
        validate_tenant(tenant)
        username = validate_username(username)

        failure = "Failed to create student"
        try:
            check_quota(self.identity, tenant, self.max_students)
        except AccountError:
            raise
        except Exception as exc:
            logger.error("Student count lookup failed for class %s: %s", tenant, exc)
            raise ProviderError(failure) from exc

        password = generate_password()

        try:
            user = self.identity.create_user(tenant, username, password)
        except UserAlreadyExistsError as exc:
            logger.info("Username %r already in use (class %s)", username, tenant)
            raise DuplicateUsernameError() from exc
        except Exception as exc:
            logger.error("Failed to create student %r in class %s: %s", username, tenant, exc)
            raise ProviderError(failure) from exc

        student = StudentTransformer.with_password(user, password)
        student["username"] = student.get("username") or username

        audit.safe_log_account_event(
            "student_created",
            tenant,
            student["id"],
            username=student["username"],
            operator=_operator(caller),
        )
        return student

    def get_students(self, tenant: str) -> List[Dict[str, Any]]:
        """List the students of a class as ``[{id, username}, ...]``.

        Raises:
            ProviderError: If the provider cannot list users (500)
        """
        validate_tenant(tenant)
        try:
            users = self.identity.get_users(tenant)
        except Exception as exc:
            logger.error("Failed to list students for class %s: %s", tenant, exc)
            raise ProviderError("Failed to retrieve students") from exc

        return [StudentTransformer.provider_to_student(user) for user in users or []]

    def get_student(self, tenant: str, user_id: str) -> Dict[str, Any]:
        """Return ``{id, username}`` for one student of a class.

        Raises:
            NotFoundError: Unknown id or student of another class (404)
        """
        validate_tenant(tenant)
        user = self._fetch_owned(tenant, user_id, "Failed to retrieve student")
        return StudentTransformer.provider_to_student(user)

    def delete_student(
        self,
        tenant: str,
        user_id: str,
        caller: Optional[CallerContext] = None,
    ) -> None:
        """Delete a student account.

        Raises:
            NotFoundError: Unknown id, student of another class, or already deleted (404)
            ProviderError: Provider deletion failure (500)
        """
        validate_tenant(tenant)
        failure = "Failed to delete student"
        user = self._fetch_owned(tenant, user_id, failure)

        try:
            self.identity.delete_user(user_id)
        except UserNotFoundError as exc:
            # Deleted concurrently between fetch and delete
            raise NotFoundError() from exc
        except Exception as exc:
            logger.error("Failed to delete student %s in class %s: %s", user_id, tenant, exc)
            raise ProviderError(failure) from exc

        audit.safe_log_account_event(
            "student_deleted",
            tenant,
            user_id,
            username=user.get("username"),
            operator=_operator(caller),
        )

    def reset_password(
        self,
        tenant: str,
        user_id: str,
        caller: Optional[CallerContext] = None,
    ) -> Dict[str, Any]:
        """Replace a student's password with a freshly generated one.

        Returns:
            ``{id, username, password}``

        Raises:
            NotFoundError: Unknown id or student of another class (404)
            ProviderError: Provider update failure (500)
        """
        validate_tenant(tenant)
        failure = "Failed to reset student password"
        user = self._fetch_owned(tenant, user_id, failure)

        password = generate_password()
        try:
            self.identity.modify_user(user_id, {"password": password})
        except UserNotFoundError as exc:
            raise NotFoundError() from exc
        except Exception as exc:
            logger.error("Failed to reset password for %s in class %s: %s", user_id, tenant, exc)
            raise ProviderError(failure) from exc

        audit.safe_log_account_event(
            "student_password_reset",
            tenant,
            user_id,
            username=user.get("username"),
            operator=_operator(caller),
        )

        student = StudentTransformer.with_password(user, password)
        student["id"] = student.get("id") or user_id
        return student

    # ─────────────────────────────────────────────────────────────────────────
    # Helpers
    # ─────────────────────────────────────────────────────────────────────────

    def _fetch_owned(self, tenant: str, user_id: str, failure: str) -> Dict[str, Any]:
        """Fetch a user by id and confirm it is a student of the class."""
        if not user_id:
            raise NotFoundError()
        try:
            user = self.identity.get_user(user_id)
        except UserNotFoundError as exc:
            raise NotFoundError() from exc
        except Exception as exc:
            logger.error("Failed to fetch user %s: %s", user_id, exc)
            raise ProviderError(failure) from exc
        return ensure_ownership(tenant, user)
