"""Class ownership checks for fetched student accounts."""
from __future__ import annotations
import logging
from typing import Any, Dict, Optional

from .errors import NotFoundError
from .identity.users import STUDENT_ROLE
from .student_transformer import StudentTransformer

logger = logging.getLogger(__name__)


def ensure_ownership(tenant: str, account: Optional[Dict[str, Any]]) -> Dict[str, Any]:
    """Confirm an account is a student of the requesting class.

    An account owned by a different class, or one that is not a student
    account (a supervisor sharing the class, say), is reported exactly like a
    missing one, so callers cannot discover accounts outside their scope.

    Args:
        tenant: Class id from the request path
        account: Provider user record fetched by id (or None)

    Returns:
        The account, unchanged

    Raises:
        NotFoundError: If the account is missing, owned by another class or
            not a student
    """
    if not account:
        raise NotFoundError()

    owner = StudentTransformer.tenant_of(account)
    if owner != tenant:
        logger.warning(
            "Rejected cross-class access to user %s (requested class=%s)",
            account.get("user_id"),
            tenant,
        )
        raise NotFoundError()

    if StudentTransformer.role_of(account) != STUDENT_ROLE:
        logger.warning(
            "Rejected access to non-student user %s in class %s",
            account.get("user_id"),
            tenant,
        )
        raise NotFoundError()
    return account
