"""Per-class student quota enforcement.

The count is read from the identity provider just before creation. Two
concurrent creates can both observe ``count < ceiling`` and both succeed, so a
class may briefly exceed its ceiling by the number of racing requests. This is
accepted: preventing it would need an atomic conditional create in the
provider, which the Management API does not offer.
"""
from __future__ import annotations
import logging

from .errors import QuotaExceededError

DEFAULT_MAX_STUDENTS = 8

logger = logging.getLogger(__name__)


def check_quota(identity, tenant: str, ceiling: int = DEFAULT_MAX_STUDENTS) -> int:
    """Reject account creation when a class is full.

    Args:
        identity: Identity provider exposing ``get_user_counts(tenant)``
        tenant: Class id
        ceiling: Maximum number of students allowed in the class

    Returns:
        Current number of students in the class

    Raises:
        QuotaExceededError: If the class already holds ``ceiling`` students
    """
    counts = identity.get_user_counts(tenant)
    total = int(counts.get("total", 0))
    if total >= ceiling:
        logger.info("Class %s is full (%d/%d students)", tenant, total, ceiling)
        raise QuotaExceededError()
    return total
