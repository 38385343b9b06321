"""Input validation helpers for student account requests."""
from __future__ import annotations
import re
from typing import Any

from .errors import InvalidFormatError, MissingFieldError

INVALID_USERNAME_MESSAGE = "Invalid username. Use letters, numbers, hyphens and underscores, only."
INVALID_TENANT_MESSAGE = "Invalid class id"

TENANT_MAX_LENGTH = 64

USERNAME_PATTERN = re.compile(r"[A-Za-z0-9_-]+")
TENANT_PATTERN = re.compile(r"[A-Za-z0-9_.-]+")


def validate_username(raw: Any) -> str:
    """Validate a requested student username.

    Args:
        raw: Username value taken from the request body (may be missing)

    Returns:
        The username, unchanged

    Raises:
        MissingFieldError: If username is absent or empty
        InvalidFormatError: If username contains anything other than
            letters, digits, hyphens and underscores
    """
    if raw is None or raw == "":
        raise MissingFieldError("username")
    if not isinstance(raw, str) or not USERNAME_PATTERN.fullmatch(raw):
        raise InvalidFormatError(INVALID_USERNAME_MESSAGE)
    return raw


def validate_tenant(raw: Any) -> str:
    """Validate a class (tenant) identifier taken from the request path."""
    if raw is None or raw == "":
        raise MissingFieldError("classid")
    if not isinstance(raw, str) or len(raw) > TENANT_MAX_LENGTH or not TENANT_PATTERN.fullmatch(raw):
        raise InvalidFormatError(INVALID_TENANT_MESSAGE)
    return raw
