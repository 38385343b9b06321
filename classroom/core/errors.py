"""Account error taxonomy and HTTP translation.

Every failure the student lifecycle can produce is an ``AccountError`` carrying
the HTTP status it maps to. ``translate_error`` is the single place that turns
an exception into a ``(status, body)`` pair for the JSON API.

    MissingFieldError / InvalidFormatError -> 400 {"error": message}
    QuotaExceededError                     -> 409 {"error": message}
    DuplicateUsernameError                 -> 409 {"error": message}
    NotFoundError                          -> 404 {"statusCode": 404, "error": "Not Found"}
    ProviderError                          -> 500 {"error": message}
"""
from __future__ import annotations
from typing import Any, Optional

QUOTA_EXCEEDED_MESSAGE = "Class already has maximum allowed number of students"
DUPLICATE_USERNAME_MESSAGE = "Student username already in use"
INTERNAL_ERROR_MESSAGE = "Internal Server Error"


class AccountError(Exception):
    """Base error with HTTP status and client-safe detail."""

    status = 500
    default_detail = INTERNAL_ERROR_MESSAGE

    def __init__(self, detail: Optional[str] = None):
        self.detail = detail or self.default_detail
        super().__init__(self.detail)

    def to_dict(self) -> dict:
        """Convert to JSON error response format."""
        return {"error": self.detail}


class MissingFieldError(AccountError):
    """Required request field absent or empty."""

    status = 400

    def __init__(self, field: str):
        self.field = field
        super().__init__(f'Missing required field "{field}"')


class InvalidFormatError(AccountError):
    """Field present but malformed."""

    status = 400


class QuotaExceededError(AccountError):
    """Class is already at its student ceiling."""

    status = 409
    default_detail = QUOTA_EXCEEDED_MESSAGE


class DuplicateUsernameError(AccountError):
    """Identity provider rejected the username as already taken."""

    status = 409
    default_detail = DUPLICATE_USERNAME_MESSAGE


class NotFoundError(AccountError):
    """Account does not exist, or exists under another class.

    Both cases produce an identical body so cross-class existence is not
    revealed to the caller.
    """

    status = 404
    default_detail = "Not Found"

    def to_dict(self) -> dict:
        return {"statusCode": 404, "error": "Not Found"}


class ProviderError(AccountError):
    """Unrecognised identity provider failure."""

    status = 500


def translate_error(error: BaseException) -> tuple[int, dict[str, Any]]:
    """Map any exception to an HTTP status and JSON body.

    Args:
        error: Exception raised while serving a request

    Returns:
        Tuple of (status code, response body)
    """
    if isinstance(error, AccountError):
        return error.status, error.to_dict()
    return 500, {"error": INTERNAL_ERROR_MESSAGE}
