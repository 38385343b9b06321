"""Identity provider Management API client library.

Architecture:
- client.py: HTTP client with OAuth token caching and single-flight refresh
- users.py: Student user lifecycle operations (create, get, delete, modify, list, count)
- exceptions.py: Typed exceptions for error handling

Usage:
    from classroom.core.identity import IdentityClient, UserService

    client = IdentityClient("classroom.eu.auth0.com", "client-id", "secret")
    users = UserService(client, "Username-Password-Authentication", "students.invalid")
    users.get_users("class-42")
"""
from .client import (
    IdentityClient,
    create_client,
    REQUEST_TIMEOUT,
)
from .exceptions import (
    IdentityProviderError,
    IdentityProviderAPIError,
    UserNotFoundError,
    UserAlreadyExistsError,
)
from .users import (
    UserService,
    STUDENT_ROLE,
)

__all__ = [
    "IdentityClient",
    "create_client",
    "REQUEST_TIMEOUT",
    "IdentityProviderError",
    "IdentityProviderAPIError",
    "UserNotFoundError",
    "UserAlreadyExistsError",
    "UserService",
    "STUDENT_ROLE",
]
