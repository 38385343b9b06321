"""Identity provider exceptions for error handling."""


class IdentityProviderError(Exception):
    """Base exception for all identity provider operations."""
    pass


class IdentityProviderAPIError(IdentityProviderError):
    """HTTP error from the identity provider Management API.

    Attributes:
        status_code: HTTP status code
        message: Error message from response
        endpoint: API endpoint that failed
    """

    def __init__(self, status_code: int, message: str, endpoint: str):
        self.status_code = status_code
        self.message = message
        self.endpoint = endpoint
        super().__init__(f"[{status_code}] {endpoint}: {message}")


class UserNotFoundError(IdentityProviderError):
    """User lookup failed - user id does not exist."""
    pass


class UserAlreadyExistsError(IdentityProviderError):
    """User creation failed - username already exists."""
    pass
