"""Identity provider user management operations for student accounts."""
from __future__ import annotations
import logging
from typing import Any, Dict, List
from urllib.parse import quote

from .client import IdentityClient
from .exceptions import IdentityProviderAPIError, UserAlreadyExistsError, UserNotFoundError

STUDENT_ROLE = "student"
USER_FIELDS = "user_id,username,app_metadata"
PAGE_SIZE = 100

logger = logging.getLogger(__name__)


def _tenant_query(tenant: str) -> str:
    """Lucene query matching the students of one class."""
    escaped = tenant.replace("\\", "\\\\").replace('"', '\\"')
    return f'app_metadata.tenant:"{escaped}" AND app_metadata.role:"{STUDENT_ROLE}"'


def _user_path(user_id: str) -> str:
    # Provider ids look like "auth0|58dd72d0b2e87002695249b6"
    return f"/api/v2/users/{quote(user_id, safe='')}"


class UserService:
    """Service for managing student users in the identity provider."""

    def __init__(self, client: IdentityClient, connection: str, email_domain: str):
        """Initialize user service.

        Args:
            client: Identity provider client
            connection: Provider database connection that stores students
            email_domain: Domain for placeholder student email addresses
        """
        self.client = client
        self.connection = connection
        self.email_domain = email_domain

    def get_oauth_token(self) -> str:
        """Return the current Management API bearer token."""
        return self.client.get_oauth_token()

    def create_user(self, tenant: str, username: str, password: str) -> Dict[str, Any]:
        """Create a student user in a class.

        Args:
            tenant: Class (tenant) id stored in app_metadata
            username: Student username
            password: Initial password

        Returns:
            Provider user representation

        Raises:
            UserAlreadyExistsError: If the username is already taken
            IdentityProviderAPIError: On any other HTTP error
        """
        payload = {
            "connection": self.connection,
            "email": f"{username}@{self.email_domain}",
            "username": username,
            "password": password,
            "verify_email": False,
            "email_verified": True,
            "app_metadata": {"role": STUDENT_ROLE, "tenant": tenant},
        }
        try:
            resp = self.client.post("/api/v2/users", json=payload)
        except IdentityProviderAPIError as exc:
            if exc.status_code == 409:
                raise UserAlreadyExistsError(f"User '{username}' already exists") from exc
            raise
        user = resp.json()
        logger.info("Created user %s in class %s", user.get("user_id"), tenant)
        return user

    def get_user(self, user_id: str) -> Dict[str, Any]:
        """Fetch a user by provider id.

        Raises:
            UserNotFoundError: If no user has this id
        """
        try:
            resp = self.client.get(_user_path(user_id), params={"fields": USER_FIELDS})
        except IdentityProviderAPIError as exc:
            if exc.status_code == 404:
                raise UserNotFoundError(f"User '{user_id}' not found") from exc
            raise
        return resp.json()

    def delete_user(self, user_id: str) -> None:
        """Delete a user by provider id.

        Raises:
            UserNotFoundError: If the user is already gone
        """
        try:
            self.client.delete(_user_path(user_id))
        except IdentityProviderAPIError as exc:
            if exc.status_code == 404:
                raise UserNotFoundError(f"User '{user_id}' not found") from exc
            raise
        logger.info("Deleted user %s", user_id)

    def modify_user(self, user_id: str, changes: Dict[str, Any]) -> Dict[str, Any]:
        """Apply attribute changes to a user.

        Password changes must name the connection that owns the credential.
        """
        body = dict(changes)
        if "password" in body:
            body["connection"] = self.connection
        try:
            resp = self.client.patch(_user_path(user_id), json=body)
        except IdentityProviderAPIError as exc:
            if exc.status_code == 404:
                raise UserNotFoundError(f"User '{user_id}' not found") from exc
            raise
        return resp.json()

    def get_users(self, tenant: str) -> List[Dict[str, Any]]:
        """Return every student user in a class."""
        users: List[Dict[str, Any]] = []
        page = 0
        while True:
            resp = self.client.get(
                "/api/v2/users",
                params={
                    "q": _tenant_query(tenant),
                    "search_engine": "v3",
                    "fields": USER_FIELDS,
                    "per_page": PAGE_SIZE,
                    "page": page,
                },
            )
            batch = resp.json() or []
            users.extend(batch)
            if len(batch) < PAGE_SIZE:
                return users
            page += 1

    def get_user_counts(self, tenant: str) -> Dict[str, int]:
        """Return ``{"total": n}`` for the students of a class."""
        resp = self.client.get(
            "/api/v2/users",
            params={
                "q": _tenant_query(tenant),
                "search_engine": "v3",
                "fields": "user_id",
                "include_totals": "true",
                "per_page": 1,
                "page": 0,
            },
        )
        return {"total": int(resp.json().get("total", 0))}
