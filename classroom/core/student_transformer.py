"""Identity provider ↔ student API representations.

Usage:
    # Provider → API
    student = StudentTransformer.provider_to_student(user)

    # Ownership
    tenant = StudentTransformer.tenant_of(user)
    role = StudentTransformer.role_of(user)
"""
from __future__ import annotations
from typing import Any, Dict, Optional


class StudentTransformer:
    """Projects provider user records onto the student JSON API."""

    @staticmethod
    def provider_to_student(user: Dict[str, Any]) -> Dict[str, Any]:
        """Convert a provider user to the public ``{id, username}`` shape.

        Only whitelisted fields are copied, so credentials and metadata held by
        the provider never reach a response.

        Example:
            >>> StudentTransformer.provider_to_student({
            ...     "user_id": "auth0|58dd72d0b2e87002695249b6",
            ...     "username": "johndoe",
            ...     "app_metadata": {"role": "student", "tenant": "single"},
            ... })
            {'id': 'auth0|58dd72d0b2e87002695249b6', 'username': 'johndoe'}
        """
        return {
            "id": user.get("user_id") or user.get("id"),
            "username": user.get("username"),
        }

    @staticmethod
    def with_password(user: Dict[str, Any], password: str) -> Dict[str, Any]:
        """Student representation including a freshly issued password."""
        student = StudentTransformer.provider_to_student(user)
        student["password"] = password
        return student

    @staticmethod
    def tenant_of(user: Optional[Dict[str, Any]]) -> Optional[str]:
        """Return the class a provider user belongs to, if recorded."""
        if not user:
            return None
        metadata = user.get("app_metadata")
        if not isinstance(metadata, dict):
            return None
        return metadata.get("tenant")

    @staticmethod
    def role_of(user: Optional[Dict[str, Any]]) -> Optional[str]:
        """Return the account role (``student``, ``supervisor``), if recorded."""
        if not user:
            return None
        metadata = user.get("app_metadata")
        if not isinstance(metadata, dict):
            return None
        return metadata.get("role")
