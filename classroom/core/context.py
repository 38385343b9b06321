"""Verified caller context produced by the authentication pipeline."""
from __future__ import annotations
from dataclasses import dataclass


@dataclass(frozen=True)
class CallerContext:
    """Identity of an authenticated API caller."""

    user_id: str
    tenant: str
    role: str

    def is_member_of(self, tenant: str) -> bool:
        return self.tenant == tenant

    def has_role(self, role: str) -> bool:
        return self.role.lower() == role.lower()
