"""Pytest shared fixtures."""
import os
import pathlib
import sys
import time
import uuid
from typing import Optional

# Add project root to Python path
ROOT = pathlib.Path(__file__).resolve().parents[1]
if str(ROOT) not in sys.path:
    sys.path.insert(0, str(ROOT))

# Configure test environment BEFORE any app imports
os.environ.setdefault("DEMO_MODE", "true")

import pytest
import requests
from cryptography.hazmat.primitives.asymmetric import rsa
from cryptography.hazmat.primitives import serialization
from authlib.jose import jwt as authlib_jwt

from classroom.api import decorators
from classroom.config import AppConfig
from classroom.core import audit
from classroom.core.identity import STUDENT_ROLE, UserAlreadyExistsError, UserNotFoundError
from classroom.flask_app import create_app

JOHNDOE_ID = "auth0|58dd72d0b2e87002695249b6"
TEST_ISSUER = "https://classroom-test.eu.auth0.com/"
TEST_AUDIENCE = "https://classroom-api"


# ─────────────────────────────────────────────────────────────────────────────
# Network Guard Rails
# ─────────────────────────────────────────────────────────────────────────────
@pytest.fixture(autouse=True)
def _block_network(monkeypatch, request):
    """
    Prevent unit tests from reaching a live identity provider.

    Integration tests are explicitly marked with @pytest.mark.integration and
    are allowed to perform real HTTP calls by skipping this fixture.
    """
    if request.node.get_closest_marker("integration"):
        return

    def _refuse(*args, **kwargs):
        raise RuntimeError(f"Unexpected HTTP call in unit test: {args} {kwargs.get('url', '')}")

    monkeypatch.setattr(requests, "request", _refuse)
    monkeypatch.setattr(requests, "get", _refuse)
    monkeypatch.setattr(requests, "post", _refuse)


@pytest.fixture(autouse=True)
def _isolated_audit_log(monkeypatch, tmp_path):
    """Keep audit events out of the working tree."""
    audit_dir = tmp_path / "audit"
    monkeypatch.setattr(audit, "AUDIT_LOG_DIR", audit_dir)
    monkeypatch.setattr(audit, "AUDIT_LOG_FILE", audit_dir / "account-events.jsonl")
    monkeypatch.setenv("AUDIT_LOG_SIGNING_KEY", "test-signing-key-for-audit-trail")
    return audit_dir


# ─────────────────────────────────────────────────────────────────────────────
# Fake Identity Provider
# ─────────────────────────────────────────────────────────────────────────────
class FakeIdentityProvider:
    """In-memory identity provider with injectable failures.

    ``fail["<method>"] = exc`` makes the next and all later calls to that
    method raise ``exc``.
    """

    def __init__(self):
        self.users: dict[str, dict] = {}
        self.passwords: dict[str, str] = {}
        self.calls: list[str] = []
        self.fail: dict[str, Exception] = {}
        self.count_override: Optional[int] = None

    def _enter(self, name: str) -> None:
        self.calls.append(name)
        exc = self.fail.get(name)
        if exc is not None:
            raise exc

    def add_user(
        self, tenant: str, username: str, user_id: Optional[str] = None, role: str = STUDENT_ROLE
    ) -> dict:
        user_id = user_id or f"auth0|{uuid.uuid4().hex[:24]}"
        self.users[user_id] = {
            "user_id": user_id,
            "username": username,
            "app_metadata": {"role": role, "tenant": tenant},
        }
        return dict(self.users[user_id])

    def _students_of(self, tenant: str) -> list[dict]:
        # Same scope as the provider query: tenant AND role:"student"
        return [
            u for u in self.users.values()
            if u["app_metadata"].get("tenant") == tenant
            and u["app_metadata"].get("role") == STUDENT_ROLE
        ]

    def get_oauth_token(self) -> str:
        self._enter("get_oauth_token")
        return "fake-token"

    def create_user(self, tenant, username, password):
        self._enter("create_user")
        if any(u["username"] == username for u in self.users.values()):
            raise UserAlreadyExistsError(f"User '{username}' already exists")
        user = self.add_user(tenant, username)
        self.passwords[user["user_id"]] = password
        return user

    def get_user(self, user_id):
        self._enter("get_user")
        if user_id not in self.users:
            raise UserNotFoundError(user_id)
        return dict(self.users[user_id])

    def delete_user(self, user_id):
        self._enter("delete_user")
        if self.users.pop(user_id, None) is None:
            raise UserNotFoundError(user_id)
        self.passwords.pop(user_id, None)

    def modify_user(self, user_id, changes):
        self._enter("modify_user")
        if user_id not in self.users:
            raise UserNotFoundError(user_id)
        if "password" in changes:
            self.passwords[user_id] = changes["password"]
        return dict(self.users[user_id])

    def get_users(self, tenant):
        self._enter("get_users")
        return [dict(u) for u in self._students_of(tenant)]

    def get_user_counts(self, tenant):
        self._enter("get_user_counts")
        if self.count_override is not None:
            return {"total": self.count_override}
        return {"total": len(self._students_of(tenant))}


@pytest.fixture()
def fake_identity():
    """Fake provider holding one student, johndoe, in class 'single'."""
    provider = FakeIdentityProvider()
    provider.add_user("single", "johndoe", user_id=JOHNDOE_ID)
    provider.calls.clear()
    return provider


# ─────────────────────────────────────────────────────────────────────────────
# Flask Test Client
# ─────────────────────────────────────────────────────────────────────────────
def make_config(**overrides) -> AppConfig:
    base = dict(
        demo_mode=True,
        identity_domain="classroom-test.eu.auth0.com",
        identity_client_id="test-client",
        identity_client_secret="test-secret",
        auth_issuer=TEST_ISSUER,
        auth_audience=TEST_AUDIENCE,
        auth_jwks_url=f"{TEST_ISSUER}.well-known/jwks.json",
    )
    base.update(overrides)
    return AppConfig(**base)


@pytest.fixture()
def app_config():
    return make_config()


@pytest.fixture()
def flask_app(app_config, fake_identity):
    app = create_app(app_config, identity=fake_identity)
    app.config.update(TESTING=True)
    return app


@pytest.fixture()
def client(flask_app):
    with flask_app.test_client() as client:
        yield client


@pytest.fixture()
def login_as(monkeypatch, app_config):
    """Return a helper that authenticates requests as a given caller.

    Token validation is replaced so the pipeline sees the given claims;
    the membership and role checks still run for real.
    """

    def _login(tenant: str, role: str = "supervisor", sub: str = "auth0|supervisor-1") -> dict:
        claims = {
            "sub": sub,
            app_config.tenant_claim: tenant,
            app_config.role_claim: role,
        }
        monkeypatch.setattr(decorators, "validate_jwt_token", lambda token: claims)
        return {"Authorization": "Bearer test-token"}

    return _login


# ─────────────────────────────────────────────────────────────────────────────
# RSA Key Pair for JWT Testing
# ─────────────────────────────────────────────────────────────────────────────
@pytest.fixture(scope="session")
def rsa_key_pair():
    """Generate RSA key pair for JWT signing in tests."""
    private_key = rsa.generate_private_key(public_exponent=65537, key_size=2048)

    private_pem = private_key.private_bytes(
        encoding=serialization.Encoding.PEM,
        format=serialization.PrivateFormat.PKCS8,
        encryption_algorithm=serialization.NoEncryption(),
    )

    return {
        "private_key": private_key,
        "private_pem": private_pem,
        "public_key": private_key.public_key(),
    }


def create_valid_jwt(
    rsa_key_pair: dict,
    issuer: str = TEST_ISSUER,
    audience: str = TEST_AUDIENCE,
    sub: str = "auth0|supervisor-1",
    extra_claims: Optional[dict] = None,
    exp_offset: int = 3600,
    kid: str = "default-key-id",
) -> str:
    """Create an RS256-signed JWT for testing."""
    now = int(time.time())
    header = {"alg": "RS256", "typ": "JWT", "kid": kid}
    payload = {
        "iss": issuer,
        "aud": audience,
        "sub": sub,
        "exp": now + exp_offset,
        "iat": now,
    }
    payload.update(extra_claims or {})

    token = authlib_jwt.encode(header, payload, rsa_key_pair["private_pem"])
    return token.decode("utf-8") if isinstance(token, bytes) else token


@pytest.fixture()
def make_token(rsa_key_pair):
    """Factory for signed caller tokens: ``make_token(extra_claims={...})``."""

    def _make(**kwargs) -> str:
        return create_valid_jwt(rsa_key_pair, **kwargs)

    return _make


def pytest_configure(config):
    """Register custom markers."""
    config.addinivalue_line(
        "markers", "integration: marks tests as integration tests (requires a live identity provider)"
    )
