"""Settings loader with environment variable and Docker secrets integration."""
from __future__ import annotations
import logging
import os
from dataclasses import dataclass
from pathlib import Path
from typing import Optional

from classroom.core.quota import DEFAULT_MAX_STUDENTS

logger = logging.getLogger(__name__)

DEMO_IDENTITY_DOMAIN = "classroom-demo.eu.auth0.com"


def _load_secret_from_file(secret_name: str, env_var: str | None = None) -> str | None:
    """
    Load secret from /run/secrets (Docker secrets pattern).

    Priority:
    1. /run/secrets/{secret_name} (Docker secrets mount)
    2. Environment variable (fallback)

    Args:
        secret_name: Name of the secret file in /run/secrets
        env_var: Optional environment variable name to check as fallback

    Returns:
        Secret value or None if not found
    """
    secret_file = Path("/run/secrets") / secret_name

    if secret_file.exists() and secret_file.is_file():
        try:
            secret_value = secret_file.read_text().strip()
            if secret_value:
                logger.info("Loaded %s from /run/secrets", secret_name)
                return secret_value
        except OSError as e:
            logger.warning("Failed to read /run/secrets/%s: %s", secret_name, e)

    if env_var:
        secret_value = os.getenv(env_var)
        if secret_value:
            return secret_value

    return None


@dataclass
class AppConfig:
    """Application configuration container."""
    # Mode
    demo_mode: bool

    # Identity provider (Management API)
    identity_domain: str
    identity_client_id: str
    identity_client_secret: str
    identity_audience: str = ""
    identity_connection: str = "Username-Password-Authentication"
    student_email_domain: str = "students.invalid"

    # Quota
    max_students_per_class: int = DEFAULT_MAX_STUDENTS

    # Caller authentication (JWT bearer tokens)
    auth_issuer: str = ""
    auth_audience: str = "https://classroom-api"
    auth_jwks_url: str = ""
    auth_claim_namespace: str = "https://classroom/"
    supervisor_role: str = "supervisor"

    # Proxy
    trusted_proxy_count: int = 1

    @property
    def tenant_claim(self) -> str:
        return f"{self.auth_claim_namespace}tenant"

    @property
    def role_claim(self) -> str:
        return f"{self.auth_claim_namespace}role"


def _get_or_generate(var_name: str, demo_default: Optional[str] = None, required: bool = True, demo_mode: bool = False) -> str:
    """Get environment variable or use demo default."""
    value = os.environ.get(var_name)
    if value:
        return value

    if demo_mode and demo_default is not None:
        logger.info("[demo-mode] Using default for %s", var_name)
        return demo_default

    if not required:
        return ""

    raise RuntimeError(f"Environment variable {var_name} is required in production mode.")


def _positive_int(var_name: str, default: int) -> int:
    raw = os.environ.get(var_name, "").strip()
    if not raw:
        return default
    try:
        value = int(raw)
    except ValueError:
        raise RuntimeError(f"Environment variable {var_name} must be an integer, got {raw!r}")
    if value < 1:
        raise RuntimeError(f"Environment variable {var_name} must be positive, got {value}")
    return value


def load_settings() -> AppConfig:
    """Load application settings from environment and /run/secrets."""
    demo_mode = os.environ.get("DEMO_MODE", "false").lower() == "true"

    # Identity provider
    identity_domain = _get_or_generate(
        "IDENTITY_DOMAIN",
        demo_default=DEMO_IDENTITY_DOMAIN,
        demo_mode=demo_mode,
    )
    identity_client_id = _get_or_generate(
        "IDENTITY_CLIENT_ID",
        demo_default="classroom-api",
        demo_mode=demo_mode,
    )
    identity_client_secret = _load_secret_from_file("identity_client_secret", "IDENTITY_CLIENT_SECRET")
    if not identity_client_secret:
        if not demo_mode:
            raise RuntimeError("IDENTITY_CLIENT_SECRET not found in /run/secrets or environment")
        identity_client_secret = "demo-client-secret"
        logger.info("[demo-mode] Using demo IDENTITY_CLIENT_SECRET")

    identity_audience = os.environ.get("IDENTITY_AUDIENCE", "")
    identity_connection = os.environ.get("IDENTITY_CONNECTION", "Username-Password-Authentication")
    student_email_domain = os.environ.get("STUDENT_EMAIL_DOMAIN", "students.invalid")

    max_students_per_class = _positive_int("MAX_STUDENTS_PER_CLASS", DEFAULT_MAX_STUDENTS)

    # Caller authentication
    default_issuer = identity_domain if identity_domain.startswith("http") else f"https://{identity_domain}"
    auth_issuer = os.environ.get("AUTH_ISSUER", default_issuer.rstrip("/") + "/")
    auth_audience = os.environ.get("AUTH_AUDIENCE", "https://classroom-api")
    auth_jwks_url = os.environ.get("AUTH_JWKS_URL", f"{auth_issuer.rstrip('/')}/.well-known/jwks.json")
    auth_claim_namespace = os.environ.get("AUTH_CLAIM_NAMESPACE", "https://classroom/")
    supervisor_role = os.environ.get("SUPERVISOR_ROLE", "supervisor").strip().lower()

    trusted_proxy_count = _positive_int("TRUSTED_PROXY_COUNT", 1)

    # Audit log signing key (read by classroom.core.audit at write time)
    audit_log_signing_key = _load_secret_from_file("audit_log_signing_key", "AUDIT_LOG_SIGNING_KEY")
    if audit_log_signing_key:
        os.environ["AUDIT_LOG_SIGNING_KEY"] = audit_log_signing_key
    elif not demo_mode:
        logger.warning("AUDIT_LOG_SIGNING_KEY not set; audit events will be unsigned")

    mode_label = "DEMO" if demo_mode else "PRODUCTION"
    logger.info(
        "Mode=%s; identity_domain=%s; max_students_per_class=%d",
        mode_label,
        identity_domain,
        max_students_per_class,
    )
    if demo_mode:
        logger.warning("Demo credentials in use. Do not deploy with these defaults.")

    return AppConfig(
        demo_mode=demo_mode,
        identity_domain=identity_domain,
        identity_client_id=identity_client_id,
        identity_client_secret=identity_client_secret,
        identity_audience=identity_audience,
        identity_connection=identity_connection,
        student_email_domain=student_email_domain,
        max_students_per_class=max_students_per_class,
        auth_issuer=auth_issuer,
        auth_audience=auth_audience,
        auth_jwks_url=auth_jwks_url,
        auth_claim_namespace=auth_claim_namespace,
        supervisor_role=supervisor_role,
        trusted_proxy_count=trusted_proxy_count,
    )
