"""
Flask decorators for authentication and authorization.

Callers present a JWT bearer token issued by the identity provider. The
decorators form a pipeline; each stage either rejects the request or passes
on a verified ``CallerContext`` (stored on ``flask.g``):

    authenticate        -> 401 unless the bearer token is valid
    check_valid_user    -> 403 unless the caller belongs to the class in the path
    require_supervisor  -> 403 unless the caller is a supervisor

Security:
- RSA-SHA256 signature verification via JWKS (RFC 7517)
- Expiration, issuer, audience validation (RFC 7519)
- JWKS caching (1-hour refresh)
"""

import hashlib
import logging
from functools import wraps
from typing import Any, Dict, Optional

import jwt
from jwt import PyJWKClient
from jwt.exceptions import (
    ExpiredSignatureError,
    InvalidIssuerError,
    InvalidAudienceError,
    InvalidSignatureError,
    DecodeError,
)
from flask import request, jsonify, current_app, g

from classroom.core.context import CallerContext

logger = logging.getLogger(__name__)

NOT_AUTHORISED_MESSAGE = "Not authorised"

# Global JWKS client (cached singleton)
_jwks_client: Optional[PyJWKClient] = None


class TokenValidationError(Exception):
    """Exception raised when JWT token validation fails."""
    pass


def get_jwks_client() -> PyJWKClient:
    """
    Get cached JWKS client (singleton pattern).

    Returns:
        PyJWKClient: Client for the configured JWKS endpoint
    """
    global _jwks_client

    if _jwks_client is None:
        cfg = current_app.config["APP_CONFIG"]
        logger.info("Initializing JWKS client for: %s", cfg.auth_jwks_url)
        _jwks_client = PyJWKClient(
            cfg.auth_jwks_url,
            cache_keys=True,
            max_cached_keys=16,
            lifespan=3600,
        )

    return _jwks_client


def validate_jwt_token(token: str) -> Dict[str, Any]:
    """
    Validate JWT bearer token with full security checks.

    Args:
        token: JWT token string (without "Bearer " prefix)

    Returns:
        dict: Validated token claims

    Raises:
        TokenValidationError: If any validation fails
    """
    cfg = current_app.config["APP_CONFIG"]

    try:
        signing_key = get_jwks_client().get_signing_key_from_jwt(token)
        claims = jwt.decode(
            token,
            signing_key.key,
            algorithms=["RS256"],
            issuer=cfg.auth_issuer,
            audience=cfg.auth_audience,
            options={
                "verify_signature": True,
                "verify_exp": True,
                "verify_iss": True,
                "verify_aud": True,
                "require": ["exp", "iat", "sub"],
            },
            leeway=5,
        )
        return claims

    except ExpiredSignatureError:
        raise TokenValidationError("Token expired (exp claim)")
    except InvalidIssuerError as e:
        raise TokenValidationError(f"Invalid issuer: {e}")
    except InvalidAudienceError as e:
        raise TokenValidationError(f"Invalid audience: {e}")
    except InvalidSignatureError:
        raise TokenValidationError("Invalid signature (token tampered or wrong key)")
    except DecodeError as e:
        raise TokenValidationError(f"Token decode error (malformed JWT): {e}")
    except Exception as e:
        logger.error("JWT validation failed: %s", e)
        raise TokenValidationError(f"Token validation failed: {e}")


def caller_from_claims(claims: Dict[str, Any]) -> CallerContext:
    """Build the caller context from validated token claims."""
    cfg = current_app.config["APP_CONFIG"]
    return CallerContext(
        user_id=str(claims.get("sub", "")),
        tenant=str(claims.get(cfg.tenant_claim) or ""),
        role=str(claims.get(cfg.role_claim) or ""),
    )


def _token_fingerprint(token: str) -> str:
    """SHA256 prefix safe to put in logs."""
    return hashlib.sha256(token.encode()).hexdigest()[:12]


def _unauthorized(message: str):
    return jsonify({"error": message}), 401


def _forbidden():
    return jsonify({"error": NOT_AUTHORISED_MESSAGE}), 403


def authenticate(fn):
    """Require a valid bearer token; stores the caller on ``g.caller``."""

    @wraps(fn)
    def wrapper(*args, **kwargs):
        auth_header = request.headers.get("Authorization", "")
        if not auth_header:
            return _unauthorized("Missing access token")
        if not auth_header.startswith("Bearer "):
            return _unauthorized("Authorization header must use Bearer scheme")

        token = auth_header[7:].strip()
        if not token:
            return _unauthorized("Missing access token")

        try:
            claims = validate_jwt_token(token)
        except TokenValidationError as e:
            logger.warning("Rejected token %s on %s: %s", _token_fingerprint(token), request.path, e)
            return _unauthorized("Invalid access token")

        g.caller = caller_from_claims(claims)
        return fn(*args, **kwargs)

    return wrapper


def check_valid_user(fn):
    """Require the caller to belong to the class named in the path."""

    @wraps(fn)
    def wrapper(*args, **kwargs):
        caller = get_caller()
        classid = kwargs.get("classid")
        if caller is None or not classid or not caller.is_member_of(classid):
            logger.warning(
                "Caller %s denied access to class %s",
                caller.user_id if caller else "anonymous",
                classid,
            )
            return _forbidden()
        return fn(*args, **kwargs)

    return wrapper


def require_supervisor(fn):
    """Require the caller to hold the supervisor role."""

    @wraps(fn)
    def wrapper(*args, **kwargs):
        cfg = current_app.config["APP_CONFIG"]
        caller = get_caller()
        if caller is None or not caller.has_role(cfg.supervisor_role):
            return _forbidden()
        return fn(*args, **kwargs)

    return wrapper


def get_caller() -> Optional[CallerContext]:
    """
    Get the verified caller for the current request.

    Must be called after @authenticate.
    """
    return getattr(g, "caller", None)
