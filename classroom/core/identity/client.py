"""Low-level HTTP client for the identity provider Management API.

Handles OAuth token acquisition, token caching and HTTP operations.
"""
from __future__ import annotations
import logging
import threading
from typing import Optional, Dict, Any
from datetime import datetime, timedelta

import requests

from .exceptions import IdentityProviderAPIError, IdentityProviderError

REQUEST_TIMEOUT = 5

# Refresh this long before the provider-reported expiry
TOKEN_REFRESH_MARGIN = timedelta(seconds=10)
DEFAULT_TOKEN_LIFETIME = 60

logger = logging.getLogger(__name__)


class IdentityClient:
    """HTTP client for the Management API with a shared token cache.

    One instance is shared by every request in the process. The bearer token
    is cached until shortly before it expires; when it needs refreshing, a
    lock makes sure only one thread fetches a new token while concurrent
    callers wait for and then reuse that result.

    Usage:
        client = IdentityClient("classroom.eu.auth0.com", "client-id", "secret")
        response = client.get("/api/v2/users/auth0|123")
    """

    def __init__(
        self,
        domain: str,
        client_id: str,
        client_secret: str,
        audience: Optional[str] = None,
    ):
        """Initialize identity provider client.

        Args:
            domain: Provider tenant domain (e.g. "classroom.eu.auth0.com") or base URL
            client_id: Management API client ID
            client_secret: Management API client secret
            audience: Token audience (defaults to the domain's /api/v2/ endpoint)
        """
        if domain.startswith("http://") or domain.startswith("https://"):
            self.base_url = domain.rstrip("/")
        else:
            self.base_url = f"https://{domain.rstrip('/')}"
        self.client_id = client_id
        self.client_secret = client_secret
        self.audience = audience or f"{self.base_url}/api/v2/"
        # (token, expires_at), replaced as a whole so readers never see a mixed pair
        self._cached: Optional[tuple[str, datetime]] = None
        self._token_lock = threading.Lock()

    def get_oauth_token(self) -> str:
        """Return a valid bearer token, fetching a new one if the cache is stale."""
        token = self._cached_token()
        if token:
            return token

        with self._token_lock:
            # Another thread may have refreshed while we waited for the lock
            token = self._cached_token()
            if token:
                return token

            token, expires_in = self._fetch_token()
            self._cached = (token, datetime.now() + timedelta(seconds=expires_in))
            logger.info("Obtained identity provider token (expires_in=%ss)", expires_in)
            return token

    def invalidate_token(self) -> None:
        """Drop the cached token so the next call fetches a fresh one."""
        with self._token_lock:
            self._cached = None

    def _cached_token(self) -> Optional[str]:
        cached = self._cached
        if cached is None:
            return None
        token, expires_at = cached
        if datetime.now() >= expires_at - TOKEN_REFRESH_MARGIN:
            return None
        return token

    def _fetch_token(self) -> tuple[str, int]:
        """Fetch a Management API token using client credentials flow."""
        url = f"{self.base_url}/oauth/token"
        data = {
            "grant_type": "client_credentials",
            "client_id": self.client_id,
            "client_secret": self.client_secret,
            "audience": self.audience,
        }
        try:
            resp = requests.post(url, json=data, timeout=REQUEST_TIMEOUT)
        except requests.RequestException as exc:
            raise IdentityProviderError(f"Token request failed: {exc}") from exc
        if resp.status_code != 200:
            raise IdentityProviderAPIError(resp.status_code, resp.text, url)

        body = resp.json()
        expires_in = int(body.get("expires_in") or DEFAULT_TOKEN_LIFETIME)
        return body["access_token"], expires_in

    def get(self, path: str, params: Optional[Dict] = None, **kwargs) -> requests.Response:
        """Execute GET request with automatic authentication.

        Args:
            path: API endpoint path (e.g., "/api/v2/users")
            params: Query parameters
            **kwargs: Additional arguments for requests.get

        Returns:
            Response object

        Raises:
            IdentityProviderAPIError: On HTTP error
        """
        return self._request("GET", path, params=params, **kwargs)

    def post(self, path: str, json: Optional[Dict] = None, **kwargs) -> requests.Response:
        """Execute POST request with automatic authentication."""
        return self._request("POST", path, json=json, **kwargs)

    def patch(self, path: str, json: Optional[Dict] = None, **kwargs) -> requests.Response:
        """Execute PATCH request with automatic authentication."""
        return self._request("PATCH", path, json=json, **kwargs)

    def delete(self, path: str, **kwargs) -> requests.Response:
        """Execute DELETE request with automatic authentication."""
        return self._request("DELETE", path, **kwargs)

    def _request(self, method: str, path: str, **kwargs: Any) -> requests.Response:
        url = f"{self.base_url}{path}"
        headers = kwargs.pop("headers", {})
        headers["Authorization"] = f"Bearer {self.get_oauth_token()}"

        try:
            resp = requests.request(method, url, headers=headers, timeout=REQUEST_TIMEOUT, **kwargs)
        except requests.RequestException as exc:
            raise IdentityProviderError(f"{method} {path} failed: {exc}") from exc

        if resp.status_code == 401:
            # Token revoked or rotated early; next call starts from a clean cache
            self.invalidate_token()
        self._handle_error(resp)
        return resp

    def _handle_error(self, resp: requests.Response) -> None:
        """Centralized error handling for HTTP responses.

        Raises:
            IdentityProviderAPIError: If response status indicates error
        """
        if resp.status_code >= 400:
            raise IdentityProviderAPIError(resp.status_code, resp.text, resp.url)


def create_client(cfg) -> IdentityClient:
    """Build a client from application settings."""
    return IdentityClient(
        cfg.identity_domain,
        cfg.identity_client_id,
        cfg.identity_client_secret,
        audience=cfg.identity_audience or None,
    )
