"""
HTTP client for the managed authentication provider.

Speaks the GoTrue REST API (the auth server behind Supabase and similar
platforms). Credential issuance and sessions stay with the provider; this
client only forwards requests and translates failures.
"""

import logging
from typing import Any, Dict, Optional

import requests

from vault_api.config.settings import Settings
from vault_api.errors import AuthProviderError

logger = logging.getLogger(__name__)


def _error_message(response: requests.Response) -> str:
    """Pull the human readable message out of a provider error reply."""
    try:
        payload = response.json()
    except ValueError:
        return response.text or f"Auth provider returned HTTP {response.status_code}"
    if isinstance(payload, dict):
        for key in ("msg", "error_description", "message", "error"):
            if payload.get(key):
                return str(payload[key])
    return f"Auth provider returned HTTP {response.status_code}"


class AuthProvider:
    """Thin wrapper over the provider's REST endpoints.

    Every method raises `AuthProviderError` on transport failures (timeouts
    included) and on non-2xx replies. Callers decide the HTTP status to show.
    """

    def __init__(self, base_url: str, api_key: Optional[str] = None, timeout: float = 10.0,
                 session: Optional[requests.Session] = None):
        self.base_url = base_url.rstrip("/")
        self.api_key = api_key
        self.timeout = timeout
        self.session = session or requests.Session()

    @classmethod
    def from_settings(cls, settings: Settings) -> "AuthProvider":
        return cls(
            base_url=settings.auth_url,
            api_key=settings.auth_api_key,
            timeout=settings.auth_timeout_seconds,
        )

    def _headers(self, token: Optional[str] = None) -> Dict[str, str]:
        headers = {"Content-Type": "application/json"}
        if self.api_key:
            headers["apikey"] = self.api_key
        if token:
            headers["Authorization"] = f"Bearer {token}"
        elif self.api_key:
            headers["Authorization"] = f"Bearer {self.api_key}"
        return headers

    def _request(self, method: str, endpoint: str, token: Optional[str] = None,
                 json: Optional[dict] = None, params: Optional[dict] = None) -> Any:
        url = f"{self.base_url}{endpoint}"
        logger.debug(f"Making {method} request to {url}")
        try:
            response = self.session.request(
                method,
                url,
                headers=self._headers(token),
                json=json,
                params=params,
                timeout=self.timeout,
            )
        except requests.exceptions.RequestException as e:
            logger.error(f"Auth provider call failed: {str(e)}")
            raise AuthProviderError(f"Auth provider unavailable: {e}") from e

        if not response.ok:
            message = _error_message(response)
            logger.info(f"Auth provider rejected {method} {endpoint}: {response.status_code} {message}")
            raise AuthProviderError(message)

        if not response.content:
            return {}
        try:
            return response.json()
        except ValueError as e:
            raise AuthProviderError("Auth provider returned a malformed response") from e

    def sign_up(self, email: str, password: str, username: Optional[str] = None) -> Dict[str, Any]:
        """Register a user. Returns the user object."""
        payload = self._request(
            "POST",
            "/auth/v1/signup",
            json={"email": email, "password": password, "data": {"username": username}},
        )
        # With e-mail auto-confirm the provider wraps the user in a session
        if isinstance(payload, dict) and isinstance(payload.get("user"), dict):
            return payload["user"]
        return payload

    def sign_in_with_password(self, email: str, password: str) -> Dict[str, Any]:
        """Exchange e-mail and password for a session.

        Returns the provider's session payload; `access_token` is absent when
        the account exists but may not sign in yet.
        """
        return self._request(
            "POST",
            "/auth/v1/token",
            params={"grant_type": "password"},
            json={"email": email, "password": password},
        )

    def sign_out(self, token: str) -> None:
        self._request("POST", "/auth/v1/logout", token=token)

    def get_user(self, token: str) -> Dict[str, Any]:
        """Resolve an access token to the user it was issued for."""
        return self._request("GET", "/auth/v1/user", token=token)
