"""
Minimal Supabase client.

Only the calls the access core needs are implemented: resolving the user
behind an access token (Auth API) and reading rows from a table (REST API).
Every transport or protocol failure is raised as AuthLookupError so callers
can fail closed.
"""

import logging
from typing import Any, Optional

import requests

from ..config_proxy import get_setting
from .exceptions import AuthLookupError, ConfigurationError

logger = logging.getLogger(__name__)

_UNAUTHENTICATED_STATUSES = (401, 403)

_http_session: Optional[requests.Session] = None


def get_http_session() -> requests.Session:
    """Process-wide HTTP session, so Supabase connections are pooled across requests."""
    global _http_session
    if _http_session is None:
        _http_session = requests.Session()
    return _http_session


def get_supabase_config(profile: Optional[str] = None) -> dict[str, Any]:
    """
    Read the Supabase connection settings.

    Raises:
        ConfigurationError: If the project URL or anon key is missing.
    """
    url = str(get_setting("supabase.url", "", profile=profile) or "").strip()
    anon_key = str(get_setting("supabase.anon_key", "", profile=profile) or "").strip()
    missing = [
        name
        for name, value in (("supabase.url", url), ("supabase.anon_key", anon_key))
        if not value
    ]
    if missing:
        raise ConfigurationError(
            f"Missing Supabase configuration: {', '.join(missing)}", missing=missing
        )
    return {
        "url": url.rstrip("/"),
        "anon_key": anon_key,
        "timeout": float(get_setting("supabase.timeout_seconds", 5, profile=profile)),
    }


class SupabaseClient:
    """Thin wrapper around the Supabase Auth and REST endpoints."""

    def __init__(
        self,
        url: str,
        anon_key: str,
        timeout: float = 5,
        http: Optional[requests.Session] = None,
    ):
        self.url = url.rstrip("/")
        self.anon_key = anon_key
        self.timeout = timeout
        self._http = http or get_http_session()

    @classmethod
    def from_settings(cls, profile: Optional[str] = None) -> "SupabaseClient":
        config = get_supabase_config(profile)
        return cls(config["url"], config["anon_key"], timeout=config["timeout"])

    def _headers(self, access_token: Optional[str] = None) -> dict[str, str]:
        return {
            "apikey": self.anon_key,
            "Authorization": f"Bearer {access_token or self.anon_key}",
            "Accept": "application/json",
        }

    def _request(
        self,
        method: str,
        path: str,
        *,
        access_token: Optional[str] = None,
        params: Optional[dict[str, str]] = None,
        extra_headers: Optional[dict[str, str]] = None,
    ) -> requests.Response:
        headers = self._headers(access_token)
        if extra_headers:
            headers.update(extra_headers)
        try:
            return self._http.request(
                method,
                f"{self.url}{path}",
                headers=headers,
                params=params,
                timeout=self.timeout,
            )
        except requests.RequestException as exc:
            raise AuthLookupError(f"Supabase request to {path} failed: {exc}") from exc

    def get_user(self, access_token: str) -> Optional[dict[str, Any]]:
        """
        Return the user payload for ``access_token``.

        Returns None when Supabase rejects the token.
        """
        response = self._request("GET", "/auth/v1/user", access_token=access_token)
        if response.status_code in _UNAUTHENTICATED_STATUSES:
            return None
        payload = self._json(response, "/auth/v1/user")
        if not isinstance(payload, dict):
            raise AuthLookupError("Unexpected user payload from Supabase")
        return payload

    def select(
        self,
        table: str,
        columns: str = "*",
        filters: Optional[dict[str, Any]] = None,
        access_token: Optional[str] = None,
    ) -> list[dict[str, Any]]:
        """Select rows with equality filters, e.g. ``{"user_id": "abc"}``."""
        params = {"select": columns}
        for column, value in (filters or {}).items():
            params[column] = f"eq.{value}"
        path = f"/rest/v1/{table}"
        response = self._request("GET", path, access_token=access_token, params=params)
        rows = self._json(response, path)
        if not isinstance(rows, list):
            raise AuthLookupError(f"Unexpected payload from {path}")
        return rows

    def count(self, table: str, access_token: Optional[str] = None) -> int:
        """Exact row count of ``table`` using a HEAD request."""
        path = f"/rest/v1/{table}"
        response = self._request(
            "HEAD",
            path,
            access_token=access_token,
            params={"select": "count"},
            extra_headers={"Prefer": "count=exact"},
        )
        self._raise_for_status(response, path)
        content_range = response.headers.get("Content-Range", "")
        _, _, total = content_range.rpartition("/")
        try:
            return int(total)
        except ValueError:
            return 0

    def _raise_for_status(self, response: requests.Response, path: str) -> None:
        if response.status_code >= 400:
            raise AuthLookupError(
                f"Supabase returned {response.status_code} for {path}",
                status_code=response.status_code,
            )

    def _json(self, response: requests.Response, path: str) -> Any:
        self._raise_for_status(response, path)
        try:
            return response.json()
        except ValueError as exc:
            raise AuthLookupError(f"Invalid JSON from {path}") from exc


__all__ = ["SupabaseClient", "get_http_session", "get_supabase_config"]
