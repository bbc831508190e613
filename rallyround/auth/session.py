"""
Session resolution from the Supabase auth cookie.

The session itself is owned by Supabase; this module only reads the user id
and e-mail behind the access token stored in the auth cookie.
"""

import json
import logging
from dataclasses import dataclass, field
from typing import Optional

import jwt
from django.http import HttpRequest

from ..config_proxy import get_setting
from .exceptions import AuthLookupError
from .supabase import SupabaseClient

logger = logging.getLogger(__name__)


@dataclass(frozen=True)
class SessionUser:
    id: str
    email: Optional[str] = None


@dataclass(frozen=True)
class Session:
    user: SessionUser
    access_token: str = field(default="", repr=False)


def get_auth_token(request: HttpRequest, profile: Optional[str] = None) -> Optional[str]:
    """
    Extract the access token from the auth cookie.

    Supabase helpers store either the raw JWT or a JSON array whose first
    item is the access token; both forms are accepted.
    """
    cookie_name = get_setting("route_guard.auth_cookie_name", "sb-auth-token", profile=profile)
    raw = (request.COOKIES.get(cookie_name) or "").strip()
    if not raw:
        return None
    if raw.startswith("["):
        try:
            parsed = json.loads(raw)
        except ValueError:
            return None
        if isinstance(parsed, list) and parsed and isinstance(parsed[0], str):
            return parsed[0] or None
        return None
    return raw


class SupabaseSessionStore:
    """
    Resolve a Session from an access token.

    When a JWT secret is configured the token is verified locally with
    PyJWT; otherwise the Supabase Auth API is asked for the user.
    """

    def __init__(
        self,
        client: Optional[SupabaseClient] = None,
        jwt_secret: Optional[str] = None,
        jwt_audience: str = "authenticated",
    ):
        self.client = client
        self.jwt_secret = jwt_secret or None
        self.jwt_audience = jwt_audience

    @classmethod
    def from_settings(cls, profile: Optional[str] = None) -> "SupabaseSessionStore":
        return cls(
            client=SupabaseClient.from_settings(profile),
            jwt_secret=get_setting("supabase.jwt_secret", "", profile=profile),
            jwt_audience=get_setting("supabase.jwt_audience", "authenticated", profile=profile),
        )

    def get_session(self, access_token: str) -> Optional[Session]:
        if not access_token:
            return None
        if self.jwt_secret:
            return self._session_from_jwt(access_token)
        return self._session_from_api(access_token)

    def _session_from_jwt(self, access_token: str) -> Optional[Session]:
        try:
            claims = jwt.decode(
                access_token,
                self.jwt_secret,
                algorithms=["HS256"],
                audience=self.jwt_audience,
            )
        except jwt.ExpiredSignatureError:
            logger.debug("Auth token expired")
            return None
        except jwt.InvalidTokenError as exc:
            logger.debug("Auth token rejected: %s", exc)
            return None
        user_id = claims.get("sub")
        if not user_id:
            return None
        return Session(
            user=SessionUser(id=str(user_id), email=claims.get("email")),
            access_token=access_token,
        )

    def _session_from_api(self, access_token: str) -> Optional[Session]:
        if self.client is None:
            raise AuthLookupError("No Supabase client configured for session lookup")
        payload = self.client.get_user(access_token)
        if not payload or not payload.get("id"):
            return None
        return Session(
            user=SessionUser(id=str(payload["id"]), email=payload.get("email")),
            access_token=access_token,
        )


def get_session(
    request: HttpRequest,
    profile: Optional[str] = None,
    store: Optional[SupabaseSessionStore] = None,
) -> Optional[Session]:
    """
    Resolve the session of ``request``.

    Returns None when no auth cookie is present, without any lookup.

    Raises:
        ConfigurationError: If Supabase settings are missing.
        AuthLookupError: If the auth provider could not be reached.
    """
    token = get_auth_token(request, profile)
    if not token:
        return None
    if store is None:
        store = SupabaseSessionStore.from_settings(profile)
    return store.get_session(token)


__all__ = [
    "Session",
    "SessionUser",
    "SupabaseSessionStore",
    "get_auth_token",
    "get_session",
]
