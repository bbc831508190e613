"""
Authentication helpers backed by Supabase.

Exports:
    - Session / SessionUser: What the guard knows about a signed-in caller
    - SupabaseSessionStore: Resolves a Session from an access token
    - SupabaseClient: Minimal Supabase Auth/REST client
    - get_session: Resolve the session of a Django request
    - ConfigurationError / AuthLookupError: Failure categories
"""

from .exceptions import AuthLookupError, ConfigurationError, RallyRoundError
from .session import (
    Session,
    SessionUser,
    SupabaseSessionStore,
    get_auth_token,
    get_session,
)
from .supabase import SupabaseClient, get_supabase_config

__all__ = [
    "AuthLookupError",
    "ConfigurationError",
    "RallyRoundError",
    "Session",
    "SessionUser",
    "SupabaseClient",
    "SupabaseSessionStore",
    "get_auth_token",
    "get_session",
    "get_supabase_config",
]
