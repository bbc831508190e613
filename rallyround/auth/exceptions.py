"""Domain exceptions for session and role lookups."""

from typing import Optional

from django.core.exceptions import ImproperlyConfigured


class RallyRoundError(Exception):
    """Base exception for the rallyround library."""


class ConfigurationError(RallyRoundError, ImproperlyConfigured):
    """Raised when required settings (Supabase URL/key) are absent."""

    def __init__(self, message: str, missing: Optional[list[str]] = None):
        self.missing = list(missing or [])
        super().__init__(message)


class AuthLookupError(RallyRoundError):
    """Raised when the auth provider could not answer a session or role lookup."""

    def __init__(self, message: str, status_code: Optional[int] = None):
        self.status_code = status_code
        super().__init__(message)
