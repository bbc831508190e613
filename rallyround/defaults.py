"""
Default configuration for the rallyround library.

The goal of this module is to expose a single source of truth for every
setting that the library actually consumes. Route tables for the built-in
guard profiles live in ``rallyround.middleware.routes``; everything else is
grouped here by feature area.
"""

from __future__ import annotations

from typing import Any

LIBRARY_VERSION = "0.1.0"
LIBRARY_NAME = "rallyround"


# --------------------------------------------------------------------------- #
# Library-wide defaults (grouped by feature area)
# --------------------------------------------------------------------------- #
LIBRARY_DEFAULTS: dict[str, Any] = {
    "supabase": {
        "url": "",
        "anon_key": "",
        "jwt_secret": "",
        "jwt_audience": "authenticated",
        "timeout_seconds": 5,
        "user_roles_table": "user_roles",
        "profiles_table": "profiles",
    },
    "route_guard": {
        "profile": "public",
        "auth_cookie_name": "sb-auth-token",
        "bypass_prefixes": ["/_next/", "/api/", "/auth/callback"],
        "bypass_file_extensions": True,
        "login_url": "/login",
        "default_login_redirect": "/dashboard",
        "error_url": "/error",
        "unauthorized_url": "/unauthorized",
        "rbac_debug_bypass": False,
        "log_decisions": True,
    },
    "rbac": {
        "role_repository": "rallyround.rbac.roles.SupabaseRoleRepository",
    },
    "health": {
        "app_version": "0.1.0",
        "environment": "development",
    },
}


def get_library_defaults() -> dict[str, Any]:
    """Return a copy of the library defaults."""
    import copy

    return copy.deepcopy(LIBRARY_DEFAULTS)


__all__ = ["LIBRARY_DEFAULTS", "LIBRARY_NAME", "LIBRARY_VERSION", "get_library_defaults"]
