"""
Route tables for the route guard.

A guard profile bundles the static tables one frontend needs: which paths
the guard looks at, which require a session, which require a role area, and
which are mapped to a (resource, action) permission. The public site and the
admin console ship as built-in profiles; projects can override any key via
``RALLYROUND_PROFILES``.
"""

import re
from dataclasses import dataclass
from typing import Any, Iterable, Optional

from ..config_proxy import get_setting
from ..rbac.types import Action, Resource, Role

_FILE_EXTENSION_RE = re.compile(r"\.[A-Za-z0-9]+$")


PROFILE_DEFAULTS: dict[str, dict[str, Any]] = {
    "public": {
        "route_guard": {
            "matcher": [],
            "protected_prefixes": [
                "/dashboard",
                "/profile",
                "/fundraisers/create",
                "/competitions/create",
                "/teams",
                "/settings",
            ],
            "area_roles": [],
            "rbac_routes": [
                {"path": "/fundraisers/create", "resource": "fundraisers", "action": "create"},
                {"path": "/teams/manage", "resource": "teams", "action": "manage"},
                {"path": "/competitions/create", "resource": "competitions", "action": "create"},
            ],
            "rbac_denied_url": "/unauthorized",
        },
    },
    "admin": {
        "route_guard": {
            "matcher": ["/admin"],
            "protected_prefixes": ["/admin"],
            "area_roles": ["admin", "org_admin"],
            "rbac_routes": [
                {"path": "/admin/users", "resource": "members", "action": "manage"},
                {"path": "/admin/organizations", "resource": "organizations", "action": "manage"},
                {"path": "/admin/fundraisers", "resource": "fundraisers", "action": "manage"},
                {"path": "/admin/competitions", "resource": "competitions", "action": "manage"},
            ],
            "rbac_denied_url": "/admin/unauthorized",
        },
    },
}


def path_matches_prefix(path: str, prefix: str) -> bool:
    """Segment-aware prefix test: ``/teams`` matches ``/teams/1`` but not ``/teamsters``."""
    prefix = prefix.rstrip("/")
    if not prefix:
        return True
    return path == prefix or path.startswith(prefix + "/")


def has_file_extension(path: str) -> bool:
    last_segment = path.rstrip("/").rsplit("/", 1)[-1]
    return bool(_FILE_EXTENSION_RE.search(last_segment))


@dataclass(frozen=True)
class RbacRoute:
    path: str
    resource: Resource
    action: Action

    @classmethod
    def from_config(cls, entry: Any) -> "RbacRoute":
        if isinstance(entry, RbacRoute):
            return entry
        if isinstance(entry, dict):
            return cls(entry["path"], Resource(entry["resource"]), Action(entry["action"]))
        path, resource, action = entry
        return cls(path, Resource(resource), Action(action))

    def matches(self, path: str) -> bool:
        return path_matches_prefix(path, self.path)


@dataclass(frozen=True)
class GuardProfile:
    """Resolved configuration for one guard profile."""

    name: str
    matcher: tuple[str, ...]
    bypass_prefixes: tuple[str, ...]
    bypass_file_extensions: bool
    protected_prefixes: tuple[str, ...]
    area_roles: frozenset[Role]
    rbac_routes: tuple[RbacRoute, ...]
    auth_cookie_name: str
    login_url: str
    default_login_redirect: str
    error_url: str
    unauthorized_url: str
    rbac_denied_url: str
    rbac_debug_bypass: bool = False
    log_decisions: bool = True

    @classmethod
    def load(cls, name: Optional[str] = None) -> "GuardProfile":
        """Build the profile ``name`` (default: the configured one) from settings."""
        if name is None:
            name = get_setting("route_guard.profile", "public")

        def setting(key: str, default: Any = None) -> Any:
            return get_setting(f"route_guard.{key}", default, profile=name)

        unauthorized_url = setting("unauthorized_url", "/unauthorized")
        return cls(
            name=name,
            matcher=_as_tuple(setting("matcher", [])),
            bypass_prefixes=_as_tuple(setting("bypass_prefixes", [])),
            bypass_file_extensions=bool(setting("bypass_file_extensions", True)),
            protected_prefixes=_as_tuple(setting("protected_prefixes", [])),
            area_roles=frozenset(Role(role) for role in setting("area_roles", []) or ()),
            rbac_routes=tuple(RbacRoute.from_config(entry) for entry in setting("rbac_routes", []) or ()),
            auth_cookie_name=setting("auth_cookie_name", "sb-auth-token"),
            login_url=setting("login_url", "/login"),
            default_login_redirect=setting("default_login_redirect", "/dashboard"),
            error_url=setting("error_url", "/error"),
            unauthorized_url=unauthorized_url,
            rbac_denied_url=setting("rbac_denied_url", unauthorized_url),
            rbac_debug_bypass=bool(setting("rbac_debug_bypass", False)),
            log_decisions=bool(setting("log_decisions", True)),
        )

    def applies_to(self, path: str) -> bool:
        if not self.matcher:
            return True
        return any(path_matches_prefix(path, prefix) for prefix in self.matcher)

    def is_bypassed(self, path: str) -> bool:
        # The error page must stay reachable while the guard is misconfigured.
        if self.error_url.rstrip("/") and path_matches_prefix(path, self.error_url):
            return True
        if self.bypass_file_extensions and has_file_extension(path):
            return True
        return any(
            path.startswith(prefix) or path_matches_prefix(path, prefix)
            for prefix in self.bypass_prefixes
        )

    def is_protected(self, path: str) -> bool:
        return any(path_matches_prefix(path, prefix) for prefix in self.protected_prefixes)

    def is_login_path(self, path: str) -> bool:
        return path.rstrip("/") == self.login_url.rstrip("/")

    def rbac_routes_for(self, path: str) -> list[RbacRoute]:
        return [route for route in self.rbac_routes if route.matches(path)]


def _as_tuple(value: Optional[Iterable[str]]) -> tuple[str, ...]:
    if not value:
        return ()
    if isinstance(value, str):
        return (value,)
    return tuple(value)


__all__ = [
    "GuardProfile",
    "PROFILE_DEFAULTS",
    "RbacRoute",
    "has_file_extension",
    "path_matches_prefix",
]
