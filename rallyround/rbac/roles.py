"""
Role lookup for users.

Role assignments live outside this process (the ``user_roles`` table in
Supabase by default). Resolution is fail-closed: a failed lookup degrades
the caller to ``anonymous`` instead of surfacing an error, and a user with
no usable assignment is treated as a plain ``member``. The outcome records
which of these paths was taken.
"""

import logging
from typing import Any, Iterable, Mapping, Optional, Protocol, Union

from django.utils.module_loading import import_string

from ..auth.supabase import SupabaseClient
from ..config_proxy import get_setting
from .engine import check_access
from .types import (
    AccessContext,
    Action,
    Resource,
    Role,
    RoleResolution,
    RoleResolutionOutcome,
    coerce_enum,
)

logger = logging.getLogger(__name__)


class RoleRepository(Protocol):
    def fetch_roles(self, user_id: str, access_token: Optional[str] = None) -> list[str]:
        ...


class SupabaseRoleRepository:
    """Reads ``role`` from the user roles table through the Supabase REST API."""

    def __init__(self, client: SupabaseClient, table: str = "user_roles"):
        self.client = client
        self.table = table

    @classmethod
    def from_settings(cls, profile: Optional[str] = None) -> "SupabaseRoleRepository":
        return cls(
            SupabaseClient.from_settings(profile),
            table=get_setting("supabase.user_roles_table", "user_roles", profile=profile),
        )

    def fetch_roles(self, user_id: str, access_token: Optional[str] = None) -> list[str]:
        rows = self.client.select(
            self.table, "role", {"user_id": user_id}, access_token=access_token
        )
        return [row.get("role") for row in rows if isinstance(row, dict)]


class StaticRoleRepository:
    """In-memory repository, for local development and tests."""

    def __init__(self, assignments: Optional[Mapping[str, Iterable[str]]] = None):
        self.assignments = {key: list(value) for key, value in (assignments or {}).items()}

    @classmethod
    def from_settings(cls, profile: Optional[str] = None) -> "StaticRoleRepository":
        return cls(get_setting("rbac.static_assignments", {}, profile=profile))

    def fetch_roles(self, user_id: str, access_token: Optional[str] = None) -> list[str]:
        return list(self.assignments.get(user_id, []))


def get_role_repository(profile: Optional[str] = None) -> RoleRepository:
    """Instantiate the repository named by the ``rbac.role_repository`` setting."""
    path = get_setting(
        "rbac.role_repository",
        "rallyround.rbac.roles.SupabaseRoleRepository",
        profile=profile,
    )
    repository_class = import_string(path)
    factory = getattr(repository_class, "from_settings", None)
    if factory is not None:
        return factory(profile)
    return repository_class()


def resolve_user_roles(
    user_id: Optional[str],
    repository: Optional[RoleRepository] = None,
    *,
    access_token: Optional[str] = None,
    profile: Optional[str] = None,
) -> RoleResolution:
    """Look up the roles of ``user_id`` and report how they were obtained."""
    if not user_id:
        return RoleResolution((Role.ANONYMOUS,), RoleResolutionOutcome.UNAUTHENTICATED)

    try:
        if repository is None:
            repository = get_role_repository(profile)
        labels = repository.fetch_roles(user_id, access_token=access_token)
    except Exception as exc:
        logger.warning("Role lookup failed, degrading to anonymous: %s", exc)
        return RoleResolution((Role.ANONYMOUS,), RoleResolutionOutcome.DEGRADED_TO_ANONYMOUS)

    roles: list[Role] = []
    dropped: list[str] = []
    for label in labels or ():
        role = coerce_enum(Role, label)
        if role is None:
            dropped.append(str(label))
        elif role not in roles:
            roles.append(role)
    if dropped:
        logger.warning("Ignoring unknown role labels: %s", dropped)

    if not roles:
        return RoleResolution(
            (Role.MEMBER,), RoleResolutionOutcome.DEGRADED_TO_MEMBER, tuple(dropped)
        )
    return RoleResolution(tuple(roles), RoleResolutionOutcome.RESOLVED, tuple(dropped))


def get_user_roles(
    user_id: Optional[str],
    repository: Optional[RoleRepository] = None,
    **kwargs: Any,
) -> list[Role]:
    """Roles of ``user_id``; ``[anonymous]`` on failure, ``[member]`` when none are assigned."""
    return list(resolve_user_roles(user_id, repository, **kwargs).roles)


def has_access(
    user_id: Optional[str],
    resource: Union[Resource, str],
    action: Union[Action, str],
    context: Optional[AccessContext] = None,
    repository: Optional[RoleRepository] = None,
    **kwargs: Any,
) -> bool:
    """Resolve the roles of ``user_id`` and check them against the built-in rules."""
    roles = get_user_roles(user_id, repository, **kwargs)
    return check_access(roles, resource, action, context)


__all__ = [
    "RoleRepository",
    "StaticRoleRepository",
    "SupabaseRoleRepository",
    "get_role_repository",
    "get_user_roles",
    "has_access",
    "resolve_user_roles",
]
