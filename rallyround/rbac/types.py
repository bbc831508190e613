"""
Type definitions for the RBAC (Role-Based Access Control) system.

This module contains enums and dataclasses used throughout the RBAC package:
- Role: Labels a user can hold (globally or per organization/team)
- Resource: Coarse categories of protected objects
- Action: Operations a rule can grant
- AccessContext: Request-scoped facts consumed by rule conditions
- AccessRule: One static allow rule
- AccessDecision: Explanation of an access check
- RoleResolution: Outcome of looking up the roles of a user
"""

from dataclasses import dataclass, field
from enum import Enum
from typing import Any, Callable, Iterable, Optional, Union


class Role(str, Enum):
    """Roles a user may hold. Roles are not hierarchical."""

    ADMIN = "admin"
    ORG_ADMIN = "org_admin"
    TEAM_MANAGER = "team_manager"
    MEMBER = "member"
    ANONYMOUS = "anonymous"


class Resource(str, Enum):
    """Protected object categories."""

    FUNDRAISERS = "fundraisers"
    COMPETITIONS = "competitions"
    TEAMS = "teams"
    MEMBERS = "members"
    EVENTS = "events"
    ORGANIZATIONS = "organizations"


class Action(str, Enum):
    """Operations. MANAGE does not imply the other actions."""

    CREATE = "create"
    READ = "read"
    UPDATE = "update"
    DELETE = "delete"
    MANAGE = "manage"


def coerce_enum(enum_class: type[Enum], value: Any) -> Optional[Enum]:
    """Return the member of ``enum_class`` matching ``value`` or None."""
    if isinstance(value, enum_class):
        return value
    try:
        return enum_class(value)
    except ValueError:
        return None


@dataclass(frozen=True)
class AccessContext:
    """Request-scoped facts passed to rule conditions."""

    user_id: Optional[str] = None
    org_id: Optional[str] = None
    team_id: Optional[str] = None
    resource_owner_id: Optional[str] = None
    user_orgs: tuple[str, ...] = ()
    user_teams: tuple[str, ...] = ()
    is_public: bool = False

    def __post_init__(self):
        # Normalize list inputs so the context stays hashable and immutable.
        object.__setattr__(self, "user_orgs", tuple(self.user_orgs or ()))
        object.__setattr__(self, "user_teams", tuple(self.user_teams or ()))


Condition = Callable[[AccessContext], bool]


@dataclass(frozen=True)
class AccessRule:
    """A static allow rule."""

    name: str
    roles: frozenset[Role]
    resources: frozenset[Resource]
    actions: frozenset[Action]
    condition: Optional[Condition] = None

    @classmethod
    def build(
        cls,
        name: str,
        roles: Iterable[Union[Role, str]],
        resources: Iterable[Union[Resource, str]],
        actions: Iterable[Union[Action, str]],
        condition: Optional[Condition] = None,
    ) -> "AccessRule":
        """Create a rule from plain labels, validating every one of them."""
        return cls(
            name=name,
            roles=frozenset(Role(role) for role in roles),
            resources=frozenset(Resource(resource) for resource in resources),
            actions=frozenset(Action(action) for action in actions),
            condition=condition,
        )

    def covers(self, roles: Iterable[Role], resource: Resource, action: Action) -> bool:
        """True when the rule names the resource, the action and any of the roles."""
        return (
            resource in self.resources
            and action in self.actions
            and any(role in self.roles for role in roles)
        )


class DecisionReason(str, Enum):
    RULE_MATCHED = "rule_matched"
    CONDITION_FAILED = "condition_failed"
    NO_MATCHING_RULE = "no_matching_rule"


@dataclass(frozen=True)
class AccessDecision:
    """Result of an access check with the rule that granted it."""

    allowed: bool
    reason: DecisionReason
    rule: Optional[str] = None

    def __bool__(self) -> bool:
        return self.allowed


class RoleResolutionOutcome(str, Enum):
    """How a role list was obtained."""

    RESOLVED = "resolved"
    UNAUTHENTICATED = "unauthenticated"
    DEGRADED_TO_ANONYMOUS = "degraded_to_anonymous"
    DEGRADED_TO_MEMBER = "degraded_to_member"


@dataclass(frozen=True)
class RoleResolution:
    roles: tuple[Role, ...]
    outcome: RoleResolutionOutcome
    dropped_labels: tuple[str, ...] = field(default=())

    @property
    def degraded(self) -> bool:
        return self.outcome in (
            RoleResolutionOutcome.DEGRADED_TO_ANONYMOUS,
            RoleResolutionOutcome.DEGRADED_TO_MEMBER,
        )


__all__ = [
    "AccessContext",
    "AccessDecision",
    "AccessRule",
    "Action",
    "Condition",
    "DecisionReason",
    "Resource",
    "Role",
    "RoleResolution",
    "RoleResolutionOutcome",
    "coerce_enum",
]
