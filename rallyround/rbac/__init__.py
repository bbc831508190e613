"""
Role-Based Access Control (RBAC) package for RallyRound.

This package provides a small Zanzibar-style rule evaluator:
- A static, immutable list of allow rules (role, resource, action, condition)
- A pure evaluator with first-match semantics
- Fail-closed role resolution against an external role store
- A Django view decorator

Quick Start:
    >>> from rallyround.rbac import AccessContext, check_access
    >>>
    >>> check_access(["member"], "fundraisers", "read")
    True
    >>> check_access(["anonymous"], "events", "read", AccessContext(is_public=True))
    True

Exports:
    - Role, Resource, Action: Enumerations of the access vocabulary
    - AccessContext: Closed record of request-scoped facts for conditions
    - AccessRule: One allow rule
    - ACCESS_RULES: The built-in rule set
    - AccessRuleEngine / check_access / explain_access: Evaluation
    - resolve_user_roles / get_user_roles / has_access: Role lookup
    - require_access: Decorator for Django views
"""

from .decorators import require_access
from .engine import (
    AccessRuleEngine,
    access_engine,
    check_access,
    explain_access,
    find_order_dependent_decisions,
)
from .roles import (
    RoleRepository,
    StaticRoleRepository,
    SupabaseRoleRepository,
    get_role_repository,
    get_user_roles,
    has_access,
    resolve_user_roles,
)
from .rules import ACCESS_RULES
from .types import (
    AccessContext,
    AccessDecision,
    AccessRule,
    Action,
    DecisionReason,
    Resource,
    Role,
    RoleResolution,
    RoleResolutionOutcome,
)

__all__ = [
    # Types
    "AccessContext",
    "AccessDecision",
    "AccessRule",
    "Action",
    "DecisionReason",
    "Resource",
    "Role",
    "RoleResolution",
    "RoleResolutionOutcome",
    # Rules and evaluation
    "ACCESS_RULES",
    "AccessRuleEngine",
    "access_engine",
    "check_access",
    "explain_access",
    "find_order_dependent_decisions",
    # Role lookup
    "RoleRepository",
    "StaticRoleRepository",
    "SupabaseRoleRepository",
    "get_role_repository",
    "get_user_roles",
    "has_access",
    "resolve_user_roles",
    # Decorators
    "require_access",
]
