"""
Built-in access rules.

The rule list is process-wide configuration: it is built once at import time
into an immutable tuple and never mutated afterwards. Rules only ever allow;
the first satisfied rule grants access.
"""

from .types import AccessContext, AccessRule

_ALL_ACTIONS = ("create", "read", "update", "delete", "manage")
_CORE_RESOURCES = ("fundraisers", "competitions", "teams", "members", "events")
_ACTIVITY_RESOURCES = ("fundraisers", "competitions", "events")


def belongs_to_org(ctx: AccessContext) -> bool:
    return bool(ctx.org_id) and ctx.org_id in ctx.user_orgs


def belongs_to_team(ctx: AccessContext) -> bool:
    return bool(ctx.team_id) and ctx.team_id in ctx.user_teams


def owns_resource(ctx: AccessContext) -> bool:
    # Both ids must be known; an empty context is never self-owned.
    return bool(ctx.user_id) and ctx.resource_owner_id == ctx.user_id


def is_public(ctx: AccessContext) -> bool:
    return ctx.is_public is True


ACCESS_RULES: tuple[AccessRule, ...] = (
    AccessRule.build(
        "admin-all",
        roles=["admin"],
        resources=_CORE_RESOURCES,
        actions=_ALL_ACTIONS,
    ),
    AccessRule.build(
        "org-admin-own-org",
        roles=["org_admin"],
        resources=_CORE_RESOURCES,
        actions=_ALL_ACTIONS,
        condition=belongs_to_org,
    ),
    AccessRule.build(
        "team-manager-team",
        roles=["team_manager"],
        resources=["teams", "members"],
        actions=["read", "update", "manage"],
        condition=belongs_to_team,
    ),
    AccessRule.build(
        "team-manager-activities",
        roles=["team_manager"],
        resources=_ACTIVITY_RESOURCES,
        actions=["create", "read", "update"],
        condition=belongs_to_team,
    ),
    AccessRule.build(
        "member-read",
        roles=["member"],
        resources=["fundraisers", "competitions", "teams", "events"],
        actions=["read"],
    ),
    AccessRule.build(
        "member-owner",
        roles=["member"],
        resources=_ACTIVITY_RESOURCES,
        actions=["update", "delete"],
        condition=owns_resource,
    ),
    AccessRule.build(
        "anonymous-public-read",
        roles=["anonymous"],
        resources=_ACTIVITY_RESOURCES,
        actions=["read"],
        condition=is_public,
    ),
)


__all__ = [
    "ACCESS_RULES",
    "belongs_to_org",
    "belongs_to_team",
    "is_public",
    "owns_resource",
]
