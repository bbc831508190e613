"""
Access rule evaluation.

The engine scans its rules in declaration order. A rule applies when it
names the resource, the action and at least one of the caller's roles; an
applicable rule without a condition grants access immediately, one with a
condition grants access only when the condition holds, and a failed
condition never stops the scan. Nothing matching means no access.
"""

import itertools
import logging
from typing import Iterable, Optional, Sequence, Union

from .rules import ACCESS_RULES
from .types import (
    AccessContext,
    AccessDecision,
    AccessRule,
    Action,
    DecisionReason,
    Resource,
    Role,
    coerce_enum,
)

logger = logging.getLogger(__name__)

RoleLike = Union[Role, str]


class AccessRuleEngine:
    """Stateless evaluator over an immutable rule list."""

    def __init__(self, rules: Iterable[AccessRule] = ACCESS_RULES):
        self._rules: tuple[AccessRule, ...] = tuple(rules)

    @property
    def rules(self) -> tuple[AccessRule, ...]:
        return self._rules

    def check_access(
        self,
        roles: Iterable[RoleLike],
        resource: Union[Resource, str],
        action: Union[Action, str],
        context: Optional[AccessContext] = None,
    ) -> bool:
        """Return True if any rule grants ``action`` on ``resource`` to ``roles``."""
        return self.explain_access(roles, resource, action, context).allowed

    def explain_access(
        self,
        roles: Iterable[RoleLike],
        resource: Union[Resource, str],
        action: Union[Action, str],
        context: Optional[AccessContext] = None,
    ) -> AccessDecision:
        """Run the rule scan and report which rule, if any, granted access."""
        role_set = _normalize_roles(roles)
        resource_value = coerce_enum(Resource, resource)
        action_value = coerce_enum(Action, action)
        if context is None:
            context = AccessContext()

        if not role_set or resource_value is None or action_value is None:
            return AccessDecision(False, DecisionReason.NO_MATCHING_RULE)

        condition_failed = False
        for rule in self._rules:
            if not rule.covers(role_set, resource_value, action_value):
                continue
            if rule.condition is None or _condition_holds(rule, context):
                return AccessDecision(True, DecisionReason.RULE_MATCHED, rule.name)
            condition_failed = True

        reason = (
            DecisionReason.CONDITION_FAILED
            if condition_failed
            else DecisionReason.NO_MATCHING_RULE
        )
        return AccessDecision(False, reason)


def _normalize_roles(roles: Iterable[RoleLike]) -> frozenset[Role]:
    if isinstance(roles, (str, Role)):
        roles = [roles]
    normalized = set()
    for role in roles or ():
        value = coerce_enum(Role, role)
        if value is not None:
            normalized.add(value)
    return frozenset(normalized)


def _condition_holds(rule: AccessRule, context: AccessContext) -> bool:
    try:
        return bool(rule.condition(context))
    except Exception as exc:
        logger.warning("Condition of access rule '%s' failed: %s", rule.name, exc)
        return False


def find_order_dependent_decisions(
    rules: Sequence[AccessRule],
    contexts: Iterable[AccessContext],
    roles: Iterable[Role] = tuple(Role),
) -> list[tuple[Role, Resource, Action, AccessContext]]:
    """
    Compare the forward and reversed rule lists and return every
    (role, resource, action, context) whose decision differs between them.

    An empty result means the rule set is order independent for the given
    contexts.
    """
    forward = AccessRuleEngine(rules)
    backward = AccessRuleEngine(tuple(reversed(tuple(rules))))
    contexts = list(contexts)
    disagreements = []
    for role, resource, action in itertools.product(list(roles), Resource, Action):
        for context in contexts:
            if forward.check_access([role], resource, action, context) != backward.check_access(
                [role], resource, action, context
            ):
                disagreements.append((role, resource, action, context))
    return disagreements


# Global engine over the built-in rules
access_engine = AccessRuleEngine()


def check_access(
    roles: Iterable[RoleLike],
    resource: Union[Resource, str],
    action: Union[Action, str],
    context: Optional[AccessContext] = None,
) -> bool:
    """Check access against the built-in rules."""
    return access_engine.check_access(roles, resource, action, context)


def explain_access(
    roles: Iterable[RoleLike],
    resource: Union[Resource, str],
    action: Union[Action, str],
    context: Optional[AccessContext] = None,
) -> AccessDecision:
    """Explain an access check against the built-in rules."""
    return access_engine.explain_access(roles, resource, action, context)


__all__ = [
    "AccessRuleEngine",
    "access_engine",
    "check_access",
    "explain_access",
    "find_order_dependent_decisions",
]
