"""
Management command printing the allow/deny matrix of the built-in rules.
"""

import json

from django.core.management.base import BaseCommand

from rallyround.rbac.engine import access_engine
from rallyround.rbac.types import AccessContext, Action, Resource, Role


class Command(BaseCommand):
    """
    Review tool for policy changes: which role may do what.
    """

    help = "Print the allow/deny matrix of the access rules for one or more roles."

    def add_arguments(self, parser):
        parser.add_argument(
            "--role",
            action="append",
            dest="roles",
            choices=[role.value for role in Role],
            help="Role to evaluate (repeatable). Defaults to every role.",
        )
        parser.add_argument(
            "--format",
            choices=["table", "json"],
            default="table",
            help="Output format (table or json)",
        )
        parser.add_argument(
            "--public",
            action="store_true",
            help="Evaluate with is_public=True in the context",
        )
        parser.add_argument(
            "--owner",
            action="store_true",
            help="Evaluate as the owner of the resource",
        )
        parser.add_argument(
            "--member-of",
            action="store_true",
            help="Evaluate as a member of the organization and team in the context",
        )

    def handle(self, *args, **options):
        roles = [Role(value) for value in (options.get("roles") or [r.value for r in Role])]
        context = self._build_context(options)
        matrix = {
            role.value: {
                resource.value: {
                    action.value: access_engine.check_access([role], resource, action, context)
                    for action in Action
                }
                for resource in Resource
            }
            for role in roles
        }

        if options["format"] == "json":
            self.stdout.write(json.dumps(matrix, indent=2))
            return

        for role_name, resources in matrix.items():
            self.stdout.write(self.style.MIGRATE_HEADING(role_name))
            header = "  {:<14}".format("resource") + "".join(
                "{:<8}".format(action.value) for action in Action
            )
            self.stdout.write(header)
            for resource_name, actions in resources.items():
                cells = "".join(
                    "{:<8}".format("allow" if allowed else "-")
                    for allowed in actions.values()
                )
                self.stdout.write("  {:<14}{}".format(resource_name, cells))

    def _build_context(self, options) -> AccessContext:
        user_id = "user"
        return AccessContext(
            user_id=user_id,
            org_id="org" if options.get("member_of") else None,
            team_id="team" if options.get("member_of") else None,
            user_orgs=("org",) if options.get("member_of") else (),
            user_teams=("team",) if options.get("member_of") else (),
            resource_owner_id=user_id if options.get("owner") else None,
            is_public=bool(options.get("public")),
        )
