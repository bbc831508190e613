"""
Django app configuration for the rallyround library.

On startup the configured guard profile is loaded once so that typos in
route tables (unknown roles, resources or actions) fail fast, and missing
Supabase settings are reported in the log.
"""

import logging

from django.apps import AppConfig

logger = logging.getLogger(__name__)


class RallyRoundConfig(AppConfig):
    """Django app configuration for rallyround."""

    default_auto_field = "django.db.models.BigAutoField"
    name = "rallyround"
    verbose_name = "RallyRound access core"

    def ready(self):
        from .config_proxy import get_active_profile, get_settings_proxy
        from .middleware.routes import GuardProfile

        profile_name = get_active_profile()
        results = get_settings_proxy(profile_name).validate()
        for warning in results["warnings"]:
            logger.warning(warning)
        if not results["valid"]:
            for error in results["errors"]:
                logger.error(error)
            return

        profile = GuardProfile.load(profile_name)
        logger.info(
            "Route guard profile '%s' loaded: %d protected prefixes, %d RBAC routes",
            profile.name,
            len(profile.protected_prefixes),
            len(profile.rbac_routes),
        )
