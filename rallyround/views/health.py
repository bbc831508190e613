"""
Health check endpoint.

Reports the API itself and the Supabase database (a HEAD count on the
profiles table). Any failing service turns the answer into a 503.
"""

import logging

from django.http import JsonResponse
from django.utils import timezone
from django.views.decorators.cache import never_cache
from django.views.decorators.http import require_http_methods

from ..auth.exceptions import AuthLookupError
from ..auth.supabase import SupabaseClient
from ..config_proxy import get_setting

logger = logging.getLogger(__name__)


def _database_status() -> str:
    try:
        client = SupabaseClient.from_settings()
        client.count(get_setting("supabase.profiles_table", "profiles"))
    except AuthLookupError as exc:
        logger.warning("Health check database probe failed: %s", exc)
        return "error"
    return "ok"


@never_cache
@require_http_methods(["GET"])
def healthcheck_view(request):
    """
    Return service health as JSON.
    """
    try:
        services = {
            "api": {"status": "ok"},
            "database": {"status": _database_status()},
        }
        payload = {
            "status": "ok",
            "timestamp": timezone.now().isoformat(),
            "services": services,
            "version": get_setting("health.app_version", "0.1.0"),
            "environment": get_setting("health.environment", "development"),
        }
        healthy = all(service["status"] == "ok" for service in services.values())
        return JsonResponse(payload, status=200 if healthy else 503)
    except Exception as exc:
        logger.exception("Health check failed: %s", exc)
        return JsonResponse(
            {
                "status": "error",
                "timestamp": timezone.now().isoformat(),
                "error": "Health check failed",
            },
            status=500,
        )
