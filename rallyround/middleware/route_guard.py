"""
RouteGuardMiddleware implementation.

Every request is classified in a fixed order: out-of-scope and bypassed
paths are forwarded untouched; otherwise the Supabase configuration is
checked, the session is resolved from the auth cookie, and the request is
redirected (login, post-login target, unauthorized) or forwarded. Every
failure ends in a redirect, never in an exception reaching the browser.
"""

import logging
from dataclasses import dataclass
from enum import Enum
from typing import Optional
from urllib.parse import urlencode

import sentry_sdk
from django.conf import settings
from django.http import HttpRequest, HttpResponse, HttpResponseRedirect
from django.utils.deprecation import MiddlewareMixin
from django.utils.http import url_has_allowed_host_and_scheme

from ..auth.exceptions import AuthLookupError, ConfigurationError
from ..auth.session import Session, get_session
from ..auth.supabase import get_supabase_config
from ..rbac.engine import check_access
from ..rbac.roles import resolve_user_roles
from ..rbac.types import AccessContext, RoleResolution
from .routes import GuardProfile

logger = logging.getLogger(__name__)


class GuardState(str, Enum):
    BYPASS = "bypass"
    PUBLIC_ALLOWED = "public_allowed"
    REQUIRES_SESSION = "requires_session"
    AUTHENTICATED_REDIRECT = "authenticated_redirect"
    CONFIGURATION_ERROR = "configuration_error"
    AREA_DENIED = "area_denied"
    RBAC_GUARDED = "rbac_guarded"
    RBAC_DENIED = "rbac_denied"
    FORWARD = "forward"


@dataclass(frozen=True)
class GuardDecision:
    state: GuardState
    redirect_url: Optional[str] = None

    @property
    def forwards(self) -> bool:
        return self.redirect_url is None


class TemporaryRedirect(HttpResponseRedirect):
    status_code = 307


class RouteGuardMiddleware(MiddlewareMixin):
    """
    Session and permission gate for page routes.

    The profile is read from the ``route_guard.profile`` setting unless a
    subclass pins ``profile_name``.
    """

    profile_name: Optional[str] = None

    def __init__(self, get_response=None):
        super().__init__(get_response)
        self.get_response = get_response

    def get_profile(self) -> GuardProfile:
        return GuardProfile.load(self.profile_name)

    def process_request(self, request: HttpRequest) -> Optional[HttpResponse]:
        profile = self.get_profile()
        request.rallyround_session = None
        request.rallyround_roles = None
        decision = self.evaluate(request, profile)
        request.rallyround_guard_state = decision.state
        if decision.forwards:
            return None
        return TemporaryRedirect(decision.redirect_url)

    def evaluate(self, request: HttpRequest, profile: GuardProfile) -> GuardDecision:
        path = request.path

        if not profile.applies_to(path) or profile.is_bypassed(path):
            return GuardDecision(GuardState.BYPASS)

        try:
            get_supabase_config(profile.name)
        except ConfigurationError as exc:
            logger.error("Route guard misconfigured: %s", exc)
            return GuardDecision(GuardState.CONFIGURATION_ERROR, profile.error_url)

        session = self._resolve_session(request, profile)
        request.rallyround_session = session
        self._log_request(request, profile, session)

        if session is None:
            if profile.is_protected(path):
                return GuardDecision(
                    GuardState.REQUIRES_SESSION, self._login_redirect(profile, path)
                )
            return GuardDecision(GuardState.PUBLIC_ALLOWED)

        if profile.is_login_path(path):
            return GuardDecision(
                GuardState.AUTHENTICATED_REDIRECT,
                self._post_login_target(request, profile),
            )

        if profile.area_roles:
            resolution = self._resolve_roles(request, profile, session)
            if not profile.area_roles.intersection(resolution.roles):
                logger.warning(
                    "Route guard denied %s: no role in %s",
                    path,
                    sorted(role.value for role in profile.area_roles),
                )
                return GuardDecision(GuardState.AREA_DENIED, profile.unauthorized_url)

        routes = profile.rbac_routes_for(path)
        if not routes:
            return GuardDecision(GuardState.FORWARD)

        if profile.rbac_debug_bypass and settings.DEBUG:
            logger.info("RBAC bypassed for %s (DEBUG=True)", path)
            return GuardDecision(GuardState.FORWARD)

        resolution = self._resolve_roles(request, profile, session)
        context = AccessContext(user_id=session.user.id)
        for route in routes:
            if not check_access(resolution.roles, route.resource, route.action, context):
                logger.warning(
                    "Route guard denied %s: %s:%s not granted",
                    path,
                    route.resource.value,
                    route.action.value,
                )
                return GuardDecision(GuardState.RBAC_DENIED, profile.rbac_denied_url)
        return GuardDecision(GuardState.RBAC_GUARDED)

    def _resolve_session(self, request: HttpRequest, profile: GuardProfile) -> Optional[Session]:
        try:
            return get_session(request, profile.name)
        except AuthLookupError as exc:
            logger.warning("Session lookup failed, treating request as anonymous: %s", exc)
            sentry_sdk.capture_exception(exc)
            return None

    def _resolve_roles(
        self, request: HttpRequest, profile: GuardProfile, session: Session
    ) -> RoleResolution:
        resolution = request.rallyround_roles
        if resolution is None:
            resolution = resolve_user_roles(
                session.user.id,
                access_token=session.access_token or None,
                profile=profile.name,
            )
            request.rallyround_roles = resolution
        return resolution

    def _login_redirect(self, profile: GuardProfile, path: str) -> str:
        return f"{profile.login_url}?{urlencode({'redirect': path}, safe='/')}"

    def _post_login_target(self, request: HttpRequest, profile: GuardProfile) -> str:
        target = request.GET.get("redirect")
        if (
            target
            and target.startswith("/")
            and url_has_allowed_host_and_scheme(target, allowed_hosts=None)
        ):
            return target
        return profile.default_login_redirect

    def _log_request(
        self, request: HttpRequest, profile: GuardProfile, session: Optional[Session]
    ) -> None:
        if not profile.log_decisions:
            return
        logger.debug(
            "Route guard [%s] %s session=%s user=%s cookies=%s",
            profile.name,
            request.path,
            session is not None,
            session.user.id if session else None,
            sorted(request.COOKIES.keys()),
        )


class PublicRouteGuardMiddleware(RouteGuardMiddleware):
    profile_name = "public"


class AdminRouteGuardMiddleware(RouteGuardMiddleware):
    profile_name = "admin"


__all__ = [
    "AdminRouteGuardMiddleware",
    "GuardDecision",
    "GuardState",
    "PublicRouteGuardMiddleware",
    "RouteGuardMiddleware",
    "TemporaryRedirect",
]
