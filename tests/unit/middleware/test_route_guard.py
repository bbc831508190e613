"""
Unit tests for RouteGuardMiddleware.
"""

from unittest.mock import patch

import pytest
from django.http import HttpResponse
from django.test import RequestFactory, override_settings

from rallyround.auth import AuthLookupError, Session, SessionUser
from rallyround.middleware import (
    AdminRouteGuardMiddleware,
    PublicRouteGuardMiddleware,
    RouteGuardMiddleware,
)
from rallyround.middleware.route_guard import GuardState
from rallyround.rbac import Role, RoleResolution, RoleResolutionOutcome

pytestmark = pytest.mark.unit

SESSION = Session(SessionUser("u1", "coach@example.org"), "tok")


def _resolution(*roles):
    return RoleResolution(tuple(Role(role) for role in roles), RoleResolutionOutcome.RESOLVED)


class TestPublicRouteGuard:
    @pytest.fixture
    def middleware(self):
        return PublicRouteGuardMiddleware(lambda r: HttpResponse("ok"))

    @pytest.fixture
    def rf(self):
        return RequestFactory()

    @pytest.mark.parametrize(
        "path",
        [
            "/_next/static/chunk.js",
            "/api/healthcheck",
            "/favicon.ico",
            "/images/logo.png",
            "/auth/callback",
            "/auth/callback/github",
        ],
    )
    @patch("rallyround.middleware.route_guard.get_session")
    def test_bypassed_paths_skip_session_lookup(self, mock_get_session, path, middleware, rf):
        request = rf.get(path)

        assert middleware.process_request(request) is None
        assert request.rallyround_guard_state == GuardState.BYPASS
        mock_get_session.assert_not_called()

    @override_settings(RALLYROUND={"supabase": {"url": "", "anon_key": ""}})
    @patch("rallyround.middleware.route_guard.get_session")
    def test_missing_configuration_redirects_to_error(self, mock_get_session, middleware, rf):
        response = middleware.process_request(rf.get("/dashboard"))

        assert response.status_code == 307
        assert response["Location"] == "/error"
        mock_get_session.assert_not_called()

    @override_settings(RALLYROUND={"supabase": {"url": "", "anon_key": ""}})
    def test_missing_configuration_does_not_affect_bypassed_paths(self, middleware, rf):
        assert middleware.process_request(rf.get("/api/healthcheck")) is None

    @override_settings(RALLYROUND={"supabase": {"url": "", "anon_key": ""}})
    @patch("rallyround.middleware.route_guard.get_session")
    def test_error_page_is_reachable_without_configuration(self, mock_get_session, middleware, rf):
        request = rf.get("/error")

        assert middleware.process_request(request) is None
        assert request.rallyround_guard_state == GuardState.BYPASS
        mock_get_session.assert_not_called()

    @override_settings(
        RALLYROUND={"supabase": {"url": "", "anon_key": ""}},
        RALLYROUND_PROFILES={"public": {"route_guard": {"error_url": "/oops"}}},
    )
    def test_custom_error_page_is_reachable_without_configuration(self, middleware, rf):
        assert middleware.process_request(rf.get("/oops")) is None
        assert middleware.process_request(rf.get("/dashboard"))["Location"] == "/oops"

    @patch("rallyround.middleware.route_guard.get_session", return_value=None)
    @pytest.mark.parametrize("path", ["/dashboard", "/settings/billing", "/teams/42"])
    def test_protected_path_without_session_redirects_to_login(
        self, mock_get_session, path, middleware, rf
    ):
        request = rf.get(path)

        response = middleware.process_request(request)

        assert response.status_code == 307
        assert response["Location"] == f"/login?redirect={path}"
        assert request.rallyround_guard_state == GuardState.REQUIRES_SESSION

    @patch("rallyround.middleware.route_guard.get_session", return_value=None)
    def test_rbac_route_without_session_redirects_to_login(self, mock_get_session, middleware, rf):
        response = middleware.process_request(rf.get("/competitions/create"))

        assert response["Location"] == "/login?redirect=/competitions/create"

    @patch("rallyround.middleware.route_guard.get_session", return_value=None)
    @pytest.mark.parametrize("path", ["/", "/fundraisers", "/fundraisers/7", "/teamsters", "/login"])
    def test_public_path_without_session_is_forwarded(
        self, mock_get_session, path, middleware, rf
    ):
        request = rf.get(path)

        assert middleware.process_request(request) is None
        assert request.rallyround_guard_state == GuardState.PUBLIC_ALLOWED
        assert request.rallyround_session is None

    @patch("rallyround.middleware.route_guard.sentry_sdk.capture_exception")
    @patch("rallyround.middleware.route_guard.get_session")
    def test_session_lookup_failure_is_treated_as_anonymous(
        self, mock_get_session, mock_capture, middleware, rf
    ):
        error = AuthLookupError("timeout")
        mock_get_session.side_effect = error

        response = middleware.process_request(rf.get("/dashboard"))

        assert response["Location"] == "/login?redirect=/dashboard"
        mock_capture.assert_called_once_with(error)

    @patch("rallyround.middleware.route_guard.get_session", return_value=SESSION)
    def test_login_with_session_redirects_to_requested_target(self, mock_get_session, middleware, rf):
        request = rf.get("/login", {"redirect": "/teams"})

        response = middleware.process_request(request)

        assert response.status_code == 307
        assert response["Location"] == "/teams"
        assert request.rallyround_guard_state == GuardState.AUTHENTICATED_REDIRECT

    @patch("rallyround.middleware.route_guard.get_session", return_value=SESSION)
    def test_login_with_session_defaults_to_dashboard(self, mock_get_session, middleware, rf):
        response = middleware.process_request(rf.get("/login"))

        assert response["Location"] == "/dashboard"

    @patch("rallyround.middleware.route_guard.get_session", return_value=SESSION)
    @pytest.mark.parametrize(
        "target", ["https://evil.example.com/", "//evil.example.com", "dashboard", "/\\evil.example.com"]
    )
    def test_login_redirect_ignores_unsafe_targets(self, mock_get_session, target, middleware, rf):
        response = middleware.process_request(rf.get("/login", {"redirect": target}))

        assert response["Location"] == "/dashboard"

    @patch("rallyround.middleware.route_guard.resolve_user_roles")
    @patch("rallyround.middleware.route_guard.get_session", return_value=SESSION)
    def test_protected_path_with_session_is_forwarded(
        self, mock_get_session, mock_roles, middleware, rf
    ):
        request = rf.get("/dashboard")

        assert middleware.process_request(request) is None
        assert request.rallyround_guard_state == GuardState.FORWARD
        assert request.rallyround_session == SESSION
        mock_roles.assert_not_called()

    @patch("rallyround.middleware.route_guard.resolve_user_roles")
    @patch("rallyround.middleware.route_guard.get_session", return_value=SESSION)
    def test_rbac_route_denied_for_member(self, mock_get_session, mock_roles, middleware, rf):
        mock_roles.return_value = _resolution("member")
        request = rf.get("/fundraisers/create")

        response = middleware.process_request(request)

        assert response.status_code == 307
        assert response["Location"] == "/unauthorized"
        assert request.rallyround_guard_state == GuardState.RBAC_DENIED
        mock_roles.assert_called_once_with("u1", access_token="tok", profile="public")

    @patch("rallyround.middleware.route_guard.resolve_user_roles")
    @patch("rallyround.middleware.route_guard.get_session", return_value=SESSION)
    def test_rbac_route_allowed_for_admin(self, mock_get_session, mock_roles, middleware, rf):
        mock_roles.return_value = _resolution("admin")
        request = rf.get("/teams/manage/roster")

        assert middleware.process_request(request) is None
        assert request.rallyround_guard_state == GuardState.RBAC_GUARDED
        assert request.rallyround_roles.roles == (Role.ADMIN,)

    @patch("rallyround.middleware.route_guard.resolve_user_roles")
    @patch("rallyround.middleware.route_guard.get_session", return_value=SESSION)
    def test_context_dependent_rule_does_not_grant_route(
        self, mock_get_session, mock_roles, middleware, rf
    ):
        # Team managers are only granted creation inside their own team.
        mock_roles.return_value = _resolution("team_manager")

        response = middleware.process_request(rf.get("/competitions/create"))

        assert response["Location"] == "/unauthorized"

    @patch("rallyround.middleware.route_guard.resolve_user_roles")
    @patch("rallyround.middleware.route_guard.get_session", return_value=SESSION)
    def test_degraded_role_lookup_is_denied(self, mock_get_session, mock_roles, middleware, rf):
        mock_roles.return_value = RoleResolution(
            (Role.ANONYMOUS,), RoleResolutionOutcome.DEGRADED_TO_ANONYMOUS
        )

        response = middleware.process_request(rf.get("/fundraisers/create"))

        assert response["Location"] == "/unauthorized"

    @override_settings(DEBUG=True)
    @patch("rallyround.middleware.route_guard.resolve_user_roles")
    @patch("rallyround.middleware.route_guard.get_session", return_value=SESSION)
    def test_rbac_enforced_in_debug_without_bypass_flag(
        self, mock_get_session, mock_roles, middleware, rf
    ):
        mock_roles.return_value = _resolution("member")

        response = middleware.process_request(rf.get("/fundraisers/create"))

        assert response["Location"] == "/unauthorized"

    @patch("rallyround.middleware.route_guard.resolve_user_roles")
    @patch("rallyround.middleware.route_guard.get_session", return_value=SESSION)
    def test_debug_bypass_only_applies_with_debug(self, mock_get_session, mock_roles, middleware, rf):
        mock_roles.return_value = _resolution("member")
        guard_settings = {
            "supabase": {"url": "https://test.supabase.co", "anon_key": "test-key"},
            "route_guard": {"rbac_debug_bypass": True},
        }

        with override_settings(RALLYROUND=guard_settings, DEBUG=False):
            response = middleware.process_request(rf.get("/fundraisers/create"))
        assert response["Location"] == "/unauthorized"

        with override_settings(RALLYROUND=guard_settings, DEBUG=True):
            assert middleware.process_request(rf.get("/fundraisers/create")) is None


class TestAdminRouteGuard:
    @pytest.fixture
    def middleware(self):
        return AdminRouteGuardMiddleware(lambda r: HttpResponse("ok"))

    @pytest.fixture
    def rf(self):
        return RequestFactory()

    @patch("rallyround.middleware.route_guard.get_session")
    def test_paths_outside_admin_area_are_ignored(self, mock_get_session, middleware, rf):
        request = rf.get("/fundraisers/create")

        assert middleware.process_request(request) is None
        assert request.rallyround_guard_state == GuardState.BYPASS
        mock_get_session.assert_not_called()

    @patch("rallyround.middleware.route_guard.get_session", return_value=None)
    def test_admin_without_session_redirects_to_login(self, mock_get_session, middleware, rf):
        response = middleware.process_request(rf.get("/admin/users"))

        assert response["Location"] == "/login?redirect=/admin/users"

    @patch("rallyround.middleware.route_guard.resolve_user_roles")
    @patch("rallyround.middleware.route_guard.get_session", return_value=SESSION)
    def test_member_is_kept_out_of_admin_area(self, mock_get_session, mock_roles, middleware, rf):
        mock_roles.return_value = _resolution("member")
        request = rf.get("/admin")

        response = middleware.process_request(request)

        assert response["Location"] == "/unauthorized"
        assert request.rallyround_guard_state == GuardState.AREA_DENIED

    @patch("rallyround.middleware.route_guard.resolve_user_roles")
    @patch("rallyround.middleware.route_guard.get_session", return_value=SESSION)
    def test_admin_manages_users(self, mock_get_session, mock_roles, middleware, rf):
        mock_roles.return_value = _resolution("admin")
        request = rf.get("/admin/users/42")

        assert middleware.process_request(request) is None
        assert request.rallyround_guard_state == GuardState.RBAC_GUARDED
        mock_roles.assert_called_once()

    @patch("rallyround.middleware.route_guard.resolve_user_roles")
    @patch("rallyround.middleware.route_guard.get_session", return_value=SESSION)
    def test_organizations_page_is_denied_to_everyone(
        self, mock_get_session, mock_roles, middleware, rf
    ):
        mock_roles.return_value = _resolution("admin", "org_admin")

        response = middleware.process_request(rf.get("/admin/organizations"))

        assert response["Location"] == "/admin/unauthorized"

    @patch("rallyround.middleware.route_guard.resolve_user_roles")
    @patch("rallyround.middleware.route_guard.get_session", return_value=SESSION)
    def test_org_admin_without_org_context_is_denied_rbac_pages(
        self, mock_get_session, mock_roles, middleware, rf
    ):
        mock_roles.return_value = _resolution("org_admin")

        assert middleware.process_request(rf.get("/admin")) is None
        response = middleware.process_request(rf.get("/admin/fundraisers"))
        assert response["Location"] == "/admin/unauthorized"


class TestProfileSelection:
    @override_settings(
        RALLYROUND={
            "supabase": {"url": "https://test.supabase.co", "anon_key": "test-key"},
            "route_guard": {"profile": "admin"},
        }
    )
    def test_generic_middleware_uses_configured_profile(self):
        middleware = RouteGuardMiddleware(lambda r: HttpResponse("ok"))
        assert middleware.get_profile().name == "admin"

    @override_settings(
        RALLYROUND_PROFILES={"public": {"route_guard": {"login_url": "/signin"}}}
    )
    @patch("rallyround.middleware.route_guard.get_session", return_value=None)
    def test_profile_overrides_are_honoured(self, mock_get_session):
        middleware = PublicRouteGuardMiddleware(lambda r: HttpResponse("ok"))

        response = middleware.process_request(RequestFactory().get("/profile"))

        assert response["Location"] == "/signin?redirect=/profile"
