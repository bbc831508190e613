"""
Permission decorators for Django views.

This module provides ``require_access`` for enforcing a (resource, action)
permission on a view, with the same redirect semantics as the route guard.
"""

import logging
from functools import wraps
from typing import Callable, Optional, Union
from urllib.parse import urlencode

from django.http import HttpRequest

from ..auth.exceptions import AuthLookupError, ConfigurationError
from ..auth.supabase import get_supabase_config
from .engine import check_access
from .types import AccessContext, Action, Resource

logger = logging.getLogger(__name__)

ContextBuilder = Callable[..., AccessContext]


def _get_session(request: HttpRequest):
    """Session attached by the route guard, or resolved on demand."""
    session = getattr(request, "rallyround_session", None)
    if session is not None:
        return session
    from ..auth.session import get_session

    try:
        session = get_session(request)
    except AuthLookupError as exc:
        logger.warning("Session lookup failed in view guard: %s", exc)
        session = None
    request.rallyround_session = session
    return session


def _get_roles(request: HttpRequest, session):
    resolution = getattr(request, "rallyround_roles", None)
    if resolution is None:
        from .roles import resolve_user_roles

        resolution = resolve_user_roles(
            session.user.id if session else None,
            access_token=(session.access_token or None) if session else None,
        )
        request.rallyround_roles = resolution
    return resolution


def require_access(
    resource: Union[Resource, str],
    action: Union[Action, str],
    context_builder: Optional[ContextBuilder] = None,
):
    """
    Decorator to require a permission for a Django view.

    Args:
        resource: Resource the view acts on.
        action: Action the view performs.
        context_builder: Optional ``(request, *args, **kwargs) -> AccessContext``
            used to supply org/team/ownership facts. Defaults to a context
            carrying only the caller's user id.

    Anonymous callers are redirected to login; denied callers to the
    unauthorized page of the active guard profile. Missing Supabase settings
    redirect to the error page.
    """
    resource = Resource(resource)
    action = Action(action)

    def decorator(view_func: Callable) -> Callable:
        @wraps(view_func)
        def wrapper(request: HttpRequest, *args, **kwargs):
            from ..middleware.route_guard import TemporaryRedirect
            from ..middleware.routes import GuardProfile

            profile = GuardProfile.load()
            try:
                get_supabase_config(profile.name)
                session = _get_session(request)
            except ConfigurationError as exc:
                logger.error("View guard misconfigured: %s", exc)
                return TemporaryRedirect(profile.error_url)
            if session is None:
                query = urlencode({"redirect": request.path}, safe="/")
                return TemporaryRedirect(f"{profile.login_url}?{query}")

            if context_builder is not None:
                context = context_builder(request, *args, **kwargs)
            else:
                context = AccessContext(user_id=session.user.id)

            resolution = _get_roles(request, session)
            if not check_access(resolution.roles, resource, action, context):
                logger.warning(
                    "View %s denied %s:%s",
                    getattr(view_func, "__name__", "view"),
                    resource.value,
                    action.value,
                )
                return TemporaryRedirect(profile.rbac_denied_url)
            return view_func(request, *args, **kwargs)

        return wrapper

    return decorator


__all__ = ["require_access"]
