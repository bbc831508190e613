"""
Request middleware package.
"""

from .route_guard import (
    AdminRouteGuardMiddleware,
    PublicRouteGuardMiddleware,
    RouteGuardMiddleware,
)
from .routes import GuardProfile, RbacRoute

__all__ = [
    "AdminRouteGuardMiddleware",
    "GuardProfile",
    "PublicRouteGuardMiddleware",
    "RbacRoute",
    "RouteGuardMiddleware",
]
