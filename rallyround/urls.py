"""
URL configuration for rallyround.

Include in a project with ``path("", include("rallyround.urls"))``.
"""

from django.urls import path

from .views.health import healthcheck_view

urlpatterns = [
    path("api/healthcheck", healthcheck_view, name="healthcheck"),
]
