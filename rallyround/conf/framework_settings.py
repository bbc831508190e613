"""
Base settings for projects using rallyround.
Users import * from this file in their project's settings.py.
"""

import copy
import os
from pathlib import Path

from rallyround.defaults import LIBRARY_DEFAULTS


def _env_list(name: str, default: str = "") -> list[str]:
    return [item.strip() for item in os.environ.get(name, default).split(",") if item.strip()]


# Build paths inside the project like this: BASE_DIR / 'subdir'.
# This BASE_DIR is a placeholder; the project's settings.py will redefine it
# relative to itself, but we provide a fallback here.
BASE_DIR = Path(os.getcwd())

# SECURITY WARNING: keep the secret key used in production secret!
SECRET_KEY = os.environ.get(
    "DJANGO_SECRET_KEY", "django-insecure-framework-default-key-change-me"
)

# SECURITY WARNING: don't run with debug turned on in production!
DEBUG = os.environ.get("DJANGO_DEBUG", "False").lower() == "true"

ALLOWED_HOSTS = _env_list("DJANGO_ALLOWED_HOSTS", "localhost,127.0.0.1")

# Application definition
INSTALLED_APPS = [
    "django.contrib.contenttypes",
    "django.contrib.auth",
    "django.contrib.staticfiles",
    # Third-party apps
    "corsheaders",
    # Framework apps
    "rallyround",
]

MIDDLEWARE = [
    "django.middleware.security.SecurityMiddleware",
    "corsheaders.middleware.CorsMiddleware",
    "django.middleware.common.CommonMiddleware",
    "django.middleware.clickjacking.XFrameOptionsMiddleware",
    "rallyround.middleware.RouteGuardMiddleware",
]

ROOT_URLCONF = "rallyround.urls"

# Internationalization
LANGUAGE_CODE = "en-us"
TIME_ZONE = "UTC"
USE_I18N = True
USE_TZ = True

# Static files
STATIC_URL = "static/"

# Default primary key field type
DEFAULT_AUTO_FIELD = "django.db.models.BigAutoField"

# CORS settings: the public site and the admin console call the API cross-origin
CORS_ALLOW_ALL_ORIGINS = (
    os.environ.get("CORS_ALLOW_ALL_ORIGINS", "False").lower() == "true"
)
CORS_ALLOWED_ORIGINS = _env_list("CORS_ALLOWED_ORIGINS")
CORS_ALLOW_CREDENTIALS = True

# Load library defaults into Django settings
RALLYROUND = copy.deepcopy(LIBRARY_DEFAULTS)
RALLYROUND["supabase"].update(
    {
        "url": os.environ.get("SUPABASE_URL", ""),
        "anon_key": os.environ.get("SUPABASE_ANON_KEY", ""),
        "jwt_secret": os.environ.get("SUPABASE_JWT_SECRET", ""),
    }
)
RALLYROUND["route_guard"]["profile"] = os.environ.get("RALLYROUND_GUARD_PROFILE", "public")
RALLYROUND["health"].update(
    {
        "app_version": os.environ.get("RALLYROUND_APP_VERSION", LIBRARY_DEFAULTS["health"]["app_version"]),
        "environment": os.environ.get("RALLYROUND_ENVIRONMENT", "development"),
    }
)

# Per-profile overrides, e.g. {"admin": {"route_guard": {"login_url": "/admin/login"}}}
RALLYROUND_PROFILES: dict = {}

LOGGING = {
    "version": 1,
    "disable_existing_loggers": False,
    "formatters": {
        "verbose": {
            "format": "%(asctime)s %(levelname)s %(name)s %(message)s",
        },
    },
    "handlers": {
        "console": {
            "class": "logging.StreamHandler",
            "formatter": "verbose",
        },
    },
    "loggers": {
        "rallyround": {
            "handlers": ["console"],
            "level": os.environ.get("RALLYROUND_LOG_LEVEL", "INFO"),
            "propagate": False,
        },
    },
}
