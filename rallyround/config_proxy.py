"""
Configuration management for RallyRound.

This module provides a settings proxy that handles hierarchical configuration
resolution from profile-specific, Django global, and library default settings.
"""

from typing import Any, Optional

from django.conf import settings
from django.core.signals import setting_changed
from django.dispatch import receiver

from .defaults import LIBRARY_DEFAULTS

_MISSING = object()


class SettingsProxy:
    """
    Proxy for accessing RallyRound settings with hierarchical resolution.

    Settings are resolved in the following order:
    1. Profile-specific settings (RALLYROUND_PROFILES[profile])
    2. Global Django settings (RALLYROUND)
    3. Built-in profile defaults (rallyround.middleware.routes.PROFILE_DEFAULTS)
    4. Library defaults (LIBRARY_DEFAULTS)
    """

    def __init__(self, profile: Optional[str] = None):
        """
        Initialize the settings proxy.

        Args:
            profile: Name of the guard profile for profile-specific settings
        """
        self.profile = profile
        self._cache: dict[str, Any] = {}

    def get(self, key: str, default: Any = None) -> Any:
        """
        Get a setting value with hierarchical resolution and caching.

        Args:
            key: Dotted setting key to retrieve
            default: Default value if setting is not found

        Returns:
            The setting value from the highest priority source
        """
        cache_key = f"{self.profile}:{key}" if self.profile else f"global:{key}"
        if cache_key in self._cache:
            cached = self._cache[cache_key]
            return default if cached is _MISSING else cached

        for source in (
            self._get_profile_setting,
            self._get_django_setting,
            self._get_profile_default,
            self._get_library_default,
        ):
            value = source(key)
            if value is not None:
                self._cache[cache_key] = value
                return value

        # Misses are cached without the caller default, which varies per call site
        self._cache[cache_key] = _MISSING
        return default

    def _get_profile_setting(self, key: str) -> Any:
        """Get setting from RALLYROUND_PROFILES[profile]."""
        if not self.profile:
            return None
        profiles = getattr(settings, "RALLYROUND_PROFILES", {}) or {}
        if self.profile not in profiles:
            return None
        return self._get_nested_value(profiles[self.profile], key)

    def _get_django_setting(self, key: str) -> Any:
        """Get setting from the global Django RALLYROUND dict."""
        return self._get_nested_value(getattr(settings, "RALLYROUND", {}), key)

    def _get_profile_default(self, key: str) -> Any:
        """Get setting from the built-in defaults of the profile."""
        if not self.profile:
            return None
        from .middleware.routes import PROFILE_DEFAULTS

        return self._get_nested_value(PROFILE_DEFAULTS.get(self.profile, {}), key)

    def _get_library_default(self, key: str) -> Any:
        """Get setting from library defaults."""
        return self._get_nested_value(LIBRARY_DEFAULTS, key)

    def _get_nested_value(self, data: dict[str, Any], key: str) -> Any:
        """
        Get nested value from dictionary using dot notation.

        Args:
            data: Dictionary to search in
            key: Key to retrieve (supports dot notation for nested access)

        Returns:
            The value or None if not found
        """
        if not isinstance(data, dict):
            return None

        current = data
        for k in key.split("."):
            if not isinstance(current, dict) or k not in current:
                return None
            current = current[k]
        return current

    def clear_cache(self) -> None:
        """Clear the settings cache."""
        self._cache.clear()

    def validate(self) -> dict[str, Any]:
        """
        Validate current settings configuration.

        Returns:
            Dictionary with validation results
        """
        validation_results = {"valid": True, "errors": [], "warnings": []}

        if self.profile:
            from .middleware.routes import PROFILE_DEFAULTS

            profiles = getattr(settings, "RALLYROUND_PROFILES", {}) or {}
            if self.profile not in profiles and self.profile not in PROFILE_DEFAULTS:
                validation_results["errors"].append(
                    f"Guard profile '{self.profile}' is neither built in nor defined in RALLYROUND_PROFILES"
                )
                validation_results["valid"] = False

        for setting in ("supabase.url", "supabase.anon_key"):
            if not self.get(setting):
                validation_results["warnings"].append(
                    f"Setting '{setting}' is empty; guarded requests will be redirected to the error page"
                )

        return validation_results


# One proxy per profile; cleared whenever RALLYROUND settings change
_PROXIES: dict[Optional[str], SettingsProxy] = {}


def get_settings_proxy(profile: Optional[str] = None) -> SettingsProxy:
    """Get the shared settings proxy instance for the specified profile."""
    proxy = _PROXIES.get(profile)
    if proxy is None:
        proxy = _PROXIES.setdefault(profile, SettingsProxy(profile))
    return proxy


def clear_settings_cache() -> None:
    """Drop every cached proxy so the next lookup re-reads Django settings."""
    _PROXIES.clear()


@receiver(setting_changed)
def _reset_settings_proxies(sender, setting, **kwargs):
    if setting in ("RALLYROUND", "RALLYROUND_PROFILES"):
        clear_settings_cache()


def get_setting(key: str, default: Any = None, profile: Optional[str] = None) -> Any:
    """
    Get a setting value using the hierarchical settings system.

    Args:
        key: Dotted setting key to retrieve
        default: Default value if setting is not found
        profile: Name of the guard profile for profile-specific settings

    Returns:
        The setting value from the highest priority source
    """
    return get_settings_proxy(profile).get(key, default)


def get_active_profile() -> str:
    """Name of the guard profile configured for this process."""
    return str(get_setting("route_guard.profile", "public"))


__all__ = [
    "SettingsProxy",
    "clear_settings_cache",
    "get_active_profile",
    "get_setting",
    "get_settings_proxy",
]
