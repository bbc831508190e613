"""
HTTP views shipped with rallyround.
"""

from .health import healthcheck_view

__all__ = ["healthcheck_view"]
