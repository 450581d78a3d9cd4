"""
Error monitoring for the analysis service.

Sentry itself is configured in config/settings/base.py; this package adds
analysis context and keeps credentials out of captured events.
"""

from .sentry_integration import add_analysis_breadcrumb, capture_service_error

__all__ = [
    "add_analysis_breadcrumb",
    "capture_service_error",
]
