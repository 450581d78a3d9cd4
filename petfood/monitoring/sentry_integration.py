"""
Sentry error tracking integration for analysis requests.

- Adds breadcrumbs for each orchestration step (product, ingredients, model)
- Filters sensitive data (API keys, tokens, cookies, passwords)
- Captures external dependency failures with request context

Usage:
    from petfood.monitoring import capture_service_error

    try:
        verdict = model_client.analyze(...)
    except ModelClientError as e:
        capture_service_error(e, operation="model", extra_context={...})
        raise

All calls are no-ops when Sentry is not initialised (SENTRY_DSN unset).
"""

import logging
from typing import Any, Dict, Optional

import sentry_sdk

logger = logging.getLogger(__name__)

# Sensitive fields to filter from Sentry events
SENSITIVE_FIELDS = {
    "cookies",
    "cookie",
    "api_key",
    "apikey",
    "api-key",
    "authorization",
    "password",
    "secret",
    "token",
    "x-api-key",
}


def filter_sensitive_data(data: Dict[str, Any]) -> Dict[str, Any]:
    """
    Replace values whose key names look like credentials.

    Nested dicts are filtered recursively; non-dict input is returned as is.
    """
    if not isinstance(data, dict):
        return data

    filtered = {}
    for key, value in data.items():
        key_lower = str(key).lower()

        if any(sensitive in key_lower for sensitive in SENSITIVE_FIELDS):
            filtered[key] = "[Filtered]"
        elif isinstance(value, dict):
            filtered[key] = filter_sensitive_data(value)
        else:
            filtered[key] = value

    return filtered


def add_analysis_breadcrumb(
    message: str,
    level: str = "info",
    data: Optional[Dict[str, Any]] = None,
) -> None:
    """
    Add a breadcrumb to Sentry for analysis context.

    Args:
        message: Description of the step
        level: Log level (info, warning, error)
        data: Step context (filtered for sensitive fields)
    """
    try:
        sentry_sdk.add_breadcrumb(
            category="analysis",
            message=message,
            level=level,
            data=filter_sensitive_data(data or {}),
        )
    except Exception as e:
        logger.warning(f"Failed to add Sentry breadcrumb: {e}")


def capture_service_error(
    error: Exception,
    operation: str,
    user_id: Optional[Any] = None,
    extra_context: Optional[Dict[str, Any]] = None,
) -> None:
    """
    Capture a service error to Sentry with analysis context.

    Args:
        error: The exception that occurred
        operation: Failing step, e.g. "scraper" or "model"
        user_id: Requesting user id
        extra_context: Additional context (filtered for sensitive data)
    """
    filtered = filter_sensitive_data(extra_context or {})

    add_analysis_breadcrumb(
        message=f"Error: {type(error).__name__}",
        level="error",
        data={"operation": operation, **filtered},
    )

    try:
        with sentry_sdk.new_scope() as scope:
            scope.set_tag("petfood.operation", operation)
            if user_id is not None:
                scope.set_user({"id": str(user_id)})
            if filtered:
                scope.set_extra("analysis_context", filtered)

            sentry_sdk.capture_exception(error)

    except Exception as e:
        logger.warning(f"Failed to capture exception to Sentry: {e}")
