"""
Service-level views.

Includes the health check endpoint for monitoring and load balancer checks.
"""

import logging

from django.core.cache import cache
from django.db import connection
from django.http import JsonResponse
from django.utils import timezone

logger = logging.getLogger(__name__)


def check_database() -> str:
    try:
        with connection.cursor() as cursor:
            cursor.execute("SELECT 1")
            cursor.fetchone()
        return "connected"
    except Exception as e:
        logger.error(f"Health check database error: {e}")
        return "error"


def check_cache() -> str:
    try:
        cache.set("health_check", "ok", 10)
        if cache.get("health_check") == "ok":
            return "connected"
        return "error"
    except Exception as e:
        logger.error(f"Health check cache error: {e}")
        return "error"


def health_check(request):
    """
    Health check endpoint for the analysis service.

    Endpoint: GET /api/health/
    No authentication required (for load balancer checks).

    Response fields:
        - status: "healthy" or "unhealthy"
        - database: "connected" or "error"
        - cache: "connected" or "error"
        - timestamp: ISO timestamp of the check

    Returns:
        HTTP 200 for healthy, HTTP 503 when the database is unreachable.
        A cache failure is reported but does not make the service unhealthy.
    """
    database = check_database()
    data = {
        "status": "healthy" if database == "connected" else "unhealthy",
        "database": database,
        "cache": check_cache(),
        "timestamp": timezone.now().isoformat(),
    }
    return JsonResponse(data, status=200 if database == "connected" else 503)
