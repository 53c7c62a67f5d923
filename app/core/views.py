"""
Infrastructure endpoints.
"""

import logging

from django.core.cache import cache
from django.db import DatabaseError, connection
from django.http import JsonResponse

logger = logging.getLogger(__name__)


def health_check(request):
    """
    Liveness probe for the load balancer and container orchestration.

    Returns 200 while the database answers and 503 otherwise. The cache is
    reported but does not affect the status code, since payment handling
    never depends on it.

    Body:
        {"status": "healthy", "database": "connected", "cache": "connected"}
    """
    body = {"status": "healthy", "database": "connected", "cache": "connected"}

    try:
        with connection.cursor() as cursor:
            cursor.execute("SELECT 1")
    except DatabaseError:
        logger.error("Health check: database unreachable", exc_info=True)
        body["database"] = "disconnected"
        body["status"] = "unhealthy"

    try:
        cache.set("health_check", "ok", timeout=1)
        if cache.get("health_check") != "ok":
            body["cache"] = "disconnected"
    except Exception:
        logger.warning("Health check: cache unreachable", exc_info=True)
        body["cache"] = "disconnected"

    return JsonResponse(body, status=200 if body["status"] == "healthy" else 503)
