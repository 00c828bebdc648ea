"""
Core views providing infrastructure endpoints.

This module contains views that are not part of the business domain but are
essential for application infrastructure, such as health checks.
"""

import logging

from django.core.cache import cache
from django.db import DatabaseError, connection
from django.http import JsonResponse

from payments.adapters import get_phonepe_config

logger = logging.getLogger(__name__)


def health_check(request):
    """
    Health check endpoint for monitoring and orchestration.

    This endpoint is used by:
    - Docker health checks
    - Kubernetes liveness/readiness probes
    - Load balancers (AWS ALB, nginx)

    Returns:
        JsonResponse with status and component health:
        - status: "healthy" or "unhealthy"
        - database: "connected" or "disconnected"
        - cache: "connected" or "disconnected"
        - phonepe: "configured" or "not_configured"

    HTTP Status Codes:
        200: All systems operational
        503: Database unreachable

    Example Response:
        {
            "status": "healthy",
            "database": "connected",
            "cache": "connected",
            "phonepe": "configured"
        }
    """
    health_status = {
        "status": "healthy",
        "database": "unknown",
        "cache": "unknown",
        "phonepe": "unknown",
    }
    is_healthy = True

    # Check database connectivity
    try:
        with connection.cursor() as cursor:
            cursor.execute("SELECT 1")
            cursor.fetchone()
        health_status["database"] = "connected"
    except DatabaseError:
        logger.exception("Health check database query failed")
        health_status["database"] = "disconnected"
        health_status["status"] = "unhealthy"
        is_healthy = False

    # Cache failure is not critical (graceful degradation)
    try:
        cache.set("health_check", "ok", timeout=1)
        if cache.get("health_check") == "ok":
            health_status["cache"] = "connected"
        else:
            health_status["cache"] = "disconnected"
    except Exception:
        logger.warning("Health check cache probe failed", exc_info=True)
        health_status["cache"] = "disconnected"

    # Missing credentials disable payments but keep the service up
    config = get_phonepe_config()
    health_status["phonepe"] = "configured" if config.is_configured else "not_configured"

    status_code = 200 if is_healthy else 503

    return JsonResponse(health_status, status=status_code)
