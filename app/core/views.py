"""
Core views providing infrastructure endpoints and response helpers.

This module contains views that are not part of the business domain but are
essential for application infrastructure, such as health checks, plus the
helper every domain view uses to turn a failed ServiceResult into a response.
"""

from __future__ import annotations

from typing import TYPE_CHECKING

from django.db import connection
from django.http import JsonResponse
from rest_framework import status
from rest_framework.response import Response

from core.services import ErrorCode

if TYPE_CHECKING:
    from core.services import ServiceResult


ERROR_CODE_STATUS = {
    ErrorCode.NOT_FOUND: status.HTTP_404_NOT_FOUND,
    ErrorCode.NOT_AUTHORIZED: status.HTTP_403_FORBIDDEN,
    ErrorCode.VALIDATION_ERROR: status.HTTP_400_BAD_REQUEST,
    ErrorCode.ALREADY_TERMINAL: status.HTTP_409_CONFLICT,
}


def service_error_response(result: ServiceResult) -> Response:
    """
    Build the error response for a failed ServiceResult.

    Unknown error codes are reported as 400, matching the behaviour of
    serializer validation errors.

    Example:
        result = CallService.join_call(request.user, pk)
        if not result.success:
            return service_error_response(result)
    """
    http_status = ERROR_CODE_STATUS.get(
        result.error_code, status.HTTP_400_BAD_REQUEST
    )
    return Response(result.to_response(), status=http_status)


def health_check(request):
    """
    Health check endpoint for monitoring and orchestration.

    Used by Docker health checks, Kubernetes probes and load balancers.

    Returns:
        JsonResponse with status and component health:
        - status: "healthy" or "unhealthy"
        - database: "connected" or "disconnected"
        - cache: "connected" or "disconnected"

    HTTP Status Codes:
        200: Database reachable (cache problems only degrade)
        503: Database unreachable
    """
    health_status = {
        "status": "healthy",
        "database": "unknown",
        "cache": "unknown",
    }
    is_healthy = True

    try:
        with connection.cursor() as cursor:
            cursor.execute("SELECT 1")
            cursor.fetchone()
        health_status["database"] = "connected"
    except Exception:
        health_status["database"] = "disconnected"
        health_status["status"] = "unhealthy"
        is_healthy = False

    try:
        from django.core.cache import cache

        cache.set("health_check", "ok", timeout=1)
        if cache.get("health_check") == "ok":
            health_status["cache"] = "connected"
        else:
            health_status["cache"] = "disconnected"
    except Exception:
        # Cache outages degrade the service but do not fail the probe
        health_status["cache"] = "disconnected"

    status_code = 200 if is_healthy else 503

    return JsonResponse(health_status, status=status_code)
