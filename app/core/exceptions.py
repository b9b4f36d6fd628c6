"""
Exception classes for unexpected, non-business failures.

Expected outcomes (not found, not allowed, invalid input, terminal state)
are returned as core.services.ServiceResult failures. Exceptions are kept
for conditions a caller cannot fix by changing the request, such as an
external provider rejecting our credentials.

Exception Hierarchy:
    BaseApplicationError (base)
    └── ExternalServiceError - Third-party service failures (LiveKit, web push)

Usage:
    from core.exceptions import ExternalServiceError

    raise ExternalServiceError(
        "Could not sign media token",
        details={"service": "livekit"},
    )

api_exception_handler is registered as REST_FRAMEWORK["EXCEPTION_HANDLER"]
and renders these exceptions with the same {"error", "error_code"} body
the views use for ServiceResult failures.
"""

from __future__ import annotations

import logging
from typing import TYPE_CHECKING

from rest_framework.response import Response
from rest_framework.views import exception_handler

if TYPE_CHECKING:
    from typing import Any

logger = logging.getLogger(__name__)


class BaseApplicationError(Exception):
    """
    Base exception for all application-specific errors.

    Attributes:
        message: Human-readable error description
        error_code: Machine-readable code for client-side handling
        details: Additional error context
        http_status: Status code used when the error reaches the API layer
    """

    default_error_code: str = "APPLICATION_ERROR"
    http_status: int = 500

    def __init__(
        self,
        message: str,
        error_code: str | None = None,
        details: dict[str, Any] | None = None,
    ):
        self.message = message
        self.error_code = error_code or self.default_error_code
        self.details = details or {}
        super().__init__(message)

    def to_dict(self) -> dict[str, Any]:
        """
        Convert exception to dictionary for API response.

        Example:
            {
                "error": "Could not sign media token",
                "error_code": "EXTERNAL_SERVICE_ERROR",
                "details": {"service": "livekit"}
            }
        """
        result: dict[str, Any] = {
            "error": self.message,
            "error_code": self.error_code,
        }
        if self.details:
            result["details"] = self.details
        return result

    def __str__(self) -> str:
        return f"[{self.error_code}] {self.message}"


class ExternalServiceError(BaseApplicationError):
    """
    A third-party service failed or rejected the request.

    Example:
        raise ExternalServiceError(
            "Web push endpoint unreachable",
            details={"service": "webpush", "endpoint": endpoint},
        )
    """

    default_error_code: str = "EXTERNAL_SERVICE_ERROR"
    http_status: int = 502


def api_exception_handler(exc, context):
    """
    DRF exception handler that also understands BaseApplicationError.

    Falls back to DRF's default handler for everything else, so
    authentication (401), permission (403) and parse errors keep their
    standard responses.
    """
    if isinstance(exc, BaseApplicationError):
        view = context.get("view")
        logger.error(
            f"{exc.__class__.__name__} in {view.__class__.__name__ if view else 'unknown view'}: {exc}"
        )
        return Response(exc.to_dict(), status=exc.http_status)

    return exception_handler(exc, context)
