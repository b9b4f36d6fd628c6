"""
Tests for core views and the API exception handler.
"""

from unittest.mock import MagicMock

import pytest
from django.urls import reverse
from rest_framework import status
from rest_framework.exceptions import NotAuthenticated

from core.exceptions import ExternalServiceError, api_exception_handler
from core.openapi import group_auth_endpoints
from core.services import ErrorCode, ServiceResult
from core.views import service_error_response


class TestServiceErrorResponse:
    @pytest.mark.parametrize(
        "error_code,expected_status",
        [
            (ErrorCode.NOT_FOUND, status.HTTP_404_NOT_FOUND),
            (ErrorCode.NOT_AUTHORIZED, status.HTTP_403_FORBIDDEN),
            (ErrorCode.VALIDATION_ERROR, status.HTTP_400_BAD_REQUEST),
            (ErrorCode.ALREADY_TERMINAL, status.HTTP_409_CONFLICT),
            (None, status.HTTP_400_BAD_REQUEST),
        ],
    )
    def test_status_mapping(self, error_code, expected_status):
        response = service_error_response(ServiceResult.failure("Nope", error_code=error_code))

        assert response.status_code == expected_status
        assert response.data["error"] == "Nope"


class TestApiExceptionHandler:
    def test_application_error(self):
        exc = ExternalServiceError("Could not sign media token", details={"service": "livekit"})

        response = api_exception_handler(exc, {"view": MagicMock()})

        assert response.status_code == status.HTTP_502_BAD_GATEWAY
        assert response.data == {
            "error": "Could not sign media token",
            "error_code": "EXTERNAL_SERVICE_ERROR",
            "details": {"service": "livekit"},
        }

    def test_falls_back_to_drf(self):
        response = api_exception_handler(NotAuthenticated(), {"view": None, "request": None})

        assert response.status_code == status.HTTP_401_UNAUTHORIZED

    def test_unhandled_exception_returns_none(self):
        assert api_exception_handler(ValueError("bug"), {"view": None}) is None


@pytest.mark.django_db
class TestHealthCheck:
    def test_healthy(self, client):
        response = client.get(reverse("health_check"))

        assert response.status_code == 200
        assert response.json() == {"status": "healthy", "database": "connected", "cache": "connected"}


class TestOpenApiHook:
    def test_tags_dj_rest_auth_operations(self):
        schema = {
            "paths": {
                "/api/v1/auth/login/": {"post": {"operationId": "auth_login_create"}},
                "/api/v1/calls/": {"post": {"operationId": "calls_create", "tags": ["Calls"]}},
            }
        }

        result = group_auth_endpoints(schema, None, None, True)

        login = result["paths"]["/api/v1/auth/login/"]["post"]
        assert login["tags"] == ["Auth"]
        assert login["summary"] == "Log in"
        assert result["paths"]["/api/v1/calls/"]["post"]["tags"] == ["Calls"]
        assert "Meetings - Requests" in {tag["name"] for tag in result["tags"]}
