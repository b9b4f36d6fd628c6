"""
Views for user lookup, profile and presence.

URL Structure:
    /api/v1/users/{id}/            GET    - User with effective presence
    /api/v1/users/search/?q=       GET    - Search by name or email
    /api/v1/users/me/              GET, PATCH
    /api/v1/users/me/presence/     POST   - Set presence status
    /api/v1/users/me/heartbeat/    POST   - Keep presence alive

Login, logout, registration and /auth/user/ are provided by dj-rest-auth
(see config/urls.py).
"""

from __future__ import annotations

from drf_spectacular.types import OpenApiTypes
from drf_spectacular.utils import OpenApiParameter, extend_schema, extend_schema_view
from rest_framework import viewsets
from rest_framework.decorators import action
from rest_framework.permissions import IsAuthenticated
from rest_framework.response import Response

from authentication.serializers import (
    PresenceUpdateSerializer,
    ProfileUpdateSerializer,
    UserSerializer,
)
from authentication.services import PresenceService, UserService
from core.views import service_error_response


@extend_schema_view(
    retrieve=extend_schema(
        operation_id="get_user",
        summary="Get user",
        tags=["Users"],
    ),
)
class UserViewSet(viewsets.GenericViewSet):
    """
    ViewSet for user lookup and the current user's presence.

    retrieve:
        Get a user by id. presence_status is derived from the last
        heartbeat and reads "offline" once it is stale.

    search:
        Find users by name or email (excluding yourself), max 10 results.

    me:
        GET returns the current user; PATCH updates name/avatar_url.

    presence:
        Set the current user's presence status.

    heartbeat:
        Refresh the current user's heartbeat.
    """

    permission_classes = [IsAuthenticated]
    serializer_class = UserSerializer
    lookup_value_regex = r"\d+"

    def retrieve(self, request, pk=None):
        result = UserService.get_user(pk)
        if not result.success:
            return service_error_response(result)
        return Response(UserSerializer(result.data).data)

    @extend_schema(
        operation_id="search_users",
        summary="Search users",
        parameters=[
            OpenApiParameter("q", OpenApiTypes.STR, description="Search term"),
            OpenApiParameter("limit", OpenApiTypes.INT, description="Max results"),
        ],
        tags=["Users"],
    )
    @action(detail=False, methods=["get"])
    def search(self, request):
        """Search users by name or email."""
        try:
            limit = int(request.query_params.get("limit", UserService.SEARCH_LIMIT))
        except ValueError:
            limit = UserService.SEARCH_LIMIT

        users = UserService.search_users(
            request.user,
            request.query_params.get("q", ""),
            limit=max(1, min(limit, 50)),
        )
        return Response(UserSerializer(users, many=True).data)

    @extend_schema(
        operation_id="current_user",
        summary="Get or update current user",
        request=ProfileUpdateSerializer,
        responses=UserSerializer,
        tags=["Users"],
    )
    @action(detail=False, methods=["get", "patch"])
    def me(self, request):
        """Return or update the current user."""
        if request.method == "GET":
            return Response(UserSerializer(request.user).data)

        serializer = ProfileUpdateSerializer(data=request.data)
        serializer.is_valid(raise_exception=True)

        result = UserService.update_profile(request.user, **serializer.validated_data)
        if not result.success:
            return service_error_response(result)
        return Response(UserSerializer(result.data).data)

    @extend_schema(
        operation_id="set_presence",
        summary="Set presence status",
        request=PresenceUpdateSerializer,
        responses=UserSerializer,
        tags=["Users"],
    )
    @action(detail=False, methods=["post"], url_path="me/presence")
    def presence(self, request):
        """Set the current user's presence status."""
        serializer = PresenceUpdateSerializer(data=request.data)
        serializer.is_valid(raise_exception=True)

        result = PresenceService.update_status(
            request.user, serializer.validated_data["status"]
        )
        if not result.success:
            return service_error_response(result)
        return Response(UserSerializer(result.data).data)

    @extend_schema(
        operation_id="presence_heartbeat",
        summary="Send presence heartbeat",
        request=None,
        responses=UserSerializer,
        tags=["Users"],
    )
    @action(detail=False, methods=["post"], url_path="me/heartbeat")
    def heartbeat(self, request):
        """Refresh the current user's heartbeat."""
        result = PresenceService.heartbeat(request.user)
        return Response(UserSerializer(result.data).data)
