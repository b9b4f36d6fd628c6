"""
Views for notification API.

ViewSets:
    NotificationViewSet: Inbox listing and read status
    PushSubscriptionViewSet: Web push subscription management

Endpoints:
    Notifications:
        GET    /api/v1/notifications/                - List (?unread_only=true, ?limit=)
        GET    /api/v1/notifications/unread-count/   - Badge count
        POST   /api/v1/notifications/{id}/read/      - Mark one as read
        POST   /api/v1/notifications/read-all/       - Mark all as read
        DELETE /api/v1/notifications/{id}/           - Delete one

    Push:
        GET  /api/v1/notifications/push/vapid-key/    - VAPID public key
        POST /api/v1/notifications/push/subscribe/    - Save subscription
        POST /api/v1/notifications/push/unsubscribe/  - Remove subscription
"""

from __future__ import annotations

from django.conf import settings
from drf_spectacular.utils import (
    OpenApiParameter,
    OpenApiResponse,
    extend_schema,
    extend_schema_view,
)
from rest_framework import status, viewsets
from rest_framework.decorators import action
from rest_framework.permissions import IsAuthenticated
from rest_framework.response import Response

from core.views import service_error_response
from notifications.serializers import (
    MarkAllReadResponseSerializer,
    NotificationSerializer,
    PushSubscriptionSerializer,
    PushUnsubscribeSerializer,
    UnreadCountSerializer,
    VapidKeySerializer,
)
from notifications.services import NotificationService, PushSubscriptionService


@extend_schema_view(
    list=extend_schema(
        operation_id="list_notifications",
        summary="List notifications",
        description="Newest notifications for the authenticated user (max 50 by default).",
        parameters=[
            OpenApiParameter(
                name="unread_only",
                type=bool,
                location=OpenApiParameter.QUERY,
                description="Only unread notifications",
                required=False,
            ),
            OpenApiParameter(
                name="limit",
                type=int,
                location=OpenApiParameter.QUERY,
                description="Maximum number of notifications",
                required=False,
            ),
        ],
        tags=["Notifications"],
    ),
    destroy=extend_schema(
        operation_id="delete_notification",
        summary="Delete notification",
        responses={204: None, 404: OpenApiResponse(description="Notification not found")},
        tags=["Notifications"],
    ),
)
class NotificationViewSet(viewsets.GenericViewSet):
    """
    ViewSet for the notification inbox.

    Users can only see and change their own notifications; other users'
    notification ids return 404.
    """

    permission_classes = [IsAuthenticated]
    serializer_class = NotificationSerializer
    lookup_value_regex = "[0-9a-f-]{36}"

    def list(self, request):
        try:
            limit = int(request.query_params.get("limit", NotificationService.DEFAULT_LIST_LIMIT))
        except ValueError:
            limit = NotificationService.DEFAULT_LIST_LIMIT
        unread_only = request.query_params.get("unread_only", "").lower() == "true"

        notifications = NotificationService.list_for_user(
            request.user, limit=max(1, min(limit, 200)), unread_only=unread_only
        )
        return Response(NotificationSerializer(notifications, many=True).data)

    def destroy(self, request, pk=None):
        result = NotificationService.delete_notification(request.user, pk)
        if not result.success:
            return service_error_response(result)
        return Response(status=status.HTTP_204_NO_CONTENT)

    @extend_schema(
        operation_id="get_unread_notification_count",
        summary="Get unread notification count",
        responses={200: UnreadCountSerializer},
        tags=["Notifications"],
    )
    @action(detail=False, methods=["get"], url_path="unread-count")
    def unread_count(self, request):
        count = NotificationService.get_unread_count(request.user)
        return Response(UnreadCountSerializer({"unread_count": count}).data)

    @extend_schema(
        operation_id="mark_notification_read",
        summary="Mark notification as read",
        description="Idempotent; already-read notifications return success.",
        request=None,
        responses={
            200: NotificationSerializer,
            404: OpenApiResponse(description="Notification not found"),
        },
        tags=["Notifications"],
    )
    @action(detail=True, methods=["post"])
    def read(self, request, pk=None):
        result = NotificationService.mark_as_read(request.user, pk)
        if not result.success:
            return service_error_response(result)
        return Response(NotificationSerializer(result.data).data)

    @extend_schema(
        operation_id="mark_all_notifications_read",
        summary="Mark all notifications as read",
        request=None,
        responses={200: MarkAllReadResponseSerializer},
        tags=["Notifications"],
    )
    @action(detail=False, methods=["post"], url_path="read-all")
    def read_all(self, request):
        result = NotificationService.mark_all_as_read(request.user)
        return Response(MarkAllReadResponseSerializer({"marked_count": result.data}).data)


class PushSubscriptionViewSet(viewsets.GenericViewSet):
    """
    Web push subscription endpoints.

    The browser obtains a PushSubscription with the VAPID public key from
    vapid-key/ and posts it to subscribe/.
    """

    permission_classes = [IsAuthenticated]
    serializer_class = PushSubscriptionSerializer

    @extend_schema(
        operation_id="get_vapid_public_key",
        summary="Get VAPID public key",
        responses={200: VapidKeySerializer},
        tags=["Notifications - Push"],
    )
    @action(detail=False, methods=["get"], url_path="vapid-key")
    def vapid_key(self, request):
        return Response(VapidKeySerializer({"public_key": settings.VAPID_PUBLIC_KEY}).data)

    @extend_schema(
        operation_id="push_subscribe",
        summary="Save push subscription",
        request=PushSubscriptionSerializer,
        responses={201: None},
        tags=["Notifications - Push"],
    )
    @action(detail=False, methods=["post"])
    def subscribe(self, request):
        serializer = PushSubscriptionSerializer(data=request.data)
        serializer.is_valid(raise_exception=True)
        data = serializer.validated_data

        PushSubscriptionService.save_subscription(
            request.user,
            endpoint=data["endpoint"],
            p256dh=data["keys"]["p256dh"],
            auth=data["keys"]["auth"],
        )
        return Response({"subscribed": True}, status=status.HTTP_201_CREATED)

    @extend_schema(
        operation_id="push_unsubscribe",
        summary="Remove push subscription",
        request=PushUnsubscribeSerializer,
        responses={200: None},
        tags=["Notifications - Push"],
    )
    @action(detail=False, methods=["post"])
    def unsubscribe(self, request):
        serializer = PushUnsubscribeSerializer(data=request.data)
        serializer.is_valid(raise_exception=True)

        PushSubscriptionService.remove_subscription(
            request.user, serializer.validated_data["endpoint"]
        )
        return Response({"subscribed": False})
