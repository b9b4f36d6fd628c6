"""
ViewSet for the calls API.

URL Structure:
    /api/v1/calls/                  POST    Start a call
    /api/v1/calls/active/           GET     Caller's current call (or null)
    /api/v1/calls/incoming/         GET     Ringing calls the caller can answer
    /api/v1/calls/history/          GET     ?conversation_id= or ?group_id=
    /api/v1/calls/{id}/join/        POST    Answer or re-join
    /api/v1/calls/{id}/leave/       POST    Leave
    /api/v1/calls/{id}/end/         POST    End for everyone

Create and join return the LiveKit room name and an access token
(CallSessionSerializer); the other transitions return the call.
"""

from __future__ import annotations

from drf_spectacular.utils import OpenApiParameter, extend_schema
from rest_framework import status, viewsets
from rest_framework.decorators import action
from rest_framework.permissions import IsAuthenticated
from rest_framework.response import Response

from calls.serializers import (
    CallCreateSerializer,
    CallHistoryQuerySerializer,
    CallSerializer,
    CallSessionSerializer,
)
from calls.services import CallService
from core.views import service_error_response

UUID_LOOKUP = "[0-9a-f-]{36}"


class CallViewSet(viewsets.GenericViewSet):
    """
    Call lifecycle endpoints.

    All authorization happens in CallService; failures map to
    404 (unknown call), 403 (not a participant), 409 (call already over).
    """

    permission_classes = [IsAuthenticated]
    serializer_class = CallSerializer
    lookup_value_regex = UUID_LOOKUP

    def _call_response(self, result):
        if not result.success:
            return service_error_response(result)
        return Response(CallSerializer(result.data).data)

    @extend_schema(
        operation_id="create_call",
        summary="Start a call",
        request=CallCreateSerializer,
        responses={201: CallSessionSerializer},
        tags=["Calls"],
    )
    def create(self, request):
        serializer = CallCreateSerializer(data=request.data)
        serializer.is_valid(raise_exception=True)
        data = serializer.validated_data

        result = CallService.create_call(request.user, data["target"], data["call_type"])
        if not result.success:
            return service_error_response(result)
        return Response(CallSessionSerializer(result.data).data, status=status.HTTP_201_CREATED)

    @extend_schema(
        operation_id="join_call",
        summary="Join a call",
        request=None,
        responses={200: CallSessionSerializer},
        tags=["Calls"],
    )
    @action(detail=True, methods=["post"])
    def join(self, request, pk=None):
        result = CallService.join_call(request.user, pk)
        if not result.success:
            return service_error_response(result)
        return Response(CallSessionSerializer(result.data).data)

    @extend_schema(operation_id="leave_call", request=None, tags=["Calls"])
    @action(detail=True, methods=["post"])
    def leave(self, request, pk=None):
        return self._call_response(CallService.leave_call(request.user, pk))

    @extend_schema(operation_id="end_call", request=None, tags=["Calls"])
    @action(detail=True, methods=["post"])
    def end(self, request, pk=None):
        return self._call_response(CallService.end_call(request.user, pk))

    @extend_schema(
        operation_id="get_active_call",
        responses={200: CallSerializer},
        tags=["Calls"],
    )
    @action(detail=False, methods=["get"])
    def active(self, request):
        call = CallService.get_active_call(request.user)
        return Response(CallSerializer(call).data if call else None)

    @extend_schema(
        operation_id="list_incoming_calls",
        responses={200: CallSerializer(many=True)},
        tags=["Calls"],
    )
    @action(detail=False, methods=["get"])
    def incoming(self, request):
        calls = CallService.get_incoming_calls(request.user)
        return Response(CallSerializer(calls, many=True).data)

    @extend_schema(
        operation_id="list_call_history",
        parameters=[
            OpenApiParameter("conversation_id", str, required=False),
            OpenApiParameter("group_id", str, required=False),
            OpenApiParameter("limit", int, required=False),
        ],
        responses={200: CallSerializer(many=True)},
        tags=["Calls"],
    )
    @action(detail=False, methods=["get"])
    def history(self, request):
        serializer = CallHistoryQuerySerializer(data=request.query_params)
        serializer.is_valid(raise_exception=True)
        data = serializer.validated_data

        calls = CallService.get_call_history(request.user, data["target"], data.get("limit"))
        return Response(CallSerializer(calls, many=True).data)
