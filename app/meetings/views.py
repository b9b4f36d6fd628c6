"""
ViewSets for the meetings API.

URL Structure:
    Calendar events:
        /api/v1/meetings/events/?start=&end=        GET     Own events in range
        /api/v1/meetings/events/                    POST    Create
        /api/v1/meetings/events/{id}/               GET, PATCH, DELETE
        /api/v1/meetings/events/public/?user_id=&start=&end=   GET   Busy slots

    Meeting requests:
        /api/v1/meetings/requests/                  GET     Incoming, pending
        /api/v1/meetings/requests/                  POST    Propose a meeting
        /api/v1/meetings/requests/sent/?status=     GET     Sent by the caller
        /api/v1/meetings/requests/{id}/respond/     POST    Approve or deny
        /api/v1/meetings/requests/{id}/             DELETE  Cancel (requester)

    Update requests:
        /api/v1/meetings/update-requests/           GET     Awaiting the caller
        /api/v1/meetings/update-requests/{id}/respond/      POST

PATCH on a linked event answers 202 with the pending update request;
the events change only once the other participant approves it.
"""

from __future__ import annotations

from drf_spectacular.utils import OpenApiResponse, extend_schema
from rest_framework import status, viewsets
from rest_framework.decorators import action
from rest_framework.permissions import IsAuthenticated
from rest_framework.response import Response

from core.views import service_error_response
from meetings.serializers import (
    CalendarEventCreateSerializer,
    CalendarEventSerializer,
    CalendarEventUpdateSerializer,
    DateRangeQuerySerializer,
    EventUpdateApprovalSerializer,
    MeetingRequestCreateSerializer,
    MeetingRequestSerializer,
    MeetingUpdateRequestSerializer,
    PublicCalendarQuerySerializer,
    PublicSlotSerializer,
    RespondSerializer,
    SentRequestsQuerySerializer,
)
from meetings.services import (
    CalendarEventService,
    MeetingRequestService,
    MeetingUpdateService,
)

UUID_LOOKUP = "[0-9a-f-]{36}"


@extend_schema(tags=["Meetings - Events"])
class CalendarEventViewSet(viewsets.GenericViewSet):
    """Calendar events of the requesting user."""

    permission_classes = [IsAuthenticated]
    serializer_class = CalendarEventSerializer
    lookup_value_regex = UUID_LOOKUP

    @extend_schema(
        parameters=[DateRangeQuerySerializer],
        responses={200: CalendarEventSerializer(many=True)},
    )
    def list(self, request):
        query = DateRangeQuerySerializer(data=request.query_params)
        query.is_valid(raise_exception=True)

        events = CalendarEventService.list_events(
            request.user, query.validated_data["start"], query.validated_data["end"]
        )
        return Response(CalendarEventSerializer(events, many=True).data)

    @extend_schema(request=CalendarEventCreateSerializer, responses={201: CalendarEventSerializer})
    def create(self, request):
        serializer = CalendarEventCreateSerializer(data=request.data)
        serializer.is_valid(raise_exception=True)

        result = CalendarEventService.create_event(request.user, **serializer.validated_data)
        if not result.success:
            return service_error_response(result)
        return Response(CalendarEventSerializer(result.data).data, status=status.HTTP_201_CREATED)

    def retrieve(self, request, pk=None):
        result = CalendarEventService.get_event(request.user, pk)
        if not result.success:
            return service_error_response(result)
        return Response(CalendarEventSerializer(result.data).data)

    @extend_schema(
        request=CalendarEventUpdateSerializer,
        responses={
            200: CalendarEventSerializer,
            202: OpenApiResponse(
                response=EventUpdateApprovalSerializer,
                description="Linked event: change proposed to the other participant",
            ),
        },
    )
    def partial_update(self, request, pk=None):
        serializer = CalendarEventUpdateSerializer(data=request.data)
        serializer.is_valid(raise_exception=True)

        result = CalendarEventService.update_event(request.user, pk, **serializer.validated_data)
        if not result.success:
            return service_error_response(result)

        outcome = result.data
        if outcome.requires_approval:
            return Response(
                EventUpdateApprovalSerializer(outcome).data,
                status=status.HTTP_202_ACCEPTED,
            )
        return Response(CalendarEventSerializer(outcome.event).data)

    def destroy(self, request, pk=None):
        result = CalendarEventService.delete_event(request.user, pk)
        if not result.success:
            return service_error_response(result)
        return Response(status=status.HTTP_204_NO_CONTENT)

    @extend_schema(
        parameters=[PublicCalendarQuerySerializer],
        responses={200: PublicSlotSerializer(many=True)},
    )
    @action(detail=False, methods=["get"])
    def public(self, request):
        query = PublicCalendarQuerySerializer(data=request.query_params)
        query.is_valid(raise_exception=True)
        data = query.validated_data

        slots = CalendarEventService.get_public_calendar(
            data["user_id"], data["start"], data["end"]
        )
        return Response(PublicSlotSerializer(slots, many=True).data)


@extend_schema(tags=["Meetings - Requests"])
class MeetingRequestViewSet(viewsets.GenericViewSet):
    """Meeting proposals between two users."""

    permission_classes = [IsAuthenticated]
    serializer_class = MeetingRequestSerializer
    lookup_value_regex = UUID_LOOKUP

    def list(self, request):
        requests = MeetingRequestService.list_pending_requests(request.user)
        return Response(MeetingRequestSerializer(requests, many=True).data)

    @extend_schema(request=MeetingRequestCreateSerializer, responses={201: MeetingRequestSerializer})
    def create(self, request):
        serializer = MeetingRequestCreateSerializer(data=request.data)
        serializer.is_valid(raise_exception=True)

        result = MeetingRequestService.request_meeting(request.user, **serializer.validated_data)
        if not result.success:
            return service_error_response(result)
        return Response(MeetingRequestSerializer(result.data).data, status=status.HTTP_201_CREATED)

    def destroy(self, request, pk=None):
        result = MeetingRequestService.cancel_request(request.user, pk)
        if not result.success:
            return service_error_response(result)
        return Response(status=status.HTTP_204_NO_CONTENT)

    @extend_schema(parameters=[SentRequestsQuerySerializer])
    @action(detail=False, methods=["get"])
    def sent(self, request):
        query = SentRequestsQuerySerializer(data=request.query_params)
        query.is_valid(raise_exception=True)

        requests = MeetingRequestService.list_sent_requests(
            request.user, query.validated_data.get("status")
        )
        return Response(MeetingRequestSerializer(requests, many=True).data)

    @extend_schema(request=RespondSerializer, responses={200: MeetingRequestSerializer})
    @action(detail=True, methods=["post"])
    def respond(self, request, pk=None):
        serializer = RespondSerializer(data=request.data)
        serializer.is_valid(raise_exception=True)

        result = MeetingRequestService.respond_to_request(
            request.user,
            pk,
            serializer.validated_data["status"],
            serializer.validated_data["message"],
        )
        if not result.success:
            return service_error_response(result)
        return Response(MeetingRequestSerializer(result.data).data)


@extend_schema(tags=["Meetings - Update Requests"])
class MeetingUpdateRequestViewSet(viewsets.GenericViewSet):
    """Proposed changes to shared meetings."""

    permission_classes = [IsAuthenticated]
    serializer_class = MeetingUpdateRequestSerializer
    lookup_value_regex = UUID_LOOKUP

    def list(self, request):
        update_requests = MeetingUpdateService.list_pending_update_requests(request.user)
        return Response(MeetingUpdateRequestSerializer(update_requests, many=True).data)

    @extend_schema(request=RespondSerializer, responses={200: MeetingUpdateRequestSerializer})
    @action(detail=True, methods=["post"])
    def respond(self, request, pk=None):
        serializer = RespondSerializer(data=request.data)
        serializer.is_valid(raise_exception=True)

        result = MeetingUpdateService.respond_to_meeting_update(
            request.user,
            pk,
            serializer.validated_data["status"],
            serializer.validated_data["message"],
        )
        if not result.success:
            return service_error_response(result)
        return Response(MeetingUpdateRequestSerializer(result.data).data)
