"""
Serializers for the meetings API.

Serializer Hierarchy:
    CalendarEventSerializer: Full event (owner's view)
    PublicSlotSerializer: Times of a public event, nothing else
    CalendarEventCreateSerializer / CalendarEventUpdateSerializer: Event input
    DateRangeQuerySerializer: ?start=&end= for list endpoints

    MeetingRequestSerializer: Request with both participants
    MeetingRequestCreateSerializer: Propose a meeting
    MeetingUpdateRequestSerializer: Proposed change with its requester
    RespondSerializer: approved / denied plus optional message
"""

from __future__ import annotations

from rest_framework import serializers

from authentication.serializers import UserSummarySerializer
from meetings.models import (
    RESPONSE_STATUSES,
    CalendarEvent,
    MeetingRequest,
    MeetingStatus,
    MeetingUpdateRequest,
)


# =============================================================================
# Calendar Events
# =============================================================================


class CalendarEventSerializer(serializers.ModelSerializer):
    class Meta:
        model = CalendarEvent
        fields = [
            "id",
            "user_id",
            "title",
            "description",
            "start_time",
            "end_time",
            "is_all_day",
            "is_public",
            "meeting_request_id",
            "created_at",
            "updated_at",
        ]
        read_only_fields = fields


class PublicSlotSerializer(serializers.Serializer):
    """A public event as seen by other users: only when it happens."""

    id = serializers.UUIDField()
    start_time = serializers.DateTimeField()
    end_time = serializers.DateTimeField()
    is_all_day = serializers.BooleanField()


class CalendarEventCreateSerializer(serializers.Serializer):
    title = serializers.CharField(max_length=200, allow_blank=True)
    description = serializers.CharField(required=False, allow_blank=True, default="")
    start_time = serializers.DateTimeField()
    end_time = serializers.DateTimeField()
    is_all_day = serializers.BooleanField(required=False, default=False)
    is_public = serializers.BooleanField(required=False, default=False)


class CalendarEventUpdateSerializer(serializers.Serializer):
    """All fields optional; only the ones sent are changed."""

    title = serializers.CharField(max_length=200, required=False, allow_blank=True)
    description = serializers.CharField(required=False, allow_blank=True)
    start_time = serializers.DateTimeField(required=False)
    end_time = serializers.DateTimeField(required=False)
    is_all_day = serializers.BooleanField(required=False)
    is_public = serializers.BooleanField(required=False)


class DateRangeQuerySerializer(serializers.Serializer):
    start = serializers.DateTimeField()
    end = serializers.DateTimeField()


class PublicCalendarQuerySerializer(DateRangeQuerySerializer):
    user_id = serializers.IntegerField()


# =============================================================================
# Meeting Requests
# =============================================================================


class MeetingRequestSerializer(serializers.ModelSerializer):
    requester = UserSummarySerializer(read_only=True)
    recipient = UserSummarySerializer(read_only=True)

    class Meta:
        model = MeetingRequest
        fields = [
            "id",
            "requester",
            "recipient",
            "title",
            "description",
            "proposed_start_time",
            "proposed_end_time",
            "status",
            "response_message",
            "responded_at",
            "event_id",
            "created_at",
        ]
        read_only_fields = fields


class MeetingRequestCreateSerializer(serializers.Serializer):
    recipient_id = serializers.IntegerField()
    title = serializers.CharField(max_length=200, allow_blank=True)
    description = serializers.CharField(required=False, allow_blank=True, default="")
    proposed_start_time = serializers.DateTimeField()
    proposed_end_time = serializers.DateTimeField()


class SentRequestsQuerySerializer(serializers.Serializer):
    status = serializers.ChoiceField(choices=MeetingStatus.choices, required=False)


class MeetingUpdateRequestSerializer(serializers.ModelSerializer):
    requested_by = UserSummarySerializer(read_only=True)
    meeting_title = serializers.CharField(source="meeting_request.title", read_only=True)

    class Meta:
        model = MeetingUpdateRequest
        fields = [
            "id",
            "meeting_request_id",
            "meeting_title",
            "requested_by",
            "respondent_id",
            "proposed_title",
            "proposed_description",
            "proposed_start_time",
            "proposed_end_time",
            "proposed_is_all_day",
            "proposed_is_public",
            "status",
            "response_message",
            "responded_at",
            "created_at",
        ]
        read_only_fields = fields


class RespondSerializer(serializers.Serializer):
    status = serializers.ChoiceField(choices=[(s.value, s.label) for s in RESPONSE_STATUSES])
    message = serializers.CharField(required=False, allow_blank=True, default="")


class EventUpdateApprovalSerializer(serializers.Serializer):
    """Body of 202 responses when an edit needs the other participant's consent."""

    requires_approval = serializers.BooleanField()
    message = serializers.CharField()
    update_request = MeetingUpdateRequestSerializer()
