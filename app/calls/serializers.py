"""
Serializers for the calls API.

Serializer Hierarchy:
    CallSerializer: Call with initiator and formatted duration
    CallSessionSerializer: Call plus the media token for the caller
    CallCreateSerializer: Start a call in a conversation or group
    CallHistoryQuerySerializer: Query parameters for call history
"""

from __future__ import annotations

from django.conf import settings
from rest_framework import serializers

from authentication.serializers import UserSummarySerializer
from calls.models import Call, CallType
from calls.services import format_duration
from chat.serializers import MessageTargetSerializer
from chat.targets import target_from_ids


class CallSerializer(serializers.ModelSerializer):
    """
    Call as shown in the active call, incoming list and history.

    formatted_duration is null until the call has ended with a duration.
    """

    initiator = UserSummarySerializer(read_only=True)
    formatted_duration = serializers.SerializerMethodField()

    class Meta:
        model = Call
        fields = [
            "id",
            "conversation_id",
            "group_id",
            "initiator",
            "call_type",
            "status",
            "room_name",
            "started_at",
            "ended_at",
            "duration",
            "formatted_duration",
            "created_at",
        ]
        read_only_fields = fields

    def get_formatted_duration(self, obj: Call) -> str | None:
        if obj.duration is None:
            return None
        return format_duration(obj.duration)


class CallSessionSerializer(serializers.Serializer):
    """
    Connection details returned by create and join.

    is_placeholder is True when LiveKit is not configured; the token is
    then only good for exercising the call flow, not for joining a room.
    """

    call = CallSerializer(read_only=True)
    room_name = serializers.CharField(read_only=True)
    token = serializers.CharField(source="media.token", read_only=True)
    is_placeholder = serializers.BooleanField(source="media.is_placeholder", read_only=True)
    livekit_url = serializers.SerializerMethodField()

    def get_livekit_url(self, obj) -> str:
        return settings.LIVEKIT_URL


class CallCreateSerializer(MessageTargetSerializer):
    call_type = serializers.ChoiceField(choices=CallType.choices, default=CallType.VIDEO)


class CallHistoryQuerySerializer(serializers.Serializer):
    """Query parameters of GET /calls/history/."""

    conversation_id = serializers.UUIDField(required=False)
    group_id = serializers.UUIDField(required=False)
    limit = serializers.IntegerField(required=False, min_value=1, max_value=100)

    def validate(self, attrs):
        attrs["target"] = target_from_ids(
            conversation_id=attrs.pop("conversation_id", None),
            group_id=attrs.pop("group_id", None),
        )
        return attrs
