"""
Serializers for notification API.

Serializers:
    NotificationSerializer: Read-only inbox entry
    UnreadCountSerializer: Response for unread count endpoint
    MarkAllReadResponseSerializer: Response for mark all read endpoint
    PushSubscriptionSerializer: Browser PushSubscription JSON (input)
    PushUnsubscribeSerializer: Endpoint to remove (input)

Usage:
    from notifications.serializers import NotificationSerializer

    data = NotificationSerializer(notifications, many=True).data
"""

from __future__ import annotations

from rest_framework import serializers

from notifications.models import Notification


class NotificationSerializer(serializers.ModelSerializer):
    """Read-only serializer for Notification model."""

    class Meta:
        model = Notification
        fields = [
            "id",
            "notification_type",
            "title",
            "body",
            "reference_id",
            "reference_type",
            "is_read",
            "created_at",
        ]
        read_only_fields = fields


class UnreadCountSerializer(serializers.Serializer):
    unread_count = serializers.IntegerField()


class MarkAllReadResponseSerializer(serializers.Serializer):
    marked_count = serializers.IntegerField()


class PushKeysSerializer(serializers.Serializer):
    p256dh = serializers.CharField(max_length=255)
    auth = serializers.CharField(max_length=255)


class PushSubscriptionSerializer(serializers.Serializer):
    """
    Input matching the browser's PushSubscription.toJSON().

    Example:
        {
            "endpoint": "https://fcm.googleapis.com/fcm/send/abc...",
            "keys": {"p256dh": "BNc...", "auth": "tBH..."}
        }
    """

    endpoint = serializers.URLField(max_length=500)
    keys = PushKeysSerializer()


class PushUnsubscribeSerializer(serializers.Serializer):
    endpoint = serializers.URLField(max_length=500)


class VapidKeySerializer(serializers.Serializer):
    public_key = serializers.CharField(allow_blank=True)
