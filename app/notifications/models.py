"""
Notification system models.

This module defines:
- NotificationType: Kinds of notifications the other apps emit
- Notification: An entry in a user's in-app inbox
- PushSubscription: A browser web push endpoint registered by a user

Design Decisions:
    - reference_id/reference_type point at the source record (conversation,
      group, call, meeting request) without a foreign key, so deleting the
      source never deletes the inbox entry
    - PushSubscription.endpoint is globally unique; re-subscribing the same
      browser under another account moves the row to that account
"""

from django.conf import settings
from django.db import models

from core.models import BaseModel, UUIDPrimaryKeyMixin


class NotificationType(models.TextChoices):
    MESSAGE = "message", "Message"
    CALL = "call", "Call"
    MEETING_REQUEST = "meeting_request", "Meeting request"
    MEETING_RESPONSE = "meeting_response", "Meeting response"
    MEETING_UPDATE_REQUEST = "meeting_update_request", "Meeting update request"
    GROUP_INVITE = "group_invite", "Group invite"


class Notification(UUIDPrimaryKeyMixin, BaseModel):
    """
    In-app notification.

    Fields:
        recipient: User who sees the notification
        notification_type: See NotificationType
        title: Short headline ("New message from Ada")
        body: Detail text (message preview, meeting title)
        reference_id: Id of the record the notification is about
        reference_type: Kind of that record ("conversation", "call", ...)
        is_read: Whether the recipient has seen it
    """

    recipient = models.ForeignKey(
        settings.AUTH_USER_MODEL,
        on_delete=models.CASCADE,
        related_name="notifications",
    )
    notification_type = models.CharField(
        max_length=30,
        choices=NotificationType.choices,
        db_index=True,
    )
    title = models.CharField(max_length=255)
    body = models.TextField(blank=True, default="")
    reference_id = models.CharField(max_length=64, blank=True, default="")
    reference_type = models.CharField(max_length=30, blank=True, default="")
    is_read = models.BooleanField(default=False)

    class Meta:
        ordering = ["-created_at"]
        indexes = [
            models.Index(
                fields=["recipient", "is_read", "-created_at"],
                name="notif_recipient_read_idx",
            ),
        ]

    def __str__(self) -> str:
        return f"{self.notification_type} for {self.recipient_id}: {self.title}"


class PushSubscription(BaseModel):
    """
    Web push subscription (the browser's PushSubscription JSON).

    Fields:
        user: Owner of the browser session
        endpoint: Push service URL, unique per browser
        p256dh: Client public key for payload encryption
        auth: Client auth secret
    """

    user = models.ForeignKey(
        settings.AUTH_USER_MODEL,
        on_delete=models.CASCADE,
        related_name="push_subscriptions",
    )
    endpoint = models.CharField(max_length=500, unique=True)
    p256dh = models.CharField(max_length=255)
    auth = models.CharField(max_length=255)

    class Meta:
        ordering = ["-created_at"]

    def __str__(self) -> str:
        return f"PushSubscription({self.user_id}, {self.endpoint[:40]})"

    def to_subscription_info(self) -> dict:
        """Subscription in the shape pywebpush expects."""
        return {
            "endpoint": self.endpoint,
            "keys": {"p256dh": self.p256dh, "auth": self.auth},
        }
