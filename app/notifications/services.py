"""
Notification service layer.

Services:
    NotificationService: Inbox creation, listing and read status
    PushSubscriptionService: Registering and removing web push endpoints
    RealtimeService: Per-user WebSocket events published after commit

Entry point for other apps:
    notify(): Enqueue a notification (in-app + web push) after commit.
    Delivery problems are logged, never raised to the caller.

Usage:
    from notifications.services import NotificationService, notify

    notify(
        recipient_id=bob.id,
        notification_type=NotificationType.CALL,
        title="Incoming video call",
        body="Ada is calling you",
        reference_id=str(call.id),
        reference_type="call",
    )

    result = NotificationService.mark_as_read(request.user, notification_id)
"""

from __future__ import annotations

import logging
from typing import TYPE_CHECKING

from django.db.models import QuerySet

from core.helpers import enqueue_on_commit
from core.services import BaseService, ErrorCode, ServiceResult
from notifications.models import Notification, PushSubscription

if TYPE_CHECKING:
    from collections.abc import Iterable

    from authentication.models import User

logger = logging.getLogger(__name__)


def user_group_name(user_id) -> str:
    """Channels group that every WebSocket of a user joins."""
    return f"user_{user_id}"


def notify(
    recipient_id,
    notification_type: str,
    title: str,
    body: str = "",
    reference_id: str = "",
    reference_type: str = "",
    url: str | None = None,
) -> None:
    """
    Fire-and-forget notification for one user.

    The notification row, its realtime event and its web push are all
    produced by notifications.tasks.deliver_notification once the current
    transaction commits.
    """
    from notifications.tasks import deliver_notification

    enqueue_on_commit(
        deliver_notification,
        recipient_id=recipient_id,
        notification_type=notification_type,
        title=title,
        body=body,
        reference_id=str(reference_id) if reference_id else "",
        reference_type=reference_type,
        url=url,
    )


def notify_many(recipient_ids: Iterable, **kwargs) -> None:
    """notify() for several recipients with the same content."""
    for recipient_id in recipient_ids:
        notify(recipient_id, **kwargs)


class NotificationService(BaseService):
    """
    Inbox operations.

    Mutations are restricted to the recipient; a notification belonging
    to someone else is reported as NOT_FOUND so ids cannot be probed.
    """

    DEFAULT_LIST_LIMIT = 50

    @classmethod
    def create_notification(
        cls,
        recipient_id,
        notification_type: str,
        title: str,
        body: str = "",
        reference_id: str = "",
        reference_type: str = "",
    ) -> ServiceResult[Notification]:
        """
        Persist a notification and publish it to the recipient's sockets.

        Args:
            recipient_id: Primary key of the recipient
            notification_type: One of NotificationType values
            title: Headline
            body: Detail text
            reference_id: Id of the source record
            reference_type: Kind of the source record

        Returns:
            ServiceResult with the Notification
        """
        with cls.atomic():
            notification = Notification.objects.create(
                recipient_id=recipient_id,
                notification_type=notification_type,
                title=title,
                body=body,
                reference_id=reference_id,
                reference_type=reference_type,
            )
            RealtimeService.publish(
                [recipient_id],
                "notification.created",
                {
                    "id": str(notification.id),
                    "notification_type": notification_type,
                    "title": title,
                    "body": body,
                    "reference_id": reference_id,
                    "reference_type": reference_type,
                },
            )

        cls.get_logger().debug(
            f"Notification {notification.id} ({notification_type}) created for user {recipient_id}"
        )
        return ServiceResult.success(notification)

    @classmethod
    def list_for_user(
        cls,
        user: User,
        limit: int | None = None,
        unread_only: bool = False,
    ) -> QuerySet[Notification]:
        """Newest notifications first, at most `limit`."""
        queryset = Notification.objects.filter(recipient=user)
        if unread_only:
            queryset = queryset.filter(is_read=False)
        return queryset.order_by("-created_at")[: limit or cls.DEFAULT_LIST_LIMIT]

    @classmethod
    def get_unread_count(cls, user: User) -> int:
        return Notification.objects.filter(recipient=user, is_read=False).count()

    @classmethod
    def mark_as_read(cls, user: User, notification_id) -> ServiceResult[Notification]:
        notification = Notification.objects.filter(
            pk=notification_id, recipient=user
        ).first()
        if notification is None:
            return ServiceResult.failure(
                "Notification not found", error_code=ErrorCode.NOT_FOUND
            )

        if not notification.is_read:
            notification.is_read = True
            notification.save(update_fields=["is_read", "updated_at"])

        return ServiceResult.success(notification)

    @classmethod
    def mark_all_as_read(cls, user: User) -> ServiceResult[int]:
        """
        Mark every unread notification of the user as read.

        Returns:
            ServiceResult with the number of notifications updated
        """
        count = Notification.objects.filter(recipient=user, is_read=False).update(
            is_read=True
        )
        return ServiceResult.success(count)

    @classmethod
    def delete_notification(cls, user: User, notification_id) -> ServiceResult[None]:
        deleted, _ = Notification.objects.filter(
            pk=notification_id, recipient=user
        ).delete()
        if not deleted:
            return ServiceResult.failure(
                "Notification not found", error_code=ErrorCode.NOT_FOUND
            )
        return ServiceResult.success(None)


class PushSubscriptionService(BaseService):
    """Register and remove browser push endpoints."""

    @classmethod
    def save_subscription(
        cls,
        user: User,
        endpoint: str,
        p256dh: str,
        auth: str,
    ) -> ServiceResult[PushSubscription]:
        """
        Upsert a subscription by endpoint.

        A browser that was subscribed under another account is moved to
        `user`, with its keys refreshed.
        """
        subscription, created = PushSubscription.objects.update_or_create(
            endpoint=endpoint,
            defaults={"user": user, "p256dh": p256dh, "auth": auth},
        )
        cls.get_logger().info(
            f"Push subscription {'created' if created else 'updated'} for user {user.id}"
        )
        return ServiceResult.success(subscription)

    @classmethod
    def remove_subscription(cls, user: User, endpoint: str) -> ServiceResult[int]:
        """
        Remove the caller's subscription for endpoint.

        Always succeeds; other users' subscriptions are left alone.
        """
        deleted, _ = PushSubscription.objects.filter(
            user=user, endpoint=endpoint
        ).delete()
        return ServiceResult.success(deleted)


class RealtimeService(BaseService):
    """
    Publish events to users' open WebSocket connections.

    Events are sent by notifications.tasks.broadcast_user_event after the
    current transaction commits, so clients never see uncommitted state.

    Event names:
        call.incoming, call.updated
        message.created, message.updated
        meeting.requested, meeting.responded, meeting.update_requested,
        meeting.updated
        notification.created
    """

    @classmethod
    def publish(cls, user_ids: Iterable, event: str, payload: dict) -> None:
        from notifications.tasks import broadcast_user_event

        for user_id in set(user_ids):
            enqueue_on_commit(
                broadcast_user_event,
                user_id=user_id,
                event=event,
                payload=payload,
            )
