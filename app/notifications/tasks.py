"""
Celery tasks for notification delivery.

Tasks:
    deliver_notification: Create the inbox row, then push it to browsers
    send_push_notification: Deliver a web push (VAPID) to every subscription
    broadcast_user_event: Relay an event to a user's WebSocket group

Design:
    - Tasks are enqueued on commit by notifications.services
    - Delivery failures are classified and logged; they never reach the
      request that triggered them
    - Expired push endpoints (HTTP 404/410) are deleted

Usage:
    from notifications.tasks import send_push_notification

    send_push_notification.delay(user_id=user.id, title="Hi", body="...", url="/")
"""

from __future__ import annotations

import json
import logging

from asgiref.sync import async_to_sync
from celery import shared_task
from channels.layers import get_channel_layer
from django.conf import settings
from pywebpush import WebPushException, webpush

from authentication.models import User
from core.helpers import enqueue_on_commit
from notifications.models import PushSubscription
from notifications.services import NotificationService, user_group_name

logger = logging.getLogger(__name__)


# Push service responses meaning the subscription is gone for good
EXPIRED_SUBSCRIPTION_STATUSES = {404, 410}


class DeliveryError(Exception):
    """A single push delivery failed."""

    def __init__(self, message: str, code: str, is_permanent: bool = False):
        super().__init__(message)
        self.code = code
        self.is_permanent = is_permanent


def _vapid_configured() -> bool:
    return bool(settings.VAPID_PRIVATE_KEY and settings.VAPID_CLAIMS_EMAIL)


def _send_one(subscription: PushSubscription, payload: str) -> None:
    """
    Send one web push.

    Raises:
        DeliveryError: is_permanent=True when the endpoint has expired
    """
    try:
        webpush(
            subscription_info=subscription.to_subscription_info(),
            data=payload,
            vapid_private_key=settings.VAPID_PRIVATE_KEY,
            vapid_claims={"sub": f"mailto:{settings.VAPID_CLAIMS_EMAIL}"},
        )
    except WebPushException as e:
        status_code = getattr(e.response, "status_code", None)
        if status_code in EXPIRED_SUBSCRIPTION_STATUSES:
            raise DeliveryError(str(e), code="expired", is_permanent=True) from e
        raise DeliveryError(str(e), code=f"http_{status_code}") from e


@shared_task(bind=True)
def deliver_notification(
    self,
    recipient_id,
    notification_type: str,
    title: str,
    body: str = "",
    reference_id: str = "",
    reference_type: str = "",
    url: str | None = None,
) -> str | None:
    """
    Create an in-app notification and enqueue its web push.

    Returns:
        Notification id as string, or None if the recipient is gone
    """
    if not User.objects.filter(pk=recipient_id, is_active=True).exists():
        logger.warning(f"Skipping notification for missing user {recipient_id}")
        return None

    result = NotificationService.create_notification(
        recipient_id=recipient_id,
        notification_type=notification_type,
        title=title,
        body=body,
        reference_id=reference_id,
        reference_type=reference_type,
    )

    enqueue_on_commit(
        send_push_notification,
        user_id=recipient_id,
        title=title,
        body=body,
        url=url or "/",
    )
    return str(result.data.id)


@shared_task(bind=True)
def send_push_notification(self, user_id, title: str, body: str, url: str = "/") -> int:
    """
    Deliver a web push to every subscription of the user.

    Flow:
        1. Skip (and log) if VAPID keys are not configured
        2. Send to each subscription
        3. Delete subscriptions the push service reports as expired
        4. Log other failures and carry on with the next subscription

    Returns:
        Number of subscriptions the push was accepted for
    """
    if not _vapid_configured():
        logger.info(f"VAPID keys not configured, skipping push for user {user_id}")
        return 0

    subscriptions = list(PushSubscription.objects.filter(user_id=user_id))
    if not subscriptions:
        return 0

    payload = json.dumps({"title": title, "body": body, "url": url})
    sent = 0

    for subscription in subscriptions:
        try:
            _send_one(subscription, payload)
            sent += 1
        except DeliveryError as e:
            if e.is_permanent:
                logger.info(
                    f"Removing expired push subscription {subscription.id} for user {user_id}"
                )
                subscription.delete()
            else:
                logger.warning(
                    f"Push to subscription {subscription.id} failed: {e.code} - {e}"
                )
        except Exception as e:
            logger.exception(
                f"Unexpected error sending push to subscription {subscription.id}: {e}"
            )

    logger.debug(f"Push delivered to {sent}/{len(subscriptions)} subscriptions of user {user_id}")
    return sent


@shared_task(bind=True)
def broadcast_user_event(self, user_id, event: str, payload: dict) -> bool:
    """
    Send an event to all WebSocket connections of a user.

    Connections are grouped per user by UserEventsConsumer; users without
    an open socket simply miss the event (clients refetch on connect).

    Returns:
        True if the event was handed to the channel layer
    """
    channel_layer = get_channel_layer()
    if channel_layer is None:
        logger.warning("No channel layer configured, dropping realtime event")
        return False

    try:
        async_to_sync(channel_layer.group_send)(
            user_group_name(user_id),
            {"type": "user.event", "event": event, "payload": payload},
        )
    except Exception as e:
        logger.exception(f"Failed to broadcast {event} to user {user_id}: {e}")
        return False

    return True
