"""
Tests for notification Celery tasks.

Web push is mocked at notifications.tasks.webpush; tasks are called
directly (synchronously) rather than through the broker.
"""

from unittest.mock import MagicMock, patch

from pywebpush import WebPushException

from notifications.models import Notification, NotificationType, PushSubscription
from notifications.services import user_group_name
from notifications.tasks import (
    broadcast_user_event,
    deliver_notification,
    send_push_notification,
)
from notifications.tests.factories import PushSubscriptionFactory


def _push_error(status_code):
    response = MagicMock(status_code=status_code)
    return WebPushException(f"Push failed: {status_code}", response=response)


class TestDeliverNotification:
    """Tests for deliver_notification."""

    def test_creates_notification_for_active_user(self, user):
        notification_id = deliver_notification(
            recipient_id=user.id,
            notification_type=NotificationType.MEETING_REQUEST,
            title="New meeting request",
            body="Grace requested: Sync",
        )

        notification = Notification.objects.get(pk=notification_id)
        assert notification.recipient == user
        assert notification.notification_type == NotificationType.MEETING_REQUEST

    def test_skips_inactive_user(self, user):
        """Deactivated accounts receive nothing."""
        user.is_active = False
        user.save()

        result = deliver_notification(
            recipient_id=user.id,
            notification_type=NotificationType.MESSAGE,
            title="Hi",
        )

        assert result is None
        assert not Notification.objects.exists()

    def test_enqueues_push_after_commit(self, user, django_capture_on_commit_callbacks):
        with patch("notifications.tasks.send_push_notification.delay") as delay:
            with django_capture_on_commit_callbacks(execute=True):
                deliver_notification(
                    recipient_id=user.id,
                    notification_type=NotificationType.CALL,
                    title="Incoming video call",
                    body="Grace is calling you",
                    url="/calls",
                )

        delay.assert_called_once_with(
            user_id=user.id,
            title="Incoming video call",
            body="Grace is calling you",
            url="/calls",
        )


class TestSendPushNotification:
    """Tests for send_push_notification."""

    @patch("notifications.tasks.webpush")
    def test_skips_when_vapid_not_configured(self, mock_webpush, push_subscription, settings):
        settings.VAPID_PRIVATE_KEY = ""

        sent = send_push_notification(
            user_id=push_subscription.user_id, title="Hi", body="There"
        )

        assert sent == 0
        mock_webpush.assert_not_called()

    @patch("notifications.tasks.webpush")
    def test_sends_to_every_subscription(self, mock_webpush, user, vapid_settings):
        PushSubscriptionFactory.create_batch(2, user=user)

        sent = send_push_notification(user_id=user.id, title="Hi", body="There", url="/chat")

        assert sent == 2
        assert mock_webpush.call_count == 2
        kwargs = mock_webpush.call_args.kwargs
        assert kwargs["vapid_private_key"] == "test-private-key"
        assert kwargs["vapid_claims"] == {"sub": "mailto:push@example.com"}
        assert '"url": "/chat"' in kwargs["data"]

    @patch("notifications.tasks.webpush")
    def test_expired_subscription_is_deleted(
        self, mock_webpush, push_subscription, vapid_settings
    ):
        """
        Given the push service answers 410 Gone
        When a push is sent
        Then the subscription is removed
        """
        mock_webpush.side_effect = _push_error(410)

        sent = send_push_notification(
            user_id=push_subscription.user_id, title="Hi", body="There"
        )

        assert sent == 0
        assert not PushSubscription.objects.exists()

    @patch("notifications.tasks.webpush")
    def test_transient_failure_keeps_subscription(
        self, mock_webpush, user, vapid_settings, caplog
    ):
        """
        Given one subscription fails with a server error
        When a push is sent to two subscriptions
        Then the other still receives it and the failing one is kept
        """
        PushSubscriptionFactory.create_batch(2, user=user)
        mock_webpush.side_effect = [_push_error(500), None]

        sent = send_push_notification(user_id=user.id, title="Hi", body="There")

        assert sent == 1
        assert PushSubscription.objects.filter(user=user).count() == 2
        assert "http_500" in caplog.text

    @patch("notifications.tasks.webpush")
    def test_unexpected_error_is_logged(self, mock_webpush, push_subscription, vapid_settings):
        mock_webpush.side_effect = ValueError("bad key")

        sent = send_push_notification(
            user_id=push_subscription.user_id, title="Hi", body="There"
        )

        assert sent == 0
        assert PushSubscription.objects.exists()


class TestBroadcastUserEvent:
    """Tests for broadcast_user_event."""

    @patch("notifications.tasks.get_channel_layer")
    def test_sends_to_user_group(self, mock_get_layer):
        layer = MagicMock()
        mock_get_layer.return_value = layer

        with patch("notifications.tasks.async_to_sync") as mock_async_to_sync:
            result = broadcast_user_event(user_id=7, event="call.incoming", payload={"a": 1})

        assert result is True
        mock_async_to_sync.assert_called_once_with(layer.group_send)
        mock_async_to_sync.return_value.assert_called_once_with(
            user_group_name(7),
            {"type": "user.event", "event": "call.incoming", "payload": {"a": 1}},
        )

    @patch("notifications.tasks.get_channel_layer", return_value=None)
    def test_no_channel_layer(self, mock_get_layer):
        assert broadcast_user_event(user_id=7, event="x", payload={}) is False

    @patch("notifications.tasks.get_channel_layer")
    def test_channel_layer_failure_returns_false(self, mock_get_layer, caplog):
        with patch(
            "notifications.tasks.async_to_sync",
            return_value=MagicMock(side_effect=ConnectionError("redis down")),
        ):
            result = broadcast_user_event(user_id=7, event="message.created", payload={})

        assert result is False
        assert "Failed to broadcast message.created" in caplog.text
