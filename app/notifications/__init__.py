"""
Notifications app for in-app, web push and realtime delivery.

This app provides:
- Notification model for the in-app inbox
- PushSubscription model for browser web push endpoints
- notify(): fire-and-forget entry point used by chat, calls and meetings
- Celery tasks for push delivery and per-user WebSocket broadcasts
- UserEventsConsumer, the authenticated WebSocket at ws/events/

Usage:
    from notifications.services import notify
    from notifications.models import NotificationType

    notify(
        recipient_id=user.id,
        notification_type=NotificationType.MESSAGE,
        title="New message from Ada",
        body="Lunch?",
        reference_id=str(conversation.id),
        reference_type="conversation",
    )
"""
