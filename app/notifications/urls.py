"""
URL configuration for notifications API.

Routes:
    /                       - List notifications (GET)
    /{id}/                  - Delete notification (DELETE)
    /unread-count/          - Unread count (GET)
    /{id}/read/             - Mark single as read (POST)
    /read-all/              - Mark all as read (POST)
    /push/vapid-key/        - VAPID public key (GET)
    /push/subscribe/        - Save web push subscription (POST)
    /push/unsubscribe/      - Remove web push subscription (POST)
"""

from rest_framework.routers import SimpleRouter

from notifications.views import NotificationViewSet, PushSubscriptionViewSet

router = SimpleRouter()
router.register(r"push", PushSubscriptionViewSet, basename="push")
router.register(r"", NotificationViewSet, basename="notification")

app_name = "notifications"
urlpatterns = router.urls
