"""
Django admin configuration for notification models.
"""

from django.contrib import admin

from notifications.models import Notification, PushSubscription


@admin.register(Notification)
class NotificationAdmin(admin.ModelAdmin):
    """Inbox entries, filterable by type and read status."""

    list_display = (
        "recipient",
        "notification_type",
        "title",
        "is_read",
        "created_at",
    )
    list_filter = ("notification_type", "is_read", "created_at")
    search_fields = ("recipient__email", "title", "body", "reference_id")
    ordering = ("-created_at",)
    raw_id_fields = ("recipient",)
    readonly_fields = ("created_at", "updated_at")


@admin.register(PushSubscription)
class PushSubscriptionAdmin(admin.ModelAdmin):
    list_display = ("user", "endpoint", "created_at")
    search_fields = ("user__email", "endpoint")
    raw_id_fields = ("user",)
    readonly_fields = ("created_at", "updated_at")
