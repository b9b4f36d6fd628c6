"""
Django admin configuration for authentication models.

Related files:
    - models.py: User
"""

from django.contrib import admin
from django.contrib.auth.admin import UserAdmin as BaseUserAdmin

from authentication.models import User


@admin.register(User)
class UserAdmin(BaseUserAdmin):
    """
    Admin configuration for User model.

    Customized for email-based authentication with presence shown
    alongside account status.
    """

    list_display = (
        "email",
        "name",
        "presence_status",
        "last_heartbeat",
        "is_active",
        "is_staff",
        "date_joined",
    )
    list_filter = (
        "presence_status",
        "is_active",
        "is_staff",
        "is_superuser",
    )
    search_fields = ("email", "name")
    ordering = ("-date_joined",)

    fieldsets = (
        (None, {"fields": ("email", "password")}),
        ("Profile", {"fields": ("name", "avatar_url")}),
        ("Presence", {"fields": ("presence_status", "last_heartbeat")}),
        (
            "Permissions",
            {"fields": ("is_active", "is_staff", "is_superuser", "groups", "user_permissions")},
        ),
        ("Important dates", {"fields": ("date_joined", "last_login")}),
    )

    add_fieldsets = (
        (
            None,
            {
                "classes": ("wide",),
                "fields": ("email", "name", "password1", "password2"),
            },
        ),
    )

    readonly_fields = ("date_joined", "last_login", "last_heartbeat")
