"""
Authentication models.

This module defines the user model:
- User: email-based account carrying display data and live presence

Presence:
    presence_status is what the user (or the call manager) last set.
    It is only trusted while heartbeats keep arriving: readers must go
    through User.effective_presence (see authentication.presence), which
    reports "offline" once the last heartbeat is older than the timeout.

Related files:
    - managers.py: Custom user manager for email-based creation
    - presence.py: Pure effective-presence computation
    - services.py: PresenceService and UserService
"""

from django.contrib.auth.models import AbstractBaseUser, PermissionsMixin
from django.db import models

from authentication.managers import UserManager
from authentication.presence import effective_presence


class PresenceStatus(models.TextChoices):
    """
    Live availability states.

    IN_CALL is set by the call manager while the user holds an active
    participant row; OFFLINE is both a stored value and the derived value
    for stale heartbeats.
    """

    ACTIVE = "active", "Active"
    AWAY = "away", "Away"
    BUSY = "busy", "Busy"
    IN_CALL = "inCall", "In call"
    OFFLINE = "offline", "Offline"


class User(AbstractBaseUser, PermissionsMixin):
    """
    Custom User model using email as the primary identifier.

    Fields:
        email: Primary identifier, unique, used for login
        name: Display name shown in chats, calls and notifications
        avatar_url: Optional avatar image location
        presence_status: Last explicitly set presence (see PresenceStatus)
        last_heartbeat: When the client last proved it was online
        is_active: Whether the user account is active
        is_staff: Whether the user can access Django admin
        date_joined: When the user account was created
        updated_at: When the user record was last modified

    Usage:
        user = User.objects.create_user(
            email="ada@example.com",
            password="securepassword",
            name="Ada",
        )
        user.effective_presence  # "offline" until the first heartbeat
    """

    email = models.EmailField(
        unique=True,
        db_index=True,
        max_length=254,
        help_text="User's email address (primary identifier)",
    )
    name = models.CharField(
        max_length=150,
        blank=True,
        help_text="Display name",
    )
    avatar_url = models.URLField(
        max_length=500,
        blank=True,
        help_text="Avatar image URL",
    )

    presence_status = models.CharField(
        max_length=10,
        choices=PresenceStatus.choices,
        default=PresenceStatus.OFFLINE,
        help_text="Last explicitly set presence status",
    )
    last_heartbeat = models.DateTimeField(
        null=True,
        blank=True,
        help_text="When the client last sent a presence heartbeat",
    )

    is_active = models.BooleanField(
        default=True,
        help_text="Whether this user account is active. Deselect instead of deleting.",
    )
    is_staff = models.BooleanField(
        default=False,
        help_text="Whether the user can access the admin site.",
    )

    date_joined = models.DateTimeField(
        auto_now_add=True,
        help_text="When the user account was created",
    )
    updated_at = models.DateTimeField(
        auto_now=True,
        help_text="When the user record was last modified",
    )

    USERNAME_FIELD = "email"
    REQUIRED_FIELDS = []

    objects = UserManager()

    class Meta:
        verbose_name = "user"
        verbose_name_plural = "users"
        ordering = ["-date_joined"]

    def __str__(self):
        return self.email

    def get_full_name(self):
        return self.name or self.email

    def get_short_name(self):
        return self.name or self.email.split("@")[0]

    @property
    def display_name(self) -> str:
        """Name used in system text such as "Ada is calling you"."""
        return self.name or self.email

    @property
    def effective_presence(self) -> str:
        """Presence as other users should see it right now."""
        return effective_presence(self.presence_status, self.last_heartbeat)
