"""
Serializers for authentication models.

This module provides DRF serializers for:
- User (read operations, with effective presence)
- UserSummary (compact embedding inside calls, messages and meetings)
- Profile updates and presence changes
- Registration (dj-rest-auth, with display name)

Related files:
    - models.py: User, PresenceStatus
    - views.py: UserViewSet
    - settings.py: REST_AUTH serializer configuration

Security:
    - Password fields are write-only (handled by dj-rest-auth)
    - presence_status is always the derived value, never the raw column
"""

from dj_rest_auth.registration.serializers import RegisterSerializer as BaseRegisterSerializer
from rest_framework import serializers

from authentication.models import PresenceStatus, User


class UserSerializer(serializers.ModelSerializer):
    """
    Serializer for User model (read operations).

    Used by dj-rest-auth for /api/v1/auth/user/ and by the users API.
    presence_status is the effective value, so a user whose client
    stopped sending heartbeats shows as offline.
    """

    presence_status = serializers.CharField(source="effective_presence", read_only=True)

    class Meta:
        model = User
        fields = [
            "id",
            "email",
            "name",
            "avatar_url",
            "presence_status",
            "last_heartbeat",
            "date_joined",
        ]
        read_only_fields = fields


class UserSummarySerializer(serializers.ModelSerializer):
    """Compact user representation embedded in other resources."""

    class Meta:
        model = User
        fields = ["id", "name", "email", "avatar_url"]
        read_only_fields = fields


class ProfileUpdateSerializer(serializers.Serializer):
    """Input for PATCH /users/me/."""

    name = serializers.CharField(max_length=150, required=False, allow_blank=True)
    avatar_url = serializers.URLField(max_length=500, required=False, allow_blank=True)


class PresenceUpdateSerializer(serializers.Serializer):
    """Input for POST /users/me/presence/."""

    status = serializers.ChoiceField(choices=PresenceStatus.choices)


class RegisterSerializer(BaseRegisterSerializer):
    """
    dj-rest-auth registration with an optional display name.

    Username fields are disabled (the User model has none).
    """

    username = None
    name = serializers.CharField(max_length=150, required=False, allow_blank=True)

    def custom_signup(self, request, user):
        """Persist the display name after allauth creates the user."""
        name = self.validated_data.get("name", "")
        if name:
            user.name = name.strip()
            user.save(update_fields=["name", "updated_at"])
