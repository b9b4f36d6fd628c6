"""
Authentication services.

This module provides:
- PresenceService: explicit status changes, heartbeats and the presence
  side effects of joining and leaving calls
- UserService: user lookup, search and profile updates

Related files:
    - models.py: User, PresenceStatus
    - presence.py: effective presence (derived at read time)
    - calls/services.py: sets users in-call and restores them afterwards
"""

from __future__ import annotations

from typing import TYPE_CHECKING

from django.db.models import Q
from django.utils import timezone

from authentication.models import PresenceStatus, User
from core.services import BaseService, ErrorCode, ServiceResult

if TYPE_CHECKING:
    from django.db.models import QuerySet


class PresenceService(BaseService):
    """
    Writes to User.presence_status and User.last_heartbeat.

    Presence is only ever READ through User.effective_presence; this
    service never tries to mark stale users offline.

    Usage:
        PresenceService.heartbeat(request.user)
        PresenceService.update_status(request.user, PresenceStatus.BUSY)
    """

    @classmethod
    def update_status(cls, user: User, status: str) -> ServiceResult[User]:
        """
        Set the user's presence and refresh the heartbeat.

        Args:
            user: User changing their status
            status: One of PresenceStatus values

        Returns:
            ServiceResult with the updated user
        """
        if status not in PresenceStatus.values:
            return ServiceResult.failure(
                f"Unknown presence status: {status}",
                error_code=ErrorCode.VALIDATION_ERROR,
            )

        user.presence_status = status
        user.last_heartbeat = timezone.now()
        user.save(update_fields=["presence_status", "last_heartbeat", "updated_at"])

        cls.get_logger().debug(f"User {user.id} presence set to {status}")
        return ServiceResult.success(user)

    @classmethod
    def heartbeat(cls, user: User) -> ServiceResult[User]:
        """
        Record that the user's client is still online.

        A user whose stored status is offline becomes active; any other
        stored status (away, busy, inCall) is preserved.
        """
        update_fields = ["last_heartbeat", "updated_at"]
        user.last_heartbeat = timezone.now()

        if user.presence_status == PresenceStatus.OFFLINE:
            user.presence_status = PresenceStatus.ACTIVE
            update_fields.append("presence_status")

        user.save(update_fields=update_fields)
        return ServiceResult.success(user)

    @classmethod
    def set_in_call(cls, user: User) -> None:
        """Mark the user as in a call. The heartbeat is left untouched."""
        User.objects.filter(pk=user.pk).update(
            presence_status=PresenceStatus.IN_CALL,
            updated_at=timezone.now(),
        )
        user.presence_status = PresenceStatus.IN_CALL

    @classmethod
    def restore_after_call(cls, user_ids, only_if_in_call: bool = False) -> int:
        """
        Put users back to active after a call.

        Args:
            user_ids: Iterable of user primary keys
            only_if_in_call: Restore only users whose stored status is
                still inCall, leaving away/busy choices alone

        Returns:
            Number of users updated
        """
        queryset = User.objects.filter(pk__in=list(user_ids))
        if only_if_in_call:
            queryset = queryset.filter(presence_status=PresenceStatus.IN_CALL)
        return queryset.update(
            presence_status=PresenceStatus.ACTIVE,
            updated_at=timezone.now(),
        )


class UserService(BaseService):
    """
    User lookup and profile updates.

    Usage:
        result = UserService.get_user(user_id)
        users = UserService.search_users(request.user, "ada")
    """

    SEARCH_LIMIT = 10

    @classmethod
    def get_user(cls, user_id) -> ServiceResult[User]:
        """Fetch an active user by primary key."""
        user = User.objects.filter(pk=user_id, is_active=True).first()
        if user is None:
            return ServiceResult.failure(
                "User not found", error_code=ErrorCode.NOT_FOUND
            )
        return ServiceResult.success(user)

    @classmethod
    def search_users(
        cls,
        user: User,
        query: str,
        limit: int | None = None,
    ) -> QuerySet[User]:
        """
        Find users whose name or email contains the query.

        The requesting user is excluded so they cannot start a
        conversation with themselves.

        Args:
            user: Requesting user
            query: Case-insensitive search term
            limit: Maximum results (default SEARCH_LIMIT)
        """
        limit = limit or cls.SEARCH_LIMIT
        term = (query or "").strip()

        queryset = User.objects.filter(is_active=True).exclude(pk=user.pk)
        if term:
            queryset = queryset.filter(Q(name__icontains=term) | Q(email__icontains=term))

        return queryset.order_by("name", "email")[:limit]

    @classmethod
    def update_profile(
        cls,
        user: User,
        name: str | None = None,
        avatar_url: str | None = None,
    ) -> ServiceResult[User]:
        """
        Update display fields. Fields left as None are unchanged.
        """
        update_fields = ["updated_at"]
        if name is not None:
            user.name = name.strip()
            update_fields.append("name")
        if avatar_url is not None:
            user.avatar_url = avatar_url
            update_fields.append("avatar_url")

        user.save(update_fields=update_fields)
        return ServiceResult.success(user)
