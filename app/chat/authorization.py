"""
Service-level authorization for chat targets.

This module answers "may this user act on this conversation or group?"
for chat, calls and anything else addressed to a Target. It is distinct
from DRF permission classes, which only check authentication.

Key Components:
    ChatAuthorizationService: Stateless access checks keyed by Target

Usage:
    if not ChatAuthorizationService.can_access_target(user, target):
        return ServiceResult.failure(
            "You are not a participant", error_code=ErrorCode.NOT_AUTHORIZED
        )
"""

from __future__ import annotations

from typing import TYPE_CHECKING

from django.db.models import Q

from chat.models import DirectConversation, Group, GroupMember, GroupRole
from chat.targets import ConversationTarget, GroupTarget

if TYPE_CHECKING:
    from authentication.models import User
    from chat.targets import Target


class ChatAuthorizationService:
    """
    Stateless access checks for direct conversations and groups.

    All methods are classmethods; results are not cached.
    """

    @classmethod
    def target_exists(cls, target: Target) -> bool:
        match target:
            case ConversationTarget(id=conversation_id):
                return DirectConversation.objects.filter(pk=conversation_id).exists()
            case GroupTarget(id=group_id):
                return Group.objects.filter(pk=group_id).exists()
        return False

    @classmethod
    def can_access_target(cls, user: User, target: Target) -> bool:
        """
        Check if user is a participant of the conversation or a member of the group.

        Returns False for targets that do not exist.
        """
        match target:
            case ConversationTarget(id=conversation_id):
                return DirectConversation.objects.filter(
                    Q(user_lower=user) | Q(user_higher=user),
                    pk=conversation_id,
                ).exists()
            case GroupTarget(id=group_id):
                return GroupMember.objects.filter(group_id=group_id, user=user).exists()
        return False

    @classmethod
    def get_member_ids(cls, target: Target) -> list:
        """
        All user ids that can see the target's messages and calls.

        Returns:
            List of user primary keys, empty if the target does not exist
        """
        match target:
            case ConversationTarget(id=conversation_id):
                pair = (
                    DirectConversation.objects.filter(pk=conversation_id)
                    .values_list("user_lower_id", "user_higher_id")
                    .first()
                )
                return list(pair) if pair else []
            case GroupTarget(id=group_id):
                return list(
                    GroupMember.objects.filter(group_id=group_id).values_list(
                        "user_id", flat=True
                    )
                )
        return []

    @classmethod
    def accessible_target_q(cls, user: User, prefix: str = "") -> Q:
        """
        Q object matching rows whose target the user can access.

        Args:
            user: User whose conversations and groups count
            prefix: Lookup prefix when filtering a related model (e.g. "call__")

        Example:
            Call.objects.filter(ChatAuthorizationService.accessible_target_q(user))
        """
        conversation_q = Q(**{f"{prefix}conversation__user_lower": user}) | Q(
            **{f"{prefix}conversation__user_higher": user}
        )
        group_ids = GroupMember.objects.filter(user=user).values("group_id")
        group_q = Q(**{f"{prefix}group_id__in": group_ids})
        return conversation_q | group_q

    @classmethod
    def is_group_admin(cls, user: User, group_id) -> bool:
        return GroupMember.objects.filter(
            group_id=group_id, user=user, role=GroupRole.ADMIN
        ).exists()
