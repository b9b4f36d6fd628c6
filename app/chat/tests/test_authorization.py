"""
Tests for ChatAuthorizationService.
"""

import uuid

from chat.authorization import ChatAuthorizationService
from chat.models import Message
from chat.targets import ConversationTarget, GroupTarget
from chat.tests.factories import MessageFactory


class TestChatAuthorizationService:
    """Tests for target access checks."""

    def test_conversation_participants(self, conversation, user, other_user, outsider):
        target = conversation.target

        assert ChatAuthorizationService.can_access_target(user, target)
        assert ChatAuthorizationService.can_access_target(other_user, target)
        assert not ChatAuthorizationService.can_access_target(outsider, target)

    def test_group_members(self, group, member_user, outsider):
        assert ChatAuthorizationService.can_access_target(member_user, group.target)
        assert not ChatAuthorizationService.can_access_target(outsider, group.target)

    def test_missing_target(self, user):
        target = ConversationTarget(uuid.uuid4())

        assert not ChatAuthorizationService.target_exists(target)
        assert not ChatAuthorizationService.can_access_target(user, target)
        assert ChatAuthorizationService.get_member_ids(target) == []

    def test_member_ids(self, conversation, group, user, other_user, member_user):
        assert set(ChatAuthorizationService.get_member_ids(conversation.target)) == {
            user.id,
            other_user.id,
        }
        assert set(ChatAuthorizationService.get_member_ids(GroupTarget(group.id))) == {
            user.id,
            member_user.id,
        }

    def test_is_group_admin(self, group, user, member_user):
        assert ChatAuthorizationService.is_group_admin(user, group.id)
        assert not ChatAuthorizationService.is_group_admin(member_user, group.id)

    def test_accessible_target_q(self, conversation, group, user, outsider):
        """
        Given messages in a conversation and a group the user belongs to
        When filtering with accessible_target_q
        Then the user sees both and an outsider sees neither
        """
        MessageFactory(conversation=conversation)
        MessageFactory(conversation=None, group=group, sender=user)

        visible = Message.objects.filter(ChatAuthorizationService.accessible_target_q(user))
        hidden = Message.objects.filter(ChatAuthorizationService.accessible_target_q(outsider))

        assert visible.count() == 2
        assert hidden.count() == 0
