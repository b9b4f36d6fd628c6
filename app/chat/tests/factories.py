"""
Factory Boy factories for chat models.

Provides test data generation for:
- DirectConversation: Canonical pair of users
- Group / GroupMember: Group chats and memberships
- Message: Text, file and call messages

Usage:
    from chat.tests.factories import (
        DirectConversationFactory,
        GroupFactory,
        GroupMemberFactory,
        MessageFactory,
    )

    # Direct conversation between two users (order does not matter)
    conversation = DirectConversationFactory(user_lower=ada, user_higher=grace)

    # Group with an admin
    group = GroupFactory(creator=ada)
    GroupMemberFactory(group=group, user=ada, role=GroupRole.ADMIN)

    # Message in a conversation, sent by one of its participants
    message = MessageFactory(conversation=conversation)
"""

import factory

from authentication.tests.factories import UserFactory
from chat.models import DirectConversation, Group, GroupMember, GroupRole, Message, MessageType


class DirectConversationFactory(factory.django.DjangoModelFactory):
    """
    Factory for DirectConversation.

    The two users are swapped if needed so the canonical order
    (lower id first) always holds.
    """

    class Meta:
        model = DirectConversation

    user_lower = factory.SubFactory(UserFactory)
    user_higher = factory.SubFactory(UserFactory)

    @classmethod
    def _create(cls, model_class, *args, **kwargs):
        lower, higher = DirectConversation.canonical_pair(
            kwargs.pop("user_lower"), kwargs.pop("user_higher")
        )
        return super()._create(
            model_class, *args, user_lower=lower, user_higher=higher, **kwargs
        )


class GroupFactory(factory.django.DjangoModelFactory):
    class Meta:
        model = Group

    name = factory.Sequence(lambda n: f"Group {n}")
    description = factory.Faker("sentence")
    creator = factory.SubFactory(UserFactory)


class GroupMemberFactory(factory.django.DjangoModelFactory):
    class Meta:
        model = GroupMember

    group = factory.SubFactory(GroupFactory)
    user = factory.SubFactory(UserFactory)
    role = GroupRole.MEMBER


class MessageFactory(factory.django.DjangoModelFactory):
    """
    Factory for Message.

    Defaults to a text message in a new direct conversation, sent by its
    lower participant. Pass group=... and conversation=None for a group
    message.
    """

    class Meta:
        model = Message

    conversation = factory.SubFactory(DirectConversationFactory)
    group = None
    sender = factory.LazyAttribute(
        lambda o: o.conversation.user_lower if o.conversation else UserFactory()
    )
    content = factory.Faker("sentence")
    message_type = MessageType.TEXT

    class Params:
        deleted = factory.Trait(is_deleted=True)
