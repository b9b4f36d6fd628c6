"""
Test configuration and fixtures for call tests.

Provides:
- Users: a conversation pair, a group member and an outsider
- A direct conversation and a group to call in
- Authenticated API clients
"""

import pytest

from authentication.tests.factories import UserFactory
from chat.models import GroupRole
from chat.tests.factories import (
    DirectConversationFactory,
    GroupFactory,
    GroupMemberFactory,
)


@pytest.fixture
def user(db):
    return UserFactory(name="Ada Lovelace", online=True)


@pytest.fixture
def other_user(db):
    return UserFactory(name="Grace Hopper", online=True)


@pytest.fixture
def member_user(db):
    return UserFactory(name="Alan Turing", online=True)


@pytest.fixture
def outsider(db):
    return UserFactory(name="Eve Outsider")


@pytest.fixture
def conversation(user, other_user):
    return DirectConversationFactory(user_lower=user, user_higher=other_user)


@pytest.fixture
def group(user, member_user, other_user):
    """Group with user as admin and member_user, other_user as members."""
    group = GroupFactory(name="Standup", creator=user)
    GroupMemberFactory(group=group, user=user, role=GroupRole.ADMIN)
    GroupMemberFactory(group=group, user=member_user)
    GroupMemberFactory(group=group, user=other_user)
    return group


@pytest.fixture
def authenticated_client(user, authenticated_client_factory):
    return authenticated_client_factory(user)


@pytest.fixture
def other_client(other_user, authenticated_client_factory):
    return authenticated_client_factory(other_user)


@pytest.fixture
def outsider_client(outsider, authenticated_client_factory):
    return authenticated_client_factory(outsider)
