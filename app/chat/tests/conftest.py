"""
Test configuration and fixtures for chat tests.

This module provides:
- Users in the roles chat tests need (participants, admin, member, outsider)
- A direct conversation and a group with one admin and one member
- Authenticated API clients

Usage:
    def test_example(group, admin_client):
        response = admin_client.get(f"/api/v1/chat/groups/{group.id}/")
        assert response.status_code == 200
"""

import pytest

from authentication.tests.factories import UserFactory
from chat.models import GroupRole
from chat.tests.factories import (
    DirectConversationFactory,
    GroupFactory,
    GroupMemberFactory,
)


# =============================================================================
# User Fixtures
# =============================================================================


@pytest.fixture
def user(db):
    return UserFactory(name="Ada Lovelace")


@pytest.fixture
def other_user(db):
    return UserFactory(name="Grace Hopper")


@pytest.fixture
def outsider(db):
    """A user who belongs to no test conversation or group."""
    return UserFactory(name="Eve Outsider")


@pytest.fixture
def member_user(db):
    return UserFactory(name="Alan Turing")


# =============================================================================
# Conversation and Group Fixtures
# =============================================================================


@pytest.fixture
def conversation(user, other_user):
    """Direct conversation between user and other_user."""
    return DirectConversationFactory(user_lower=user, user_higher=other_user)


@pytest.fixture
def group(user, member_user):
    """
    Group "Book Club" with user as the only admin and member_user as member.
    """
    group = GroupFactory(name="Book Club", creator=user)
    GroupMemberFactory(group=group, user=user, role=GroupRole.ADMIN)
    GroupMemberFactory(group=group, user=member_user, role=GroupRole.MEMBER)
    return group


# =============================================================================
# API Client Fixtures
# =============================================================================


@pytest.fixture
def authenticated_client(user, authenticated_client_factory):
    return authenticated_client_factory(user)


@pytest.fixture
def member_client(member_user, authenticated_client_factory):
    return authenticated_client_factory(member_user)


@pytest.fixture
def outsider_client(outsider, authenticated_client_factory):
    return authenticated_client_factory(outsider)
