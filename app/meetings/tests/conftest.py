"""
Test configuration and fixtures for meeting tests.

Provides:
- Users: requester (Ada), recipient (Grace) and an outsider
- A pending meeting request and an approved meeting with its two events
- Authenticated API clients
"""

from datetime import timedelta

import pytest
from django.utils import timezone

from authentication.tests.factories import UserFactory
from meetings.tests.factories import MeetingRequestFactory, approved_meeting


@pytest.fixture
def user(db):
    return UserFactory(name="Ada Lovelace")


@pytest.fixture
def other_user(db):
    return UserFactory(name="Grace Hopper")


@pytest.fixture
def outsider(db):
    return UserFactory(name="Eve Outsider")


@pytest.fixture
def slot():
    """A one-hour slot two days from now."""
    start = (timezone.now() + timedelta(days=2)).replace(minute=0, second=0, microsecond=0)
    return start, start + timedelta(hours=1)


@pytest.fixture
def pending_request(user, other_user):
    """Ada asked Grace for a meeting; Grace has not answered."""
    return MeetingRequestFactory(requester=user, recipient=other_user, title="Roadmap sync")


@pytest.fixture
def meeting(user, other_user):
    """Approved meeting: (request, (grace_event, ada_event))."""
    return approved_meeting(user, other_user, title="Design review")


@pytest.fixture
def authenticated_client(user, authenticated_client_factory):
    return authenticated_client_factory(user)


@pytest.fixture
def other_client(other_user, authenticated_client_factory):
    return authenticated_client_factory(other_user)


@pytest.fixture
def outsider_client(outsider, authenticated_client_factory):
    return authenticated_client_factory(outsider)
