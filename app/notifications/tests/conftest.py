"""
Test configuration and fixtures for notification tests.

Usage:
    def test_example(user, unread_notification, authenticated_client):
        response = authenticated_client.get("/api/v1/notifications/")
        assert response.status_code == 200
"""

import pytest

from authentication.tests.factories import UserFactory
from notifications.tests.factories import NotificationFactory, PushSubscriptionFactory


@pytest.fixture
def user(db):
    """User receiving notifications."""
    return UserFactory(name="Ada Lovelace")


@pytest.fixture
def other_user(db):
    """Another user for ownership checks."""
    return UserFactory(name="Grace Hopper")


@pytest.fixture
def unread_notification(user):
    return NotificationFactory(recipient=user)


@pytest.fixture
def read_notification(user):
    return NotificationFactory(recipient=user, is_read=True)


@pytest.fixture
def push_subscription(user):
    return PushSubscriptionFactory(user=user)


@pytest.fixture
def authenticated_client(user, authenticated_client_factory):
    return authenticated_client_factory(user)


@pytest.fixture
def vapid_settings(settings):
    """Configure VAPID keys so push delivery is attempted."""
    settings.VAPID_PUBLIC_KEY = "test-public-key"
    settings.VAPID_PRIVATE_KEY = "test-private-key"
    settings.VAPID_CLAIMS_EMAIL = "push@example.com"
    return settings
