"""
Test configuration and fixtures for authentication tests.

Usage:
    def test_example(user, authenticated_client):
        response = authenticated_client.get("/api/v1/users/me/")
        assert response.status_code == 200
"""

import pytest

from authentication.models import User
from authentication.tests.factories import UserFactory


@pytest.fixture
def user(db):
    """Create a basic user with a display name."""
    return UserFactory(name="Ada Lovelace", email="ada@example.com")


@pytest.fixture
def other_user(db):
    """Create a second user for search and lookup tests."""
    return UserFactory(name="Grace Hopper", email="grace@example.com")


@pytest.fixture
def superuser(db):
    """Create a superuser with admin privileges."""
    return User.objects.create_superuser(
        email="admin@example.com", password="AdminPass123!"
    )


@pytest.fixture
def authenticated_client(user, authenticated_client_factory):
    """API client authenticated with a JWT for the default user fixture."""
    return authenticated_client_factory(user)
