"""
Project-wide pytest configuration.

pytest-django reads DJANGO_SETTINGS_MODULE from pyproject.toml; settings
switch to SQLite, the locmem cache, the in-memory channel layer and eager
Celery when running under pytest (see config/settings.py).

Shared fixtures:
    api_client: Unauthenticated DRF client
    authenticated_client_factory: Build a JWT-authenticated client for a user

App-specific fixtures live in each app's tests/conftest.py.
"""

import pytest
from rest_framework.test import APIClient
from rest_framework_simplejwt.tokens import RefreshToken


def pytest_configure():
    from django.conf import settings

    # Rate limits would make repeated requests in one test flaky
    settings.REST_FRAMEWORK["DEFAULT_THROTTLE_CLASSES"] = []
    settings.REST_FRAMEWORK["DEFAULT_THROTTLE_RATES"] = {}

    settings.PASSWORD_HASHERS = [
        "django.contrib.auth.hashers.MD5PasswordHasher",
    ]


def pytest_collection_modifyitems(items):
    """
    Mark tests as unit or integration by file name.

    Explicit markers on a test take precedence.
    """
    unit_files = {"test_models.py", "test_serializers.py", "test_targets.py", "test_media_tokens.py"}

    for item in items:
        if {m.name for m in item.iter_markers()} & {"unit", "integration"}:
            continue
        if item.path.name in unit_files:
            item.add_marker(pytest.mark.unit)
        else:
            item.add_marker(pytest.mark.integration)


@pytest.fixture
def api_client():
    """Unauthenticated API client for public endpoints."""
    return APIClient()


@pytest.fixture
def authenticated_client_factory(db):
    """
    Factory for clients authenticated as a given user.

    Usage:
        def test_example(authenticated_client_factory, some_user):
            client = authenticated_client_factory(some_user)
            response = client.get("/api/v1/chat/conversations/")
    """

    def _make_client(user):
        client = APIClient()
        refresh = RefreshToken.for_user(user)
        client.credentials(HTTP_AUTHORIZATION=f"Bearer {refresh.access_token}")
        return client

    return _make_client
