"""
Tests for the users API.

Endpoints:
    GET   /api/v1/users/{id}/
    GET   /api/v1/users/search/?q=
    GET   /api/v1/users/me/
    PATCH /api/v1/users/me/
    POST  /api/v1/users/me/presence/
    POST  /api/v1/users/me/heartbeat/
"""

from rest_framework import status

from authentication.models import PresenceStatus


class TestUserEndpoints:
    """Tests for user lookup and search."""

    def test_requires_authentication(self, api_client, db):
        """Anonymous requests are rejected with 401."""
        response = api_client.get("/api/v1/users/me/")

        assert response.status_code == status.HTTP_401_UNAUTHORIZED

    def test_me_returns_current_user(self, authenticated_client, user):
        """GET /users/me/ returns the caller."""
        response = authenticated_client.get("/api/v1/users/me/")

        assert response.status_code == status.HTTP_200_OK
        assert response.data["email"] == user.email

    def test_patch_me_updates_name(self, authenticated_client, user):
        """PATCH /users/me/ updates the display name."""
        response = authenticated_client.patch(
            "/api/v1/users/me/", {"name": "Countess Ada"}, format="json"
        )

        user.refresh_from_db()
        assert response.status_code == status.HTTP_200_OK
        assert user.name == "Countess Ada"

    def test_retrieve_other_user(self, authenticated_client, other_user):
        """GET /users/{id}/ returns that user with effective presence."""
        response = authenticated_client.get(f"/api/v1/users/{other_user.pk}/")

        assert response.status_code == status.HTTP_200_OK
        assert response.data["presence_status"] == PresenceStatus.OFFLINE

    def test_retrieve_unknown_user_is_404(self, authenticated_client):
        """Unknown ids return 404 with an error code."""
        response = authenticated_client.get("/api/v1/users/999999/")

        assert response.status_code == status.HTTP_404_NOT_FOUND
        assert response.data["error_code"] == "NOT_FOUND"

    def test_search(self, authenticated_client, other_user):
        """GET /users/search/?q= finds users by name."""
        response = authenticated_client.get("/api/v1/users/search/", {"q": "grace"})

        assert response.status_code == status.HTTP_200_OK
        assert [u["id"] for u in response.data] == [other_user.pk]


class TestPresenceEndpoints:
    """Tests for presence updates."""

    def test_set_presence(self, authenticated_client, user):
        """POST /users/me/presence/ stores the status."""
        response = authenticated_client.post(
            "/api/v1/users/me/presence/", {"status": "busy"}, format="json"
        )

        user.refresh_from_db()
        assert response.status_code == status.HTTP_200_OK
        assert response.data["presence_status"] == PresenceStatus.BUSY
        assert user.presence_status == PresenceStatus.BUSY

    def test_set_presence_invalid(self, authenticated_client):
        """Unknown statuses are rejected with 400."""
        response = authenticated_client.post(
            "/api/v1/users/me/presence/", {"status": "sleeping"}, format="json"
        )

        assert response.status_code == status.HTTP_400_BAD_REQUEST

    def test_heartbeat(self, authenticated_client, user):
        """POST /users/me/heartbeat/ brings an offline user online."""
        response = authenticated_client.post("/api/v1/users/me/heartbeat/")

        assert response.status_code == status.HTTP_200_OK
        assert response.data["presence_status"] == PresenceStatus.ACTIVE
