"""
Tests for UserManager.

The UserManager provides:
- create_user(): Regular users, with an unusable password when none is given
- create_superuser(): Admin users with elevated privileges

Related files:
    - managers.py: Implementation under test
"""

import pytest

from authentication.models import PresenceStatus, User


class TestUserManagerCreateUser:
    """Tests for UserManager.create_user() method."""

    def test_creates_user_with_email_and_password(self, db):
        """
        Given valid email and password
        When create_user is called
        Then a user is created that can authenticate with the password
        """
        user = User.objects.create_user(email="mgr@example.com", password="SecurePass123!")

        assert user.pk is not None
        assert user.check_password("SecurePass123!") is True

    def test_normalizes_email_domain_to_lowercase(self, db):
        """
        Given an email with an uppercase domain
        When create_user is called
        Then only the domain is lowercased
        """
        user = User.objects.create_user(email="Test.User@EXAMPLE.COM", password="x")

        assert user.email == "Test.User@example.com"

    def test_raises_valueerror_when_email_is_empty(self, db):
        """
        Given an empty email
        When create_user is called
        Then a ValueError is raised
        """
        with pytest.raises(ValueError, match="Email field must be set"):
            User.objects.create_user(email="", password="x")

    def test_sets_unusable_password_when_none_given(self, db):
        """
        Given no password
        When create_user is called
        Then the user cannot log in with a password
        """
        user = User.objects.create_user(email="nopass@example.com")

        assert user.has_usable_password() is False

    def test_new_user_starts_offline_without_heartbeat(self, db):
        """
        Given a freshly created user
        When checking presence fields
        Then the stored status is offline and no heartbeat exists
        """
        user = User.objects.create_user(email="fresh@example.com", password="x")

        assert user.presence_status == PresenceStatus.OFFLINE
        assert user.last_heartbeat is None

    def test_extra_fields_are_passed_to_model(self, db):
        """
        Given a display name and avatar
        When create_user is called with them
        Then they are stored on the user
        """
        user = User.objects.create_user(
            email="extra@example.com",
            password="x",
            name="Ada",
            avatar_url="https://example.com/ada.png",
        )

        assert user.name == "Ada"
        assert user.avatar_url == "https://example.com/ada.png"


class TestUserManagerCreateSuperuser:
    """Tests for UserManager.create_superuser() method."""

    def test_creates_superuser_with_correct_flags(self, superuser):
        """
        Given the superuser fixture
        When checking flags
        Then is_staff and is_superuser are set
        """
        assert superuser.is_staff is True
        assert superuser.is_superuser is True

    def test_raises_valueerror_when_is_staff_is_false(self, db):
        """
        Given is_staff=False
        When create_superuser is called
        Then a ValueError is raised
        """
        with pytest.raises(ValueError, match="is_staff=True"):
            User.objects.create_superuser(
                email="bad@example.com", password="x", is_staff=False
            )

    def test_raises_valueerror_when_is_superuser_is_false(self, db):
        """
        Given is_superuser=False
        When create_superuser is called
        Then a ValueError is raised
        """
        with pytest.raises(ValueError, match="is_superuser=True"):
            User.objects.create_superuser(
                email="bad@example.com", password="x", is_superuser=False
            )
