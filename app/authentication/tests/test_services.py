"""
Tests for PresenceService and UserService.

Related files:
    - services.py: Implementation under test
"""

from datetime import timedelta

from django.utils import timezone
from freezegun import freeze_time

from authentication.models import PresenceStatus
from authentication.services import PresenceService, UserService
from authentication.tests.factories import UserFactory
from core.services import ErrorCode


class TestPresenceServiceUpdateStatus:
    """Tests for PresenceService.update_status()."""

    def test_sets_status_and_heartbeat(self, user):
        """
        Given an offline user
        When they set their status to busy
        Then the status is stored and the heartbeat refreshed
        """
        with freeze_time("2026-03-01 09:00:00"):
            result = PresenceService.update_status(user, PresenceStatus.BUSY)

            user.refresh_from_db()
            assert result.success
            assert user.presence_status == PresenceStatus.BUSY
            assert user.last_heartbeat == timezone.now()
            assert user.effective_presence == PresenceStatus.BUSY

    def test_rejects_unknown_status(self, user):
        """
        Given an unknown status string
        When update_status is called
        Then a VALIDATION_ERROR is returned and nothing changes
        """
        result = PresenceService.update_status(user, "sleeping")

        user.refresh_from_db()
        assert not result.success
        assert result.error_code == ErrorCode.VALIDATION_ERROR
        assert user.presence_status == PresenceStatus.OFFLINE


class TestPresenceServiceHeartbeat:
    """Tests for PresenceService.heartbeat()."""

    def test_offline_user_becomes_active(self, user):
        """A heartbeat from an offline user marks them active."""
        PresenceService.heartbeat(user)

        user.refresh_from_db()
        assert user.presence_status == PresenceStatus.ACTIVE
        assert user.last_heartbeat is not None

    def test_preserves_explicit_status(self, db):
        """
        Given a user who set themselves to away
        When a heartbeat arrives
        Then away is kept
        """
        user = UserFactory(online=True, presence_status=PresenceStatus.AWAY)

        PresenceService.heartbeat(user)

        user.refresh_from_db()
        assert user.presence_status == PresenceStatus.AWAY

    def test_heartbeat_revives_stale_presence(self, db):
        """
        Given a user whose heartbeat went stale
        When a new heartbeat arrives
        Then the effective presence is the stored status again
        """
        with freeze_time("2026-03-01 09:00:00") as frozen:
            user = UserFactory(online=True)
            frozen.tick(timedelta(minutes=5))
            assert user.effective_presence == PresenceStatus.OFFLINE

            PresenceService.heartbeat(user)

            assert user.effective_presence == PresenceStatus.ACTIVE


class TestPresenceServiceCallHelpers:
    """Tests for set_in_call() and restore_after_call()."""

    def test_set_in_call(self, user):
        """set_in_call stores inCall without touching the heartbeat."""
        PresenceService.set_in_call(user)

        user.refresh_from_db()
        assert user.presence_status == PresenceStatus.IN_CALL
        assert user.last_heartbeat is None

    def test_restore_only_if_in_call_skips_other_statuses(self, db):
        """
        Given one user in a call and one who switched to busy
        When restoring with only_if_in_call
        Then only the in-call user becomes active
        """
        in_call = UserFactory(presence_status=PresenceStatus.IN_CALL)
        busy = UserFactory(presence_status=PresenceStatus.BUSY)

        updated = PresenceService.restore_after_call(
            [in_call.pk, busy.pk], only_if_in_call=True
        )

        in_call.refresh_from_db()
        busy.refresh_from_db()
        assert updated == 1
        assert in_call.presence_status == PresenceStatus.ACTIVE
        assert busy.presence_status == PresenceStatus.BUSY

    def test_restore_unconditionally(self, db):
        """Without only_if_in_call every listed user becomes active."""
        busy = UserFactory(presence_status=PresenceStatus.BUSY)

        PresenceService.restore_after_call([busy.pk])

        busy.refresh_from_db()
        assert busy.presence_status == PresenceStatus.ACTIVE


class TestUserService:
    """Tests for UserService lookups and profile updates."""

    def test_get_user_not_found(self, db):
        """Unknown ids return NOT_FOUND."""
        result = UserService.get_user(999999)

        assert result.error_code == ErrorCode.NOT_FOUND

    def test_get_user_excludes_inactive(self, db):
        """Deactivated users cannot be looked up."""
        inactive = UserFactory(is_active=False)

        result = UserService.get_user(inactive.pk)

        assert not result.success

    def test_search_matches_name_and_email(self, user, other_user):
        """
        Given users Ada and Grace
        When Ada searches for "grace"
        Then Grace is found by name and by email
        """
        by_name = list(UserService.search_users(user, "Hopper"))
        by_email = list(UserService.search_users(user, "grace@"))

        assert by_name == [other_user]
        assert by_email == [other_user]

    def test_search_excludes_requesting_user(self, user):
        """Searching your own name never returns yourself."""
        assert list(UserService.search_users(user, "Ada")) == []

    def test_search_limit(self, user):
        """At most SEARCH_LIMIT users are returned."""
        UserFactory.create_batch(12, name="Searchable Person")

        results = UserService.search_users(user, "Searchable")

        assert len(results) == UserService.SEARCH_LIMIT

    def test_update_profile_only_changes_given_fields(self, user):
        """
        Given a new avatar only
        When update_profile is called
        Then the name is unchanged
        """
        UserService.update_profile(user, avatar_url="https://example.com/a.png")

        user.refresh_from_db()
        assert user.name == "Ada Lovelace"
        assert user.avatar_url == "https://example.com/a.png"
