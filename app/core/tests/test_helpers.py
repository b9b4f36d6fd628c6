"""
Tests for core.helpers.
"""

from datetime import datetime, timezone as dt_timezone
from unittest.mock import MagicMock

import pytest
from freezegun import freeze_time

from core.helpers import enqueue_on_commit, epoch_ms, generate_token, truncate


class TestGenerateToken:
    def test_hex_length(self):
        token = generate_token(4)

        assert len(token) == 8
        int(token, 16)

    def test_tokens_differ(self):
        assert generate_token() != generate_token()


class TestEpochMs:
    def test_explicit_datetime(self):
        value = datetime(2024, 1, 1, tzinfo=dt_timezone.utc)

        assert epoch_ms(value) == 1_704_067_200_000

    @freeze_time("2024-01-01 00:00:01.500")
    def test_defaults_to_now(self):
        assert epoch_ms() == 1_704_067_201_500


class TestTruncate:
    @pytest.mark.parametrize(
        "text,length,expected",
        [
            ("hello", 10, "hello"),
            ("hello world", 8, "hello..."),
            ("hello", 2, "..."),
        ],
    )
    def test_truncate(self, text, length, expected):
        assert truncate(text, length) == expected


@pytest.mark.django_db
class TestEnqueueOnCommit:
    def test_enqueued_after_commit(self, django_capture_on_commit_callbacks):
        task = MagicMock()

        with django_capture_on_commit_callbacks(execute=False) as callbacks:
            enqueue_on_commit(task, 1, event="call.updated")

        task.delay.assert_not_called()
        callbacks[0]()
        task.delay.assert_called_once_with(1, event="call.updated")

    def test_broker_failure_is_logged(self, django_capture_on_commit_callbacks, caplog):
        task = MagicMock()
        task.name = "notifications.tasks.deliver_notification"
        task.delay.side_effect = ConnectionError("broker down")

        with django_capture_on_commit_callbacks(execute=True):
            enqueue_on_commit(task)

        assert "Failed to enqueue task notifications.tasks.deliver_notification" in caplog.text
