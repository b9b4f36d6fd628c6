"""
Derived presence.

A stored presence status is only meaningful while the client keeps
sending heartbeats. The effective status is computed at read time and
never written back, so there is no background job that flips users to
offline and no window where a cached value disagrees with the clock.
"""

from __future__ import annotations

from datetime import datetime, timedelta

from django.conf import settings
from django.utils import timezone

OFFLINE = "offline"


def presence_timeout() -> timedelta:
    """Heartbeat age after which a user counts as offline."""
    return timedelta(seconds=getattr(settings, "PRESENCE_TIMEOUT_SECONDS", 60))


def is_presence_stale(
    last_heartbeat: datetime | None,
    now: datetime | None = None,
) -> bool:
    """
    Check whether a heartbeat is too old to trust.

    Args:
        last_heartbeat: Last heartbeat timestamp, None if never sent
        now: Reference time (defaults to timezone.now())

    Returns:
        True if there was no heartbeat or it is older than the timeout
    """
    if last_heartbeat is None:
        return True
    now = now or timezone.now()
    return now - last_heartbeat > presence_timeout()


def effective_presence(
    status: str,
    last_heartbeat: datetime | None,
    now: datetime | None = None,
) -> str:
    """
    Presence as other users should see it.

    Example:
        effective_presence("busy", two_minutes_ago)  # "offline"
        effective_presence("busy", ten_seconds_ago)  # "busy"
    """
    if is_presence_stale(last_heartbeat, now):
        return OFFLINE
    return status
