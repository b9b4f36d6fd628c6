"""
Meetings application configuration.

This app provides calendar scheduling between users:
- Personal calendar events (private or public)
- Meeting requests that become linked events for both people on approval
- Change requests for linked events, applied only with the other
  participant's consent
"""

from django.apps import AppConfig


class MeetingsConfig(AppConfig):
    """Configuration for the meetings application."""

    default_auto_field = "django.db.models.BigAutoField"
    name = "meetings"
    verbose_name = "Meetings"
