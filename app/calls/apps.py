"""
Calls application configuration.

This app provides audio and video calls on top of chat targets:
- Call lifecycle (ringing, active, ended, missed) as a django-fsm machine
- Participant tracking and presence side effects
- LiveKit room access tokens
"""

from django.apps import AppConfig


class CallsConfig(AppConfig):
    """Configuration for the calls application."""

    default_auto_field = "django.db.models.BigAutoField"
    name = "calls"
    verbose_name = "Calls"
