"""
Chat application configuration.

This app provides the chat system with:
- Direct (1:1) conversations and group chats
- Admin/member roles in groups
- Text, file and call-summary messages with soft deletion
"""

from django.apps import AppConfig


class ChatConfig(AppConfig):
    """Configuration for the chat application."""

    default_auto_field = "django.db.models.BigAutoField"
    name = "chat"
    verbose_name = "Chat"
