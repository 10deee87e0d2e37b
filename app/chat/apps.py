"""
Chat application configuration.

This app provides the chat system with:
- One conversation per pair of users, created on first contact
- Ordered, cursor-paginated message history
- Read tracking and unread counts
- Realtime rooms over the Channels layer
"""

from django.apps import AppConfig


class ChatConfig(AppConfig):
    """Configuration for the chat application."""

    default_auto_field = "django.db.models.BigAutoField"
    name = "chat"
    verbose_name = "Chat"
