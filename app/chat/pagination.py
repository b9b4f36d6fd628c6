"""
Pagination classes for chat API.

This module provides cursor-based pagination for message history:
- MessageCursorPagination: newest message first, like the chat window
  loading older messages as the user scrolls up

Cursor-based pagination keeps pages stable while new messages arrive;
an offset page would shift by one for every message sent in between.
"""

from rest_framework.pagination import CursorPagination

from chat.constants import MESSAGE_CONFIG


class MessageCursorPagination(CursorPagination):
    """
    Cursor pagination for message lists.

    Uses (created_at, id) descending for a stable cursor position.

    Query parameters:
        cursor: Encoded cursor for position
        page_size: Number of messages (optional override, max 100)
    """

    page_size = MESSAGE_CONFIG.DEFAULT_PAGE_SIZE
    max_page_size = MESSAGE_CONFIG.MAX_PAGE_SIZE
    page_size_query_param = "page_size"
    ordering = ("-created_at", "-id")
    cursor_query_param = "cursor"
