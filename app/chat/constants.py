"""
Constants and configuration for chat features.

This module centralizes configuration values for:
- Message operations (content limits, previews)
- Attachment handling (allowed MIME types, size ceiling)
- Group membership

Import example:
    from chat.constants import ATTACHMENT_CONFIG, MESSAGE_CONFIG
"""

from typing import Final


# =============================================================================
# Message Configuration
# =============================================================================


class MESSAGE_CONFIG:
    """Configuration for message operations."""

    MAX_CONTENT_LENGTH: Final[int] = 10000  # Characters

    # Notification preview of the message body
    PREVIEW_LENGTH: Final[int] = 100

    DELETED_PLACEHOLDER: Final[str] = "[Message deleted]"

    # Page size for message history
    DEFAULT_PAGE_SIZE: Final[int] = 50
    MAX_PAGE_SIZE: Final[int] = 100


# =============================================================================
# Attachment Configuration
# =============================================================================


class ATTACHMENT_CONFIG:
    """
    Configuration for message attachments.

    Files are checked before any message referencing them is created.
    The MIME type is sniffed from the file content, not the client's claim.
    """

    MAX_FILE_SIZE: Final[int] = 20 * 1024 * 1024  # 20MB

    ALLOWED_MIME_TYPES: Final[frozenset] = frozenset(
        {
            # Images
            "image/jpeg",
            "image/png",
            "image/gif",
            "image/webp",
            # Documents
            "application/pdf",
            "application/msword",
            "application/vnd.openxmlformats-officedocument.wordprocessingml.document",
            "application/vnd.ms-excel",
            "application/vnd.openxmlformats-officedocument.spreadsheetml.sheet",
            # Text
            "text/plain",
            # Archives
            "application/zip",
        }
    )

    UPLOAD_PATH: Final[str] = "chat/attachments/%Y/%m/"


# =============================================================================
# Group Configuration
# =============================================================================


class GROUP_CONFIG:
    """Configuration for group chats."""

    MAX_NAME_LENGTH: Final[int] = 100
    MAX_DESCRIPTION_LENGTH: Final[int] = 500
