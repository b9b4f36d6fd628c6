"""
Chat attachment validation.

Provides content-based MIME type detection using python-magic so that the
stored file_type reflects what the bytes are, not what the client claims.

Two entry points:
    validate_file(name, mime_type, size): pre-flight check of client metadata
    inspect_upload(upload): sniff and check an uploaded file before it is saved
"""

from __future__ import annotations

import logging
from dataclasses import dataclass, field
from typing import BinaryIO

import magic

from chat.constants import ATTACHMENT_CONFIG

logger = logging.getLogger(__name__)


@dataclass
class AttachmentCheck:
    """Result of attachment validation.

    Attributes:
        valid: Whether the file may be attached to a message.
        errors: Human-readable reasons when it may not.
        mime_type: MIME type (detected from content for uploads).
        size: File size in bytes.
    """

    valid: bool
    errors: list[str] = field(default_factory=list)
    mime_type: str | None = None
    size: int | None = None

    def to_dict(self) -> dict:
        return {"valid": self.valid, "errors": self.errors}


def validate_file(name: str | None, mime_type: str | None, size: int | None) -> AttachmentCheck:
    """
    Check file metadata against the attachment rules.

    Rules:
        - name must not be blank
        - mime_type must be in ATTACHMENT_CONFIG.ALLOWED_MIME_TYPES
        - 0 < size <= ATTACHMENT_CONFIG.MAX_FILE_SIZE

    Example:
        validate_file("report.pdf", "application/pdf", 1024).valid  # True
        validate_file("big.zip", "application/zip", 30 * 1024 * 1024).errors
        # ["File size exceeds 20MB limit"]
    """
    errors = []

    if not name or not name.strip():
        errors.append("File name is required")

    if mime_type not in ATTACHMENT_CONFIG.ALLOWED_MIME_TYPES:
        errors.append(f"File type '{mime_type}' is not allowed")

    if size is None or size <= 0:
        errors.append("File is empty")
    elif size > ATTACHMENT_CONFIG.MAX_FILE_SIZE:
        limit_mb = ATTACHMENT_CONFIG.MAX_FILE_SIZE // (1024 * 1024)
        errors.append(f"File size exceeds {limit_mb}MB limit")

    return AttachmentCheck(valid=not errors, errors=errors, mime_type=mime_type, size=size)


def detect_mime_type(file: BinaryIO) -> str | None:
    """Detect MIME type from the first bytes of the file using libmagic."""
    file.seek(0)
    header = file.read(2048)
    file.seek(0)

    if not header:
        return None

    return magic.from_buffer(header, mime=True)


def inspect_upload(upload) -> AttachmentCheck:
    """
    Validate an uploaded file (Django UploadedFile or any named file object).

    The MIME type is sniffed from the content; the client-supplied
    content_type is only logged when it disagrees.
    """
    size = getattr(upload, "size", None)
    mime_type = detect_mime_type(upload) if size else None

    claimed = getattr(upload, "content_type", None)
    if claimed and mime_type and claimed != mime_type:
        logger.info(
            f"Attachment {upload.name!r} claimed {claimed} but content is {mime_type}"
        )

    return validate_file(upload.name, mime_type, size)
