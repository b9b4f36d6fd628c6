"""
Helper functions for common infrastructure operations.

This module provides domain-agnostic utility functions for:
- Token generation (cryptographic)
- Epoch millisecond conversion
- Text previews
- Enqueueing Celery tasks after the current transaction commits

These utilities are pure infrastructure - they have no knowledge
of domain concepts like calls, meetings or messages.

Usage:
    from core.helpers import enqueue_on_commit, epoch_ms, generate_token

    suffix = generate_token(4)
    enqueue_on_commit(deliver_notification, recipient_id=user.id, ...)
"""

from __future__ import annotations

import logging
import secrets
from datetime import datetime
from typing import TYPE_CHECKING

from django.db import transaction
from django.utils import timezone

if TYPE_CHECKING:
    from celery import Task

logger = logging.getLogger(__name__)


def generate_token(length: int = 32) -> str:
    """
    Generate a cryptographically secure random token.

    Args:
        length: Number of bytes (resulting string is 2x length in hex)

    Example:
        token = generate_token(4)  # Returns 8-character hex string
    """
    return secrets.token_hex(length)


def epoch_ms(value: datetime | None = None) -> int:
    """Milliseconds since the Unix epoch (now when value is None)."""
    value = value or timezone.now()
    return int(value.timestamp() * 1000)


def truncate(text: str, length: int) -> str:
    """
    Shorten text to at most `length` characters, marking the cut with "...".

    Example:
        truncate("hello world", 8)  # "hello..."
    """
    if len(text) <= length:
        return text
    return text[: max(length - 3, 0)] + "..."


def enqueue_on_commit(task: Task, *args, **kwargs) -> None:
    """
    Schedule task.delay(*args, **kwargs) for after the surrounding commit.

    Outside a transaction the task is enqueued immediately. A broker
    failure is logged and never propagates: background work must not
    fail the request that triggered it.

    Example:
        with transaction.atomic():
            message = Message.objects.create(...)
            enqueue_on_commit(broadcast_user_event, user_id, "message.created", {})
    """

    def _send():
        try:
            task.delay(*args, **kwargs)
        except Exception:
            logger.exception(f"Failed to enqueue task {task.name}")

    transaction.on_commit(_send)
