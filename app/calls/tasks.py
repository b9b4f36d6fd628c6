"""
Celery tasks for calls.

Tasks:
    expire_ringing_calls: Mark unanswered calls as missed (periodic)

The sweep is scheduled by Celery beat (see config/celery.py) and is a
no-op while CALL_RINGING_TIMEOUT_SECONDS is 0, which keeps calls ringing
until someone ends them.
"""

from __future__ import annotations

import logging

from celery import shared_task
from django.conf import settings

from calls.services import CallService

logger = logging.getLogger(__name__)


@shared_task(bind=True)
def expire_ringing_calls(self) -> int:
    """
    End calls that have been ringing longer than the configured timeout.

    Each call goes through CallService.expire_ringing_call, so it gets
    the same "Missed call" summary and presence cleanup as end_call.

    Returns:
        Number of calls marked as missed
    """
    timeout = settings.CALL_RINGING_TIMEOUT_SECONDS
    if timeout <= 0:
        return 0

    expired = 0
    for call_id in CallService.ringing_calls_older_than(timeout):
        try:
            if CallService.expire_ringing_call(call_id):
                expired += 1
        except Exception as e:
            logger.exception(f"Failed to expire ringing call {call_id}: {e}")

    if expired:
        logger.info(f"Expired {expired} unanswered call(s)")
    return expired
