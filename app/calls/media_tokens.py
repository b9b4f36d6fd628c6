"""
LiveKit room access tokens.

LiveKit accepts HS256 JWTs signed with the project's API secret:
    iss: API key
    sub: participant identity
    name: display name
    nbf / exp: validity window
    video: room grant (roomJoin, room, canPublish, canSubscribe, canPublishData)

Without LIVEKIT_API_KEY/LIVEKIT_API_SECRET a placeholder token is returned.
It is flagged with is_placeholder=True and starts with "dev-token-" so it
can never be mistaken for a real credential.

Usage:
    from calls.media_tokens import mint_access_token

    media = mint_access_token(call.room_name, user.email, user.display_name)
    if media.is_placeholder:
        ...
"""

from __future__ import annotations

import logging
import time
from dataclasses import dataclass

import jwt
from django.conf import settings

from core.exceptions import ExternalServiceError
from core.helpers import epoch_ms

logger = logging.getLogger(__name__)

TOKEN_TTL_SECONDS = 3600
PLACEHOLDER_PREFIX = "dev-token-"


@dataclass(frozen=True)
class MediaToken:
    token: str
    is_placeholder: bool = False


def livekit_configured() -> bool:
    return bool(settings.LIVEKIT_API_KEY and settings.LIVEKIT_API_SECRET)


def mint_access_token(room_name: str, identity: str, display_name: str) -> MediaToken:
    """
    Create a token that lets `identity` join `room_name`.

    Raises:
        ExternalServiceError: If the configured secret cannot sign the token
    """
    if not livekit_configured():
        logger.warning("LiveKit credentials not configured. Using placeholder token.")
        return MediaToken(
            token=f"{PLACEHOLDER_PREFIX}{room_name}-{identity}-{epoch_ms()}",
            is_placeholder=True,
        )

    now = int(time.time())
    payload = {
        "iss": settings.LIVEKIT_API_KEY,
        "sub": identity,
        "name": display_name,
        "nbf": now,
        "exp": now + TOKEN_TTL_SECONDS,
        "video": {
            "roomJoin": True,
            "room": room_name,
            "canPublish": True,
            "canSubscribe": True,
            "canPublishData": True,
        },
    }

    try:
        token = jwt.encode(payload, settings.LIVEKIT_API_SECRET, algorithm="HS256")
    except jwt.PyJWTError as e:
        raise ExternalServiceError(
            "Could not sign media token",
            details={"service": "livekit"},
        ) from e

    return MediaToken(token=token)
