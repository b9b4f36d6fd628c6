"""
WebSocket authentication middleware.

Provides JWT authentication for WebSocket connections using the same
simplejwt access tokens as the REST API.

Related files:
    - routing.py: WebSocket URL patterns
    - consumers.py: UserEventsConsumer
    - config/asgi.py: ASGI configuration

Token Passing Methods:
    1. Query string: ws://host/ws/events/?token=<jwt_token>
    2. Subprotocol: Sec-WebSocket-Protocol: jwt, <jwt_token>
"""

from __future__ import annotations

import logging
from urllib.parse import parse_qs

from channels.db import database_sync_to_async
from channels.middleware import BaseMiddleware
from django.contrib.auth import get_user_model
from django.contrib.auth.models import AnonymousUser
from rest_framework_simplejwt.exceptions import TokenError
from rest_framework_simplejwt.tokens import AccessToken

logger = logging.getLogger(__name__)


def get_token_from_scope(scope) -> str | None:
    """
    Extract the JWT from the query string or the subprotocol list.

    Query string takes precedence.
    """
    query_string = scope.get("query_string", b"").decode()
    token_list = parse_qs(query_string).get("token", [])
    if token_list:
        return token_list[0]

    subprotocols = scope.get("subprotocols", [])
    if len(subprotocols) >= 2 and subprotocols[0] == "jwt":
        return subprotocols[1]

    return None


@database_sync_to_async
def get_user_from_token(token: str):
    """
    Validate a JWT access token and load its user.

    Returns:
        Active User instance if the token is valid, AnonymousUser otherwise
    """
    User = get_user_model()

    try:
        user_id = AccessToken(token)["user_id"]
    except TokenError as e:
        logger.warning(f"Invalid JWT on WebSocket connect: {e}")
        return AnonymousUser()

    user = User.objects.filter(id=user_id).first()
    if user is None:
        logger.warning(f"User {user_id} from WebSocket token not found")
        return AnonymousUser()
    if not user.is_active:
        logger.warning(f"Inactive user attempted WebSocket connection: {user_id}")
        return AnonymousUser()

    return user


class JWTAuthMiddleware(BaseMiddleware):
    """
    Attach the token's user to scope["user"].

    Usage:
        application = ProtocolTypeRouter({
            "websocket": JWTAuthMiddleware(URLRouter(websocket_urlpatterns)),
        })

        // Browser
        new WebSocket("wss://host/ws/events/?token=eyJ...")
        new WebSocket("wss://host/ws/events/", ["jwt", "eyJ..."])
    """

    async def __call__(self, scope, receive, send):
        token = get_token_from_scope(scope)
        scope["user"] = await get_user_from_token(token) if token else AnonymousUser()
        return await super().__call__(scope, receive, send)
