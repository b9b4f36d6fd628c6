"""
WebSocket consumer for per-user realtime events.

Replaces client polling: whenever a call, message, meeting or notification
the user can see changes, a Celery task (notifications.tasks.
broadcast_user_event) sends an event to the user's channel group and this
consumer forwards it.

Channel Groups:
    Each user has a group named "user_{user_id}". Every open socket of
    that user joins it.

Message Types (from client):
    - heartbeat: Refresh presence (same as POST /users/me/heartbeat/)
    - ping: Connection check

Message Types (to client):
    - event: {"type": "event", "event": "call.incoming", "payload": {...}}
    - heartbeat: {"type": "heartbeat", "presence_status": "active"}
    - pong
    - error
"""

from __future__ import annotations

import logging

from channels.db import database_sync_to_async
from channels.generic.websocket import AsyncJsonWebsocketConsumer

from authentication.services import PresenceService
from notifications.services import user_group_name

logger = logging.getLogger(__name__)


class UserEventsConsumer(AsyncJsonWebsocketConsumer):
    """
    Authenticated event stream for one user.

    Close codes:
        4001: Not authenticated
    """

    group_name: str | None = None

    async def connect(self):
        user = self.scope.get("user")

        if not user or not user.is_authenticated:
            logger.warning("Rejected unauthenticated events connection")
            await self.close(code=4001)
            return

        self.group_name = user_group_name(user.id)
        await self.channel_layer.group_add(self.group_name, self.channel_name)

        # Honour "jwt" subprotocol negotiation when the token came that way
        subprotocol = "jwt" if "jwt" in self.scope.get("subprotocols", []) else None
        await self.accept(subprotocol=subprotocol)
        logger.info(f"User {user.id} connected to events stream")

    async def disconnect(self, close_code):
        if self.group_name:
            await self.channel_layer.group_discard(self.group_name, self.channel_name)
            logger.info(f"Events stream {self.group_name} disconnected ({close_code})")

    async def receive_json(self, content):
        message_type = content.get("type")

        if message_type == "heartbeat":
            status = await self._heartbeat()
            await self.send_json({"type": "heartbeat", "presence_status": status})
        elif message_type == "ping":
            await self.send_json({"type": "pong"})
        else:
            await self.send_json(
                {"type": "error", "message": f"Unknown message type: {message_type}"}
            )

    async def user_event(self, event):
        """Forward a user.event from the channel layer to the socket."""
        await self.send_json(
            {"type": "event", "event": event["event"], "payload": event["payload"]}
        )

    @database_sync_to_async
    def _heartbeat(self) -> str:
        result = PresenceService.heartbeat(self.scope["user"])
        return result.data.effective_presence
