"""
WebSocket URL routing.

URL Patterns:
    ws/events/ - Per-user realtime event stream

Authentication:
    JWT access token as ?token=<jwt> or the "jwt" subprotocol; see
    notifications.middleware.JWTAuthMiddleware.
"""

from django.urls import path

from notifications import consumers

websocket_urlpatterns = [
    path("ws/events/", consumers.UserEventsConsumer.as_asgi()),
]
