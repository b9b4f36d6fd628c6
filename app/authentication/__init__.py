"""
Authentication application.

This app owns the user account and live presence.

Key components:
    - User model: Email-based account with display name, avatar and presence
    - presence.effective_presence: Read-time presence derivation
    - PresenceService: Status changes, heartbeats and call-driven presence
    - UserService: Lookup, search and profile updates

Login, logout and registration endpoints come from dj-rest-auth; see
config/urls.py.

Usage:
    from authentication.models import User, PresenceStatus
    from authentication.services import PresenceService
"""
