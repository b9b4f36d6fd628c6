"""
Tests for authentication app.

- test_models.py / test_managers.py: User model and manager
- test_presence.py: Effective presence derivation
- test_services.py: PresenceService and UserService
- test_serializers.py / test_views.py: Users API
"""
