"""
Tests for chat app.

- test_models.py: Canonical pairs, message target constraint
- test_targets.py / test_authorization.py: Target resolution and access
- test_attachments.py: Attachment validation
- test_services.py: Conversation, group and message services
- test_views.py: REST API endpoints
"""
