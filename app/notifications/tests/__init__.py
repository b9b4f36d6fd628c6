"""
Tests for notifications app.

- test_models.py: Notification and PushSubscription
- test_services.py: Inbox, push subscriptions, notify()
- test_tasks.py: Delivery, web push and realtime broadcast tasks
- test_middleware.py: WebSocket JWT authentication
- test_views.py: REST API endpoints
"""
