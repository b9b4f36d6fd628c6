"""
Celery configuration for the Django application.

Background work:
    notifications.tasks: notification delivery, web push, realtime broadcast
    calls.tasks: sweep of unanswered ringing calls (beat)

Redis is the broker and result backend outside tests; under pytest tasks
run eagerly (CELERY_TASK_ALWAYS_EAGER in settings). Tasks are
auto-discovered from every installed app's tasks.py.

Usage:
    from celery import shared_task

    @shared_task(bind=True)
    def deliver_notification(self, recipient_id, ...):
        ...

    # Only after the surrounding transaction commits:
    enqueue_on_commit(deliver_notification, recipient_id=user.id, ...)

See https://docs.celeryq.dev/en/stable/django/first-steps-with-django.html
"""

import os

from celery import Celery

os.environ.setdefault("DJANGO_SETTINGS_MODULE", "config.settings")

app = Celery("config")

# All Celery settings are prefixed with CELERY_ in settings.py
app.config_from_object("django.conf:settings", namespace="CELERY")

app.autodiscover_tasks()

# Static schedule; django-celery-beat's DatabaseScheduler syncs it into
# the periodic task table on startup. The task itself is a no-op while
# CALL_RINGING_TIMEOUT_SECONDS is 0.
app.conf.beat_schedule = {
    "expire-ringing-calls": {
        "task": "calls.tasks.expire_ringing_calls",
        "schedule": 15.0,
    },
}
