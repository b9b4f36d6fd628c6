# Load the Celery app with Django so shared_task binds to it and
# enqueue_on_commit() can deliver tasks from web processes.
from config.celery import app as celery_app

__all__ = ("celery_app",)
