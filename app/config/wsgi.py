"""
WSGI entry point.

Production serves config.asgi with Uvicorn (WebSockets need ASGI); this
module remains for management tooling and plain WSGI servers.
"""

import os

from django.core.wsgi import get_wsgi_application

os.environ.setdefault("DJANGO_SETTINGS_MODULE", "config.settings")

application = get_wsgi_application()
