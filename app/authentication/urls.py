"""
URL configuration for the users API.

URL structure:
    /api/v1/users/{id}/             - User with effective presence
    /api/v1/users/search/?q=        - Search users by name or email
    /api/v1/users/me/               - Current user (GET/PATCH)
    /api/v1/users/me/presence/      - Set presence status
    /api/v1/users/me/heartbeat/     - Presence heartbeat

Note:
    Login, logout, token refresh and registration come from dj-rest-auth
    and are included in config/urls.py under /api/v1/auth/.
"""

from django.urls import include, path
from rest_framework.routers import SimpleRouter

from authentication.views import UserViewSet

app_name = "authentication"

router = SimpleRouter()
router.register("", UserViewSet, basename="user")

urlpatterns = [
    path("", include(router.urls)),
]
