"""
URL configuration for the Django application.

URL Structure:
    /                              - ReDoc API documentation
    /admin/                        - Django admin interface
    /health/                       - Health check endpoint (load balancers, Docker)
    /schema/                       - OpenAPI schema (YAML)
    /api/v1/auth/                  - Authentication endpoints (dj-rest-auth)
        login/ logout/             - Email/password login, logout
        token/refresh/             - Refresh JWT access token
        registration/              - User registration
        password/reset/ password/change/
    /api/v1/users/                 - Profiles, search and presence (authentication.urls)
    /api/v1/chat/                  - Conversations, groups, messages (chat.urls)
    /api/v1/calls/                 - Call lifecycle and history (calls.urls)
    /api/v1/meetings/              - Meeting requests and calendar (meetings.urls)
    /api/v1/notifications/         - Inbox and web push (notifications.urls)

WebSocket routes are in notifications/routing.py (served by config/asgi.py).
"""

from django.contrib import admin
from django.urls import include, path
from django.views.generic import TemplateView
from drf_spectacular.views import SpectacularAPIView, SpectacularRedocView

from core.views import health_check

# =============================================================================
# API v1 Routes
# =============================================================================
api_v1_patterns = [
    # Authentication (dj-rest-auth)
    path("auth/", include("dj_rest_auth.urls")),
    path("auth/registration/", include("dj_rest_auth.registration.urls")),
    path("accounts/", include("allauth.urls")),
    # Domain apps
    path("users/", include("authentication.urls")),
    path("chat/", include("chat.urls")),
    path("calls/", include("calls.urls")),
    path("meetings/", include("meetings.urls")),
    path("notifications/", include("notifications.urls")),
]

urlpatterns = [
    # Documentation
    path("", SpectacularRedocView.as_view(url_name="schema"), name="redoc"),
    path("schema/", SpectacularAPIView.as_view(), name="schema"),
    # Admin
    path("admin/", admin.site.urls),
    path("health/", health_check, name="health_check"),
    # Target of the link in password reset emails; the frontend handles it
    path(
        "password/reset/confirm/<uidb64>/<token>/",
        TemplateView.as_view(template_name="password_reset_confirm.html"),
        name="password_reset_confirm",
    ),
    path("api/v1/", include(api_v1_patterns)),
]

# =============================================================================
# Admin Site Customization
# =============================================================================
admin.site.site_header = "HuddleUp Admin"
admin.site.site_title = "HuddleUp"
admin.site.index_title = "Administration"
