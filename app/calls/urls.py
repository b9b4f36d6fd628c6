"""
URL configuration for the calls API.

All URLs are prefixed with /api/v1/calls/ in the main URL configuration.
See calls/views.py for the endpoint list.
"""

from rest_framework.routers import SimpleRouter

from calls.views import CallViewSet

router = SimpleRouter()
router.register(r"", CallViewSet, basename="call")

app_name = "calls"

urlpatterns = router.urls
